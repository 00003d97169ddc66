"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Attributes:
        gemini_api_key: Google Gemini API key (required for document analysis)
        gemini_model: Gemini model used for credential analysis
        gemini_max_retries: Attempts per Gemini call before giving up
        analysis_confidence_threshold: Minimum AI confidence (0-100) for automatic pass
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        data_dir: Directory for JSON persistence of stores (memory-only if unset)
        app_name: Product name shown in CLI output
        currency: Display currency for package prices
    """

    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key"
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model identifier used for document analysis"
    )
    gemini_max_retries: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts per Gemini request"
    )
    analysis_confidence_threshold: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Confidence score below which a document needs human review"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    data_dir: str | None = Field(
        default=None,
        description="Directory holding requests.json, accounts.json and notifications.json"
    )
    app_name: str = Field(
        default="VerifiVUE",
        description="Product name"
    )
    currency: str = Field(
        default="USD",
        description="Display currency: USD or GHS"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance - import this throughout the application
settings = Settings()
