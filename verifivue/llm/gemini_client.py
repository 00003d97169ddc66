"""Gemini API client with exponential backoff and structured JSON output."""

import time
import random
import functools
from typing import Any, Callable, Optional

import google.generativeai as genai
from google.generativeai.types.generation_types import BlockedPromptException

from verifivue.config.logging import get_logger
from verifivue.config.settings import settings

logger = get_logger("llm.gemini")


def _exponential_backoff(func: Callable) -> Callable:
    """
    Decorator implementing exponential backoff with jitter for API calls.

    Retries failed requests up to settings.gemini_max_retries times with
    exponentially increasing delays. Base delay: 1.0s, exponential factor: 2,
    jitter: 0-10% of delay. Blocked prompts are not retried.

    Args:
        func: Function to wrap with retry logic

    Returns:
        Wrapped function with exponential backoff
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        max_retries = settings.gemini_max_retries
        base_delay = 1.0

        for retry in range(max_retries):
            try:
                return func(*args, **kwargs)
            except BlockedPromptException:
                raise
            except Exception as e:
                if retry == max_retries - 1:
                    logger.error(f"Max retries exceeded for {func.__name__}: {e}")
                    raise

                delay = base_delay * (2 ** retry)
                jitter = random.uniform(0, delay * 0.1)
                total_delay = delay + jitter

                logger.warning(
                    f"Retry {retry + 1}/{max_retries} for {func.__name__} "
                    f"after {total_delay:.2f}s: {e}"
                )
                time.sleep(total_delay)

        raise RuntimeError(f"Unexpected retry loop exit in {func.__name__}")

    return wrapper


class GeminiClient:
    """
    Google Gemini API client for multimodal document analysis.

    Sends a document (raw bytes + MIME type) together with a text prompt and
    asks for JSON constrained by a response schema.

    Attributes:
        model: Configured Gemini generative model instance
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        """
        Initialize Gemini client with API key from settings.

        Raises:
            ValueError: If API key is not configured
        """
        api_key = api_key or settings.gemini_api_key
        if not api_key:
            raise ValueError("GEMINI_API_KEY not configured in environment")

        model_name = model_name or settings.gemini_model
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name)

        logger.info(f"Gemini client initialized with model {model_name}")

    @_exponential_backoff
    def generate_json(
        self,
        prompt: str,
        data: bytes,
        mime_type: str,
        response_schema: dict,
        temperature: float = 0.2,
    ) -> str:
        """
        Generate schema-constrained JSON about a document.

        Args:
            prompt: Instruction text
            data: Raw document bytes
            mime_type: MIME type of the document (image/* or application/pdf)
            response_schema: Schema the JSON response must follow
            temperature: Sampling temperature (0.0-1.0). Lower = more deterministic

        Returns:
            Raw JSON text of the response

        Raises:
            BlockedPromptException: If prompt violates safety policies
            Exception: For other API errors after retries exhausted
        """
        try:
            response = self.model.generate_content(
                [{"mime_type": mime_type, "data": data}, prompt],
                generation_config=genai.types.GenerationConfig(
                    temperature=temperature,
                    response_mime_type="application/json",
                    response_schema=response_schema,
                ),
            )
            return response.text
        except BlockedPromptException as e:
            logger.error(f"Prompt blocked by safety filters: {e}")
            raise


_client: Optional[GeminiClient] = None


def get_client() -> GeminiClient:
    """Return the shared client, creating it on first use."""
    global _client
    if _client is None:
        _client = GeminiClient()
    return _client
