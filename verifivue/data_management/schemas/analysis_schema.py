"""AI document analysis result schema.

AIAnalysisResult is the structured output of the external analysis model.
Only confidence_score and is_tampered drive routing; the extracted fields and
authenticity notes are advisory and shown to officers.
"""

from enum import Enum

from pydantic import BaseModel, Field


class GateDecision(str, Enum):
    """Automatic routing decision derived from an analysis result.

    PASS: Document is legible and shows no tampering, continue automatically.
    NEEDS_REVIEW: Low confidence or tampering suspected, a human must look.
    """

    PASS = "pass"
    NEEDS_REVIEW = "needs_review"


class AIAnalysisResult(BaseModel):
    """Output of one analysis call for one document."""

    extracted_name: str = Field(default="", description="Student name found on the document")
    extracted_institution: str = Field(default="", description="Issuing institution")
    extracted_degree: str = Field(default="", description="Degree title")
    extracted_date: str = Field(default="", description="Graduation date or year")
    confidence_score: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Legibility/authenticity confidence, 0-100",
    )
    authenticity_notes: str = Field(default="", description="Free-text notes from the model")
    is_tampered: bool = Field(
        default=False,
        description="Obvious signs of digital editing or tampering",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "extracted_name": "Sarah Smith",
                    "extracted_institution": "NYU",
                    "extracted_degree": "BA Econ",
                    "extracted_date": "2021",
                    "confidence_score": 65,
                    "authenticity_notes": "Image is blurry. Cannot read official seal clearly.",
                    "is_tampered": False,
                }
            ]
        }
    }
