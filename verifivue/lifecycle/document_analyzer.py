"""Document analysis collaborator.

Sends an uploaded credential to Gemini and validates the structured reply
into an AIAnalysisResult. The call is blocking, so it runs in a worker
thread; callers await it before taking any lifecycle lock.

Any failure (unreadable document, API error, malformed or incomplete JSON)
surfaces as AnalysisUnavailableError. No partial result is ever returned.

Documents are referenced either by filesystem path or by a base64 data URL
("data:image/png;base64,...").
"""

import asyncio
import base64
import binascii
import mimetypes
from pathlib import Path

from pydantic import ValidationError

from verifivue.config.prompts import (
    CREDENTIAL_ANALYSIS_PROMPT,
    CREDENTIAL_ANALYSIS_SCHEMA,
)
from verifivue.data_management.schemas import AIAnalysisResult
from verifivue.lifecycle.errors import AnalysisUnavailableError
from verifivue.llm.gemini_client import get_client
from verifivue.utils.logging import get_structured_logger

SUPPORTED_MIME_PREFIXES = ("image/", "application/pdf")


def load_document(document_ref: str) -> tuple[bytes, str]:
    """Resolve a document reference to (bytes, mime type).

    Raises:
        AnalysisUnavailableError: Reference cannot be read or decoded, or
            points at an unsupported file type.
    """
    if document_ref.startswith("data:"):
        header, _, payload = document_ref.partition(",")
        mime_type = header[len("data:"):].split(";")[0] or "application/octet-stream"
        if ";base64" not in header:
            raise AnalysisUnavailableError("Data URL is not base64 encoded", document_ref[:32])
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise AnalysisUnavailableError(f"Invalid base64 document: {e}", document_ref[:32]) from e
    else:
        path = Path(document_ref)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise AnalysisUnavailableError(f"Cannot read document: {e}", document_ref) from e
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

    if not data:
        raise AnalysisUnavailableError("Document is empty", document_ref[:64])
    if not mime_type.startswith(SUPPORTED_MIME_PREFIXES):
        raise AnalysisUnavailableError(
            f"Unsupported document type {mime_type}", document_ref[:64]
        )
    return data, mime_type


class DocumentAnalyzer:
    """Gemini-backed credential analysis.

    Args:
        client: Object with a ``generate_json(prompt, data, mime_type,
            response_schema)`` method. Defaults to the shared GeminiClient,
            created on first analysis.
    """

    def __init__(self, client=None) -> None:
        self._client = client
        self.logger = get_structured_logger("lifecycle.analyzer")

    @property
    def client(self):
        if self._client is None:
            self._client = get_client()
        return self._client

    async def analyze(self, document_ref: str) -> AIAnalysisResult:
        """Analyze one document.

        Raises:
            AnalysisUnavailableError: Analysis could not produce a valid result.
        """
        data, mime_type = load_document(document_ref)
        short_ref = document_ref[:64]

        try:
            client = self.client
            raw = await asyncio.to_thread(
                client.generate_json,
                CREDENTIAL_ANALYSIS_PROMPT,
                data,
                mime_type,
                CREDENTIAL_ANALYSIS_SCHEMA,
            )
        except Exception as e:
            self.logger.warning("analysis_failed", document_ref=short_ref, error=str(e))
            raise AnalysisUnavailableError(f"Analysis request failed: {e}", short_ref) from e

        if not raw:
            raise AnalysisUnavailableError("Empty response from analysis model", short_ref)

        try:
            result = AIAnalysisResult.model_validate_json(raw)
        except ValidationError as e:
            self.logger.warning(
                "analysis_malformed",
                document_ref=short_ref,
                errors=e.error_count(),
            )
            raise AnalysisUnavailableError(f"Malformed analysis response: {e}", short_ref) from e

        self.logger.info(
            "analysis_completed",
            document_ref=short_ref,
            confidence=result.confidence_score,
            tampered=result.is_tampered,
        )
        return result
