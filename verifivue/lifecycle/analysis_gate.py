"""Policy gate that turns an AI analysis result into a routing decision.

A document passes automatically only when the model is confident in it and
saw no tampering:

    NEEDS_REVIEW if confidence_score < threshold OR is_tampered
    PASS otherwise

The gate is stateless; the threshold is fixed per instance.
"""

from typing import Optional

from verifivue.data_management.schemas import AIAnalysisResult, GateDecision

CONFIDENCE_THRESHOLD = 80


class AnalysisGate:
    """Rule-based pass / needs-review decision for analysis results."""

    def __init__(self, threshold: Optional[float] = None) -> None:
        """Initialize AnalysisGate.

        Args:
            threshold: Minimum confidence (0-100) for an automatic pass.
                Defaults to CONFIDENCE_THRESHOLD.
        """
        self.threshold = CONFIDENCE_THRESHOLD if threshold is None else threshold

    def evaluate(self, result: AIAnalysisResult) -> GateDecision:
        if result.is_tampered or result.confidence_score < self.threshold:
            return GateDecision.NEEDS_REVIEW
        return GateDecision.PASS

    def describe(self, result: AIAnalysisResult) -> str:
        """Timeline text explaining the decision for ``result``."""
        confidence = f"{result.confidence_score:g}%"
        if result.is_tampered:
            return (
                f"Possible tampering detected (confidence {confidence}). "
                "Human review needed."
            )
        if result.confidence_score < self.threshold:
            return f"Low confidence score ({confidence}). Human review needed."
        return f"AI verification passed. Confidence: {confidence}."
