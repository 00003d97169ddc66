"""Tests for AnalysisGate routing decisions and timeline descriptions."""

import pytest

from verifivue.data_management.schemas import AIAnalysisResult, GateDecision
from verifivue.lifecycle.analysis_gate import CONFIDENCE_THRESHOLD, AnalysisGate


def _result(confidence: float, tampered: bool = False) -> AIAnalysisResult:
    return AIAnalysisResult(
        extracted_name="Sarah Smith",
        confidence_score=confidence,
        is_tampered=tampered,
    )


class TestEvaluate:
    @pytest.mark.parametrize(
        "confidence,tampered,expected",
        [
            (95, False, GateDecision.PASS),
            (80, False, GateDecision.PASS),
            (79.9, False, GateDecision.NEEDS_REVIEW),
            (65, False, GateDecision.NEEDS_REVIEW),
            (99, True, GateDecision.NEEDS_REVIEW),
            (0, True, GateDecision.NEEDS_REVIEW),
        ],
    )
    def test_default_threshold(self, confidence, tampered, expected):
        assert AnalysisGate().evaluate(_result(confidence, tampered)) == expected

    def test_threshold_constant(self):
        assert CONFIDENCE_THRESHOLD == 80
        assert AnalysisGate().threshold == 80

    def test_custom_threshold(self):
        gate = AnalysisGate(threshold=60)
        assert gate.evaluate(_result(65)) == GateDecision.PASS
        assert gate.evaluate(_result(59)) == GateDecision.NEEDS_REVIEW

    def test_zero_threshold_still_blocks_tampering(self):
        gate = AnalysisGate(threshold=0)
        assert gate.evaluate(_result(0)) == GateDecision.PASS
        assert gate.evaluate(_result(100, tampered=True)) == GateDecision.NEEDS_REVIEW


class TestDescribe:
    def test_pass_mentions_confidence(self):
        assert AnalysisGate().describe(_result(95)) == "AI verification passed. Confidence: 95%."

    def test_low_confidence(self):
        assert (
            AnalysisGate().describe(_result(65))
            == "Low confidence score (65%). Human review needed."
        )

    def test_tampering_takes_precedence(self):
        text = AnalysisGate().describe(_result(40, tampered=True))
        assert text.startswith("Possible tampering detected")
        assert "Human review needed." in text

    def test_fractional_confidence(self):
        assert "87.5%" in AnalysisGate().describe(_result(87.5))
