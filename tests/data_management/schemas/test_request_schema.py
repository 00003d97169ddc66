"""Tests for request, account and analysis schemas."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from verifivue.config.packages import DEFAULT_PACKAGES, get_package
from verifivue.data_management.schemas import (
    Account,
    AIAnalysisResult,
    CandidateFacts,
    PackageDef,
    RequestStatus,
    Role,
    Stage,
    TERMINAL_STATUSES,
    VerificationRequest,
)
from verifivue.lifecycle.timeline import TimelineBuilder

T0 = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)


def _request(timeline) -> VerificationRequest:
    return VerificationRequest(
        id="REQ-2024-000001",
        candidate_name="Michael Chen",
        institution="Stanford University",
        degree="M.S. Computer Science",
        client_id="client-1",
        status=RequestStatus.PROCESSING,
        timeline=timeline,
        submission_date=T0,
        last_updated=T0,
    )


class TestVerificationRequest:
    def test_four_slots_required(self):
        timeline = TimelineBuilder().initialize(T0)
        with pytest.raises(ValidationError):
            _request(timeline[:3])

    def test_slots_must_be_in_order(self):
        timeline = TimelineBuilder().initialize(T0)
        timeline[1], timeline[2] = timeline[2], timeline[1]
        with pytest.raises(ValidationError):
            _request(timeline)

    def test_step_lookup(self):
        request = _request(TimelineBuilder().initialize(T0))
        assert request.step(Stage.OUTREACH).label == "Institution Outreach"

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {RequestStatus.VERIFIED, RequestStatus.REJECTED}

    def test_json_round_trip(self):
        request = _request(TimelineBuilder().initialize(T0))
        restored = VerificationRequest.model_validate_json(request.model_dump_json())
        assert restored == request

    def test_dates_without_offset_read_as_utc(self):
        naive = datetime(2024, 5, 20, 12, 0)
        payload = _request(TimelineBuilder().initialize(T0)).model_dump(mode="json")
        payload["submission_date"] = "2024-05-20T12:00:00"
        payload["last_updated"] = naive.isoformat()
        payload["timeline"][0]["date"] = "2024-05-20T12:00:00"
        restored = VerificationRequest.model_validate(payload)
        assert restored.submission_date == T0
        assert restored.last_updated == T0
        assert restored.timeline[0].date == T0
        assert max(restored.last_updated, T0 + timedelta(minutes=1)) == T0 + timedelta(minutes=1)


class TestCandidateFacts:
    def test_strips_whitespace(self):
        facts = CandidateFacts(candidate_name="  Sarah Smith ", institution="NYU", degree="BA")
        assert facts.candidate_name == "Sarah Smith"

    @pytest.mark.parametrize("field", ["candidate_name", "institution", "degree"])
    def test_blank_rejected(self, field):
        values = {"candidate_name": "Sarah", "institution": "NYU", "degree": "BA", field: "   "}
        with pytest.raises(ValidationError):
            CandidateFacts(**values)


class TestAccount:
    def test_negative_credits_rejected(self):
        with pytest.raises(ValidationError):
            Account(id="c", name="C", credits=-1)

    def test_display_name_prefers_organization(self):
        assert Account(id="c", name="Admin", organization="TechGlobal Inc.").display_name == "TechGlobal Inc."
        assert Account(id="c", name="Admin").display_name == "Admin"

    def test_staff_roles(self):
        assert Account(id="o", name="O", role=Role.VERIFICATION_OFFICER).is_staff
        assert not Account(id="c", name="C").is_staff

    def test_active_grant(self):
        account = Account(id="c", name="C", subscription_expiry=T0 + timedelta(days=1))
        assert account.has_active_grant(T0)
        assert not account.has_active_grant(T0 + timedelta(days=2))


class TestAnalysisResult:
    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            AIAnalysisResult(confidence_score=101)
        with pytest.raises(ValidationError):
            AIAnalysisResult(confidence_score=-1)

    def test_defaults(self):
        result = AIAnalysisResult(confidence_score=50)
        assert result.is_tampered is False
        assert result.extracted_name == ""


class TestPackages:
    def test_catalogue(self):
        assert DEFAULT_PACKAGES["STANDARD"].credits == 1
        assert DEFAULT_PACKAGES["CORPORATE_PLUS"].credits == 5
        assert DEFAULT_PACKAGES["CORPORATE_PRO"].credits == 10
        assert DEFAULT_PACKAGES["ENTERPRISE"].is_unlimited

    def test_lookup_case_insensitive(self):
        assert get_package("enterprise").id == "ENTERPRISE"
        assert get_package("unknown") is None

    def test_zero_credit_package_rejected(self):
        with pytest.raises(ValidationError):
            PackageDef(id="FREE", name="Free", credits=0)
