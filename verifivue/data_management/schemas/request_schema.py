"""Verification request and timeline schemas.

A VerificationRequest is one verification case. Its timeline always holds
exactly four stage slots, present from creation and never reordered:

    1. Request Submitted   (submission)
    2. Document Analysis   (analysis)
    3. Institution Outreach (outreach)
    4. Final Verification  (final)

Only the status, description and date of each slot change over the life of
the request. The overall status is held separately in ``status`` and is
changed only by the lifecycle state machine.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from verifivue.data_management.schemas.analysis_schema import AIAnalysisResult
from verifivue.data_management.schemas.common import UtcDatetime


class RequestStatus(str, Enum):
    """Overall status of a verification request.

    VERIFIED and REJECTED are terminal.
    """

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    REVIEW_REQUIRED = "REVIEW_REQUIRED"
    PENDING_CLIENT_ACTION = "PENDING_CLIENT_ACTION"
    INSTITUTION_OUTREACH = "INSTITUTION_OUTREACH"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset({RequestStatus.VERIFIED, RequestStatus.REJECTED})


class StepStatus(str, Enum):
    UPCOMING = "upcoming"
    CURRENT = "current"
    COMPLETED = "completed"
    ERROR = "error"


class Stage(str, Enum):
    """The four canonical timeline stages, in order."""

    SUBMISSION = "submission"
    ANALYSIS = "analysis"
    OUTREACH = "outreach"
    FINAL = "final"


STAGE_ORDER: tuple[Stage, ...] = (
    Stage.SUBMISSION,
    Stage.ANALYSIS,
    Stage.OUTREACH,
    Stage.FINAL,
)


class VerificationOutcome(str, Enum):
    """Informal result of institution outreach, used to pick the finalization branch."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class TimelineStep(BaseModel):
    """One stage record on a request's timeline."""

    id: str = Field(..., description="Stable slot id, '1' through '4'")
    stage: Stage = Field(..., description="Which canonical stage this slot represents")
    label: str = Field(..., description="Human-readable stage name")
    description: str = Field(default="", description="Free-form status text")
    status: StepStatus = Field(default=StepStatus.UPCOMING)
    date: Optional[UtcDatetime] = Field(
        default=None,
        description="Set when the step leaves upcoming",
    )


class CandidateFacts(BaseModel):
    """Candidate details supplied by the client at submission."""

    candidate_name: str = Field(..., description="Candidate's full name")
    institution: str = Field(..., description="Issuing institution")
    degree: str = Field(..., description="Degree title")
    graduation_year: str = Field(
        default="",
        description="Graduation period, free text",
    )
    notes: str = Field(default="", description="Instructions or context from the client")

    @field_validator("candidate_name", "institution", "degree")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Name, institution and degree are required and cannot be whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class VerificationRequest(BaseModel):
    """One verification case.

    Ownership (client_id, client_name) and submission_date are fixed at
    creation. last_updated never decreases and moves on every accepted
    mutation.
    """

    # Identity
    id: str = Field(..., description="Request id, sortable by creation order")

    # Candidate facts
    candidate_name: str
    institution: str
    degree: str
    graduation_year: str = ""
    notes: str = ""

    # Ownership
    client_id: str = Field(..., description="Owning account id")
    client_name: str = Field(default="", description="Owning account display name")

    # Lifecycle
    status: RequestStatus
    timeline: list[TimelineStep] = Field(..., description="Exactly four stage slots")
    document_ref: Optional[str] = Field(
        default=None,
        description="Reference to the uploaded document (path or data URL)",
    )
    ai_analysis: Optional[AIAnalysisResult] = Field(
        default=None,
        description="Result of the analysis gate's last invocation",
    )
    verification_outcome: Optional[VerificationOutcome] = None
    final_report_note: Optional[str] = Field(
        default=None,
        description="Set exactly once, at finalization",
    )
    manual_verification_requested: bool = False

    # Timestamps
    submission_date: UtcDatetime
    last_updated: UtcDatetime

    @model_validator(mode="after")
    def check_timeline_slots(self) -> "VerificationRequest":
        """The timeline holds the four canonical stages in order."""
        stages = tuple(step.stage for step in self.timeline)
        if stages != STAGE_ORDER:
            raise ValueError(
                f"timeline must hold stages {[s.value for s in STAGE_ORDER]}, "
                f"got {[s.value for s in stages]}"
            )
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def step(self, stage: Stage) -> TimelineStep:
        """Return the timeline slot for ``stage``."""
        return self.timeline[STAGE_ORDER.index(stage)]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "REQ-2024-000003",
                    "candidate_name": "Sarah Smith",
                    "institution": "New York University",
                    "degree": "B.A. Economics",
                    "graduation_year": "2021",
                    "client_id": "client-1",
                    "client_name": "TechGlobal Inc.",
                    "status": "REVIEW_REQUIRED",
                    "submission_date": "2024-05-19T16:45:00Z",
                    "last_updated": "2024-05-19T16:50:00Z",
                    "timeline": [
                        {"id": "1", "stage": "submission", "label": "Request Submitted",
                         "description": "Request received.", "status": "completed"},
                        {"id": "2", "stage": "analysis", "label": "Document Analysis",
                         "description": "Low confidence score (65%). Human review needed.",
                         "status": "error"},
                        {"id": "3", "stage": "outreach", "label": "Institution Outreach",
                         "description": "On hold pending manual review.", "status": "upcoming"},
                        {"id": "4", "stage": "final", "label": "Final Verification",
                         "description": "Pending.", "status": "upcoming"},
                    ],
                }
            ]
        }
    }
