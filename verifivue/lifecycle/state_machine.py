"""Lifecycle state machine for verification requests.

Owns a request's overall status. Every trigger is a pure function from
(request [, account], payload) to a Transition carrying a new request; the
input records are never mutated. Guards are evaluated before any effect, so
a rejected trigger leaves nothing half-applied.

Transition table:

    (none)                 submit              -> PROCESSING | REVIEW_REQUIRED
    PROCESSING/REVIEW_REQ  approve_analysis    -> INSTITUTION_OUTREACH
    PROCESSING/REVIEW_REQ  request_manual_review -> PENDING_CLIENT_ACTION
    PENDING_CLIENT_ACTION  reupload            -> INSTITUTION_OUTREACH | REVIEW_REQUIRED
    PENDING_CLIENT_ACTION  override_approve    -> INSTITUTION_OUTREACH
    INSTITUTION_OUTREACH   mark_authenticated  -> PROCESSING (outcome SUCCESS)
    INSTITUTION_OUTREACH   mark_outreach_failed -> REJECTED
    PROCESSING (final)     finalize            -> VERIFIED (outcome SUCCESS)
                                               -> REJECTED (otherwise, reason required)

Replaying a trigger whose effect is already in place (finalize on a
VERIFIED request, approve_analysis on a request already in outreach, ...)
returns the request unchanged with changed=False. Any other trigger outside
the table raises InvalidTransitionError.

No method here awaits anything. Analysis results must be obtained before a
trigger is applied.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from verifivue.data_management.schemas import (
    Account,
    AIAnalysisResult,
    CandidateFacts,
    GateDecision,
    RequestStatus,
    Stage,
    StepStatus,
    VerificationOutcome,
    VerificationRequest,
    as_utc,
)
from verifivue.lifecycle.analysis_gate import AnalysisGate
from verifivue.lifecycle.errors import (
    InvalidTransitionError,
    MissingReasonError,
    TimelineError,
)
from verifivue.lifecycle.ledger import AccountLedger
from verifivue.lifecycle.timeline import TimelineBuilder

STANDARD_VERIFIED_STATEMENT = (
    "The issuing institution confirmed the candidate's enrollment and award "
    "of the stated qualification."
)

_ON_HOLD = "On hold pending manual review."


class OfficerAction(str, Enum):
    """Triggers available to verification officers."""

    APPROVE_ANALYSIS = "approve_analysis"
    REQUEST_MANUAL_REVIEW = "request_manual_review"
    OVERRIDE_APPROVE = "override_approve"
    MARK_AUTHENTICATED = "mark_authenticated"
    MARK_OUTREACH_FAILED = "mark_outreach_failed"
    FINALIZE = "finalize"


SUBMIT = "submit"
REUPLOAD = "reupload"


@dataclass
class Transition:
    """Outcome of one accepted trigger.

    Attributes:
        request: Request after the trigger (the input itself when unchanged).
        previous_status: Status before the trigger; None for a new submission.
        trigger: Name of the trigger applied.
        changed: False when the trigger was a replay and nothing changed.
        account: Updated submitting account (submit only).
        credit_charged: True if submit debited a credit.
    """

    request: VerificationRequest
    previous_status: Optional[RequestStatus]
    trigger: str
    changed: bool = True
    account: Optional[Account] = None
    credit_charged: bool = False

    @property
    def new_status(self) -> RequestStatus:
        return self.request.status


def _clean_reason(reason: Optional[str]) -> str:
    return (reason or "").strip()


class LifecycleStateMachine:
    """Validates and applies lifecycle transitions.

    Drives the TimelineBuilder for stage records and the AccountLedger for
    the submission charge. Holds no per-request state.
    """

    def __init__(
        self,
        ledger: Optional[AccountLedger] = None,
        gate: Optional[AnalysisGate] = None,
        timeline_builder: Optional[TimelineBuilder] = None,
    ) -> None:
        self.ledger = ledger or AccountLedger()
        self.gate = gate or AnalysisGate()
        self.timeline = timeline_builder or TimelineBuilder()
        self._handlers: dict[OfficerAction, Callable[..., VerificationRequest]] = {
            OfficerAction.APPROVE_ANALYSIS: self._approve_analysis,
            OfficerAction.REQUEST_MANUAL_REVIEW: self._request_manual_review,
            OfficerAction.OVERRIDE_APPROVE: self._override_approve,
            OfficerAction.MARK_AUTHENTICATED: self._mark_authenticated,
            OfficerAction.MARK_OUTREACH_FAILED: self._mark_outreach_failed,
            OfficerAction.FINALIZE: self._finalize,
        }

    # ── Submission ────────────────────────────────────────────────────────

    def submit(
        self,
        request_id: str,
        account: Account,
        facts: CandidateFacts,
        analysis: Optional[AIAnalysisResult] = None,
        document_ref: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Transition:
        """Create a request for ``account``.

        Charges one credit unless the account is exempt, initializes the
        timeline and, when an analysis result is attached, routes through
        the analysis gate.

        Raises:
            AccountSuspendedError, InsufficientCreditsError
        """
        now = as_utc(now) if now else datetime.now(timezone.utc)
        charged_account, charged = self.ledger.charge_submission(account, now)

        timeline = self.timeline.initialize(now)
        status = RequestStatus.PROCESSING
        if analysis is not None:
            description = self.gate.describe(analysis)
            if self.gate.evaluate(analysis) == GateDecision.PASS:
                timeline = self.timeline.advance(
                    timeline, Stage.ANALYSIS, StepStatus.CURRENT, description, now
                )
            else:
                timeline = self.timeline.advance(
                    timeline, Stage.ANALYSIS, StepStatus.ERROR, description, now
                )
                timeline = self.timeline.advance(
                    timeline, Stage.OUTREACH, StepStatus.UPCOMING, _ON_HOLD
                )
                status = RequestStatus.REVIEW_REQUIRED

        request = VerificationRequest(
            id=request_id,
            candidate_name=facts.candidate_name,
            institution=facts.institution,
            degree=facts.degree,
            graduation_year=facts.graduation_year,
            notes=facts.notes,
            client_id=account.id,
            client_name=account.display_name,
            status=status,
            timeline=timeline,
            document_ref=document_ref,
            ai_analysis=analysis,
            submission_date=now,
            last_updated=now,
        )
        return Transition(
            request=request,
            previous_status=None,
            trigger=SUBMIT,
            account=charged_account,
            credit_charged=charged,
        )

    # ── Officer actions ───────────────────────────────────────────────────

    def apply(
        self,
        request: VerificationRequest,
        action: OfficerAction,
        reason: Optional[str] = None,
        statement: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Transition:
        """Apply an officer action to ``request``.

        Args:
            request: Current request snapshot.
            action: Officer trigger.
            reason: Required for mark_outreach_failed and for finalize on
                the rejection branch.
            statement: Optional report statement for finalize on the
                verified branch.
            now: Timestamp for timeline dates and last_updated.

        Raises:
            InvalidTransitionError: Action not allowed from the current state.
            MissingReasonError: Rejecting action without a reason.
        """
        action = OfficerAction(action)
        if self._is_replay(request, action):
            return Transition(
                request=request,
                previous_status=request.status,
                trigger=action.value,
                changed=False,
            )
        now = as_utc(now) if now else datetime.now(timezone.utc)
        handler = self._handlers[action]
        updated = handler(request, reason=reason, statement=statement, now=now)
        return Transition(
            request=updated,
            previous_status=request.status,
            trigger=action.value,
        )

    def reupload(
        self,
        request: VerificationRequest,
        analysis: AIAnalysisResult,
        document_ref: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Transition:
        """Apply a client re-upload whose analysis has already completed.

        Raises:
            InvalidTransitionError: Request is not awaiting client action.
        """
        self._require_status(request, REUPLOAD, RequestStatus.PENDING_CLIENT_ACTION)
        now = as_utc(now) if now else datetime.now(timezone.utc)
        description = self.gate.describe(analysis)
        timeline = request.timeline

        if self.gate.evaluate(analysis) == GateDecision.PASS:
            timeline = self.timeline.advance(
                timeline, Stage.ANALYSIS, StepStatus.COMPLETED, description, now
            )
            timeline = self.timeline.advance(
                timeline,
                Stage.OUTREACH,
                StepStatus.CURRENT,
                "Contacting the issuing institution for confirmation.",
                now,
            )
            status = RequestStatus.INSTITUTION_OUTREACH
        else:
            timeline = self.timeline.advance(
                timeline, Stage.ANALYSIS, StepStatus.ERROR, description, now
            )
            status = RequestStatus.REVIEW_REQUIRED

        updated = self._commit(
            request,
            status,
            timeline,
            now,
            ai_analysis=analysis,
            document_ref=document_ref or request.document_ref,
        )
        return Transition(
            request=updated,
            previous_status=request.status,
            trigger=REUPLOAD,
        )

    def allowed_actions(self, request: VerificationRequest) -> list[OfficerAction]:
        """Officer actions that would be accepted (and change state) right now."""
        allowed = []
        for action in OfficerAction:
            if self._is_replay(request, action):
                continue
            try:
                self._handlers[action](
                    request,
                    reason="(dry run)",
                    statement=None,
                    now=request.last_updated,
                )
            except (InvalidTransitionError, MissingReasonError, TimelineError):
                continue
            allowed.append(action)
        return allowed

    # ── Handlers ──────────────────────────────────────────────────────────

    def _approve_analysis(self, request, *, now, **_) -> VerificationRequest:
        trigger = OfficerAction.APPROVE_ANALYSIS.value
        self._require_status(
            request, trigger, RequestStatus.PROCESSING, RequestStatus.REVIEW_REQUIRED
        )
        self._require_stage(request, trigger, Stage.ANALYSIS)
        timeline = self.timeline.advance(
            request.timeline,
            Stage.ANALYSIS,
            StepStatus.COMPLETED,
            "Document analysis approved by verification officer.",
            now,
        )
        timeline = self._start_outreach(timeline, now)
        return self._commit(request, RequestStatus.INSTITUTION_OUTREACH, timeline, now)

    def _request_manual_review(self, request, *, now, **_) -> VerificationRequest:
        trigger = OfficerAction.REQUEST_MANUAL_REVIEW.value
        self._require_status(
            request, trigger, RequestStatus.PROCESSING, RequestStatus.REVIEW_REQUIRED
        )
        self._require_stage(request, trigger, Stage.ANALYSIS)
        timeline = self.timeline.advance(
            request.timeline,
            Stage.ANALYSIS,
            StepStatus.ERROR,
            "Manual verification requested. Awaiting an updated document from the client.",
            now,
        )
        timeline = self.timeline.advance(
            timeline, Stage.OUTREACH, StepStatus.UPCOMING, _ON_HOLD
        )
        return self._commit(
            request,
            RequestStatus.PENDING_CLIENT_ACTION,
            timeline,
            now,
            manual_verification_requested=True,
        )

    def _override_approve(self, request, *, now, **_) -> VerificationRequest:
        trigger = OfficerAction.OVERRIDE_APPROVE.value
        self._require_status(request, trigger, RequestStatus.PENDING_CLIENT_ACTION)
        timeline = self.timeline.advance(
            request.timeline,
            Stage.ANALYSIS,
            StepStatus.COMPLETED,
            "Manually approved by verification officer.",
            now,
        )
        timeline = self._start_outreach(timeline, now)
        return self._commit(request, RequestStatus.INSTITUTION_OUTREACH, timeline, now)

    def _mark_authenticated(self, request, *, now, **_) -> VerificationRequest:
        trigger = OfficerAction.MARK_AUTHENTICATED.value
        self._require_status(request, trigger, RequestStatus.INSTITUTION_OUTREACH)
        self._require_stage(request, trigger, Stage.OUTREACH)
        timeline = self.timeline.advance(
            request.timeline,
            Stage.OUTREACH,
            StepStatus.COMPLETED,
            "Registrar confirmed enrollment and graduation.",
            now,
        )
        timeline = self.timeline.advance(
            timeline,
            Stage.FINAL,
            StepStatus.CURRENT,
            "Preparing final verification report.",
            now,
        )
        return self._commit(
            request,
            RequestStatus.PROCESSING,
            timeline,
            now,
            verification_outcome=VerificationOutcome.SUCCESS,
        )

    def _mark_outreach_failed(self, request, *, reason, now, **_) -> VerificationRequest:
        trigger = OfficerAction.MARK_OUTREACH_FAILED.value
        self._require_status(request, trigger, RequestStatus.INSTITUTION_OUTREACH)
        reason = _clean_reason(reason)
        if not reason:
            raise MissingReasonError(trigger)
        timeline = self.timeline.advance(
            request.timeline,
            Stage.OUTREACH,
            StepStatus.ERROR,
            f"Institution could not confirm the credential: {reason}",
            now,
        )
        timeline = self.timeline.mark_terminal(
            timeline, f"Verification failed. {reason}", now
        )
        return self._commit(
            request,
            RequestStatus.REJECTED,
            timeline,
            now,
            verification_outcome=VerificationOutcome.FAILURE,
            final_report_note=reason,
        )

    def _finalize(self, request, *, reason, statement, now, **_) -> VerificationRequest:
        trigger = OfficerAction.FINALIZE.value
        self._require_status(request, trigger, RequestStatus.PROCESSING)
        self._require_stage(request, trigger, Stage.FINAL)

        if request.verification_outcome == VerificationOutcome.SUCCESS:
            note = _clean_reason(statement) or STANDARD_VERIFIED_STATEMENT
            timeline = self.timeline.mark_terminal(
                request.timeline, "Verified successfully.", now
            )
            return self._commit(
                request,
                RequestStatus.VERIFIED,
                timeline,
                now,
                final_report_note=note,
            )

        reason = _clean_reason(reason)
        if not reason:
            raise MissingReasonError(trigger)
        timeline = self.timeline.mark_terminal(
            request.timeline, f"Verification failed. {reason}", now
        )
        return self._commit(
            request,
            RequestStatus.REJECTED,
            timeline,
            now,
            final_report_note=reason,
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    def _start_outreach(self, timeline, now):
        return self.timeline.advance(
            timeline,
            Stage.OUTREACH,
            StepStatus.CURRENT,
            "Contacting the issuing institution for confirmation.",
            now,
        )

    @staticmethod
    def _commit(
        request: VerificationRequest,
        status: RequestStatus,
        timeline,
        now: datetime,
        **updates,
    ) -> VerificationRequest:
        return request.model_copy(
            update={
                "status": status,
                "timeline": timeline,
                "last_updated": max(request.last_updated, now),
                **updates,
            }
        )

    @staticmethod
    def _require_status(
        request: VerificationRequest,
        trigger: str,
        *allowed: RequestStatus,
    ) -> None:
        if request.status not in allowed:
            raise InvalidTransitionError(
                request.status.value, trigger, request_id=request.id
            )

    def _require_stage(
        self,
        request: VerificationRequest,
        trigger: str,
        stage: Stage,
    ) -> None:
        active = self.timeline.active_stage(request.timeline)
        if active != stage:
            raise InvalidTransitionError(
                request.status.value,
                trigger,
                request_id=request.id,
                detail=f"current stage is {active.value if active else 'closed'}",
            )

    @staticmethod
    def _is_replay(request: VerificationRequest, action: OfficerAction) -> bool:
        status = request.status
        outcome = request.verification_outcome
        if action in (OfficerAction.APPROVE_ANALYSIS, OfficerAction.OVERRIDE_APPROVE):
            return status == RequestStatus.INSTITUTION_OUTREACH
        if action == OfficerAction.REQUEST_MANUAL_REVIEW:
            return status == RequestStatus.PENDING_CLIENT_ACTION
        if action == OfficerAction.MARK_AUTHENTICATED:
            return (
                status == RequestStatus.PROCESSING
                and outcome == VerificationOutcome.SUCCESS
            )
        if action == OfficerAction.MARK_OUTREACH_FAILED:
            return (
                status == RequestStatus.REJECTED
                and outcome == VerificationOutcome.FAILURE
            )
        if action == OfficerAction.FINALIZE:
            return request.is_terminal
        return False
