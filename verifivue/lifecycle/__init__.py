"""Verification request lifecycle engine.

Pure components (no I/O, no awaits):
- AccountLedger: eligibility, credit debit, package grants
- AnalysisGate: pass / needs-review decision for AI analysis results
- TimelineBuilder: the four-stage request timeline
- LifecycleStateMachine: legal transitions between request statuses
- NotificationEmitter: notifications derived from committed transitions

The async VerificationService in verifivue.lifecycle.service wires these to
the stores and the document analyzer.
"""

from verifivue.lifecycle.errors import (
    AccountSuspendedError,
    AnalysisUnavailableError,
    InsufficientCreditsError,
    InvalidTransitionError,
    LifecycleError,
    MissingReasonError,
    RecordNotFoundError,
    TimelineError,
)
from verifivue.lifecycle.analysis_gate import AnalysisGate, CONFIDENCE_THRESHOLD
from verifivue.lifecycle.ledger import AccountLedger, Eligibility
from verifivue.lifecycle.timeline import TimelineBuilder
from verifivue.lifecycle.state_machine import (
    LifecycleStateMachine,
    OfficerAction,
    Transition,
)
from verifivue.lifecycle.notifications import NotificationEmitter

__all__ = [
    # Errors
    "AccountSuspendedError",
    "AnalysisUnavailableError",
    "InsufficientCreditsError",
    "InvalidTransitionError",
    "LifecycleError",
    "MissingReasonError",
    "RecordNotFoundError",
    "TimelineError",
    # Components
    "AccountLedger",
    "AnalysisGate",
    "CONFIDENCE_THRESHOLD",
    "Eligibility",
    "LifecycleStateMachine",
    "NotificationEmitter",
    "OfficerAction",
    "TimelineBuilder",
    "Transition",
]
