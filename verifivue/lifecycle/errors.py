"""Error kinds raised by the verification lifecycle.

All of these are local and recoverable: they are raised before any record is
mutated, so the caller can present them and retry without cleanup. No error
here is fatal to the process.
"""

from typing import Optional


class LifecycleError(Exception):
    """Base class for lifecycle errors.

    Attributes:
        retryable: True if repeating the same call may succeed without any
            other change (e.g. a transient analysis failure).
    """

    retryable: bool = False


class InsufficientCreditsError(LifecycleError):
    """CLIENT account has no credits and no active unlimited grant."""

    def __init__(self, account_id: str, credits: int = 0) -> None:
        self.account_id = account_id
        self.credits = credits
        super().__init__(
            f"Account {account_id} has insufficient credits ({credits})"
        )


class AccountSuspendedError(LifecycleError):
    """Account is suspended and cannot submit or be routed new work."""

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"Account {account_id} is suspended")


class InvalidTransitionError(LifecycleError):
    """Trigger is not allowed from the request's current state or stage."""

    def __init__(
        self,
        status: str,
        trigger: str,
        request_id: Optional[str] = None,
        detail: str = "",
    ) -> None:
        self.status = status
        self.trigger = trigger
        self.request_id = request_id
        message = f"Cannot apply {trigger} to request in status {status}"
        if request_id:
            message = f"{message} ({request_id})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MissingReasonError(LifecycleError):
    """A rejecting trigger was applied without a non-empty reason."""

    def __init__(self, trigger: str) -> None:
        self.trigger = trigger
        super().__init__(f"{trigger} requires a non-empty reason")


class AnalysisUnavailableError(LifecycleError):
    """The document analysis collaborator failed or returned malformed data."""

    retryable = True

    def __init__(self, message: str, document_ref: Optional[str] = None) -> None:
        self.document_ref = document_ref
        super().__init__(message)


class RecordNotFoundError(LifecycleError):
    """No request or account exists with the given id."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class TimelineError(LifecycleError):
    """A timeline update would break the single-active-stage ordering."""
