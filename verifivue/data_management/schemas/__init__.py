"""Schema package for verification requests, accounts, analysis results and notifications.

All records are Pydantic models so they round-trip through JSON persistence
without loss (model_dump(mode="json") / model_validate).

Primary exports:
- VerificationRequest: One verification case with its 4-slot timeline
- Account: Client or staff account with credit balance and grants
- AIAnalysisResult: Output of the document analysis model
- Notification: One addressed event record

Usage:
    from verifivue.data_management.schemas import Account, Role
    account = Account(id="client-1", name="TechGlobal Admin", credits=5)

    from verifivue.data_management.schemas import RequestStatus, Stage
    request.step(Stage.ANALYSIS).status
"""

# Account schemas
from verifivue.data_management.schemas.account_schema import (
    Account,
    AccountStatus,
    PackageDef,
    Role,
    STAFF_ROLES,
    UNLIMITED,
)

# Shared field types
from verifivue.data_management.schemas.common import UtcDatetime, as_utc

# Analysis schemas
from verifivue.data_management.schemas.analysis_schema import (
    AIAnalysisResult,
    GateDecision,
)

# Request schemas
from verifivue.data_management.schemas.request_schema import (
    CandidateFacts,
    RequestStatus,
    Stage,
    STAGE_ORDER,
    StepStatus,
    TERMINAL_STATUSES,
    TimelineStep,
    VerificationOutcome,
    VerificationRequest,
)

# Notification schemas
from verifivue.data_management.schemas.notification_schema import (
    Notification,
    NotificationType,
)

__all__ = [
    # Account
    "Account",
    "AccountStatus",
    "PackageDef",
    "Role",
    "STAFF_ROLES",
    "UNLIMITED",
    # Shared
    "UtcDatetime",
    "as_utc",
    # Analysis
    "AIAnalysisResult",
    "GateDecision",
    # Request
    "CandidateFacts",
    "RequestStatus",
    "Stage",
    "STAGE_ORDER",
    "StepStatus",
    "TERMINAL_STATUSES",
    "TimelineStep",
    "VerificationOutcome",
    "VerificationRequest",
    # Notification
    "Notification",
    "NotificationType",
]
