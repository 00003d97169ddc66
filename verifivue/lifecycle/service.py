"""Verification lifecycle service.

Inbound interface of the engine. Wires the repositories, the pure lifecycle
components and the document analyzer together:

    analyzer (awaited, no lock held)
        -> lock keyed by account id or request id
            -> reload snapshot -> pure transition -> persist -> notify

Locks:
- per account id: submissions and package grants, so the eligibility check
  and the debit form one atomic unit (no double spend)
- per request id: officer actions and re-uploads, so guards see a
  consistent snapshot

A rejected trigger raises before anything is persisted; no notification is
emitted and last_updated does not move.

Usage:
    service = VerificationService.from_settings()
    request = await service.submit("client-1", facts, document_ref="diploma.png")
    request = await service.apply_officer_action(
        request.id, OfficerAction.APPROVE_ANALYSIS
    )
"""

import asyncio
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union

from verifivue.config.packages import get_package
from verifivue.config.settings import settings
from verifivue.data_management import AccountStore, NotificationStore, RequestStore
from verifivue.data_management.repository import (
    AccountRepository,
    NotificationRepository,
    RequestRepository,
)
from verifivue.data_management.schemas import (
    Account,
    AccountStatus,
    AIAnalysisResult,
    CandidateFacts,
    Notification,
    PackageDef,
    RequestStatus,
    VerificationRequest,
)
from verifivue.lifecycle.analysis_gate import AnalysisGate
from verifivue.lifecycle.document_analyzer import DocumentAnalyzer
from verifivue.lifecycle.errors import (
    InvalidTransitionError,
    LifecycleError,
    RecordNotFoundError,
)
from verifivue.lifecycle.ledger import AccountLedger
from verifivue.lifecycle.notifications import NotificationEmitter
from verifivue.lifecycle.state_machine import (
    REUPLOAD,
    LifecycleStateMachine,
    OfficerAction,
    Transition,
)
from verifivue.utils.logging import (
    bind_lifecycle_context,
    get_correlation_id,
    get_structured_logger,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationService:
    """Async orchestration of the verification lifecycle."""

    def __init__(
        self,
        requests: RequestRepository,
        accounts: AccountRepository,
        notifications: NotificationRepository,
        analyzer: Optional[DocumentAnalyzer] = None,
        state_machine: Optional[LifecycleStateMachine] = None,
        emitter: Optional[NotificationEmitter] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize VerificationService.

        Args:
            requests: Request repository.
            accounts: Account repository.
            notifications: Notification repository.
            analyzer: Document analyzer; created lazily when first needed.
            state_machine: Lifecycle state machine; defaults to one whose
                gate uses settings.analysis_confidence_threshold.
            emitter: Notification emitter.
            clock: Returns the current time; injectable for tests.
        """
        self.requests = requests
        self.accounts = accounts
        self.notifications = notifications
        self._analyzer = analyzer
        self.state_machine = state_machine or LifecycleStateMachine(
            gate=AnalysisGate(settings.analysis_confidence_threshold)
        )
        self.emitter = emitter or NotificationEmitter()
        self._clock = clock or _utcnow
        self._account_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._request_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.logger = get_structured_logger("lifecycle.service")

    @classmethod
    def from_settings(cls, data_dir: Optional[str] = None) -> "VerificationService":
        """Build a service over JSON-backed stores in ``data_dir``.

        Falls back to settings.data_dir; memory-only when neither is set.
        """
        data_dir = data_dir or settings.data_dir
        if data_dir:
            base = Path(data_dir)
            return cls(
                RequestStore(str(base / "requests.json")),
                AccountStore(str(base / "accounts.json")),
                NotificationStore(str(base / "notifications.json")),
            )
        return cls(RequestStore(), AccountStore(), NotificationStore())

    @property
    def analyzer(self) -> DocumentAnalyzer:
        if self._analyzer is None:
            self._analyzer = DocumentAnalyzer()
        return self._analyzer

    # ── Submission ────────────────────────────────────────────────────────

    async def submit(
        self,
        account_id: str,
        facts: CandidateFacts,
        document_ref: Optional[str] = None,
        analysis: Optional[AIAnalysisResult] = None,
    ) -> VerificationRequest:
        """Submit a new verification request for ``account_id``.

        If a document is attached without a precomputed analysis, it is
        analyzed first. Eligibility is checked before the analysis (to avoid
        analyzing for an account that cannot pay) and again under the
        account lock.

        Raises:
            RecordNotFoundError, AccountSuspendedError,
            InsufficientCreditsError, AnalysisUnavailableError
        """
        log = bind_lifecycle_context(
            self.logger, account_id=account_id, correlation_id=get_correlation_id()
        )
        account = await self._require_account(account_id)
        try:
            self.state_machine.ledger.ensure_eligible(account, self._clock())
            if analysis is None and document_ref:
                analysis = await self.analyzer.analyze(document_ref)
        except LifecycleError as e:
            log.warning("transition_rejected", trigger="submit", error=str(e))
            raise

        async with self._account_locks[account_id]:
            account = await self._require_account(account_id)
            now = self._clock()
            try:
                request_id = await self.requests.next_request_id(now)
                transition = self.state_machine.submit(
                    request_id,
                    account,
                    facts,
                    analysis=analysis,
                    document_ref=document_ref,
                    now=now,
                )
            except LifecycleError as e:
                log.warning("transition_rejected", trigger="submit", error=str(e))
                raise

            if transition.credit_charged:
                await self.accounts.put(transition.account)
            request = await self.requests.create(transition.request)

        staff = await self.accounts.list_staff()
        await self.notifications.append(
            self.emitter.on_transition(request, None, request.status, staff)
        )
        bind_lifecycle_context(log, request_id=request.id).info(
            "request_submitted",
            status=request.status.value,
            credit_charged=transition.credit_charged,
            credits_left=transition.account.credits,
        )
        return request

    # ── Officer actions and re-upload ─────────────────────────────────────

    async def apply_officer_action(
        self,
        request_id: str,
        action: Union[OfficerAction, str],
        reason: Optional[str] = None,
        statement: Optional[str] = None,
    ) -> VerificationRequest:
        """Apply an officer action to a request.

        Raises:
            RecordNotFoundError, InvalidTransitionError, MissingReasonError
        """
        async with self._request_locks[request_id]:
            request = await self._require_request(request_id)
            try:
                action = OfficerAction(action)
            except ValueError:
                error = InvalidTransitionError(
                    request.status.value,
                    str(action),
                    request_id=request_id,
                    detail="unknown officer action",
                )
                self._log_rejected(request, str(action), error)
                raise error from None
            try:
                transition = self.state_machine.apply(
                    request,
                    action,
                    reason=reason,
                    statement=statement,
                    now=self._clock(),
                )
            except LifecycleError as e:
                self._log_rejected(request, action.value, e)
                raise
            return await self._commit(transition)

    async def reupload(self, request_id: str, document_ref: str) -> VerificationRequest:
        """Attach a new document to a request awaiting client action.

        The status is checked before the analysis runs and again, under the
        request lock, when the result is applied. If analysis fails the
        request keeps its prior status and the call can be repeated.

        Raises:
            RecordNotFoundError, InvalidTransitionError, AnalysisUnavailableError
        """
        request = await self._require_request(request_id)
        if request.status != RequestStatus.PENDING_CLIENT_ACTION:
            error = InvalidTransitionError(request.status.value, REUPLOAD, request_id=request_id)
            self._log_rejected(request, REUPLOAD, error)
            raise error

        try:
            analysis = await self.analyzer.analyze(document_ref)
        except LifecycleError as e:
            self._log_rejected(request, REUPLOAD, e)
            raise

        async with self._request_locks[request_id]:
            request = await self._require_request(request_id)
            try:
                transition = self.state_machine.reupload(
                    request, analysis, document_ref, now=self._clock()
                )
            except LifecycleError as e:
                self._log_rejected(request, REUPLOAD, e)
                raise
            return await self._commit(transition)

    # ── Accounts ──────────────────────────────────────────────────────────

    async def grant_package(
        self,
        account_id: str,
        package: Union[PackageDef, str],
    ) -> Account:
        """Apply a purchased package (object or catalogue id) to an account.

        Raises:
            RecordNotFoundError: Unknown account or catalogue id.
        """
        if isinstance(package, str):
            package_id = package
            package = get_package(package_id)
            if package is None:
                raise RecordNotFoundError("package", package_id)

        async with self._account_locks[account_id]:
            account = await self._require_account(account_id)
            updated = self.state_machine.ledger.grant(account, package, self._clock())
            await self.accounts.put(updated)

        await self.notifications.append(self.emitter.on_purchase(updated, package))
        bind_lifecycle_context(self.logger, account_id=account_id).info(
            "package_granted",
            package_id=package.id,
            credits=updated.credits,
            subscription_expiry=(
                updated.subscription_expiry.isoformat()
                if updated.subscription_expiry
                else None
            ),
        )
        return updated

    async def set_account_status(self, account_id: str, status: AccountStatus) -> Account:
        """Suspend or reactivate an account."""
        status = AccountStatus(status)
        async with self._account_locks[account_id]:
            account = await self._require_account(account_id)
            updated = self.state_machine.ledger.set_status(account, status)
            await self.accounts.put(updated)
        bind_lifecycle_context(self.logger, account_id=account_id).info(
            "account_status_changed", status=status.value
        )
        return updated

    # ── Queries ───────────────────────────────────────────────────────────

    async def get_request(self, request_id: str) -> VerificationRequest:
        return await self._require_request(request_id)

    async def visible_requests(self, account_id: str) -> list[VerificationRequest]:
        """Requests ``account_id`` may see: all for staff, own for clients."""
        account = await self._require_account(account_id)
        if account.is_staff:
            return await self.requests.list_all()
        return await self.requests.list_by_owner(account_id)

    async def notifications_for(self, account_id: str) -> list[Notification]:
        return await self.notifications.list_for(account_id)

    async def mark_notification_read(self, account_id: str, notification_id: str) -> None:
        """Raises RecordNotFoundError if the account has no such notification."""
        if not await self.notifications.mark_read(account_id, notification_id):
            raise RecordNotFoundError("notification", notification_id)

    async def clear_notifications(self, account_id: str) -> int:
        return await self.notifications.clear(account_id)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _commit(self, transition: Transition) -> VerificationRequest:
        """Persist an accepted transition and emit its notifications."""
        request = transition.request
        log = bind_lifecycle_context(
            self.logger, request_id=request.id, account_id=request.client_id
        )
        if not transition.changed:
            log.info("transition_replayed", trigger=transition.trigger, status=request.status.value)
            return request

        request = await self.requests.update(request)
        await self.notifications.append(
            self.emitter.on_transition(
                request, transition.previous_status, request.status
            )
        )
        log.info(
            "transition_applied",
            trigger=transition.trigger,
            from_status=transition.previous_status.value,
            to_status=request.status.value,
        )
        return request

    async def _require_account(self, account_id: str) -> Account:
        account = await self.accounts.get(account_id)
        if account is None:
            raise RecordNotFoundError("account", account_id)
        return account

    async def _require_request(self, request_id: str) -> VerificationRequest:
        request = await self.requests.get(request_id)
        if request is None:
            raise RecordNotFoundError("request", request_id)
        return request

    def _log_rejected(
        self,
        request: VerificationRequest,
        trigger: str,
        error: LifecycleError,
    ) -> None:
        bind_lifecycle_context(self.logger, request_id=request.id).warning(
            "transition_rejected",
            trigger=trigger,
            status=request.status.value,
            error=str(error),
            retryable=error.retryable,
        )
