"""Account ledger: credit balance and unlimited-grant accounting.

Pure functions over Account records. Nothing is persisted here; every
operation returns an updated copy and leaves its input untouched.

Eligibility rules (evaluated in order):
1. Suspended accounts are never eligible, whatever their balance or role
2. Staff roles (officer, admin) are exempt from consumption
3. Accounts holding a non-expired unlimited grant are exempt
4. Remaining CLIENT accounts need credits > 0

check_eligibility + debit_one form a check-then-act pair. Callers must apply
them as one atomic unit per account (the lifecycle service holds a lock keyed
by account id) so two submissions cannot both spend the last credit.

Usage:
    from verifivue.lifecycle.ledger import AccountLedger

    ledger = AccountLedger()
    updated, charged = ledger.charge_submission(account)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from verifivue.data_management.schemas import Account, AccountStatus, PackageDef, as_utc
from verifivue.lifecycle.errors import AccountSuspendedError, InsufficientCreditsError


class Eligibility(str, Enum):
    ELIGIBLE = "eligible"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    SUSPENDED = "suspended"


def _one_year_after(moment: datetime) -> datetime:
    """Same calendar instant one year later; Feb 29 rolls back to Feb 28."""
    try:
        return moment.replace(year=moment.year + 1)
    except ValueError:
        return moment.replace(year=moment.year + 1, day=28)


class AccountLedger:
    """Credit and unlimited-grant accounting for accounts."""

    def is_exempt(self, account: Account, now: Optional[datetime] = None) -> bool:
        """True if submissions by this account consume no credit."""
        return account.is_staff or account.has_active_grant(now)

    def check_eligibility(
        self,
        account: Account,
        now: Optional[datetime] = None,
    ) -> Eligibility:
        """Decide whether ``account`` may submit a request at ``now``.

        Args:
            account: Account to check.
            now: Instant to evaluate grants at (defaults to current UTC time).

        Returns:
            ELIGIBLE, INSUFFICIENT_CREDITS or SUSPENDED.
        """
        if account.is_suspended:
            return Eligibility.SUSPENDED
        if self.is_exempt(account, now):
            return Eligibility.ELIGIBLE
        if account.credits <= 0:
            return Eligibility.INSUFFICIENT_CREDITS
        return Eligibility.ELIGIBLE

    def ensure_eligible(self, account: Account, now: Optional[datetime] = None) -> None:
        """Raise the matching ledger error unless ``account`` is eligible."""
        eligibility = self.check_eligibility(account, now)
        if eligibility == Eligibility.SUSPENDED:
            raise AccountSuspendedError(account.id)
        if eligibility == Eligibility.INSUFFICIENT_CREDITS:
            raise InsufficientCreditsError(account.id, account.credits)

    def debit_one(self, account: Account, now: Optional[datetime] = None) -> Account:
        """Decrement the credit balance by one.

        Rejected without mutation if the account is ineligible or the
        balance is already zero.

        Raises:
            AccountSuspendedError: Account is suspended.
            InsufficientCreditsError: Balance would go negative.
        """
        self.ensure_eligible(account, now)
        if account.credits <= 0:
            raise InsufficientCreditsError(account.id, account.credits)
        return account.model_copy(update={"credits": account.credits - 1})

    def charge_submission(
        self,
        account: Account,
        now: Optional[datetime] = None,
    ) -> tuple[Account, bool]:
        """Apply the credit cost of one submission.

        Args:
            account: Submitting account.
            now: Instant to evaluate grants at.

        Returns:
            (updated account, True if a credit was debited). Exempt accounts
            come back unchanged with False.

        Raises:
            AccountSuspendedError, InsufficientCreditsError
        """
        self.ensure_eligible(account, now)
        if self.is_exempt(account, now):
            return account.model_copy(), False
        return self.debit_one(account, now), True

    def grant(
        self,
        account: Account,
        package: PackageDef,
        now: Optional[datetime] = None,
    ) -> Account:
        """Apply a purchased package to an account.

        Unlimited packages set a one-year grant. Credit packages add to the
        balance and clear any previous unlimited-grant expiry. Either way
        the package id is recorded as the subscription plan.
        """
        now = as_utc(now) if now else datetime.now(timezone.utc)
        if package.is_unlimited:
            return account.model_copy(
                update={
                    "subscription_plan": package.id,
                    "subscription_expiry": _one_year_after(now),
                }
            )
        return account.model_copy(
            update={
                "credits": account.credits + package.credits,
                "subscription_plan": package.id,
                "subscription_expiry": None,
            }
        )

    def set_status(self, account: Account, status: AccountStatus) -> Account:
        """Suspend or reactivate an account."""
        return account.model_copy(update={"status": status})
