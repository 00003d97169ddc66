"""Tests for AccountLedger.

Tests cover:
- Eligibility rules and their precedence (suspension first)
- Debit validation (never negative, no mutation on rejection)
- Submission charge for exempt and paying accounts
- Package grants (credits vs unlimited, leap day expiry)
"""

from datetime import datetime, timedelta, timezone

import pytest

from verifivue.config.packages import DEFAULT_PACKAGES
from verifivue.data_management.schemas import Account, AccountStatus, PackageDef, Role
from verifivue.lifecycle.errors import AccountSuspendedError, InsufficientCreditsError
from verifivue.lifecycle.ledger import AccountLedger, Eligibility

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def ledger() -> AccountLedger:
    return AccountLedger()


@pytest.fixture
def client() -> Account:
    return Account(id="client-1", name="TechGlobal Admin", organization="TechGlobal Inc.", credits=1)


@pytest.fixture
def broke_client() -> Account:
    return Account(id="client-2", name="Acme HR", credits=0)


@pytest.fixture
def officer() -> Account:
    return Account(id="officer-1", name="Olivia Officer", role=Role.VERIFICATION_OFFICER)


# ── Eligibility ───────────────────────────────────────────────────────────


class TestEligibility:
    def test_client_with_credits_is_eligible(self, ledger, client):
        assert ledger.check_eligibility(client, NOW) == Eligibility.ELIGIBLE

    def test_client_without_credits_is_insufficient(self, ledger, broke_client):
        assert ledger.check_eligibility(broke_client, NOW) == Eligibility.INSUFFICIENT_CREDITS

    def test_staff_exempt_with_zero_credits(self, ledger, officer):
        assert officer.credits == 0
        assert ledger.check_eligibility(officer, NOW) == Eligibility.ELIGIBLE

    def test_admin_exempt(self, ledger):
        admin = Account(id="admin-1", name="Admin", role=Role.ADMIN)
        assert ledger.is_exempt(admin, NOW)

    def test_active_unlimited_grant_exempts(self, ledger, broke_client):
        granted = broke_client.model_copy(
            update={"subscription_expiry": NOW + timedelta(days=30)}
        )
        assert ledger.check_eligibility(granted, NOW) == Eligibility.ELIGIBLE

    def test_expired_grant_does_not_exempt(self, ledger, broke_client):
        expired = broke_client.model_copy(
            update={"subscription_expiry": NOW - timedelta(seconds=1)}
        )
        assert ledger.check_eligibility(expired, NOW) == Eligibility.INSUFFICIENT_CREDITS

    def test_grant_expiring_exactly_now_is_expired(self, ledger, broke_client):
        edge = broke_client.model_copy(update={"subscription_expiry": NOW})
        assert not ledger.is_exempt(edge, NOW)

    def test_suspension_overrides_credits(self, ledger, client):
        suspended = client.model_copy(update={"status": AccountStatus.SUSPENDED})
        assert ledger.check_eligibility(suspended, NOW) == Eligibility.SUSPENDED

    def test_suspension_overrides_staff_role(self, ledger, officer):
        suspended = officer.model_copy(update={"status": AccountStatus.SUSPENDED})
        assert ledger.check_eligibility(suspended, NOW) == Eligibility.SUSPENDED

    def test_ensure_eligible_raises_matching_error(self, ledger, broke_client, client):
        with pytest.raises(InsufficientCreditsError):
            ledger.ensure_eligible(broke_client, NOW)
        suspended = client.model_copy(update={"status": AccountStatus.SUSPENDED})
        with pytest.raises(AccountSuspendedError):
            ledger.ensure_eligible(suspended, NOW)

    def test_expiry_without_offset_read_as_utc(self, ledger):
        account = Account(id="c", name="C", credits=0, subscription_expiry=datetime(2099, 1, 1))
        assert account.subscription_expiry.tzinfo == timezone.utc
        assert ledger.check_eligibility(account, NOW) == Eligibility.ELIGIBLE
        assert ledger.check_eligibility(account) == Eligibility.ELIGIBLE

    def test_now_without_offset_read_as_utc(self, ledger):
        granted = Account(id="c", name="C", subscription_expiry=NOW + timedelta(hours=1))
        assert ledger.check_eligibility(granted, datetime(2024, 5, 20, 12, 30)) == Eligibility.ELIGIBLE
        assert ledger.check_eligibility(granted, datetime(2024, 5, 20, 14, 0)) == Eligibility.INSUFFICIENT_CREDITS


# ── Debit ─────────────────────────────────────────────────────────────────


class TestDebit:
    def test_debit_decrements(self, ledger, client):
        updated = ledger.debit_one(client, NOW)
        assert updated.credits == 0
        assert client.credits == 1

    def test_debit_at_zero_rejected(self, ledger, broke_client):
        with pytest.raises(InsufficientCreditsError) as exc_info:
            ledger.debit_one(broke_client, NOW)
        assert exc_info.value.account_id == "client-2"
        assert broke_client.credits == 0

    def test_debit_rejected_for_suspended(self, ledger, client):
        suspended = client.model_copy(update={"status": AccountStatus.SUSPENDED})
        with pytest.raises(AccountSuspendedError):
            ledger.debit_one(suspended, NOW)
        assert suspended.credits == 1

    def test_credits_never_negative_over_repeated_debits(self, ledger):
        account = Account(id="c", name="C", credits=3)
        for _ in range(3):
            account = ledger.debit_one(account, NOW)
        assert account.credits == 0
        with pytest.raises(InsufficientCreditsError):
            ledger.debit_one(account, NOW)


# ── Submission charge ─────────────────────────────────────────────────────


class TestChargeSubmission:
    def test_paying_client_charged(self, ledger, client):
        updated, charged = ledger.charge_submission(client, NOW)
        assert charged is True
        assert updated.credits == 0

    def test_staff_not_charged(self, ledger, officer):
        updated, charged = ledger.charge_submission(officer, NOW)
        assert charged is False
        assert updated == officer

    def test_unlimited_holder_keeps_credits(self, ledger):
        account = Account(
            id="ent-1",
            name="Enterprise",
            credits=4,
            subscription_expiry=NOW + timedelta(days=1),
        )
        updated, charged = ledger.charge_submission(account, NOW)
        assert charged is False
        assert updated.credits == 4

    def test_broke_client_rejected(self, ledger, broke_client):
        with pytest.raises(InsufficientCreditsError):
            ledger.charge_submission(broke_client, NOW)


# ── Grants ────────────────────────────────────────────────────────────────


class TestGrant:
    def test_credit_package_adds_balance(self, ledger, client):
        updated = ledger.grant(client, DEFAULT_PACKAGES["CORPORATE_PLUS"], NOW)
        assert updated.credits == 6
        assert updated.subscription_plan == "CORPORATE_PLUS"
        assert updated.subscription_expiry is None

    def test_credit_package_clears_previous_unlimited_expiry(self, ledger, client):
        granted = client.model_copy(
            update={
                "subscription_plan": "ENTERPRISE",
                "subscription_expiry": NOW + timedelta(days=100),
            }
        )
        updated = ledger.grant(granted, DEFAULT_PACKAGES["STANDARD"], NOW)
        assert updated.subscription_expiry is None
        assert updated.subscription_plan == "STANDARD"
        assert updated.credits == 2

    def test_unlimited_package_sets_one_year_expiry(self, ledger, broke_client):
        updated = ledger.grant(broke_client, DEFAULT_PACKAGES["ENTERPRISE"], NOW)
        assert updated.subscription_plan == "ENTERPRISE"
        assert updated.subscription_expiry == datetime(2025, 5, 20, 12, 0, tzinfo=timezone.utc)
        assert updated.credits == 0
        assert ledger.check_eligibility(updated, NOW) == Eligibility.ELIGIBLE

    def test_unlimited_on_leap_day_rolls_to_feb_28(self, ledger, broke_client):
        leap = datetime(2024, 2, 29, 9, 30, tzinfo=timezone.utc)
        updated = ledger.grant(broke_client, DEFAULT_PACKAGES["ENTERPRISE"], leap)
        assert updated.subscription_expiry == datetime(2025, 2, 28, 9, 30, tzinfo=timezone.utc)

    def test_custom_package(self, ledger, broke_client):
        package = PackageDef(id="PROMO", name="Promo", credits=3)
        updated = ledger.grant(broke_client, package, NOW)
        assert updated.credits == 3

    def test_set_status(self, ledger, client):
        suspended = ledger.set_status(client, AccountStatus.SUSPENDED)
        assert suspended.is_suspended
        assert ledger.set_status(suspended, AccountStatus.ACTIVE).status == AccountStatus.ACTIVE

    def test_unlimited_grant_with_naive_now_has_utc_expiry(self, ledger, broke_client):
        updated = ledger.grant(broke_client, DEFAULT_PACKAGES["ENTERPRISE"], datetime(2024, 5, 20, 12, 0))
        assert updated.subscription_expiry == datetime(2025, 5, 20, 12, 0, tzinfo=timezone.utc)
        assert ledger.check_eligibility(updated, NOW) == Eligibility.ELIGIBLE
