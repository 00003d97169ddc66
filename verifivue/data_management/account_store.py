"""Account storage.

Same pattern as RequestStore: dict keyed by account id, one asyncio lock,
optional JSON persistence.

Usage:
    from verifivue.data_management.account_store import AccountStore

    store = AccountStore()
    await store.put(Account(id="client-1", name="TechGlobal Admin", credits=5))
    staff = await store.list_staff()
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import structlog

from verifivue.data_management.repository import AccountRepository
from verifivue.data_management.schemas import Account


class AccountStore(AccountRepository):
    """Storage for client and staff accounts."""

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize AccountStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._accounts: dict[str, Account] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="AccountStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def get(self, account_id: str) -> Optional[Account]:
        async with self._lock:
            return self._accounts.get(account_id)

    async def put(self, account: Account) -> Account:
        async with self._lock:
            self._accounts[account.id] = account
            self._logger.debug(
                "account_saved",
                account_id=account.id,
                credits=account.credits,
                status=account.status.value,
            )
            if self._persistence_path:
                self._save_to_file()
            return account

    async def list_all(self) -> list[Account]:
        async with self._lock:
            return list(self._accounts.values())

    async def list_staff(self) -> list[Account]:
        """Accounts holding a staff role, suspended ones included."""
        async with self._lock:
            return [a for a in self._accounts.values() if a.is_staff]

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                aid: account.model_dump(mode="json")
                for aid, account in self._accounts.items()
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        with open(self._persistence_path, "r") as f:
            data = json.load(f)
        self._accounts = {
            aid: Account.model_validate(raw) for aid, raw in data.items()
        }
        self._logger.info(
            "accounts_loaded",
            path=str(self._persistence_path),
            accounts=len(self._accounts),
        )
