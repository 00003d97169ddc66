"""Storage interfaces used by the lifecycle service.

The in-memory JSON-backed stores in this package implement these. Another
backend only has to provide the same coroutines.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional

from verifivue.data_management.schemas import Account, Notification, VerificationRequest


class RequestRepository(ABC):
    """Verification request storage."""

    @abstractmethod
    async def next_request_id(self, now: Optional[datetime] = None) -> str:
        """Allocate a fresh, never reused request id."""

    @abstractmethod
    async def create(self, request: VerificationRequest) -> VerificationRequest:
        pass

    @abstractmethod
    async def get(self, request_id: str) -> Optional[VerificationRequest]:
        pass

    @abstractmethod
    async def update(self, request: VerificationRequest) -> VerificationRequest:
        pass

    @abstractmethod
    async def list_by_owner(self, client_id: str) -> list[VerificationRequest]:
        pass

    @abstractmethod
    async def list_all(self) -> list[VerificationRequest]:
        pass


class AccountRepository(ABC):
    """Account storage."""

    @abstractmethod
    async def get(self, account_id: str) -> Optional[Account]:
        pass

    @abstractmethod
    async def put(self, account: Account) -> Account:
        """Insert or replace an account."""

    @abstractmethod
    async def list_all(self) -> list[Account]:
        pass

    @abstractmethod
    async def list_staff(self) -> list[Account]:
        pass


class NotificationRepository(ABC):
    """Per-recipient notification storage."""

    @abstractmethod
    async def append(self, notifications: Iterable[Notification]) -> int:
        """Store notifications, returning how many were added."""

    @abstractmethod
    async def list_for(self, user_id: str) -> list[Notification]:
        pass

    @abstractmethod
    async def unread_count(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        pass

    @abstractmethod
    async def clear(self, user_id: str) -> int:
        pass
