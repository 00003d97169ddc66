"""Per-recipient notification storage.

Notifications are append-only. The only later changes are the read flag and
a bulk clear of everything addressed to one recipient.

Usage:
    from verifivue.data_management.notification_store import NotificationStore

    store = NotificationStore()
    await store.append(notifications)
    inbox = await store.list_for("client-1")
"""

import asyncio
import json
from pathlib import Path
from typing import Iterable, Optional

import structlog

from verifivue.data_management.repository import NotificationRepository
from verifivue.data_management.schemas import Notification


class NotificationStore(NotificationRepository):
    """Storage for notifications, indexed by recipient.

    Data structure:
    {
        user_id: [Notification, ...],   # oldest first
        ...
    }
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        self._inbox: dict[str, list[Notification]] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="NotificationStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def append(self, notifications: Iterable[Notification]) -> int:
        async with self._lock:
            added = 0
            for notification in notifications:
                self._inbox.setdefault(notification.user_id, []).append(notification)
                added += 1
            if added and self._persistence_path:
                self._save_to_file()
            return added

    async def list_for(self, user_id: str) -> list[Notification]:
        """Notifications addressed to ``user_id``, newest first."""
        async with self._lock:
            return list(reversed(self._inbox.get(user_id, [])))

    async def unread_count(self, user_id: str) -> int:
        async with self._lock:
            return sum(1 for n in self._inbox.get(user_id, []) if not n.read)

    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        """Mark one notification read.

        Returns:
            True if found, False if ``user_id`` has no such notification.
        """
        async with self._lock:
            inbox = self._inbox.get(user_id, [])
            for index, notification in enumerate(inbox):
                if notification.id == notification_id:
                    inbox[index] = notification.model_copy(update={"read": True})
                    if self._persistence_path:
                        self._save_to_file()
                    return True
            return False

    async def clear(self, user_id: str) -> int:
        """Remove every notification addressed to ``user_id``."""
        async with self._lock:
            removed = len(self._inbox.pop(user_id, []))
            if removed:
                self._logger.info("notifications_cleared", user_id=user_id, count=removed)
                if self._persistence_path:
                    self._save_to_file()
            return removed

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                uid: [n.model_dump(mode="json") for n in items]
                for uid, items in self._inbox.items()
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        with open(self._persistence_path, "r") as f:
            data = json.load(f)
        self._inbox = {
            uid: [Notification.model_validate(raw) for raw in items]
            for uid, items in data.items()
        }
