"""Data management package for VerifiVUE.

Provides storage adapters and schemas for:
- Verification requests (VerificationRequest) - lifecycle snapshots
- Accounts (Account) - credit balances and grants
- Notifications (Notification) - per-recipient event records

Storage adapters:
- RequestStore: Request persistence with owner index and id allocation
- AccountStore: Account persistence
- NotificationStore: Per-recipient notification persistence
"""

from verifivue.data_management.account_store import AccountStore
from verifivue.data_management.notification_store import NotificationStore
from verifivue.data_management.request_store import RequestStore

__all__ = [
    "AccountStore",
    "NotificationStore",
    "RequestStore",
]
