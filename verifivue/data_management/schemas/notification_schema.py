"""Notification schema.

A Notification is created exactly once per qualifying lifecycle event and is
never mutated afterwards except for its read flag. Notifications are removed
only by a bulk clear for their recipient.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from verifivue.data_management.schemas.common import UtcDatetime


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """One addressed event record."""

    id: str = Field(
        default_factory=lambda: f"n-{uuid.uuid4().hex[:12]}",
        description="Unique notification identifier",
    )
    user_id: str = Field(..., description="Recipient account id")
    title: str = Field(..., description="Short headline")
    message: str = Field(..., description="Body text")
    type: NotificationType = Field(default=NotificationType.INFO)
    timestamp: UtcDatetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the notification was created",
    )
    read: bool = Field(default=False)
    related_request_id: Optional[str] = Field(
        default=None,
        description="Request this notification refers to, if any",
    )
