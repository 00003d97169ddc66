"""Account and purchasable package schemas.

An Account is either a client organization that consumes verification
credits, or a staff member (verification officer, admin) who works the
review queue and is exempt from consumption.

Credit accounting rules:
- credits is a non-negative integer balance
- an unlimited grant (subscription_expiry in the future) exempts the
  account from consumption until it expires
- a suspended account cannot submit or be routed new work
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, PositiveInt

from verifivue.data_management.schemas.common import UtcDatetime, as_utc

UNLIMITED = "UNLIMITED"


class Role(str, Enum):
    """Account role.

    CLIENT: Organization submitting verification requests, pays per request.
    VERIFICATION_OFFICER: Staff member working analysis and outreach.
    ADMIN: Staff member with administrative access.
    """

    CLIENT = "CLIENT"
    VERIFICATION_OFFICER = "VERIFICATION_OFFICER"
    ADMIN = "ADMIN"


STAFF_ROLES = frozenset({Role.VERIFICATION_OFFICER, Role.ADMIN})


class AccountStatus(str, Enum):
    """Whether an account may submit or be routed new work."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class Account(BaseModel):
    """A requesting party or staff member."""

    id: str = Field(..., description="Unique account identifier")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(default=None, description="Contact email")
    organization: str = Field(
        default="",
        description="Organization name, shown as the request owner's display name",
    )
    role: Role = Field(default=Role.CLIENT, description="Account role")
    credits: int = Field(
        default=0,
        ge=0,
        description="Verification credit balance (consumed by CLIENT accounts only)",
    )
    subscription_plan: Optional[str] = Field(
        default=None,
        description="Id of the last purchased package",
    )
    subscription_expiry: Optional[UtcDatetime] = Field(
        default=None,
        description="Expiry of an unlimited grant; None when no unlimited grant is held",
    )
    status: AccountStatus = Field(
        default=AccountStatus.ACTIVE,
        description="active or suspended",
    )

    @property
    def is_staff(self) -> bool:
        """True for roles that are exempt from credit consumption."""
        return self.role in STAFF_ROLES

    @property
    def is_suspended(self) -> bool:
        return self.status == AccountStatus.SUSPENDED

    @property
    def display_name(self) -> str:
        """Name recorded as request owner: organization if set, else the account name."""
        return self.organization or self.name

    def has_active_grant(self, now: Optional[datetime] = None) -> bool:
        """Check whether an unlimited grant is in force at ``now``.

        Args:
            now: Instant to evaluate at (defaults to current UTC time)

        Returns:
            True if subscription_expiry is set and strictly in the future
        """
        if self.subscription_expiry is None:
            return False
        now = as_utc(now) if now else datetime.now(timezone.utc)
        return self.subscription_expiry > now

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "client-1",
                    "name": "TechGlobal Admin",
                    "email": "client@techglobal.com",
                    "organization": "TechGlobal Inc.",
                    "role": "CLIENT",
                    "credits": 15,
                    "subscription_plan": "CORPORATE_PRO",
                    "status": "active",
                }
            ]
        }
    }


class PackageDef(BaseModel):
    """A purchasable package: either a fixed number of credits or an unlimited grant."""

    id: str = Field(..., description="Package identifier, recorded as subscription_plan")
    name: str = Field(..., description="Display name")
    price: float = Field(default=0.0, ge=0.0, description="Price in the configured currency")
    credits: Union[PositiveInt, Literal["UNLIMITED"]] = Field(
        ...,
        description="Credits added on purchase, or UNLIMITED for a one-year unlimited grant",
    )
    description: str = Field(default="", description="Marketing description")

    @property
    def is_unlimited(self) -> bool:
        return self.credits == UNLIMITED
