"""Field types shared across schema modules."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator


def as_utc(value: datetime) -> datetime:
    """Return ``value`` with an offset, treating a naive datetime as UTC."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Records written by other tools may carry dates without an offset
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
