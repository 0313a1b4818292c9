from datetime import datetime, timezone
from typing import Annotated
from pydantic import AfterValidator


def to_naive_utc(value: datetime) -> datetime:
    """Store datetimes as naive UTC, the way the database returns them"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UTCDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]


def reject_null(value):
    """For PATCH-style fields that may be omitted but never cleared"""
    if value is None:
        raise ValueError("may not be null")
    return value
