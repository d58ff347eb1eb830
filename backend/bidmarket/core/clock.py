"""Clock abstraction used for every deadline and validity comparison."""

from datetime import datetime, timezone
from typing import Callable

# A clock returns the current time as a naive UTC datetime, matching the
# TIMESTAMP columns used by the models.
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to naive UTC.

    Aware values are converted to UTC first; naive values are assumed to
    already be UTC.
    """
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


system_clock: Clock = utcnow
