"""
Timezone utility functions. Timestamps are stored as naive UTC.
"""
import math
from datetime import datetime, timezone

from . import messages
from .exceptions import ValidationError

SECONDS_PER_HOUR = 3600


def utc_now() -> datetime:
    """Current time as naive UTC"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value) -> datetime:
    """Parse an ISO string or datetime and normalise it to naive UTC"""
    if value is None or value == "":
        raise ValidationError(messages.TIME_RANGE_REQUIRED)
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(messages.INVALID_TIME_FORMAT)
    if not isinstance(value, datetime):
        raise ValidationError(messages.INVALID_TIME_FORMAT)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def validate_time_range(start, end):
    """Return (start, end) as naive UTC, requiring start < end"""
    start = to_naive_utc(start)
    end = to_naive_utc(end)
    if start >= end:
        raise ValidationError(messages.INVALID_TIME_RANGE)
    return start, end


def billable_hours(start: datetime, end: datetime) -> int:
    """Hours billed for a stay: partial hours count as a full hour"""
    seconds = (end - start).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / SECONDS_PER_HOUR)


def whole_hours(start: datetime, end: datetime) -> int:
    """Completed hours between two instants, truncated"""
    seconds = (end - start).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // SECONDS_PER_HOUR)
