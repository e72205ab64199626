"""Date windows over conversation timestamps.

All boundaries are built from the local calendar day of the running
process and compared as absolute instants.
"""

import math
from datetime import datetime, timedelta
from typing import Iterable

from helpscout_metrics.models import Conversation


def parse_timestamp(ts: str | None) -> datetime | None:
    """Parse an ISO timestamp into an aware datetime.

    Values without an offset are read as local time. Unset or
    unparseable values give None.
    """
    if not ts:
        return None
    try:
        dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        return None
    return dt.astimezone()


def _local(dt: datetime) -> datetime:
    """Naive local wall-clock time for ``dt``."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def shift_days(dt: datetime, days: int) -> datetime:
    """Move ``dt`` by whole calendar days, keeping the local wall-clock time."""
    return (_local(dt) + timedelta(days=days)).astimezone()


def start_of_day(dt: datetime) -> datetime:
    """Local midnight of the day containing ``dt``."""
    return _local(dt).replace(hour=0, minute=0, second=0, microsecond=0).astimezone()


def end_of_day(dt: datetime) -> datetime:
    """23:59:59 local on the day containing ``dt``."""
    return _local(dt).replace(hour=23, minute=59, second=59, microsecond=0).astimezone()


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return math.floor(value + 0.5)


def _as_instant(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.astimezone()


def _between(
    convos: Iterable[Conversation],
    field: str,
    start: datetime,
    end: datetime,
) -> list[Conversation]:
    start = _as_instant(start)
    end = _as_instant(end)
    matched = []
    for convo in convos:
        ts = parse_timestamp(getattr(convo, field))
        if ts is not None and start <= ts <= end:
            matched.append(convo)
    return matched


def created_between(convos: Iterable[Conversation], start: datetime, end: datetime) -> list[Conversation]:
    """Conversations created within ``[start, end]``."""
    return _between(convos, "created_at", start, end)


def user_modified_between(convos: Iterable[Conversation], start: datetime, end: datetime) -> list[Conversation]:
    """Conversations last touched by a user within ``[start, end]``."""
    return _between(convos, "user_modified_at", start, end)


def closed_between(convos: Iterable[Conversation], start: datetime, end: datetime) -> list[Conversation]:
    """Conversations closed within ``[start, end]``. Open ones never match."""
    return _between(convos, "closed_at", start, end)
