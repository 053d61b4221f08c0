"""
Range Resolver - turns a symbolic time range into concrete day boundaries.

Resolved intervals always start at 00:00:00.000 and end at 23:59:59.999
(local, naive datetimes like the rest of the storage layer).
"""

import datetime
import logging
from typing import Optional

from tasktime.domain.analytics import DateRangeInfo, TimeRange, TIME_RANGE_ALIASES
from tasktime.domain.errors import InvalidDateRangeError

logger = logging.getLogger(__name__)

END_OF_DAY = datetime.time(23, 59, 59, 999000)
DEFAULT_CUSTOM_LOOKBACK_DAYS = 7

_LOOKBACK_DAYS = {
    TimeRange.LAST_7_DAYS: 7,
    TimeRange.LAST_30_DAYS: 30,
}


def start_of_day(dt: datetime.datetime) -> datetime.datetime:
    return datetime.datetime.combine(dt.date(), datetime.time.min)


def end_of_day(dt: datetime.datetime) -> datetime.datetime:
    return datetime.datetime.combine(dt.date(), END_OF_DAY)


def parse_time_range(token: Optional[str]) -> TimeRange:
    """Map a token to a TimeRange. Unknown or missing tokens mean TODAY."""
    if token is None:
        return TimeRange.TODAY
    if isinstance(token, TimeRange):
        return token
    normalized = str(token).strip().lower()
    if normalized in TIME_RANGE_ALIASES:
        return TIME_RANGE_ALIASES[normalized]
    try:
        return TimeRange(normalized)
    except ValueError:
        logger.warning(f"Unknown time range '{token}', falling back to today")
        return TimeRange.TODAY


def parse_date_bound(value: str, field: str) -> datetime.datetime:
    """
    Parse an ISO date or date-time string into a naive local datetime.

    Raises:
        InvalidDateRangeError: if the string is not a valid ISO date
    """
    try:
        parsed = datetime.datetime.fromisoformat(value.strip())
    except (ValueError, AttributeError) as e:
        raise InvalidDateRangeError(f"Invalid {field}: {value!r}") from e

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def resolve_range(time_range: Optional[str] = None,
                  start_date: Optional[str] = None,
                  end_date: Optional[str] = None,
                  now: Optional[datetime.datetime] = None) -> DateRangeInfo:
    """
    Resolve a time range token into a [start, end] pair.

    Args:
        time_range: "today", "last-7-days", "last-30-days" or "custom"
        start_date: ISO date, only used for "custom"
        end_date: ISO date, only used for "custom"
        now: Reference instant, defaults to datetime.now()

    Returns:
        DateRangeInfo with start at 00:00:00.000 and end at 23:59:59.999

    Raises:
        InvalidDateRangeError: if a custom bound does not parse or start > end
    """
    if now is None:
        now = datetime.datetime.now()

    token = parse_time_range(time_range)

    if token in _LOOKBACK_DAYS:
        start = now - datetime.timedelta(days=_LOOKBACK_DAYS[token])
        end = now
    elif token is TimeRange.CUSTOM:
        if start_date:
            start = parse_date_bound(start_date, "startDate")
        else:
            start = now - datetime.timedelta(days=DEFAULT_CUSTOM_LOOKBACK_DAYS)
        end = parse_date_bound(end_date, "endDate") if end_date else now
    else:
        start = end = now

    resolved = DateRangeInfo(start=start_of_day(start), end=end_of_day(end))
    if resolved.start > resolved.end:
        raise InvalidDateRangeError(
            f"Start date {resolved.start.date()} is after end date {resolved.end.date()}"
        )
    return resolved
