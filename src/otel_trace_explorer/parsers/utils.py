"""
Utility functions shared by the trace file parsers.
"""

from typing import Any, Optional, Union
from datetime import datetime, timedelta, timezone
import json
import logging
import math
import re

from ..models import SpanStatus

logger = logging.getLogger(__name__)

# Epoch values above these magnitudes are nanoseconds and milliseconds respectively
NANOSECOND_EPOCH_THRESHOLD = 1_000_000_000_000_000
MILLISECOND_EPOCH_THRESHOLD = 1_000_000_000_000

_DURATION_PATTERN = re.compile(r"^([\d.]+)ms$")
_FRACTION_PATTERN = re.compile(r"\.(\d+)")


def _normalize_fraction(value: str) -> str:
    """Pad or cut fractional seconds to the six digits datetime parses."""
    return _FRACTION_PATTERN.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are returned unchanged."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_timestamp(timestamp_str: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a timestamp string to a naive UTC datetime.

    Args:
        timestamp_str: ISO-8601 or 'YYYY-MM-DD HH:MM:SS[.f]' timestamp, or a datetime

    Returns:
        Parsed datetime object, or None if the value cannot be parsed
    """
    if isinstance(timestamp_str, datetime):
        return to_naive_utc(timestamp_str)
    if not isinstance(timestamp_str, str) or not timestamp_str.strip():
        return None

    value = _normalize_fraction(timestamp_str.strip())
    try:
        if value.endswith(('Z', 'z')):
            value = value[:-1] + '+00:00'
        return to_naive_utc(datetime.fromisoformat(value))
    except ValueError:
        pass

    for fmt in ('%Y-%m-%d %H:%M:%S.%f', '%Y-%m-%d %H:%M:%S', '%m/%d/%Y %H:%M:%S'):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    logger.debug(f"Failed to parse timestamp '{timestamp_str}'")
    return None


def epoch_to_datetime(value: Union[int, float]) -> Optional[datetime]:
    """
    Convert a numeric Unix epoch to a naive UTC datetime.

    The unit is inferred from magnitude: nanoseconds, milliseconds or seconds.
    """
    if value > NANOSECOND_EPOCH_THRESHOLD:
        seconds = value / 1_000_000_000
    elif value > MILLISECOND_EPOCH_THRESHOLD:
        seconds = value / 1_000
    else:
        seconds = value

    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError) as e:
        logger.debug(f"Epoch value {value} is out of range: {e}")
        return None


def parse_time_of_day(value: str) -> Optional[timedelta]:
    """Parse 'HH:MM:SS[.ffffff]' into an offset from midnight."""
    try:
        parsed = datetime.strptime(_normalize_fraction(value.strip()), '%H:%M:%S.%f')
    except ValueError:
        try:
            parsed = datetime.strptime(value.strip(), '%H:%M:%S')
        except ValueError:
            return None
    return timedelta(
        hours=parsed.hour,
        minutes=parsed.minute,
        seconds=parsed.second,
        microseconds=parsed.microsecond,
    )


def parse_duration_ms(value: str) -> timedelta:
    """
    Parse a '<number>ms' duration string.

    Args:
        value: Duration such as '177.2474ms'

    Returns:
        The duration, or zero if the value is not in that form
    """
    match = _DURATION_PATTERN.match(value.strip())
    if not match:
        return timedelta(0)
    try:
        return timedelta(milliseconds=float(match.group(1)))
    except (ValueError, OverflowError):
        return timedelta(0)


def nanoseconds_to_timedelta(value: Union[int, float]) -> timedelta:
    """Convert a nanosecond count to a timedelta; negative, non-finite or out-of-range counts are zero."""
    try:
        microseconds = value / 1_000
        if not math.isfinite(microseconds) or microseconds <= 0:
            return timedelta(0)
        return timedelta(microseconds=microseconds)
    except OverflowError:
        return timedelta(0)


def parse_status(value: Optional[str]) -> SpanStatus:
    """Map 'ok' / 'error' (any case) to a SpanStatus; anything else is Unset."""
    normalized = (value or "").strip().lower()
    if normalized == "ok":
        return SpanStatus.OK
    if normalized == "error":
        return SpanStatus.ERROR
    return SpanStatus.UNSET


def stringify_value(value: Any) -> str:
    """Render a JSON value as text: strings as-is, everything else as compact JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)
