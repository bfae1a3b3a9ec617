"""Normalization of iCalendar DATE and DATE-TIME values."""
import logging
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

OFFSET_SUFFIX = '+01:00'
UTC_SHIFT = timedelta(hours=1)

ISO_FORMAT = '%Y-%m-%dT%H:%M:%S'


def normalize_ical_datetime(value: str) -> str:
    """
    Convert a compact iCalendar date or date-time to an offset-qualified timestamp.

    ``20251201T080000`` and ``20251201T070000Z`` both become
    ``2025-12-01T08:00:00+01:00``; UTC values are shifted one hour forward.
    ``20251222`` (all-day) becomes ``2025-12-22T00:00:00+01:00``.
    Values of any other length are returned unchanged.

    Args:
        value: Value part of a DTSTART/DTEND line

    Returns:
        Timestamp in ``YYYY-MM-DDTHH:MM:SS+01:00`` form, or the input as-is
    """
    if len(value) >= 15:
        return _normalize_date_time(value)

    if len(value) == 8:
        year, month, day = value[0:4], value[4:6], value[6:8]
        return f"{year}-{month}-{day}T00:00:00{OFFSET_SUFFIX}"

    return value


def _normalize_date_time(value: str) -> str:
    year, month, day = value[0:4], value[4:6], value[6:8]
    hour, minute, second = value[9:11], value[11:13], value[13:15]
    positional = f"{year}-{month}-{day}T{hour}:{minute}:{second}"

    if not value.endswith('Z'):
        return positional + OFFSET_SUFFIX

    try:
        parsed = datetime.strptime(positional, ISO_FORMAT)
    except ValueError:
        logger.debug(f"Cannot shift malformed UTC value {value!r}, keeping fields as-is")
        return positional + OFFSET_SUFFIX

    return (parsed + UTC_SHIFT).strftime(ISO_FORMAT) + OFFSET_SUFFIX
