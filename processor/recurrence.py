"""Expansion of recurring events into daily occurrences."""
import logging
import re
from datetime import date, timedelta
from typing import Dict, List, Optional, Set

from processor.datetime_normalizer import OFFSET_SUFFIX, normalize_ical_datetime
from processor.event_id import derive_event_id
from processor.models import NormalizedEvent, RawEventRecord

logger = logging.getLogger(__name__)

# Sunday-first weekday numbers
WEEKDAY_CODES = {
    'SU': 0,
    'MO': 1,
    'TU': 2,
    'WE': 3,
    'TH': 4,
    'FR': 5,
    'SA': 6,
}

TIME_OF_DAY = re.compile(r'^\d{4}-\d{2}-\d{2}T(\d{2}:\d{2}:\d{2})')


class RecurrenceExpander:
    """Expands FREQ=DAILY and FREQ=WEEKLY;BYDAY rules over a forward window."""

    DEFAULT_WINDOW_DAYS = 30

    def __init__(self, window_days: int = DEFAULT_WINDOW_DAYS):
        """
        Initialize the expander.

        Args:
            window_days: Days after today covered by the window; today is
                always included, so ``window_days + 1`` dates are checked
        """
        self.window_days = window_days

    def expand(
        self,
        record: RawEventRecord,
        today: Optional[date] = None
    ) -> List[NormalizedEvent]:
        """
        Produce one occurrence per matching day in ``[today, today + window]``.

        Unsupported rules, and templates whose start cannot be normalized,
        yield no occurrences.

        Args:
            record: Recurrent record with its raw RRULE value
            today: First day of the window (defaults to the local date)

        Returns:
            Occurrences in date order
        """
        rule = parse_rule(record.recurrence_rule or '')
        matcher = self._day_matcher(rule)
        if matcher is None:
            logger.debug(
                f"Unsupported recurrence rule for '{record.summary}': "
                f"{record.recurrence_rule!r}"
            )
            return []

        time_match = TIME_OF_DAY.match(normalize_ical_datetime(record.start or ''))
        if not time_match:
            logger.debug(
                f"Cannot read time of day for '{record.summary}': {record.start!r}"
            )
            return []
        time_of_day = time_match.group(1)

        first_day = today or date.today()
        occurrences = []

        for offset in range(self.window_days + 1):
            day = first_day + timedelta(days=offset)
            if not matcher(day):
                continue

            start = f"{day.isoformat()}T{time_of_day}{OFFSET_SUFFIX}"
            occurrences.append(
                NormalizedEvent(
                    summary=record.summary,
                    start=start,
                    location=record.location,
                    description=record.description,
                    is_recurrent=1,
                    uid=derive_event_id(record.summary, start)
                )
            )

        return occurrences

    def _day_matcher(self, rule: Dict[str, str]):
        frequency = rule.get('FREQ')

        if frequency == 'DAILY':
            return lambda day: True

        if frequency == 'WEEKLY' and rule.get('BYDAY'):
            weekdays = _weekday_set(rule['BYDAY'])
            return lambda day: sunday_first_weekday(day) in weekdays

        return None


def parse_rule(rule: str) -> Dict[str, str]:
    """Split ``FREQ=WEEKLY;BYDAY=MO,WE`` into ``{'FREQ': 'WEEKLY', 'BYDAY': 'MO,WE'}``."""
    parts = {}
    for part in rule.split(';'):
        if '=' not in part:
            continue
        key, value = part.split('=', 1)
        parts[key.strip().upper()] = value.strip().upper()
    return parts


def sunday_first_weekday(day: date) -> int:
    return day.isoweekday() % 7


def _weekday_set(byday: str) -> Set[int]:
    return {
        WEEKDAY_CODES[code.strip()]
        for code in byday.split(',')
        if code.strip() in WEEKDAY_CODES
    }
