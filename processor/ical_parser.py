"""Line-oriented parser for iCalendar feeds."""
import logging
import re
from typing import List, Optional

from processor.models import RawEventRecord

logger = logging.getLogger(__name__)

LINE_SPLIT = re.compile(r'\r?\n')


class ICalParser:
    """Extracts VEVENT records from raw iCalendar text."""

    BEGIN_MARKER = 'BEGIN:VEVENT'
    END_MARKER = 'END:VEVENT'

    # iCalendar property name -> RawEventRecord attribute
    FIELDS = {
        'SUMMARY': 'summary',
        'DTSTART': 'start',
        'DTEND': 'end',
        'LOCATION': 'location',
        'DESCRIPTION': 'description',
        'UID': 'uid',
    }
    RECURRENCE_FIELD = 'RRULE'

    def parse(self, text: str) -> List[RawEventRecord]:
        """
        Parse feed text into raw event records.

        Records without both a summary and a start are dropped. A record
        still open at end of input is never emitted.

        Args:
            text: Complete iCalendar feed body

        Returns:
            Records in feed order
        """
        records = []
        current: Optional[RawEventRecord] = None
        nested_depth = 0

        for raw_line in LINE_SPLIT.split(text):
            line = raw_line.strip()

            if line == self.BEGIN_MARKER:
                current = RawEventRecord(summary='', start=None)
                nested_depth = 0
                continue

            if current is None:
                continue

            if line == self.END_MARKER:
                if self._is_complete(current):
                    records.append(current)
                else:
                    logger.debug(
                        f"Dropping event without summary or start: {current.summary!r}"
                    )
                current = None
                continue

            # Sub-components such as VALARM carry their own DESCRIPTION etc.
            if line.startswith('BEGIN:'):
                nested_depth += 1
                continue
            if line.startswith('END:'):
                nested_depth = max(nested_depth - 1, 0)
                continue
            if nested_depth:
                continue

            self._apply_field(current, line)

        logger.info(f"Parsed {len(records)} event records from feed")
        return records

    def _apply_field(self, record: RawEventRecord, line: str) -> None:
        """
        Store a property line on the record if it is a recognized field.

        The property name ends at the first ``;`` or ``:``; the value is
        everything after the first colon.
        """
        if ':' not in line:
            return

        head, value = line.split(':', 1)
        name = head.split(';', 1)[0].upper()

        if name == self.RECURRENCE_FIELD:
            if not record.is_recurrent:
                record.is_recurrent = True
                record.recurrence_rule = value
            return

        attribute = self.FIELDS.get(name)
        if attribute:
            setattr(record, attribute, value)

    @staticmethod
    def _is_complete(record: RawEventRecord) -> bool:
        return bool(record.summary) and bool(record.start)
