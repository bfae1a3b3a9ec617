"""Event processor turning feed records into persistable occurrences."""
import logging
from datetime import date
from typing import List, Optional

from processor.datetime_normalizer import normalize_ical_datetime
from processor.event_id import derive_event_id
from processor.ical_parser import ICalParser
from processor.models import NormalizedEvent, RawEventRecord
from processor.recurrence import RecurrenceExpander

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for parsing, normalizing and expanding calendar events."""

    def __init__(
        self,
        parser: Optional[ICalParser] = None,
        expander: Optional[RecurrenceExpander] = None
    ):
        """
        Initialize the processor.

        Args:
            parser: Feed parser (default: ICalParser)
            expander: Recurrence expander (default: 30-day window)
        """
        self.parser = parser or ICalParser()
        self.expander = expander or RecurrenceExpander()

    def process_feed(self, text: str, today: Optional[date] = None) -> List[NormalizedEvent]:
        """
        Parse a raw feed and expand it into event occurrences.

        Args:
            text: iCalendar feed body
            today: First day of the recurrence window (default: local date)

        Returns:
            List of NormalizedEvent objects in feed order
        """
        records = self.parser.parse(text)
        return self.process_records(records, today=today)

    def process_records(
        self,
        records: List[RawEventRecord],
        today: Optional[date] = None
    ) -> List[NormalizedEvent]:
        """
        Convert raw records into occurrences.

        Recurrent records are expanded over the window, every other record
        produces exactly one event.

        Args:
            records: Records produced by the parser
            today: First day of the recurrence window

        Returns:
            List of NormalizedEvent objects
        """
        events = []
        recurrent_count = 0

        for record in records:
            if record.is_recurrent:
                recurrent_count += 1
                events.extend(self.expander.expand(record, today=today))
            else:
                events.append(self._normalize_single_event(record))

        logger.info(
            f"Produced {len(events)} occurrences from {len(records)} records "
            f"({recurrent_count} recurring)"
        )
        return events

    def _normalize_single_event(self, record: RawEventRecord) -> NormalizedEvent:
        start = normalize_ical_datetime(record.start)
        return NormalizedEvent(
            summary=record.summary,
            start=start,
            location=record.location,
            description=record.description,
            is_recurrent=0,
            uid=derive_event_id(record.summary, start)
        )
