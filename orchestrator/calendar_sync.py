"""Orchestration of a full calendar feed sync."""
import logging
import threading
from datetime import date
from typing import Callable, Optional

from feed.ical_fetcher import DEFAULT_FEED_HOST, ICalFeedFetcher, build_feed_url
from processor.errors import NetworkError, PersistenceError, SyncError
from processor.event_processor import EventProcessor
from storage.dynamodb_manager import DynamoDBManager

logger = logging.getLogger(__name__)


class CalendarSync:
    """
    Replaces the stored events with the current content of the calendar feed.

    Runs are serialized: a call made while another run is in progress waits
    for it to finish, then performs its own complete run. Completion marks
    are never read or written here.
    """

    def __init__(
        self,
        fetcher: ICalFeedFetcher,
        processor: EventProcessor,
        store: DynamoDBManager,
        calendar_id: Optional[str],
        api_key: Optional[str],
        feed_host: str = DEFAULT_FEED_HOST,
        clock: Callable[[], date] = date.today
    ):
        """
        Initialize the sync orchestrator.

        Args:
            fetcher: Feed fetcher
            processor: Parser and recurrence expander
            store: Event store
            calendar_id: Calendar identifier; sync is a no-op when empty
            api_key: Calendar API key; sync is a no-op when empty
            feed_host: Base URL of the iCalendar feed service
            clock: Returns the first day of the recurrence window
        """
        self.fetcher = fetcher
        self.processor = processor
        self.store = store
        self.calendar_id = calendar_id
        self.api_key = api_key
        self.feed_host = feed_host
        self.clock = clock
        self._lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return bool(self.calendar_id) and bool(self.api_key)

    def sync(self) -> int:
        """
        Fetch, parse and expand the feed, then replace the events table.

        Returns:
            Number of events inserted, or 0 when the calendar is not configured

        Raises:
            SyncError: If the feed cannot be fetched or the store fails
        """
        if not self.is_configured:
            logger.warning("CALENDAR_ID or GOOGLE_API_KEY not set, skipping calendar sync")
            return 0

        with self._lock:
            return self._run()

    def _run(self) -> int:
        url = build_feed_url(self.calendar_id, self.feed_host)

        try:
            text = self.fetcher.fetch(url)
        except NetworkError as e:
            raise SyncError(f"Calendar sync failed while fetching: {e}", cause=e) from e

        events = self.processor.process_feed(text, today=self.clock())
        logger.info(f"Found {len(events)} event occurrence(s)")

        try:
            deleted = self.store.delete_all_events()
            inserted = self.store.insert_events(events)
        except PersistenceError as e:
            raise SyncError(f"Calendar sync failed while storing events: {e}", cause=e) from e

        logger.info(f"Calendar sync complete: {deleted} removed, {inserted} inserted")
        return inserted
