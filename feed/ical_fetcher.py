"""Fetcher for public iCalendar feeds."""
import logging
from typing import Optional
from urllib.parse import quote

import requests

from processor.errors import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_FEED_HOST = "https://calendar.google.com/calendar/ical"


def build_feed_url(calendar_id: str, feed_host: str = DEFAULT_FEED_HOST) -> str:
    """
    Build the public feed URL for a calendar.

    Args:
        calendar_id: Calendar identifier (usually an e-mail address)
        feed_host: Base URL of the feed service

    Returns:
        URL of the form ``<feed_host>/<calendar_id>/public/basic.ics``
    """
    return f"{feed_host.rstrip('/')}/{quote(calendar_id, safe='@')}/public/basic.ics"


class ICalFeedFetcher:
    """Retrieves raw iCalendar text over HTTPS."""

    USER_AGENT = "calendar-feed-sync/1.0"

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize the feed fetcher.

        Args:
            timeout: HTTP request timeout in seconds (default: no timeout)
        """
        self.timeout = timeout

    def fetch(self, url: str) -> str:
        """
        Fetch the complete feed body in a single attempt.

        Args:
            url: Feed URL

        Returns:
            Feed body as text

        Raises:
            NetworkError: On connection, TLS, DNS or non-2xx failures
        """
        logger.info("Fetching calendar feed")
        try:
            response = requests.get(
                url,
                timeout=self.timeout,
                headers={
                    'User-Agent': self.USER_AGENT,
                    'Accept': 'text/calendar'
                }
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Calendar feed request failed: {e}")
            raise NetworkError(f"Failed to fetch calendar feed: {e}", cause=e) from e

        response.encoding = 'utf-8'
        text = response.text
        logger.info(f"Fetched calendar feed ({len(text)} characters)")
        return text
