"""AWS Lambda handler for the calendar feed sync."""
import json
import logging
import os
import time
from functools import lru_cache
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from feed.ical_fetcher import DEFAULT_FEED_HOST, ICalFeedFetcher
from orchestrator.calendar_sync import CalendarSync
from processor.errors import SyncError
from processor.event_processor import EventProcessor
from processor.recurrence import RecurrenceExpander
from storage.dynamodb_manager import DynamoDBManager


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }
        
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        
        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.
    
    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    
    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)
    
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _optional_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value else None


def build_calendar_sync() -> CalendarSync:
    """
    Wire the sync components from environment variables.
    
    Returns:
        CalendarSync ready to run
    """
    window_days = int(os.environ.get('RECURRENCE_WINDOW_DAYS', '30'))
    
    fetcher = ICalFeedFetcher(
        timeout=_optional_float(os.environ.get('FEED_TIMEOUT_SECONDS'))
    )
    processor = EventProcessor(expander=RecurrenceExpander(window_days=window_days))
    store = DynamoDBManager(
        events_table_name=os.environ.get('EVENTS_TABLE_NAME', 'calendar-events'),
        completed_table_name=os.environ.get(
            'COMPLETED_TABLE_NAME', 'calendar-completed-events'
        )
    )
    
    return CalendarSync(
        fetcher=fetcher,
        processor=processor,
        store=store,
        calendar_id=os.environ.get('CALENDAR_ID'),
        api_key=os.environ.get('GOOGLE_API_KEY'),
        feed_host=os.environ.get('FEED_HOST', DEFAULT_FEED_HOST)
    )


@lru_cache(maxsize=None)
def get_calendar_sync() -> CalendarSync:
    """
    Return the CalendarSync shared by every invocation in this container.
    
    Reusing one instance keeps its lock across the startup, scheduled and
    manual triggers, so their runs never interleave.
    """
    return build_calendar_sync()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Run one calendar sync.
    
    The same handler serves the scheduled trigger (EventBridge) and manual
    "force sync" invocations; an optional ``source`` key in the payload is
    only used for logging.
    
    Args:
        event: Invocation payload
        context: Lambda context object
        
    Returns:
        Response dict with statusCode and sync summary
    """
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    logger = logging.getLogger(__name__)
    
    source = (event or {}).get('source', 'schedule')
    start_time = time.time()
    logger.info(f"Calendar sync started (source: {source})")
    
    try:
        try:
            count = get_calendar_sync().sync()
        except SyncError as e:
            duration = time.time() - start_time
            logger.error(
                f"Calendar sync failed (source: {source}): {str(e)}",
                extra={'error_type': type(e.cause).__name__},
                exc_info=True
            )
            return {
                'statusCode': 500,
                'body': json.dumps({
                    'message': 'Calendar sync failed',
                    'error': str(e),
                    'error_type': type(e.cause).__name__,
                    'note': 'Events will be refreshed on the next scheduled sync',
                    'duration_seconds': round(duration, 2)
                })
            }
        
        duration = time.time() - start_time
        logger.info(
            f"{count} event(s) synchronized (source: {source}) "
            f"in {round(duration, 2)}s"
        )
        
        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Sync completed successfully',
                'events_synced': count,
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'duration_seconds': round(duration, 2)
            })
        }
        
    except Exception as e:
        duration = time.time() - start_time
        
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        
        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Sync failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }
