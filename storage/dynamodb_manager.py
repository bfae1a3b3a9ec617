"""DynamoDB manager for event and completed-mark storage."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from processor.errors import PersistenceError
from processor.models import CompletedMark, NormalizedEvent, TodaysEvents

logger = logging.getLogger(__name__)


class DynamoDBManager:
    """
    Manager for the events table and the completed-events table.

    The events table (hash key ``uid``) is rewritten on every sync. The
    completed-events table (hash key ``event_id``, range key ``event_date``)
    is only changed through ``set_completed`` and ``clear_completed``.
    """

    def __init__(
        self,
        events_table_name: str,
        completed_table_name: str,
        region_name: Optional[str] = None
    ):
        """
        Initialize DynamoDB resource and table references.

        Args:
            events_table_name: Name of the events table
            completed_table_name: Name of the completed-events table
            region_name: AWS region (default: from the environment)
        """
        self.events_table_name = events_table_name
        self.completed_table_name = completed_table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.events_table = self.dynamodb.Table(events_table_name)
        self.completed_table = self.dynamodb.Table(completed_table_name)
        logger.info(
            f"Initialized DynamoDBManager for tables: {events_table_name}, "
            f"{completed_table_name}"
        )

    def delete_all_events(self) -> int:
        """
        Delete every item from the events table.

        Returns:
            Count of deleted events

        Raises:
            PersistenceError: If the scan or a delete batch fails
        """
        try:
            items = self._scan(
                self.events_table,
                ProjectionExpression='#uid',
                ExpressionAttributeNames={'#uid': 'uid'}
            )
            uids = [item['uid'] for item in items]

            with self.events_table.batch_writer() as writer:
                for uid in uids:
                    writer.delete_item(Key={'uid': uid})

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting events: {e}")
            raise PersistenceError(f"Failed to delete events: {e}", cause=e) from e

        logger.info(f"Deleted {len(uids)} events")
        return len(uids)

    def insert_events(self, events: List[NormalizedEvent]) -> int:
        """
        Write events through a single batch writer.

        Events sharing a uid are stored once, the last one wins.

        Args:
            events: Events to write

        Returns:
            Count of distinct events written

        Raises:
            PersistenceError: If a write fails
        """
        if not events:
            return 0

        unique = {event.uid: event for event in events}
        items = [self._event_to_item(event) for event in unique.values()]
        if len(items) < len(events):
            logger.info(f"Collapsed {len(events) - len(items)} duplicate occurrences")

        logger.info(f"Writing {len(items)} events to DynamoDB")

        try:
            # batch_writer flushes in groups of 25 (DynamoDB limit)
            with self.events_table.batch_writer(overwrite_by_pkeys=['uid']) as writer:
                for item in items:
                    writer.put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error writing events: {e}")
            raise PersistenceError(f"Failed to insert events: {e}", cause=e) from e

        logger.info(f"Successfully wrote {len(items)} events")
        return len(items)

    def list_events_starting_with(self, date_prefix: str) -> List[NormalizedEvent]:
        """
        List events whose start begins with ``date_prefix`` (e.g. ``2025-06-01``).

        Returns:
            Events ordered by is_recurrent, then start
        """
        filters = {}
        if date_prefix:
            filters['FilterExpression'] = Attr('start').begins_with(date_prefix)

        try:
            items = self._scan(self.events_table, **filters)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing events for {date_prefix}: {e}")
            raise PersistenceError(f"Failed to list events: {e}", cause=e) from e

        events = [self._item_to_event(item) for item in items]
        events.sort(key=lambda event: (event.is_recurrent, event.start))
        return events

    def list_todays_events(self, date_prefix: str) -> TodaysEvents:
        """Split the events of one day into regular and recurrent groups."""
        events = self.list_events_starting_with(date_prefix)
        return TodaysEvents(
            regular=[event for event in events if not event.is_recurrent],
            recurrent=[event for event in events if event.is_recurrent]
        )

    def get_completed_ids(self, event_date: str) -> List[str]:
        """
        Return ids of events marked complete on ``event_date`` (``YYYY-MM-DD``).
        """
        try:
            items = self._scan(
                self.completed_table,
                FilterExpression=Attr('event_date').eq(event_date)
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error reading completed events for {event_date}: {e}")
            raise PersistenceError(f"Failed to read completed events: {e}", cause=e) from e

        return sorted(item['event_id'] for item in items)

    def set_completed(self, event_id: str, event_date: str) -> bool:
        """
        Mark an event complete for a day. An existing mark is left untouched.

        Returns:
            True if a new mark was created, False if one already existed
        """
        try:
            self.completed_table.put_item(
                Item={
                    'event_id': event_id,
                    'event_date': event_date,
                    'completed_at': datetime.now(timezone.utc).isoformat()
                },
                ConditionExpression='attribute_not_exists(event_id)'
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                logger.debug(f"Event {event_id} already completed on {event_date}")
                return False
            logger.error(f"Error marking {event_id} complete: {e}")
            raise PersistenceError(f"Failed to mark event complete: {e}", cause=e) from e
        except BotoCoreError as e:
            logger.error(f"Error marking {event_id} complete: {e}")
            raise PersistenceError(f"Failed to mark event complete: {e}", cause=e) from e

        return True

    def clear_completed(self, event_id: str, event_date: str) -> None:
        """Remove the completion mark of an event for a day, if any."""
        try:
            self.completed_table.delete_item(
                Key={'event_id': event_id, 'event_date': event_date}
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error clearing completion of {event_id}: {e}")
            raise PersistenceError(f"Failed to clear completed event: {e}", cause=e) from e

    def get_completed_mark(self, event_id: str, event_date: str) -> Optional[CompletedMark]:
        """Point lookup of a completion mark."""
        try:
            response = self.completed_table.get_item(
                Key={'event_id': event_id, 'event_date': event_date}
            )
        except (ClientError, BotoCoreError) as e:
            raise PersistenceError(f"Failed to read completed event: {e}", cause=e) from e
        item = response.get('Item')
        if not item:
            return None
        return CompletedMark(
            event_id=item['event_id'],
            event_date=item['event_date'],
            completed_at=item.get('completed_at', '')
        )

    def _scan(self, table, **kwargs) -> List[dict]:
        """Scan a table, following pagination."""
        response = table.scan(**kwargs)
        items = response.get('Items', [])

        while 'LastEvaluatedKey' in response:
            response = table.scan(ExclusiveStartKey=response['LastEvaluatedKey'], **kwargs)
            items.extend(response.get('Items', []))

        return items

    def _event_to_item(self, event: NormalizedEvent) -> dict:
        return {
            'uid': event.uid,
            'summary': event.summary,
            'start': event.start,
            'location': event.location,
            'description': event.description,
            'is_recurrent': event.is_recurrent
        }

    def _item_to_event(self, item: dict) -> NormalizedEvent:
        return NormalizedEvent(
            summary=item.get('summary', ''),
            start=item.get('start', ''),
            location=item.get('location', ''),
            description=item.get('description', ''),
            is_recurrent=int(item.get('is_recurrent', 0)),
            uid=item['uid']
        )
