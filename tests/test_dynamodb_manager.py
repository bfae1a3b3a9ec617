"""Unit tests for DynamoDB manager."""
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from processor.errors import PersistenceError
from processor.models import NormalizedEvent


def make_event(summary, start, is_recurrent=0, uid=None):
    return NormalizedEvent(
        summary=summary,
        start=start,
        location='Home',
        description='',
        is_recurrent=is_recurrent,
        uid=uid or f"evt_{summary}_{start}"
    )


@pytest.fixture
def sample_events():
    """Events spread over two days."""
    return [
        make_event('Dentist', '2025-06-01T09:00:00+01:00'),
        make_event('Swimming', '2025-06-01T07:30:00+01:00', is_recurrent=1),
        make_event('Football', '2025-06-01T18:00:00+01:00'),
        make_event('Breakfast', '2025-06-01T06:45:00+01:00', is_recurrent=1),
        make_event('Swimming', '2025-06-02T07:30:00+01:00', is_recurrent=1),
    ]


def test_insert_events(dynamodb_manager, sample_events):
    """Test insert_events writes every event."""
    count = dynamodb_manager.insert_events(sample_events)
    
    assert count == 5
    assert len(dynamodb_manager.list_events_starting_with('2025-06')) == 5


def test_insert_events_empty(dynamodb_manager):
    """Test inserting nothing is a no-op."""
    assert dynamodb_manager.insert_events([]) == 0


def test_insert_events_large_batch(dynamodb_manager):
    """Test insert_events with more than 25 events (batch limit)."""
    events = [
        make_event(f'Event {i}', f'2025-06-{(i % 28) + 1:02d}T10:00:00+01:00')
        for i in range(60)
    ]
    
    count = dynamodb_manager.insert_events(events)
    
    assert count == 60
    assert len(dynamodb_manager.list_events_starting_with('2025-')) == 60


def test_insert_events_duplicate_uid_stored_once(dynamodb_manager):
    """Test events sharing a uid collapse into one item."""
    events = [
        make_event('Dentist', '2025-06-01T09:00:00+01:00', uid='evt_1'),
        make_event('Dentist', '2025-06-01T09:00:00+01:00', uid='evt_1'),
    ]
    
    assert dynamodb_manager.insert_events(events) == 1
    assert len(dynamodb_manager.list_events_starting_with('2025-06-01')) == 1


def test_delete_all_events(dynamodb_manager, sample_events):
    """Test delete_all_events empties the events table."""
    dynamodb_manager.insert_events(sample_events)
    
    deleted = dynamodb_manager.delete_all_events()
    
    assert deleted == 5
    assert dynamodb_manager.list_events_starting_with('2025') == []


def test_delete_all_events_empty_table(dynamodb_manager):
    """Test delete_all_events on an empty table."""
    assert dynamodb_manager.delete_all_events() == 0


def test_delete_all_events_keeps_completed(dynamodb_manager, sample_events):
    """Test clearing events leaves completion marks alone."""
    dynamodb_manager.insert_events(sample_events)
    dynamodb_manager.set_completed(sample_events[0].uid, '2025-06-01')
    
    dynamodb_manager.delete_all_events()
    
    assert dynamodb_manager.get_completed_ids('2025-06-01') == [sample_events[0].uid]


def test_list_events_starting_with_orders_regular_first(dynamodb_manager, sample_events):
    """Test listing filters by date and sorts by recurrence then start."""
    dynamodb_manager.insert_events(sample_events)
    
    events = dynamodb_manager.list_events_starting_with('2025-06-01')
    
    assert [(e.summary, e.is_recurrent) for e in events] == [
        ('Dentist', 0),
        ('Football', 0),
        ('Breakfast', 1),
        ('Swimming', 1),
    ]
    assert events[0] == sample_events[0]


def test_list_todays_events(dynamodb_manager, sample_events):
    """Test the day listing splits regular and recurrent events."""
    dynamodb_manager.insert_events(sample_events)
    
    todays = dynamodb_manager.list_todays_events('2025-06-02')
    
    assert todays.regular == []
    assert [e.summary for e in todays.recurrent] == ['Swimming']
    assert todays.all == todays.recurrent


def test_set_completed(dynamodb_manager):
    """Test marking an event complete."""
    created = dynamodb_manager.set_completed('evt_123', '2025-06-01')
    
    assert created is True
    assert dynamodb_manager.get_completed_ids('2025-06-01') == ['evt_123']
    assert dynamodb_manager.get_completed_ids('2025-06-02') == []
    
    mark = dynamodb_manager.get_completed_mark('evt_123', '2025-06-01')
    assert mark.event_id == 'evt_123'
    assert mark.event_date == '2025-06-01'
    assert mark.completed_at


def test_set_completed_twice_keeps_first_mark(dynamodb_manager):
    """Test marking the same event and day again is ignored."""
    dynamodb_manager.set_completed('evt_123', '2025-06-01')
    first = dynamodb_manager.get_completed_mark('evt_123', '2025-06-01')
    
    created = dynamodb_manager.set_completed('evt_123', '2025-06-01')
    
    assert created is False
    assert dynamodb_manager.get_completed_mark('evt_123', '2025-06-01') == first


def test_set_completed_same_event_other_day(dynamodb_manager):
    """Test the same event can be completed on several days."""
    assert dynamodb_manager.set_completed('evt_123', '2025-06-01') is True
    assert dynamodb_manager.set_completed('evt_123', '2025-06-02') is True
    
    assert dynamodb_manager.get_completed_ids('2025-06-02') == ['evt_123']


def test_clear_completed(dynamodb_manager):
    """Test removing a completion mark."""
    dynamodb_manager.set_completed('evt_123', '2025-06-01')
    dynamodb_manager.set_completed('evt_456', '2025-06-01')
    
    dynamodb_manager.clear_completed('evt_123', '2025-06-01')
    
    assert dynamodb_manager.get_completed_ids('2025-06-01') == ['evt_456']
    assert dynamodb_manager.get_completed_mark('evt_123', '2025-06-01') is None


def test_clear_completed_missing_mark(dynamodb_manager):
    """Test clearing a mark that does not exist does not fail."""
    dynamodb_manager.clear_completed('evt_999', '2025-06-01')
    
    assert dynamodb_manager.get_completed_ids('2025-06-01') == []


def test_insert_events_client_error(dynamodb_manager, sample_events):
    """Test write failures are raised as PersistenceError."""
    error = ClientError(
        {'Error': {'Code': 'ProvisionedThroughputExceededException', 'Message': 'Slow down'}},
        'BatchWriteItem'
    )
    
    with patch.object(dynamodb_manager.events_table, 'batch_writer', side_effect=error):
        with pytest.raises(PersistenceError) as exc_info:
            dynamodb_manager.insert_events(sample_events)
    
    assert exc_info.value.cause is error


def test_delete_all_events_client_error(dynamodb_manager):
    """Test scan failures are raised as PersistenceError."""
    error = ClientError(
        {'Error': {'Code': 'ResourceNotFoundException', 'Message': 'No table'}},
        'Scan'
    )
    
    with patch.object(dynamodb_manager.events_table, 'scan', side_effect=error):
        with pytest.raises(PersistenceError):
            dynamodb_manager.delete_all_events()


def endpoint_down():
    return EndpointConnectionError(endpoint_url='https://dynamodb.us-east-1.amazonaws.com')


def test_delete_all_events_connection_error(dynamodb_manager):
    """Test transport failures during the scan are raised as PersistenceError."""
    error = endpoint_down()
    
    with patch.object(dynamodb_manager.events_table, 'scan', side_effect=error):
        with pytest.raises(PersistenceError) as exc_info:
            dynamodb_manager.delete_all_events()
    
    assert exc_info.value.cause is error


def test_insert_events_connection_error(dynamodb_manager, sample_events):
    """Test transport failures while writing are raised as PersistenceError."""
    with patch.object(dynamodb_manager.events_table, 'batch_writer', side_effect=endpoint_down()):
        with pytest.raises(PersistenceError):
            dynamodb_manager.insert_events(sample_events)


def test_list_events_connection_error(dynamodb_manager):
    """Test transport failures while listing are raised as PersistenceError."""
    with patch.object(dynamodb_manager.events_table, 'scan', side_effect=endpoint_down()):
        with pytest.raises(PersistenceError):
            dynamodb_manager.list_events_starting_with('2025-06-01')


def test_get_completed_ids_missing_credentials(dynamodb_manager):
    """Test credential failures are raised as PersistenceError."""
    with patch.object(dynamodb_manager.completed_table, 'scan', side_effect=NoCredentialsError()):
        with pytest.raises(PersistenceError):
            dynamodb_manager.get_completed_ids('2025-06-01')


def test_set_completed_connection_error(dynamodb_manager):
    """Test transport failures while marking are raised as PersistenceError."""
    with patch.object(dynamodb_manager.completed_table, 'put_item', side_effect=endpoint_down()):
        with pytest.raises(PersistenceError):
            dynamodb_manager.set_completed('evt_123', '2025-06-01')


def test_clear_completed_connection_error(dynamodb_manager):
    """Test transport failures while clearing are raised as PersistenceError."""
    with patch.object(dynamodb_manager.completed_table, 'delete_item', side_effect=endpoint_down()):
        with pytest.raises(PersistenceError):
            dynamodb_manager.clear_completed('evt_123', '2025-06-01')


def test_get_completed_mark_connection_error(dynamodb_manager):
    """Test transport failures during a point lookup are raised as PersistenceError."""
    with patch.object(dynamodb_manager.completed_table, 'get_item', side_effect=endpoint_down()):
        with pytest.raises(PersistenceError):
            dynamodb_manager.get_completed_mark('evt_123', '2025-06-01')
