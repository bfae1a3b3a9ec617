"""Data models for calendar feed processing."""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RawEventRecord:
    """Event record as read from the iCalendar feed."""
    summary: str
    start: Optional[str]
    end: Optional[str] = None
    location: str = ''
    description: str = ''
    uid: Optional[str] = None
    is_recurrent: bool = False
    recurrence_rule: Optional[str] = None


@dataclass
class NormalizedEvent:
    """Event occurrence ready to be persisted."""
    summary: str
    start: str
    location: str
    description: str
    is_recurrent: int
    uid: str


@dataclass
class CompletedMark:
    """Per-day completion flag for an event, keyed by its uid."""
    event_id: str
    event_date: str
    completed_at: str


@dataclass
class TodaysEvents:
    """Events of one day split into regular and recurrent groups."""
    regular: List[NormalizedEvent] = field(default_factory=list)
    recurrent: List[NormalizedEvent] = field(default_factory=list)

    @property
    def all(self) -> List[NormalizedEvent]:
        return self.regular + self.recurrent
