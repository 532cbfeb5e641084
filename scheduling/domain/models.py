"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in scheduling/models.py (persistence layer).

An event is a DraftEvent until a time is fixed, then a ScheduledEvent.
Only ScheduledEvent carries a schedule, so code holding a draft never has
to check for missing start/end values.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from scheduling.domain.errors import AlreadyScheduledError, InvalidStateError
from scheduling.domain.value_objects import CandidateId, CircleId, EventId, TimeRange


class EventStatus(Enum):
    """Lifecycle of an event's schedule."""

    DRAFT = "draft"
    LOCKED = "locked"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class DraftEvent:
    """An event still collecting candidate times and votes."""

    id: EventId
    circle_id: CircleId
    owner_id: str
    title: str
    description: str
    created_at: datetime

    @property
    def status(self) -> EventStatus:
        return EventStatus.DRAFT

    def is_owned_by(self, user_id: str | None) -> bool:
        return bool(user_id) and user_id == self.owner_id


@dataclass(frozen=True)
class ScheduledEvent:
    """An event whose time has been fixed by lock or finalize."""

    id: EventId
    circle_id: CircleId
    owner_id: str
    title: str
    description: str
    created_at: datetime
    status: EventStatus
    schedule: TimeRange

    def __post_init__(self) -> None:
        if self.status is EventStatus.DRAFT:
            raise ValueError("ScheduledEvent cannot be in draft status")

    @property
    def starts_at(self) -> datetime:
        return self.schedule.start

    @property
    def ends_at(self) -> datetime:
        return self.schedule.end

    def is_owned_by(self, user_id: str | None) -> bool:
        return bool(user_id) and user_id == self.owner_id


Event = DraftEvent | ScheduledEvent


def require_draft(event: Event) -> DraftEvent:
    """Return the event as a draft or raise InvalidStateError."""
    if not isinstance(event, DraftEvent):
        raise InvalidStateError(f"Event is {event.status.value}; voting is closed")
    return event


def require_unscheduled(event: Event) -> DraftEvent:
    """Like require_draft, but reports a redundant lock/finalize."""
    if not isinstance(event, DraftEvent):
        raise AlreadyScheduledError(event.status.value)
    return event


@dataclass(frozen=True)
class CandidateTime:
    """A proposed start/end range for an event."""

    id: CandidateId
    event_id: EventId
    time_range: TimeRange
    created_at: datetime

    @property
    def start_time(self) -> datetime:
        return self.time_range.start

    @property
    def end_time(self) -> datetime:
        return self.time_range.end


@dataclass(frozen=True)
class Vote:
    """A member's single vote for one candidate of an event."""

    id: UUID
    event_id: EventId
    candidate_id: CandidateId
    voter_id: str
    created_at: datetime


@dataclass(frozen=True)
class Transition:
    """Audit record of a status change."""

    event_id: EventId
    from_status: EventStatus
    to_status: EventStatus
    actor_id: str | None = None
    candidate_id: CandidateId | None = None
    detail: dict = field(default_factory=dict)
