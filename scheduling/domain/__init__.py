from scheduling.domain.models import (
    CandidateTime,
    DraftEvent,
    Event,
    EventStatus,
    ScheduledEvent,
    Transition,
    Vote,
)
from scheduling.domain.tally import Tally, TallyEntry, TallyPolicy, TieBreak
from scheduling.domain.value_objects import CandidateId, CircleId, EventId, TimeRange

__all__ = [
    "CandidateTime",
    "DraftEvent",
    "Event",
    "EventStatus",
    "ScheduledEvent",
    "Transition",
    "Vote",
    "Tally",
    "TallyEntry",
    "TallyPolicy",
    "TieBreak",
    "CandidateId",
    "CircleId",
    "EventId",
    "TimeRange",
]
