"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.

Every mutating service call runs inside ``store.atomic()``. Stores own the
atomicity guarantees the engine relies on: the (event, voter) uniqueness of
votes and the compare-and-set status transition.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import datetime

from scheduling.domain import (
    CandidateId,
    CandidateTime,
    Event,
    EventId,
    EventStatus,
    TimeRange,
    Transition,
    Vote,
)


class SchedulingStore(ABC):
    """Interface for scheduling persistence operations."""

    # Transactions

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager wrapping a single transaction.

        Any exception raised inside the block rolls back every write made in it.
        """
        ...

    @abstractmethod
    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run callback once the current transaction commits."""
        ...

    # Events

    @abstractmethod
    def get_event(self, event_id: EventId, *, for_update: bool = False) -> Event | None:
        """Return an active event by ID, or None if not found.

        With for_update the event row stays locked until the transaction ends.
        """
        ...

    @abstractmethod
    def transition_event(
        self,
        event_id: EventId,
        *,
        expected: EventStatus,
        target: EventStatus,
        schedule: TimeRange | None,
    ) -> bool:
        """Move an event from expected to target status.

        Compare-and-set: writes only if the stored status still equals
        expected. Returns False when no row matched (lost race).
        """
        ...

    @abstractmethod
    def record_transition(self, transition: Transition) -> None:
        """Append an audit record for a status change."""
        ...

    # Candidate times

    @abstractmethod
    def add_candidate(self, event_id: EventId, time_range: TimeRange) -> CandidateTime:
        """Persist a new candidate time for an event."""
        ...

    @abstractmethod
    def get_candidate(self, candidate_id: CandidateId) -> CandidateTime | None:
        """Return an active candidate by ID, or None if not found."""
        ...

    @abstractmethod
    def list_candidates(self, event_id: EventId) -> list[CandidateTime]:
        """Return active candidates ordered by start_time, then creation order."""
        ...

    @abstractmethod
    def retire_candidate(self, candidate_id: CandidateId, retired_at: datetime) -> None:
        """Soft-delete a candidate."""
        ...

    @abstractmethod
    def candidate_has_votes(self, candidate_id: CandidateId) -> bool:
        """Check if any vote references the candidate."""
        ...

    # Votes

    @abstractmethod
    def replace_vote(
        self, event_id: EventId, candidate_id: CandidateId, voter_id: str
    ) -> Vote:
        """Delete the voter's existing vote for the event and insert a new one."""
        ...

    @abstractmethod
    def delete_vote(self, event_id: EventId, voter_id: str) -> bool:
        """Delete the voter's vote. Returns False if there was none."""
        ...

    @abstractmethod
    def list_votes(self, event_id: EventId) -> list[Vote]:
        """Return all votes of an event."""
        ...

    @abstractmethod
    def count_votes(self, event_id: EventId) -> dict[CandidateId, int]:
        """Return vote counts keyed by candidate. Candidates without votes are omitted."""
        ...

    @abstractmethod
    def clear_votes(self, event_id: EventId) -> int:
        """Delete every vote of an event. Returns the number removed."""
        ...
