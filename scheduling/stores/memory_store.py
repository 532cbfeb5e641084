"""In-memory implementation of the SchedulingStore.

Used by unit tests and local experiments. A re-entrant lock serializes
transactions, and each outermost transaction snapshots the tables so a
failing block leaves no partial writes behind.
"""

import copy
import logging
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from threading import RLock

from scheduling.domain import (
    CandidateId,
    CandidateTime,
    CircleId,
    DraftEvent,
    Event,
    EventId,
    EventStatus,
    ScheduledEvent,
    TimeRange,
    Transition,
    Vote,
)
from scheduling.stores.interfaces import SchedulingStore

logger = logging.getLogger(__name__)


@dataclass
class _EventRow:
    event: Event
    deleted_at: datetime | None = None


@dataclass
class _CandidateRow:
    candidate: CandidateTime
    deleted_at: datetime | None = None


class InMemorySchedulingStore(SchedulingStore):
    """Thread-safe scheduling store kept in process memory."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._depth = 0
        self._pending: list[Callable[[], None]] = []
        self._events: dict[EventId, _EventRow] = {}
        self._candidates: dict[CandidateId, _CandidateRow] = {}
        self._votes: dict[tuple[EventId, str], Vote] = {}
        self.transitions: list[Transition] = []

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # Transactions

    def _snapshot(self) -> tuple:
        return (
            copy.copy(self._events),
            copy.copy(self._candidates),
            copy.copy(self._votes),
            list(self.transitions),
        )

    def _restore(self, snapshot: tuple) -> None:
        self._events, self._candidates, self._votes, self.transitions = snapshot

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            snapshot = self._snapshot()
            queued = len(self._pending)
            self._depth += 1
            try:
                yield
            except BaseException:
                self._restore(snapshot)
                # callbacks queued by the failed block go with its writes
                del self._pending[queued:]
                raise
            finally:
                self._depth -= 1
            if self._depth == 0:
                callbacks, self._pending = self._pending, []
                self._run_callbacks(callbacks)

    def _run_callbacks(self, callbacks: list[Callable[[], None]]) -> None:
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("on_commit callback failed")

    def on_commit(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._depth == 0:
                self._run_callbacks([callback])
            else:
                self._pending.append(callback)

    # Events

    def create_event(
        self,
        *,
        circle_id: CircleId,
        owner_id: str,
        title: str = "",
        description: str = "",
    ) -> DraftEvent:
        """Insert a draft event. Event CRUD belongs to the host application."""
        event = DraftEvent(
            id=EventId(uuid.uuid4()),
            circle_id=circle_id,
            owner_id=owner_id,
            title=title,
            description=description,
            created_at=self._now(),
        )
        with self._lock:
            self._events[event.id] = _EventRow(event=event)
        return event

    def delete_event(self, event_id: EventId) -> None:
        with self._lock:
            row = self._events[event_id]
            self._events[event_id] = replace(row, deleted_at=self._now())

    def get_event(self, event_id: EventId, *, for_update: bool = False) -> Event | None:
        with self._lock:
            row = self._events.get(event_id)
            if row is None or row.deleted_at is not None:
                return None
            return row.event

    def transition_event(
        self,
        event_id: EventId,
        *,
        expected: EventStatus,
        target: EventStatus,
        schedule: TimeRange | None,
    ) -> bool:
        with self._lock:
            row = self._events.get(event_id)
            if row is None or row.deleted_at is not None:
                return False
            current = row.event
            if current.status is not expected:
                return False
            common = dict(
                id=current.id,
                circle_id=current.circle_id,
                owner_id=current.owner_id,
                title=current.title,
                description=current.description,
                created_at=current.created_at,
            )
            if target is EventStatus.DRAFT:
                updated: Event = DraftEvent(**common)
            else:
                updated = ScheduledEvent(**common, status=target, schedule=schedule)
            self._events[event_id] = replace(row, event=updated)
            return True

    def record_transition(self, transition: Transition) -> None:
        with self._lock:
            self.transitions.append(transition)

    # Candidate times

    def add_candidate(self, event_id: EventId, time_range: TimeRange) -> CandidateTime:
        candidate = CandidateTime(
            id=CandidateId(uuid.uuid4()),
            event_id=event_id,
            time_range=time_range,
            created_at=self._now(),
        )
        with self._lock:
            self._candidates[candidate.id] = _CandidateRow(candidate=candidate)
        return candidate

    def get_candidate(self, candidate_id: CandidateId) -> CandidateTime | None:
        with self._lock:
            row = self._candidates.get(candidate_id)
            if row is None or row.deleted_at is not None:
                return None
            return row.candidate

    def list_candidates(self, event_id: EventId) -> list[CandidateTime]:
        with self._lock:
            active = [
                row.candidate
                for row in self._candidates.values()
                if row.deleted_at is None and row.candidate.event_id == event_id
            ]
        # dict order is insertion order, so sorted() keeps creation order on ties
        return sorted(active, key=lambda c: c.start_time)

    def retire_candidate(self, candidate_id: CandidateId, retired_at: datetime) -> None:
        with self._lock:
            row = self._candidates[candidate_id]
            self._candidates[candidate_id] = replace(row, deleted_at=retired_at)

    def candidate_has_votes(self, candidate_id: CandidateId) -> bool:
        with self._lock:
            return any(v.candidate_id == candidate_id for v in self._votes.values())

    # Votes

    def replace_vote(
        self, event_id: EventId, candidate_id: CandidateId, voter_id: str
    ) -> Vote:
        vote = Vote(
            id=uuid.uuid4(),
            event_id=event_id,
            candidate_id=candidate_id,
            voter_id=voter_id,
            created_at=self._now(),
        )
        with self._lock:
            # keyed by (event, voter): the uniqueness constraint
            self._votes.pop((event_id, voter_id), None)
            self._votes[(event_id, voter_id)] = vote
        return vote

    def delete_vote(self, event_id: EventId, voter_id: str) -> bool:
        with self._lock:
            return self._votes.pop((event_id, voter_id), None) is not None

    def list_votes(self, event_id: EventId) -> list[Vote]:
        with self._lock:
            votes = [v for (eid, _), v in self._votes.items() if eid == event_id]
        return sorted(votes, key=lambda v: v.created_at)

    def count_votes(self, event_id: EventId) -> dict[CandidateId, int]:
        counts: dict[CandidateId, int] = {}
        for vote in self.list_votes(event_id):
            counts[vote.candidate_id] = counts.get(vote.candidate_id, 0) + 1
        return counts

    def clear_votes(self, event_id: EventId) -> int:
        with self._lock:
            keys = [key for key in self._votes if key[0] == event_id]
            for key in keys:
                del self._votes[key]
        return len(keys)
