"""Candidate registry - the proposed time slots of an event."""

import logging
from datetime import datetime, timezone

from scheduling.domain import CandidateId, CandidateTime, EventId, TimeRange
from scheduling.domain.errors import (
    CandidateHasVotesError,
    CandidateNotFoundError,
    DuplicateCandidateError,
    EventNotFoundError,
    InvalidRangeError,
)
from scheduling.domain.models import DraftEvent, require_draft
from scheduling.stores.interfaces import SchedulingStore

logger = logging.getLogger(__name__)


class CandidateRegistry:
    """Proposes, lists and removes candidate times.

    Callers run mutating methods inside ``store.atomic()``.
    """

    def __init__(self, store: SchedulingStore) -> None:
        self._store = store

    def _draft_event(self, event_id: EventId) -> DraftEvent:
        event = self._store.get_event(event_id, for_update=True)
        if event is None:
            raise EventNotFoundError(str(event_id))
        return require_draft(event)

    def propose(
        self, event_id: EventId, start_time: datetime, end_time: datetime
    ) -> CandidateTime:
        """Add a candidate time to a draft event.

        Raises:
            EventNotFoundError: If the event does not exist.
            InvalidStateError: If the event is no longer a draft.
            InvalidRangeError: If start_time is not before end_time.
            DuplicateCandidateError: If the exact range is already proposed.
        """
        self._draft_event(event_id)
        if start_time >= end_time:
            raise InvalidRangeError()
        time_range = TimeRange(start=start_time, end=end_time)
        if any(c.time_range == time_range for c in self._store.list_candidates(event_id)):
            raise DuplicateCandidateError()

        candidate = self._store.add_candidate(event_id, time_range)
        logger.info(
            "Candidate time proposed",
            extra={"event_id": str(event_id), "candidate_id": str(candidate.id)},
        )
        return candidate

    def list_for_event(self, event_id: EventId) -> list[CandidateTime]:
        """Return candidates ordered by start time, then creation order."""
        return self._store.list_candidates(event_id)

    def get_for_event(self, event_id: EventId, candidate_id: CandidateId) -> CandidateTime:
        """Return a candidate, checking it belongs to the event.

        Raises:
            CandidateNotFoundError: If missing or attached to another event.
        """
        candidate = self._store.get_candidate(candidate_id)
        if candidate is None or candidate.event_id != event_id:
            raise CandidateNotFoundError(str(candidate_id))
        return candidate

    def remove(self, candidate_id: CandidateId) -> None:
        """Retire a candidate of a draft event.

        Raises:
            CandidateNotFoundError: If the candidate does not exist.
            InvalidStateError: If the event is no longer a draft.
            CandidateHasVotesError: If any vote references the candidate.
        """
        candidate = self._store.get_candidate(candidate_id)
        if candidate is None:
            raise CandidateNotFoundError(str(candidate_id))
        self._draft_event(candidate.event_id)
        if self._store.candidate_has_votes(candidate_id):
            raise CandidateHasVotesError(str(candidate_id))

        self._store.retire_candidate(candidate_id, datetime.now(timezone.utc))
        logger.info(
            "Candidate time removed",
            extra={"event_id": str(candidate.event_id), "candidate_id": str(candidate_id)},
        )
