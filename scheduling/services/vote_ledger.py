"""Vote ledger - one vote per member per event."""

import logging

from scheduling.domain import CandidateId, EventId, Vote
from scheduling.domain.errors import EventNotFoundError, NotMemberError
from scheduling.domain.models import DraftEvent, require_draft
from scheduling.services.candidate_registry import CandidateRegistry
from scheduling.services.collaborators import MembershipChecker
from scheduling.stores.interfaces import SchedulingStore

logger = logging.getLogger(__name__)


class VoteLedger:
    """Records, replaces and retracts votes.

    Callers run mutating methods inside ``store.atomic()``.
    """

    def __init__(
        self,
        store: SchedulingStore,
        registry: CandidateRegistry,
        membership: MembershipChecker,
    ) -> None:
        self._store = store
        self._registry = registry
        self._membership = membership

    def _draft_event(self, event_id: EventId) -> DraftEvent:
        event = self._store.get_event(event_id, for_update=True)
        if event is None:
            raise EventNotFoundError(str(event_id))
        return require_draft(event)

    def cast(self, event_id: EventId, candidate_id: CandidateId, voter_id: str) -> Vote:
        """Record voter's vote, replacing any earlier vote for the event.

        Raises:
            EventNotFoundError: If the event does not exist.
            InvalidStateError: If voting is closed.
            CandidateNotFoundError: If the candidate is not part of the event.
            NotMemberError: If the voter is not in the event's circle.
        """
        event = self._draft_event(event_id)
        self._registry.get_for_event(event_id, candidate_id)
        if not self._membership.is_member(event.circle_id, voter_id):
            raise NotMemberError()

        vote = self._store.replace_vote(event_id, candidate_id, voter_id)
        logger.info(
            "Vote cast",
            extra={"event_id": str(event_id), "candidate_id": str(candidate_id)},
        )
        return vote

    def retract(self, event_id: EventId, voter_id: str) -> bool:
        """Remove voter's vote. Returns False when there was nothing to remove.

        Raises:
            EventNotFoundError: If the event does not exist.
            InvalidStateError: If voting is closed.
        """
        self._draft_event(event_id)
        removed = self._store.delete_vote(event_id, voter_id)
        if removed:
            logger.info("Vote retracted", extra={"event_id": str(event_id)})
        return removed

    def tally_raw(self, event_id: EventId) -> dict[CandidateId, int]:
        """Return vote counts per candidate."""
        return self._store.count_votes(event_id)
