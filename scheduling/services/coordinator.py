"""Scheduling coordinator - the entry point used by handlers.

Services:
- Depend only on interfaces (stores, collaborator ports)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or raise domain errors

Each mutating operation runs in a single store transaction, so a failure at
any step leaves stored state exactly as it was.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from scheduling.domain import (
    CandidateId,
    CandidateTime,
    CircleId,
    DraftEvent,
    EventId,
    ScheduledEvent,
    Tally,
    TallyPolicy,
    Vote,
)
from scheduling.domain.errors import (
    DomainError,
    EventNotFoundError,
    InvalidIdError,
    NotMemberError,
)
from scheduling.domain.models import Event
from scheduling.domain.tally import DEFAULT_POLICY, rank
from scheduling.services.candidate_registry import CandidateRegistry
from scheduling.services.collaborators import MembershipChecker, RsvpNotifier
from scheduling.services.state_machine import SchedulingStateMachine
from scheduling.services.vote_ledger import VoteLedger
from scheduling.stores.interfaces import SchedulingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteReceipt:
    """A stored vote and the front-runner right after it was cast."""

    vote: Vote
    leader: CandidateTime | None


@dataclass(frozen=True)
class CandidateListing:
    """Candidates of an event in listing order, with the current ranking."""

    event: Event
    candidates: tuple[CandidateTime, ...]
    tally: Tally

    @property
    def leader(self) -> CandidateTime | None:
        return self.tally.leader


def _parse(value, id_type, field: str):
    if isinstance(value, id_type):
        return value
    if isinstance(value, UUID):
        return id_type(value)
    try:
        return id_type.from_string(str(value))
    except ValueError:
        raise InvalidIdError(field) from None


class SchedulingCoordinator:
    """Façade over the scheduling engine."""

    def __init__(
        self,
        store: SchedulingStore,
        membership: MembershipChecker,
        rsvp: RsvpNotifier,
        policy: TallyPolicy = DEFAULT_POLICY,
        *,
        allow_reopen: bool = False,
    ) -> None:
        self._store = store
        self._membership = membership
        self._rsvp = rsvp
        self._registry = CandidateRegistry(store)
        self._ledger = VoteLedger(store, self._registry, membership)
        self._machine = SchedulingStateMachine(
            store, self._registry, self._ledger, policy, allow_reopen=allow_reopen
        )

    def _event(self, event_id: EventId) -> Event:
        event = self._store.get_event(event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))
        return event

    def _require_member(self, circle_id: CircleId, user_id: str) -> None:
        if not self._membership.is_member(circle_id, user_id):
            raise NotMemberError()

    def _notify_scheduled(self, event: ScheduledEvent) -> None:
        self._store.on_commit(lambda: self._rsvp.schedule_fixed(event))

    def _rejected(self, operation: str, event_id, error: DomainError) -> None:
        logger.info(
            "Scheduling operation rejected",
            extra={
                "operation": operation,
                "event_id": str(event_id),
                "error_code": error.code.value,
            },
        )

    def ensure_can_view(self, event_id, viewer_id: str) -> Event:
        """Return the event if viewer_id belongs to its circle.

        Raises:
            InvalidIdError: If event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            NotMemberError: If the viewer is not in the event's circle.
        """
        event = self._event(_parse(event_id, EventId, "event_id"))
        self._require_member(event.circle_id, viewer_id)
        return event

    def propose_time(
        self, event_id, proposer_id: str, start_time: datetime, end_time: datetime
    ) -> CandidateTime:
        """Propose a candidate time on behalf of a circle member."""
        eid = _parse(event_id, EventId, "event_id")
        try:
            with self._store.atomic():
                self._require_member(self._event(eid).circle_id, proposer_id)
                return self._machine.propose(eid, start_time, end_time)
        except DomainError as error:
            self._rejected("propose_time", eid, error)
            raise

    def remove_candidate(self, event_id, candidate_id, actor_id: str) -> None:
        """Remove an unvoted candidate from a draft event."""
        eid = _parse(event_id, EventId, "event_id")
        cid = _parse(candidate_id, CandidateId, "candidate_id")
        try:
            with self._store.atomic():
                self._require_member(self._event(eid).circle_id, actor_id)
                self._registry.get_for_event(eid, cid)
                self._machine.remove(cid)
        except DomainError as error:
            self._rejected("remove_candidate", eid, error)
            raise

    def vote(self, event_id, candidate_id, voter_id: str) -> VoteReceipt:
        """Cast or replace voter_id's vote and report the current leader."""
        eid = _parse(event_id, EventId, "event_id")
        cid = _parse(candidate_id, CandidateId, "candidate_id")
        try:
            with self._store.atomic():
                vote = self._machine.cast(eid, cid, voter_id)
                tally = rank(
                    self._registry.list_for_event(eid),
                    self._ledger.tally_raw(eid),
                    self._machine.policy,
                )
        except DomainError as error:
            self._rejected("vote", eid, error)
            raise
        return VoteReceipt(vote=vote, leader=tally.leader)

    def retract_vote(self, event_id, voter_id: str) -> bool:
        """Retract voter_id's vote. Retracting a missing vote is a no-op."""
        eid = _parse(event_id, EventId, "event_id")
        try:
            with self._store.atomic():
                return self._machine.retract(eid, voter_id)
        except DomainError as error:
            self._rejected("retract_vote", eid, error)
            raise

    def lock_event(self, event_id, candidate_id, actor_id: str | None) -> ScheduledEvent:
        """Organizer override: fix the event to the chosen candidate."""
        eid = _parse(event_id, EventId, "event_id")
        cid = _parse(candidate_id, CandidateId, "candidate_id")
        try:
            with self._store.atomic():
                event = self._machine.lock(eid, cid, actor_id)
                self._notify_scheduled(event)
        except DomainError as error:
            self._rejected("lock_event", eid, error)
            raise
        return event

    def finalize_event(self, event_id, actor_id: str | None = None) -> tuple[ScheduledEvent, Tally]:
        """Fix the event to the tally winner. Safe to call from a scheduler."""
        eid = _parse(event_id, EventId, "event_id")
        try:
            with self._store.atomic():
                event, tally = self._machine.finalize(eid, actor_id)
                self._notify_scheduled(event)
        except DomainError as error:
            self._rejected("finalize_event", eid, error)
            raise
        return event, tally

    def reopen_event(self, event_id, actor_id: str | None) -> DraftEvent:
        """Return a scheduled event to draft, clearing all votes."""
        eid = _parse(event_id, EventId, "event_id")
        try:
            with self._store.atomic():
                return self._machine.reopen(eid, actor_id)
        except DomainError as error:
            self._rejected("reopen_event", eid, error)
            raise

    def list_candidates_with_tally(self, event_id, viewer_id: str) -> CandidateListing:
        """Return the event's candidates with their vote counts."""
        event = self.ensure_can_view(event_id, viewer_id)
        candidates = self._registry.list_for_event(event.id)
        tally = rank(candidates, self._ledger.tally_raw(event.id), self._machine.policy)
        return CandidateListing(event=event, candidates=tuple(candidates), tally=tally)
