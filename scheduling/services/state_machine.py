"""Scheduling state machine - the lifecycle of an event's time.

    draft --lock-----> locked
    draft --finalize-> finalized
    locked/finalized --reopen--> draft   (only when enabled)

Every transition is a compare-and-set on the stored status inside the
caller's transaction. Losing a race surfaces as AlreadyScheduledError,
never as a second write.
"""

import logging
from datetime import datetime

from scheduling.domain import (
    CandidateId,
    CandidateTime,
    EventId,
    EventStatus,
    ScheduledEvent,
    Tally,
    TallyPolicy,
    Transition,
    Vote,
)
from scheduling.domain.errors import (
    AlreadyScheduledError,
    EventNotFoundError,
    InvalidStateError,
    NotOwnerError,
)
from scheduling.domain.models import DraftEvent, Event, require_unscheduled
from scheduling.domain.tally import decide
from scheduling.services.candidate_registry import CandidateRegistry
from scheduling.services.vote_ledger import VoteLedger
from scheduling.stores.interfaces import SchedulingStore

logger = logging.getLogger(__name__)


class SchedulingStateMachine:
    """Owns Event.status and the fixed start/end of an event."""

    def __init__(
        self,
        store: SchedulingStore,
        registry: CandidateRegistry,
        ledger: VoteLedger,
        policy: TallyPolicy,
        *,
        allow_reopen: bool = False,
    ) -> None:
        self._store = store
        self._registry = registry
        self._ledger = ledger
        self._policy = policy
        self._allow_reopen = allow_reopen

    @property
    def policy(self) -> TallyPolicy:
        return self._policy

    def _load(self, event_id: EventId) -> Event:
        event = self._store.get_event(event_id, for_update=True)
        if event is None:
            raise EventNotFoundError(str(event_id))
        return event

    # Draft-only mutations

    def propose(self, event_id: EventId, start_time: datetime, end_time: datetime) -> CandidateTime:
        return self._registry.propose(event_id, start_time, end_time)

    def remove(self, candidate_id: CandidateId) -> None:
        self._registry.remove(candidate_id)

    def cast(self, event_id: EventId, candidate_id: CandidateId, voter_id: str) -> Vote:
        return self._ledger.cast(event_id, candidate_id, voter_id)

    def retract(self, event_id: EventId, voter_id: str) -> bool:
        return self._ledger.retract(event_id, voter_id)

    # Transitions

    def _schedule(
        self,
        event: DraftEvent,
        candidate: CandidateTime,
        target: EventStatus,
        actor_id: str | None,
        detail: dict,
    ) -> ScheduledEvent:
        won = self._store.transition_event(
            event.id,
            expected=EventStatus.DRAFT,
            target=target,
            schedule=candidate.time_range,
        )
        if not won:
            current = self._store.get_event(event.id)
            status = current.status.value if current is not None else target.value
            logger.info(
                "Lost scheduling race",
                extra={"event_id": str(event.id), "target": target.value},
            )
            raise AlreadyScheduledError(status)

        self._store.record_transition(
            Transition(
                event_id=event.id,
                from_status=EventStatus.DRAFT,
                to_status=target,
                actor_id=actor_id,
                candidate_id=candidate.id,
                detail=detail,
            )
        )
        logger.info(
            "Event scheduled",
            extra={
                "event_id": str(event.id),
                "status": target.value,
                "candidate_id": str(candidate.id),
            },
        )
        return ScheduledEvent(
            id=event.id,
            circle_id=event.circle_id,
            owner_id=event.owner_id,
            title=event.title,
            description=event.description,
            created_at=event.created_at,
            status=target,
            schedule=candidate.time_range,
        )

    def lock(self, event_id: EventId, candidate_id: CandidateId, actor_id: str | None) -> ScheduledEvent:
        """Fix the event's time to a chosen candidate (organizer override).

        Raises:
            EventNotFoundError: If the event does not exist.
            AlreadyScheduledError: If the event is not a draft.
            NotOwnerError: If actor_id is not the event owner.
            CandidateNotFoundError: If the candidate is not part of the event.
        """
        event = require_unscheduled(self._load(event_id))
        if not event.is_owned_by(actor_id):
            raise NotOwnerError()
        candidate = self._registry.get_for_event(event_id, candidate_id)
        return self._schedule(event, candidate, EventStatus.LOCKED, actor_id, detail={})

    def finalize(self, event_id: EventId, actor_id: str | None = None) -> tuple[ScheduledEvent, Tally]:
        """Fix the event's time to the tally winner.

        A scheduler may call this without an actor; when an actor is given
        it must be the owner. On failure the event stays a draft.

        Raises:
            EventNotFoundError: If the event does not exist.
            AlreadyScheduledError: If the event is not a draft.
            NotOwnerError: If actor_id is given and is not the event owner.
            NoCandidatesError: If the event has no candidate times.
            NoVotesError: If the vote quorum has not been reached.
        """
        event = require_unscheduled(self._load(event_id))
        if actor_id is not None and not event.is_owned_by(actor_id):
            raise NotOwnerError()
        tally = decide(
            self._registry.list_for_event(event_id),
            self._ledger.tally_raw(event_id),
            self._policy,
        )
        scheduled = self._schedule(
            event, tally.winner, EventStatus.FINALIZED, actor_id, detail=tally.as_audit()
        )
        return scheduled, tally

    def reopen(self, event_id: EventId, actor_id: str | None) -> DraftEvent:
        """Move a scheduled event back to draft and clear its votes.

        Raises:
            InvalidStateError: If reopening is disabled or the event is a draft.
            EventNotFoundError: If the event does not exist.
            NotOwnerError: If actor_id is not the event owner.
        """
        if not self._allow_reopen:
            raise InvalidStateError("Reopening scheduled events is disabled")
        event = self._load(event_id)
        if isinstance(event, DraftEvent):
            raise InvalidStateError("Event is already a draft")
        if not event.is_owned_by(actor_id):
            raise NotOwnerError()

        if not self._store.transition_event(
            event_id, expected=event.status, target=EventStatus.DRAFT, schedule=None
        ):
            raise InvalidStateError("Event changed while reopening")
        cleared = self._store.clear_votes(event_id)
        self._store.record_transition(
            Transition(
                event_id=event_id,
                from_status=event.status,
                to_status=EventStatus.DRAFT,
                actor_id=actor_id,
                detail={
                    "cleared_votes": cleared,
                    "previous_schedule": {
                        "starts_at": event.starts_at.isoformat(),
                        "ends_at": event.ends_at.isoformat(),
                    },
                },
            )
        )
        logger.info(
            "Event reopened",
            extra={"event_id": str(event_id), "cleared_votes": cleared},
        )
        return DraftEvent(
            id=event.id,
            circle_id=event.circle_id,
            owner_id=event.owner_id,
            title=event.title,
            description=event.description,
            created_at=event.created_at,
        )
