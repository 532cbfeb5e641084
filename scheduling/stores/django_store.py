"""Django ORM implementation of the SchedulingStore.

Status transitions are conditional UPDATEs filtered on the expected status,
so two requests racing to schedule the same event cannot both win. Vote
uniqueness per (event, voter) is enforced by a database constraint.
"""

import logging
from datetime import datetime

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from scheduling import models
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


def _to_event(row: models.Event) -> Event:
    common = dict(
        id=EventId(row.id),
        circle_id=CircleId(row.circle_id),
        owner_id=row.owner_id,
        title=row.title,
        description=row.description,
        created_at=row.created_at,
    )
    status = EventStatus(row.status)
    if status is EventStatus.DRAFT:
        return DraftEvent(**common)
    return ScheduledEvent(
        **common,
        status=status,
        schedule=TimeRange(start=row.starts_at, end=row.ends_at),
    )


def _to_candidate(row: models.CandidateTime) -> CandidateTime:
    return CandidateTime(
        id=CandidateId(row.id),
        event_id=EventId(row.event_id),
        time_range=TimeRange(start=row.start_time, end=row.end_time),
        created_at=row.created_at,
    )


def _to_vote(row: models.Vote) -> Vote:
    return Vote(
        id=row.id,
        event_id=EventId(row.event_id),
        candidate_id=CandidateId(row.candidate_id),
        voter_id=row.voter_id,
        created_at=row.created_at,
    )


class DjangoSchedulingStore(SchedulingStore):
    """Relational scheduling store using Django ORM."""

    def __init__(self, using: str | None = None) -> None:
        self._using = using

    def atomic(self):
        return transaction.atomic(using=self._using)

    def on_commit(self, callback) -> None:
        transaction.on_commit(callback, using=self._using, robust=True)

    def _events(self):
        return models.Event.objects.using(self._using).active()

    def get_event(self, event_id: EventId, *, for_update: bool = False) -> Event | None:
        queryset = self._events()
        if for_update:
            queryset = queryset.select_for_update()
        row = queryset.filter(pk=event_id.value).first()
        return _to_event(row) if row is not None else None

    def transition_event(
        self,
        event_id: EventId,
        *,
        expected: EventStatus,
        target: EventStatus,
        schedule: TimeRange | None,
    ) -> bool:
        updated = self._events().filter(pk=event_id.value, status=expected.value).update(
            status=target.value,
            starts_at=schedule.start if schedule else None,
            ends_at=schedule.end if schedule else None,
            updated_at=timezone.now(),
        )
        return updated == 1

    def record_transition(self, transition: Transition) -> None:
        models.EventTransition.objects.using(self._using).create(
            event_id=transition.event_id.value,
            from_status=transition.from_status.value,
            to_status=transition.to_status.value,
            actor_id=transition.actor_id,
            candidate_id=transition.candidate_id.value if transition.candidate_id else None,
            detail=transition.detail,
        )

    def add_candidate(self, event_id: EventId, time_range: TimeRange) -> CandidateTime:
        row = models.CandidateTime.objects.using(self._using).create(
            event_id=event_id.value,
            start_time=time_range.start,
            end_time=time_range.end,
        )
        return _to_candidate(row)

    def get_candidate(self, candidate_id: CandidateId) -> CandidateTime | None:
        row = (
            models.CandidateTime.objects.using(self._using)
            .active()
            .filter(pk=candidate_id.value)
            .first()
        )
        return _to_candidate(row) if row is not None else None

    def list_candidates(self, event_id: EventId) -> list[CandidateTime]:
        rows = (
            models.CandidateTime.objects.using(self._using)
            .active()
            .filter(event_id=event_id.value)
            .order_by("start_time", "created_at", "id")
        )
        return [_to_candidate(row) for row in rows]

    def retire_candidate(self, candidate_id: CandidateId, retired_at: datetime) -> None:
        row = models.CandidateTime.objects.using(self._using).get(pk=candidate_id.value)
        row.deleted_at = retired_at
        row.save(update_fields=["deleted_at"])

    def candidate_has_votes(self, candidate_id: CandidateId) -> bool:
        return (
            models.Vote.objects.using(self._using)
            .filter(candidate_id=candidate_id.value)
            .exists()
        )

    def replace_vote(
        self, event_id: EventId, candidate_id: CandidateId, voter_id: str
    ) -> Vote:
        try:
            return self._replace_vote(event_id, candidate_id, voter_id)
        except IntegrityError:
            # A concurrent cast by the same voter inserted first.
            logger.info(
                "Retrying vote replace after concurrent insert",
                extra={"event_id": str(event_id), "voter_id": voter_id},
            )
            return self._replace_vote(event_id, candidate_id, voter_id)

    def _replace_vote(
        self, event_id: EventId, candidate_id: CandidateId, voter_id: str
    ) -> Vote:
        votes = models.Vote.objects.using(self._using)
        with transaction.atomic(using=self._using):
            votes.filter(event_id=event_id.value, voter_id=voter_id).delete()
            row = votes.create(
                event_id=event_id.value,
                candidate_id=candidate_id.value,
                voter_id=voter_id,
            )
        return _to_vote(row)

    def delete_vote(self, event_id: EventId, voter_id: str) -> bool:
        deleted, _ = (
            models.Vote.objects.using(self._using)
            .filter(event_id=event_id.value, voter_id=voter_id)
            .delete()
        )
        return deleted > 0

    def list_votes(self, event_id: EventId) -> list[Vote]:
        rows = (
            models.Vote.objects.using(self._using)
            .filter(event_id=event_id.value)
            .order_by("created_at")
        )
        return [_to_vote(row) for row in rows]

    def count_votes(self, event_id: EventId) -> dict[CandidateId, int]:
        rows = (
            models.Vote.objects.using(self._using)
            .filter(event_id=event_id.value)
            .values("candidate_id")
            .annotate(total=Count("id"))
        )
        return {CandidateId(row["candidate_id"]): row["total"] for row in rows}

    def clear_votes(self, event_id: EventId) -> int:
        deleted, _ = (
            models.Vote.objects.using(self._using)
            .filter(event_id=event_id.value)
            .delete()
        )
        return deleted
