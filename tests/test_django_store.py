"""Integration tests for the Django ORM store.

Run with: pytest tests/test_django_store.py -v
"""

import uuid

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from scheduling import models
from scheduling.domain import (
    CircleId,
    DraftEvent,
    EventId,
    EventStatus,
    ScheduledEvent,
    TimeRange,
)
from scheduling.domain.errors import CandidateHasVotesError, DuplicateCandidateError
from scheduling.services.collaborators import SignalRsvpNotifier, StaticMembership
from scheduling.services.coordinator import SchedulingCoordinator
from scheduling.signals import event_scheduled
from scheduling.stores.django_store import DjangoSchedulingStore

pytestmark = pytest.mark.django_db

CIRCLE = uuid.UUID("0b7f6d9e-54a1-4c38-8f63-7a1f9b2c4d10")


@pytest.fixture
def db_store() -> DjangoSchedulingStore:
    return DjangoSchedulingStore()


@pytest.fixture
def event_row() -> models.Event:
    return models.Event.objects.create(circle_id=CIRCLE, owner_id="owner-1", title="Hike")


@pytest.fixture
def event_id(event_row) -> EventId:
    return EventId(event_row.id)


def _range(slot, day, hour, minutes=60) -> TimeRange:
    start, end = slot(day, hour, minutes)
    return TimeRange(start=start, end=end)


class TestEvents:
    """Tests for event reads and conditional transitions."""

    def test_draft_row_maps_to_draft_event(self, db_store, event_id):
        event = db_store.get_event(event_id)
        assert isinstance(event, DraftEvent)
        assert event.circle_id.value == CIRCLE
        assert event.owner_id == "owner-1"

    def test_soft_deleted_event_is_invisible(self, db_store, event_row, event_id):
        event_row.deleted_at = timezone.now()
        event_row.save()
        assert db_store.get_event(event_id) is None
        assert db_store.get_event(EventId(uuid.uuid4())) is None

    def test_transition_sets_schedule(self, db_store, event_row, event_id, slot):
        schedule = _range(slot, 2, 10)
        assert db_store.transition_event(
            event_id, expected=EventStatus.DRAFT, target=EventStatus.LOCKED, schedule=schedule
        )
        event_row.refresh_from_db()
        assert event_row.status == "locked"
        assert (event_row.starts_at, event_row.ends_at) == (schedule.start, schedule.end)

        event = db_store.get_event(event_id)
        assert isinstance(event, ScheduledEvent)
        assert event.schedule == schedule

    def test_transition_with_stale_status_is_refused(self, db_store, event_row, event_id, slot):
        schedule = _range(slot, 2, 10)
        db_store.transition_event(
            event_id, expected=EventStatus.DRAFT, target=EventStatus.FINALIZED, schedule=schedule
        )
        assert not db_store.transition_event(
            event_id,
            expected=EventStatus.DRAFT,
            target=EventStatus.LOCKED,
            schedule=_range(slot, 3, 10),
        )
        event_row.refresh_from_db()
        assert event_row.status == "finalized"
        assert event_row.starts_at == schedule.start

    def test_schedule_without_times_violates_constraint(self, event_row):
        event_row.status = models.Event.Status.LOCKED
        with pytest.raises(IntegrityError), transaction.atomic():
            event_row.save()


class TestCandidates:
    """Tests for candidate rows."""

    def test_list_orders_by_start(self, db_store, event_id, slot):
        tuesday = db_store.add_candidate(event_id, _range(slot, 3, 9))
        monday = db_store.add_candidate(event_id, _range(slot, 2, 18))
        assert db_store.list_candidates(event_id) == [monday, tuesday]

    def test_retired_candidate_hidden(self, db_store, event_id, slot):
        candidate = db_store.add_candidate(event_id, _range(slot, 2, 10))
        db_store.retire_candidate(candidate.id, timezone.now())
        assert db_store.get_candidate(candidate.id) is None
        assert db_store.list_candidates(event_id) == []
        assert models.CandidateTime.objects.filter(pk=candidate.id.value).exists()

    def test_duplicate_active_range_violates_constraint(self, db_store, event_id, slot):
        db_store.add_candidate(event_id, _range(slot, 2, 10))
        with pytest.raises(IntegrityError), transaction.atomic():
            db_store.add_candidate(event_id, _range(slot, 2, 10))

    def test_inverted_range_violates_constraint(self, event_row, slot):
        start, end = slot(2, 10)
        with pytest.raises(IntegrityError), transaction.atomic():
            models.CandidateTime.objects.create(event=event_row, start_time=end, end_time=start)


class TestVotes:
    """Tests for vote rows."""

    def test_replace_keeps_single_row(self, db_store, event_id, slot):
        first = db_store.add_candidate(event_id, _range(slot, 2, 10))
        second = db_store.add_candidate(event_id, _range(slot, 3, 10))
        db_store.replace_vote(event_id, first.id, "voter-1")
        vote = db_store.replace_vote(event_id, second.id, "voter-1")

        assert models.Vote.objects.filter(event_id=event_id.value).count() == 1
        assert db_store.list_votes(event_id) == [vote]
        assert db_store.candidate_has_votes(second.id)
        assert not db_store.candidate_has_votes(first.id)

    def test_database_rejects_second_row_per_voter(self, db_store, event_row, event_id, slot):
        candidate = db_store.add_candidate(event_id, _range(slot, 2, 10))
        db_store.replace_vote(event_id, candidate.id, "voter-1")
        with pytest.raises(IntegrityError), transaction.atomic():
            models.Vote.objects.create(
                event=event_row, candidate_id=candidate.id.value, voter_id="voter-1"
            )

    def test_count_and_clear(self, db_store, event_id, slot):
        first = db_store.add_candidate(event_id, _range(slot, 2, 10))
        second = db_store.add_candidate(event_id, _range(slot, 3, 10))
        for voter in ("voter-1", "voter-2"):
            db_store.replace_vote(event_id, first.id, voter)
        db_store.replace_vote(event_id, second.id, "voter-3")

        assert db_store.count_votes(event_id) == {first.id: 2, second.id: 1}
        assert db_store.delete_vote(event_id, "voter-3") is True
        assert db_store.delete_vote(event_id, "voter-3") is False
        assert db_store.clear_votes(event_id) == 2
        assert db_store.count_votes(event_id) == {}


class TestCoordinatorOnDatabase:
    """The coordinator wired to the ORM store."""

    @pytest.fixture
    def db_coordinator(self, db_store) -> SchedulingCoordinator:
        membership = StaticMembership(
            {CircleId(CIRCLE): ("owner-1", "voter-1", "voter-2", "voter-3")}
        )
        return SchedulingCoordinator(
            store=db_store, membership=membership, rsvp=SignalRsvpNotifier()
        )

    def test_finalize_writes_audit_and_signals_after_commit(
        self, db_coordinator, event_row, event_id, slot, django_capture_on_commit_callbacks
    ):
        received = []

        def on_scheduled(sender, event, **kwargs):
            received.append(event)

        event_scheduled.connect(on_scheduled)
        try:
            monday = db_coordinator.propose_time(event_id, "owner-1", *slot(2, 10))
            tuesday = db_coordinator.propose_time(event_id, "voter-1", *slot(3, 14))
            db_coordinator.vote(event_id, monday.id, "voter-1")
            db_coordinator.vote(event_id, monday.id, "voter-2")
            db_coordinator.vote(event_id, tuesday.id, "voter-3")

            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                event, _ = db_coordinator.finalize_event(event_id, "owner-1")
        finally:
            event_scheduled.disconnect(on_scheduled)

        assert len(callbacks) == 1
        assert received == [event]

        event_row.refresh_from_db()
        assert event_row.status == "finalized"
        assert event_row.starts_at == monday.start_time

        transition = models.EventTransition.objects.get(event=event_row)
        assert (transition.from_status, transition.to_status) == ("draft", "finalized")
        assert transition.actor_id == "owner-1"
        assert transition.candidate_id == monday.id.value
        assert transition.detail["total_votes"] == 3

    def test_rejected_proposal_leaves_no_rows(self, db_coordinator, event_id, slot):
        db_coordinator.propose_time(event_id, "voter-1", *slot(2, 10))
        with pytest.raises(DuplicateCandidateError):
            db_coordinator.propose_time(event_id, "voter-2", *slot(2, 10))
        assert models.CandidateTime.objects.filter(event_id=event_id.value).count() == 1

    def test_removing_candidate_with_votes_keeps_it(self, db_coordinator, event_id, slot):
        candidate = db_coordinator.propose_time(event_id, "voter-1", *slot(2, 10))
        db_coordinator.vote(event_id, candidate.id, "voter-2")
        with pytest.raises(CandidateHasVotesError):
            db_coordinator.remove_candidate(event_id, candidate.id, "voter-1")
        listing = db_coordinator.list_candidates_with_tally(event_id, "voter-1")
        assert listing.candidates == (candidate,)

