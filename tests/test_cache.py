"""Tests for the cached candidate listing and its signal-driven invalidation.

Run with: pytest tests/test_cache.py -v
"""

import uuid

import pytest
from django.core.cache import cache
from django.db import transaction
from django.urls import reverse
from django.utils import timezone

from scheduling import models
from scheduling.cache import candidates_cache_key
from scheduling.domain import CircleId
from scheduling.services.collaborators import RecordingRsvpNotifier, StaticMembership
from scheduling.services.coordinator import SchedulingCoordinator
from scheduling.stores.django_store import DjangoSchedulingStore

pytestmark = pytest.mark.django_db

CIRCLE = uuid.UUID("5a9c3e71-8d24-4f0b-b6e2-93d17c4a0e85")


@pytest.fixture
def member(django_user_model):
    return django_user_model.objects.create_user(username="member", password="pw")


@pytest.fixture
def coordinator_for_api(monkeypatch, member):
    coordinator = SchedulingCoordinator(
        store=DjangoSchedulingStore(),
        membership=StaticMembership({CircleId(CIRCLE): [str(member.pk)]}),
        rsvp=RecordingRsvpNotifier(),
    )
    monkeypatch.setattr("scheduling.handlers.views.get_coordinator", lambda: coordinator)
    return coordinator


@pytest.fixture
def event_row(member) -> models.Event:
    return models.Event.objects.create(circle_id=CIRCLE, owner_id=str(member.pk), title="Quiz")


@pytest.fixture
def member_client(api_client, member, coordinator_for_api):
    api_client.force_authenticate(user=member)
    return api_client


@pytest.fixture
def candidate(event_row, slot) -> models.CandidateTime:
    start, end = slot(2, 10)
    return models.CandidateTime.objects.create(event=event_row, start_time=start, end_time=end)


def _listing(member_client, event_id):
    return member_client.get(reverse("candidate-list", kwargs={"event_id": str(event_id)}))


class TestCandidateListingCache:
    """Tests for caching GET /api/events/{event_id}/candidates"""

    def test_listing_is_cached(self, member_client, event_row, candidate):
        assert len(_listing(member_client, event_row.id).data["candidates"]) == 1
        assert cache.get(candidates_cache_key(event_row.id)) is not None

        # queryset.update() sends no signals, so the cached listing is served
        models.CandidateTime.objects.filter(pk=candidate.pk).update(deleted_at=timezone.now())
        assert len(_listing(member_client, event_row.id).data["candidates"]) == 1

    def test_new_candidate_invalidates(
        self, member_client, event_row, candidate, slot, django_capture_on_commit_callbacks
    ):
        _listing(member_client, event_row.id)
        start, end = slot(3, 10)
        with django_capture_on_commit_callbacks(execute=True):
            models.CandidateTime.objects.create(event=event_row, start_time=start, end_time=end)
        assert cache.get(candidates_cache_key(event_row.id)) is None
        assert len(_listing(member_client, event_row.id).data["candidates"]) == 2

    def test_vote_invalidates(
        self, member_client, member, event_row, candidate, django_capture_on_commit_callbacks
    ):
        _listing(member_client, event_row.id)
        with django_capture_on_commit_callbacks(execute=True):
            models.Vote.objects.create(
                event=event_row, candidate=candidate, voter_id=str(member.pk)
            )
        listing = _listing(member_client, event_row.id).data
        assert listing["candidates"][0]["votes"] == 1

    def test_retracted_vote_invalidates(
        self, member_client, member, event_row, candidate, django_capture_on_commit_callbacks
    ):
        vote = models.Vote.objects.create(
            event=event_row, candidate=candidate, voter_id=str(member.pk)
        )
        assert _listing(member_client, event_row.id).data["candidates"][0]["votes"] == 1
        with django_capture_on_commit_callbacks(execute=True):
            vote.delete()
        assert _listing(member_client, event_row.id).data["candidates"][0]["votes"] == 0

    def test_transition_invalidates(
        self, member_client, member, event_row, candidate, django_capture_on_commit_callbacks
    ):
        _listing(member_client, event_row.id)
        models.Event.objects.filter(pk=event_row.pk).update(
            status="locked", starts_at=candidate.start_time, ends_at=candidate.end_time
        )
        with django_capture_on_commit_callbacks(execute=True):
            models.EventTransition.objects.create(
                event=event_row, from_status="draft", to_status="locked", actor_id=str(member.pk)
            )
        assert _listing(member_client, event_row.id).data["event"]["status"] == "locked"

    def test_other_events_keep_their_cache(
        self, member_client, member, event_row, candidate, slot, django_capture_on_commit_callbacks
    ):
        other = models.Event.objects.create(circle_id=CIRCLE, owner_id=str(member.pk), title="Other")
        _listing(member_client, event_row.id)
        _listing(member_client, other.id)

        start, end = slot(4, 10)
        with django_capture_on_commit_callbacks(execute=True):
            models.CandidateTime.objects.create(event=other, start_time=start, end_time=end)
        assert cache.get(candidates_cache_key(event_row.id)) is not None
        assert cache.get(candidates_cache_key(other.id)) is None


class TestCacheKeys:
    """The listing shares one cache entry however the event id is spelled."""

    def test_uppercase_id_uses_canonical_key(self, member_client, event_row, candidate):
        response = _listing(member_client, str(event_row.id).upper())
        assert response.status_code == 200
        assert cache.get(candidates_cache_key(event_row.id)) is not None
        assert cache.get(candidates_cache_key(str(event_row.id).upper())) is None

    def test_vote_invalidates_uppercase_listing(
        self, member_client, member, event_row, candidate, django_capture_on_commit_callbacks
    ):
        upper = str(event_row.id).upper()
        assert _listing(member_client, upper).data["candidates"][0]["votes"] == 0

        with django_capture_on_commit_callbacks(execute=True):
            models.Vote.objects.create(
                event=event_row, candidate=candidate, voter_id=str(member.pk)
            )
        assert _listing(member_client, upper).data["candidates"][0]["votes"] == 1


class TestInvalidationTiming:
    """Invalidation happens once the writing transaction commits."""

    def test_key_survives_until_commit(
        self, member_client, member, event_row, candidate, django_capture_on_commit_callbacks
    ):
        _listing(member_client, event_row.id)
        key = candidates_cache_key(event_row.id)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            models.Vote.objects.create(
                event=event_row, candidate=candidate, voter_id=str(member.pk)
            )
            assert cache.get(key) is not None

        assert len(callbacks) == 1
        assert cache.get(key) is None

    def test_rolled_back_write_keeps_cache(self, member_client, member, event_row, candidate):
        _listing(member_client, event_row.id)
        key = candidates_cache_key(event_row.id)

        with pytest.raises(RuntimeError), transaction.atomic():
            models.Vote.objects.create(
                event=event_row, candidate=candidate, voter_id=str(member.pk)
            )
            raise RuntimeError("abort")

        assert cache.get(key) is not None
        assert _listing(member_client, event_row.id).data["candidates"][0]["votes"] == 0
