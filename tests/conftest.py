"""Pytest configuration and shared fixtures."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from rest_framework.test import APIClient

from scheduling.domain import CircleId
from scheduling.services.collaborators import RecordingRsvpNotifier, StaticMembership
from scheduling.services.coordinator import SchedulingCoordinator
from scheduling.stores.memory_store import InMemorySchedulingStore

CIRCLE_ID = CircleId(uuid.UUID("6f1c1d52-2f55-4a0e-9b53-2c3a3f0c8a11"))
OWNER = "owner-1"
MEMBERS = (OWNER, "voter-1", "voter-2", "voter-3")


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def slot():
    """Build (start, end) for a one hour slot: slot(day, hour) in November 2026.

    2 November 2026 is a Monday.
    """

    def build(day: int, hour: int, minutes: int = 60) -> tuple[datetime, datetime]:
        start = datetime(2026, 11, day, hour, tzinfo=timezone.utc)
        return start, start + timedelta(minutes=minutes)

    return build


@pytest.fixture
def store() -> InMemorySchedulingStore:
    return InMemorySchedulingStore()


@pytest.fixture
def membership() -> StaticMembership:
    return StaticMembership({CIRCLE_ID: MEMBERS})


@pytest.fixture
def rsvp() -> RecordingRsvpNotifier:
    return RecordingRsvpNotifier()


@pytest.fixture
def coordinator(store, membership, rsvp) -> SchedulingCoordinator:
    return SchedulingCoordinator(store=store, membership=membership, rsvp=rsvp)


@pytest.fixture
def draft_event(store):
    return store.create_event(circle_id=CIRCLE_ID, owner_id=OWNER, title="Board games")
