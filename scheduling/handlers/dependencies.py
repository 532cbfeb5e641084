"""Wiring of the coordinator for HTTP handlers."""

from django.conf import settings
from django.utils.module_loading import import_string

from scheduling.conf import get_scheduling_settings
from scheduling.services.collaborators import SignalRsvpNotifier
from scheduling.services.coordinator import SchedulingCoordinator
from scheduling.stores.django_store import DjangoSchedulingStore


def get_membership_checker():
    return import_string(settings.SCHEDULING_MEMBERSHIP_CHECKER)()


def get_coordinator() -> SchedulingCoordinator:
    engine = get_scheduling_settings()
    return SchedulingCoordinator(
        store=DjangoSchedulingStore(),
        membership=get_membership_checker(),
        rsvp=SignalRsvpNotifier(),
        policy=engine.tally_policy(),
        allow_reopen=engine.allow_reopen,
    )
