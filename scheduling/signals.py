"""Django signals for the scheduling app.

Cache invalidation for the candidate listing, plus the event_scheduled
signal sent once an event's time is fixed.

Invalidation runs on commit of the writing transaction. Deleting the key
earlier would let a concurrent reader re-cache the pre-commit rows.
"""

from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from scheduling.cache import invalidate_candidates
from scheduling.models import CandidateTime, EventTransition, Vote

# Sent with event=<ScheduledEvent> after the scheduling transaction commits.
event_scheduled = Signal()


def _invalidate_after_commit(event_id, using=None) -> None:
    transaction.on_commit(partial(invalidate_candidates, event_id), using=using)


@receiver([post_save, post_delete], sender=CandidateTime)
def invalidate_candidate_cache(sender, instance, using=None, **kwargs):
    """Invalidate the listing when a candidate is proposed or retired."""
    _invalidate_after_commit(instance.event_id, using)


@receiver([post_save, post_delete], sender=Vote)
def invalidate_vote_cache(sender, instance, using=None, **kwargs):
    """Invalidate the listing when a vote is cast, replaced or retracted."""
    _invalidate_after_commit(instance.event_id, using)


@receiver(post_save, sender=EventTransition)
def invalidate_transition_cache(sender, instance, created, using=None, **kwargs):
    """Invalidate the listing when the event changes status."""
    if created:
        _invalidate_after_commit(instance.event_id, using)
