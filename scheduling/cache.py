"""Cache keys for scheduling responses."""

from django.core.cache import cache


def candidates_cache_key(event_id) -> str:
    return f"events:{event_id}:candidates"


def invalidate_candidates(event_id) -> None:
    cache.delete(candidates_cache_key(event_id))
