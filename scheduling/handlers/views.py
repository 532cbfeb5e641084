"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call the coordinator for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

from django.core.cache import cache
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from scheduling.cache import candidates_cache_key
from scheduling.conf import get_scheduling_settings
from scheduling.domain.errors import DomainError
from scheduling.handlers.dependencies import get_coordinator
from scheduling.handlers.errors import error_response, validation_response
from scheduling.handlers.serializers import (
    CandidateChoiceSerializer,
    CandidateListingSerializer,
    CandidateTimeSerializer,
    EventSerializer,
    FinalizeResultSerializer,
    ProposeTimeSerializer,
    VoteReceiptSerializer,
)


def _actor(request: Request) -> str:
    return str(request.user.pk)


class SchedulingView(APIView):
    """Turns DomainError into the error response for every handler."""

    def handle_exception(self, exc):
        if isinstance(exc, DomainError):
            return error_response(exc)
        return super().handle_exception(exc)


class CandidateListView(SchedulingView):
    """Handler for GET/POST /api/events/{event_id}/candidates"""

    def get(self, request: Request, event_id: str) -> Response:
        coordinator = get_coordinator()
        event = coordinator.ensure_can_view(event_id, _actor(request))

        # keyed on the parsed id so every spelling of the UUID shares one entry
        key = candidates_cache_key(event.id)
        data = cache.get(key)
        if data is None:
            listing = coordinator.list_candidates_with_tally(event.id, _actor(request))
            data = CandidateListingSerializer(listing).data
            cache.set(key, data, get_scheduling_settings().candidates_cache_seconds)
        return Response(data)

    def post(self, request: Request, event_id: str) -> Response:
        serializer = ProposeTimeSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer.errors)
        candidate = get_coordinator().propose_time(
            event_id,
            _actor(request),
            serializer.validated_data["start_time"],
            serializer.validated_data["end_time"],
        )
        return Response(CandidateTimeSerializer(candidate).data, status=status.HTTP_201_CREATED)


class CandidateDetailView(SchedulingView):
    """Handler for DELETE /api/events/{event_id}/candidates/{candidate_id}"""

    def delete(self, request: Request, event_id: str, candidate_id: str) -> Response:
        get_coordinator().remove_candidate(event_id, candidate_id, _actor(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class VoteView(SchedulingView):
    """Handler for POST/DELETE /api/events/{event_id}/vote"""

    def post(self, request: Request, event_id: str) -> Response:
        serializer = CandidateChoiceSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer.errors)
        receipt = get_coordinator().vote(
            event_id, serializer.validated_data["candidate_id"], _actor(request)
        )
        return Response(VoteReceiptSerializer(receipt).data)

    def delete(self, request: Request, event_id: str) -> Response:
        get_coordinator().retract_vote(event_id, _actor(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class LockView(SchedulingView):
    """Handler for POST /api/events/{event_id}/lock"""

    def post(self, request: Request, event_id: str) -> Response:
        serializer = CandidateChoiceSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer.errors)
        event = get_coordinator().lock_event(
            event_id, serializer.validated_data["candidate_id"], _actor(request)
        )
        return Response(EventSerializer(event).data)


class FinalizeView(SchedulingView):
    """Handler for POST /api/events/{event_id}/finalize"""

    def post(self, request: Request, event_id: str) -> Response:
        event, tally = get_coordinator().finalize_event(event_id, _actor(request))
        return Response(FinalizeResultSerializer({"event": event, "tally": tally}).data)


class ReopenView(SchedulingView):
    """Handler for POST /api/events/{event_id}/reopen"""

    def post(self, request: Request, event_id: str) -> Response:
        event = get_coordinator().reopen_event(event_id, _actor(request))
        return Response(EventSerializer(event).data)
