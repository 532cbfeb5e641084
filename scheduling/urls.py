from django.urls import path

from scheduling.handlers import (
    CandidateDetailView,
    CandidateListView,
    FinalizeView,
    LockView,
    ReopenView,
    VoteView,
)

urlpatterns = [
    path(
        "events/<str:event_id>/candidates",
        CandidateListView.as_view(),
        name="candidate-list",
    ),
    path(
        "events/<str:event_id>/candidates/<str:candidate_id>",
        CandidateDetailView.as_view(),
        name="candidate-detail",
    ),
    path("events/<str:event_id>/vote", VoteView.as_view(), name="event-vote"),
    path("events/<str:event_id>/lock", LockView.as_view(), name="event-lock"),
    path("events/<str:event_id>/finalize", FinalizeView.as_view(), name="event-finalize"),
    path("events/<str:event_id>/reopen", ReopenView.as_view(), name="event-reopen"),
]
