from scheduling.handlers.views import (
    CandidateDetailView,
    CandidateListView,
    FinalizeView,
    LockView,
    ReopenView,
    VoteView,
)

__all__ = [
    "CandidateDetailView",
    "CandidateListView",
    "FinalizeView",
    "LockView",
    "ReopenView",
    "VoteView",
]
