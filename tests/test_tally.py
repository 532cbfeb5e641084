"""Unit tests for the tally engine.

Run with: pytest tests/test_tally.py -v
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from scheduling.domain import (
    CandidateId,
    CandidateTime,
    EventId,
    TallyPolicy,
    TieBreak,
    TimeRange,
)
from scheduling.domain.errors import NoCandidatesError, NoVotesError
from scheduling.domain.tally import decide, rank

EVENT = EventId(uuid.uuid4())
BASE = datetime(2026, 11, 2, 9, tzinfo=timezone.utc)


def candidate(start_hour: int, *, created_offset: int = 0, hours: int = 1) -> CandidateTime:
    start = BASE + timedelta(hours=start_hour)
    return CandidateTime(
        id=CandidateId(uuid.uuid4()),
        event_id=EVENT,
        time_range=TimeRange(start=start, end=start + timedelta(hours=hours)),
        created_at=BASE + timedelta(seconds=created_offset),
    )


class TestRank:
    """Tests for rank()."""

    def test_highest_count_wins(self):
        a, b = candidate(1), candidate(2)
        tally = rank([a, b], {a.id: 1, b.id: 3})
        assert tally.winner == b
        assert [e.votes for e in tally.entries] == [3, 1]
        assert [e.rank for e in tally.entries] == [1, 2]

    def test_tie_goes_to_earliest_start(self):
        """Given A(10) and B(10) with A earlier, A wins."""
        b = candidate(5, created_offset=0)
        a = candidate(1, created_offset=1)
        tally = rank([b, a], {a.id: 10, b.id: 10})
        assert tally.winner == a

    def test_same_start_falls_back_to_creation_order(self):
        """Identical starts with different ends resolve by creation order."""
        later = candidate(1, created_offset=5, hours=1)
        earlier = candidate(1, created_offset=2, hours=3)
        tally = rank([later, earlier], {later.id: 2, earlier.id: 2})
        assert tally.winner == earlier

    def test_creation_order_policy_ignores_start_time(self):
        first = candidate(8, created_offset=0)
        second = candidate(1, created_offset=1)
        policy = TallyPolicy(tie_break=TieBreak.CREATION_ORDER)
        tally = rank([second, first], {first.id: 4, second.id: 4}, policy)
        assert tally.winner == first

    def test_candidates_without_votes_count_zero(self):
        a, b = candidate(1), candidate(2)
        tally = rank([a, b], {})
        assert tally.total_votes == 0
        assert tally.leader is None
        assert tally.winner == a

    def test_counts_for_unknown_candidates_are_ignored(self):
        a = candidate(1)
        tally = rank([a], {a.id: 1, CandidateId(uuid.uuid4()): 7})
        assert tally.total_votes == 1

    def test_votes_for_and_audit(self):
        a, b = candidate(1), candidate(2)
        tally = rank([a, b], {b.id: 2})
        assert tally.votes_for(b.id) == 2
        assert tally.votes_for(a.id) == 0
        audit = tally.as_audit()
        assert audit["total_votes"] == 2
        assert audit["ranking"][0]["candidate_id"] == str(b.id)
        assert audit["ranking"][0]["start_time"] == b.start_time.isoformat()


class TestDecide:
    """Tests for decide()."""

    def test_no_candidates_raises(self):
        with pytest.raises(NoCandidatesError):
            decide([], {})

    def test_no_votes_raises_under_default_policy(self):
        a = candidate(1)
        with pytest.raises(NoVotesError) as excinfo:
            decide([a], {})
        assert excinfo.value.required == 1
        assert excinfo.value.received == 0

    def test_quorum_counts_all_votes(self):
        a, b = candidate(1), candidate(2)
        policy = TallyPolicy(min_votes=3)
        with pytest.raises(NoVotesError):
            decide([a, b], {a.id: 1, b.id: 1}, policy)
        assert decide([a, b], {a.id: 2, b.id: 1}, policy).winner == a

    def test_zero_quorum_picks_first_ranked_candidate(self):
        late, early = candidate(4), candidate(2)
        tally = decide([late, early], {}, TallyPolicy(min_votes=0))
        assert tally.winner == early

    def test_negative_quorum_rejected(self):
        with pytest.raises(ValueError):
            TallyPolicy(min_votes=-1)
