"""Tally engine: ranks candidate times by votes.

Pure functions over a snapshot of candidates and raw vote counts. Nothing
here touches storage, so ranking is identical wherever it is computed.

Ranking order:
    1. highest vote count
    2. the policy's tie-break (earliest start time by default)
    3. earliest creation (created_at, then id)
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

from scheduling.domain.errors import NoCandidatesError, NoVotesError
from scheduling.domain.models import CandidateTime
from scheduling.domain.value_objects import CandidateId


class TieBreak(Enum):
    """How candidates with equal vote counts are ordered."""

    EARLIEST_START = "earliest_start"
    CREATION_ORDER = "creation_order"


@dataclass(frozen=True)
class TallyPolicy:
    """Rules for automatic finalization."""

    min_votes: int = 1
    tie_break: TieBreak = TieBreak.EARLIEST_START

    def __post_init__(self) -> None:
        if self.min_votes < 0:
            raise ValueError("min_votes cannot be negative")


DEFAULT_POLICY = TallyPolicy()


@dataclass(frozen=True)
class TallyEntry:
    """One candidate's place in a tally."""

    candidate: CandidateTime
    votes: int
    rank: int


@dataclass(frozen=True)
class Tally:
    """Ranked tally, best candidate first."""

    entries: tuple[TallyEntry, ...]

    @property
    def total_votes(self) -> int:
        return sum(entry.votes for entry in self.entries)

    @property
    def winner(self) -> CandidateTime | None:
        return self.entries[0].candidate if self.entries else None

    @property
    def leader(self) -> CandidateTime | None:
        """Current front-runner, or None while nobody has voted."""
        if not self.entries or self.entries[0].votes == 0:
            return None
        return self.entries[0].candidate

    def votes_for(self, candidate_id: CandidateId) -> int:
        for entry in self.entries:
            if entry.candidate.id == candidate_id:
                return entry.votes
        return 0

    def as_audit(self) -> dict:
        return {
            "total_votes": self.total_votes,
            "ranking": [
                {
                    "candidate_id": str(entry.candidate.id),
                    "start_time": entry.candidate.start_time.isoformat(),
                    "end_time": entry.candidate.end_time.isoformat(),
                    "votes": entry.votes,
                    "rank": entry.rank,
                }
                for entry in self.entries
            ],
        }


def _sort_key(policy: TallyPolicy, counts: Mapping[CandidateId, int]):
    def key(candidate: CandidateTime):
        creation = (candidate.created_at, str(candidate.id))
        if policy.tie_break is TieBreak.EARLIEST_START:
            return (-counts.get(candidate.id, 0), candidate.start_time, creation)
        return (-counts.get(candidate.id, 0), creation)

    return key


def rank(
    candidates: Iterable[CandidateTime],
    counts: Mapping[CandidateId, int],
    policy: TallyPolicy = DEFAULT_POLICY,
) -> Tally:
    """Rank candidates by votes. Counts for unknown candidates are ignored."""
    ordered = sorted(candidates, key=_sort_key(policy, counts))
    return Tally(
        entries=tuple(
            TallyEntry(candidate=c, votes=counts.get(c.id, 0), rank=position)
            for position, c in enumerate(ordered, start=1)
        )
    )


def decide(
    candidates: Iterable[CandidateTime],
    counts: Mapping[CandidateId, int],
    policy: TallyPolicy = DEFAULT_POLICY,
) -> Tally:
    """Rank candidates and check that a winner may be declared.

    Raises:
        NoCandidatesError: If there is nothing to choose from.
        NoVotesError: If fewer than policy.min_votes votes were cast.
    """
    tally = rank(candidates, counts, policy)
    if not tally.entries:
        raise NoCandidatesError()
    if tally.total_votes < policy.min_votes:
        raise NoVotesError(required=policy.min_votes, received=tally.total_votes)
    return tally
