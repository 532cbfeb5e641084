"""Domain error codes for the scheduling engine."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_ID = "INVALID_ID"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    CANDIDATE_NOT_FOUND = "CANDIDATE_NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    INVALID_RANGE = "INVALID_RANGE"
    DUPLICATE_CANDIDATE = "DUPLICATE_CANDIDATE"
    NOT_CIRCLE_MEMBER = "NOT_CIRCLE_MEMBER"
    NOT_EVENT_OWNER = "NOT_EVENT_OWNER"
    CANDIDATE_HAS_VOTES = "CANDIDATE_HAS_VOTES"
    NO_CANDIDATES = "NO_CANDIDATES"
    NO_VOTES = "NO_VOTES"
    ALREADY_SCHEDULED = "ALREADY_SCHEDULED"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, field: str = "id") -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {field} format",
        )
        self.field = field


class EventNotFoundError(DomainError):
    """Raised when an event does not exist or has been deleted."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        self.event_id = event_id


class CandidateNotFoundError(DomainError):
    """Raised when a candidate does not exist or belongs to another event."""

    def __init__(self, candidate_id: str) -> None:
        super().__init__(
            code=ErrorCode.CANDIDATE_NOT_FOUND,
            message="Candidate time not found for this event",
        )
        self.candidate_id = candidate_id


class InvalidStateError(DomainError):
    """Raised when an operation is not valid for the event's current status."""

    def __init__(self, message: str = "Operation not allowed in the current event status") -> None:
        super().__init__(code=ErrorCode.INVALID_STATE, message=message)


class InvalidRangeError(DomainError):
    """Raised when a candidate's start is not before its end."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_RANGE,
            message="End time must be after start time",
        )


class DuplicateCandidateError(DomainError):
    """Raised when a candidate exactly duplicates an existing one."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_CANDIDATE,
            message="This time is already proposed for the event",
        )


class NotMemberError(DomainError):
    """Raised when a user is not a member of the event's circle."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NOT_CIRCLE_MEMBER,
            message="You are not a member of this circle",
        )


class NotOwnerError(DomainError):
    """Raised when a transition is requested by someone other than the organizer."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NOT_EVENT_OWNER,
            message="Only the event organizer can do this",
        )


class CandidateHasVotesError(DomainError):
    """Raised when removing a candidate that still has votes."""

    def __init__(self, candidate_id: str) -> None:
        super().__init__(
            code=ErrorCode.CANDIDATE_HAS_VOTES,
            message="Candidate time has votes and cannot be removed",
        )
        self.candidate_id = candidate_id


class NoCandidatesError(DomainError):
    """Raised when finalizing an event without candidate times."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NO_CANDIDATES,
            message="No time options available to finalize",
        )


class NoVotesError(DomainError):
    """Raised when finalizing an event that has not reached the vote quorum."""

    def __init__(self, required: int, received: int) -> None:
        super().__init__(
            code=ErrorCode.NO_VOTES,
            message="Not enough votes to finalize",
        )
        self.required = required
        self.received = received


class AlreadyScheduledError(DomainError):
    """Raised when locking or finalizing an event that is no longer a draft."""

    def __init__(self, status: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_SCHEDULED,
            message=f"Event is already {status}",
        )
        self.status = status
