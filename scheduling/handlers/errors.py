"""Mapping of domain errors to HTTP responses."""

from rest_framework import status
from rest_framework.response import Response

from scheduling.domain.errors import DomainError, ErrorCode

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CANDIDATE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DUPLICATE_CANDIDATE: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_CIRCLE_MEMBER: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_EVENT_OWNER: status.HTTP_403_FORBIDDEN,
    ErrorCode.CANDIDATE_HAS_VOTES: status.HTTP_409_CONFLICT,
    ErrorCode.NO_CANDIDATES: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NO_VOTES: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.ALREADY_SCHEDULED: status.HTTP_409_CONFLICT,
}


def error_response(error: DomainError) -> Response:
    return Response(
        {"error": {"code": error.code.value, "message": error.message}},
        status=STATUS_BY_CODE.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


def validation_response(errors) -> Response:
    return Response(
        {"error": {"code": "VALIDATION_FAILED", "message": "Invalid request", "fields": errors}},
        status=status.HTTP_400_BAD_REQUEST,
    )
