"""
Translation of domain errors into HTTP responses.
"""

from fastapi import HTTPException, status

from src.orchestration.errors import (
    ApplicationNotFound,
    CohortNotFound,
    DuplicateEnrollment,
    InvalidVerdict,
    LinkRejected,
    NoActiveApplication,
    ProgressionError,
    SubmissionInProgress,
    SubmissionNotFound,
    TransactionFailure,
)

_STATUS_BY_ERROR = {
    LinkRejected: status.HTTP_400_BAD_REQUEST,
    InvalidVerdict: status.HTTP_400_BAD_REQUEST,
    NoActiveApplication: status.HTTP_404_NOT_FOUND,
    ApplicationNotFound: status.HTTP_404_NOT_FOUND,
    SubmissionNotFound: status.HTTP_404_NOT_FOUND,
    CohortNotFound: status.HTTP_404_NOT_FOUND,
    SubmissionInProgress: status.HTTP_409_CONFLICT,
    DuplicateEnrollment: status.HTTP_409_CONFLICT,
    TransactionFailure: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_error(exc: ProgressionError) -> HTTPException:
    """HTTPException for a domain error; unknown subclasses become 400."""
    code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=exc.message)
