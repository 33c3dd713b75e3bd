"""
Pydantic schemas for API request/response validation.
"""

from src.schemas.application import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStats,
    StageOverride,
)
from src.schemas.certificate import CertificateVerification
from src.schemas.common import ErrorResponse, HealthResponse, SuccessResponse
from src.schemas.submission import (
    ReviewLogEntryResponse,
    ReviewResult,
    SubmissionAccepted,
    SubmissionCreate,
    SubmissionListResponse,
    SubmissionResponse,
    SubmissionReview,
)

__all__ = [
    "ApplicationCreate",
    "ApplicationResponse",
    "ApplicationStats",
    "StageOverride",
    "CertificateVerification",
    "ErrorResponse",
    "HealthResponse",
    "SuccessResponse",
    "ReviewLogEntryResponse",
    "ReviewResult",
    "SubmissionAccepted",
    "SubmissionCreate",
    "SubmissionListResponse",
    "SubmissionResponse",
    "SubmissionReview",
]
