"""
Kernel Data Models

SQLAlchemy models for enrollments, submissions, certificates and the review log.
"""

from src.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from src.kernel.models.cohort import Cohort
from src.kernel.models.application import (
    Application,
    Package,
    Track,
    TrackFamily,
    MANUAL_REVIEW_PACKAGES,
    PAID_PACKAGES,
    TOTAL_STAGES,
    is_paid,
    progress_for,
    track_family,
)
from src.kernel.models.submission import Submission, SubmissionStatus
from src.kernel.models.certificate import Certificate
from src.kernel.models.audit_log import AuditAction, AuditLogEntry

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # Enrollment
    "Cohort",
    "Application",
    "Package",
    "Track",
    "TrackFamily",
    "MANUAL_REVIEW_PACKAGES",
    "PAID_PACKAGES",
    "TOTAL_STAGES",
    "is_paid",
    "progress_for",
    "track_family",
    # Submissions
    "Submission",
    "SubmissionStatus",
    # Certificates
    "Certificate",
    # Review log
    "AuditAction",
    "AuditLogEntry",
]
