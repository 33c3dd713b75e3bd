"""
Stable Kernel Layer

Foundational pieces the engines and orchestration build on:
- Data models (applications, submissions, certificates, review log)
- Actor identity resolved from bearer tokens
- Capability sets per role
- Append-only review log
"""

from src.kernel.models import (
    Application,
    AuditLogEntry,
    Certificate,
    Cohort,
    Package,
    Submission,
    SubmissionStatus,
    Track,
)

__all__ = [
    "Application",
    "AuditLogEntry",
    "Certificate",
    "Cohort",
    "Package",
    "Submission",
    "SubmissionStatus",
    "Track",
]
