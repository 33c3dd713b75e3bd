"""Orchestration layer - progression state machine, intake pipeline, submission lock."""

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
from src.orchestration.progression_service import (
    EnrollmentRequest,
    ProgressionOutcome,
    ProgressionService,
)
from src.orchestration.state_machine import (
    ProgressionStateMachine,
    Transition,
    next_transition,
)
from src.orchestration.submission_intake import IntakeTicket, SubmissionIntakeService
from src.orchestration.submission_lock import (
    InMemoryKeyedLockStore,
    KeyedLockStore,
    SubmissionLock,
)

__all__ = [
    "ApplicationNotFound",
    "CohortNotFound",
    "DuplicateEnrollment",
    "InvalidVerdict",
    "LinkRejected",
    "NoActiveApplication",
    "ProgressionError",
    "SubmissionInProgress",
    "SubmissionNotFound",
    "TransactionFailure",
    "EnrollmentRequest",
    "ProgressionOutcome",
    "ProgressionService",
    "ProgressionStateMachine",
    "Transition",
    "next_transition",
    "IntakeTicket",
    "SubmissionIntakeService",
    "InMemoryKeyedLockStore",
    "KeyedLockStore",
    "SubmissionLock",
]
