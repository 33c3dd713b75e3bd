"""
Domain errors raised by the progression core.

Routers translate these into HTTP responses; nothing here knows about HTTP.
"""

from typing import Optional


class ProgressionError(Exception):
    """Base class for progression errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LinkRejected(ProgressionError):
    """The submitted link failed validation for the participant's track."""


class SubmissionInProgress(ProgressionError):
    """Another submission from the same actor is still being processed."""

    def __init__(self, actor_id: str):
        super().__init__(
            "Your previous submission is still being processed. Please wait a moment."
        )
        self.actor_id = actor_id


class NoActiveApplication(ProgressionError):
    """The actor has no non-completed application."""

    def __init__(self, actor_id: str):
        super().__init__(
            "We couldn't find an active internship application for your account."
        )
        self.actor_id = actor_id


class ApplicationNotFound(ProgressionError):
    """No application with the given id."""


class SubmissionNotFound(ProgressionError):
    """No submission with the given id."""


class InvalidVerdict(ProgressionError):
    """Unknown verdict, or a stage value outside the program."""


class DuplicateEnrollment(ProgressionError):
    """An application already exists for this email and cohort."""


class TransactionFailure(ProgressionError):
    """The progression transaction aborted; nothing was persisted."""

    def __init__(self, message: str = "A system error occurred. Please try again later.",
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class CohortNotFound(ProgressionError):
    """Enrollment references an unknown cohort."""
