"""
State machine for Application stage progression.

States are Stage 1..8 plus the terminal Completed state. Only an Accepted
verdict moves an application; every other verdict leaves it where it is.
Transition rules are pure; ProgressionStateMachine applies them to a
loaded Application inside the caller's transaction.
"""

from dataclasses import dataclass
from typing import Optional

from src.engines.certificates.issuer import CertificateIssuer
from src.kernel.models.application import TOTAL_STAGES, Application, progress_for
from src.kernel.models.base import utcnow
from src.kernel.models.certificate import Certificate
from src.kernel.models.submission import SubmissionStatus
from src.logging_config import get_logger
from src.orchestration.errors import InvalidVerdict

logger = get_logger(__name__)


@dataclass(frozen=True)
class Transition:
    """Effect of one verdict on an application's stage."""

    from_stage: int
    to_stage: int
    advanced: bool = False
    completes: bool = False
    counts_task: bool = False

    @property
    def changed(self) -> bool:
        return self.advanced or self.completes


def next_transition(current_stage: int, completed: bool, verdict: SubmissionStatus) -> Transition:
    """
    Transition for a verdict at the given stage.

    - Accepted at stage < 8: advance one stage
    - Accepted at stage 8: complete the program
    - Anything else, or an already completed application: no change
    """
    verdict = SubmissionStatus(verdict)
    if not 1 <= current_stage <= TOTAL_STAGES:
        raise InvalidVerdict(f"Stage must be between 1 and {TOTAL_STAGES}, got {current_stage}")
    if completed or verdict != SubmissionStatus.ACCEPTED:
        return Transition(from_stage=current_stage, to_stage=current_stage)
    if current_stage < TOTAL_STAGES:
        return Transition(
            from_stage=current_stage,
            to_stage=current_stage + 1,
            advanced=True,
            counts_task=True,
        )
    return Transition(
        from_stage=current_stage,
        to_stage=current_stage,
        completes=True,
        counts_task=True,
    )


@dataclass
class StageChange:
    """Result of applying a verdict to an application."""

    transition: Transition
    certificate: Optional[Certificate] = None
    certificate_created: bool = False


class ProgressionStateMachine:
    """Applies verdicts to applications. The caller owns the transaction."""

    def __init__(self, issuer: CertificateIssuer):
        self.issuer = issuer

    async def apply(self, application: Application, verdict: SubmissionStatus) -> StageChange:
        """Mutate the application for a verdict at its current stage."""
        transition = next_transition(application.current_stage, application.completed, verdict)
        change = StageChange(transition=transition)

        if transition.counts_task:
            application.completed_tasks = (application.completed_tasks or 0) + 1

        if transition.advanced:
            application.current_stage = transition.to_stage
            application.progress = progress_for(transition.to_stage)

        if transition.completes:
            application.completed = True
            application.progress = progress_for(TOTAL_STAGES, completed=True)
            application.completed_at = utcnow()
            if application.is_paid:
                change.certificate, change.certificate_created = await self.issuer.issue(application)

        if transition.changed:
            logger.info(
                "Application progressed",
                extra={
                    "application_id": str(application.id),
                    "from_stage": transition.from_stage,
                    "to_stage": transition.to_stage,
                    "completed": application.completed,
                },
            )
        return change

    @staticmethod
    def override_stage(application: Application, stage: int) -> None:
        """Set the stage of a non-completed application directly."""
        if not 1 <= stage <= TOTAL_STAGES:
            raise InvalidVerdict(f"Stage must be between 1 and {TOTAL_STAGES}, got {stage}")
        if application.completed:
            raise InvalidVerdict("Completed applications cannot change stage")
        application.current_stage = stage
        application.progress = progress_for(stage)
