"""
Progression service - the transactional core.

Each public mutation runs inside the caller's transaction: the submission
row, the application update, a conditional certificate and (for manual
reviews) the review log entry commit or roll back together. Notifications
are not sent here; they are returned as effects and delivered after commit.
"""

import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.engines.certificates.issuer import CertificateIssuer
from src.engines.certificates.renderer import CertificateRenderer
from src.kernel.events.review_log import ReviewLog
from src.kernel.models.application import (
    PAID_PACKAGES,
    Application,
    Package,
    Track,
    progress_for,
)
from src.kernel.models.base import utcnow
from src.kernel.models.certificate import Certificate
from src.kernel.models.cohort import Cohort
from src.kernel.models.submission import Submission, SubmissionStatus
from src.kernel.permissions.capabilities import Actor
from src.logging_config import get_logger
from src.notifications import messages
from src.notifications.effects import CertificateEmail, DirectMessage, Effect
from src.orchestration.errors import (
    ApplicationNotFound,
    CohortNotFound,
    DuplicateEnrollment,
    InvalidVerdict,
    NoActiveApplication,
    SubmissionNotFound,
)
from src.orchestration.state_machine import (
    ProgressionStateMachine,
    StageChange,
    Transition,
)

logger = get_logger(__name__)


@dataclass
class ProgressionOutcome:
    """What one committed progression step did, plus the notifications it owes."""

    submission: Submission
    application: Application
    transition: Transition
    certificate: Optional[Certificate] = None
    certificate_created: bool = False
    stale: bool = False
    effects: List[Effect] = field(default_factory=list)


@dataclass
class EnrollmentRequest:
    """A payment-confirmed (or free) enrollment."""

    cohort_id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    track: Track
    package: Package = Package.FREE
    slack_user_id: Optional[str] = None
    payment_reference: Optional[str] = None


def parse_verdict(value: Any) -> SubmissionStatus:
    try:
        return SubmissionStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in SubmissionStatus)
        raise InvalidVerdict(f"Unknown status '{value}'. Expected one of: {allowed}")


class ProgressionService:
    """
    Records submissions, reviews and enrollments.

    Usage:
        async with session_maker() as session:
            async with session.begin():
                service = ProgressionService(session)
                outcome = await service.record_submission(...)
        await dispatcher.dispatch(outcome.effects)
    """

    def __init__(
        self,
        session: AsyncSession,
        renderer: Optional[CertificateRenderer] = None,
        artifact_dir: Optional[str] = None,
    ):
        self.session = session
        self.issuer = CertificateIssuer(session, renderer=renderer, artifact_dir=artifact_dir)
        self.state_machine = ProgressionStateMachine(self.issuer)
        self.review_log = ReviewLog(session)

    # -- Lookups ---------------------------------------------------------

    async def find_active_application(self, actor_id: str) -> Optional[Application]:
        """Newest non-completed application for a messaging handle."""
        result = await self.session.execute(
            select(Application)
            .where(
                and_(
                    Application.slack_user_id == actor_id,
                    Application.completed.is_(False),
                )
            )
            .order_by(desc(Application.created_at))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_application(self, application_id: uuid.UUID) -> Application:
        application = await self.session.get(Application, application_id)
        if not application:
            raise ApplicationNotFound(f"Application {application_id} not found")
        return application

    async def get_submission(self, submission_id: uuid.UUID) -> Submission:
        submission = await self.session.get(Submission, submission_id)
        if not submission:
            raise SubmissionNotFound(f"Submission {submission_id} not found")
        return submission

    async def pending_queue(
        self,
        cohort_id: Optional[uuid.UUID] = None,
        limit: int = 100,
    ) -> List[Submission]:
        """Pending submissions, oldest first."""
        query = select(Submission).where(Submission.status == SubmissionStatus.PENDING.value)
        if cohort_id:
            query = query.where(Submission.cohort_id == cohort_id)
        query = query.order_by(Submission.created_at).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def submissions_by_actor(self, actor_id: str, limit: int = 100) -> List[Submission]:
        """An actor's submissions, newest first."""
        result = await self.session.execute(
            select(Submission)
            .where(Submission.actor_id == actor_id)
            .order_by(desc(Submission.created_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def _lock_application(self, application_id: uuid.UUID) -> Application:
        # FOR UPDATE serializes concurrent verdicts on one application
        result = await self.session.execute(
            select(Application)
            .where(Application.id == application_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        application = result.scalar_one_or_none()
        if not application:
            raise ApplicationNotFound(f"Application {application_id} not found")
        return application

    # -- Mutations -------------------------------------------------------

    async def record_submission(
        self,
        application_id: uuid.UUID,
        actor_id: str,
        actor_display_name: str,
        project_link: str,
        verdict: SubmissionStatus,
        feedback: str = "",
        score: Optional[int] = None,
        stage: Optional[int] = None,
    ) -> ProgressionOutcome:
        """
        Record an audited submission and apply its verdict.

        stage is the stage the link was audited against (default: the
        current stage). If the application has moved since, the row is
        recorded at that stage and the application is left unchanged.
        """
        verdict = parse_verdict(verdict)
        application = await self._lock_application(application_id)
        if application.completed:
            raise NoActiveApplication(actor_id)
        audited_stage = stage if stage is not None else application.current_stage
        stale = audited_stage != application.current_stage

        submission = Submission(
            application_id=application.id,
            cohort_id=application.cohort_id,
            actor_id=actor_id,
            actor_display_name=actor_display_name,
            project_link=project_link,
            stage=audited_stage,
            status=verdict.value,
            feedback=feedback or "",
            score=score,
        )
        self.session.add(submission)

        if stale:
            change = StageChange(
                transition=Transition(
                    from_stage=application.current_stage,
                    to_stage=application.current_stage,
                )
            )
            logger.info(
                "Stage moved during audit, application unchanged",
                extra={
                    "application_id": str(application.id),
                    "audited_stage": audited_stage,
                    "current_stage": application.current_stage,
                },
            )
        else:
            change = await self.state_machine.apply(application, verdict)
        await self.session.flush()

        outcome = self._outcome(submission, application, change, stale=stale)
        if stale:
            outcome.effects = [
                DirectMessage(
                    recipient=actor_id,
                    text=messages.stage_moved(
                        application.first_name,
                        audited_stage,
                        application.current_stage,
                        verdict.value,
                    ),
                )
            ]
        else:
            outcome.effects = self._effects_for(outcome, verdict, feedback, recipient=actor_id)
        logger.info(
            "Submission recorded",
            extra={
                "submission_id": str(submission.id),
                "application_id": str(application.id),
                "stage": submission.stage,
                "status": verdict.value,
                "score": score,
            },
        )
        return outcome

    async def review_submission(
        self,
        submission_id: uuid.UUID,
        status: Any,
        feedback: Optional[str],
        reviewer: Actor,
    ) -> ProgressionOutcome:
        """
        Apply a reviewer's verdict to a submission.

        The application only moves when the submission is for its current
        stage and the application is not completed; otherwise the review is
        stale and only the submission's status changes.
        """
        verdict = parse_verdict(status)
        submission = await self.get_submission(submission_id)
        application = await self._lock_application(submission.application_id)

        old_status = SubmissionStatus(submission.status).value
        submission.status = verdict.value
        if feedback is not None:
            submission.feedback = feedback
        submission.reviewed_by = reviewer.actor_id
        submission.reviewed_at = utcnow()

        await self.review_log.record(
            submission_id=submission.id,
            reviewer_id=reviewer.actor_id,
            old_status=old_status,
            new_status=verdict.value,
            feedback=submission.feedback,
        )

        stale = submission.stage != application.current_stage or application.completed
        if stale:
            change = StageChange(
                transition=Transition(
                    from_stage=application.current_stage,
                    to_stage=application.current_stage,
                )
            )
            logger.info(
                "Stale review, application unchanged",
                extra={
                    "submission_id": str(submission.id),
                    "submission_stage": submission.stage,
                    "current_stage": application.current_stage,
                },
            )
        else:
            change = await self.state_machine.apply(application, verdict)
        await self.session.flush()

        outcome = self._outcome(submission, application, change, stale=stale)
        outcome.effects = self._effects_for(
            outcome,
            verdict,
            submission.feedback,
            recipient=application.slack_user_id or submission.actor_id,
        )
        if verdict == SubmissionStatus.PENDING:
            # Moving a submission back to the queue is not announced
            outcome.effects = []
        logger.info(
            "Submission reviewed",
            extra={
                "submission_id": str(submission.id),
                "reviewer_id": reviewer.actor_id,
                "old_status": old_status,
                "new_status": verdict.value,
            },
        )
        return outcome

    async def override_stage(self, application_id: uuid.UUID, stage: int) -> Application:
        """Manually set a non-completed application's stage."""
        application = await self._lock_application(application_id)
        old_stage = application.current_stage
        self.state_machine.override_stage(application, stage)
        await self.session.flush()
        logger.info(
            "Stage overridden",
            extra={
                "application_id": str(application.id),
                "from_stage": old_stage,
                "to_stage": stage,
            },
        )
        return application

    async def enroll(self, request: EnrollmentRequest) -> Application:
        """Create an application at stage 1 for a confirmed enrollment."""
        cohort = await self.session.get(Cohort, request.cohort_id)
        if not cohort:
            raise CohortNotFound(f"Cohort {request.cohort_id} not found")

        email = request.email.strip().lower()
        existing = await self.session.execute(
            select(Application.id).where(
                and_(Application.email == email, Application.cohort_id == request.cohort_id)
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateEnrollment(f"{email} is already enrolled in this cohort")

        application = Application(
            cohort_id=request.cohort_id,
            first_name=request.first_name.strip(),
            last_name=request.last_name.strip(),
            email=email,
            slack_user_id=request.slack_user_id,
            track=Track(request.track).value,
            package=Package(request.package).value,
            payment_reference=request.payment_reference,
            current_stage=1,
            progress=progress_for(1),
        )
        self.session.add(application)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateEnrollment(f"{email} is already enrolled in this cohort") from e

        logger.info(
            "Application enrolled",
            extra={
                "application_id": str(application.id),
                "cohort_id": str(request.cohort_id),
                "package": application.package,
            },
        )
        return application

    async def stats(self, now=None) -> Dict[str, Any]:
        """Enrollment counts and paid conversion rate."""
        now = now or utcnow()
        total = await self._count()
        paid = await self._count(Application.package.in_([p.value for p in PAID_PACKAGES]))
        free = await self._count(Application.package == Package.FREE.value)
        new = await self._count(Application.created_at >= now - timedelta(days=7))
        return {
            "total": total,
            "paid": paid,
            "free": free,
            "new_last_7_days": new,
            "conversion_rate": round(paid / total * 100, 2) if total else 0.0,
        }

    async def _count(self, *criteria) -> int:
        query = select(func.count()).select_from(Application)
        if criteria:
            query = query.where(*criteria)
        result = await self.session.execute(query)
        return int(result.scalar_one())

    # -- Effects ---------------------------------------------------------

    @staticmethod
    def _outcome(
        submission: Submission,
        application: Application,
        change: StageChange,
        stale: bool = False,
    ) -> ProgressionOutcome:
        return ProgressionOutcome(
            submission=submission,
            application=application,
            transition=change.transition,
            certificate=change.certificate,
            certificate_created=change.certificate_created,
            stale=stale,
        )

    @staticmethod
    def _effects_for(
        outcome: ProgressionOutcome,
        verdict: SubmissionStatus,
        feedback: Optional[str],
        recipient: Optional[str],
    ) -> List[Effect]:
        application = outcome.application
        submission = outcome.submission
        name = application.first_name
        effects: List[Effect] = []

        if outcome.stale:
            if verdict != SubmissionStatus.PENDING:
                text = messages.review_updated(name, submission.stage, verdict.value, feedback)
            else:
                text = None
        elif outcome.transition.completes:
            text = messages.completed(
                name,
                Track(application.track).value,
                feedback,
                paid=application.is_paid,
                certificate_issued=outcome.certificate_created,
            )
        elif outcome.transition.advanced:
            text = messages.advanced(name, application.current_stage, application.progress, feedback)
        elif verdict == SubmissionStatus.NEEDS_REVISION:
            text = messages.needs_revision(name, submission.stage, feedback)
        elif verdict == SubmissionStatus.REJECTED:
            text = messages.rejected(name, submission.stage, feedback)
        elif verdict == SubmissionStatus.PENDING:
            text = messages.queued_for_review(name, submission.stage)
        else:
            text = None

        if text and recipient:
            effects.append(DirectMessage(recipient=recipient, text=text))

        if outcome.certificate_created and outcome.certificate:
            effects.append(
                CertificateEmail(
                    to_email=application.email,
                    recipient_name=outcome.certificate.recipient_name,
                    certificate_id=outcome.certificate.certificate_id,
                    track=outcome.certificate.track,
                    artifact_path=outcome.certificate.artifact_path,
                )
            )
        return effects
