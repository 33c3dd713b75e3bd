"""
Submission intake pipeline.

accept() runs inside the request: it finds the actor's application,
validates the link and takes the per-actor lock, so rejections are
immediate. process() runs after the response: audit, one progression
transaction, then notifications. The lock is always released.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.engines.audit.audit_engine import AuditEngine
from src.engines.certificates.renderer import CertificateRenderer, CertificateRenderError
from src.engines.validation.link_validator import validate_link
from src.kernel.models.application import Package, Track
from src.logging_config import actor_id_var, get_logger
from src.notifications.dispatcher import NotificationDispatcher
from src.notifications.effects import DirectMessage
from src.notifications.messages import SYSTEM_ERROR_MESSAGE
from src.orchestration.errors import (
    LinkRejected,
    NoActiveApplication,
    ProgressionError,
    TransactionFailure,
)
from src.orchestration.progression_service import ProgressionOutcome, ProgressionService
from src.orchestration.submission_lock import SubmissionLock

logger = get_logger(__name__)


@dataclass(frozen=True)
class IntakeTicket:
    """An accepted submission waiting for audit."""

    actor_id: str
    actor_display_name: str
    project_link: str
    application_id: uuid.UUID
    track: Track
    package: Package
    stage: int
    lock_token: str = ""
    warning: Optional[str] = None

    @property
    def message(self) -> str:
        return (
            f"Submission received! We're reviewing your Stage {self.stage} project now. "
            "You'll get a direct message with the result shortly."
        )


class SubmissionIntakeService:
    """
    Usage:
        intake = SubmissionIntakeService(session_maker, lock, audit_engine, dispatcher)
        ticket = await intake.accept(actor_id, display_name, link)
        background_tasks.add_task(intake.process, ticket)
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        lock: SubmissionLock,
        audit_engine: AuditEngine,
        dispatcher: NotificationDispatcher,
        renderer: Optional[CertificateRenderer] = None,
        artifact_dir: Optional[str] = None,
    ):
        self.session_maker = session_maker
        self.lock = lock
        self.audit_engine = audit_engine
        self.dispatcher = dispatcher
        self.renderer = renderer
        self.artifact_dir = artifact_dir

    async def accept(self, actor_id: str, actor_display_name: str, link: str) -> IntakeTicket:
        """
        Gate a submission. Raises NoActiveApplication, LinkRejected or
        SubmissionInProgress; nothing is persisted on any of them.
        """
        async with self.session_maker() as session:
            application = await ProgressionService(session).find_active_application(actor_id)
            if not application:
                raise NoActiveApplication(actor_id)
            track = Track(application.track)
            ticket_fields = dict(
                application_id=application.id,
                track=track,
                package=Package(application.package),
                stage=application.current_stage,
            )

        validation = validate_link(link, track)
        if not validation.valid:
            raise LinkRejected(validation.error or "Invalid project link.")

        lock_token = self.lock.acquire(actor_id)
        logger.info(
            "Submission accepted for audit",
            extra={"actor_id": actor_id, "stage": ticket_fields["stage"], "track": track.value},
        )
        return IntakeTicket(
            actor_id=actor_id,
            actor_display_name=actor_display_name or actor_id,
            project_link=validation.normalized_link or link.strip(),
            warning=validation.warning,
            lock_token=lock_token,
            **ticket_fields,
        )

    async def process(self, ticket: IntakeTicket) -> Optional[ProgressionOutcome]:
        """
        Audit, record and notify. Returns None when nothing was recorded;
        the actor then gets the system-error message instead of a verdict.
        """
        actor_token = actor_id_var.set(ticket.actor_id)
        try:
            result = await self.audit_engine.audit(
                ticket.project_link,
                ticket.track,
                ticket.stage,
                ticket.package,
            )
            verdict = self.audit_engine.verdict_for(result)

            try:
                outcome = await self._record(ticket, verdict, result.feedback, result.score)
            except TransactionFailure as e:
                logger.error(
                    "Submission transaction failed",
                    extra={"actor_id": ticket.actor_id, "error": repr(e.cause)},
                )
                await self._send_system_error(ticket)
                return None

            await self.dispatcher.dispatch(outcome.effects)
            return outcome
        except Exception:
            # Runs after the 202; the actor must still hear back
            logger.exception("Submission pipeline crashed", extra={"actor_id": ticket.actor_id})
            await self._send_system_error(ticket)
            return None
        finally:
            self.lock.release(ticket.actor_id, ticket.lock_token)
            actor_id_var.reset(actor_token)

    async def _record(self, ticket: IntakeTicket, verdict, feedback: str, score) -> ProgressionOutcome:
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    service = ProgressionService(
                        session,
                        renderer=self.renderer,
                        artifact_dir=self.artifact_dir,
                    )
                    return await service.record_submission(
                        application_id=ticket.application_id,
                        actor_id=ticket.actor_id,
                        actor_display_name=ticket.actor_display_name,
                        project_link=ticket.project_link,
                        verdict=verdict,
                        feedback=feedback,
                        score=score,
                        stage=ticket.stage,
                    )
        except (SQLAlchemyError, CertificateRenderError, ProgressionError) as e:
            raise TransactionFailure(cause=e) from e

    async def _send_system_error(self, ticket: IntakeTicket) -> None:
        await self.dispatcher.dispatch(
            [DirectMessage(recipient=ticket.actor_id, text=SYSTEM_ERROR_MESSAGE)]
        )
