"""
Submission routes: intake, manual review, queues and review history.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from src.api.deps import CurrentActor, DbSession, Dispatcher, IntakeService, Renderer
from src.api.errors import http_error
from src.api.middleware.capability_check import require_capability
from src.engines.certificates.renderer import CertificateRenderError
from src.kernel.events.review_log import ReviewLog
from src.kernel.permissions.capabilities import Actor, Capability
from src.logging_config import get_logger
from src.orchestration.errors import ProgressionError, TransactionFailure
from src.orchestration.progression_service import ProgressionService
from src.schemas.submission import (
    ReviewLogEntryResponse,
    ReviewResult,
    SubmissionAccepted,
    SubmissionCreate,
    SubmissionListResponse,
    SubmissionResponse,
    SubmissionReview,
)

router = APIRouter()
logger = get_logger(__name__)


@router.post("", response_model=SubmissionAccepted, status_code=status.HTTP_202_ACCEPTED)
async def submit_project(
    data: SubmissionCreate,
    background_tasks: BackgroundTasks,
    intake: IntakeService,
    _: Actor = require_capability(Capability.SUBMIT_PROJECT),
):
    """
    Accept a project link for the actor's current stage.

    Validation and the per-actor lock run now; the audit, the progression
    transaction and the verdict message run after the response.
    """
    try:
        ticket = await intake.accept(data.actor_id, data.actor_display_name, data.project_link)
    except ProgressionError as e:
        raise http_error(e)

    background_tasks.add_task(intake.process, ticket)
    return SubmissionAccepted(message=ticket.message, stage=ticket.stage, warning=ticket.warning)


@router.get("/pending", response_model=SubmissionListResponse)
async def list_pending(
    db: DbSession,
    cohort_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    _: Actor = require_capability(Capability.REVIEW_SUBMISSION),
):
    """Manual review queue, oldest first."""
    submissions = await ProgressionService(db).pending_queue(cohort_id=cohort_id, limit=limit)
    items = [SubmissionResponse.model_validate(s) for s in submissions]
    return SubmissionListResponse(items=items, total=len(items))


@router.get("/by-actor/{actor_id}", response_model=SubmissionListResponse)
async def list_by_actor(
    actor_id: str,
    db: DbSession,
    actor: CurrentActor,
    limit: int = Query(100, ge=1, le=500),
):
    """An actor's submissions, newest first. Actors may always see their own."""
    if actor.actor_id != actor_id and not actor.can(Capability.VIEW_REVIEW_HISTORY):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Capability '{Capability.VIEW_REVIEW_HISTORY.value}' required",
        )
    submissions = await ProgressionService(db).submissions_by_actor(actor_id, limit=limit)
    items = [SubmissionResponse.model_validate(s) for s in submissions]
    return SubmissionListResponse(items=items, total=len(items))


@router.patch("/{submission_id}", response_model=ReviewResult)
async def review_submission(
    submission_id: uuid.UUID,
    data: SubmissionReview,
    background_tasks: BackgroundTasks,
    db: DbSession,
    dispatcher: Dispatcher,
    renderer: Renderer,
    actor: Actor = require_capability(Capability.REVIEW_SUBMISSION),
):
    """
    Record a reviewer's verdict.

    Notifications are sent after the response, once the transaction has
    committed.
    """
    service = ProgressionService(db, renderer=renderer)
    try:
        outcome = await service.review_submission(submission_id, data.status, data.feedback, actor)
        await db.commit()
    except ProgressionError as e:
        raise http_error(e)
    except (SQLAlchemyError, CertificateRenderError) as e:
        await db.rollback()
        logger.error(
            "Review transaction failed",
            extra={"submission_id": str(submission_id), "error": str(e)},
        )
        raise http_error(TransactionFailure(cause=e))

    background_tasks.add_task(dispatcher.dispatch, outcome.effects)

    application = outcome.application
    return ReviewResult(
        success=True,
        updated_submission=SubmissionResponse.model_validate(outcome.submission),
        application_stage=application.current_stage,
        application_progress=application.progress,
        application_completed=application.completed,
        stale=outcome.stale,
        certificate_id=outcome.certificate.certificate_id if outcome.certificate else None,
    )


@router.get("/{entity_id}/history", response_model=List[ReviewLogEntryResponse])
async def review_history(
    entity_id: uuid.UUID,
    db: DbSession,
    limit: int = Query(100, ge=1, le=500),
    _: Actor = require_capability(Capability.VIEW_REVIEW_HISTORY),
):
    """
    Review log, newest first. Accepts a submission id, or an application id
    for the log across all of its submissions.
    """
    entries = await ReviewLog(db).history(entity_id, limit=limit)
    return [ReviewLogEntryResponse.model_validate(e) for e in entries]
