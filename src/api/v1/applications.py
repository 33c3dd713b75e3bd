"""
Application routes: enrollment, stats and manual stage override.
"""

import uuid

from fastapi import APIRouter, status

from src.api.deps import DbSession
from src.api.errors import http_error
from src.api.middleware.capability_check import require_capability
from src.kernel.permissions.capabilities import Actor, Capability
from src.orchestration.errors import ProgressionError
from src.orchestration.progression_service import EnrollmentRequest, ProgressionService
from src.schemas.application import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStats,
    StageOverride,
)

router = APIRouter()


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def enroll(
    data: ApplicationCreate,
    db: DbSession,
    _: Actor = require_capability(Capability.ENROLL_PARTICIPANT),
):
    """Create an application once payment is confirmed (or for a free signup)."""
    service = ProgressionService(db)
    try:
        application = await service.enroll(EnrollmentRequest(**data.model_dump()))
    except ProgressionError as e:
        raise http_error(e)
    return ApplicationResponse.model_validate(application)


@router.get("/stats", response_model=ApplicationStats)
async def enrollment_stats(
    db: DbSession,
    _: Actor = require_capability(Capability.VIEW_STATS),
):
    """Enrollment totals and paid conversion rate."""
    return ApplicationStats(**await ProgressionService(db).stats())


@router.patch("/{application_id}/stage", response_model=ApplicationResponse)
async def override_stage(
    application_id: uuid.UUID,
    data: StageOverride,
    db: DbSession,
    _: Actor = require_capability(Capability.OVERRIDE_PROGRESS),
):
    """Set a non-completed application's stage directly."""
    service = ProgressionService(db)
    try:
        application = await service.override_stage(application_id, data.stage)
    except ProgressionError as e:
        raise http_error(e)
    return ApplicationResponse.model_validate(application)
