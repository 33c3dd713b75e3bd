"""Submission and review schemas."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SubmissionCreate(BaseModel):
    """Project link submitted from the chat bridge."""

    actor_id: str = Field(..., alias="actorId", min_length=1, max_length=64)
    actor_display_name: str = Field("", alias="actorDisplayName", max_length=255)
    project_link: str = Field(..., alias="projectLink", max_length=2048)

    class Config:
        populate_by_name = True


class SubmissionAccepted(BaseModel):
    """Immediate acknowledgement; the verdict follows by direct message."""

    message: str
    stage: int
    warning: Optional[str] = None


class SubmissionReview(BaseModel):
    """Reviewer verdict."""

    status: str
    feedback: Optional[str] = Field(None, max_length=10000)


class SubmissionResponse(BaseModel):
    """Submission response."""

    id: uuid.UUID
    application_id: uuid.UUID
    cohort_id: uuid.UUID
    actor_id: str
    actor_display_name: str
    project_link: str
    stage: int
    status: str
    feedback: str
    score: Optional[int] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReviewResult(BaseModel):
    """Result of a manual review."""

    success: bool = True
    updated_submission: SubmissionResponse = Field(..., serialization_alias="updatedSubmission")
    application_stage: int
    application_progress: int
    application_completed: bool
    stale: bool = False
    certificate_id: Optional[str] = None


class ReviewLogEntryResponse(BaseModel):
    """One review log entry."""

    id: uuid.UUID
    submission_id: uuid.UUID
    reviewer_id: str
    action: str
    old_status: str
    new_status: str
    feedback: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class SubmissionListResponse(BaseModel):
    """List of submissions."""

    items: List[SubmissionResponse]
    total: int
