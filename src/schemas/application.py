"""Application (enrollment) schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from src.kernel.models.application import Package, Track


class ApplicationCreate(BaseModel):
    """Enrollment confirmed by the payment gateway (or a free signup)."""

    cohort_id: uuid.UUID
    first_name: str = Field(..., min_length=1, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    track: Track
    package: Package = Package.FREE
    slack_user_id: Optional[str] = Field(None, max_length=64)
    payment_reference: Optional[str] = Field(None, max_length=128)


class StageOverride(BaseModel):
    """Manual stage change."""

    stage: int = Field(..., ge=1, le=8)


class ApplicationResponse(BaseModel):
    """Application response."""

    id: uuid.UUID
    cohort_id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    slack_user_id: Optional[str] = None
    track: str
    package: str
    current_stage: int
    progress: int
    completed: bool
    completed_tasks: int
    completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApplicationStats(BaseModel):
    """Enrollment counts."""

    total: int
    paid: int
    free: int
    new_last_7_days: int
    conversion_rate: float
