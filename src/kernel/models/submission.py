"""
Submission model - one project-link attempt at one stage.

Append-only per attempt: a revision is a new row, never an overwrite.
A manual review changes status/feedback and leaves an AuditLogEntry.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from src.kernel.models.application import Application


class SubmissionStatus(str, Enum):
    """Verdict on a submission."""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    NEEDS_REVISION = "Needs Revision"
    REJECTED = "Rejected"


class Submission(Base, TimestampMixin):
    """A project link submitted for one stage."""

    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("applications.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    cohort_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("cohorts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Who submitted (external messaging identity)
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    actor_display_name: Mapped[str] = mapped_column(String(255), nullable=False)

    project_link: Mapped[str] = mapped_column(String(2048), nullable=False)
    stage: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[SubmissionStatus] = mapped_column(
        String(32),
        default=SubmissionStatus.PENDING,
        nullable=False,
        index=True,
    )
    feedback: Mapped[str] = mapped_column(Text, default="", nullable=False)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    reviewed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    application: Mapped["Application"] = relationship(
        "Application",
        back_populates="submissions",
    )

    __table_args__ = (
        Index("ix_submissions_application_created", "application_id", "created_at"),
        Index("ix_submissions_cohort_status", "cohort_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Submission stage={self.stage} {SubmissionStatus(self.status).value}>"
