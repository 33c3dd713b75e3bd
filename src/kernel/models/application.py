"""
Application model - one participant's enrollment in one cohort.

Stage count, track families and paid packages are fixed program constants.
"""

import math
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from src.kernel.models.cohort import Cohort
    from src.kernel.models.submission import Submission
    from src.kernel.models.certificate import Certificate


TOTAL_STAGES = 8


class Track(str, Enum):
    """Curriculum disciplines."""

    FRONTEND = "Frontend Development"
    BACKEND = "Backend Development"
    DESIGN = "UI/UX Design"
    DATA_ANALYSIS = "Data Analysis"
    PROJECT_MANAGEMENT = "Project Management"
    CONTENT_WRITING = "Content Writing"
    DIGITAL_MARKETING = "Digital Marketing"


class TrackFamily(str, Enum):
    """Groups of tracks that share link rules and review mode."""

    ENGINEERING = "engineering"
    DESIGN = "design"
    CONTENT = "content"
    GENERAL = "general"


TRACK_FAMILIES = {
    Track.FRONTEND: TrackFamily.ENGINEERING,
    Track.BACKEND: TrackFamily.ENGINEERING,
    Track.DESIGN: TrackFamily.DESIGN,
    Track.CONTENT_WRITING: TrackFamily.CONTENT,
    Track.DIGITAL_MARKETING: TrackFamily.CONTENT,
    Track.PROJECT_MANAGEMENT: TrackFamily.CONTENT,
    Track.DATA_ANALYSIS: TrackFamily.GENERAL,
}


class Package(str, Enum):
    """Enrollment tiers."""

    FREE = "Free"
    PREMIUM = "Premium"
    PREMIUM_PRO = "Premium Pro"


PAID_PACKAGES = frozenset({Package.PREMIUM, Package.PREMIUM_PRO})

# Tiers whose every submission goes to a mentor instead of the automated audit
MANUAL_REVIEW_PACKAGES = frozenset({Package.PREMIUM_PRO})


def track_family(track: Track) -> TrackFamily:
    return TRACK_FAMILIES[Track(track)]


def is_paid(package: Package) -> bool:
    return Package(package) in PAID_PACKAGES


def progress_for(stage: int, completed: bool = False) -> int:
    """
    Progress percentage for a stage.

    Rounds half up (stage 1 -> 13, stage 3 -> 38) so values match the
    figures participants have always been shown.
    """
    if completed:
        return 100
    if not 1 <= stage <= TOTAL_STAGES:
        raise ValueError(f"Stage must be between 1 and {TOTAL_STAGES}, got {stage}")
    return math.floor(stage / TOTAL_STAGES * 100 + 0.5)


class Application(Base, TimestampMixin):
    """
    A participant's enrollment in a cohort.

    Invariants:
    - 1 <= current_stage <= TOTAL_STAGES
    - progress == progress_for(current_stage) unless completed, then 100
    - completed implies current_stage == TOTAL_STAGES
    """

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    cohort_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("cohorts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Identity
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slack_user_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )

    track: Mapped[Track] = mapped_column(String(64), nullable=False)
    package: Mapped[Package] = mapped_column(
        String(32),
        default=Package.FREE,
        nullable=False,
    )
    payment_reference: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # Progression
    current_stage: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=13, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_tasks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    cohort: Mapped["Cohort"] = relationship("Cohort", back_populates="applications")
    submissions: Mapped[List["Submission"]] = relationship(
        "Submission",
        back_populates="application",
        order_by="Submission.created_at",
    )
    certificate: Mapped[Optional["Certificate"]] = relationship(
        "Certificate",
        back_populates="application",
        uselist=False,
    )

    __table_args__ = (
        UniqueConstraint("email", "cohort_id", name="uq_applications_email_cohort"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_paid(self) -> bool:
        return is_paid(self.package)

    def __repr__(self) -> str:
        return f"<Application {self.email} stage={self.current_stage} completed={self.completed}>"
