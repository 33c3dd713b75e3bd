"""
Cohort model - a time-boxed program instance.

Cohorts are administered elsewhere; this service only references them.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from src.kernel.models.application import Application


class Cohort(Base, TimestampMixin):
    """A program run that applications enroll into."""

    __tablename__ = "cohorts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    applications: Mapped[List["Application"]] = relationship(
        "Application",
        back_populates="cohort",
    )

    def __repr__(self) -> str:
        return f"<Cohort {self.name}>"
