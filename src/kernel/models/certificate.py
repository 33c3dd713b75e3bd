"""
Certificate model - at most one per application, immutable once issued.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.kernel.models.base import Base, generate_uuid, utcnow

if TYPE_CHECKING:
    from src.kernel.models.application import Application


class Certificate(Base):
    """
    Completion certificate.

    The unique application_id is what makes concurrent issuance attempts
    for the same application fail instead of duplicating.
    """

    __tablename__ = "certificates"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("applications.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    certificate_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )
    cohort_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("cohorts.id", ondelete="SET NULL"),
        nullable=True,
    )
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    track: Mapped[str] = mapped_column(String(64), nullable=False)
    level: Mapped[str] = mapped_column(String(32), nullable=False)
    artifact_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    application: Mapped["Application"] = relationship(
        "Application",
        back_populates="certificate",
    )

    def __repr__(self) -> str:
        return f"<Certificate {self.certificate_id}>"
