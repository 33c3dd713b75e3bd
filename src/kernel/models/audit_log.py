"""
Append-only log of manual review decisions.

Rows are only ever inserted; a reviewer changing a verdict twice yields two entries.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, generate_uuid, utcnow


class AuditAction(str, Enum):
    """Kinds of manual review actions."""

    STATUS_UPDATE = "Status Update"
    FEEDBACK_EDIT = "Feedback Edit"


class AuditLogEntry(Base):
    """One manual status change on a submission."""

    __tablename__ = "audit_log_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("submissions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    reviewer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        String(32),
        default=AuditAction.STATUS_UPDATE,
        nullable=False,
    )
    old_status: Mapped[str] = mapped_column(String(32), nullable=False)
    new_status: Mapped[str] = mapped_column(String(32), nullable=False)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_audit_log_entries_submission_ts", "submission_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AuditLogEntry {self.old_status} -> {self.new_status}>"
