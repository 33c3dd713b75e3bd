"""
Review log service for append-only audit entries.

Every manual verdict is recorded here inside the same transaction that
changes the submission, so the entry and the change commit together.
"""

import uuid
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.models.audit_log import AuditAction, AuditLogEntry
from src.kernel.models.submission import Submission


class ReviewLog:
    """
    Service for the immutable review log.

    Usage:
        review_log = ReviewLog(session)
        await review_log.record(
            submission_id=submission.id,
            reviewer_id=actor.actor_id,
            old_status="Pending",
            new_status="Accepted",
            feedback="Nice work",
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        submission_id: uuid.UUID,
        reviewer_id: str,
        old_status: str,
        new_status: str,
        feedback: Optional[str] = None,
        action: AuditAction = AuditAction.STATUS_UPDATE,
    ) -> AuditLogEntry:
        """
        Append an entry. The caller owns the transaction.
        """
        entry = AuditLogEntry(
            submission_id=submission_id,
            reviewer_id=reviewer_id,
            action=action,
            old_status=old_status,
            new_status=new_status,
            feedback=feedback,
        )
        self.session.add(entry)
        return entry

    async def history_for_submission(
        self,
        submission_id: uuid.UUID,
        limit: int = 100,
    ) -> List[AuditLogEntry]:
        """Entries for one submission, newest first."""
        query = (
            select(AuditLogEntry)
            .where(AuditLogEntry.submission_id == submission_id)
            .order_by(desc(AuditLogEntry.timestamp))
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def history_for_application(
        self,
        application_id: uuid.UUID,
        limit: int = 100,
    ) -> List[AuditLogEntry]:
        """Entries across every submission of an application, newest first."""
        submission_ids = select(Submission.id).where(
            Submission.application_id == application_id
        )
        query = (
            select(AuditLogEntry)
            .where(AuditLogEntry.submission_id.in_(submission_ids))
            .order_by(desc(AuditLogEntry.timestamp))
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def history(self, entity_id: uuid.UUID, limit: int = 100) -> List[AuditLogEntry]:
        """
        Entries for a submission id, or for an application id when the id
        matches no submission entries.
        """
        entries = await self.history_for_submission(entity_id, limit=limit)
        if entries:
            return entries
        return await self.history_for_application(entity_id, limit=limit)
