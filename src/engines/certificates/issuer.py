"""
Certificate Issuer - idempotent certificate creation for completed applications.

Runs inside the caller's progression transaction. The existence check plus
the unique application_id column guarantee at most one certificate per
application; a render or storage failure raises and aborts the transaction.
"""

import asyncio
import secrets
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import get_settings
from src.engines.certificates.renderer import (
    CertificateData,
    CertificateRenderer,
    CertificateRenderError,
    DocxCertificateRenderer,
)
from src.kernel.models.application import Application, Package, Track
from src.kernel.models.base import utcnow
from src.kernel.models.certificate import Certificate
from src.logging_config import get_logger

logger = get_logger(__name__)

_MAX_ID_ATTEMPTS = 5


def generate_certificate_id(prefix: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """
    Public certificate id: <prefix>-<year>-<6 uppercase hex>.

    Example: KNOW-2026-3FA2C1
    """
    prefix = prefix or get_settings().certificate_id_prefix
    year = (now or utcnow()).year
    return f"{prefix}-{year}-{secrets.token_hex(3).upper()}"


class CertificateIssuer:
    """
    Issues certificates and resolves public verification lookups.

    Usage:
        issuer = CertificateIssuer(session)
        certificate, created = await issuer.issue(application)
    """

    def __init__(
        self,
        session: AsyncSession,
        renderer: Optional[CertificateRenderer] = None,
        artifact_dir: Optional[str] = None,
    ):
        self.session = session
        self.renderer = renderer or DocxCertificateRenderer()
        self.artifact_dir = Path(artifact_dir or get_settings().certificate_artifact_dir)

    async def get_for_application(self, application_id) -> Optional[Certificate]:
        result = await self.session.execute(
            select(Certificate).where(Certificate.application_id == application_id)
        )
        return result.scalar_one_or_none()

    async def issue(self, application: Application) -> Tuple[Certificate, bool]:
        """
        Return the application's certificate, creating it if missing.

        Returns:
            (certificate, created)
        """
        existing = await self.get_for_application(application.id)
        if existing:
            return existing, False

        certificate = Certificate(
            application_id=application.id,
            certificate_id=await self._unused_certificate_id(),
            cohort_id=application.cohort_id,
            recipient_name=application.full_name,
            track=Track(application.track).value,
            level=Package(application.package).value,
            issued_at=utcnow(),
        )
        self.session.add(certificate)
        # Surfaces a concurrent issuance as an IntegrityError before rendering
        await self.session.flush()

        certificate.artifact_path = await self._write_artifact(certificate)
        logger.info(
            "Certificate issued",
            extra={
                "certificate_id": certificate.certificate_id,
                "application_id": str(application.id),
            },
        )
        return certificate, True

    async def verify(self, certificate_id: str) -> Optional[Certificate]:
        """Public lookup by certificate id."""
        result = await self.session.execute(
            select(Certificate).where(Certificate.certificate_id == certificate_id.strip())
        )
        return result.scalar_one_or_none()

    async def _unused_certificate_id(self) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = generate_certificate_id()
            taken = await self.session.execute(
                select(Certificate.id).where(Certificate.certificate_id == candidate)
            )
            if taken.scalar_one_or_none() is None:
                return candidate
        raise CertificateRenderError("Could not allocate a unique certificate id")

    async def _write_artifact(self, certificate: Certificate) -> str:
        data = CertificateData(
            certificate_id=certificate.certificate_id,
            recipient_name=certificate.recipient_name,
            track=certificate.track,
            level=certificate.level,
            issued_at=certificate.issued_at,
        )
        extension = getattr(self.renderer, "file_extension", "bin")
        path = self.artifact_dir / f"{certificate.certificate_id}.{extension}"

        def _render_and_store() -> None:
            content = self.renderer.render(data)
            self.artifact_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

        try:
            await asyncio.to_thread(_render_and_store)
        except Exception as e:
            logger.error(
                "Certificate artifact failed",
                extra={"certificate_id": certificate.certificate_id, "error": str(e)},
            )
            raise CertificateRenderError(str(e)) from e
        return str(path)
