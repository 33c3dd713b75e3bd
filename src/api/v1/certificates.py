"""
Public certificate verification.
"""

from fastapi import APIRouter, HTTPException, status

from src.api.deps import DbSession
from src.engines.certificates.issuer import CertificateIssuer
from src.schemas.certificate import CertificateVerification

router = APIRouter()


@router.get("/{certificate_id}/verify", response_model=CertificateVerification)
async def verify_certificate(certificate_id: str, db: DbSession):
    """Look up a certificate by its public id. No authentication required."""
    certificate = await CertificateIssuer(db).verify(certificate_id)
    if not certificate:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Certificate not found",
        )
    return CertificateVerification(
        valid=True,
        certificate_id=certificate.certificate_id,
        name=certificate.recipient_name,
        track=certificate.track,
        level=certificate.level,
        issued=certificate.issued_at,
    )
