"""
Certificate Engine - issuance, rendering and public verification.
"""

from src.engines.certificates.issuer import CertificateIssuer, generate_certificate_id
from src.engines.certificates.renderer import (
    CertificateData,
    CertificateRenderer,
    CertificateRenderError,
    DocxCertificateRenderer,
)

__all__ = [
    "CertificateIssuer",
    "generate_certificate_id",
    "CertificateData",
    "CertificateRenderer",
    "CertificateRenderError",
    "DocxCertificateRenderer",
]
