"""Certificate verification schemas."""

from datetime import datetime

from pydantic import BaseModel


class CertificateVerification(BaseModel):
    """Public verification result."""

    valid: bool = True
    certificate_id: str
    name: str
    track: str
    level: str
    issued: datetime
