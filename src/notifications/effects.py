"""
Notification effects produced by a committed progression transaction.

Effects are plain data; the dispatcher delivers them after commit.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class DirectMessage:
    """Chat direct message to a participant."""

    recipient: str
    text: str


@dataclass(frozen=True)
class CertificateEmail:
    """Completion email carrying the certificate artifact."""

    to_email: str
    recipient_name: str
    certificate_id: str
    track: str
    artifact_path: Optional[str] = None


Effect = Union[DirectMessage, CertificateEmail]
