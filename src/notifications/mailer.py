"""
Certificate email delivery over SMTP.

smtplib is blocking, so each send runs in a worker thread.
"""

import asyncio
import mimetypes
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

from src.config import Settings, get_settings
from src.logging_config import get_logger
from src.notifications.effects import CertificateEmail
from src.notifications.errors import NotificationError

logger = get_logger(__name__)

SUBJECT = "🎓 Your Internship Certificate"


def build_certificate_message(email: CertificateEmail, settings: Settings) -> EmailMessage:
    """Compose the certificate email, attaching the artifact when it exists."""
    message = EmailMessage()
    message["Subject"] = SUBJECT
    message["From"] = f"{settings.smtp_from_name} <{settings.smtp_from_email}>"
    message["To"] = email.to_email
    message.set_content(
        f"Hi {email.recipient_name},\n\n"
        f"Congratulations on completing the {email.track} track!\n"
        f"Your certificate ID is {email.certificate_id}. Anyone can verify it "
        "using that ID.\n\n"
        "Your certificate is attached to this email.\n"
    )

    if email.artifact_path:
        path = Path(email.artifact_path)
        mime_type, _ = mimetypes.guess_type(path.name)
        maintype, subtype = (mime_type or "application/octet-stream").split("/", 1)
        message.add_attachment(
            path.read_bytes(),
            maintype=maintype,
            subtype=subtype,
            filename=path.name,
        )
    return message


class CertificateMailer:
    """Sends certificate emails through the configured SMTP relay."""

    CHANNEL = "email"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def _send_blocking(self, message: EmailMessage) -> None:
        s = self.settings
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as smtp:
            if s.smtp_use_tls:
                smtp.starttls()
            if s.smtp_user:
                smtp.login(s.smtp_user, s.smtp_password)
            smtp.send_message(message)

    async def send_certificate(self, email: CertificateEmail) -> None:
        if not self.settings.smtp_host:
            raise NotificationError(self.CHANNEL, "SMTP host is not configured")
        try:
            message = build_certificate_message(email, self.settings)
            await asyncio.to_thread(self._send_blocking, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(self.CHANNEL, str(e)) from e
        logger.info(
            "Certificate email sent",
            extra={"certificate_id": email.certificate_id, "to": email.to_email},
        )
