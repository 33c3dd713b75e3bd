"""
Notifications - post-commit participant messaging.
"""

from src.notifications.dispatcher import NotificationDispatcher
from src.notifications.effects import CertificateEmail, DirectMessage, Effect
from src.notifications.errors import NotificationError
from src.notifications.mailer import CertificateMailer
from src.notifications.slack import SlackNotifier

__all__ = [
    "NotificationDispatcher",
    "CertificateEmail",
    "DirectMessage",
    "Effect",
    "NotificationError",
    "CertificateMailer",
    "SlackNotifier",
]
