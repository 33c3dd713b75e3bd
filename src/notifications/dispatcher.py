"""
Notification Dispatcher - post-commit, best-effort delivery of effects.

Effects are delivered in order. Each is isolated: a failed delivery is
logged and the rest still go out. Nothing is retried or compensated.
"""

from typing import Iterable, Optional

from src.logging_config import get_logger
from src.notifications.effects import CertificateEmail, DirectMessage, Effect
from src.notifications.errors import NotificationError
from src.notifications.mailer import CertificateMailer
from src.notifications.slack import SlackNotifier

logger = get_logger(__name__)


class NotificationDispatcher:
    """
    Usage:
        dispatcher = NotificationDispatcher()
        delivered = await dispatcher.dispatch(outcome.effects)
    """

    def __init__(
        self,
        slack: Optional[SlackNotifier] = None,
        mailer: Optional[CertificateMailer] = None,
    ):
        self.slack = slack or SlackNotifier()
        self.mailer = mailer or CertificateMailer()

    async def deliver(self, effect: Effect) -> None:
        if isinstance(effect, DirectMessage):
            await self.slack.send_direct_message(effect.recipient, effect.text)
        elif isinstance(effect, CertificateEmail):
            await self.mailer.send_certificate(effect)
        else:
            raise NotificationError("unknown", f"unsupported effect {type(effect).__name__}")

    async def dispatch(self, effects: Iterable[Effect]) -> int:
        """Deliver every effect; returns how many succeeded."""
        delivered = 0
        for effect in effects:
            try:
                await self.deliver(effect)
            except NotificationError as e:
                logger.warning(
                    "Notification failed",
                    extra={"channel": e.channel, "effect": type(effect).__name__, "error": e.message},
                )
                continue
            except Exception:
                logger.exception(
                    "Notification crashed",
                    extra={"effect": type(effect).__name__},
                )
                continue
            delivered += 1
        return delivered
