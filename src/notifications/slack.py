"""
Slack direct messages via the Web API (chat.postMessage).
"""

from typing import Optional

import httpx

from src.config import get_settings
from src.logging_config import get_logger
from src.notifications.errors import NotificationError

logger = get_logger(__name__)


class SlackNotifier:
    """
    Sends direct messages to participants by Slack user id.

    Slack answers HTTP 200 with {"ok": false, "error": ...} for most
    failures, so the body is checked as well as the status.
    """

    CHANNEL = "slack"

    def __init__(
        self,
        bot_token: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.bot_token = bot_token if bot_token is not None else settings.slack_bot_token
        self.api_url = (api_url or settings.slack_api_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.slack_timeout_seconds
        self._transport = transport

    async def send_direct_message(self, user_id: str, text: str) -> None:
        if not self.bot_token:
            raise NotificationError(self.CHANNEL, "bot token is not configured")

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    f"{self.api_url}/chat.postMessage",
                    json={"channel": user_id, "text": text},
                    headers={"Authorization": f"Bearer {self.bot_token}"},
                )
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NotificationError(self.CHANNEL, str(e)) from e

        if not isinstance(body, dict):
            raise NotificationError(self.CHANNEL, "unexpected response body")
        if not body.get("ok"):
            raise NotificationError(self.CHANNEL, body.get("error") or "unknown error")
        logger.debug("Slack message sent", extra={"recipient": user_id})
