"""
Notification delivery errors. Logged by the dispatcher, never surfaced.
"""


class NotificationError(Exception):
    """A notification could not be delivered."""

    def __init__(self, channel: str, message: str):
        super().__init__(f"{channel}: {message}")
        self.channel = channel
        self.message = message
