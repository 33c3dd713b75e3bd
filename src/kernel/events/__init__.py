"""
Append-only review logging.
"""

from src.kernel.events.review_log import ReviewLog

__all__ = [
    "ReviewLog",
]
