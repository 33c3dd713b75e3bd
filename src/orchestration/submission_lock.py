"""
Per-actor submission lock.

Drop-not-queue: while one submission from an actor is being audited and
recorded, a second one is rejected immediately. Single-process and
best-effort; the progression transaction is what keeps data correct.
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional, Protocol, Tuple

from src.config import get_settings
from src.logging_config import get_logger
from src.orchestration.errors import SubmissionInProgress

logger = get_logger(__name__)


class KeyedLockStore(Protocol):
    """Storage for TTL-bounded keyed locks."""

    def acquire(self, key: str, ttl_seconds: float) -> Optional[str]:
        """Owner token if the key was free, None if it is held."""
        ...

    def release(self, key: str, token: str) -> bool:
        """Free the key only if token still owns it."""
        ...


class InMemoryKeyedLockStore:
    """Key -> (owner token, expiry in monotonic seconds). Expired keys count as free."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._clock = clock

    def acquire(self, key: str, ttl_seconds: float) -> Optional[str]:
        if self.is_held(key):
            return None
        token = uuid.uuid4().hex
        self._entries[key] = (token, self._clock() + ttl_seconds)
        return token

    def release(self, key: str, token: str) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry[0] != token:
            return False
        del self._entries[key]
        return True

    def is_held(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry[1] > self._clock()

    def cleanup_expired(self) -> None:
        """Drop expired keys to avoid unbounded growth."""
        now = self._clock()
        for key in [k for k, (_, exp) in self._entries.items() if exp <= now]:
            self._entries.pop(key, None)


class SubmissionLock:
    """
    Reentry guard keyed by actor id.

    Usage:
        lock = SubmissionLock(InMemoryKeyedLockStore())
        token = lock.acquire(actor_id)  # raises SubmissionInProgress
        try:
            ...
        finally:
            lock.release(actor_id, token)
    """

    SCOPE = "submission"

    def __init__(self, store: KeyedLockStore, ttl_seconds: Optional[float] = None):
        self.store = store
        self.ttl_seconds = ttl_seconds or get_settings().submission_lock_ttl_seconds

    def _key(self, actor_id: str) -> str:
        return f"{self.SCOPE}:{actor_id}"

    def acquire(self, actor_id: str) -> str:
        token = self.store.acquire(self._key(actor_id), self.ttl_seconds)
        if token is None:
            logger.info("Submission rejected, actor already processing", extra={"actor_id": actor_id})
            raise SubmissionInProgress(actor_id)
        return token

    def release(self, actor_id: str, token: str) -> None:
        """No-op when the lock expired and now belongs to a later attempt."""
        if not self.store.release(self._key(actor_id), token):
            logger.warning("Submission lock already released or taken over", extra={"actor_id": actor_id})

    @asynccontextmanager
    async def hold(self, actor_id: str) -> AsyncIterator[None]:
        """Acquire for the duration of the block; always released."""
        token = self.acquire(actor_id)
        try:
            yield
        finally:
            self.release(actor_id, token)
