"""Unit tests for the per-actor submission lock."""

import pytest

from src.orchestration.errors import SubmissionInProgress
from src.orchestration.submission_lock import InMemoryKeyedLockStore, SubmissionLock


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestInMemoryKeyedLockStore:
    def test_second_acquire_fails_until_release(self):
        store = InMemoryKeyedLockStore()
        token = store.acquire("k", 30)
        assert token
        assert store.acquire("k", 30) is None
        assert store.release("k", token)
        assert store.acquire("k", 30)

    def test_expired_lock_is_free(self):
        clock = FakeClock()
        store = InMemoryKeyedLockStore(clock=clock)
        assert store.acquire("k", 30)
        clock.now += 31
        assert not store.is_held("k")
        assert store.acquire("k", 30)

    def test_stale_owner_cannot_release_new_holder(self):
        clock = FakeClock()
        store = InMemoryKeyedLockStore(clock=clock)
        first = store.acquire("k", 30)
        clock.now += 31
        second = store.acquire("k", 30)

        assert first != second
        assert not store.release("k", first)
        assert store.is_held("k")
        assert store.release("k", second)
        assert not store.is_held("k")

    def test_cleanup_drops_only_expired(self):
        clock = FakeClock()
        store = InMemoryKeyedLockStore(clock=clock)
        store.acquire("old", 5)
        store.acquire("new", 60)
        clock.now += 10
        store.cleanup_expired()
        assert not store.is_held("old")
        assert store.is_held("new")


class TestSubmissionLock:
    def test_keys_are_per_actor(self):
        lock = SubmissionLock(InMemoryKeyedLockStore(), ttl_seconds=30)
        lock.acquire("U1")
        lock.acquire("U2")
        with pytest.raises(SubmissionInProgress) as exc:
            lock.acquire("U1")
        assert exc.value.actor_id == "U1"

    def test_expired_pipeline_leaves_later_attempt_locked(self):
        clock = FakeClock()
        store = InMemoryKeyedLockStore(clock=clock)
        lock = SubmissionLock(store, ttl_seconds=30)
        slow = lock.acquire("U1")
        clock.now += 31
        lock.acquire("U1")

        lock.release("U1", slow)

        with pytest.raises(SubmissionInProgress):
            lock.acquire("U1")

    @pytest.mark.asyncio
    async def test_hold_releases_on_error(self):
        store = InMemoryKeyedLockStore()
        lock = SubmissionLock(store, ttl_seconds=30)
        with pytest.raises(RuntimeError):
            async with lock.hold("U1"):
                raise RuntimeError("audit blew up")
        assert not store.is_held("submission:U1")
