"""
Per-session mutual exclusion for read-check-write sequences
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from flashmob.config import settings
from flashmob.core.exceptions import LockAcquisitionError
from flashmob.core.redis import redis_manager

logger = logging.getLogger(__name__)


class SessionLockManager:
    """
    Serializes every membership or status change of one study session.

    The "local" backend keeps an asyncio.Lock per session id and is correct for
    a single worker process; "redis" uses the distributed lock in RedisManager
    so several workers share the same critical section.
    """

    def __init__(self, backend: str = "local"):
        self.backend = backend
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        if self.backend == "redis":
            async with self._hold_redis(session_id):
                yield
        else:
            async with self._hold_local(session_id):
                yield

    @asynccontextmanager
    async def _hold_local(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._waiters[session_id] = self._waiters.get(session_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=settings.SESSION_LOCK_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.warning(f"Timed out waiting for lock on session {session_id}")
                raise LockAcquisitionError(f"session:{session_id}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._waiters[session_id] -= 1
            if self._waiters[session_id] == 0:
                # Nobody else is queued on this session; drop the entry
                del self._waiters[session_id]
                self._locks.pop(session_id, None)

    @asynccontextmanager
    async def _hold_redis(self, session_id: str) -> AsyncIterator[None]:
        resource = f"session:{session_id}"
        identifier = uuid.uuid4().hex
        loop = asyncio.get_running_loop()
        deadline = loop.time() + settings.SESSION_LOCK_TIMEOUT_SECONDS
        attempt = 0

        while True:
            acquired = await redis_manager.acquire_lock(
                resource, identifier, ttl=settings.SESSION_LOCK_TTL_SECONDS
            )
            if acquired:
                break
            if loop.time() >= deadline:
                logger.warning(f"Timed out waiting for distributed lock on session {session_id}")
                raise LockAcquisitionError(resource)
            # Exponential backoff, capped
            await asyncio.sleep(min(0.05 * (2 ** attempt), 0.5))
            attempt += 1

        try:
            yield
        finally:
            await redis_manager.release_lock(resource, identifier)


session_locks = SessionLockManager(settings.SESSION_LOCK_BACKEND)
