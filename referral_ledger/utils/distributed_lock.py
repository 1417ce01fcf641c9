"""
Distributed lock.

Redis-based lock (redis-py's token lock with TTL) used to keep scheduled
jobs single-flight across workers. Without a Redis client it degrades to a
process-local asyncio lock, which still serialises runs inside one worker.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger
from redis.exceptions import RedisError


_local_locks: dict[str, asyncio.Lock] = {}


class DistributedLock:
    """Redis lock with in-process fallback."""

    def __init__(
        self, redis_client: Any | None = None, prefix: str = "lock:"
    ) -> None:
        """
        Initialize lock.

        Args:
            redis_client: redis.asyncio client or None
            prefix: Key prefix for lock keys
        """
        self.redis_client = redis_client
        self.prefix = prefix

    @asynccontextmanager
    async def lock(
        self, key: str, timeout: int = 60
    ) -> AsyncIterator[bool]:
        """
        Try to acquire lock without waiting.

        Yields True when the lock is held for the duration of the block,
        False when another holder has it. The caller decides what to do
        when it did not get the lock.

        Args:
            key: Lock name
            timeout: Lock TTL in seconds (Redis only)

        Yields:
            Whether the lock was acquired
        """
        if self.redis_client is None:
            async with self._local_lock(key) as acquired:
                yield acquired
            return

        full_key = f"{self.prefix}{key}"
        redis_lock = self.redis_client.lock(
            full_key, timeout=timeout, blocking=False
        )

        if not await redis_lock.acquire():
            logger.info(f"Lock {full_key} is held by another worker")
            yield False
            return

        logger.debug(f"Acquired lock {full_key}")
        try:
            yield True
        finally:
            try:
                await redis_lock.release()
                logger.debug(f"Released lock {full_key}")
            except RedisError as e:
                # Expired or unreachable; the TTL frees it either way
                logger.warning(f"Failed to release lock {full_key}: {e}")

    @asynccontextmanager
    async def _local_lock(self, key: str) -> AsyncIterator[bool]:
        """Process-local fallback lock."""
        local = _local_locks.setdefault(key, asyncio.Lock())

        if local.locked():
            logger.info(f"Local lock {key} is already held")
            yield False
            return

        async with local:
            yield True
