"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Mock database session
- Mock Redis client
- Result objects carrying a rowcount
"""

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_session():
    """
    Mock async database session.

    Returns:
        AsyncMock: Mocked async session for database operations
    """
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_redis_client():
    """
    Mock redis.asyncio client that grants every lock.

    Returns:
        AsyncMock: Client whose lock() objects acquire and release
    """
    client = AsyncMock()
    client.lock = MagicMock()
    client.lock.return_value.acquire = AsyncMock(return_value=True)
    client.lock.return_value.release = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def make_result():
    """Factory for execute() results with a rowcount."""
    def _make_result(rowcount: int = 1, rows=None):
        result = MagicMock()
        result.rowcount = rowcount
        result.scalars.return_value.all.return_value = rows or []
        return result

    return _make_result
