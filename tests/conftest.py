"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

# Minimal environment for settings validation
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Project root on PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from referral_ledger.models import Base, Referral, Transaction, User
from referral_ledger.models.enums import TransactionType
from referral_ledger.repositories.transaction_repository import TransactionRepository


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[Any, None]:
    """
    Create test SQLAlchemy engine.

    In-memory SQLite; StaticPool keeps every session on the same
    connection so all of them see one database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: Any) -> AsyncGenerator[AsyncSession, None]:
    """Async session on the test database."""
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def create_user(db_session: AsyncSession) -> Callable[..., Awaitable[str]]:
    """
    Factory for committed users.

    Returns the user id; tests re-read rows through load_user rather than
    keeping instances around, since services update rows with UPDATE
    statements.
    """
    async def _create_user(user_id: str, **fields: Any) -> str:
        fields.setdefault("display_name", f"Player {user_id}")
        fields.setdefault("email", f"{user_id.lower()}@example.com")
        db_session.add(User(id=user_id, **fields))
        await db_session.commit()
        return user_id

    return _create_user


@pytest.fixture
def load_user(db_session: AsyncSession) -> Callable[[str], Awaitable[User | None]]:
    """Read user row fresh from the database."""
    async def _load_user(user_id: str) -> User | None:
        return await db_session.get(User, user_id, populate_existing=True)

    return _load_user


@pytest.fixture
def load_referral(db_session: AsyncSession) -> Callable[[str], Awaitable[Referral | None]]:
    """Read referral row fresh from the database."""
    async def _load_referral(referral_id: str) -> Referral | None:
        return await db_session.get(Referral, referral_id, populate_existing=True)

    return _load_referral


@pytest.fixture
def load_transactions(db_session: AsyncSession) -> Callable[[str], Awaitable[list[Transaction]]]:
    """Read referral payout transactions of a user, newest first."""
    async def _load_transactions(user_id: str) -> list[Transaction]:
        return await TransactionRepository(db_session).get_by_user(
            user_id, transaction_type=TransactionType.REFERRAL_PAYOUT
        )

    return _load_transactions

