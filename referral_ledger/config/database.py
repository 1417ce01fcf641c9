"""
Database configuration.

Async engine and session factory shared by services and jobs.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from referral_ledger.config.settings import settings


def create_engine():
    """Create async engine from settings."""
    if settings.is_sqlite:
        # SQLite does not support pool sizing arguments
        return create_async_engine(
            settings.database_url,
            echo=settings.database_echo,
        )

    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
    )


engine = create_engine()

async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
