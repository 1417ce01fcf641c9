"""
Database decorators for automatic error handling and rollback.

Provides decorators for service methods that own their session's unit of
work: on failure the session is rolled back so no half-built batch is left
behind, and store errors are surfaced as StoreUnavailableError.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.utils.exceptions import wrap_store_error


T = TypeVar("T")


def with_rollback_on_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that rolls back the service session on any exception.

    Usage:
        class MyService:
            def __init__(self, session: AsyncSession):
                self.session = session

            @with_rollback_on_error
            async def do_work(self, ...):
                ...
                await self.session.commit()

    The decorator will:
    1. Execute the wrapped method
    2. If an exception occurs, call self.session.rollback()
    3. Re-raise SQLAlchemy errors as StoreUnavailableError, others unchanged

    Args:
        func: Async method of an object with a `session` attribute

    Returns:
        Wrapped method with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
        session: AsyncSession | None = getattr(self, "session", None)

        if session is None:
            logger.warning(
                f"Method {func.__name__} decorated with @with_rollback_on_error "
                f"but owner has no session. Rollback will not be performed."
            )
            return await func(self, *args, **kwargs)

        try:
            return await func(self, *args, **kwargs)
        except Exception as e:
            try:
                await session.rollback()
                logger.info(
                    f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                )
            except Exception as rollback_error:
                logger.error(
                    f"Failed to rollback in {func.__name__}: {rollback_error}",
                    exc_info=True
                )
            if isinstance(e, SQLAlchemyError):
                raise wrap_store_error(e) from e
            raise

    return wrapper
