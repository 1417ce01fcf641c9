"""
Base service class.

Session holder with a bound logger, and a timing decorator for
long-running operations such as settlement sweeps.
"""

import functools
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


class BaseService:
    """Service with a session and a logger bound to its class name."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)


def log_operation(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Log start, duration and outcome of a service method.

    Methods returning a result object with a `success` flag are logged as
    failed when the flag is False; raised exceptions are logged and re-raised.

    Args:
        func: Async method of a BaseService

    Returns:
        Wrapped method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        name = func.__name__
        started = time.perf_counter()
        self.logger.info(
            f"Starting {name}",
            extra={"call_args": [str(arg) for arg in args]},
        )

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            elapsed = time.perf_counter() - started
            self.logger.error(
                f"{name} raised {type(e).__name__} after {elapsed:.3f}s: {e}"
            )
            raise

        elapsed = time.perf_counter() - started
        success = getattr(result, "success", True)
        log = self.logger.info if success else self.logger.warning
        log(
            f"Finished {name} in {elapsed:.3f}s",
            extra={"success": success},
        )
        return result

    return wrapper
