"""
Dramatiq broker configuration.

Redis broker shared by the settlement worker and by producers that enqueue
settlements (tournament scheduler, operator CLI). Import this module before
any task module so actors bind to it.

Worker:
    dramatiq jobs.broker jobs.tasks.referral_settlement
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, default_middleware
from loguru import logger

from referral_ledger.config.settings import settings


# Settlement retries wait long enough for the store to come back
RETRY_MIN_BACKOFF_MS = 5_000
RETRY_MAX_BACKOFF_MS = 300_000


def create_broker() -> RedisBroker:
    """
    Create Redis broker from settings.

    Returns:
        RedisBroker whose Retries middleware uses settlement backoff
    """
    # Default stack minus its Retries, replaced below with our backoff
    middleware = [m() for m in default_middleware if m is not Retries]
    redis_broker = RedisBroker(
        middleware=middleware,
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password or None,
        db=settings.redis_db,
    )

    redis_broker.add_middleware(CurrentMessage())
    redis_broker.add_middleware(
        Retries(
            max_retries=3,
            min_backoff=RETRY_MIN_BACKOFF_MS,
            max_backoff=RETRY_MAX_BACKOFF_MS,
        )
    )
    return redis_broker


broker = create_broker()
dramatiq.set_broker(broker)

logger.info(
    f"Dramatiq broker initialized: "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
