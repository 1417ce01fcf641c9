"""
Referral settlement task.

Sweeps pending referral balances when a tournament ends. Triggered by the
tournament scheduler or an operator; the distributed lock keeps at most one
sweep running, since two concurrent sweeps would race on the same balances.
"""

import dramatiq
import redis.asyncio as redis
from loguru import logger

from jobs.async_runner import create_local_session, run_async
from referral_ledger.config.business_constants import (
    SETTLEMENT_LOCK_KEY,
    is_valid_tournament_type,
)
from referral_ledger.config.settings import settings
from referral_ledger.services.referral.settlement import ReferralSettlementService
from referral_ledger.utils.distributed_lock import DistributedLock


@dramatiq.actor(max_retries=3, time_limit=600_000)  # 10 min timeout
def settle_referral_balances(tournament_type: str) -> None:
    """
    Settle referral balances at the end of a tournament.

    Args:
        tournament_type: Tournament that just ended ("mini" or "grand")
    """
    if not is_valid_tournament_type(tournament_type):
        logger.error(f"Refusing to settle unknown tournament type: {tournament_type}")
        return

    logger.info(f"Starting referral settlement for {tournament_type} tournament...")

    result = run_async(_settle_referral_balances_async(tournament_type))

    if result is None:
        logger.warning("Referral settlement skipped: another run holds the lock")
    elif result["success"]:
        logger.info(
            f"Referral settlement complete: "
            f"{result['users_processed']} users, "
            f"paid out: {result['total_paid_out']}, "
            f"reset: {result['total_reset']}"
        )
    else:
        # Raise so dramatiq retries the whole run
        raise RuntimeError(f"Referral settlement failed: {result['error']}")


async def _settle_referral_balances_async(tournament_type: str) -> dict | None:
    """Async implementation of referral settlement."""
    redis_client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )

    lock = DistributedLock(redis_client=redis_client)

    try:
        async with lock.lock(
            SETTLEMENT_LOCK_KEY, timeout=settings.settlement_lock_timeout
        ) as acquired:
            if not acquired:
                return None

            async with create_local_session() as session:
                service = ReferralSettlementService(session)
                result = await service.settle(tournament_type)

            return {
                "success": result.success,
                "users_processed": result.users_processed,
                "users_skipped": result.users_skipped,
                "total_paid_out": str(result.total_paid_out),
                "total_reset": str(result.total_reset),
                "error": result.error,
            }
    finally:
        await redis_client.aclose()
