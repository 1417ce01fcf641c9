#!/usr/bin/env python3
"""
Settle Referral Balances Script.

Operator trigger for referral settlement at tournament end.

Usage:
    python scripts/settle_referrals.py mini --dry-run
    python scripts/settle_referrals.py grand
    python scripts/settle_referrals.py grand --enqueue
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import redis.asyncio as redis
from loguru import logger

from referral_ledger.config.business_constants import (
    SETTLEMENT_LOCK_KEY,
    TOURNAMENT_TYPES,
)
from referral_ledger.config.database import async_session_maker, engine
from referral_ledger.config.settings import settings
from referral_ledger.services.referral.settlement import ReferralSettlementService
from referral_ledger.utils.distributed_lock import DistributedLock
from referral_ledger.utils.logging import setup_logging


async def settle(tournament_type: str, dry_run: bool) -> int:
    """Run or preview settlement against the shared store."""
    redis_client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )

    try:
        async with async_session_maker() as session:
            service = ReferralSettlementService(session)

            if dry_run:
                result = await service.preview(tournament_type)
                for payout in result.payouts:
                    action = "PAY" if payout.paid_out else "RESET"
                    logger.info(f"{action:5} {payout.user_id}: {payout.amount}")
            else:
                # Same lock as the worker, so a manual run never races it
                lock = DistributedLock(redis_client=redis_client)
                async with lock.lock(
                    SETTLEMENT_LOCK_KEY, timeout=settings.settlement_lock_timeout
                ) as acquired:
                    if not acquired:
                        logger.error("Another settlement run holds the lock")
                        return 1
                    result = await service.settle(tournament_type)
    finally:
        await redis_client.aclose()
        await engine.dispose()

    if not result.success:
        logger.error(f"Settlement failed: {result.error}")
        return 1

    logger.success(
        f"{'Planned' if dry_run else 'Settled'}: {result.users_processed} users, "
        f"paid out {result.total_paid_out}, reset {result.total_reset}, "
        f"skipped {result.users_skipped}"
    )
    return 0


def main() -> int:
    """Parse arguments and run."""
    parser = argparse.ArgumentParser(description="Settle referral balances")
    parser.add_argument("tournament_type", choices=TOURNAMENT_TYPES)
    parser.add_argument(
        "--dry-run", action="store_true", help="Show planned payouts only"
    )
    parser.add_argument(
        "--enqueue",
        action="store_true",
        help="Send to the dramatiq worker instead of running here",
    )
    args = parser.parse_args()

    setup_logging("settle-referrals")

    if args.enqueue:
        import jobs.broker  # noqa: F401
        from jobs.tasks.referral_settlement import settle_referral_balances

        settle_referral_balances.send(args.tournament_type)
        logger.info(f"Settlement for {args.tournament_type} enqueued")
        return 0

    return asyncio.run(settle(args.tournament_type, args.dry_run))


if __name__ == "__main__":
    sys.exit(main())
