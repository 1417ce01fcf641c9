"""
Referral balance accumulator.

Owns the reward policy: a flat reward per valid referral, added to the
referrer's pending referral balance. The credit is staged on the caller's
unit of work and committed together with the referral status change.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.config.business_constants import REFERRAL_REWARD_AMOUNT
from referral_ledger.repositories.user_repository import UserRepository


class ReferralBalanceAccumulator:
    """Credits referral rewards to pending balances."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize accumulator.

        Args:
            session: Async database session carrying the caller's batch
        """
        self.session = session
        self.user_repo = UserRepository(session)

    @property
    def reward_amount(self) -> Decimal:
        """Reward credited per valid referral."""
        return REFERRAL_REWARD_AMOUNT

    async def credit(self, referrer_id: str) -> Decimal:
        """
        Stage reward credit for a referrer. Does not commit.

        Both counters move through one atomic UPDATE, so concurrent
        credits to the same referrer from different relationships add up.

        Args:
            referrer_id: Referrer user ID (taken from an existing relationship)

        Returns:
            Credited amount
        """
        await self.user_repo.credit_referral_reward(
            referrer_id, self.reward_amount
        )

        logger.debug(
            "Referral reward staged",
            extra={
                "referrer_id": referrer_id,
                "amount": str(self.reward_amount),
            },
        )

        return self.reward_amount
