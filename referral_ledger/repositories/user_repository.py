"""
User repository.

Data access layer for User model. Counters and balances are only changed
with single UPDATE statements (column = column + delta) so concurrent
writers never lose updates.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.user import User
from referral_ledger.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_with_referral_balance(self) -> list[User]:
        """
        Get users with a positive pending referral balance.

        Users at exactly zero are not returned.

        Returns:
            List of users ordered by id
        """
        stmt = (
            select(User)
            .where(User.referral_balance > 0)
            .order_by(User.id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def increment_referral_count(self, user_id: str) -> bool:
        """
        Atomically increment total referral count.

        Args:
            user_id: Referrer user ID

        Returns:
            True if user row was updated
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(referral_count=User.referral_count + 1)
        )
        return await self._apply(stmt)

    async def credit_referral_reward(
        self, user_id: str, amount: Decimal
    ) -> bool:
        """
        Atomically add referral reward and count a valid referral.

        Args:
            user_id: Referrer user ID
            amount: Reward amount

        Returns:
            True if user row was updated
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                referral_balance=User.referral_balance + amount,
                referral_count_valid=User.referral_count_valid + 1,
            )
        )
        return await self._apply(stmt)

    async def set_referred_by(
        self, user_id: str, referrer_id: str, referred_at: datetime
    ) -> bool:
        """
        Set referrer if none is set yet.

        First writer wins: the update only matches while referred_by is NULL.

        Args:
            user_id: Referred user ID
            referrer_id: Referrer user ID
            referred_at: Attribution time

        Returns:
            True if referrer was set, False if user missing or already referred
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.referred_by.is_(None))
            .values(referred_by=referrer_id, referred_at=referred_at)
        )
        return await self._apply(stmt)

    async def set_referral_code(self, user_id: str, code: str) -> bool:
        """
        Assign referral code if user has none yet.

        Args:
            user_id: User ID
            code: Normalized referral code

        Returns:
            True if code was assigned
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.referral_code.is_(None))
            .values(referral_code=code)
        )
        return await self._apply(stmt)

    async def pay_out_referral_balance(
        self, user_id: str, expected_balance: Decimal
    ) -> bool:
        """
        Move pending referral balance into wallet balance.

        Conditional on the balance still being the value the caller read,
        so a concurrent credit or sweep makes this a no-op instead of a
        double payout.

        Args:
            user_id: User ID
            expected_balance: Referral balance read before the decision

        Returns:
            True if balance was moved
        """
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.referral_balance == expected_balance,
            )
            .values(
                wallet_balance=User.wallet_balance + expected_balance,
                referral_balance=Decimal("0"),
            )
        )
        return await self._apply(stmt)

    async def reset_referral_balance(
        self, user_id: str, expected_balance: Decimal
    ) -> bool:
        """
        Forfeit pending referral balance.

        Conditional on the balance still being the value the caller read.

        Args:
            user_id: User ID
            expected_balance: Referral balance read before the decision

        Returns:
            True if balance was reset
        """
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.referral_balance == expected_balance,
            )
            .values(referral_balance=Decimal("0"))
        )
        return await self._apply(stmt)
