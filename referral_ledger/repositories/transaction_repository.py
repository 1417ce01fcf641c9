"""
Transaction repository.

Data access layer for Transaction model. Insert-only.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.enums import TransactionStatus, TransactionType
from referral_ledger.models.transaction import Transaction
from referral_ledger.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def create_referral_payout(
        self,
        user_id: str,
        amount: Decimal,
        currency: str,
        description: str,
    ) -> Transaction:
        """
        Record a completed referral payout.

        Args:
            user_id: User receiving the payout
            amount: Amount moved to wallet balance
            currency: Currency tag
            description: Human-readable note

        Returns:
            Created transaction (not committed)
        """
        return await self.create(
            user_id=user_id,
            type=TransactionType.REFERRAL_PAYOUT,
            amount=amount,
            currency=currency,
            description=description,
            status=TransactionStatus.COMPLETED,
        )

    async def get_by_user(
        self,
        user_id: str,
        transaction_type: TransactionType | None = None,
        limit: int = 50,
    ) -> list[Transaction]:
        """
        Get user transactions, newest first.

        Args:
            user_id: User ID
            transaction_type: Optional type filter
            limit: Max number of results

        Returns:
            List of transactions
        """
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if transaction_type:
            stmt = stmt.where(Transaction.type == transaction_type)

        stmt = stmt.order_by(
            Transaction.created_at.desc(), Transaction.id.desc()
        ).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
