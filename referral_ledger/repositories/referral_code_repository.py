"""
Referral code repository.

Data access layer for ReferralCode model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.referral_code import ReferralCode
from referral_ledger.repositories.base import BaseRepository


class ReferralCodeRepository(BaseRepository[ReferralCode]):
    """Referral code repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral code repository."""
        super().__init__(ReferralCode, session)

    async def get_owner_id(self, code: str) -> str | None:
        """
        Get id of the user owning a code.

        Args:
            code: Normalized referral code

        Returns:
            Owner user ID or None if code is not registered
        """
        record = await self.get_by_id(code)
        return record.user_id if record else None

    async def is_taken(self, code: str) -> bool:
        """
        Check if code is already registered.

        Args:
            code: Normalized referral code

        Returns:
            True if a record exists for the code
        """
        return await self.exists(code=code)
