"""
Referral repository.

Data access layer for Referral model.
"""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.enums import ReferralStatus
from referral_ledger.models.referral import Referral
from referral_ledger.repositories.base import BaseRepository


def make_referral_id(referrer_id: str, referred_user_id: str) -> str:
    """
    Build deterministic relationship id from both user ids.

    Args:
        referrer_id: Referrer user ID
        referred_user_id: Referred user ID

    Returns:
        Relationship primary key
    """
    return f"{referrer_id}_{referred_user_id}"


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_relationship(
        self, referrer_id: str, referred_user_id: str
    ) -> Referral | None:
        """
        Get relationship for an ordered pair of users.

        Args:
            referrer_id: Referrer user ID
            referred_user_id: Referred user ID

        Returns:
            Referral or None if the pair has no relationship
        """
        return await self.get_by_id(
            make_referral_id(referrer_id, referred_user_id)
        )

    async def create_pending(
        self,
        referrer_id: str,
        referred_user_id: str,
        referral_code: str | None,
        created_at: datetime,
    ) -> Referral:
        """
        Add pending relationship to the current unit of work.

        Args:
            referrer_id: Referrer user ID
            referred_user_id: Referred user ID
            referral_code: Code used to create the relationship
            created_at: Creation time

        Returns:
            Created referral (not committed)
        """
        return await self.create(
            id=make_referral_id(referrer_id, referred_user_id),
            referrer_id=referrer_id,
            referred_user_id=referred_user_id,
            referral_code=referral_code,
            status=ReferralStatus.PENDING,
            created_at=created_at,
        )

    async def mark_valid(
        self,
        referral_id: str,
        tournament_type: str | None,
        validated_at: datetime,
    ) -> bool:
        """
        Transition relationship from pending to valid.

        Only matches a pending row, so a relationship is validated at most
        once even when two validations race.

        Args:
            referral_id: Relationship ID
            tournament_type: Qualifying tournament type
            validated_at: Validation time

        Returns:
            True if this call performed the transition
        """
        stmt = (
            update(Referral)
            .where(
                Referral.id == referral_id,
                Referral.status == ReferralStatus.PENDING,
            )
            .values(
                status=ReferralStatus.VALID,
                validated_at=validated_at,
                tournament_type=tournament_type,
            )
        )
        return await self._apply(stmt)

    async def get_by_referrer(
        self, referrer_id: str, limit: int | None = None
    ) -> list[Referral]:
        """
        Get referrals made by a user, newest first.

        Args:
            referrer_id: Referrer user ID
            limit: Max number of results, None for all

        Returns:
            List of referrals

        Raises:
            ValueError: If limit is negative
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit must not be negative: {limit}")

        stmt = (
            select(Referral)
            .where(Referral.referrer_id == referrer_id)
            .order_by(Referral.created_at.desc(), Referral.id)
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_status_counts(
        self, referrer_id: str
    ) -> dict[str, int]:
        """
        Get referral counts per status in a single query.

        Args:
            referrer_id: Referrer user ID

        Returns:
            Dict mapping status to count, every status present
        """
        stmt = (
            select(
                Referral.status,
                func.count(Referral.id).label("total"),
            )
            .where(Referral.referrer_id == referrer_id)
            .group_by(Referral.status)
        )

        result = await self.session.execute(stmt)

        counts = {status.value: 0 for status in ReferralStatus}
        for status, total in result.all():
            counts[status] = total

        return counts
