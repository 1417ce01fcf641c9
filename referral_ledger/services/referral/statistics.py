"""
Referral statistics.

Read-only projections over users and referral relationships for profile
and referral pages. Results are best-effort snapshots: the two tables are
read in separate statements.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.config.business_constants import (
    ANONYMOUS_DISPLAY_NAME,
    DEFAULT_REFERRAL_LIST_LIMIT,
    MIN_PAYOUT_AMOUNT,
    REFERRAL_REWARD_AMOUNT,
)
from referral_ledger.models.enums import ReferralStatus
from referral_ledger.repositories.referral_repository import ReferralRepository
from referral_ledger.repositories.user_repository import UserRepository
from referral_ledger.services.referral.code_registry import build_referral_link
from referral_ledger.services.referral.results import (
    ReferralListItem,
    ReferralStats,
    ReferredUserInfo,
)
from referral_ledger.utils.datetime_utils import as_utc
from referral_ledger.utils.exceptions import UserNotFoundError


class ReferralStatisticsService:
    """Provides referral statistics and referral lists."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize statistics service."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.referral_repo = ReferralRepository(session)

    async def get_referral_stats(self, user_id: str) -> ReferralStats:
        """
        Get referral statistics for a user.

        Args:
            user_id: User ID

        Returns:
            ReferralStats

        Raises:
            UserNotFoundError: If user does not exist
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)

        counts = await self.referral_repo.get_status_counts(user_id)
        valid = counts[ReferralStatus.VALID.value]
        pending = counts[ReferralStatus.PENDING.value]

        referral_code = user.referral_code
        return ReferralStats(
            referral_code=referral_code,
            referral_url=(
                build_referral_link(referral_code) if referral_code else None
            ),
            total_referrals=valid + pending,
            valid_referrals=valid,
            pending_referrals=pending,
            current_balance=user.referral_balance or Decimal("0"),
            minimum_payout=MIN_PAYOUT_AMOUNT,
            reward_per_referral=REFERRAL_REWARD_AMOUNT,
        )

    async def get_referral_list(
        self, user_id: str, limit: int = DEFAULT_REFERRAL_LIST_LIMIT
    ) -> list[ReferralListItem]:
        """
        Get referrals made by a user, newest first.

        Args:
            user_id: Referrer user ID
            limit: Max number of entries

        Returns:
            List of ReferralListItem (empty if user referred nobody)

        Raises:
            ValueError: If limit is negative
        """
        referrals = await self.referral_repo.get_by_referrer(user_id, limit=limit)

        items = []
        for referral in referrals:
            referred = await self.user_repo.get_by_id(referral.referred_user_id)
            if referred:
                info = ReferredUserInfo(
                    display_name=referred.display_name or ANONYMOUS_DISPLAY_NAME,
                    email=referred.email,
                    photo_url=referred.photo_url,
                )
            else:
                info = ReferredUserInfo(display_name=ANONYMOUS_DISPLAY_NAME)

            items.append(ReferralListItem(
                id=referral.id,
                referred_user=info,
                status=referral.status,
                created_at=as_utc(referral.created_at),
                validated_at=as_utc(referral.validated_at),
                tournament_type=referral.tournament_type,
                reward=(
                    REFERRAL_REWARD_AMOUNT if referral.is_valid else Decimal("0")
                ),
            ))

        return items
