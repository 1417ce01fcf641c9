"""
Referral service.

Single entry point used by the sign-up flow, the payment flow, the
tournament scheduler and profile pages. Delegates to the modular services
in referral_ledger.services.referral.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.config.business_constants import DEFAULT_REFERRAL_LIST_LIMIT
from referral_ledger.services.base_service import BaseService
from referral_ledger.services.referral import (
    ApplyReferralResult,
    ReferralCodeRegistry,
    ReferralCodeResult,
    ReferralLink,
    ReferralListItem,
    ReferralRelationshipTracker,
    ReferralSettlementService,
    ReferralStatisticsService,
    ReferralStats,
    SettlementResult,
    ValidationResult,
)


class ReferralService(BaseService):
    """Referral service facade."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral service."""
        super().__init__(session)
        self.registry = ReferralCodeRegistry(session)
        self.tracker = ReferralRelationshipTracker(session)
        self.settlement = ReferralSettlementService(session)
        self.statistics = ReferralStatisticsService(session)

    # Codes

    async def generate_code(self, user_id: str) -> ReferralCodeResult:
        """Get or issue user's referral code."""
        return await self.registry.generate_code(user_id)

    async def resolve_code(self, code: str) -> str:
        """Resolve referral code to owner id."""
        return await self.registry.resolve_code(code)

    async def is_valid_code(self, code: str) -> bool:
        """Check whether referral code is registered."""
        return await self.registry.is_valid_code(code)

    async def get_referral_link(self, user_id: str) -> ReferralLink:
        """Get shareable referral link."""
        return await self.registry.get_referral_link(user_id)

    # Relationships

    async def apply_referral_code(
        self, code: str | None, new_user_id: str | None
    ) -> ApplyReferralResult:
        """Attribute new user to a referrer at sign-up."""
        return await self.tracker.apply_referral_code(code, new_user_id)

    async def validate_referral(
        self,
        referrer_id: str,
        referred_user_id: str,
        tournament_type: str | None = None,
    ) -> ValidationResult:
        """Validate a relationship and credit the referrer once."""
        return await self.tracker.validate_referral(
            referrer_id, referred_user_id, tournament_type
        )

    async def validate_referrals_on_payment(
        self, user_id: str, tournament_type: str
    ) -> ValidationResult:
        """Payment hook: validate the payer's referral, if any."""
        return await self.tracker.process_payment(user_id, tournament_type)

    # Settlement

    async def settle(
        self,
        tournament_type: str,
        batch: AsyncSession | None = None,
    ) -> SettlementResult:
        """Sweep pending referral balances at tournament end."""
        return await self.settlement.settle(tournament_type, batch=batch)

    # Read side

    async def get_referral_stats(self, user_id: str) -> ReferralStats:
        """Get referral statistics for profile page."""
        return await self.statistics.get_referral_stats(user_id)

    async def get_referral_list(
        self, user_id: str, limit: int = DEFAULT_REFERRAL_LIST_LIMIT
    ) -> list[ReferralListItem]:
        """Get referrals made by user."""
        return await self.statistics.get_referral_list(user_id, limit)
