"""
Tests for referral reward and settlement rules.

Rules:
- Each valid referral credits 1 USDT to the referrer's pending balance
- At settlement, balance >= 10 USDT is paid out, anything below is forfeited

Covers:
- Payout floor boundaries
- Payout description
- Relationship id format
- Tournament type checks
"""

from decimal import Decimal

import pytest

from referral_ledger.config.business_constants import (
    MIN_PAYOUT_AMOUNT,
    REFERRAL_REWARD_AMOUNT,
    TOURNAMENT_TYPES,
    is_valid_tournament_type,
)
from referral_ledger.repositories.referral_repository import make_referral_id
from referral_ledger.services.referral.settlement import (
    is_payout_eligible,
    payout_description,
)


class TestPayoutFloor:
    """Test payout eligibility (Math Validation)."""

    def test_exactly_at_floor(self):
        """Balance equal to the floor is paid out."""
        assert is_payout_eligible(Decimal("10")) is True

    def test_above_floor(self):
        """Balance above the floor is paid out."""
        assert is_payout_eligible(Decimal("25")) is True

    def test_just_below_floor(self):
        """9.99 is forfeited."""
        assert is_payout_eligible(Decimal("9.99")) is False

    def test_single_reward(self):
        """One reward alone is below the floor."""
        assert is_payout_eligible(REFERRAL_REWARD_AMOUNT) is False

    def test_scale_does_not_matter(self):
        """Stored decimals with trailing zeros compare by value."""
        assert is_payout_eligible(Decimal("10.00000000")) is True

    def test_ten_rewards_reach_floor(self):
        """Ten valid referrals are enough for a payout."""
        assert REFERRAL_REWARD_AMOUNT * 10 == MIN_PAYOUT_AMOUNT


class TestPayoutDescription:
    """Test payout transaction description."""

    @pytest.mark.parametrize("tournament_type", ["mini", "grand"])
    def test_mentions_tournament(self, tournament_type):
        """Description names the tournament type."""
        assert payout_description(tournament_type) == (
            f"Referral payout for {tournament_type} tournament"
        )


class TestReferralId:
    """Test deterministic relationship id."""

    def test_format(self):
        """Id joins referrer and referred user with underscore."""
        assert make_referral_id("U1", "U2") == "U1_U2"

    def test_ordered_pair(self):
        """Swapping users gives a different id."""
        assert make_referral_id("U1", "U2") != make_referral_id("U2", "U1")


class TestTournamentTypes:
    """Test tournament type validation."""

    def test_known_types(self):
        """Mini and grand are the only known types."""
        assert TOURNAMENT_TYPES == ("mini", "grand")
        assert is_valid_tournament_type("mini") is True
        assert is_valid_tournament_type("grand") is True

    @pytest.mark.parametrize("value", ["weekly", "MINI", "", None])
    def test_unknown_types(self, value):
        """Anything else is rejected."""
        assert is_valid_tournament_type(value) is False
