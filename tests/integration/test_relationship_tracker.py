"""
Integration tests for ReferralRelationshipTracker.

Covers:
- Applying codes at sign-up and every rejection branch
- Validation on payment, exactly once
- Store failures leave no partial writes
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from referral_ledger.models.enums import (
    ReferralError,
    ReferralStatus,
    ValidationOutcome,
)
from referral_ledger.services.referral import code_registry
from referral_ledger.services.referral.code_registry import ReferralCodeRegistry
from referral_ledger.services.referral.relationship_tracker import (
    ReferralRelationshipTracker,
)
from referral_ledger.utils.exceptions import (
    InvalidTournamentTypeError,
    StoreUnavailableError,
)


def _commit_fails() -> AsyncMock:
    return AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("down")))


@pytest.fixture
def referrer(db_session, create_user, monkeypatch):
    """Create referrer U1 owning code REFR2345."""
    async def _referrer(user_id: str = "U1", code: str = "REFR2345") -> str:
        await create_user(user_id)
        monkeypatch.setattr(code_registry, "generate_candidate", lambda: code)
        await ReferralCodeRegistry(db_session).generate_code(user_id)
        return code

    return _referrer


class TestApplyReferralCode:
    """Test attribution at sign-up."""

    @pytest.mark.asyncio
    async def test_applies_code(
        self, db_session, create_user, load_user, load_referral, referrer
    ):
        """New user is attributed and a pending relationship created."""
        code = await referrer()
        await create_user("U2")

        result = await ReferralRelationshipTracker(db_session).apply_referral_code(
            code, "U2"
        )

        assert result.success is True
        assert result.referrer_id == "U1"
        assert result.referral_id == "U1_U2"

        u1 = await load_user("U1")
        u2 = await load_user("U2")
        assert u2.referred_by == "U1"
        assert u2.referred_at is not None
        assert u1.referral_count == 1
        assert u1.referral_count_valid == 0

        referral = await load_referral("U1_U2")
        assert referral.status == ReferralStatus.PENDING
        assert referral.referral_code == code
        assert referral.validated_at is None

    @pytest.mark.asyncio
    async def test_lowercase_code(self, db_session, create_user, load_referral, referrer):
        """Code is matched case-insensitively and stored normalized."""
        await referrer(code="REFR2345")
        await create_user("U2")

        result = await ReferralRelationshipTracker(db_session).apply_referral_code(
            "refr2345", "U2"
        )

        assert result.success is True
        referral = await load_referral("U1_U2")
        assert referral.referral_code == "REFR2345"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code,user_id", [(None, "U2"), ("", "U2"), ("REFR2345", None)])
    async def test_missing_input(self, db_session, code, user_id):
        """Missing code or user id is rejected."""
        result = await ReferralRelationshipTracker(db_session).apply_referral_code(
            code, user_id
        )

        assert result.success is False
        assert result.error == ReferralError.MISSING_INPUT

    @pytest.mark.asyncio
    async def test_invalid_code(self, db_session, create_user, load_user):
        """Unknown code is rejected without writes."""
        await create_user("U2")

        result = await ReferralRelationshipTracker(db_session).apply_referral_code(
            "NOPE2345", "U2"
        )

        assert result.success is False
        assert result.error == ReferralError.INVALID_CODE
        u2 = await load_user("U2")
        assert u2.referred_by is None

    @pytest.mark.asyncio
    async def test_self_referral(self, db_session, load_user, load_referral, referrer):
        """User cannot apply their own code."""
        code = await referrer()

        result = await ReferralRelationshipTracker(db_session).apply_referral_code(
            code, "U1"
        )

        assert result.success is False
        assert result.error == ReferralError.SELF_REFERRAL
        assert result.message == "You cannot refer yourself"
        u1 = await load_user("U1")
        assert u1.referred_by is None
        assert u1.referral_count == 0
        assert await load_referral("U1_U1") is None

    @pytest.mark.asyncio
    async def test_unknown_new_user(self, db_session, load_user, referrer):
        """Unknown new user is rejected, referrer count untouched."""
        code = await referrer()

        result = await ReferralRelationshipTracker(db_session).apply_referral_code(
            code, "ghost"
        )

        assert result.success is False
        assert result.error == ReferralError.NOT_FOUND
        u1 = await load_user("U1")
        assert u1.referral_count == 0

    @pytest.mark.asyncio
    async def test_already_referred(
        self, db_session, create_user, load_user, referrer
    ):
        """Second code is rejected; first referrer keeps the user."""
        code_a = await referrer("A", "AAAA2345")
        code_b = await referrer("B", "BBBB2345")
        await create_user("U2")
        tracker = ReferralRelationshipTracker(db_session)

        first = await tracker.apply_referral_code(code_a, "U2")
        second = await tracker.apply_referral_code(code_b, "U2")

        assert first.success is True
        assert second.success is False
        assert second.error == ReferralError.ALREADY_REFERRED

        u2 = await load_user("U2")
        b = await load_user("B")
        assert u2.referred_by == "A"
        assert b.referral_count == 0

    @pytest.mark.asyncio
    async def test_same_code_twice(self, db_session, create_user, load_user, referrer):
        """Re-applying the same code does not double count."""
        code = await referrer()
        await create_user("U2")
        tracker = ReferralRelationshipTracker(db_session)

        await tracker.apply_referral_code(code, "U2")
        again = await tracker.apply_referral_code(code, "U2")

        assert again.error == ReferralError.ALREADY_REFERRED
        u1 = await load_user("U1")
        assert u1.referral_count == 1

    @pytest.mark.asyncio
    async def test_store_failure_is_atomic(
        self, db_session, create_user, load_user, load_referral, referrer, monkeypatch
    ):
        """Failed commit leaves neither attribution nor count nor relationship."""
        code = await referrer()
        await create_user("U2")
        monkeypatch.setattr(db_session, "commit", _commit_fails())

        with pytest.raises(StoreUnavailableError):
            await ReferralRelationshipTracker(db_session).apply_referral_code(
                code, "U2"
            )

        u1 = await load_user("U1")
        u2 = await load_user("U2")
        assert u2.referred_by is None
        assert u1.referral_count == 0
        assert await load_referral("U1_U2") is None


@pytest.fixture
def referred_pair(db_session, create_user, referrer):
    """U1 referred U2 (pending)."""
    async def _referred_pair() -> None:
        code = await referrer()
        await create_user("U2")
        result = await ReferralRelationshipTracker(db_session).apply_referral_code(
            code, "U2"
        )
        assert result.success is True

    return _referred_pair


class TestValidateReferral:
    """Test validation and reward credit."""

    @pytest.mark.asyncio
    async def test_validates_and_credits(
        self, db_session, load_user, load_referral, referred_pair
    ):
        """Pending relationship becomes valid and referrer earns 1 USDT."""
        await referred_pair()

        result = await ReferralRelationshipTracker(db_session).validate_referral(
            "U1", "U2", "mini"
        )

        assert result.success is True
        assert result.processed is True
        assert result.outcome == ValidationOutcome.VALIDATED
        assert result.reward_amount == Decimal("1")

        referral = await load_referral("U1_U2")
        assert referral.status == ReferralStatus.VALID
        assert referral.tournament_type == "mini"
        assert referral.validated_at is not None

        u1 = await load_user("U1")
        assert u1.referral_balance == Decimal("1")
        assert u1.referral_count_valid == 1

    @pytest.mark.asyncio
    async def test_second_validation_is_noop(
        self, db_session, load_user, referred_pair
    ):
        """Validating twice credits once."""
        await referred_pair()
        tracker = ReferralRelationshipTracker(db_session)

        await tracker.validate_referral("U1", "U2", "mini")
        again = await tracker.validate_referral("U1", "U2", "grand")

        assert again.success is True
        assert again.processed is False
        assert again.outcome == ValidationOutcome.ALREADY_PROCESSED

        u1 = await load_user("U1")
        assert u1.referral_balance == Decimal("1")
        assert u1.referral_count_valid == 1

    @pytest.mark.asyncio
    async def test_missing_relationship(self, db_session, create_user):
        """No relationship record is reported as not found."""
        await create_user("U1")
        await create_user("U2")

        result = await ReferralRelationshipTracker(db_session).validate_referral(
            "U1", "U2", "mini"
        )

        assert result.success is False
        assert result.outcome == ValidationOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_reversed_pair_not_found(self, db_session, referred_pair):
        """Relationship id is an ordered pair."""
        await referred_pair()

        result = await ReferralRelationshipTracker(db_session).validate_referral(
            "U2", "U1", "mini"
        )

        assert result.outcome == ValidationOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_invalid_tournament_type(self, db_session, referred_pair):
        """Unknown tournament type raises."""
        await referred_pair()

        with pytest.raises(InvalidTournamentTypeError):
            await ReferralRelationshipTracker(db_session).validate_referral(
                "U1", "U2", "weekly"
            )

    @pytest.mark.asyncio
    async def test_store_failure_is_atomic(
        self, db_session, load_user, load_referral, referred_pair, monkeypatch
    ):
        """Failed commit leaves relationship pending and balance untouched."""
        await referred_pair()
        monkeypatch.setattr(db_session, "commit", _commit_fails())

        with pytest.raises(StoreUnavailableError):
            await ReferralRelationshipTracker(db_session).validate_referral(
                "U1", "U2", "mini"
            )

        referral = await load_referral("U1_U2")
        u1 = await load_user("U1")
        assert referral.status == ReferralStatus.PENDING
        assert u1.referral_balance == Decimal("0")
        assert u1.referral_count_valid == 0


class TestProcessPayment:
    """Test payment hook."""

    @pytest.mark.asyncio
    async def test_payer_with_referrer(self, db_session, load_user, referred_pair):
        """Payment by a referred user validates the relationship."""
        await referred_pair()

        result = await ReferralRelationshipTracker(db_session).process_payment(
            "U2", "grand"
        )

        assert result.outcome == ValidationOutcome.VALIDATED
        u1 = await load_user("U1")
        assert u1.referral_balance == Decimal("1")

    @pytest.mark.asyncio
    async def test_payer_without_referrer(self, db_session, create_user):
        """Payer who signed up without a code is a no-op success."""
        await create_user("U3")

        result = await ReferralRelationshipTracker(db_session).process_payment(
            "U3", "mini"
        )

        assert result.success is True
        assert result.processed is False
        assert result.outcome == ValidationOutcome.NO_REFERRER

    @pytest.mark.asyncio
    async def test_unknown_payer(self, db_session):
        """Unknown payer is reported as not found."""
        result = await ReferralRelationshipTracker(db_session).process_payment(
            "ghost", "mini"
        )

        assert result.success is False
        assert result.outcome == ValidationOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_repeat_payment(self, db_session, load_user, referred_pair):
        """Second payment does not credit again."""
        await referred_pair()
        tracker = ReferralRelationshipTracker(db_session)

        await tracker.process_payment("U2", "mini")
        again = await tracker.process_payment("U2", "mini")

        assert again.outcome == ValidationOutcome.ALREADY_PROCESSED
        u1 = await load_user("U1")
        assert u1.referral_balance == Decimal("1")

    @pytest.mark.asyncio
    async def test_missing_user_id(self, db_session):
        """Empty user id is a programming error."""
        with pytest.raises(ValueError):
            await ReferralRelationshipTracker(db_session).process_payment("", "mini")

    @pytest.mark.asyncio
    async def test_invalid_tournament_type(self, db_session):
        """Unknown tournament type raises."""
        with pytest.raises(InvalidTournamentTypeError):
            await ReferralRelationshipTracker(db_session).process_payment(
                "U2", "weekly"
            )
