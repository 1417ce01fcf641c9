"""
Result types returned by referral services.

Expected outcomes (a bad code, a payer without referrer, a failed sweep)
are reported through these objects rather than raised.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from referral_ledger.models.enums import ReferralError, ValidationOutcome


@dataclass
class ReferralCodeResult:
    """Result of referral code generation."""

    referral_code: str
    is_new: bool


@dataclass
class CodeValidation:
    """Result of checking a referral code before applying it."""

    valid: bool
    referrer_id: str | None = None
    referral_code: str | None = None
    message: str | None = None
    error: ReferralError | None = None


@dataclass
class ReferralLink:
    """Shareable referral link."""

    referral_code: str
    referral_link: str


@dataclass
class ApplyReferralResult:
    """Result of applying a referral code at sign-up."""

    success: bool
    message: str
    error: ReferralError | None = None
    referrer_id: str | None = None
    referral_id: str | None = None


@dataclass
class ValidationResult:
    """Result of validating a referral on a qualifying payment."""

    success: bool
    processed: bool
    outcome: ValidationOutcome
    message: str
    referral_id: str | None = None
    referrer_id: str | None = None
    reward_amount: Decimal | None = None


@dataclass
class SettlementPayout:
    """Per-user settlement decision."""

    user_id: str
    amount: Decimal
    paid_out: bool


@dataclass
class SettlementResult:
    """Aggregate result of a settlement run."""

    success: bool
    tournament_type: str
    users_processed: int = 0
    users_skipped: int = 0
    total_paid_out: Decimal = Decimal("0")
    total_reset: Decimal = Decimal("0")
    error: str | None = None
    payouts: list[SettlementPayout] = field(default_factory=list)


@dataclass
class ReferralStats:
    """Referral statistics for a user."""

    referral_code: str | None
    referral_url: str | None
    total_referrals: int
    valid_referrals: int
    pending_referrals: int
    current_balance: Decimal
    minimum_payout: Decimal
    reward_per_referral: Decimal


@dataclass
class ReferredUserInfo:
    """Public profile of a referred user."""

    display_name: str
    email: str | None = None
    photo_url: str | None = None


@dataclass
class ReferralListItem:
    """One entry of a user's referral list."""

    id: str
    referred_user: ReferredUserInfo
    status: str
    created_at: datetime | None
    validated_at: datetime | None
    tournament_type: str | None
    reward: Decimal
