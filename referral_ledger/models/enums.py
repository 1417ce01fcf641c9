"""
Enumerations shared by models and services.
"""

from enum import StrEnum


class ReferralStatus(StrEnum):
    """Referral relationship status. PENDING -> VALID, never back."""

    PENDING = "pending"
    VALID = "valid"


class TransactionType(StrEnum):
    """Ledger transaction types."""

    REFERRAL_PAYOUT = "referral_payout"


class TransactionStatus(StrEnum):
    """Ledger transaction status."""

    COMPLETED = "completed"


class ReferralError(StrEnum):
    """Expected failure kinds returned (not raised) to callers."""

    MISSING_INPUT = "missing_input"
    INVALID_CODE = "invalid_code"
    SELF_REFERRAL = "self_referral"
    ALREADY_REFERRED = "already_referred"
    NOT_FOUND = "not_found"


class ValidationOutcome(StrEnum):
    """Which branch a referral validation took."""

    VALIDATED = "validated"
    ALREADY_PROCESSED = "already_processed"
    NO_REFERRER = "no_referrer"
    NOT_FOUND = "not_found"
