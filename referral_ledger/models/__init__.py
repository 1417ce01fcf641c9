"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from referral_ledger.models.base import Base
from referral_ledger.models.enums import (
    ReferralError,
    ReferralStatus,
    TransactionStatus,
    TransactionType,
    ValidationOutcome,
)
from referral_ledger.models.referral import Referral
from referral_ledger.models.referral_code import ReferralCode
from referral_ledger.models.transaction import Transaction
from referral_ledger.models.user import User


__all__ = [
    "Base",
    "Referral",
    "ReferralCode",
    "ReferralError",
    "ReferralStatus",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "User",
    "ValidationOutcome",
]
