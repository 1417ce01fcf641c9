"""
Repositories.

Data access layer over the ledger store.
"""

from referral_ledger.repositories.base import BaseRepository
from referral_ledger.repositories.referral_code_repository import (
    ReferralCodeRepository,
)
from referral_ledger.repositories.referral_repository import ReferralRepository
from referral_ledger.repositories.transaction_repository import (
    TransactionRepository,
)
from referral_ledger.repositories.user_repository import UserRepository


__all__ = [
    "BaseRepository",
    "ReferralCodeRepository",
    "ReferralRepository",
    "TransactionRepository",
    "UserRepository",
]
