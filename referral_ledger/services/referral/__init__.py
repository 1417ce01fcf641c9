"""
Referral services package.

Contains modular services for referral processing:
- code_registry: Issues and resolves referral codes
- relationship_tracker: Applies codes and validates referrals on payment
- balance_accumulator: Reward policy, credits pending balances
- settlement: Sweeps pending balances at tournament end
- statistics: Read-side stats and referral lists
"""

from referral_ledger.services.referral.balance_accumulator import (
    ReferralBalanceAccumulator,
)
from referral_ledger.services.referral.code_registry import ReferralCodeRegistry
from referral_ledger.services.referral.relationship_tracker import (
    ReferralRelationshipTracker,
)
from referral_ledger.services.referral.results import (
    ApplyReferralResult,
    CodeValidation,
    ReferralCodeResult,
    ReferralLink,
    ReferralListItem,
    ReferralStats,
    SettlementResult,
    ValidationResult,
)
from referral_ledger.services.referral.settlement import (
    ReferralSettlementService,
)
from referral_ledger.services.referral.statistics import (
    ReferralStatisticsService,
)


__all__ = [
    # Services
    "ReferralBalanceAccumulator",
    "ReferralCodeRegistry",
    "ReferralRelationshipTracker",
    "ReferralSettlementService",
    "ReferralStatisticsService",
    # Results
    "ApplyReferralResult",
    "CodeValidation",
    "ReferralCodeResult",
    "ReferralLink",
    "ReferralListItem",
    "ReferralStats",
    "SettlementResult",
    "ValidationResult",
]
