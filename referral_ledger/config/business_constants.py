"""
Business logic constants for the referral ledger.

Reward policy is fixed by product rules and intentionally not read from the
environment: changing it changes what users were promised.
"""

from decimal import Decimal


# Reward credited to a referrer when a referral becomes valid (USDT)
REFERRAL_REWARD_AMOUNT = Decimal("1")

# Pending referral balance required at settlement to be paid out (USDT).
# Anything below is forfeited, it does not roll over.
MIN_PAYOUT_AMOUNT = Decimal("10")

# Currency tag written on payout transactions
SETTLEMENT_CURRENCY = "USDT"

# Referral code format: uppercase letters and digits without I, O, 0, 1
REFERRAL_CODE_LENGTH = 8
REFERRAL_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

# 32^8 candidates; a handful of attempts only fails if the store is broken
MAX_CODE_GENERATION_ATTEMPTS = 10

# Tournament types that qualify a payment and trigger settlement
TOURNAMENT_TYPES = ("mini", "grand")

# One settlement lock for all tournament types: a sweep touches every user
SETTLEMENT_LOCK_KEY = "referral_settlement"

# Read-side defaults
DEFAULT_REFERRAL_LIST_LIMIT = 50
ANONYMOUS_DISPLAY_NAME = "Anonymous User"


def is_valid_tournament_type(tournament_type: str | None) -> bool:
    """
    Check tournament type against the closed set of known types.

    Args:
        tournament_type: Tournament type tag

    Returns:
        True if tournament type is known
    """
    return tournament_type in TOURNAMENT_TYPES
