"""
Standard type definitions for database models.

Provides consistent types for monetary fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, rewards
# Precision: 18 digits total, 8 after decimal point
# Suitable for: USDT balances, referral rewards, payouts
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Opaque user identifier (auth provider uid)
USER_ID_LENGTH = 128
