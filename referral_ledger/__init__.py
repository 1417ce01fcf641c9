"""
Referral ledger for the tournament platform.

Tracks referral codes and relationships, credits referral rewards on
qualifying payments and settles pending referral balances at tournament end.
"""

__version__ = "1.0.0"
