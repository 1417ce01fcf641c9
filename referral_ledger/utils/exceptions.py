"""
Exception types for the referral ledger.

Expected, user-triggerable outcomes (bad code, self-referral, ...) are not
exceptions; services return them as structured results. The classes here
cover missing entities, programming errors and store failures.
"""

from sqlalchemy.exc import SQLAlchemyError


class ReferralLedgerError(Exception):
    """Base class for referral ledger errors."""
    pass


class NotFoundError(ReferralLedgerError):
    """Referenced user, code or relationship does not exist."""
    pass


class UserNotFoundError(NotFoundError):
    """User document does not exist."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class ReferralCodeNotFoundError(NotFoundError):
    """Referral code is not registered."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Referral code not found: {code}")
        self.code = code


class InvalidTournamentTypeError(ReferralLedgerError, ValueError):
    """Tournament type is not one of the known types."""

    def __init__(self, tournament_type: str | None) -> None:
        super().__init__(f"Invalid tournament type: {tournament_type}")
        self.tournament_type = tournament_type


class ReferralCodeGenerationError(ReferralLedgerError):
    """Could not claim a unique referral code within the attempt budget."""
    pass


class StoreUnavailableError(ReferralLedgerError):
    """Ledger store could not complete a read, write or commit."""
    pass


def wrap_store_error(exc: SQLAlchemyError) -> StoreUnavailableError:
    """
    Convert SQLAlchemy error into StoreUnavailableError.

    Args:
        exc: Original SQLAlchemy error

    Returns:
        StoreUnavailableError chained to the original error
    """
    error = StoreUnavailableError(f"Ledger store unavailable: {exc}")
    error.__cause__ = exc
    return error
