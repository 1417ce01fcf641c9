"""
Referral relationship tracker.

Creates referrer -> referred edges at sign-up and validates them when the
referred user makes a qualifying payment. Each relationship moves
pending -> valid at most once; the move and the referrer's reward are
committed together.
"""

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.config.business_constants import is_valid_tournament_type
from referral_ledger.models.enums import (
    ReferralError,
    ReferralStatus,
    ValidationOutcome,
)
from referral_ledger.repositories.referral_repository import ReferralRepository
from referral_ledger.repositories.user_repository import UserRepository
from referral_ledger.services.referral.balance_accumulator import (
    ReferralBalanceAccumulator,
)
from referral_ledger.services.referral.code_registry import ReferralCodeRegistry
from referral_ledger.services.referral.results import (
    ApplyReferralResult,
    ValidationResult,
)
from referral_ledger.utils.datetime_utils import utc_now
from referral_ledger.utils.db_decorators import with_rollback_on_error
from referral_ledger.utils.exceptions import InvalidTournamentTypeError


# User-facing messages for expected failures
MSG_MISSING_INPUT = "Referral code and new user ID are required"
MSG_SELF_REFERRAL = "You cannot refer yourself"
MSG_USER_NOT_FOUND = "User not found"
MSG_ALREADY_REFERRED = "User already has a referrer"
MSG_APPLIED = "Referral code applied successfully"

MSG_NO_REFERRER = "User has no referrer"
MSG_REFERRAL_NOT_FOUND = "Referral record not found"
MSG_ALREADY_PROCESSED = "Referral already processed"
MSG_VALIDATED = "Referral reward processed successfully"


class ReferralRelationshipTracker:
    """Records and validates referral relationships."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize tracker.

        Args:
            session: Async database session
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.registry = ReferralCodeRegistry(session)
        self.accumulator = ReferralBalanceAccumulator(session)

    @with_rollback_on_error
    async def apply_referral_code(
        self, code: str | None, new_user_id: str | None
    ) -> ApplyReferralResult:
        """
        Attribute a new user to the owner of a referral code.

        Expected failures (bad code, self-referral, already referred) are
        returned, not raised. On success the referred_by assignment, the
        referrer's count increment and the pending relationship are
        committed as one batch.

        Args:
            code: Referral code entered or carried by the sign-up link
            new_user_id: ID of the user being referred

        Returns:
            ApplyReferralResult

        Raises:
            StoreUnavailableError: If the store fails
        """
        if not code or not new_user_id:
            return self._apply_failure(
                ReferralError.MISSING_INPUT, MSG_MISSING_INPUT
            )

        validation = await self.registry.validate_code(code)
        if not validation.valid:
            return self._apply_failure(
                validation.error or ReferralError.INVALID_CODE,
                validation.message or "Invalid referral code",
            )

        referrer_id = validation.referrer_id
        if referrer_id == new_user_id:
            return self._apply_failure(
                ReferralError.SELF_REFERRAL, MSG_SELF_REFERRAL
            )

        new_user = await self.user_repo.get_by_id(new_user_id)
        if not new_user:
            return self._apply_failure(
                ReferralError.NOT_FOUND, MSG_USER_NOT_FOUND
            )

        if new_user.referred_by:
            return self._apply_failure(
                ReferralError.ALREADY_REFERRED, MSG_ALREADY_REFERRED
            )

        now = utc_now()

        # First writer wins; a concurrent apply leaves zero rows to update
        assigned = await self.user_repo.set_referred_by(
            new_user_id, referrer_id, now
        )
        if not assigned:
            await self.session.rollback()
            return self._apply_failure(
                ReferralError.ALREADY_REFERRED, MSG_ALREADY_REFERRED
            )

        await self.user_repo.increment_referral_count(referrer_id)

        try:
            referral = await self.referral_repo.create_pending(
                referrer_id=referrer_id,
                referred_user_id=new_user_id,
                referral_code=validation.referral_code,
                created_at=now,
            )
            referral_id = referral.id
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.warning(
                "Referral relationship already exists",
                extra={"referrer_id": referrer_id, "referred_user_id": new_user_id},
            )
            return self._apply_failure(
                ReferralError.ALREADY_REFERRED, MSG_ALREADY_REFERRED
            )

        logger.info(
            "Referral code applied",
            extra={
                "referrer_id": referrer_id,
                "referred_user_id": new_user_id,
                "referral_id": referral_id,
            },
        )

        return ApplyReferralResult(
            success=True,
            message=MSG_APPLIED,
            referrer_id=referrer_id,
            referral_id=referral_id,
        )

    @with_rollback_on_error
    async def validate_referral(
        self,
        referrer_id: str,
        referred_user_id: str,
        tournament_type: str | None = None,
    ) -> ValidationResult:
        """
        Mark relationship valid and credit the referrer, exactly once.

        Safe to call again for the same payment: an already valid
        relationship is reported as ALREADY_PROCESSED and nothing changes.

        Args:
            referrer_id: Referrer user ID
            referred_user_id: Paying (referred) user ID
            tournament_type: Qualifying tournament type

        Returns:
            ValidationResult telling which branch was taken

        Raises:
            InvalidTournamentTypeError: If tournament type is unknown
            StoreUnavailableError: If the store fails
        """
        if tournament_type is not None and not is_valid_tournament_type(tournament_type):
            raise InvalidTournamentTypeError(tournament_type)

        referral = await self.referral_repo.get_relationship(
            referrer_id, referred_user_id
        )

        if not referral:
            return ValidationResult(
                success=False,
                processed=False,
                outcome=ValidationOutcome.NOT_FOUND,
                message=MSG_REFERRAL_NOT_FOUND,
            )

        referral_id = referral.id

        if referral.status == ReferralStatus.VALID:
            return self._already_processed(referral_id, referrer_id)

        # Pending-only update: a concurrent validation leaves zero rows
        transitioned = await self.referral_repo.mark_valid(
            referral_id, tournament_type, utc_now()
        )
        if not transitioned:
            await self.session.rollback()
            return self._already_processed(referral_id, referrer_id)

        reward_amount = await self.accumulator.credit(referrer_id)
        await self.session.commit()

        logger.info(
            "Referral validated",
            extra={
                "referral_id": referral_id,
                "referrer_id": referrer_id,
                "tournament_type": tournament_type,
                "reward": str(reward_amount),
            },
        )

        return ValidationResult(
            success=True,
            processed=True,
            outcome=ValidationOutcome.VALIDATED,
            message=MSG_VALIDATED,
            referral_id=referral_id,
            referrer_id=referrer_id,
            reward_amount=reward_amount,
        )

    async def process_payment(
        self, user_id: str, tournament_type: str
    ) -> ValidationResult:
        """
        Handle a verified tournament payment.

        Entry point for the payment flow: finds the payer's referrer, if
        any, and validates that relationship.

        Args:
            user_id: Paying user ID
            tournament_type: Tournament the payment was for

        Returns:
            ValidationResult; NO_REFERRER for the common case of a payer
            who signed up without a code

        Raises:
            ValueError: If user id is missing
            InvalidTournamentTypeError: If tournament type is unknown
            StoreUnavailableError: If the store fails
        """
        if not user_id:
            raise ValueError("User ID is required")

        if not is_valid_tournament_type(tournament_type):
            raise InvalidTournamentTypeError(tournament_type)

        logger.info(
            f"Processing referral reward for user {user_id} "
            f"for {tournament_type} tournament..."
        )

        payer = await self._get_payer(user_id)
        if not payer:
            return ValidationResult(
                success=False,
                processed=False,
                outcome=ValidationOutcome.NOT_FOUND,
                message=MSG_USER_NOT_FOUND,
            )

        if not payer.referred_by:
            return ValidationResult(
                success=True,
                processed=False,
                outcome=ValidationOutcome.NO_REFERRER,
                message=MSG_NO_REFERRER,
            )

        return await self.validate_referral(
            payer.referred_by, user_id, tournament_type
        )

    @with_rollback_on_error
    async def _get_payer(self, user_id: str):
        """Load paying user."""
        return await self.user_repo.get_by_id(user_id)

    @staticmethod
    def _apply_failure(
        error: ReferralError, message: str
    ) -> ApplyReferralResult:
        """Build failed apply result."""
        logger.debug(f"Referral code not applied: {error.value}")
        return ApplyReferralResult(success=False, message=message, error=error)

    @staticmethod
    def _already_processed(
        referral_id: str, referrer_id: str
    ) -> ValidationResult:
        """Build result for an already valid relationship."""
        return ValidationResult(
            success=True,
            processed=False,
            outcome=ValidationOutcome.ALREADY_PROCESSED,
            message=MSG_ALREADY_PROCESSED,
            referral_id=referral_id,
            referrer_id=referrer_id,
        )
