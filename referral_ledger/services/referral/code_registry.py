"""
Referral code registry.

Issues short shareable referral codes and resolves them back to the owning
user. Codes are stored twice: on the user row (so a user's code is a point
read) and as their own record keyed by the code (so resolving is a point
read and a code can only ever be claimed once).
"""

import secrets

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.config.business_constants import (
    MAX_CODE_GENERATION_ATTEMPTS,
    REFERRAL_CODE_ALPHABET,
    REFERRAL_CODE_LENGTH,
)
from referral_ledger.config.settings import settings
from referral_ledger.models.enums import ReferralError
from referral_ledger.models.referral_code import ReferralCode
from referral_ledger.repositories.referral_code_repository import (
    ReferralCodeRepository,
)
from referral_ledger.repositories.user_repository import UserRepository
from referral_ledger.services.referral.results import (
    CodeValidation,
    ReferralCodeResult,
    ReferralLink,
)
from referral_ledger.utils.db_decorators import with_rollback_on_error
from referral_ledger.utils.exceptions import (
    ReferralCodeGenerationError,
    ReferralCodeNotFoundError,
    UserNotFoundError,
    wrap_store_error,
)


def normalize_code(code: str) -> str:
    """
    Normalize referral code for lookup.

    Args:
        code: Code as typed or shared by a user

    Returns:
        Stripped, upper-cased code
    """
    return code.strip().upper()


def generate_candidate(
    length: int = REFERRAL_CODE_LENGTH,
    alphabet: str = REFERRAL_CODE_ALPHABET,
) -> str:
    """
    Draw a random referral code candidate.

    Args:
        length: Code length
        alphabet: Allowed characters

    Returns:
        Random code
    """
    return "".join(secrets.choice(alphabet) for _ in range(length))


def build_referral_link(code: str, base: str | None = None) -> str:
    """
    Build referral link for a code.

    Args:
        code: Referral code
        base: Link base, defaults to settings.referral_link_base

    Returns:
        Link carrying the code in the `ref` query parameter
    """
    base = settings.referral_link_base if base is None else base
    return f"{base}?ref={code}"


class ReferralCodeRegistry:
    """Issues and resolves referral codes."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize registry.

        Args:
            session: Async database session
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.code_repo = ReferralCodeRepository(session)

    @with_rollback_on_error
    async def generate_code(self, user_id: str) -> ReferralCodeResult:
        """
        Get user's referral code, issuing one on first request.

        The code is written to the user row and to the code lookup table
        in one commit. The code's primary key turns the claim into a
        conditional insert: if another process claims the same candidate
        first, the commit fails and a fresh candidate is drawn.

        Args:
            user_id: User ID

        Returns:
            ReferralCodeResult with the code and whether it was just issued

        Raises:
            UserNotFoundError: If user does not exist
            ReferralCodeGenerationError: If no code could be claimed
            StoreUnavailableError: If the store fails
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)

        if user.referral_code:
            return ReferralCodeResult(
                referral_code=user.referral_code, is_new=False
            )

        for attempt in range(1, MAX_CODE_GENERATION_ATTEMPTS + 1):
            code = generate_candidate()

            if await self.code_repo.is_taken(code):
                logger.debug(
                    "Referral code candidate already taken",
                    extra={"attempt": attempt},
                )
                continue

            try:
                assigned = await self.user_repo.set_referral_code(user_id, code)
                if assigned:
                    self.session.add(ReferralCode(code=code, user_id=user_id))
                    await self.session.commit()
                    logger.info(
                        "Referral code issued",
                        extra={"user_id": user_id, "attempt": attempt},
                    )
                    return ReferralCodeResult(referral_code=code, is_new=True)
            except IntegrityError:
                await self.session.rollback()
                logger.warning(
                    "Referral code claim conflicted, retrying",
                    extra={"user_id": user_id, "attempt": attempt},
                )
            else:
                # Lost to a concurrent call for the same user
                await self.session.rollback()

            existing = await self._get_existing_code(user_id)
            if existing:
                return ReferralCodeResult(referral_code=existing, is_new=False)

        raise ReferralCodeGenerationError(
            f"Could not issue referral code for {user_id} "
            f"after {MAX_CODE_GENERATION_ATTEMPTS} attempts"
        )

    async def _get_existing_code(self, user_id: str) -> str | None:
        """Re-read user's code after a failed claim."""
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user.referral_code

    async def resolve_code(self, code: str) -> str:
        """
        Resolve referral code to the owning user id.

        Lookup is case-insensitive.

        Args:
            code: Referral code

        Returns:
            Owner user ID

        Raises:
            ReferralCodeNotFoundError: If code is empty or not registered
            StoreUnavailableError: If the store fails
        """
        if not code or not code.strip():
            raise ReferralCodeNotFoundError(code or "")

        normalized = normalize_code(code)
        try:
            owner_id = await self.code_repo.get_owner_id(normalized)
        except SQLAlchemyError as e:
            raise wrap_store_error(e) from e

        if owner_id is None:
            raise ReferralCodeNotFoundError(normalized)

        return owner_id

    async def is_valid_code(self, code: str) -> bool:
        """
        Check whether a referral code is registered.

        Never raises: lookup failures of any kind read as False.

        Args:
            code: Referral code

        Returns:
            True if code resolves to a user
        """
        try:
            await self.resolve_code(code)
        except ReferralCodeNotFoundError:
            return False
        except Exception as e:
            logger.error(f"Error checking referral code: {e}")
            return False
        return True

    async def validate_code(self, code: str | None) -> CodeValidation:
        """
        Check referral code and its owner before applying it.

        Args:
            code: Referral code

        Returns:
            CodeValidation with referrer id and normalized code when valid

        Raises:
            StoreUnavailableError: If the store fails
        """
        if not code or not code.strip():
            return CodeValidation(
                valid=False,
                message="Referral code is required",
                error=ReferralError.MISSING_INPUT,
            )

        try:
            referrer_id = await self.resolve_code(code)
        except ReferralCodeNotFoundError:
            return CodeValidation(
                valid=False,
                message="Invalid referral code",
                error=ReferralError.INVALID_CODE,
            )

        try:
            referrer = await self.user_repo.get_by_id(referrer_id)
        except SQLAlchemyError as e:
            raise wrap_store_error(e) from e

        if not referrer:
            return CodeValidation(
                valid=False,
                message="Referrer not found",
                error=ReferralError.INVALID_CODE,
            )

        return CodeValidation(
            valid=True,
            referrer_id=referrer_id,
            referral_code=normalize_code(code),
        )

    async def get_referral_link(self, user_id: str) -> ReferralLink:
        """
        Get shareable referral link, issuing a code if needed.

        Args:
            user_id: User ID

        Returns:
            ReferralLink with code and link

        Raises:
            UserNotFoundError: If user does not exist
        """
        result = await self.generate_code(user_id)
        return ReferralLink(
            referral_code=result.referral_code,
            referral_link=build_referral_link(result.referral_code),
        )
