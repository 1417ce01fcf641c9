"""
Referral settlement.

Runs at tournament end. Every user with a positive pending referral balance
is swept: balances at or above the payout floor move to the wallet balance
with a payout transaction, smaller balances are forfeited (reset to zero,
no rollover).

All writes of one run go into a single unit of work. Either the service
owns it (commits, and reports any failure as a failed result) or the
caller passes in its own session as the batch (the service only stages
writes and lets errors propagate to the owner).

Each per-user write is conditional on the balance still equalling the value
that was read. A balance that moved in between (a fresh credit, or another
sweep) is skipped for this run rather than paid twice.
"""

from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.config.business_constants import (
    MIN_PAYOUT_AMOUNT,
    SETTLEMENT_CURRENCY,
    is_valid_tournament_type,
)
from referral_ledger.repositories.transaction_repository import (
    TransactionRepository,
)
from referral_ledger.repositories.user_repository import UserRepository
from referral_ledger.services.base_service import BaseService, log_operation
from referral_ledger.services.referral.results import (
    SettlementPayout,
    SettlementResult,
)
from referral_ledger.utils.exceptions import (
    InvalidTournamentTypeError,
    wrap_store_error,
)


def is_payout_eligible(balance: Decimal) -> bool:
    """
    Check if a pending balance is large enough to be paid out.

    Args:
        balance: Pending referral balance

    Returns:
        True if balance reaches the payout floor
    """
    return balance >= MIN_PAYOUT_AMOUNT


def payout_description(tournament_type: str) -> str:
    """Description written on payout transactions."""
    return f"Referral payout for {tournament_type} tournament"


class ReferralSettlementService(BaseService):
    """Sweeps pending referral balances at tournament boundaries."""

    @log_operation
    async def settle(
        self,
        tournament_type: str,
        batch: AsyncSession | None = None,
    ) -> SettlementResult:
        """
        Settle all pending referral balances.

        Not safe to run concurrently with itself; the scheduled job holds
        a distributed lock around it. Re-running after a completed run is
        a no-op because every swept balance is zero.

        Args:
            tournament_type: Tournament that just ended
            batch: Caller-owned session to stage writes in. When given, the
                caller commits and store errors are raised.

        Returns:
            SettlementResult with aggregate counts and amounts. When the
            service owns the batch, any failure (store or driver) yields
            success=False and nothing is written.

        Raises:
            InvalidTournamentTypeError: If tournament type is unknown
            StoreUnavailableError: On store failure with a caller batch
        """
        if not is_valid_tournament_type(tournament_type):
            raise InvalidTournamentTypeError(tournament_type)

        owns_batch = batch is None
        session = self.session if owns_batch else batch

        self.logger.info(
            f"Processing referral payouts for {tournament_type} tournament..."
        )

        try:
            result = await self._sweep(session, tournament_type)
            if owns_batch:
                await session.commit()
        except Exception as e:
            self.logger.error(
                f"Error processing referral payouts for "
                f"{tournament_type} tournament: {type(e).__name__}: {e}"
            )
            if not owns_batch:
                if isinstance(e, SQLAlchemyError):
                    raise wrap_store_error(e) from e
                raise

            # Driver errors (refused connection, timeout) end up here too
            await session.rollback()
            return SettlementResult(
                success=False,
                tournament_type=tournament_type,
                error=str(e),
            )

        self.logger.info(
            f"Referral payouts processed: {result.users_processed} users, "
            f"{result.total_paid_out} {SETTLEMENT_CURRENCY} paid out, "
            f"{result.total_reset} {SETTLEMENT_CURRENCY} reset",
            extra={
                "tournament_type": tournament_type,
                "users_skipped": result.users_skipped,
            },
        )
        return result

    async def preview(self, tournament_type: str) -> SettlementResult:
        """
        Compute what settle() would do, without writing.

        Args:
            tournament_type: Tournament that is about to end

        Returns:
            SettlementResult describing the planned sweep

        Raises:
            InvalidTournamentTypeError: If tournament type is unknown
            StoreUnavailableError: If the store fails
        """
        if not is_valid_tournament_type(tournament_type):
            raise InvalidTournamentTypeError(tournament_type)

        try:
            users = await UserRepository(self.session).get_with_referral_balance()
        except SQLAlchemyError as e:
            raise wrap_store_error(e) from e

        result = SettlementResult(success=True, tournament_type=tournament_type)
        for user in users:
            balance = user.referral_balance
            paid_out = is_payout_eligible(balance)
            self._record(result, user.id, balance, paid_out)

        return result

    async def _sweep(
        self, session: AsyncSession, tournament_type: str
    ) -> SettlementResult:
        """Stage all settlement writes in the given session."""
        user_repo = UserRepository(session)
        transaction_repo = TransactionRepository(session)

        result = SettlementResult(success=True, tournament_type=tournament_type)

        users = await user_repo.get_with_referral_balance()
        if not users:
            self.logger.info("No users with referral balances found")
            return result

        for user in users:
            user_id = user.id
            balance = user.referral_balance

            if balance <= 0:
                continue

            if is_payout_eligible(balance):
                moved = await user_repo.pay_out_referral_balance(user_id, balance)
                if moved:
                    await transaction_repo.create_referral_payout(
                        user_id=user_id,
                        amount=balance,
                        currency=SETTLEMENT_CURRENCY,
                        description=payout_description(tournament_type),
                    )
            else:
                moved = await user_repo.reset_referral_balance(user_id, balance)

            if not moved:
                result.users_skipped += 1
                self.logger.warning(
                    "Referral balance changed during settlement, skipped",
                    extra={"user_id": user_id, "read_balance": str(balance)},
                )
                continue

            self._record(result, user_id, balance, is_payout_eligible(balance))

        return result

    @staticmethod
    def _record(
        result: SettlementResult,
        user_id: str,
        balance: Decimal,
        paid_out: bool,
    ) -> None:
        """Add one user's decision to the aggregate."""
        result.users_processed += 1
        if paid_out:
            result.total_paid_out += balance
        else:
            result.total_reset += balance
        result.payouts.append(
            SettlementPayout(user_id=user_id, amount=balance, paid_out=paid_out)
        )
