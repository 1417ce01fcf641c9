"""
User model.

One row per registered player. Holds referral attribution, referral
counters and both balances.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base
from referral_ledger.models.types import USER_ID_LENGTH, MoneyType
from referral_ledger.utils.datetime_utils import utc_now


class User(Base):
    """User model - registered players."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'referral_balance >= 0', name='referral_balance_non_negative'
        ),
        CheckConstraint(
            'wallet_balance >= 0', name='wallet_balance_non_negative'
        ),
        CheckConstraint(
            'referral_count >= 0', name='referral_count_non_negative'
        ),
        CheckConstraint(
            'referral_count_valid >= 0 AND referral_count_valid <= referral_count',
            name='referral_count_valid_bounded'
        ),
        CheckConstraint(
            'referred_by IS NULL OR referred_by <> id',
            name='no_self_referral'
        ),
    )

    # Opaque id from the auth provider
    id: Mapped[str] = mapped_column(
        String(USER_ID_LENGTH), primary_key=True
    )

    # Profile (shown in referral lists)
    display_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    photo_url: Mapped[str | None] = mapped_column(
        String(1024), nullable=True
    )

    # Referral attribution
    referral_code: Mapped[str | None] = mapped_column(
        String(20), nullable=True, unique=True, index=True
    )
    referred_by: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    referred_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Referral counters (only ever incremented)
    referral_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    referral_count_valid: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    # Balances
    referral_balance: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        server_default="0",
        nullable=False,
        index=True,
        comment="Pending referral earnings, swept at settlement",
    )
    wallet_balance: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        server_default="0",
        nullable=False,
        comment="Withdrawable balance",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id!r}, referral_code={self.referral_code!r}, "
            f"referral_balance={self.referral_balance})>"
        )
