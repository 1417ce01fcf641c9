"""
Referral model.

Referrer -> referred user edge. The primary key is derived from both ids,
so an edge exists at most once per ordered pair and lookups are point reads.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base
from referral_ledger.models.enums import ReferralStatus
from referral_ledger.utils.datetime_utils import utc_now


class Referral(Base):
    """Referral relationship."""

    __tablename__ = "referrals"
    __table_args__ = (
        Index("idx_referrals_referrer_created", "referrer_id", "created_at"),
    )

    # f"{referrer_id}_{referred_user_id}"
    id: Mapped[str] = mapped_column(String(300), primary_key=True)

    referrer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # A user is referred at most once
    referred_user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    referral_code: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=ReferralStatus.PENDING,
        server_default=ReferralStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    tournament_type: Mapped[str | None] = mapped_column(
        String(20), nullable=True,
        comment="Tournament type of the qualifying payment",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    validated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def is_valid(self) -> bool:
        """Check if referral has been validated by a qualifying payment."""
        return self.status == ReferralStatus.VALID

    def __repr__(self) -> str:
        """String representation."""
        return f"<Referral(id={self.id!r}, status={self.status!r})>"
