"""
ReferralCode model.

Lookup table from a public referral code to the user who owns it. The code
itself is the primary key, so claiming a code is a conditional insert.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from referral_ledger.models.base import Base
from referral_ledger.utils.datetime_utils import utc_now


class ReferralCode(Base):
    """Issued referral code, permanently bound to one user."""

    __tablename__ = "referral_codes"

    code: Mapped[str] = mapped_column(String(20), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ReferralCode(code={self.code!r}, user_id={self.user_id!r})>"
