"""
User model.

Represents a registered user, keyed by phone number.
"""

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from trustledger.models.base import Base, TimestampMixin

# Fields that may change after registration
MUTABLE_PROFILE_FIELDS = frozenset({"full_name", "email"})


class User(TimestampMixin, Base):
    """User model - registered users and their commission balances."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint('referral_code', name='uq_users_referral_code'),
        CheckConstraint(
            'pending_commission >= 0',
            name='check_user_pending_commission_non_negative'
        ),
        CheckConstraint(
            'paid_commission >= 0',
            name='check_user_paid_commission_non_negative'
        ),
    )

    # Primary key
    phone: Mapped[str] = mapped_column(String(10), primary_key=True)

    # Profile
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Referral
    referral_code: Mapped[str] = mapped_column(
        String(10), nullable=False
    )
    referrer_code: Mapped[str | None] = mapped_column(
        String(10),
        ForeignKey("users.referral_code"),
        nullable=True,
        index=True,
    )

    # Commission balances (minor units)
    pending_commission: Mapped[int] = mapped_column(
        BigInteger, default=0, nullable=False
    )
    paid_commission: Mapped[int] = mapped_column(
        BigInteger, default=0, nullable=False
    )

    @property
    def is_root(self) -> bool:
        """Seed users have no referrer."""
        return self.referrer_code is None

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(referral_code={self.referral_code}, "
            f"pending={self.pending_commission}, paid={self.paid_commission})>"
        )
