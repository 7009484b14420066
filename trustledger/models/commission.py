"""
Commission model.

One referral commission accrued from a platform-fee event.
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from trustledger.models.base import Base, utcnow
from trustledger.models.enums import CommissionStatus


class Commission(Base):
    """
    Commission entity.

    Tracks one referral commission:
    - The fee event that produced it
    - The ancestor receiving it and their level
    - Payout linkage once paid

    Attributes:
        id: Primary key
        payment_id: Upstream fee event identifier
        recipient_phone: Ancestor receiving the commission
        amount: Amount in minor units
        level: Referral level (1 = direct referrer)
        status: pending or paid
        created_at: Accrual timestamp
        due_date: Informational due date
        paid_at: Payout timestamp
        payout_id: Payout batch
    """

    __tablename__ = "commissions"
    __table_args__ = (
        UniqueConstraint(
            "payment_id",
            "recipient_phone",
            "level",
            name="uq_commission_payment_recipient_level",
        ),
        CheckConstraint(
            'amount > 0', name='check_commission_amount_positive'
        ),
        CheckConstraint(
            'level BETWEEN 1 AND 4', name='check_commission_level_range'
        ),
        CheckConstraint(
            "(status = 'pending' AND paid_at IS NULL AND payout_id IS NULL) OR "
            "(status = 'paid' AND paid_at IS NOT NULL AND payout_id IS NOT NULL)",
            name='check_commission_payout_matches_status'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Source fee event
    payment_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("fee_events.payment_id"),
        nullable=False,
        index=True,
    )

    # Recipient
    recipient_phone: Mapped[str] = mapped_column(
        String(10), ForeignKey("users.phone"), nullable=False, index=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)

    # Amount
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    # Payment tracking
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CommissionStatus.PENDING.value,
        index=True,
    )
    payout_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("payouts.id"), nullable=True, index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    due_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Properties

    @property
    def is_paid(self) -> bool:
        """Check if commission is paid."""
        return self.status == CommissionStatus.PAID.value

    @property
    def is_pending(self) -> bool:
        """Check if commission is pending payment."""
        return self.status == CommissionStatus.PENDING.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Commission(id={self.id}, "
            f"payment_id={self.payment_id}, "
            f"level={self.level}, "
            f"amount={self.amount}, "
            f"status={self.status})"
        )


# Composite indexes
Index(
    "idx_commission_recipient_status",
    Commission.recipient_phone,
    Commission.status,
)
