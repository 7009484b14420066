"""
Transaction model.

A recorded debt between two users, awaiting or past the counterparty's
decision.
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from trustledger.models.base import Base, utcnow
from trustledger.models.enums import TransactionStatus


class Transaction(Base):
    """
    Transaction entity.

    The status column is the variant tag. A pending row carries no
    settled_at; confirmed and denied rows always do, and never change
    again.

    Attributes:
        id: Primary key
        from_phone: Side the money left
        to_phone: Side the money reached
        amount: Amount in minor units
        description: Free text, may be empty
        initiated_by: Phone of the submitting side
        status: pending, confirmed or denied
        created_at: Submission timestamp
        settled_at: Confirmation/denial timestamp
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            'amount > 0', name='check_transaction_amount_positive'
        ),
        CheckConstraint(
            'from_phone <> to_phone',
            name='check_transaction_distinct_principals'
        ),
        CheckConstraint(
            'initiated_by = from_phone OR initiated_by = to_phone',
            name='check_transaction_initiator_is_principal'
        ),
        CheckConstraint(
            "(status = 'pending' AND settled_at IS NULL) OR "
            "(status IN ('confirmed', 'denied') AND settled_at IS NOT NULL)",
            name='check_transaction_settled_at_matches_status'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Principals
    from_phone: Mapped[str] = mapped_column(
        String(10), ForeignKey("users.phone"), nullable=False, index=True
    )
    to_phone: Mapped[str] = mapped_column(
        String(10), ForeignKey("users.phone"), nullable=False, index=True
    )
    initiated_by: Mapped[str] = mapped_column(String(10), nullable=False)

    # Amount
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(
        String(1000), nullable=False, default=""
    )

    # Status
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.PENDING.value,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    settled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Properties

    @property
    def counterparty(self) -> str:
        """Phone of the side that must confirm or deny."""
        if self.initiated_by == self.from_phone:
            return self.to_phone
        return self.from_phone

    @property
    def is_pending(self) -> bool:
        """Check if transaction awaits the counterparty."""
        return self.status == TransactionStatus.PENDING.value

    @property
    def is_confirmed(self) -> bool:
        """Check if transaction is a ledger entry."""
        return self.status == TransactionStatus.CONFIRMED.value

    def involves(self, phone: str) -> bool:
        """Check if phone is one of the principals."""
        return phone in (self.from_phone, self.to_phone)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, amount={self.amount}, "
            f"status={self.status})>"
        )


# Composite indexes
Index(
    "idx_transaction_from_status",
    Transaction.from_phone,
    Transaction.status,
)
Index(
    "idx_transaction_to_status",
    Transaction.to_phone,
    Transaction.status,
)
