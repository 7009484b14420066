"""
Payout model.

Atomic settlement of a recipient's whole pending commission set.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trustledger.models.base import Base, utcnow

if TYPE_CHECKING:
    from trustledger.models.commission import Commission


class Payout(Base):
    """Payout model - one paid batch of commissions."""

    __tablename__ = "payouts"
    __table_args__ = (
        CheckConstraint(
            'total_amount > 0', name='check_payout_total_positive'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    recipient_phone: Mapped[str] = mapped_column(
        String(10), ForeignKey("users.phone"), nullable=False, index=True
    )
    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    commissions: Mapped[list["Commission"]] = relationship(
        "Commission",
        lazy="selectin",
        order_by="Commission.id",
    )

    @property
    def commission_ids(self) -> frozenset[int]:
        """IDs of the commissions settled by this payout."""
        return frozenset(c.id for c in self.commissions)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Payout(id={self.id}, total_amount={self.total_amount})>"
        )
