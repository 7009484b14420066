"""
FeeEvent model.

Records every processed platform-fee event; its primary key makes
commission emission idempotent per payment id.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from trustledger.models.base import Base, utcnow


class FeeEvent(Base):
    """FeeEvent model - processed upstream fee payments."""

    __tablename__ = "fee_events"

    payment_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payer_phone: Mapped[str] = mapped_column(
        String(10), ForeignKey("users.phone"), nullable=False, index=True
    )
    fee_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    commission_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<FeeEvent(payment_id={self.payment_id}, "
            f"commissions={self.commission_count})>"
        )
