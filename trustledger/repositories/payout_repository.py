"""
Payout repository.

Data access layer for Payout model.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.models.payout import Payout
from trustledger.repositories.base import BaseRepository


class PayoutRepository(BaseRepository[Payout]):
    """Payout repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize payout repository."""
        super().__init__(Payout, session)

    async def get_by_recipient(self, recipient_phone: str) -> list[Payout]:
        """
        Get payouts of a recipient.

        Args:
            recipient_phone: Recipient phone

        Returns:
            Payouts, newest first
        """
        stmt = (
            select(Payout)
            .where(Payout.recipient_phone == recipient_phone)
            .order_by(Payout.created_at.desc(), Payout.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_total_paid_out(self) -> int:
        """
        Sum of all payout totals.

        Returns:
            Total amount paid out
        """
        stmt = select(func.coalesce(func.sum(Payout.total_amount), 0))
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)
