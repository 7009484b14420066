"""
FeeEvent repository.

Data access layer for FeeEvent model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.models.fee_event import FeeEvent
from trustledger.repositories.base import BaseRepository


class FeeEventRepository(BaseRepository[FeeEvent]):
    """FeeEvent repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize fee event repository."""
        super().__init__(FeeEvent, session)

    async def get_by_payment_id(self, payment_id: str) -> FeeEvent | None:
        """
        Get fee event by payment identifier.

        Args:
            payment_id: Fee event identifier

        Returns:
            FeeEvent or None
        """
        return await self.get_by_id(payment_id)
