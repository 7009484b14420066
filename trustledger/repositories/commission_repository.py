"""
Commission repository.

Data access layer for Commission model.
"""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.models.commission import Commission
from trustledger.models.enums import CommissionStatus
from trustledger.repositories.base import BaseRepository

_PENDING = CommissionStatus.PENDING.value
_PAID = CommissionStatus.PAID.value


class CommissionRepository(BaseRepository[Commission]):
    """Commission repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    async def get_by_payment(self, payment_id: str) -> list[Commission]:
        """
        Get commissions produced by one fee event.

        Args:
            payment_id: Fee event identifier

        Returns:
            Commissions ordered by level
        """
        stmt = (
            select(Commission)
            .where(Commission.payment_id == payment_id)
            .order_by(Commission.level.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_recipient(
        self,
        recipient_phone: str,
        status: CommissionStatus | None = None,
        for_update: bool = False,
    ) -> list[Commission]:
        """
        Get commissions of a recipient.

        Args:
            recipient_phone: Recipient phone
            status: Optional status filter
            for_update: Lock the rows until the unit of work ends

        Returns:
            Commissions, oldest first
        """
        stmt = select(Commission).where(
            Commission.recipient_phone == recipient_phone
        )
        if status is not None:
            stmt = stmt.where(Commission.status == status.value)
        if for_update:
            stmt = stmt.with_for_update()

        stmt = stmt.order_by(
            Commission.created_at.asc(), Commission.id.asc()
        ).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_pending(
        self, recipient_phone: str, for_update: bool = False
    ) -> list[Commission]:
        """
        Get pending commissions of a recipient.

        Args:
            recipient_phone: Recipient phone
            for_update: Lock the rows until the unit of work ends

        Returns:
            Pending commissions, oldest first
        """
        return await self.get_by_recipient(
            recipient_phone,
            status=CommissionStatus.PENDING,
            for_update=for_update,
        )

    async def mark_paid(
        self,
        commission_ids: list[int],
        payout_id: int,
        paid_at: datetime,
    ) -> int:
        """
        Mark pending commissions as paid by one payout.

        Rows that are no longer pending are left untouched.

        Args:
            commission_ids: Commission IDs
            payout_id: Payout batch ID
            paid_at: Payout timestamp

        Returns:
            Number of rows transitioned
        """
        if not commission_ids:
            return 0

        stmt = (
            update(Commission)
            .where(
                Commission.id.in_(commission_ids),
                Commission.status == _PENDING,
            )
            .values(status=_PAID, payout_id=payout_id, paid_at=paid_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def get_totals_by_status(self) -> dict[str, int]:
        """
        Sum commission amounts by status.

        Returns:
            Dict status -> total amount
        """
        stmt = select(
            Commission.status, func.sum(Commission.amount)
        ).group_by(Commission.status)
        result = await self.session.execute(stmt)
        totals = {_PENDING: 0, _PAID: 0}
        for status, total in result:
            totals[status] = int(total or 0)
        return totals

    async def get_totals_by_recipient(self) -> dict[str, tuple[int, int]]:
        """
        Sum commission amounts per recipient and status.

        Returns:
            Dict phone -> (pending total, paid total)
        """
        stmt = select(
            Commission.recipient_phone,
            Commission.status,
            func.sum(Commission.amount),
        ).group_by(Commission.recipient_phone, Commission.status)
        result = await self.session.execute(stmt)

        totals: dict[str, tuple[int, int]] = {}
        for phone, status, total in result:
            pending, paid = totals.get(phone, (0, 0))
            if status == _PENDING:
                pending += int(total or 0)
            else:
                paid += int(total or 0)
            totals[phone] = (pending, paid)
        return totals
