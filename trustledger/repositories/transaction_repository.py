"""
Transaction repository.

Data access layer for Transaction model.
"""

from datetime import datetime

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.models.enums import TransactionFilter, TransactionStatus
from trustledger.models.transaction import Transaction
from trustledger.repositories.base import BaseRepository

_CONFIRMED = TransactionStatus.CONFIRMED.value
_PENDING = TransactionStatus.PENDING.value


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def get_for_update(
        self, transaction_id: int
    ) -> Transaction | None:
        """
        Get transaction and lock its row.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction or None
        """
        stmt = (
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def settle(
        self,
        transaction_id: int,
        status: TransactionStatus,
        settled_at: datetime,
    ) -> bool:
        """
        Move a pending transaction to a settled status.

        The status and settled_at are written by one guarded statement,
        so a row that is no longer pending is left untouched.

        Args:
            transaction_id: Transaction ID
            status: Target status (confirmed or denied)
            settled_at: Settlement timestamp

        Returns:
            True if this call performed the transition
        """
        stmt = (
            update(Transaction)
            .where(
                Transaction.id == transaction_id,
                Transaction.status == _PENDING,
            )
            .values(status=status.value, settled_at=settled_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def get_for_user(
        self,
        phone: str,
        filter: TransactionFilter = TransactionFilter.ALL,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Transaction]:
        """
        Get transactions where phone is a principal.

        Args:
            phone: Phone number
            filter: Which subset to return
            limit: Max number of results
            offset: Number of results to skip

        Returns:
            Transactions, newest first (ties by id)
        """
        stmt = select(Transaction).where(
            or_(Transaction.from_phone == phone, Transaction.to_phone == phone)
        )

        if filter == TransactionFilter.PENDING_OUTGOING:
            stmt = stmt.where(
                Transaction.status == _PENDING,
                Transaction.initiated_by == phone,
            )
        elif filter == TransactionFilter.PENDING_INCOMING:
            stmt = stmt.where(
                Transaction.status == _PENDING,
                Transaction.initiated_by != phone,
            )
        elif filter == TransactionFilter.CONFIRMED:
            stmt = stmt.where(Transaction.status == _CONFIRMED)
        elif filter == TransactionFilter.DENIED:
            stmt = stmt.where(
                Transaction.status == TransactionStatus.DENIED.value
            )
        elif filter == TransactionFilter.SENT:
            stmt = stmt.where(Transaction.from_phone == phone)
        elif filter == TransactionFilter.RECEIVED:
            stmt = stmt.where(Transaction.to_phone == phone)

        stmt = stmt.order_by(
            Transaction.created_at.desc(), Transaction.id.desc()
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        stmt = stmt.execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_recent_confirmed(
        self, phone: str, limit: int
    ) -> list[Transaction]:
        """
        Get most recently settled confirmed transactions of a user.

        Args:
            phone: Phone number
            limit: Max number of results

        Returns:
            Transactions, latest settlement first
        """
        stmt = (
            select(Transaction)
            .where(
                Transaction.status == _CONFIRMED,
                or_(
                    Transaction.from_phone == phone,
                    Transaction.to_phone == phone,
                ),
            )
            .order_by(Transaction.settled_at.desc(), Transaction.id.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_pair_flows(self, phone_a: str, phone_b: str) -> tuple[int, int]:
        """
        Sum confirmed amounts flowing each way between two users.

        Args:
            phone_a: First user
            phone_b: Second user

        Returns:
            Tuple of (amount b -> a, amount a -> b)
        """
        stmt = select(
            func.coalesce(
                func.sum(
                    case(
                        (
                            (Transaction.from_phone == phone_b)
                            & (Transaction.to_phone == phone_a),
                            Transaction.amount,
                        ),
                        else_=0,
                    )
                ),
                0,
            ),
            func.coalesce(
                func.sum(
                    case(
                        (
                            (Transaction.from_phone == phone_a)
                            & (Transaction.to_phone == phone_b),
                            Transaction.amount,
                        ),
                        else_=0,
                    )
                ),
                0,
            ),
        ).where(Transaction.status == _CONFIRMED)
        result = await self.session.execute(stmt)
        incoming, outgoing = result.one()
        return int(incoming), int(outgoing)

    async def get_user_flows(self, phone: str) -> tuple[int, int]:
        """
        Sum confirmed amounts received and sent by a user.

        Args:
            phone: Phone number

        Returns:
            Tuple of (received, sent)
        """
        stmt = select(
            func.coalesce(
                func.sum(
                    case(
                        (Transaction.to_phone == phone, Transaction.amount),
                        else_=0,
                    )
                ),
                0,
            ),
            func.coalesce(
                func.sum(
                    case(
                        (Transaction.from_phone == phone, Transaction.amount),
                        else_=0,
                    )
                ),
                0,
            ),
        ).where(Transaction.status == _CONFIRMED)
        result = await self.session.execute(stmt)
        received, sent = result.one()
        return int(received), int(sent)

    async def get_counterparty_flows(
        self, phone: str
    ) -> dict[str, int]:
        """
        Net confirmed amount per counterparty.

        Args:
            phone: Phone number

        Returns:
            Dict counterparty phone -> received minus sent
        """
        stmt = (
            select(
                Transaction.from_phone,
                Transaction.to_phone,
                func.sum(Transaction.amount).label("total"),
            )
            .where(
                Transaction.status == _CONFIRMED,
                or_(
                    Transaction.from_phone == phone,
                    Transaction.to_phone == phone,
                ),
            )
            .group_by(Transaction.from_phone, Transaction.to_phone)
        )
        result = await self.session.execute(stmt)

        flows: dict[str, int] = {}
        for row in result:
            if row.to_phone == phone:
                flows[row.from_phone] = flows.get(row.from_phone, 0) + int(row.total)
            else:
                flows[row.to_phone] = flows.get(row.to_phone, 0) - int(row.total)
        return flows

    async def get_confirmed_with_missing_principals(self) -> list[int]:
        """
        IDs of confirmed transactions whose principals are not registered.

        Returns:
            List of transaction IDs
        """
        from trustledger.models.user import User

        registered = select(User.phone)
        stmt = select(Transaction.id).where(
            Transaction.status == _CONFIRMED,
            or_(
                Transaction.from_phone.not_in(registered),
                Transaction.to_phone.not_in(registered),
            ),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
