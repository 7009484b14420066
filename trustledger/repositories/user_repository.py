"""
User repository.

Data access layer for User model.
"""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.models.user import User
from trustledger.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_phone(
        self, phone: str, for_update: bool = False
    ) -> User | None:
        """
        Get user by phone number.

        Args:
            phone: Phone number
            for_update: Lock the row until the unit of work ends

        Returns:
            User or None
        """
        stmt = (
            select(User)
            .where(User.phone == phone)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_referral_code(
        self, referral_code: str
    ) -> User | None:
        """
        Get user by referral code.

        Args:
            referral_code: Referral code

        Returns:
            User or None
        """
        return await self.get_by(referral_code=referral_code)

    async def get_by_referrer_code(self, referrer_code: str) -> list[User]:
        """
        Get users recruited with the given code.

        Args:
            referrer_code: Referral code of the recruiter

        Returns:
            List of users, oldest first
        """
        stmt = (
            select(User)
            .where(User.referrer_code == referrer_code)
            .order_by(User.created_at.asc(), User.phone.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_referrer_codes(
        self, referrer_codes: list[str]
    ) -> list[User]:
        """
        Get users recruited with any of the given codes.

        Args:
            referrer_codes: Referral codes of the recruiters

        Returns:
            List of users, oldest first
        """
        if not referrer_codes:
            return []

        stmt = (
            select(User)
            .where(User.referrer_code.in_(referrer_codes))
            .order_by(User.created_at.asc(), User.phone.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def phones_exist(self, phones: list[str]) -> set[str]:
        """
        Return which of the given phones are registered.

        Args:
            phones: Phone numbers

        Returns:
            Set of registered phones
        """
        if not phones:
            return set()

        stmt = select(User.phone).where(User.phone.in_(phones))
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def apply_commission_delta(
        self, phone: str, delta_pending: int, delta_paid: int
    ) -> bool:
        """
        Add deltas to both commission balances in one statement.

        The row is only touched if both balances stay non-negative.

        Args:
            phone: Phone number
            delta_pending: Change of pending_commission
            delta_paid: Change of paid_commission

        Returns:
            True if the row was updated
        """
        stmt = (
            update(User)
            .where(
                User.phone == phone,
                User.pending_commission + delta_pending >= 0,
                User.paid_commission + delta_paid >= 0,
            )
            .values(
                pending_commission=User.pending_commission + delta_pending,
                paid_commission=User.paid_commission + delta_paid,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def get_balance_totals(self) -> tuple[int, int]:
        """
        Sum commission balances over all users.

        Returns:
            Tuple of (total pending, total paid)
        """
        stmt = select(
            func.coalesce(func.sum(User.pending_commission), 0),
            func.coalesce(func.sum(User.paid_commission), 0),
        )
        result = await self.session.execute(stmt)
        pending, paid = result.one()
        return int(pending), int(paid)

    async def get_balances_by_phone(self) -> dict[str, tuple[int, int]]:
        """
        Commission balances of every user holding any.

        Returns:
            Dict phone -> (pending, paid)
        """
        stmt = select(
            User.phone, User.pending_commission, User.paid_commission
        ).where(
            (User.pending_commission != 0) | (User.paid_commission != 0)
        )
        result = await self.session.execute(stmt)
        return {
            row.phone: (row.pending_commission, row.paid_commission)
            for row in result
        }
