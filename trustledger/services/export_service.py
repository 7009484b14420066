"""
Export service.

JSON-ready snapshot of everything stored about one user.
"""

from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.repositories.commission_repository import (
    CommissionRepository,
)
from trustledger.repositories.payout_repository import PayoutRepository
from trustledger.repositories.transaction_repository import (
    TransactionRepository,
)
from trustledger.repositories.user_repository import UserRepository
from trustledger.utils.exceptions import NotFoundError
from trustledger.utils.security_logging import mask_phone


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class ExportService:
    """Service for user data export."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize export service."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.payout_repo = PayoutRepository(session)

    async def export_user_data(self, phone: str) -> dict[str, Any]:
        """
        Export profile, transactions, commissions and payouts of a user.

        Args:
            phone: Phone number

        Returns:
            Dict of plain JSON types

        Raises:
            NotFoundError: User does not exist
        """
        user = await self.user_repo.get_by_phone(phone)
        if not user:
            raise NotFoundError("User not found")

        transactions = await self.transaction_repo.get_for_user(phone)
        commissions = await self.commission_repo.get_by_recipient(phone)
        payouts = await self.payout_repo.get_by_recipient(phone)

        logger.info(
            "User data exported",
            extra={
                "phone": mask_phone(phone),
                "transactions": len(transactions),
                "commissions": len(commissions),
            },
        )

        return {
            "profile": {
                "phone": user.phone,
                "full_name": user.full_name,
                "email": user.email,
                "referral_code": user.referral_code,
                "referrer_code": user.referrer_code,
                "pending_commission": user.pending_commission,
                "paid_commission": user.paid_commission,
                "created_at": _iso(user.created_at),
            },
            "transactions": [
                {
                    "id": t.id,
                    "from_phone": t.from_phone,
                    "to_phone": t.to_phone,
                    "initiated_by": t.initiated_by,
                    "amount": t.amount,
                    "description": t.description,
                    "status": t.status,
                    "created_at": _iso(t.created_at),
                    "settled_at": _iso(t.settled_at),
                }
                for t in transactions
            ],
            "commissions": [
                {
                    "id": c.id,
                    "payment_id": c.payment_id,
                    "level": c.level,
                    "amount": c.amount,
                    "status": c.status,
                    "payout_id": c.payout_id,
                    "created_at": _iso(c.created_at),
                    "due_date": _iso(c.due_date),
                    "paid_at": _iso(c.paid_at),
                }
                for c in commissions
            ],
            "payouts": [
                {
                    "id": p.id,
                    "total_amount": p.total_amount,
                    "commission_ids": sorted(p.commission_ids),
                    "created_at": _iso(p.created_at),
                }
                for p in payouts
            ],
        }
