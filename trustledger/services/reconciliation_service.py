"""
Reconciliation service.

Checks the cross-component invariants: commission balances against
commission rows, payouts against paid rows, and confirmed transactions
against registered users.
"""

from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.models.enums import CommissionStatus
from trustledger.repositories.commission_repository import (
    CommissionRepository,
)
from trustledger.repositories.payout_repository import PayoutRepository
from trustledger.repositories.transaction_repository import (
    TransactionRepository,
)
from trustledger.repositories.user_repository import UserRepository
from trustledger.utils.security_logging import mask_phone


class ReconciliationService:
    """Service for commission and ledger reconciliation."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reconciliation service."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.payout_repo = PayoutRepository(session)
        self.transaction_repo = TransactionRepository(session)

    async def check_invariants(self) -> dict[str, Any]:
        """
        Compare stored balances with the rows they summarise.

        Checks:
            sum(users.pending_commission) == sum(pending commission rows)
            sum(users.paid_commission) == sum(paid commission rows)
            sum(payouts.total_amount) == sum(paid commission rows)
            per user: balances == own rows
            confirmed transactions reference registered users

        Returns:
            Dict with totals, mismatched_users, orphan_transactions and ok
        """
        pending_balance, paid_balance = (
            await self.user_repo.get_balance_totals()
        )
        row_totals = await self.commission_repo.get_totals_by_status()
        pending_rows = row_totals[CommissionStatus.PENDING.value]
        paid_rows = row_totals[CommissionStatus.PAID.value]
        paid_out = await self.payout_repo.get_total_paid_out()

        balances = await self.user_repo.get_balances_by_phone()
        rows_by_user = await self.commission_repo.get_totals_by_recipient()
        mismatched_users = sorted(
            phone
            for phone in set(balances) | set(rows_by_user)
            if balances.get(phone, (0, 0)) != rows_by_user.get(phone, (0, 0))
        )

        orphan_transactions = (
            await self.transaction_repo.get_confirmed_with_missing_principals()
        )

        ok = (
            pending_balance == pending_rows
            and paid_balance == paid_rows
            and paid_out == paid_rows
            and not mismatched_users
            and not orphan_transactions
        )

        report = {
            "ok": ok,
            "pending_balance_total": pending_balance,
            "pending_rows_total": pending_rows,
            "paid_balance_total": paid_balance,
            "paid_rows_total": paid_rows,
            "payouts_total": paid_out,
            "mismatched_users": mismatched_users,
            "orphan_transactions": orphan_transactions,
        }

        if ok:
            logger.info("Reconciliation passed", extra={"ok": True})
        else:
            logger.error(
                "CRITICAL: Reconciliation mismatch detected",
                extra={
                    "pending_balance_total": pending_balance,
                    "pending_rows_total": pending_rows,
                    "paid_balance_total": paid_balance,
                    "paid_rows_total": paid_rows,
                    "payouts_total": paid_out,
                    "mismatched_users": [
                        mask_phone(phone) for phone in mismatched_users
                    ],
                    "orphan_transactions": orphan_transactions,
                },
            )

        return report
