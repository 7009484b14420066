"""
Ledger service.

Read-only projection of confirmed transactions into balances. Pending
and denied rows never contribute.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.models.transaction import Transaction
from trustledger.repositories.transaction_repository import (
    TransactionRepository,
)
from trustledger.utils.exceptions import LedgerIntegrityError
from trustledger.utils.security_logging import mask_phone


@dataclass(frozen=True)
class LedgerTotals:
    """Confirmed totals of one user."""

    receivable: int
    payable: int
    net: int


class LedgerService:
    """Ledger projector over confirmed transactions."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger service.

        Args:
            session: Database session
        """
        self.session = session
        self.transaction_repo = TransactionRepository(session)

    async def pair_balance(self, phone_a: str, phone_b: str) -> int:
        """
        Net position of a towards b.

        Args:
            phone_a: First user
            phone_b: Second user

        Returns:
            Confirmed b -> a minus confirmed a -> b; positive means a is
            the net creditor of b
        """
        incoming, outgoing = await self.transaction_repo.get_pair_flows(
            phone_a, phone_b
        )
        return incoming - outgoing

    async def user_totals(self, phone: str) -> LedgerTotals:
        """
        Confirmed totals of a user.

        Args:
            phone: Phone number

        Returns:
            LedgerTotals with receivable (to phone), payable (from phone)
            and net

        Raises:
            LedgerIntegrityError: Totals do not add up
        """
        receivable, payable = await self.transaction_repo.get_user_flows(phone)
        totals = LedgerTotals(
            receivable=receivable,
            payable=payable,
            net=receivable - payable,
        )

        if totals.net + totals.payable != totals.receivable:
            logger.error(
                "Ledger totals do not add up",
                extra={"phone": mask_phone(phone)},
            )
            raise LedgerIntegrityError("Ledger totals do not add up")

        return totals

    async def recent(self, phone: str, k: int) -> list[Transaction]:
        """
        Latest confirmed transactions involving a user.

        Args:
            phone: Phone number
            k: Max number of results

        Returns:
            Up to k transactions, newest settlement first
        """
        if k <= 0:
            return []
        return await self.transaction_repo.get_recent_confirmed(phone, k)

    async def counterparty_balances(self, phone: str) -> dict[str, int]:
        """
        Pair balance against every counterparty.

        Args:
            phone: Phone number

        Returns:
            Dict counterparty phone -> pair_balance(phone, counterparty),
            zero balances omitted
        """
        flows = await self.transaction_repo.get_counterparty_flows(phone)
        return {
            counterparty: balance
            for counterparty, balance in sorted(flows.items())
            if balance != 0
        }
