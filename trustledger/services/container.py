"""
Service container.

Wires the ledger components around one session, in dependency order.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.config.settings import Settings, settings
from trustledger.services.commission_service import CommissionService
from trustledger.services.export_service import ExportService
from trustledger.services.identity_service import IdentityService
from trustledger.services.ledger_service import LedgerService
from trustledger.services.reconciliation_service import ReconciliationService
from trustledger.services.referral_service import ReferralService
from trustledger.services.transaction_service import TransactionService


@dataclass
class LedgerCore:
    """All ledger services sharing one session and one settings object."""

    session: AsyncSession
    config: Settings
    identity: IdentityService
    referrals: ReferralService
    transactions: TransactionService
    ledger: LedgerService
    commissions: CommissionService
    reconciliation: ReconciliationService
    export: ExportService

    @classmethod
    def from_session(
        cls, session: AsyncSession, config: Settings | None = None
    ) -> "LedgerCore":
        """
        Build services for a session.

        Order: identity, referrals, transactions, ledger, commissions.

        Args:
            session: Database session
            config: Settings override (defaults to global settings)

        Returns:
            LedgerCore
        """
        config = config or settings
        identity = IdentityService(session, config)
        referrals = ReferralService(session, config)
        transactions = TransactionService(session, config)
        ledger = LedgerService(session)
        commissions = CommissionService(
            session, config, identity=identity, referrals=referrals
        )
        return cls(
            session=session,
            config=config,
            identity=identity,
            referrals=referrals,
            transactions=transactions,
            ledger=ledger,
            commissions=commissions,
            reconciliation=ReconciliationService(session),
            export=ExportService(session),
        )
