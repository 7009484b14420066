"""
Services.

Business logic layer.
"""

from trustledger.services.commission_service import CommissionService
from trustledger.services.container import LedgerCore
from trustledger.services.export_service import ExportService
from trustledger.services.identity_service import IdentityService
from trustledger.services.ledger_service import LedgerService, LedgerTotals
from trustledger.services.reconciliation_service import ReconciliationService
from trustledger.services.referral_service import ReferralLink, ReferralService
from trustledger.services.transaction_service import TransactionService

__all__ = [
    "CommissionService",
    "ExportService",
    "IdentityService",
    "LedgerCore",
    "LedgerService",
    "LedgerTotals",
    "ReconciliationService",
    "ReferralLink",
    "ReferralService",
    "TransactionService",
]
