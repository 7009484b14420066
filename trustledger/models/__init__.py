"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from trustledger.models.base import Base
from trustledger.models.commission import Commission
from trustledger.models.enums import (
    CommissionStatus,
    TransactionFilter,
    TransactionStatus,
    TransferDirection,
)
from trustledger.models.fee_event import FeeEvent
from trustledger.models.payout import Payout
from trustledger.models.transaction import Transaction
from trustledger.models.user import User

__all__ = [
    # Base
    "Base",
    # Enums
    "CommissionStatus",
    "TransactionFilter",
    "TransactionStatus",
    "TransferDirection",
    # Identity
    "User",
    # Transactions
    "Transaction",
    # Commissions
    "Commission",
    "FeeEvent",
    "Payout",
]
