"""
Repositories.

Data access layer with generic and specific queries.
"""

from trustledger.repositories.base import BaseRepository
from trustledger.repositories.commission_repository import (
    CommissionRepository,
)
from trustledger.repositories.fee_event_repository import (
    FeeEventRepository,
)
from trustledger.repositories.payout_repository import PayoutRepository
from trustledger.repositories.transaction_repository import (
    TransactionRepository,
)
from trustledger.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "CommissionRepository",
    "FeeEventRepository",
    "PayoutRepository",
    "TransactionRepository",
    "UserRepository",
]
