"""
Database enums.

Centralized enums used across database models and services.
"""

from enum import StrEnum


class TransactionStatus(StrEnum):
    """Transaction status values."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    DENIED = "denied"

    @property
    def is_settled(self) -> bool:
        """Confirmed and denied rows are immutable."""
        return self is not TransactionStatus.PENDING


# Only pending rows move, and only once
TRANSACTION_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset(
        {TransactionStatus.CONFIRMED, TransactionStatus.DENIED}
    ),
    TransactionStatus.CONFIRMED: frozenset(),
    TransactionStatus.DENIED: frozenset(),
}


class TransferDirection(StrEnum):
    """Which side of the transfer the initiator is on."""

    GAVE = "gave"  # initiator is from_phone
    GOT = "got"  # initiator is to_phone


class TransactionFilter(StrEnum):
    """Transaction list filters."""

    ALL = "all"
    PENDING_OUTGOING = "pending-outgoing"
    PENDING_INCOMING = "pending-incoming"
    CONFIRMED = "confirmed"
    DENIED = "denied"
    SENT = "sent"
    RECEIVED = "received"


class CommissionStatus(StrEnum):
    """Commission status values (pending -> paid, one way)."""

    PENDING = "pending"
    PAID = "paid"
