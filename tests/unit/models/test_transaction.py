"""
Unit tests for Transaction model.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from trustledger.models.base import utcnow
from trustledger.models.enums import (
    TRANSACTION_TRANSITIONS,
    TransactionStatus,
)
from trustledger.models.transaction import Transaction


def make_transaction(**overrides) -> Transaction:
    """Build an unsaved pending transaction A -> B initiated by A."""
    data = {
        "from_phone": "9000000001",
        "to_phone": "9000000002",
        "initiated_by": "9000000001",
        "amount": 5000,
        "description": "dinner",
        "status": TransactionStatus.PENDING.value,
    }
    data.update(overrides)
    return Transaction(**data)


class TestTransactionProperties:
    """Tests for derived properties."""

    def test_counterparty_when_initiator_gave(self):
        """Initiator on the from side awaits the to side."""
        txn = make_transaction()
        assert txn.counterparty == "9000000002"

    def test_counterparty_when_initiator_got(self):
        """Initiator on the to side awaits the from side."""
        txn = make_transaction(initiated_by="9000000002")
        assert txn.counterparty == "9000000001"

    def test_status_flags(self):
        """Pending and confirmed flags follow the status column."""
        txn = make_transaction()
        assert txn.is_pending is True
        assert txn.is_confirmed is False

        txn.status = TransactionStatus.CONFIRMED.value
        assert txn.is_pending is False
        assert txn.is_confirmed is True

    def test_involves(self):
        """Only principals are involved."""
        txn = make_transaction()
        assert txn.involves("9000000001")
        assert txn.involves("9000000002")
        assert not txn.involves("9000000003")


class TestTransactionStatus:
    """Tests for the status enum."""

    def test_only_pending_moves(self):
        """Settled statuses have no outgoing transitions."""
        assert TRANSACTION_TRANSITIONS[TransactionStatus.PENDING] == {
            TransactionStatus.CONFIRMED,
            TransactionStatus.DENIED,
        }
        assert not TRANSACTION_TRANSITIONS[TransactionStatus.CONFIRMED]
        assert not TRANSACTION_TRANSITIONS[TransactionStatus.DENIED]

    def test_is_settled(self):
        """Confirmed and denied count as settled."""
        assert TransactionStatus.PENDING.is_settled is False
        assert TransactionStatus.CONFIRMED.is_settled is True
        assert TransactionStatus.DENIED.is_settled is True


class TestTransactionConstraints:
    """Tests for table constraints."""

    @pytest.mark.asyncio
    async def test_pending_row_saved(self, db_session, alice_and_bob):
        """A well-formed pending row is stored."""
        txn = make_transaction()
        db_session.add(txn)
        await db_session.commit()

        assert txn.id is not None
        assert txn.settled_at is None
        assert txn.created_at is not None

    @pytest.mark.asyncio
    async def test_self_transfer_rejected(self, db_session, alice_and_bob):
        """from_phone and to_phone must differ."""
        db_session.add(make_transaction(to_phone="9000000001"))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, db_session, alice_and_bob):
        """Amounts are strictly positive."""
        db_session.add(make_transaction(amount=0))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_initiator_must_be_principal(self, db_session, alice_and_bob):
        """initiated_by is one of the principals."""
        db_session.add(make_transaction(initiated_by="9000000003"))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_confirmed_requires_settled_at(self, db_session, alice_and_bob):
        """A confirmed row always carries settled_at."""
        db_session.add(
            make_transaction(status=TransactionStatus.CONFIRMED.value)
        )
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_pending_rejects_settled_at(self, db_session, alice_and_bob):
        """A pending row never carries settled_at."""
        db_session.add(make_transaction(settled_at=utcnow()))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()
