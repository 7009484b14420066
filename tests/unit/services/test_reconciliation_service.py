"""
Unit tests for ReconciliationService.
"""

import pytest

from trustledger.repositories.user_repository import UserRepository


class TestCheckInvariants:
    """Tests for invariant checks."""

    @pytest.mark.asyncio
    async def test_empty_database(self, reconciliation_service):
        """An empty database is consistent."""
        report = await reconciliation_service.check_invariants()
        assert report["ok"] is True
        assert report["pending_balance_total"] == 0

    @pytest.mark.asyncio
    async def test_after_fees_and_payout(
        self, commission_service, reconciliation_service, test_referral_chain
    ):
        """Balances match rows after emission and payout."""
        *_, a4, a5 = test_referral_chain
        for i in range(1, 8):
            await commission_service.on_fee_paid(f"pay-{i}", a5.phone)
        await commission_service.request_payout(a4.phone)

        report = await reconciliation_service.check_invariants()

        assert report["ok"] is True
        assert report["pending_balance_total"] == report["pending_rows_total"]
        assert report["paid_balance_total"] == 1120
        assert report["paid_rows_total"] == 1120
        assert report["payouts_total"] == 1120
        assert report["mismatched_users"] == []
        assert report["orphan_transactions"] == []

    @pytest.mark.asyncio
    async def test_detects_drift(
        self, db_session, commission_service, reconciliation_service, test_referral_chain
    ):
        """A balance changed outside the engine is reported."""
        *_, a4, a5 = test_referral_chain
        a4_phone = a4.phone
        await commission_service.on_fee_paid("pay-1", a5.phone)
        await UserRepository(db_session).apply_commission_delta(a4_phone, 40, 0)
        await db_session.commit()

        report = await reconciliation_service.check_invariants()

        assert report["ok"] is False
        assert report["pending_balance_total"] == report["pending_rows_total"] + 40
        assert report["mismatched_users"] == [a4_phone]
