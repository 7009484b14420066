"""
Unit tests for UserRepository.
"""

import pytest


class TestUserRepositoryLookups:
    """Tests for lookup queries."""

    @pytest.mark.asyncio
    async def test_get_by_phone(self, user_repository, alice_and_bob):
        """Users are keyed by phone."""
        alice, _ = alice_and_bob
        found = await user_repository.get_by_phone("9000000001")
        assert found is not None
        assert found.referral_code == alice.referral_code
        assert await user_repository.get_by_phone("9999999999") is None

    @pytest.mark.asyncio
    async def test_get_by_referrer_codes(
        self, user_repository, test_referral_chain
    ):
        """Children are found by their recruiters' codes."""
        root, a1, a2, *_ = test_referral_chain
        children = await user_repository.get_by_referrer_codes(
            [root.referral_code, a1.referral_code]
        )
        assert [u.phone for u in children] == [a1.phone, a2.phone]
        assert await user_repository.get_by_referrer_codes([]) == []

    @pytest.mark.asyncio
    async def test_phones_exist(self, user_repository, alice_and_bob):
        """Only registered phones are returned."""
        known = await user_repository.phones_exist(
            ["9000000001", "9000000002", "9000000003"]
        )
        assert known == {"9000000001", "9000000002"}


class TestCommissionDelta:
    """Tests for the guarded balance update."""

    @pytest.mark.asyncio
    async def test_applies_both_deltas(
        self, db_session, user_repository, alice_and_bob
    ):
        """Both balances move in one statement."""
        assert await user_repository.apply_commission_delta(
            "9000000001", 300, 0
        )
        assert await user_repository.apply_commission_delta(
            "9000000001", -100, 100
        )
        await db_session.commit()

        user = await user_repository.get_by_phone("9000000001")
        await db_session.refresh(user)
        assert user.pending_commission == 200
        assert user.paid_commission == 100

    @pytest.mark.asyncio
    async def test_rejects_negative_result(
        self, db_session, user_repository, alice_and_bob
    ):
        """A delta that would go negative touches nothing."""
        assert await user_repository.apply_commission_delta(
            "9000000001", 50, 0
        )
        assert not await user_repository.apply_commission_delta(
            "9000000001", -100, 100
        )
        await db_session.commit()

        user = await user_repository.get_by_phone("9000000001")
        await db_session.refresh(user)
        assert user.pending_commission == 50
        assert user.paid_commission == 0

    @pytest.mark.asyncio
    async def test_unknown_user(self, user_repository):
        """Unknown phones update nothing."""
        assert not await user_repository.apply_commission_delta(
            "9999999999", 10, 0
        )

    @pytest.mark.asyncio
    async def test_totals(self, db_session, user_repository, alice_and_bob):
        """Totals and per-user balances sum the stored columns."""
        await user_repository.apply_commission_delta("9000000001", 160, 0)
        await user_repository.apply_commission_delta("9000000002", 80, 20)
        await db_session.commit()

        assert await user_repository.get_balance_totals() == (240, 20)
        assert await user_repository.get_balances_by_phone() == {
            "9000000001": (160, 0),
            "9000000002": (80, 20),
        }
