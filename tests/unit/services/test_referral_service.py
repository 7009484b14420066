"""
Unit tests for ReferralService.

Tests ancestor walks, direct children and network levels.
"""

import pytest

from trustledger.models.user import User
from trustledger.services.referral_service import ReferralLink
from trustledger.utils.exceptions import (
    AlreadyExistsError,
    MalformedReferralChainError,
)


class TestAncestors:
    """Tests for ancestor walks."""

    @pytest.mark.asyncio
    async def test_depth_capped(self, referral_service, test_referral_chain):
        """The walk stops at max_commission_depth."""
        root, a1, a2, a3, a4, a5 = test_referral_chain

        chain = await referral_service.ancestors(a5.phone)

        assert chain == [
            ReferralLink(phone=a4.phone, level=1),
            ReferralLink(phone=a3.phone, level=2),
            ReferralLink(phone=a2.phone, level=3),
            ReferralLink(phone=a1.phone, level=4),
        ]
        assert root.phone not in [link.phone for link in chain]

    @pytest.mark.asyncio
    async def test_stops_at_root(self, referral_service, test_referral_chain):
        """Short chains return fewer levels."""
        root, a1, a2, *_ = test_referral_chain

        chain = await referral_service.ancestors(a2.phone)

        assert chain == [
            ReferralLink(phone=a1.phone, level=1),
            ReferralLink(phone=root.phone, level=2),
        ]

    @pytest.mark.asyncio
    async def test_explicit_depth(self, referral_service, test_referral_chain):
        """max_depth overrides the configured depth."""
        *_, a4, a5 = test_referral_chain

        assert await referral_service.ancestors(a5.phone, max_depth=1) == [
            ReferralLink(phone=a4.phone, level=1)
        ]
        assert await referral_service.ancestors(a5.phone, max_depth=0) == []

    @pytest.mark.asyncio
    async def test_root_and_unknown(self, referral_service, test_referral_chain):
        """Roots and unknown phones have no ancestors."""
        root = test_referral_chain[0]
        assert await referral_service.ancestors(root.phone) == []
        assert await referral_service.ancestors("9999999999") == []

    @pytest.mark.asyncio
    async def test_cycle_detected(self, db_session, referral_service):
        """A chain that loops back is reported as malformed."""
        db_session.add_all(
            [
                User(
                    phone="9300000001",
                    full_name="Loop A",
                    referral_code="LOOPAA",
                    referrer_code="LOOPBB",
                ),
                User(
                    phone="9300000002",
                    full_name="Loop B",
                    referral_code="LOOPBB",
                    referrer_code="LOOPAA",
                ),
            ]
        )
        await db_session.commit()

        with pytest.raises(MalformedReferralChainError):
            await referral_service.ancestors("9300000001")


class TestDescendants:
    """Tests for children and network queries."""

    @pytest.mark.asyncio
    async def test_direct_children(
        self, referral_service, create_user_helper
    ):
        """Children are listed in registration order."""
        parent = await create_user_helper("9000000001")
        first = await create_user_helper("9000000002", referrer=parent)
        second = await create_user_helper("9000000003", referrer=parent)
        await create_user_helper("9000000004", referrer=first)

        children = await referral_service.direct_children(parent.phone)

        assert [c.phone for c in children] == [first.phone, second.phone]
        assert await referral_service.direct_children("9999999999") == []

    @pytest.mark.asyncio
    async def test_network(self, referral_service, test_referral_chain):
        """Descendants are grouped by level up to the depth."""
        root, a1, a2, a3, a4, _ = test_referral_chain

        network = await referral_service.network(root.phone)

        assert {level: [u.phone for u in users] for level, users in network.items()} == {
            1: [a1.phone],
            2: [a2.phone],
            3: [a3.phone],
            4: [a4.phone],
        }
        assert await referral_service.network("9999999999") == {}

    @pytest.mark.asyncio
    async def test_registration_cannot_close_cycle(
        self, identity_service, test_referral_chain
    ):
        """A user already in the chain cannot re-register below it."""
        root, *_, a5 = test_referral_chain
        with pytest.raises(AlreadyExistsError):
            await identity_service.create_user(
                phone=root.phone,
                full_name="Root again",
                referrer_code=a5.referral_code,
            )
