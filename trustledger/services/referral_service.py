"""
Referral service.

Ancestor and descendant queries over the referrer_code -> referral_code
edges stored on users. Edges are never materialised separately.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import literal, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from trustledger.config.settings import Settings, settings
from trustledger.models.user import User
from trustledger.repositories.user_repository import UserRepository
from trustledger.utils.exceptions import MalformedReferralChainError
from trustledger.utils.security_logging import mask_phone


@dataclass(frozen=True)
class ReferralLink:
    """One ancestor of a user: level 1 is the direct referrer."""

    phone: str
    level: int


class ReferralService:
    """Referral graph queries (read only)."""

    def __init__(
        self, session: AsyncSession, config: Settings | None = None
    ) -> None:
        """
        Initialize referral service.

        Args:
            session: Database session
            config: Settings override (defaults to global settings)
        """
        self.session = session
        self.config = config or settings
        self.user_repo = UserRepository(session)

    async def ancestors(
        self, phone: str, max_depth: int | None = None
    ) -> list[ReferralLink]:
        """
        Walk up the referral chain.

        Args:
            phone: Phone of the starting user
            max_depth: Number of levels to return (defaults to
                max_commission_depth)

        Returns:
            Ancestors ordered by level, empty for unknown or root users

        Raises:
            MalformedReferralChainError: A phone repeats in the chain
        """
        if max_depth is None:
            max_depth = self.config.max_commission_depth
        if max_depth <= 0:
            return []

        chain = (
            select(
                User.phone.label("phone"),
                User.referrer_code.label("referrer_code"),
                literal(0).label("level"),
            )
            .where(User.phone == phone)
            .cte(name="referral_chain", recursive=True)
        )
        parent = aliased(User)
        chain = chain.union_all(
            select(
                parent.phone,
                parent.referrer_code,
                chain.c.level + 1,
            ).where(
                parent.referral_code == chain.c.referrer_code,
                chain.c.level < max_depth,
            )
        )

        stmt = (
            select(chain.c.phone, chain.c.level)
            .where(chain.c.level > 0)
            .order_by(chain.c.level)
        )
        result = await self.session.execute(stmt)

        links: list[ReferralLink] = []
        seen = {phone}
        for row in result:
            if row.phone in seen:
                logger.error(
                    "Referral chain repeats a user",
                    extra={
                        "phone": mask_phone(phone),
                        "level": row.level,
                    },
                )
                raise MalformedReferralChainError(
                    "Referral chain contains a cycle"
                )
            seen.add(row.phone)
            links.append(ReferralLink(phone=row.phone, level=row.level))

        return links

    async def direct_children(self, phone: str) -> list[User]:
        """
        Get users directly recruited by phone.

        Args:
            phone: Phone of the recruiter

        Returns:
            Users ordered by registration time, empty for unknown users
        """
        user = await self.user_repo.get_by_phone(phone)
        if not user:
            return []
        return await self.user_repo.get_by_referrer_code(user.referral_code)

    async def network(
        self, phone: str, max_depth: int | None = None
    ) -> dict[int, list[User]]:
        """
        Get descendants grouped by level.

        Args:
            phone: Phone of the recruiter
            max_depth: Number of levels (defaults to max_commission_depth)

        Returns:
            Dict level -> users; levels without users are omitted
        """
        if max_depth is None:
            max_depth = self.config.max_commission_depth

        user = await self.user_repo.get_by_phone(phone)
        if not user:
            return {}

        network: dict[int, list[User]] = {}
        seen = {user.phone}
        codes = [user.referral_code]

        for level in range(1, max_depth + 1):
            members = [
                member
                for member in await self.user_repo.get_by_referrer_codes(codes)
                if member.phone not in seen
            ]
            if not members:
                break

            network[level] = members
            seen.update(member.phone for member in members)
            codes = [member.referral_code for member in members]

        return network
