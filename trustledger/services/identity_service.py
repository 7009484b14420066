"""
Identity service.

Registration and profile management of users, and the commission balance
primitive used by the commission engine.
"""

import secrets

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.config.database import atomic
from trustledger.config.settings import Settings, settings
from trustledger.models.user import User
from trustledger.repositories.user_repository import UserRepository
from trustledger.services.referral_service import ReferralService
from trustledger.utils.exceptions import (
    AlreadyExistsError,
    ExhaustedError,
    InvalidInputError,
    NotFoundError,
    UnknownReferrerError,
)
from trustledger.utils.security_logging import mask_phone
from trustledger.utils.validation import (
    normalize_email,
    normalize_full_name,
    normalize_referral_code,
    require_phone,
    validate_phone,
)


class IdentityService:
    """
    Identity service.

    Sole source of truth for "does this user exist". Phone numbers and
    referral codes are unique; phone, referral code and referrer code
    never change after registration.
    """

    def __init__(
        self, session: AsyncSession, config: Settings | None = None
    ) -> None:
        """
        Initialize identity service.

        Args:
            session: Database session
            config: Settings override (defaults to global settings)
        """
        self.session = session
        self.config = config or settings
        self.user_repo = UserRepository(session)

    async def get_by_phone(self, phone: str) -> User | None:
        """
        Get user by phone number.

        Args:
            phone: Phone number

        Returns:
            User or None
        """
        if not validate_phone(phone):
            return None
        return await self.user_repo.get_by_phone(phone)

    async def get_by_referral_code(self, code: str) -> User | None:
        """
        Get user by referral code.

        Args:
            code: Referral code (case-insensitive)

        Returns:
            User or None
        """
        if not isinstance(code, str) or not code.strip():
            return None
        return await self.user_repo.get_by_referral_code(code.strip().upper())

    async def create_user(
        self,
        phone: str,
        full_name: str,
        email: str | None = None,
        referrer_code: str | None = None,
    ) -> User:
        """
        Register new user, optionally under a referrer.

        Args:
            phone: 10-digit phone number
            full_name: Display name
            email: Optional email
            referrer_code: Referral code of the recruiting user

        Returns:
            Created user

        Raises:
            InvalidInputError: Malformed input or referral cycle
            AlreadyExistsError: Phone already registered
            UnknownReferrerError: Referrer code does not resolve
            ExhaustedError: No free referral code found
        """
        require_phone(phone)
        name = normalize_full_name(full_name)
        email = normalize_email(email)
        if referrer_code is not None:
            referrer_code = normalize_referral_code(referrer_code)

        try:
            async with atomic(self.session):
                if await self.user_repo.get_by_phone(phone):
                    raise AlreadyExistsError("Phone already registered")

                if referrer_code is not None:
                    referrer = await self.user_repo.get_by_referral_code(
                        referrer_code
                    )
                    if not referrer:
                        raise UnknownReferrerError(
                            f"Unknown referrer code: {referrer_code}"
                        )
                    await self._ensure_no_cycle(phone, referrer)

                referral_code = await self._generate_referral_code()

                user = await self.user_repo.create(
                    phone=phone,
                    full_name=name,
                    email=email,
                    referral_code=referral_code,
                    referrer_code=referrer_code,
                    pending_commission=0,
                    paid_commission=0,
                )
        except IntegrityError as e:
            # A concurrent registration won the insert
            logger.warning(
                "User insert rejected by unique constraint",
                extra={"phone": mask_phone(phone), "error": str(e.orig)},
            )
            raise AlreadyExistsError(
                "Phone or referral code already registered"
            ) from e

        logger.info(
            "User registered",
            extra={
                "phone": mask_phone(phone),
                "referral_code": user.referral_code,
                "has_referrer": referrer_code is not None,
            },
        )

        return user

    async def update_profile(
        self,
        phone: str,
        full_name: str | None = None,
        email: str | None = None,
    ) -> User:
        """
        Update mutable profile fields.

        Args:
            phone: Phone number
            full_name: New display name (unchanged if None)
            email: New email (unchanged if None, cleared if empty)

        Returns:
            Updated user

        Raises:
            NotFoundError: User does not exist
            InvalidInputError: Malformed name or email
        """
        if not validate_phone(phone):
            raise NotFoundError("User not found")

        changes: dict[str, str | None] = {}
        if full_name is not None:
            changes["full_name"] = normalize_full_name(full_name)
        if email is not None:
            changes["email"] = normalize_email(email)

        async with atomic(self.session):
            user = await self.user_repo.get_by_phone(phone, for_update=True)
            if not user:
                raise NotFoundError("User not found")

            for key, value in changes.items():
                setattr(user, key, value)
            await self.session.flush()

        logger.debug(
            "Profile updated",
            extra={"phone": mask_phone(phone), "fields": sorted(changes)},
        )

        return user

    async def adjust_commission_balance(
        self, phone: str, delta_pending: int, delta_paid: int
    ) -> User:
        """
        Apply commission balance deltas atomically.

        Both deltas are applied by one statement; if either balance
        would turn negative nothing is changed. When called inside
        another unit of work it joins that unit.

        Args:
            phone: Phone number
            delta_pending: Change of pending commission
            delta_paid: Change of paid commission (never negative)

        Returns:
            User with refreshed balances

        Raises:
            NotFoundError: User does not exist
            InvalidInputError: Balance would turn negative or paid would
                decrease
        """
        for delta in (delta_pending, delta_paid):
            if isinstance(delta, bool) or not isinstance(delta, int):
                raise InvalidInputError("Balance deltas must be integers")
        if delta_paid < 0:
            raise InvalidInputError("Paid commission never decreases")

        async with atomic(self.session):
            updated = await self.user_repo.apply_commission_delta(
                phone, delta_pending, delta_paid
            )
            if not updated:
                if not await self.user_repo.exists(phone=phone):
                    raise NotFoundError("User not found")
                raise InvalidInputError(
                    "Commission balance would become negative"
                )

            user = await self.user_repo.get_by_phone(phone)
            await self.session.refresh(user)

        return user

    async def _ensure_no_cycle(self, phone: str, referrer: User) -> None:
        """
        Reject a referrer whose ancestry already contains phone.

        Raises:
            InvalidInputError: Registration would close a cycle
        """
        if referrer.phone == phone:
            raise InvalidInputError("Cannot refer yourself")

        chain = await ReferralService(self.session, self.config).ancestors(
            referrer.phone, max_depth=self.config.max_commission_depth
        )
        if any(link.phone == phone for link in chain):
            raise InvalidInputError("Referral would create a cycle")

    async def _generate_referral_code(self) -> str:
        """
        Draw unused referral code.

        Returns:
            Unique referral code

        Raises:
            ExhaustedError: Every attempt collided
        """
        alphabet = self.config.referral_code_alphabet
        length = self.config.referral_code_length

        for attempt in range(1, self.config.referral_code_max_attempts + 1):
            code = "".join(secrets.choice(alphabet) for _ in range(length))
            if not await self.user_repo.exists(referral_code=code):
                return code

            logger.debug(
                "Referral code collision",
                extra={"attempt": attempt, "length": length},
            )

        logger.error(
            "Referral code generation exhausted",
            extra={
                "attempts": self.config.referral_code_max_attempts,
                "length": length,
            },
        )
        raise ExhaustedError(
            f"No free referral code after "
            f"{self.config.referral_code_max_attempts} attempts"
        )
