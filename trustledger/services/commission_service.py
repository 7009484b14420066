"""
Commission service.

Turns platform-fee events into multi-level referral commissions and
collapses a recipient's pending commissions into payouts.
"""

from datetime import timedelta
from typing import Any

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.config.database import atomic
from trustledger.config.settings import Settings, settings
from trustledger.models.base import utcnow
from trustledger.models.commission import Commission
from trustledger.models.enums import CommissionStatus
from trustledger.models.payout import Payout
from trustledger.repositories.commission_repository import (
    CommissionRepository,
)
from trustledger.repositories.fee_event_repository import FeeEventRepository
from trustledger.repositories.payout_repository import PayoutRepository
from trustledger.repositories.user_repository import UserRepository
from trustledger.services.identity_service import IdentityService
from trustledger.services.referral_service import ReferralService
from trustledger.utils.exceptions import (
    BelowThresholdError,
    ConcurrentUpdateError,
    EmptyPayoutError,
    InvalidInputError,
    LedgerIntegrityError,
    NotFoundError,
    UnknownUserError,
)
from trustledger.utils.security_logging import mask_phone
from trustledger.utils.validation import validate_payment_id, validate_phone


class CommissionService:
    """
    Commission service.

    Rates per level come from settings (160/80/40/20 minor units by
    default). Every fee event is processed at most once; every payout
    takes the recipient's whole pending set.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: Settings | None = None,
        identity: IdentityService | None = None,
        referrals: ReferralService | None = None,
    ) -> None:
        """
        Initialize commission service.

        Args:
            session: Database session
            config: Settings override (defaults to global settings)
            identity: Identity service sharing the session
            referrals: Referral service sharing the session
        """
        self.session = session
        self.config = config or settings
        self.identity = identity or IdentityService(session, self.config)
        self.referrals = referrals or ReferralService(session, self.config)
        self.commission_repo = CommissionRepository(session)
        self.fee_event_repo = FeeEventRepository(session)
        self.payout_repo = PayoutRepository(session)
        self.user_repo = UserRepository(session)

    async def on_fee_paid(
        self,
        payment_id: str,
        payer_phone: str,
        fee_amount: int | None = None,
    ) -> list[Commission]:
        """
        Emit commissions for a paid platform fee.

        One pending commission per ancestor up to max_commission_depth;
        each ancestor's pending balance grows by its row's amount. Rows,
        balances and the fee event are written in one unit of work.
        Replaying a processed payment id returns the existing rows.

        Args:
            payment_id: Upstream payment identifier
            payer_phone: User who paid the fee
            fee_amount: Fee paid (must equal platform_fee_amount if given)

        Returns:
            Commissions of this payment, ordered by level

        Raises:
            InvalidInputError: Malformed payment id, wrong fee amount or
                payment id reused for another payer
            UnknownUserError: Payer is not registered
        """
        if not validate_payment_id(payment_id):
            raise InvalidInputError(
                "payment_id must be a non-empty identifier of at most 64 "
                "characters"
            )
        if fee_amount is not None and fee_amount != self.config.platform_fee_amount:
            raise InvalidInputError(
                f"Commission is only paid on a fee of "
                f"{self.config.platform_fee_amount}"
            )
        if not validate_phone(payer_phone):
            raise InvalidInputError("payer_phone must be a 10-digit number")

        try:
            async with atomic(self.session):
                existing = await self._get_processed(payment_id, payer_phone)
                if existing is not None:
                    logger.debug(
                        "Fee event already processed",
                        extra={"payment_id": payment_id},
                    )
                    return existing

                if not await self.user_repo.exists(phone=payer_phone):
                    raise UnknownUserError("Payer is not registered")

                chain = await self.referrals.ancestors(
                    payer_phone, max_depth=self.config.max_commission_depth
                )
                rates = self.config.get_commission_rates()

                await self.fee_event_repo.create(
                    payment_id=payment_id,
                    payer_phone=payer_phone,
                    fee_amount=self.config.platform_fee_amount,
                    commission_count=len(chain),
                )

                now = utcnow()
                due_date = now + timedelta(days=self.config.commission_due_days)
                commissions: list[Commission] = []
                for link in chain:
                    amount = rates[link.level]
                    commission = await self.commission_repo.create(
                        payment_id=payment_id,
                        recipient_phone=link.phone,
                        level=link.level,
                        amount=amount,
                        status=CommissionStatus.PENDING.value,
                        created_at=now,
                        due_date=due_date,
                    )
                    await self.identity.adjust_commission_balance(
                        link.phone, amount, 0
                    )
                    commissions.append(commission)
        except IntegrityError:
            # Concurrent delivery of the same payment id
            async with atomic(self.session):
                existing = await self._get_processed(payment_id, payer_phone)
            if existing is None:
                raise
            return existing

        logger.info(
            "Commissions emitted",
            extra={
                "payment_id": payment_id,
                "levels": len(commissions),
                "total": sum(c.amount for c in commissions),
            },
        )

        return commissions

    async def list_pending(self, phone: str) -> list[Commission]:
        """
        Get pending commissions of a recipient.

        Args:
            phone: Recipient phone

        Returns:
            Pending commissions, oldest first
        """
        return await self.commission_repo.get_pending(phone)

    async def list_commissions(
        self, phone: str, status: CommissionStatus | None = None
    ) -> list[Commission]:
        """Get commissions of a recipient, optionally by status."""
        if status is not None:
            status = CommissionStatus(status)
        return await self.commission_repo.get_by_recipient(phone, status=status)

    async def list_payouts(self, phone: str) -> list[Payout]:
        """Get payouts of a recipient, newest first."""
        return await self.payout_repo.get_by_recipient(phone)

    async def request_payout(self, phone: str) -> Payout:
        """
        Pay out every pending commission of a recipient.

        Args:
            phone: Recipient phone

        Returns:
            Payout with its commissions

        Raises:
            NotFoundError: User does not exist
            EmptyPayoutError: No pending commissions
            BelowThresholdError: Pending balance below payout_threshold
            LedgerIntegrityError: Pending balance disagrees with rows
            ConcurrentUpdateError: Rows changed during the payout
        """
        threshold = self.config.payout_threshold

        async with atomic(self.session):
            user = await self.user_repo.get_by_phone(phone, for_update=True)
            if not user:
                raise NotFoundError("User not found")

            pending = await self.commission_repo.get_pending(
                phone, for_update=True
            )
            if not pending:
                raise EmptyPayoutError("No pending commissions")

            balance = user.pending_commission
            if balance < threshold:
                raise BelowThresholdError(balance=balance, threshold=threshold)

            total = sum(commission.amount for commission in pending)
            if total != balance:
                logger.error(
                    "Pending commission balance disagrees with rows",
                    extra={
                        "phone": mask_phone(phone),
                        "balance": balance,
                        "rows_total": total,
                    },
                )
                raise LedgerIntegrityError(
                    "Pending commission balance disagrees with rows"
                )

            now = utcnow()
            payout = await self.payout_repo.create(
                recipient_phone=phone,
                total_amount=total,
                created_at=now,
            )

            ids = [commission.id for commission in pending]
            marked = await self.commission_repo.mark_paid(ids, payout.id, now)
            if marked != len(ids):
                raise ConcurrentUpdateError(
                    "Pending commissions changed during payout"
                )

            await self.identity.adjust_commission_balance(phone, -total, total)

            for commission in pending:
                await self.session.refresh(commission)
            await self.session.refresh(payout, attribute_names=["commissions"])

        logger.info(
            "Commission payout completed",
            extra={
                "payout_id": payout.id,
                "phone": mask_phone(phone),
                "total": total,
                "commissions": len(ids),
            },
        )

        return payout

    async def get_referral_stats(self, phone: str) -> dict[str, Any]:
        """
        Get referral statistics for a user.

        Args:
            phone: Phone number

        Returns:
            Dict with direct_referrals, network (level -> count),
            pending_amount, total_earned, has_reached_threshold and
            next_payout_amount

        Raises:
            NotFoundError: User does not exist
        """
        user = await self.user_repo.get_by_phone(phone)
        if not user:
            raise NotFoundError("User not found")

        network = await self.referrals.network(phone)
        pending_amount = user.pending_commission

        return {
            "direct_referrals": len(network.get(1, [])),
            "network": {
                level: len(network.get(level, []))
                for level in range(1, self.config.max_commission_depth + 1)
            },
            "pending_amount": pending_amount,
            "total_earned": user.paid_commission,
            "has_reached_threshold": (
                pending_amount >= self.config.payout_threshold
            ),
            "next_payout_amount": pending_amount,
        }

    async def _get_processed(
        self, payment_id: str, payer_phone: str
    ) -> list[Commission] | None:
        """
        Return commissions of an already processed payment, if any.

        Raises:
            InvalidInputError: Payment id was processed for another payer
        """
        event = await self.fee_event_repo.get_by_payment_id(payment_id)
        if event is None:
            return None

        if event.payer_phone != payer_phone:
            logger.warning(
                "Payment id reused for another payer",
                extra={"payment_id": payment_id},
            )
            raise InvalidInputError(
                "payment_id was already processed for another payer"
            )

        return await self.commission_repo.get_by_payment(payment_id)
