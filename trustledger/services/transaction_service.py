"""
Transaction service.

Two-phase recording of debts between users: the initiator submits, the
counterparty confirms or denies exactly once.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from trustledger.config.database import atomic
from trustledger.config.settings import Settings, settings
from trustledger.models.base import utcnow
from trustledger.models.enums import (
    TransactionFilter,
    TransactionStatus,
    TransferDirection,
)
from trustledger.models.transaction import Transaction
from trustledger.repositories.transaction_repository import (
    TransactionRepository,
)
from trustledger.repositories.user_repository import UserRepository
from trustledger.utils.exceptions import (
    AlreadySettledError,
    InvalidInputError,
    NotFoundError,
    SelfTransferError,
    UnauthorizedError,
    UnknownUserError,
)
from trustledger.utils.security_logging import log_security_event, mask_phone
from trustledger.utils.validation import (
    require_phone,
    sanitize_input,
    validate_amount,
)


class TransactionService:
    """
    Transaction service.

    Handles submission and settlement of transactions. Settlement is a
    guarded update on the pending row, so two concurrent attempts
    resolve to one winner and one AlreadySettledError.
    """

    def __init__(
        self, session: AsyncSession, config: Settings | None = None
    ) -> None:
        """
        Initialize transaction service.

        Args:
            session: Database session
            config: Settings override (defaults to global settings)
        """
        self.session = session
        self.config = config or settings
        self.transaction_repo = TransactionRepository(session)
        self.user_repo = UserRepository(session)

    async def submit(
        self,
        initiator_phone: str,
        counterparty_phone: str,
        amount: int,
        description: str = "",
        direction: TransferDirection = TransferDirection.GAVE,
    ) -> Transaction:
        """
        Record a pending transaction.

        With GAVE the initiator gave money to the counterparty
        (from_phone = initiator); with GOT the initiator received it
        (to_phone = initiator).

        Args:
            initiator_phone: Submitting user
            counterparty_phone: User who must confirm or deny
            amount: Amount in minor units
            description: Optional note
            direction: Which side the initiator is on

        Returns:
            Pending transaction

        Raises:
            InvalidInputError: Malformed phone, amount or description
            SelfTransferError: Initiator equals counterparty
            UnknownUserError: A principal is not registered
        """
        require_phone(initiator_phone, field="initiator_phone")
        require_phone(counterparty_phone, field="counterparty_phone")

        if not validate_amount(amount, self.config.amount_max):
            raise InvalidInputError(
                f"amount must be an integer between 1 and "
                f"{self.config.amount_max}"
            )

        if description is None:
            description = ""
        if not isinstance(description, str):
            raise InvalidInputError("description must be a string")
        if len(description) > self.config.description_max_length:
            raise InvalidInputError(
                f"description must be at most "
                f"{self.config.description_max_length} characters"
            )
        description = sanitize_input(
            description, max_length=self.config.description_max_length
        )

        direction = TransferDirection(direction)

        if initiator_phone == counterparty_phone:
            raise SelfTransferError("Cannot record a transaction with yourself")

        if direction == TransferDirection.GAVE:
            from_phone, to_phone = initiator_phone, counterparty_phone
        else:
            from_phone, to_phone = counterparty_phone, initiator_phone

        async with atomic(self.session):
            known = await self.user_repo.phones_exist(
                [initiator_phone, counterparty_phone]
            )
            if initiator_phone not in known:
                raise UnknownUserError("Initiator is not registered")
            if counterparty_phone not in known:
                raise UnknownUserError("Counterparty is not registered")

            transaction = await self.transaction_repo.create(
                from_phone=from_phone,
                to_phone=to_phone,
                initiated_by=initiator_phone,
                amount=amount,
                description=description,
                status=TransactionStatus.PENDING.value,
                created_at=utcnow(),
            )

        logger.info(
            "Transaction submitted",
            extra={
                "transaction_id": transaction.id,
                "direction": direction.value,
                "amount": amount,
            },
        )

        return transaction

    async def confirm(
        self, transaction_id: int, actor_phone: str
    ) -> Transaction:
        """
        Confirm a pending transaction.

        Args:
            transaction_id: Transaction ID
            actor_phone: Phone of the confirming user

        Returns:
            Confirmed transaction

        Raises:
            NotFoundError: Transaction does not exist
            UnauthorizedError: Actor is not the counterparty
            AlreadySettledError: Transaction is no longer pending
        """
        return await self._settle(
            transaction_id, actor_phone, TransactionStatus.CONFIRMED
        )

    async def deny(self, transaction_id: int, actor_phone: str) -> Transaction:
        """
        Deny a pending transaction.

        Args:
            transaction_id: Transaction ID
            actor_phone: Phone of the denying user

        Returns:
            Denied transaction

        Raises:
            NotFoundError: Transaction does not exist
            UnauthorizedError: Actor is not the counterparty
            AlreadySettledError: Transaction is no longer pending
        """
        return await self._settle(
            transaction_id, actor_phone, TransactionStatus.DENIED
        )

    async def get_transaction(self, transaction_id: int) -> Transaction | None:
        """Get transaction by ID."""
        return await self.transaction_repo.get_by_id(transaction_id)

    async def list_for_user(
        self,
        phone: str,
        filter: TransactionFilter = TransactionFilter.ALL,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Transaction]:
        """
        List transactions where phone is a principal.

        Args:
            phone: Phone number
            filter: Subset to return
            limit: Max number of results
            offset: Number of results to skip

        Returns:
            Transactions, newest first

        Raises:
            NotFoundError: User does not exist
            InvalidInputError: Unknown filter or negative paging
        """
        try:
            filter = TransactionFilter(filter)
        except ValueError as e:
            raise InvalidInputError(f"Unknown filter: {filter}") from e
        if (limit is not None and limit < 0) or (
            offset is not None and offset < 0
        ):
            raise InvalidInputError("limit and offset must not be negative")

        if not await self.user_repo.exists(phone=phone):
            raise NotFoundError("User not found")

        return await self.transaction_repo.get_for_user(
            phone, filter=filter, limit=limit, offset=offset
        )

    async def _settle(
        self,
        transaction_id: int,
        actor_phone: str,
        status: TransactionStatus,
    ) -> Transaction:
        """
        Move a pending transaction to confirmed or denied.

        Raises:
            NotFoundError: Transaction does not exist
            UnauthorizedError: Actor is not the counterparty
            AlreadySettledError: Transaction is no longer pending
        """
        async with atomic(self.session):
            transaction = await self.transaction_repo.get_for_update(
                transaction_id
            )
            if not transaction:
                raise NotFoundError(f"Transaction {transaction_id} not found")

            if actor_phone != transaction.counterparty:
                log_security_event(
                    "Unauthorized settlement attempt",
                    {
                        "transaction_id": transaction_id,
                        "actor": mask_phone(actor_phone),
                        "is_initiator": actor_phone == transaction.initiated_by,
                        "target_status": status.value,
                    },
                )
                raise UnauthorizedError(
                    "Only the counterparty can settle this transaction"
                )

            if not transaction.is_pending:
                raise AlreadySettledError(
                    f"Transaction {transaction_id} is already "
                    f"{transaction.status}"
                )

            settled = await self.transaction_repo.settle(
                transaction_id, status, utcnow()
            )
            if not settled:
                # Lost the race to a concurrent settlement
                raise AlreadySettledError(
                    f"Transaction {transaction_id} is already settled"
                )

            await self.session.refresh(transaction)

        logger.info(
            "Transaction settled",
            extra={
                "transaction_id": transaction_id,
                "status": status.value,
            },
        )

        return transaction
