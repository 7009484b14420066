"""
Domain exceptions.

Every error kind an operation can surface to its caller. Storage failures
are not wrapped: SQLAlchemy errors propagate unchanged.
"""


class LedgerError(Exception):
    """Base class for all domain errors."""

    kind = "error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind


class InvalidInputError(LedgerError, ValueError):
    """Caller-provided data fails a syntactic or range check."""

    kind = "invalid"


class NotFoundError(LedgerError):
    """Referenced user, transaction or commission does not exist."""

    kind = "not_found"


class UnauthorizedError(LedgerError):
    """Actor may not perform the requested state transition."""

    kind = "unauthorized"


class AlreadySettledError(LedgerError):
    """Transaction is no longer pending."""

    kind = "already_settled"


class AlreadyExistsError(LedgerError):
    """Phone number or referral code already taken."""

    kind = "already_exists"


class UnknownReferrerError(LedgerError):
    """Referrer code does not resolve to a user."""

    kind = "unknown_referrer"


class UnknownUserError(LedgerError):
    """Principal of a transaction or fee event does not exist."""

    kind = "unknown_user"


class SelfTransferError(LedgerError):
    """Initiator and counterparty are the same user."""

    kind = "self_transfer"


class BelowThresholdError(LedgerError):
    """Pending commission balance is below the payout threshold."""

    kind = "below_threshold"

    def __init__(self, balance: int, threshold: int) -> None:
        super().__init__(
            f"Minimum payout is {threshold}. Current balance: {balance}"
        )
        self.balance = balance
        self.threshold = threshold


class EmptyPayoutError(LedgerError):
    """No pending commissions to pay out."""

    kind = "empty"


class ExhaustedError(LedgerError):
    """Referral code generation ran out of attempts."""

    kind = "exhausted"


class MalformedReferralChainError(LedgerError):
    """Referral ancestry contains a cycle."""

    kind = "malformed_chain"


class LedgerIntegrityError(LedgerError):
    """Stored balances disagree with the rows they summarise."""

    kind = "integrity"


class ConcurrentUpdateError(LedgerError):
    """Rows changed under a running operation."""

    kind = "concurrent_update"
