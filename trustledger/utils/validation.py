"""Input validation utilities."""

import re

from trustledger.utils.exceptions import InvalidInputError

PHONE_PATTERN = re.compile(r"^\d{10}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
REFERRAL_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6,10}$")

FULL_NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255
PAYMENT_ID_MAX_LENGTH = 64


def validate_phone(phone: str) -> bool:
    """
    Validate phone number (10 digits, no country prefix).

    Args:
        phone: Phone number

    Returns:
        True if valid
    """
    if not phone or not isinstance(phone, str):
        return False
    return bool(PHONE_PATTERN.match(phone))


def require_phone(phone: str, field: str = "phone") -> str:
    """
    Return phone if valid.

    Raises:
        InvalidInputError: If phone is not 10 digits
    """
    if not validate_phone(phone):
        raise InvalidInputError(f"{field} must be a 10-digit number")
    return phone


def validate_email(email: str) -> bool:
    """
    Validate email format.

    Args:
        email: Email address

    Returns:
        True if valid
    """
    if not email or not isinstance(email, str):
        return False
    if len(email) > EMAIL_MAX_LENGTH:
        return False
    return bool(EMAIL_PATTERN.match(email))


def normalize_full_name(full_name: str) -> str:
    """
    Trim and check full name.

    Raises:
        InvalidInputError: If name is empty or too long
    """
    if not isinstance(full_name, str):
        raise InvalidInputError("full_name must be a string")
    name = sanitize_input(full_name, max_length=FULL_NAME_MAX_LENGTH + 1)
    if not name:
        raise InvalidInputError("full_name must not be empty")
    if len(name) > FULL_NAME_MAX_LENGTH:
        raise InvalidInputError(
            f"full_name must be at most {FULL_NAME_MAX_LENGTH} characters"
        )
    return name


def normalize_email(email: str | None) -> str | None:
    """
    Trim and check optional email.

    Raises:
        InvalidInputError: If email is malformed
    """
    if email is None:
        return None
    if not isinstance(email, str):
        raise InvalidInputError("email must be a string")
    email = email.strip()
    if not email:
        return None
    if not validate_email(email):
        raise InvalidInputError("email is malformed")
    return email.lower()


def normalize_referral_code(code: str) -> str:
    """
    Upper-case and check referral code syntax.

    Raises:
        InvalidInputError: If code is malformed
    """
    if not isinstance(code, str):
        raise InvalidInputError("referral code must be a string")
    normalized = code.strip().upper()
    if not REFERRAL_CODE_PATTERN.match(normalized):
        raise InvalidInputError(
            "referral code must be 6-10 letters or digits"
        )
    return normalized


def validate_amount(amount: int, max_amount: int) -> bool:
    """
    Validate integer minor-unit amount.

    Args:
        amount: Amount to validate
        max_amount: Maximum amount

    Returns:
        True if valid
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        return False
    return 1 <= amount <= max_amount


def validate_payment_id(payment_id: str) -> bool:
    """Check fee event identifier."""
    if not payment_id or not isinstance(payment_id, str):
        return False
    return len(payment_id) <= PAYMENT_ID_MAX_LENGTH and payment_id.strip() == payment_id


def sanitize_input(text: str, max_length: int = 500) -> str:
    """
    Sanitize user input.

    Args:
        text: User input
        max_length: Maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Trim whitespace
    text = text.strip()

    # Limit length
    if len(text) > max_length:
        text = text[:max_length]

    # Remove null bytes
    text = text.replace("\x00", "")

    return text
