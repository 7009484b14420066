"""
Security logging utility.

Provides standardized security event logging with [SECURITY] prefix.
"""

from typing import Any

from loguru import logger


def mask_phone(phone: str | None) -> str:
    """
    Mask phone number for logs, keeping the last 4 digits.

    Args:
        phone: Phone number

    Returns:
        Masked phone
    """
    if not phone:
        return "<none>"
    return "*" * max(len(phone) - 4, 0) + phone[-4:]


def log_security_event(event_type: str, details: dict[str, Any]) -> None:
    """
    Log security event with standardized format.

    Args:
        event_type: Type of security event (e.g., "Unauthorized settlement")
        details: Dictionary with context (transaction_id, masked phones, reason)
    """
    logger.warning(f"[SECURITY] {event_type}", extra=details)
