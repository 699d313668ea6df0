"""
Shape checks run before any hashing or network traffic.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlsplit

from .errors import (
    INVALID_AMOUNT,
    INVALID_EMAIL,
    INVALID_PARAMS,
    INVALID_PHONE,
    INVALID_TRANSACTION_ID,
    INVALID_URL,
    GatewayError,
)
from .payloads import PaymentRequest, coerce_amount

__all__ = [
    "REQUIRED_PAYMENT_FIELDS",
    "is_valid_email",
    "is_valid_phone",
    "is_valid_url",
    "is_valid_uuid",
    "validate_payment_request",
]

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_PHONE_PATTERN = re.compile(r"^01[0-9]{9}$")
_NON_DIGITS = re.compile(r"[^0-9]")

REQUIRED_PAYMENT_FIELDS = (
    "customer_order_id",
    "merchant_transaction_id",
    "total_amount",
    "success_url",
    "fail_url",
    "cancel_url",
    "customer_name",
    "customer_email",
    "customer_address",
    "customer_city",
    "customer_state",
    "customer_postcode",
    "customer_phone",
    "product_name",
)

_CALLBACK_URL_FIELDS = ("success_url", "fail_url", "cancel_url")


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(_EMAIL_PATTERN.match(value))


def is_valid_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(_UUID_PATTERN.match(value))


def is_valid_phone(value: Any) -> bool:
    """Bangladesh mobile number: ``01`` followed by nine digits, separators ignored."""
    if not isinstance(value, str):
        return False
    return bool(_PHONE_PATTERN.match(_NON_DIGITS.sub("", value)))


def is_valid_url(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_payment_request(request: PaymentRequest) -> None:
    """
    Raise :class:`GatewayError` for the first rule ``request`` violates.
    """
    for field_name in REQUIRED_PAYMENT_FIELDS:
        if _is_missing(getattr(request, field_name)):
            raise GatewayError(
                f"Missing required parameter: {field_name}", INVALID_PARAMS
            )

    if not isinstance(request.merchant_transaction_id, str):
        raise GatewayError(
            "merchant_transaction_id must be a string",
            INVALID_TRANSACTION_ID,
        )
    if len(request.merchant_transaction_id) < 10:
        raise GatewayError(
            "merchant_transaction_id must be at least 10 characters",
            INVALID_TRANSACTION_ID,
        )

    try:
        amount = coerce_amount(request.total_amount)
    except ValueError as exc:
        raise GatewayError(str(exc), INVALID_AMOUNT) from exc
    if amount <= 0:
        raise GatewayError("total_amount must be greater than 0", INVALID_AMOUNT)

    if not is_valid_email(request.customer_email):
        raise GatewayError("Invalid customer email format", INVALID_EMAIL)

    if not is_valid_phone(request.customer_phone):
        raise GatewayError(
            "Invalid phone number format (expected Bangladesh format: 01XXXXXXXXX)",
            INVALID_PHONE,
        )

    for field_name in _CALLBACK_URL_FIELDS:
        if not is_valid_url(getattr(request, field_name)):
            raise GatewayError(f"Invalid {field_name} format", INVALID_URL)
