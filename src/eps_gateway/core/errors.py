"""
Exception types raised by the EPS gateway client.
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "GatewayError",
    "ConfigError",
    "INVALID_CONFIG",
    "INVALID_PARAMS",
    "INVALID_TRANSACTION_ID",
    "INVALID_AMOUNT",
    "INVALID_EMAIL",
    "INVALID_PHONE",
    "INVALID_URL",
    "TOKEN_ERROR",
    "AUTH_ERROR",
    "INIT_ERROR",
    "VERIFY_ERROR",
    "HTTP_ERROR",
    "NETWORK_ERROR",
    "UNKNOWN_ERROR",
]

INVALID_CONFIG = "INVALID_CONFIG"
INVALID_PARAMS = "INVALID_PARAMS"
INVALID_TRANSACTION_ID = "INVALID_TRANSACTION_ID"
INVALID_AMOUNT = "INVALID_AMOUNT"
INVALID_EMAIL = "INVALID_EMAIL"
INVALID_PHONE = "INVALID_PHONE"
INVALID_URL = "INVALID_URL"
TOKEN_ERROR = "TOKEN_ERROR"
AUTH_ERROR = "AUTH_ERROR"
INIT_ERROR = "INIT_ERROR"
VERIFY_ERROR = "VERIFY_ERROR"
HTTP_ERROR = "HTTP_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"


class GatewayError(Exception):
    """
    Raised for every failure reported by this package.

    ``code`` is one of the module-level constants. When the gateway itself
    reported the problem, its own error code is kept in ``remote_code`` and
    the decoded body in ``response``.
    """

    def __init__(
        self,
        message: str,
        code: str = UNKNOWN_ERROR,
        response: Optional[Any] = None,
        *,
        remote_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.response = response
        self.remote_code = remote_code

    def __str__(self) -> str:
        if self.remote_code:
            return f"[{self.code}/{self.remote_code}] {self.message}"
        return f"[{self.code}] {self.message}"


class ConfigError(GatewayError):
    """Raised when the supplied configuration is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, INVALID_CONFIG)
