"""
Request signing and standalone helpers that need no client instance.

EPS authenticates every call with an ``x-hash`` header holding the
base64-encoded HMAC-SHA512 of one request value (the username for the token
call, the transaction id otherwise), keyed with the merchant hash key.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import re
from datetime import datetime
from typing import Optional

__all__ = [
    "generate_transaction_id",
    "sign",
    "validate_hash_key",
]

_HASH_KEY_PATTERN = re.compile(r"^[A-Za-z0-9+/=]+$")


def sign(value: str, key: str) -> str:
    """
    Return the base64-encoded HMAC-SHA512 of ``value`` keyed with ``key``.
    """
    if not isinstance(value, str) or not value:
        raise ValueError("Hash generation failed: value must be a non-empty string")
    if not isinstance(key, str) or not key:
        raise ValueError("Hash generation failed: key must be a non-empty string")

    try:
        digest = hmac.new(
            key.encode("utf-8"), value.encode("utf-8"), hashlib.sha512
        ).digest()
    except UnicodeEncodeError as exc:
        raise ValueError(f"Hash generation failed: {exc}") from exc
    return base64.b64encode(digest).decode("ascii")


def validate_hash_key(hash_key: Optional[str]) -> bool:
    """Cheap shape check for an EPS hash key (base64 text, longer than 20 chars)."""
    if not hash_key or not isinstance(hash_key, str):
        return False
    return bool(_HASH_KEY_PATTERN.match(hash_key)) and len(hash_key) > 20


def generate_transaction_id(now: Optional[datetime] = None) -> str:
    """
    Build a 17 digit merchant transaction id, ``YYYYMMDDHHMMSSmmm``.

    Two ids generated within the same millisecond collide.
    """
    moment = datetime.now() if now is None else now
    return moment.strftime("%Y%m%d%H%M%S") + f"{moment.microsecond // 1000:03d}"
