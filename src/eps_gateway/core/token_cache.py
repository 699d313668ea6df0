"""
Single-slot cache for the EPS bearer token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

__all__ = [
    "CachedToken",
    "TokenCache",
    "is_token_valid",
    "parse_expiry",
]

Clock = Callable[[], datetime]

_FRACTION = re.compile(r"\.(\d+)")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CachedToken:
    token: str
    expires_at: datetime


def is_token_valid(cached: Optional[CachedToken], now: datetime) -> bool:
    return cached is not None and bool(cached.token) and now < cached.expires_at


def parse_expiry(raw: str) -> datetime:
    """
    Parse the ``expireDate`` returned by the token endpoint.

    Values without an offset are read as local time. Fractions are padded or
    truncated to microseconds.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"Invalid token expiry: {raw!r}")
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid token expiry: {raw!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


class TokenCache:
    """
    Holds at most one token. Writes only happen through :meth:`store`, which
    callers invoke once a refresh has fully succeeded.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or _utc_now
        self._slot: Optional[CachedToken] = None

    @property
    def current(self) -> Optional[CachedToken]:
        return self._slot

    def now(self) -> datetime:
        return self._clock()

    def get(self) -> Optional[str]:
        slot = self._slot
        if is_token_valid(slot, self.now()):
            return slot.token
        return None

    def store(self, token: str, expires_at: datetime) -> CachedToken:
        if expires_at.tzinfo is None:
            expires_at = expires_at.astimezone()
        self._slot = CachedToken(token=token, expires_at=expires_at)
        return self._slot

    def clear(self) -> None:
        self._slot = None
