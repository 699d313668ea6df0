"""
Shared fixtures: a recording stand-in for ``requests.Session`` and a
controllable clock for the token cache.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
import requests

from eps_gateway import GatewayClient, GatewayConfig, TokenCache

HASH_KEY = "SFNLQHJlY2lwZXdhbGEjYTc3Zi1mOTQ5NWZhY2M2ZTZuZXQ="
T0 = datetime(2025, 1, 17, 10, 0, 0, tzinfo=timezone.utc)


def make_response(body, status_code: int = 200) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if body is None:
        response._content = b""
    elif isinstance(body, (bytes, str)):
        response._content = body.encode("utf-8") if isinstance(body, str) else body
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response


def token_body(token: str = "tok-1", expires_at: datetime = T0 + timedelta(hours=1)):
    return {
        "token": token,
        "expireDate": expires_at.isoformat(),
        "errorMessage": None,
        "errorCode": None,
    }


class FakeSession(requests.Session):
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self, *replies) -> None:
        super().__init__()
        self.replies = list(replies)
        self.calls = []

    def queue(self, *replies) -> None:
        self.replies.extend(replies)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.replies:
            raise AssertionError(f"Unexpected {method} {url}")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, requests.Response):
            return reply
        return make_response(reply)

    def urls(self):
        return [call["url"] for call in self.calls]


class Clock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def config() -> GatewayConfig:
    return GatewayConfig(
        username="merchant@example.com",
        password="s3cret",
        hash_key=HASH_KEY,
        merchant_id="29e86e70-0ac6-45eb-ba04-9fcb0aaed12e",
        store_id="d44e705f-9e3a-41de-98b1-1674631637da",
        sandbox=True,
        timeout_seconds=5,
    )


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(config, session, clock) -> GatewayClient:
    return GatewayClient(config, session=session, token_cache=TokenCache(clock=clock))


@pytest.fixture
def payment_params() -> dict:
    return {
        "customer_order_id": "ORD123",
        "merchant_transaction_id": "20250117100000123",
        "total_amount": 1000,
        "success_url": "https://shop.example/success",
        "fail_url": "https://shop.example/fail",
        "cancel_url": "https://shop.example/cancel",
        "customer_name": "John Doe",
        "customer_email": "john@example.com",
        "customer_address": "House 1, Road 2",
        "customer_city": "Dhaka",
        "customer_state": "Dhaka",
        "customer_postcode": "1200",
        "customer_phone": "01712345678",
        "product_name": "Test Product",
    }
