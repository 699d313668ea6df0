"""
Public, high-level helpers for working with the EPS payment gateway.
"""

from __future__ import annotations

from typing import Mapping, Optional, Union

import requests

from .core.client import GatewayClient, InitializeResult, VerificationResult
from .core.config import GatewayConfig, load_gateway_config
from .core.errors import ConfigError, GatewayError
from .core.payloads import PaymentRequest, ProductItem, TransactionType
from .core.signing import generate_transaction_id, validate_hash_key

__all__ = [
    "ConfigError",
    "GatewayClient",
    "GatewayConfig",
    "GatewayError",
    "InitializeResult",
    "PaymentRequest",
    "ProductItem",
    "TransactionType",
    "VerificationResult",
    "create_gateway_client",
    "generate_transaction_id",
    "load_gateway_config",
    "validate_hash_key",
]


def create_gateway_client(
    *,
    config: Optional[GatewayConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    hash_key: Optional[str] = None,
    merchant_id: Optional[str] = None,
    store_id: Optional[str] = None,
    sandbox: Optional[Union[bool, str]] = None,
    timeout_seconds: Optional[Union[float, int, str]] = None,
) -> GatewayClient:
    """
    Construct a :class:`GatewayClient`.

    Callers either supply a ready-made :class:`GatewayConfig` or let the
    helper assemble one from environment data and keyword arguments.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            username,
            password,
            hash_key,
            merchant_id,
            store_id,
            sandbox,
            timeout_seconds,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built GatewayConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_gateway_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            username=username,
            password=password,
            hash_key=hash_key,
            merchant_id=merchant_id,
            store_id=store_id,
            sandbox=sandbox,
            timeout_seconds=timeout_seconds,
        )
    return GatewayClient(cfg, session=session)
