"""
Client for the EPS (Easy Payment System) payment gateway.

The most useful pieces are re-exported here so integrators can
``from eps_gateway import ...`` without navigating the package.
"""

from .api import create_gateway_client
from .core import (
    ConfigError,
    GatewayClient,
    GatewayConfig,
    GatewayEndpoints,
    GatewayError,
    InitializeResult,
    PaymentRequest,
    ProductItem,
    TokenCache,
    TransactionType,
    VerificationResult,
    generate_transaction_id,
    load_env_file,
    load_gateway_config,
    sign,
    validate_hash_key,
)

__all__ = (
    "ConfigError",
    "GatewayClient",
    "GatewayConfig",
    "GatewayEndpoints",
    "GatewayError",
    "InitializeResult",
    "PaymentRequest",
    "ProductItem",
    "TokenCache",
    "TransactionType",
    "VerificationResult",
    "create_gateway_client",
    "generate_transaction_id",
    "load_env_file",
    "load_gateway_config",
    "sign",
    "validate_hash_key",
)
