"""
Core primitives of the EPS authenticated-request pipeline.
"""

from .client import GatewayClient, InitializeResult, VerificationResult
from .config import (
    PRODUCTION_ENDPOINTS,
    SANDBOX_ENDPOINTS,
    GatewayConfig,
    GatewayEndpoints,
    load_gateway_config,
    validate_config,
)
from .environment import GatewayEnvironment, build_environment, load_env_file
from .errors import ConfigError, GatewayError
from .payloads import (
    PaymentRequest,
    ProductItem,
    TransactionType,
    build_initialize_payload,
)
from .signing import generate_transaction_id, sign, validate_hash_key
from .token_cache import CachedToken, TokenCache, is_token_valid
from .validation import validate_payment_request

__all__ = [
    "CachedToken",
    "ConfigError",
    "GatewayClient",
    "GatewayConfig",
    "GatewayEndpoints",
    "GatewayEnvironment",
    "GatewayError",
    "InitializeResult",
    "PRODUCTION_ENDPOINTS",
    "PaymentRequest",
    "ProductItem",
    "SANDBOX_ENDPOINTS",
    "TokenCache",
    "TransactionType",
    "VerificationResult",
    "build_environment",
    "build_initialize_payload",
    "generate_transaction_id",
    "is_token_valid",
    "load_env_file",
    "load_gateway_config",
    "sign",
    "validate_config",
    "validate_hash_key",
    "validate_payment_request",
]
