"""
Configuration objects and helpers for the EPS gateway client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from .environment import build_environment
from .errors import ConfigError
from .validation import is_valid_email, is_valid_uuid

__all__ = [
    "GatewayConfig",
    "GatewayEndpoints",
    "PRODUCTION_ENDPOINTS",
    "SANDBOX_ENDPOINTS",
    "load_gateway_config",
    "validate_config",
]

DEFAULT_TIMEOUT_SECONDS = 30.0

_PARAMETER_TO_ENV_KEY = {
    "username": "EPS_USERNAME",
    "password": "EPS_PASSWORD",
    "hash_key": "EPS_HASH_KEY",
    "merchant_id": "EPS_MERCHANT_ID",
    "store_id": "EPS_STORE_ID",
    "sandbox": "EPS_SANDBOX",
    "timeout_seconds": "EPS_TIMEOUT_SECONDS",
}

_CREDENTIAL_FIELDS = ("username", "password", "hash_key", "merchant_id", "store_id")

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class GatewayEndpoints:
    token_url: str
    initialize_url: str
    verify_url: str

    @classmethod
    def for_host(cls, host: str) -> "GatewayEndpoints":
        base = f"https://{host}/v1"
        return cls(
            token_url=f"{base}/Auth/GetToken",
            initialize_url=f"{base}/EPSEngine/InitializeEPS",
            verify_url=f"{base}/EPSEngine/CheckMerchantTransactionStatus",
        )


SANDBOX_ENDPOINTS = GatewayEndpoints.for_host("sandbox-pgapi.eps.com.bd")
PRODUCTION_ENDPOINTS = GatewayEndpoints.for_host("pgapi.eps.com.bd")


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_bool(raw: str, key: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{key} must be a boolean (true/false), got '{raw}'")


def _parse_timeout(raw: str, key: str) -> float:
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number of seconds, got '{raw}'") from exc
    if timeout <= 0:
        raise ConfigError(f"{key} must be greater than zero")
    return timeout


@dataclass(frozen=True)
class GatewayConfig:
    """
    Merchant credentials plus the environment switch.

    ``password`` and ``hash_key`` are left out of ``repr`` so a config can be
    logged safely.
    """

    username: str
    password: str = field(repr=False)
    hash_key: str = field(repr=False)
    merchant_id: str
    store_id: str
    sandbox: bool = False
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def endpoints(self) -> GatewayEndpoints:
        return SANDBOX_ENDPOINTS if self.sandbox else PRODUCTION_ENDPOINTS

    def describe(self) -> Dict[str, Any]:
        """Return the configuration without secrets."""
        return {
            "username": self.username,
            "merchant_id": self.merchant_id,
            "store_id": self.store_id,
            "sandbox": self.sandbox,
        }

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "GatewayConfig":
        credentials: Dict[str, str] = {}
        for name in _CREDENTIAL_FIELDS:
            env_key = _PARAMETER_TO_ENV_KEY[name]
            raw = values.get(env_key)
            if raw is None or not raw.strip():
                raise ConfigError(f"Missing required configuration: {name} ({env_key})")
            credentials[name] = raw.strip()

        sandbox = _parse_bool(values.get("EPS_SANDBOX", "false"), "EPS_SANDBOX")
        timeout_seconds = _parse_timeout(
            values.get("EPS_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)),
            "EPS_TIMEOUT_SECONDS",
        )

        config = cls(sandbox=sandbox, timeout_seconds=timeout_seconds, **credentials)
        validate_config(config)
        return config

    @classmethod
    def from_env(
        cls,
        *,
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
    ) -> "GatewayConfig":
        explicit = {
            "username": username,
            "password": password,
            "hash_key": hash_key,
            "merchant_id": merchant_id,
            "store_id": store_id,
            "sandbox": sandbox,
            "timeout_seconds": timeout_seconds,
        }
        merged_overrides = dict(overrides or {})
        for key, value in explicit.items():
            if value is not None:
                merged_overrides[_PARAMETER_TO_ENV_KEY[key]] = _stringify(value)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment.variables)


def validate_config(config: GatewayConfig) -> None:
    """
    Raise :class:`ConfigError` for the first credential rule ``config`` breaks.
    """
    for name in _CREDENTIAL_FIELDS:
        value = getattr(config, name, None)
        if not isinstance(value, str) or not value:
            raise ConfigError(f"Missing required configuration: {name}")

    if not is_valid_email(config.username):
        raise ConfigError("Invalid username format (expected email)")
    if not is_valid_uuid(config.merchant_id):
        raise ConfigError("Invalid merchant_id format (expected UUID)")
    if not is_valid_uuid(config.store_id):
        raise ConfigError("Invalid store_id format (expected UUID)")
    timeout = config.timeout_seconds
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ConfigError("timeout_seconds must be a number of seconds")
    if timeout <= 0:
        raise ConfigError("timeout_seconds must be greater than zero")


def load_gateway_config(
    *,
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
) -> GatewayConfig:
    """
    Convenience wrapper that mirrors :meth:`GatewayConfig.from_env`.

    Values come from the process environment (or ``base``), a ``.env`` file,
    ``overrides`` and the keyword arguments, later sources winning.
    """
    return GatewayConfig.from_env(
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
