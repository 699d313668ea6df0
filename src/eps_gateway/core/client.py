"""
HTTP client for the EPS payment gateway.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

import requests

from .config import GatewayConfig, validate_config
from .errors import (
    AUTH_ERROR,
    HTTP_ERROR,
    INIT_ERROR,
    INVALID_PARAMS,
    NETWORK_ERROR,
    TOKEN_ERROR,
    UNKNOWN_ERROR,
    VERIFY_ERROR,
    GatewayError,
)
from .payloads import (
    PaymentRequest,
    build_initialize_payload,
    build_token_payload,
    build_verify_query,
)
from .signing import sign
from .token_cache import TokenCache, parse_expiry
from .validation import validate_payment_request

__all__ = [
    "GatewayClient",
    "InitializeResult",
    "VerificationResult",
]


def _remote_error(body: Any, message_key: str, code_key: str) -> Optional[tuple]:
    """Return ``(message, code)`` when ``body`` carries gateway error fields."""
    if not isinstance(body, dict):
        return None
    message = body.get(message_key)
    code = body.get(code_key)
    if message or code:
        return message, code
    return None


@dataclass(frozen=True)
class InitializeResult:
    transaction_id: str
    redirect_url: str
    financial_entities: Optional[List[Any]]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "InitializeResult":
        return cls(
            transaction_id=payload.get("TransactionId"),
            redirect_url=payload.get("RedirectURL"),
            financial_entities=payload.get("FinancialEntityList"),
            raw=payload,
        )


@dataclass(frozen=True)
class VerificationResult:
    """
    Transaction snapshot returned by ``CheckMerchantTransactionStatus``.
    """

    merchant_transaction_id: Optional[str]
    eps_transaction_id: Optional[str]
    status: Optional[str]
    total_amount: Optional[str]
    transaction_date: Optional[str]
    transaction_type: Optional[str]
    financial_entity: Optional[str]
    customer_id: Optional[str]
    customer_name: Optional[str]
    customer_email: Optional[str]
    customer_address: Optional[str]
    customer_address2: Optional[str]
    customer_city: Optional[str]
    customer_state: Optional[str]
    customer_postcode: Optional[str]
    customer_country: Optional[str]
    customer_phone: Optional[str]
    shipment_name: Optional[str]
    shipment_address: Optional[str]
    shipment_address2: Optional[str]
    shipment_city: Optional[str]
    shipment_state: Optional[str]
    shipment_postcode: Optional[str]
    shipment_country: Optional[str]
    value_a: Optional[str]
    value_b: Optional[str]
    value_c: Optional[str]
    value_d: Optional[str]
    shipping_method: Optional[str]
    no_of_item: Optional[str]
    product_name: Optional[str]
    product_profile: Optional[str]
    product_category: Optional[str]
    payment_reference: Optional[str]
    raw: Dict[str, Any]

    @property
    def is_successful(self) -> bool:
        return isinstance(self.status, str) and self.status.lower() == "success"

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "VerificationResult":
        get = payload.get
        return cls(
            merchant_transaction_id=get("MerchantTransactionId"),
            eps_transaction_id=get("EpsTransactionId"),
            status=get("Status"),
            total_amount=get("TotalAmount"),
            transaction_date=get("TransactionDate"),
            transaction_type=get("TransactionType"),
            financial_entity=get("FinancialEntity"),
            customer_id=get("CustomerId"),
            customer_name=get("CustomerName"),
            customer_email=get("CustomerEmail"),
            customer_address=get("CustomerAddress"),
            customer_address2=get("CustomerAddress2"),
            customer_city=get("CustomerCity"),
            customer_state=get("CustomerState"),
            customer_postcode=get("CustomerPostcode"),
            customer_country=get("CustomerCountry"),
            customer_phone=get("CustomerPhone"),
            shipment_name=get("ShipmentName"),
            shipment_address=get("ShipmentAddress"),
            shipment_address2=get("ShipmentAddress2"),
            shipment_city=get("ShipmentCity"),
            shipment_state=get("ShipmentState"),
            shipment_postcode=get("ShipmentPostcode"),
            shipment_country=get("ShipmentCountry"),
            value_a=get("ValueA"),
            value_b=get("ValueB"),
            value_c=get("ValueC"),
            value_d=get("ValueD"),
            shipping_method=get("ShippingMethod"),
            no_of_item=get("NoOfItem"),
            product_name=get("ProductName"),
            product_profile=get("ProductProfile"),
            product_category=get("ProductCategory"),
            # EPS spells the key this way.
            payment_reference=get("PaymentReferance"),
            raw=payload,
        )


def _decode_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _send(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float,
    headers: Mapping[str, str],
    json_body: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Perform one request and return the decoded JSON object.

    Transport failures and HTTP error statuses are raised as
    :class:`GatewayError`; inspecting error fields of a successful body is
    left to the caller.
    """
    try:
        response = session.request(
            method,
            url,
            json=json_body,
            params=params,
            headers=dict(headers),
            timeout=timeout,
        )
    except (requests.Timeout, requests.ConnectionError) as exc:
        raise GatewayError(
            f"No response from EPS server: {exc}", NETWORK_ERROR
        ) from exc
    except requests.RequestException as exc:
        raise GatewayError(str(exc), UNKNOWN_ERROR) from exc

    if response.status_code >= 400:
        body = _decode_body(response)
        message = f"EPS responded with {response.status_code}"
        remote_code = None
        if isinstance(body, dict):
            message = body.get("ErrorMessage") or body.get("errorMessage") or message
            remote_code = body.get("ErrorCode") or body.get("errorCode")
        raise GatewayError(message, HTTP_ERROR, body, remote_code=remote_code)

    try:
        payload = response.json()
    except ValueError as exc:
        raise RuntimeError(
            f"Failed to parse JSON from EPS at {url}: {response.text}"
        ) from exc
    if not isinstance(payload, dict):
        raise RuntimeError(f"Unexpected response from EPS at {url}: {payload!r}")
    return payload


class GatewayClient:
    """
    Authenticated access to the three EPS endpoints.

    One bearer token is cached per client and refreshed when it expires.
    Concurrent callers may refresh at the same time; the last successful
    refresh wins.
    """

    def __init__(
        self,
        config: GatewayConfig,
        *,
        session: Optional[requests.Session] = None,
        token_cache: Optional[TokenCache] = None,
    ) -> None:
        validate_config(config)
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.setdefault("Content-Type", "application/json")
        self.token_cache = token_cache or TokenCache()

    def describe(self) -> Dict[str, Any]:
        return self.config.describe()

    def clear_token(self) -> None:
        self.token_cache.clear()

    def _request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        return _send(
            self.session,
            method,
            url,
            timeout=self.config.timeout_seconds,
            headers=headers,
            json_body=json_body,
            params=params,
        )

    def _get_token(self) -> str:
        cached = self.token_cache.get()
        if cached is not None:
            return cached

        token_url = self.config.endpoints.token_url
        logging.info("Requesting EPS access token from %s", token_url)
        try:
            signature = sign(self.config.username, self.config.hash_key)
            data = self._request(
                "POST",
                token_url,
                headers={"x-hash": signature},
                json_body=build_token_payload(self.config.username, self.config.password),
            )

            error = _remote_error(data, "errorMessage", "errorCode")
            if error is not None:
                message, remote_code = error
                raise GatewayError(
                    message or "Failed to get token",
                    TOKEN_ERROR,
                    data,
                    remote_code=remote_code,
                )

            token = data.get("token")
            if not token:
                raise ValueError("token missing from response")
            expires_at = parse_expiry(data.get("expireDate"))
        except GatewayError:
            raise
        except Exception as exc:
            raise GatewayError(f"Authentication failed: {exc}", AUTH_ERROR) from exc

        self.token_cache.store(token, expires_at)
        logging.info("EPS access token cached until %s", expires_at.isoformat())
        return token

    def initialize_payment(
        self, request: Union[PaymentRequest, Mapping[str, Any]]
    ) -> InitializeResult:
        """
        Create a payment session and return the URL the customer should be
        redirected to.
        """
        if not isinstance(request, PaymentRequest):
            request = PaymentRequest.from_mapping(request)
        validate_payment_request(request)

        try:
            token = self._get_token()
            signature = sign(request.merchant_transaction_id, self.config.hash_key)
            body = build_initialize_payload(
                request,
                merchant_id=self.config.merchant_id,
                store_id=self.config.store_id,
            )
            logging.info(
                "Initializing EPS payment %s for order %s",
                request.merchant_transaction_id,
                request.customer_order_id,
            )
            data = self._request(
                "POST",
                self.config.endpoints.initialize_url,
                headers={"x-hash": signature, "Authorization": f"Bearer {token}"},
                json_body=body,
            )

            error = _remote_error(data, "ErrorMessage", "ErrorCode")
            if error is not None:
                message, remote_code = error
                raise GatewayError(
                    message or "Payment initialization failed",
                    INIT_ERROR,
                    data,
                    remote_code=remote_code,
                )
        except GatewayError:
            raise
        except Exception as exc:
            raise GatewayError(
                f"Payment initialization failed: {exc}", INIT_ERROR
            ) from exc

        return InitializeResult.from_response(data)

    def verify_payment(
        self,
        *,
        merchant_transaction_id: Optional[str] = None,
        eps_transaction_id: Optional[str] = None,
    ) -> VerificationResult:
        """
        Look up a transaction by merchant id, EPS id, or both.

        When both are supplied the merchant id is the one that gets signed.
        """
        if not merchant_transaction_id and not eps_transaction_id:
            raise GatewayError(
                "Either merchant_transaction_id or eps_transaction_id is required",
                INVALID_PARAMS,
            )
        for name, value in (
            ("merchant_transaction_id", merchant_transaction_id),
            ("eps_transaction_id", eps_transaction_id),
        ):
            if value is not None and not isinstance(value, str):
                raise GatewayError(f"{name} must be a string", INVALID_PARAMS)

        try:
            token = self._get_token()
            signature = sign(
                merchant_transaction_id or eps_transaction_id, self.config.hash_key
            )
            verify_url = self.config.endpoints.verify_url
            logging.info("Verifying EPS transaction at %s", verify_url)
            data = self._request(
                "GET",
                verify_url,
                headers={"x-hash": signature, "Authorization": f"Bearer {token}"},
                params=build_verify_query(
                    merchant_transaction_id=merchant_transaction_id,
                    eps_transaction_id=eps_transaction_id,
                ),
            )

            error = _remote_error(data, "ErrorMessage", "ErrorCode")
            if error is not None:
                message, remote_code = error
                raise GatewayError(
                    message or "Transaction verification failed",
                    VERIFY_ERROR,
                    data,
                    remote_code=remote_code,
                )
        except GatewayError:
            raise
        except Exception as exc:
            raise GatewayError(
                f"Transaction verification failed: {exc}", VERIFY_ERROR
            ) from exc

        return VerificationResult.from_response(data)

    def is_payment_successful(self, transaction_id: str) -> bool:
        """
        ``True`` only when EPS reports the merchant transaction as successful.

        Never raises; any failure counts as not successful.
        """
        try:
            result = self.verify_payment(merchant_transaction_id=transaction_id)
            return result.is_successful
        except Exception:  # noqa: BLE001
            return False
