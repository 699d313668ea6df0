"""
Request shapes and helpers for constructing the JSON payloads sent to EPS.

:class:`PaymentRequest` is what callers fill in; every field is optional so
that validation, not the constructor, decides what is missing.
:func:`build_initialize_payload` applies the defaults once and returns the
fully populated body the ``InitializeEPS`` endpoint expects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .errors import INVALID_PARAMS, GatewayError

__all__ = [
    "PaymentRequest",
    "ProductItem",
    "TransactionType",
    "build_initialize_payload",
    "build_token_payload",
    "build_verify_query",
    "coerce_amount",
]

Amount = Union[Decimal, int, float, str]


class TransactionType(IntEnum):
    WEB = 1
    ANDROID = 2
    IOS = 3


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass(frozen=True)
class ProductItem:
    product_name: str
    no_of_item: Union[str, int] = 1
    product_price: Amount = 0
    product_profile: Optional[str] = None
    product_category: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ProductItem":
        if not isinstance(values, Mapping):
            raise GatewayError("Product item must be an object", INVALID_PARAMS)
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            name = _snake_case(key)
            if name in known:
                kwargs[name] = value
        if not kwargs.get("product_name"):
            raise GatewayError(
                "Missing required parameter: product_name", INVALID_PARAMS
            )
        return cls(**kwargs)

    def to_wire(self) -> Dict[str, Any]:
        item: Dict[str, Any] = {
            "ProductName": self.product_name,
            "NoOfItem": str(self.no_of_item),
            "ProductPrice": str(self.product_price),
        }
        if self.product_profile is not None:
            item["ProductProfile"] = self.product_profile
        if self.product_category is not None:
            item["ProductCategory"] = self.product_category
        return item


@dataclass(frozen=True)
class PaymentRequest:
    """
    Caller-supplied parameters for :meth:`GatewayClient.initialize_payment`.
    """

    customer_order_id: Optional[str] = None
    merchant_transaction_id: Optional[str] = None
    total_amount: Optional[Amount] = None
    success_url: Optional[str] = None
    fail_url: Optional[str] = None
    cancel_url: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_address: Optional[str] = None
    customer_address2: Optional[str] = None
    customer_city: Optional[str] = None
    customer_state: Optional[str] = None
    customer_postcode: Optional[str] = None
    customer_country: Optional[str] = None
    customer_phone: Optional[str] = None
    product_name: Optional[str] = None
    product_profile: Optional[str] = None
    product_category: Optional[str] = None
    product_list: Sequence[ProductItem] = field(default_factory=tuple)
    transaction_type: Optional[TransactionType] = None
    ip_address: Optional[str] = None
    shipment_name: Optional[str] = None
    shipment_address: Optional[str] = None
    shipment_address2: Optional[str] = None
    shipment_city: Optional[str] = None
    shipment_state: Optional[str] = None
    shipment_postcode: Optional[str] = None
    shipment_country: Optional[str] = None
    shipping_method: Optional[str] = None
    no_of_item: Optional[Union[str, int]] = None
    value_a: Optional[str] = None
    value_b: Optional[str] = None
    value_c: Optional[str] = None
    value_d: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "PaymentRequest":
        """
        Build a request from a plain mapping.

        Keys may be snake_case (``customer_order_id``) or the camelCase names
        used by the EPS documentation (``customerOrderId``). ``valueA`` and
        ``transactionTypeId`` are understood as well. Unknown keys are ignored.
        """
        if not isinstance(values, Mapping):
            raise GatewayError("Payment parameters must be an object", INVALID_PARAMS)

        aliases = {"transaction_type_id": "transaction_type"}
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            name = _snake_case(str(key))
            name = aliases.get(name, name)
            if name in known:
                kwargs[name] = value

        if kwargs.get("product_list"):
            products = kwargs["product_list"]
            if isinstance(products, (str, bytes, Mapping)) or not isinstance(products, Sequence):
                raise GatewayError("product_list must be a list", INVALID_PARAMS)
            items = []
            for index, item in enumerate(products):
                if isinstance(item, ProductItem):
                    items.append(item)
                    continue
                try:
                    items.append(ProductItem.from_mapping(item))
                except GatewayError as exc:
                    raise GatewayError(
                        f"Invalid product_list[{index}]: {exc.message}", INVALID_PARAMS
                    ) from exc
            kwargs["product_list"] = tuple(items)

        if kwargs.get("transaction_type") is not None:
            raw = kwargs["transaction_type"]
            try:
                kwargs["transaction_type"] = TransactionType(int(raw))
            except (TypeError, ValueError) as exc:
                raise GatewayError(
                    f"Invalid transaction_type: {raw!r}", INVALID_PARAMS
                ) from exc
        return cls(**kwargs)


def coerce_amount(value: Amount) -> Decimal:
    """Convert a caller supplied amount to :class:`Decimal` or raise ``ValueError``."""
    if isinstance(value, bool):
        raise ValueError(f"Amount must be a number, got {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Amount must be a number, got {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return amount


def _wire_amount(value: Amount) -> Union[int, float]:
    amount = coerce_amount(value)
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def build_token_payload(username: str, password: str) -> Dict[str, str]:
    return {"userName": username, "password": password}


def build_initialize_payload(
    request: PaymentRequest,
    *,
    merchant_id: str,
    store_id: str,
) -> Dict[str, Any]:
    """
    Build the body submitted to ``InitializeEPS``.

    Optional fields absent from ``request`` are filled with the values EPS
    accepts as "not provided" so every key of its schema is present.
    """
    transaction_type = request.transaction_type or TransactionType.WEB
    products: List[Dict[str, Any]] = [item.to_wire() for item in request.product_list]

    return {
        "merchantId": merchant_id,
        "storeId": store_id,
        "CustomerOrderId": request.customer_order_id,
        "merchantTransactionId": request.merchant_transaction_id,
        "transactionTypeId": int(transaction_type),
        "financialEntityId": 0,
        "transitionStatusId": 0,
        "totalAmount": _wire_amount(request.total_amount),
        "ipAddress": request.ip_address or "0.0.0.0",
        "version": "1",
        "successUrl": request.success_url,
        "failUrl": request.fail_url,
        "cancelUrl": request.cancel_url,
        "customerName": request.customer_name,
        "customerEmail": request.customer_email,
        "CustomerAddress": request.customer_address,
        "CustomerAddress2": request.customer_address2 or "",
        "CustomerCity": request.customer_city,
        "CustomerState": request.customer_state,
        "CustomerPostcode": request.customer_postcode,
        "CustomerCountry": request.customer_country or "BD",
        "CustomerPhone": request.customer_phone,
        "ShipmentName": request.shipment_name or "",
        "ShipmentAddress": request.shipment_address or "",
        "ShipmentAddress2": request.shipment_address2 or "",
        "ShipmentCity": request.shipment_city or "",
        "ShipmentState": request.shipment_state or "",
        "ShipmentPostcode": request.shipment_postcode or "",
        "ShipmentCountry": request.shipment_country or "",
        "ValueA": request.value_a or "",
        "ValueB": request.value_b or "",
        "ValueC": request.value_c or "",
        "ValueD": request.value_d or "",
        "ShippingMethod": request.shipping_method or "NO",
        "NoOfItem": str(request.no_of_item) if request.no_of_item else "1",
        "ProductName": request.product_name,
        "ProductProfile": request.product_profile or "general",
        "ProductCategory": request.product_category or "general",
        "ProductList": products,
    }


def build_verify_query(
    *,
    merchant_transaction_id: Optional[str] = None,
    eps_transaction_id: Optional[str] = None,
) -> Dict[str, str]:
    query: Dict[str, str] = {}
    if merchant_transaction_id:
        query["merchantTransactionId"] = merchant_transaction_id
    if eps_transaction_id:
        query["EPSTransactionId"] = eps_transaction_id
    return query
