"""
Tests for the authenticated-request pipeline of :class:`GatewayClient`.
"""

from datetime import timedelta

import pytest
import requests

from eps_gateway import GatewayClient, GatewayError, sign
from eps_gateway.core.config import PRODUCTION_ENDPOINTS, SANDBOX_ENDPOINTS

from conftest import HASH_KEY, T0, make_response, token_body

INIT_OK = {
    "TransactionId": "C123",
    "RedirectURL": "https://pay.example/x",
    "ErrorMessage": "",
    "ErrorCode": None,
    "FinancialEntityList": None,
}

VERIFY_OK = {
    "MerchantTransactionId": "20250117100000123",
    "EpsTransactionId": "C123",
    "Status": "Success",
    "TotalAmount": "1000.00",
    "CustomerName": "John Doe",
    "ValueA": "extra",
    "PaymentReferance": "REF-9",
    "ErrorCode": None,
    "ErrorMessage": None,
}


class TestInitializePayment:
    def test_returns_transaction_and_redirect(self, client, session, payment_params):
        session.queue(token_body(), INIT_OK)

        result = client.initialize_payment(payment_params)

        assert result.transaction_id == "C123"
        assert result.redirect_url == "https://pay.example/x"
        assert result.raw == INIT_OK

    def test_signs_and_authenticates_requests(self, client, session, config, payment_params):
        session.queue(token_body(), INIT_OK)

        client.initialize_payment(payment_params)

        token_call, init_call = session.calls
        assert token_call["method"] == "POST"
        assert token_call["url"] == SANDBOX_ENDPOINTS.token_url
        assert token_call["headers"] == {"x-hash": sign(config.username, HASH_KEY)}
        assert token_call["json"] == {"userName": config.username, "password": "s3cret"}
        assert token_call["timeout"] == 5

        assert init_call["url"] == SANDBOX_ENDPOINTS.initialize_url
        assert init_call["headers"] == {
            "x-hash": sign("20250117100000123", HASH_KEY),
            "Authorization": "Bearer tok-1",
        }
        body = init_call["json"]
        assert body["merchantId"] == config.merchant_id
        assert body["storeId"] == config.store_id
        assert body["merchantTransactionId"] == "20250117100000123"
        assert body["totalAmount"] == 1000

    def test_remote_error_field_raises_init_error(self, client, session, payment_params):
        failure = {
            "TransactionId": None,
            "RedirectURL": None,
            "ErrorMessage": "Invalid store",
            "ErrorCode": "E01",
        }
        session.queue(token_body(), failure)

        with pytest.raises(GatewayError) as info:
            client.initialize_payment(payment_params)

        assert info.value.code == "INIT_ERROR"
        assert info.value.remote_code == "E01"
        assert info.value.response["ErrorCode"] == "E01"
        assert info.value.message == "Invalid store"

    def test_invalid_params_make_no_request(self, client, session, payment_params):
        payment_params["total_amount"] = 0

        with pytest.raises(GatewayError) as info:
            client.initialize_payment(payment_params)

        assert info.value.code == "INVALID_AMOUNT"
        assert session.calls == []

    def test_http_error_passes_through(self, client, session, payment_params):
        session.queue(
            token_body(),
            make_response({"ErrorMessage": "boom", "ErrorCode": "500"}, status_code=500),
        )

        with pytest.raises(GatewayError) as info:
            client.initialize_payment(payment_params)

        assert info.value.code == "HTTP_ERROR"
        assert info.value.message == "boom"
        assert info.value.remote_code == "500"

    def test_timeout_is_network_error(self, client, session, payment_params):
        session.queue(token_body(), requests.Timeout("read timed out"))

        with pytest.raises(GatewayError) as info:
            client.initialize_payment(payment_params)

        assert info.value.code == "NETWORK_ERROR"

    def test_unparseable_body_is_init_error(self, client, session, payment_params):
        session.queue(token_body(), make_response("<html>oops</html>"))

        with pytest.raises(GatewayError) as info:
            client.initialize_payment(payment_params)

        assert info.value.code == "INIT_ERROR"
        assert isinstance(info.value.__cause__, RuntimeError)


class TestTokenHandling:
    def test_token_is_reused_while_valid(self, client, session, payment_params):
        session.queue(token_body(), INIT_OK, INIT_OK)

        client.initialize_payment(payment_params)
        client.initialize_payment(payment_params)

        assert session.urls().count(SANDBOX_ENDPOINTS.token_url) == 1

    def test_expired_token_is_refreshed_once(self, client, session, clock, payment_params):
        session.queue(token_body("tok-1"), INIT_OK)
        client.initialize_payment(payment_params)

        clock.advance(hours=2)
        session.queue(token_body("tok-2", T0 + timedelta(hours=3)), INIT_OK)
        client.initialize_payment(payment_params)

        assert session.urls().count(SANDBOX_ENDPOINTS.token_url) == 2
        assert session.calls[-1]["headers"]["Authorization"] == "Bearer tok-2"
        assert client.token_cache.get() == "tok-2"

    def test_clear_token_forces_refresh(self, client, session, payment_params):
        session.queue(token_body(), INIT_OK)
        client.initialize_payment(payment_params)

        client.clear_token()
        session.queue(token_body("tok-2"), INIT_OK)
        client.initialize_payment(payment_params)

        assert session.urls().count(SANDBOX_ENDPOINTS.token_url) == 2

    def test_remote_token_error(self, client, session, payment_params):
        session.queue({"token": None, "errorMessage": "Bad credentials", "errorCode": "401"})

        with pytest.raises(GatewayError) as info:
            client.initialize_payment(payment_params)

        assert info.value.code == "TOKEN_ERROR"
        assert info.value.remote_code == "401"
        assert client.token_cache.current is None

    def test_malformed_token_response_is_auth_error(self, client, session, payment_params):
        session.queue({"token": "tok-1", "expireDate": "whenever"})

        with pytest.raises(GatewayError) as info:
            client.initialize_payment(payment_params)

        assert info.value.code == "AUTH_ERROR"
        assert client.token_cache.current is None

    def test_failed_refresh_keeps_previous_slot(self, client, session, clock, payment_params):
        session.queue(token_body("tok-1"), INIT_OK)
        client.initialize_payment(payment_params)
        previous = client.token_cache.current

        clock.advance(hours=2)
        session.queue(requests.ConnectionError("connection refused"))
        with pytest.raises(GatewayError) as info:
            client.initialize_payment(payment_params)

        assert info.value.code == "NETWORK_ERROR"
        assert client.token_cache.current is previous
        assert client.token_cache.get() is None


class TestVerifyPayment:
    def test_requires_an_identifier(self, client, session):
        with pytest.raises(GatewayError) as info:
            client.verify_payment()

        assert info.value.code == "INVALID_PARAMS"
        assert session.calls == []

    def test_returns_flat_record(self, client, session):
        session.queue(token_body(), VERIFY_OK)

        result = client.verify_payment(merchant_transaction_id="20250117100000123")

        assert result.status == "Success"
        assert result.eps_transaction_id == "C123"
        assert result.customer_name == "John Doe"
        assert result.value_a == "extra"
        assert result.payment_reference == "REF-9"
        assert result.is_successful

    def test_query_and_signature(self, client, session):
        session.queue(token_body(), VERIFY_OK)

        client.verify_payment(merchant_transaction_id="M-1234567890", eps_transaction_id="C123")

        call = session.calls[-1]
        assert call["method"] == "GET"
        assert call["url"] == SANDBOX_ENDPOINTS.verify_url
        assert call["params"] == {
            "merchantTransactionId": "M-1234567890",
            "EPSTransactionId": "C123",
        }
        assert call["headers"]["x-hash"] == sign("M-1234567890", HASH_KEY)

    def test_signs_eps_id_when_alone(self, client, session):
        session.queue(token_body(), VERIFY_OK)

        client.verify_payment(eps_transaction_id="C123")

        call = session.calls[-1]
        assert call["params"] == {"EPSTransactionId": "C123"}
        assert call["headers"]["x-hash"] == sign("C123", HASH_KEY)

    def test_remote_error_field_raises_verify_error(self, client, session):
        session.queue(token_body(), {"ErrorMessage": "Not found", "ErrorCode": "E404"})

        with pytest.raises(GatewayError) as info:
            client.verify_payment(eps_transaction_id="C123")

        assert info.value.code == "VERIFY_ERROR"
        assert info.value.remote_code == "E404"


class TestIsPaymentSuccessful:
    def test_true_for_success_any_case(self, client, session):
        session.queue(token_body(), dict(VERIFY_OK, Status="SUCCESS"))
        assert client.is_payment_successful("20250117100000123") is True

    def test_false_for_other_status(self, client, session):
        session.queue(token_body(), dict(VERIFY_OK, Status="Pending"))
        assert client.is_payment_successful("20250117100000123") is False

    def test_false_when_verification_raises(self, client, session):
        session.queue(token_body(), requests.ConnectionError("reset"))
        assert client.is_payment_successful("20250117100000123") is False

    def test_false_when_token_call_fails(self, client, session):
        session.queue(make_response({"errorMessage": "down"}, status_code=503))
        assert client.is_payment_successful("20250117100000123") is False


def test_production_endpoints(config, session):
    from dataclasses import replace

    production = GatewayClient(replace(config, sandbox=False), session=session)
    session.queue(token_body(), VERIFY_OK)

    production.verify_payment(eps_transaction_id="C123")

    assert session.urls() == [PRODUCTION_ENDPOINTS.token_url, PRODUCTION_ENDPOINTS.verify_url]


def test_describe_masks_secrets(client):
    described = client.describe()

    assert described["sandbox"] is True
    assert "password" not in described
    assert "hash_key" not in described


def test_numeric_transaction_id_rejected_before_token_request(client, session, payment_params):
    payment_params["merchant_transaction_id"] = 20250117100000123

    with pytest.raises(GatewayError) as info:
        client.initialize_payment(payment_params)

    assert info.value.code == "INVALID_TRANSACTION_ID"
    assert session.calls == []


@pytest.mark.parametrize(
    "ids",
    [{"merchant_transaction_id": 20250117100000123}, {"eps_transaction_id": 123}],
)
def test_verify_rejects_non_string_ids(client, session, ids):
    with pytest.raises(GatewayError) as info:
        client.verify_payment(**ids)

    assert info.value.code == "INVALID_PARAMS"
    assert session.calls == []


@pytest.mark.parametrize(
    "key,value,named",
    [
        ("transactionTypeId", 9, "transaction_type"),
        ("transactionTypeId", "web", "transaction_type"),
        ("productList", [{"NoOfItem": 1, "ProductPrice": 10}], "product_list[0]"),
        ("productList", ["Tea"], "product_list[0]"),
        ("productList", "Tea", "product_list"),
    ],
)
def test_malformed_mapping_is_invalid_params(client, session, payment_params, key, value, named):
    payment_params[key] = value

    with pytest.raises(GatewayError) as info:
        client.initialize_payment(payment_params)

    assert info.value.code == "INVALID_PARAMS"
    assert named in info.value.message
    assert session.calls == []


@pytest.mark.parametrize("params", [["not", "an", "object"], "ORD123", None])
def test_non_object_params_are_invalid_params(client, session, params):
    with pytest.raises(GatewayError) as info:
        client.initialize_payment(params)

    assert info.value.code == "INVALID_PARAMS"
    assert session.calls == []
