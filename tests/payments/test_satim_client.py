import json
from urllib.parse import parse_qs

import httpx
import pytest

from application.dtos.payments import RefundPaymentRequest, RegisterPaymentRequest, VerifyPaymentRequest
from domain.common.exceptions import (
    GatewayAPIError,
    GatewayProtocolError,
    GatewayTimeoutError,
    NetworkError,
    PaymentNotFoundError,
    ValidationError,
)
from infrastructure.external.payments.satim_client import SatimClient


BASE_URL = "https://test2.satim.dz/payment/rest"


def _client(handler) -> SatimClient:
    return SatimClient(
        base_url=BASE_URL,
        username="SAT2100000",
        password="satim120",
        transport=httpx.MockTransport(handler),
    )


def _register(amount: int = 5000) -> RegisterPaymentRequest:
    return RegisterPaymentRequest(
        order_number="ORD1234001",
        amount=amount,
        currency="012",
        return_url="https://merchant.example/return",
        fail_url="https://merchant.example/fail",
        json_params={"force_terminal_id": "E010900000", "udf1": "ORD1234001"},
    )


def _ok_register(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"errorCode": "0", "orderId": "X", "formUrl": "https://test2.satim.dz/pay"})


@pytest.mark.asyncio
@pytest.mark.parametrize("amount,message", [
    (4999, "at least 5000"),
    (5050, "multiple of 100"),
])
async def test_register_rejects_invalid_amount_without_network(amount, message):
    calls = []

    def handler(request):
        calls.append(request)
        return _ok_register(request)

    client = _client(handler)
    with pytest.raises(ValidationError) as ei:
        await client.register_payment(_register(amount))
    assert message in ei.value.message
    assert calls == []
    await client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [5000, 10000])
async def test_register_accepts_valid_amount(amount):
    client = _client(_ok_register)
    data = await client.register_payment(_register(amount))
    assert data["orderId"] == "X"
    await client.aclose()


@pytest.mark.asyncio
async def test_register_posts_form_with_wire_field_names():
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["headers"] = request.headers
        seen["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        return _ok_register(request)

    async with _client(handler) as client:
        await client.register_payment(_register())

    assert seen["method"] == "POST"
    assert seen["path"] == "/payment/rest/register.do"
    assert seen["headers"]["content-type"] == "application/x-www-form-urlencoded"
    assert seen["headers"]["user-agent"] == "CIBPAY-SATIM-Module/1.0"
    form = seen["form"]
    assert form["userName"] == "SAT2100000"
    assert form["password"] == "satim120"
    assert form["orderNumber"] == "ORD1234001"
    assert form["amount"] == "5000"
    assert form["currency"] == "012"
    assert form["failUrl"] == "https://merchant.example/fail"
    assert form["language"] == "fr"
    assert json.loads(form["jsonParams"]) == {"force_terminal_id": "E010900000", "udf1": "ORD1234001"}


@pytest.mark.asyncio
async def test_register_gateway_error_uses_register_table():
    def handler(request):
        return httpx.Response(200, json={"errorCode": "1", "errorMessage": "ignored"})

    client = _client(handler)
    with pytest.raises(GatewayAPIError) as ei:
        await client.register_payment(_register())
    assert ei.value.gateway_code == "1"
    assert ei.value.message.startswith("Payment registration failed: Order with given order number")
    await client.aclose()


@pytest.mark.asyncio
async def test_register_unknown_code_falls_back_to_gateway_message():
    def handler(request):
        return httpx.Response(200, json={"errorCode": "99", "errorMessage": "Something odd"})

    client = _client(handler)
    with pytest.raises(GatewayAPIError) as ei:
        await client.register_payment(_register())
    assert ei.value.message == "Payment registration failed: Something odd"
    await client.aclose()


@pytest.mark.asyncio
async def test_register_success_without_form_url_is_protocol_error():
    def handler(request):
        return httpx.Response(200, json={"errorCode": "0", "orderId": "X"})

    client = _client(handler)
    with pytest.raises(GatewayProtocolError) as ei:
        await client.register_payment(_register())
    assert "Missing orderId or formUrl" in ei.value.message
    await client.aclose()


@pytest.mark.asyncio
async def test_verify_sends_query_and_reads_capitalised_code():
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"ErrorCode": "0", "OrderStatus": 2, "OrderNumber": "ORD1234001"})

    async with _client(handler) as client:
        data = await client.verify_payment(VerifyPaymentRequest(md_order="X"))

    assert data["OrderStatus"] == 2
    assert seen["method"] == "GET"
    assert seen["path"] == "/payment/rest/public/acknowledgeTransaction.do"
    assert seen["params"] == {"userName": "SAT2100000", "password": "satim120", "mdOrder": "X", "language": "en"}


@pytest.mark.asyncio
async def test_verify_error_uses_acknowledge_table():
    def handler(request):
        return httpx.Response(200, json={"ErrorCode": "2", "ErrorMessage": "declined"})

    client = _client(handler)
    with pytest.raises(GatewayAPIError) as ei:
        await client.verify_payment(VerifyPaymentRequest(md_order="X"))
    assert ei.value.gateway_code == "2"
    assert ei.value.message.startswith("Payment verification failed: The order is declined")
    await client.aclose()


@pytest.mark.asyncio
async def test_verify_unregistered_order_is_not_found():
    def handler(request):
        return httpx.Response(200, json={"ErrorCode": "6"})

    client = _client(handler)
    with pytest.raises(PaymentNotFoundError) as ei:
        await client.verify_payment(VerifyPaymentRequest(md_order="missing"))
    assert ei.value.gateway_code == "6"
    assert ei.value.status_code == 404
    await client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("amount,message", [
    (99, "at least 100 centimes"),
    (150, "multiple of 100"),
])
async def test_refund_rejects_invalid_amount(amount, message):
    client = _client(lambda request: httpx.Response(200, json={"errorCode": "0"}))
    with pytest.raises(ValidationError) as ei:
        await client.refund_payment(RefundPaymentRequest(order_id="X", amount=amount))
    assert message in ei.value.message
    await client.aclose()


@pytest.mark.asyncio
async def test_refund_sends_amount_unscaled():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"errorCode": "0"})

    async with _client(handler) as client:
        await client.refund_payment(RefundPaymentRequest(order_id="X", amount=5000))
    assert seen["path"] == "/payment/rest/refund.do"
    assert seen["params"]["orderId"] == "X"
    assert seen["params"]["amount"] == "5000"


@pytest.mark.asyncio
async def test_refund_error_appends_hint():
    def handler(request):
        return httpx.Response(200, json={"errorCode": "7"})

    client = _client(handler)
    with pytest.raises(GatewayAPIError) as ei:
        await client.refund_payment(RefundPaymentRequest(order_id="X", amount=5000))
    assert ei.value.message.startswith("Refund failed: System error")
    assert "OrderStatus=2" in ei.value.message
    await client.aclose()


@pytest.mark.asyncio
async def test_refund_code_five_lists_possible_causes():
    client = _client(lambda request: httpx.Response(200, json={"errorCode": "5"}))
    with pytest.raises(GatewayAPIError) as ei:
        await client.refund_payment(RefundPaymentRequest(order_id="X", amount=5000))
    assert "POSSIBLE CAUSES" in ei.value.message
    await client.aclose()


@pytest.mark.asyncio
async def test_timeout_is_classified():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = _client(handler)
    with pytest.raises(GatewayTimeoutError) as ei:
        await client.verify_payment(VerifyPaymentRequest(md_order="X"))
    assert ei.value.message == "Request timeout"
    assert ei.value.retryable is True
    await client.aclose()


@pytest.mark.asyncio
async def test_connect_error_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(NetworkError) as ei:
        await client.register_payment(_register())
    assert ei.value.message == "No response from SATIM server"
    assert ei.value.retryable is True
    await client.aclose()


@pytest.mark.asyncio
async def test_server_error_carries_gateway_code_and_status():
    def handler(request):
        return httpx.Response(500, json={"errorCode": "7", "errorMessage": "System error"})

    client = _client(handler)
    with pytest.raises(GatewayAPIError) as ei:
        await client.verify_payment(VerifyPaymentRequest(md_order="X"))
    assert ei.value.gateway_code == "7"
    assert ei.value.status_code == 500
    assert ei.value.message == "System error"
    await client.aclose()


@pytest.mark.asyncio
async def test_server_error_without_body_uses_fallbacks():
    client = _client(lambda request: httpx.Response(503, text="unavailable"))
    with pytest.raises(GatewayAPIError) as ei:
        await client.verify_payment(VerifyPaymentRequest(md_order="X"))
    assert ei.value.gateway_code == "7"
    assert ei.value.message == "Unknown server error"
    await client.aclose()


@pytest.mark.asyncio
async def test_non_json_success_is_protocol_error():
    client = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    with pytest.raises(GatewayProtocolError):
        await client.verify_payment(VerifyPaymentRequest(md_order="X"))
    await client.aclose()


def test_client_from_settings(satim_settings):
    client = SatimClient(satim_settings)
    assert client.base_url == "https://test2.satim.dz/payment/rest"
    assert client.timeouts.read == 30.0
    assert client.provider == "satim"


def test_client_requires_credentials():
    with pytest.raises(ValueError):
        SatimClient(base_url=BASE_URL, username="", password="x")
