"""RazorpayClient against an in-process httpx transport."""

import base64
import json

import httpx
import pytest

from src.bm_common.errors import PaymentGatewayError
from src.bm_payment.infrastructure.razorpay_client import RazorpayClient, amount_to_paise


def _client(handler) -> RazorpayClient:
    return RazorpayClient(
        key_id="rzp_test_key",
        key_secret="rzp_test_secret",
        base_url="https://razorpay.test/v1",
        transport=httpx.MockTransport(handler),
    )


def test_amount_to_paise() -> None:
    assert amount_to_paise(1500) == 150_000


class TestCreateOrder:
    async def test_posts_order_with_basic_auth(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "order_abc", "status": "created"})

        order = await _client(handler).create_order(150_000, receipt="BID-1", notes={"bid_id": "BID-1"})

        assert order["id"] == "order_abc"
        assert seen["path"] == "/v1/orders"
        token = base64.b64encode(b"rzp_test_key:rzp_test_secret").decode()
        assert seen["auth"] == f"Basic {token}"
        assert seen["body"]["amount"] == 150_000
        assert seen["body"]["currency"] == "INR"
        assert seen["body"]["receipt"] == "BID-1"

    async def test_http_error_becomes_gateway_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"description": "bad amount"}})

        with pytest.raises(PaymentGatewayError):
            await _client(handler).create_order(100, receipt="BID-1")

    async def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PaymentGatewayError):
            await _client(handler).create_order(100, receipt="BID-1")

    async def test_missing_order_id(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "created"})

        with pytest.raises(PaymentGatewayError):
            await _client(handler).create_order(100, receipt="BID-1")

    async def test_unconfigured_client_never_calls_out(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("should not be called")

        client = RazorpayClient(key_id="", key_secret="", transport=httpx.MockTransport(handler))
        with pytest.raises(PaymentGatewayError):
            await client.create_order(100, receipt="BID-1")
