"""
Kadzai Backend — Paystack Client Unit Tests
============================================

What:  Drives PaystackService through httpx.MockTransport, so request
       shape, envelope handling and retry behaviour are checked without
       network access.

What we test:
    ✅ initialize sends bearer auth, kobo amount and metadata
    ✅ Paystack `status: false` / HTTP 4xx become PaymentGatewayError
    ✅ verify only accepts status == "success"
    ✅ verify keeps the reference inside one path segment
    ✅ transport failures become PaymentGatewayUnavailableError
    ✅ GET is retried on transport errors, POST only on connect errors
    ✅ HMAC-SHA512 webhook signatures
"""

import hashlib
import hmac
import json

import httpx
import pytest

from kadzai.exceptions import PaymentGatewayError, PaymentGatewayUnavailableError
from kadzai.services.paystack_service import PaystackService

SECRET = "sk_test_unit"


def _service(handler, max_attempts=1) -> PaystackService:
    return PaystackService(
        secret_key=SECRET,
        base_url="https://api.paystack.test",
        timeout=5,
        max_attempts=max_attempts,
        transport=httpx.MockTransport(handler),
    )


class TestInitialize:

    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "status": True,
                "message": "Authorization URL created",
                "data": {
                    "authorization_url": "https://checkout.paystack.com/abc",
                    "access_code": "abc",
                    "reference": "TE1A2B3C4D",
                },
            })

        data = await _service(handler).initialize_transaction(
            email="ada@example.com",
            amount=3000000,
            reference="TE1A2B3C4D",
            metadata={"bookingReference": "TE1A2B3C4D"},
        )

        assert data["authorization_url"] == "https://checkout.paystack.com/abc"
        assert seen["auth"] == f"Bearer {SECRET}"
        assert seen["path"] == "/transaction/initialize"
        assert seen["body"] == {
            "email": "ada@example.com",
            "amount": 3000000,
            "reference": "TE1A2B3C4D",
            "metadata": {"bookingReference": "TE1A2B3C4D"},
        }

    @pytest.mark.asyncio
    async def test_gateway_rejection_keeps_message(self):
        def handler(request):
            return httpx.Response(400, json={"status": False, "message": "Duplicate Transaction Reference"})

        with pytest.raises(PaymentGatewayError) as exc_info:
            await _service(handler).initialize_transaction("ada@example.com", 100, "DUP")
        assert exc_info.value.message == "Duplicate Transaction Reference"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_non_json_body_uses_fallback_message(self):
        def handler(request):
            return httpx.Response(502, text="<html>bad gateway</html>")

        with pytest.raises(PaymentGatewayError) as exc_info:
            await _service(handler).initialize_transaction("ada@example.com", 100, "REF")
        assert exc_info.value.message == "Failed to initialize payment"

    @pytest.mark.asyncio
    async def test_read_timeout_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(PaymentGatewayUnavailableError):
            await _service(handler, max_attempts=3).initialize_transaction("ada@example.com", 100, "REF")
        assert len(calls) == 1


class TestVerify:

    @pytest.mark.asyncio
    async def test_success(self):
        def handler(request):
            assert request.url.path == "/transaction/verify/PSK_123"
            return httpx.Response(200, json={
                "status": True,
                "message": "Verification successful",
                "data": {"reference": "PSK_123", "amount": 3000000, "status": "success"},
            })

        data = await _service(handler).verify_transaction("PSK_123")

        assert data["amount"] == 3000000

    @pytest.mark.asyncio
    async def test_reference_cannot_escape_verify_path(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json={
                "status": True,
                "data": {"reference": "x", "amount": 100, "status": "success"},
            })

        await _service(handler).verify_transaction("abc/../../../customer?perPage=100")

        url = seen[0]
        assert url.raw_path == b"/transaction/verify/abc%2F..%2F..%2F..%2Fcustomer%3FperPage%3D100"
        assert url.query == b""

    @pytest.mark.asyncio
    async def test_abandoned_payment(self):
        def handler(request):
            return httpx.Response(200, json={
                "status": True,
                "data": {"reference": "PSK_123", "amount": 100, "status": "abandoned"},
            })

        with pytest.raises(PaymentGatewayError) as exc_info:
            await _service(handler).verify_transaction("PSK_123")
        assert exc_info.value.message == "Payment status: abandoned"

    @pytest.mark.asyncio
    async def test_unknown_reference(self):
        def handler(request):
            return httpx.Response(404, json={"status": False, "message": "Transaction reference not found"})

        with pytest.raises(PaymentGatewayError) as exc_info:
            await _service(handler).verify_transaction("nope")
        assert exc_info.value.message == "Transaction reference not found"

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PaymentGatewayUnavailableError) as exc_info:
            await _service(handler).verify_transaction("PSK_123")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_transport_error_retried_then_succeeds(self, monkeypatch):
        monkeypatch.setattr("kadzai.services.paystack_service.settings.retry_min_wait", 0)
        monkeypatch.setattr("kadzai.services.paystack_service.settings.retry_max_wait", 0)
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json={
                "status": True,
                "data": {"reference": "PSK_123", "amount": 100, "status": "success"},
            })

        data = await _service(handler, max_attempts=3).verify_transaction("PSK_123")

        assert data["status"] == "success"
        assert len(calls) == 2


class TestSignature:

    def test_valid_signature(self):
        body = b'{"event":"charge.success"}'
        signature = hmac.new(SECRET.encode(), body, hashlib.sha512).hexdigest()

        assert _service(lambda r: None).verify_signature(body, signature)

    def test_tampered_body(self):
        body = b'{"event":"charge.success"}'
        signature = hmac.new(SECRET.encode(), body, hashlib.sha512).hexdigest()

        assert not _service(lambda r: None).verify_signature(body + b" ", signature)

    def test_missing_secret_rejects_everything(self):
        service = PaystackService(secret_key="")
        assert not service.verify_signature(b"{}", "abc")
