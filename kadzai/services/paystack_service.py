"""
Kadzai Backend — Paystack Gateway Client
=========================================

What:  Thin client for the Paystack REST API: initialize a transaction,
       verify a transaction, check webhook signatures.
How:   httpx.AsyncClient with a bearer secret key; tenacity retries on
       transport failures only.
Who:   /api/paystack routes and the webhook handler.

Retry policy:
    verify (GET)        → retried on any httpx.TransportError (read-only call)
    initialize (POST)   → retried only when the connection was never
                          established, so a checkout is not created twice
    Gateway answers (4xx, `status: false`) are final and never retried.
"""

import hashlib
import hmac
import logging
from typing import Any, Dict, Optional, Tuple, Type
from urllib.parse import quote

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from kadzai.config import settings
from kadzai.exceptions import PaymentGatewayError, PaymentGatewayUnavailableError
from kadzai.services.gateway_base import PaymentGateway

logger = logging.getLogger(__name__)

_SAFE_TO_RETRY_POST: Tuple[Type[Exception], ...] = (httpx.ConnectError, httpx.ConnectTimeout)


class PaystackService(PaymentGateway):
    """
    Paystack implementation of PaymentGateway.

    Constructor arguments default to settings; tests pass an
    `httpx.MockTransport` and a single attempt.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._secret_key = secret_key
        self._base_url = base_url
        self._timeout = timeout
        self.max_attempts = max_attempts or settings.retry_max_attempts
        self._transport = transport

    @property
    def secret_key(self) -> str:
        return self._secret_key if self._secret_key is not None else settings.paystack_secret_key

    # ── Public API ────────────────────────────────────────────────────────

    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"email": email, "amount": amount, "reference": reference}
        if metadata:
            body["metadata"] = metadata

        status_code, payload = await self._request(
            "POST",
            "/transaction/initialize",
            json=body,
            retry_on=_SAFE_TO_RETRY_POST,
        )
        data = self._unwrap(status_code, payload, "Failed to initialize payment")

        logger.info("Paystack checkout initialized for reference %s", reference)
        return data

    async def verify_transaction(self, reference: str) -> Dict[str, Any]:
        status_code, payload = await self._request(
            "GET",
            f"/transaction/verify/{quote(reference, safe='')}",
            retry_on=(httpx.TransportError,),
        )
        data = self._unwrap(status_code, payload, "Failed to verify payment")

        status = data.get("status")
        if status != "success":
            logger.info("Paystack transaction %s not successful: %s", reference, status)
            raise PaymentGatewayError(
                f"Payment status: {status}",
                context={"reference": reference},
            )

        logger.info("Paystack transaction %s verified", reference)
        return data

    def verify_signature(self, payload: bytes, signature: str) -> bool:
        """HMAC-SHA512 of the raw body keyed with the secret key, hex-encoded."""
        if not self.secret_key or not signature:
            return False
        expected = hmac.new(
            self.secret_key.encode("utf-8"),
            payload,
            hashlib.sha512,
        ).hexdigest()
        return hmac.compare_digest(expected, signature.strip().lower())

    # ── Internals ─────────────────────────────────────────────────────────

    def _unwrap(self, status_code: int, payload: Dict[str, Any], fallback: str) -> Dict[str, Any]:
        """Return `data` from a Paystack envelope or raise with its message."""
        if status_code >= 400 or not payload.get("status"):
            message = payload.get("message") or fallback
            logger.warning("Paystack rejected request (HTTP %d): %s", status_code, message)
            raise PaymentGatewayError(message, gateway_status=status_code)
        return payload.get("data") or {}

    async def _request(
        self,
        method: str,
        path: str,
        retry_on: Tuple[Type[Exception], ...],
        json: Optional[Dict[str, Any]] = None,
    ) -> Tuple[int, Dict[str, Any]]:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(retry_on),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=settings.retry_min_wait,
                max=settings.retry_max_wait,
                jitter=1,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    async with httpx.AsyncClient(
                        base_url=self._base_url or settings.paystack_base_url,
                        timeout=self._timeout or settings.paystack_timeout,
                        transport=self._transport,
                        headers={"Authorization": f"Bearer {self.secret_key}"},
                    ) as client:
                        response = await client.request(method, path, json=json)
        except httpx.TransportError as e:
            logger.error("Paystack %s %s failed: %s", method, path, type(e).__name__)
            raise PaymentGatewayUnavailableError(
                context={"path": path, "error_type": type(e).__name__},
            )

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Paystack returned non-JSON body (HTTP %d)", response.status_code)
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        return response.status_code, payload


paystack_service = PaystackService()
