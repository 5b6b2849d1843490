"""
Kadzai Backend — Abstract Payment Gateway Interface
====================================================

What:  The contract the payment routes and webhook rely on.
Who:   Implemented by PaystackService; WebhookService accepts any implementation.

Contract:
    - Gateway rejections raise PaymentGatewayError (→ 400) carrying the
      gateway's own message.
    - Transport failures that survive the retry policy raise
      PaymentGatewayUnavailableError (→ 500).
    - Amounts are integers in the currency's minor unit (kobo for NGN).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class PaymentGateway(ABC):

    @abstractmethod
    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Start a hosted checkout.

        Returns the gateway's `data` object, which must contain
        `authorization_url`, `access_code` and `reference`.
        """
        ...

    @abstractmethod
    async def verify_transaction(self, reference: str) -> Dict[str, Any]:
        """
        Fetch a transaction and require it to have succeeded.

        Raises PaymentGatewayError when the gateway rejects the lookup or the
        transaction status is anything other than "success".
        """
        ...

    @abstractmethod
    def verify_signature(self, payload: bytes, signature: str) -> bool:
        """Check a webhook body against the signature header the gateway sent."""
        ...
