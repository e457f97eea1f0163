import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import httpx

from ..core.config import Settings
from ..exceptions import BadRequestException


logger = logging.getLogger(__name__)


def _signature(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class RazorpayClient:
    """
    Thin async wrapper around the Razorpay REST API.

    All amounts are integers in paise. ``transport`` lets tests swap in an
    ``httpx.MockTransport``.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.key_id = settings.RAZORPAY_KEY_ID
        self.key_secret = settings.RAZORPAY_KEY_SECRET
        self.webhook_secret = settings.RAZORPAY_WEBHOOK_SECRET
        self.base_url = settings.RAZORPAY_BASE_URL.rstrip("/")
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self.key_id or not self.key_secret:
            raise BadRequestException("Razorpay is not configured")

        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            timeout=30,
            transport=self.transport,
        )

    async def _post(self, path: str, payload: Dict[str, Any], action: str) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post(path, json=payload)
        except httpx.RequestError as e:
            logger.error("Razorpay request to %s failed: %s", path, e)
            raise BadRequestException(f"Failed to {action}: {e}")

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error("Razorpay %s returned %s: %s", path, response.status_code, message)
            raise BadRequestException(f"Failed to {action}: {message}")

        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or "Unknown error"

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return error.get("description") or error.get("message") or str(error)
        return str(body)

    async def create_order(
        self,
        amount: int,
        receipt: str,
        currency: str = "INR",
        notes: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 100:
            raise BadRequestException("Amount must be an integer in paise and at least 100 paise (₹1)")

        payload = {"amount": amount, "currency": currency, "receipt": receipt}
        if notes:
            payload["notes"] = {key: str(value) for key, value in notes.items()}

        order = await self._post("/orders", payload, "create Razorpay order")
        logger.info("Razorpay order %s created for receipt %s", order.get("id"), receipt)
        return order

    async def create_refund(
        self,
        payment_id: str,
        amount: Optional[int] = None,
        notes: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if not payment_id or not payment_id.startswith("pay_"):
            raise BadRequestException(f"Invalid payment ID format: {payment_id}")

        payload: Dict[str, Any] = {}
        if amount is not None:
            if not isinstance(amount, int) or amount <= 0:
                raise BadRequestException("Refund amount must be a positive integer in paise")
            payload["amount"] = amount
        if notes:
            payload["notes"] = {key: str(value) for key, value in notes.items()}

        refund = await self._post(f"/payments/{payment_id}/refund", payload, "create refund")
        logger.info("Refund %s created for payment %s", refund.get("id"), payment_id)
        return refund

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not self.key_secret:
            raise BadRequestException("Razorpay is not configured")

        expected = _signature(self.key_secret, f"{order_id}|{payment_id}".encode())
        valid = hmac.compare_digest(expected, signature or "")
        if not valid:
            logger.warning("Payment signature verification failed for order %s", order_id)
        return valid

    def verify_webhook_signature(self, body: bytes, signature: Optional[str]) -> bool:
        if not self.webhook_secret:
            raise BadRequestException("Razorpay webhook secret is not configured")

        expected = _signature(self.webhook_secret, body)
        valid = hmac.compare_digest(expected, signature or "")
        if not valid:
            logger.warning("Webhook signature verification failed")
        return valid
