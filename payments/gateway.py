# payments/gateway.py
"""
Thin client for the Razorpay REST API.

Only the three calls registration needs: create an order, fetch a payment,
check a checkout signature. Every failure (network, non-2xx, missing
credentials) surfaces as PaymentProviderError.
"""
from typing import Optional
import hashlib
import hmac
import logging

import requests
from django.conf import settings

from core.exceptions import PaymentProviderError

logger = logging.getLogger("cos.payments")


class RazorpayGateway:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.key_id = key_id or ""
        self.key_secret = key_secret or ""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, session=None) -> "RazorpayGateway":
        return cls(
            key_id=settings.RAZORPAY_KEY_ID,
            key_secret=settings.RAZORPAY_KEY_SECRET,
            base_url=settings.RAZORPAY_BASE_URL,
            timeout=settings.RAZORPAY_TIMEOUT,
            session=session,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def _request(self, method: str, path: str, **kwargs) -> dict:
        if not self.is_configured:
            raise PaymentProviderError("Payment gateway is not configured")

        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.error(f"Razorpay {method} {path} failed: {exc}")
            raise PaymentProviderError(f"Payment provider unreachable: {exc}")

        if not response.ok:
            try:
                description = response.json().get("error", {}).get("description")
            except ValueError:
                description = None
            logger.error(f"Razorpay {method} {path} returned {response.status_code}: {description or response.text[:200]}")
            raise PaymentProviderError(description or f"Payment provider returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError:
            raise PaymentProviderError("Payment provider returned an invalid response")

    def create_order(self, amount_minor: int, currency: str = "INR", receipt: str = "", notes: Optional[dict] = None) -> dict:
        """
        ``amount_minor`` is in the smallest currency unit (paise for INR).
        """
        payload = {
            "amount": int(amount_minor),
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        order = self._request("POST", "/orders", json=payload)
        logger.info(f"Razorpay order created: id={order.get('id')}, amount={order.get('amount')}, receipt={receipt}")
        return order

    def fetch_payment(self, payment_id: str) -> dict:
        return self._request("GET", f"/payments/{payment_id}")

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """
        Checkout signature: hex HMAC-SHA256 of "<order_id>|<payment_id>"
        keyed with the API secret.
        """
        if not (self.key_secret and order_id and payment_id and signature):
            return False
        expected = hmac.new(
            self.key_secret.encode(),
            f"{order_id}|{payment_id}".encode(),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature)
