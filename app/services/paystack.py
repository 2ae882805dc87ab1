"""
Paystack payment gateway adapter.

Wraps transaction initialize/verify and webhook signature validation, plus the
pesewa <-> cedi conversions. Amounts cross this boundary in major units (cedis)
and are sent to Paystack in minor units (pesewas).

Calls are never retried here; a failed call raises GatewayError and the caller
decides what happens to the subscription.
"""
import hashlib
import hmac
import logging
import random
import string
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Union

import httpx

from app.core.config import PaystackConfig
from app.core.exceptions import GatewayError
from app.core.plans import PAYMENT_REFERENCE_PREFIX

logger = logging.getLogger(__name__)

MINOR_UNITS_PER_MAJOR = 100
CENT = Decimal("0.01")
# Absorbs rounding introduced by minor-unit conversion
AMOUNT_TOLERANCE = Decimal("0.01")

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits

Amount = Union[Decimal, int, float, str]


def _to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    # str() first so floats like 50.1 become Decimal("50.1"), not 50.0999999...
    return Decimal(str(amount))


def minor_to_major(minor: int) -> Decimal:
    """5000 pesewas -> Decimal('50.00') cedis."""
    return (Decimal(int(minor)) / MINOR_UNITS_PER_MAJOR).quantize(CENT)


def major_to_minor(major: Amount) -> int:
    """Decimal('50.00') cedis -> 5000 pesewas, rounding half-up to the nearest pesewa."""
    return int((_to_decimal(major) * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def amounts_match(paid: Amount, expected: Amount, tolerance: Decimal = AMOUNT_TOLERANCE) -> bool:
    return abs(_to_decimal(paid) - _to_decimal(expected)) <= tolerance


def format_amount(amount: Amount, currency: str = "GHS") -> str:
    return f"{_to_decimal(amount).quantize(CENT)} {currency}"


def generate_reference(prefix: str = PAYMENT_REFERENCE_PREFIX) -> str:
    """
    PREFIX_<epoch ms>_<6 random chars>. Unique with high probability only;
    nothing checks for collisions against existing rows.
    """
    suffix = "".join(random.choices(_REFERENCE_ALPHABET, k=6))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def compute_signature(secret_key: str, payload: bytes) -> str:
    return hmac.new(secret_key.encode(), payload, hashlib.sha512).hexdigest()


class PaystackClient:
    def __init__(self, config: PaystackConfig, transport: Optional[httpx.BaseTransport] = None):
        self.config = config
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.secret_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> Dict[str, Any]:
        url = f"{self.config.base_url}{path}"
        try:
            with httpx.Client(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = client.request(method, url, json=json, headers=self._headers())
        except httpx.TimeoutException as e:
            logger.error("[Paystack] Timeout calling %s %s: %s", method, path, e)
            raise GatewayError("Payment gateway timed out")
        except httpx.HTTPError as e:
            logger.error("[Paystack] Request error calling %s %s: %s", method, path, e)
            raise GatewayError(f"Payment gateway request failed: {e}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code >= 400 or not body.get("status"):
            message = body.get("message") or f"Payment gateway returned HTTP {response.status_code}"
            logger.warning("[Paystack] %s %s failed: status=%s message=%s", method, path, response.status_code, message)
            raise GatewayError(message)

        return body.get("data") or {}

    def initialize_transaction(
        self,
        *,
        amount: Amount,
        email: str,
        reference: str,
        callback_url: Optional[str] = None,
        metadata: Optional[dict] = None,
        currency: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Start a Paystack checkout. `amount` is in major units.
        Returns Paystack's data object (authorization_url, access_code, reference).
        """
        amount_minor = major_to_minor(amount)
        payload = {
            "amount": amount_minor,
            "email": email,
            "reference": reference,
            "currency": currency or self.config.currency,
            "callback_url": callback_url,
            "metadata": metadata or {},
        }
        logger.info(
            "[Paystack] Initializing payment reference=%s amount=%s (%s minor units)",
            reference, format_amount(amount, payload["currency"]), amount_minor,
        )
        return self._request("POST", "/transaction/initialize", json=payload)

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        """Returns Paystack's data object (status, amount in minor units, paid_at, channel, ...)."""
        logger.info("[Paystack] Verifying payment reference=%s", reference)
        return self._request("GET", f"/transaction/verify/{reference}")

    def validate_webhook_signature(self, payload: bytes, signature: Optional[str]) -> bool:
        """x-paystack-signature is the hex HMAC-SHA512 of the raw request body."""
        if not self.config.secret_key or not signature:
            return False
        expected = compute_signature(self.config.secret_key, payload)
        return hmac.compare_digest(expected, signature.strip())
