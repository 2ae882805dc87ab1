"""
Paystack webhook.

Paystack signs the raw request body with HMAC-SHA512 using the secret key and sends
the hex digest in x-paystack-signature. The body must be read as bytes before any
JSON parsing so the signature is computed over exactly what was sent.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from app.dependencies.services import get_subscription_service
from app.services.subscription_service import SubscriptionService
from app.utils.responses import envelope

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/paystack")
async def paystack_webhook(
    request: Request,
    x_paystack_signature: Optional[str] = Header(None),
    service: SubscriptionService = Depends(get_subscription_service),
):
    payload = await request.body()
    message = service.handle_webhook(x_paystack_signature, payload)
    return envelope(message)
