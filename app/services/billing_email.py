"""
Subscription confirmation email, sent once a subscription becomes active.
Uses Resend if RESEND_API_KEY is set; otherwise no-op so activation never fails on email.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

import resend

from app.core.config import Settings, settings as default_settings
from app.services.paystack import format_amount

logger = logging.getLogger(__name__)


def send_subscription_confirmation_email(
    to_email: str,
    plan_name: str,
    amount: Decimal,
    currency: str,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    payment_reference: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> bool:
    """
    Returns True if sent, False if skipped (no API key) or if Resend rejected it.
    Does not raise; errors are logged so webhook and verify responses are never broken.
    """
    settings = settings or default_settings
    if not settings.resend_api_key or not to_email:
        return False

    resend.api_key = settings.resend_api_key

    amount_display = format_amount(amount, (currency or "GHS").upper())
    start_str = start_date.strftime("%B %d, %Y") if start_date else ""
    end_str = end_date.strftime("%B %d, %Y") if end_date else ""

    subject = f"Your {settings.app_name} membership is active: {plan_name}"
    html = f"""
    <p>Hi,</p>
    <p>Your payment has been received and your membership is now active.</p>
    <p><strong>Plan:</strong> {plan_name}</p>
    <p><strong>Amount:</strong> {amount_display}</p>
    <p><strong>Valid from:</strong> {start_str}</p>
    <p><strong>Valid until:</strong> {end_str}</p>
    """
    if payment_reference:
        html += f"<p><strong>Reference:</strong> {payment_reference}</p>"
    html += f"""
    <p>See you at {settings.app_name}.</p>
    """

    try:
        params = {
            "from": settings.billing_from_email,
            "to": [to_email],
            "subject": subject,
            "html": html.strip(),
        }
        resend.Emails.send(params)
        logger.info("[billing_email] Confirmation email sent to %s", to_email)
        return True
    except Exception as e:
        logger.exception("[billing_email] Failed to send confirmation to %s: %s", to_email, e)
        return False
