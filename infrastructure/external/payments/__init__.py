"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Optional

import httpx

from core.settings import PaymentSettings
from application.ports.payment_gateway import PaymentGateway


def get_payment_gateway(
    settings: Optional[PaymentSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PaymentGateway:
    """Build a PayPal gateway from settings (defaults to the process settings)."""
    from .paypal_client import PaypalClient

    return PaypalClient(settings, transport=transport)
