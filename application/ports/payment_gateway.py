"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from application.dtos.paypal import (
    AccessToken,
    CaptureResult,
    CreateOrderRequest,
    NotificationVerification,
    PaypalAmount,
    PaypalOrder,
    PaypalRefund,
)


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the PSP order/capture/refund resources.

    Implementations are async and never retry on their own unless configured
    to; every failure surfaces as a typed exception.
    """

    provider: str

    async def authenticate(self) -> AccessToken: ...

    async def create_order(self, req: CreateOrderRequest) -> PaypalOrder: ...

    async def get_order(self, order_id: str) -> PaypalOrder: ...

    async def capture_order(self, order_id: str) -> CaptureResult: ...

    async def refund_partial(self, capture_id: str, amount: PaypalAmount) -> PaypalRefund: ...

    async def refund_full(self, capture_id: str) -> PaypalRefund: ...

    async def get_refund(self, refund_id: str) -> PaypalRefund: ...

    async def verify_notification(self, headers: dict[str, Any], event: dict[str, Any]) -> NotificationVerification: ...
