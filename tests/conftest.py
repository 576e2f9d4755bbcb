"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os

# PayPal credentials for settings validation; no real calls are made
os.environ.setdefault("PAYPAL__CLIENT_ID", "test-client-id")
os.environ.setdefault("PAYPAL__CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("PAYPAL__WEBHOOK_ID", "WH-TEST")

from typing import Any, Optional

import pytest

from application.dtos.paypal import (
    AccessToken,
    CaptureResult,
    CreateOrderRequest,
    NotificationVerification,
    PaypalAmount,
    PaypalOrder,
    PaypalRefund,
)
from application.services.payment_service import PaymentService
from domain.cart.entity import Address, Cart
from domain.payment.entity import Money
from infrastructure.repositories.cart_repository import InMemoryCartRepository
from infrastructure.repositories.payment_repository import InMemoryPaymentRepository


class StubGateway:
    """In-process PaymentGateway recording every call."""

    provider = "paypal"

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.order_status = "PAYER_ACTION_REQUIRED"
        self.captured_order_status = "COMPLETED"
        self.capture_status = "COMPLETED"
        self.refund_status = "COMPLETED"
        self.verification_status = "SUCCESS"
        self.error: Optional[Exception] = None
        self._refunds = 0

    def _record(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if self.error is not None:
            raise self.error

    def called(self, name: str) -> list[Any]:
        return [arg for call, arg in self.calls if call == name]

    async def authenticate(self) -> AccessToken:
        self._record("authenticate")
        return AccessToken(access_token="token")

    async def create_order(self, req: CreateOrderRequest) -> PaypalOrder:
        self._record("create_order", req)
        return PaypalOrder(id="ORDER-1", status=self.order_status)

    async def get_order(self, order_id: str) -> PaypalOrder:
        self._record("get_order", order_id)
        return PaypalOrder(id=order_id, status=self.order_status)

    async def capture_order(self, order_id: str) -> CaptureResult:
        self._record("capture_order", order_id)
        return CaptureResult(
            order_id=order_id,
            order_status=self.captured_order_status,
            capture_id="CAPTURE-1",
            capture_status=self.capture_status,
        )

    async def refund_partial(self, capture_id: str, amount: PaypalAmount) -> PaypalRefund:
        self._record("refund_partial", (capture_id, amount))
        return self._refund(amount)

    async def refund_full(self, capture_id: str) -> PaypalRefund:
        self._record("refund_full", capture_id)
        return self._refund(None)

    def _refund(self, amount: Optional[PaypalAmount]) -> PaypalRefund:
        self._refunds += 1
        return PaypalRefund(id=f"REFUND-{self._refunds}", status=self.refund_status, amount=amount)

    async def get_refund(self, refund_id: str) -> PaypalRefund:
        self._record("get_refund", refund_id)
        return PaypalRefund(id=refund_id, status=self.refund_status)

    async def verify_notification(self, headers: dict, event: dict) -> NotificationVerification:
        self._record("verify_notification", event)
        return NotificationVerification(verification_status=self.verification_status)


def usd(cent_amount: int) -> Money:
    return Money(cent_amount=cent_amount, currency_code="USD", fraction_digits=2)


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture
def cart() -> Cart:
    return Cart(
        id="cart-1",
        version=3,
        total_price=usd(3000),
        customer_id="customer-1",
        shipping_address=Address(
            first_name="Jane",
            last_name="Doe",
            street_name="Main Street",
            street_number="42",
            additional_street_info="Floor 2",
            postal_code="10115",
            city="Berlin",
            region="BE",
            country="DE",
        ),
    )


@pytest.fixture
def cart_repository(cart) -> InMemoryCartRepository:
    return InMemoryCartRepository([cart])


@pytest.fixture
def payment_repository() -> InMemoryPaymentRepository:
    return InMemoryPaymentRepository()


@pytest.fixture
def service(gateway, payment_repository, cart_repository) -> PaymentService:
    return PaymentService(
        gateway=gateway,
        payment_repository=payment_repository,
        cart_repository=cart_repository,
    )
