"""
PayPal REST payloads (Orders v2, Payments v2, OAuth2, webhook verification).

Only the fields the connector reads or writes are modelled; responses keep
unknown fields (`extra="allow"`) so snapshots stay complete for diagnosis.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class NotificationEventType(str, Enum):
    PAYMENT_CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"
    PAYMENT_CAPTURE_DECLINED = "PAYMENT.CAPTURE.DECLINED"
    PAYMENT_CAPTURE_REFUNDED = "PAYMENT.CAPTURE.REFUNDED"
    PAYMENT_CAPTURE_REVERSED = "PAYMENT.CAPTURE.REVERSED"


class PaypalAmount(BaseModel):
    currency_code: str
    value: str


class PaypalName(BaseModel):
    full_name: str = ""


class PaypalAddress(BaseModel):
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    postal_code: Optional[str] = None
    admin_area_1: Optional[str] = None
    admin_area_2: Optional[str] = None
    country_code: str = ""


class PaypalShipping(BaseModel):
    type: str = "SHIPPING"
    name: Optional[PaypalName] = None
    address: Optional[PaypalAddress] = None


class PurchaseUnit(BaseModel):
    reference_id: str
    invoice_id: str
    amount: PaypalAmount
    shipping: Optional[PaypalShipping] = None


class ExperienceContext(BaseModel):
    payment_method_preference: Optional[str] = "IMMEDIATE_PAYMENT_REQUIRED"
    user_action: Optional[str] = "PAY_NOW"
    locale: Optional[str] = None


class PaypalWallet(BaseModel):
    experience_context: ExperienceContext = Field(default_factory=ExperienceContext)


class PaymentSource(BaseModel):
    paypal: PaypalWallet = Field(default_factory=PaypalWallet)


class CreateOrderRequest(BaseModel):
    intent: str = "CAPTURE"
    purchase_units: list[PurchaseUnit]
    payment_source: PaymentSource = Field(default_factory=PaymentSource)


class RefundRequest(BaseModel):
    amount: PaypalAmount


class AccessToken(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    status: int = 200


class PaypalOrder(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    status: str
    purchase_units: list[dict[str, Any]] = Field(default_factory=list)


class CaptureResult(BaseModel):
    order_id: str
    order_status: str
    capture_id: str
    capture_status: str


class PaypalRefund(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    status: str
    amount: Optional[PaypalAmount] = None


class NotificationVerificationRequest(BaseModel):
    auth_algo: Optional[str] = None
    cert_url: Optional[str] = None
    transmission_id: Optional[str] = None
    transmission_sig: Optional[str] = None
    transmission_time: Optional[str] = None
    webhook_id: str
    webhook_event: dict[str, Any]


class NotificationVerification(BaseModel):
    verification_status: str

    @property
    def verified(self) -> bool:
        return self.verification_status.upper() == "SUCCESS"
