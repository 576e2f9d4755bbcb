"""
Payment DTOs (Pydantic v2) used at application boundaries.

Commerce-facing models accept both snake_case and the camelCase field names
used by the checkout front end. Webhook payloads keep PayPal's snake_case.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaymentOutcome(str, Enum):
    AUTHORIZED = "Authorized"
    REJECTED = "Rejected"


class PaymentModificationStatus(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    RECEIVED = "received"


class PaymentMethod(_CamelModel):
    type: Literal["paypal"] = "paypal"


class CreatePaymentRequest(_CamelModel):
    payment_method: PaymentMethod = Field(default_factory=PaymentMethod)


class PaymentResponse(_CamelModel):
    outcome: PaymentOutcome
    payment_reference: str


class ConfirmPaymentDetails(_CamelModel):
    psp_reference: str
    payment_reference: str


class ConfirmPaymentRequest(_CamelModel):
    details: ConfirmPaymentDetails


class PaymentIntentResponse(_CamelModel):
    outcome: PaymentModificationStatus
    payment_reference: str
    psp_reference: Optional[str] = None


class AmountDTO(_CamelModel):
    cent_amount: int = Field(ge=0)
    currency_code: str

    @field_validator("currency_code")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        u = (v or "").upper()
        if len(u) != 3 or not u.isalpha():
            raise ValueError("currency must be ISO-4217 alpha-3")
        return u


# Payment modification actions form a closed tagged union keyed by `action`
class CapturePaymentAction(_CamelModel):
    action: Literal["capturePayment"] = "capturePayment"
    amount: AmountDTO
    merchant_reference: Optional[str] = None


class RefundPaymentAction(_CamelModel):
    action: Literal["refundPayment"] = "refundPayment"
    amount: AmountDTO
    merchant_reference: Optional[str] = None
    transaction_id: Optional[str] = None


class CancelPaymentAction(_CamelModel):
    action: Literal["cancelPayment"] = "cancelPayment"
    merchant_reference: Optional[str] = None


class ReversePaymentAction(_CamelModel):
    action: Literal["reversePayment"] = "reversePayment"
    merchant_reference: Optional[str] = None


PaymentAction = Annotated[
    Union[CapturePaymentAction, RefundPaymentAction, CancelPaymentAction, ReversePaymentAction],
    Field(discriminator="action"),
]


class ModifyPaymentRequest(_CamelModel):
    actions: list[PaymentAction] = Field(min_length=1)


class NotificationAmount(BaseModel):
    currency_code: str
    value: str


class NotificationResource(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    invoice_id: str
    amount: NotificationAmount
    status: Optional[str] = None


class NotificationPayload(BaseModel):
    """Inbound PayPal webhook event (delivered at-least-once, unordered)."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    event_type: str
    resource_type: Optional[str] = None
    resource: NotificationResource
