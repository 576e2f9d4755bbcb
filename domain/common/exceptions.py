"""领域层业务异常定义，供领域、应用与基础设施使用。

异常的 details 只包含可安全暴露给调用方的字段（标识、字段名、关联ID），
不包含第三方支付渠道的原始响应体。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class InvalidAmountFormat(BusinessException):
    """金额字符串无法无损转换为最小货币单位"""

    def __init__(self, message: str, *, amount: object, fraction_digits: int):
        super().__init__(
            code=PaymentCode.INVALID_AMOUNT_FORMAT,
            message=message,
            error_type="InvalidAmountFormat",
            details={"amount": str(amount), "fraction_digits": fraction_digits},
            field="amount",
        )


class PaymentNotFound(BusinessException):
    def __init__(self, payment_id: str):
        super().__init__(
            code=PaymentCode.PAYMENT_NOT_FOUND,
            message=f"Payment not found: {payment_id}",
            error_type="PaymentNotFound",
            details={"payment_id": payment_id},
        )


class CartNotFound(BusinessException):
    def __init__(self, cart_id: str):
        super().__init__(
            code=PaymentCode.CART_NOT_FOUND,
            message=f"Cart not found: {cart_id}",
            error_type="CartNotFound",
            details={"cart_id": cart_id},
        )


class InterfaceIdMismatch(BusinessException):
    """确认支付时，调用方提交的渠道订单号与本地记录不一致"""

    def __init__(self, *, payment_id: str, psp_reference: Optional[str]):
        super().__init__(
            code=PaymentCode.INTERFACE_ID_MISMATCH,
            message="not able to confirm the payment",
            error_type="InterfaceIdMismatch",
            details={
                "reason": "interface id mismatch",
                "psp_reference": psp_reference,
                "payment_reference": payment_id,
            },
            field="psp_reference",
        )


class UnsupportedOperation(BusinessException):
    def __init__(self, action: Optional[str], *, payment_id: Optional[str] = None):
        super().__init__(
            code=PaymentCode.UNSUPPORTED_OPERATION,
            message="Operation not supported.",
            error_type="UnsupportedOperation",
            details={"action": action, "payment_id": payment_id},
            field="action",
        )


class NoCaptureToRefund(BusinessException):
    def __init__(self, payment_id: str):
        super().__init__(
            code=PaymentCode.NO_CAPTURE_TO_REFUND,
            message="No successful charge found to refund",
            error_type="NoCaptureToRefund",
            details={"payment_id": payment_id},
        )


class UnsupportedEventType(BusinessException):
    def __init__(self, event_type: Optional[str], *, payment_id: Optional[str] = None):
        super().__init__(
            code=PaymentCode.UNSUPPORTED_EVENT_TYPE,
            message="Unsupported event type",
            error_type="UnsupportedEventType",
            details={"event_type": event_type, "payment_id": payment_id},
            field="event_type",
        )


class NotificationVerificationFailed(BusinessException):
    def __init__(self, *, event_id: Optional[str], verification_status: Optional[str] = None):
        super().__init__(
            code=PaymentCode.SIGNATURE_ERROR,
            message="Webhook notification could not be verified",
            error_type="NotificationVerificationFailed",
            details={"event_id": event_id, "verification_status": verification_status},
        )
