"""
Exceptions for the PSP adapter mapped to unified BusinessException variants.

`details` holds only client-safe diagnostics (status, correlation id, error
name). The PSP's free-text message is kept on the exception for operators
and logs, never in `details`.
"""
from __future__ import annotations

from typing import Optional
from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class PaymentProviderError(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        provider: str,
        code: int = PaymentCode.PROVIDER_ERROR,
        error_type: str = "PaymentProviderError",
        details: Optional[dict] = None,
    ):
        full_details = {"provider": provider}
        if details:
            full_details.update(details)
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details=full_details,
        )
        self.provider = provider


class PspRequestFailed(PaymentProviderError):
    """The PSP answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        http_status: int,
        psp_error_name: Optional[str] = None,
        psp_error_message: Optional[str] = None,
        correlation_id: Optional[str] = None,
        code: int = PaymentCode.PROVIDER_ERROR,
        error_type: str = "PspRequestFailed",
    ):
        super().__init__(
            message,
            provider=provider,
            code=code,
            error_type=error_type,
            details={
                "http_status": http_status,
                "psp_error_name": psp_error_name,
                "correlation_id": correlation_id,
            },
        )
        self.http_status = http_status
        self.psp_error_name = psp_error_name
        self.psp_error_message = psp_error_message
        self.correlation_id = correlation_id


class AuthenticationFailed(PspRequestFailed):
    def __init__(self, message: str = "Error while authenticating with payment provider", **kwargs):
        super().__init__(
            message,
            code=PaymentCode.AUTHENTICATION_FAILED,
            error_type="AuthenticationFailed",
            **kwargs,
        )


class MalformedPspResponse(PaymentProviderError):
    def __init__(self, message: str, *, provider: str, details: Optional[dict] = None):
        super().__init__(
            message,
            provider=provider,
            code=PaymentCode.MALFORMED_RESPONSE,
            error_type="MalformedPspResponse",
            details=details,
        )


class UpstreamUnavailable(PaymentProviderError):
    """Network, timeout or response-parsing failure talking to the PSP."""

    def __init__(self, message: str, *, provider: str, details: Optional[dict] = None):
        super().__init__(
            message,
            provider=provider,
            code=PaymentCode.UPSTREAM_UNAVAILABLE,
            error_type="UpstreamUnavailable",
            details=details,
        )
