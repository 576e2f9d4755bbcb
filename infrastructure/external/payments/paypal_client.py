"""
PayPal REST adapter (Orders v2, Payments v2) over httpx.

Notes on PayPal API usage:
- Bearer tokens come from the OAuth2 client-credentials exchange at
  `/v1/oauth2/token`. By default a token is acquired per operation; a short
  cache can be enabled with `PAYPAL__TOKEN_CACHE_SECONDS`.
- PayPal deduplicates mutating calls by `PayPal-Request-Id`, not by payload,
  so every logical attempt gets a fresh UUID.
- Refund creation responses are not authoritative for completion; the refund
  resource is read back after creation.
"""
from __future__ import annotations

import time
import uuid
from typing import Any, Optional

import httpx

from application.dtos.paypal import (
    AccessToken,
    CaptureResult,
    CreateOrderRequest,
    NotificationVerification,
    NotificationVerificationRequest,
    PaypalAmount,
    PaypalOrder,
    PaypalRefund,
    RefundRequest,
)
from core.settings import PaymentSettings, payment_settings
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import (
    AuthenticationFailed,
    MalformedPspResponse,
)


class PaypalUrls:
    AUTHENTICATION = "/v1/oauth2/token"
    NOTIFICATION_VERIFY = "/v1/notifications/verify-webhook-signature"
    ORDERS = "/v2/checkout/orders"
    GET_ORDER = "/v2/checkout/orders/{resource_id}"
    ORDERS_CAPTURE = "/v2/checkout/orders/{resource_id}/capture"
    CAPTURES_REFUND = "/v2/payments/captures/{resource_id}/refund"
    GET_REFUND = "/v2/payments/refunds/{resource_id}"


class PaypalClient(BasePaymentClient):
    provider = "paypal"
    correlation_header = "paypal-debug-id"

    def __init__(
        self,
        settings: Optional[PaymentSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or payment_settings
        cfg = self.settings.paypal
        super().__init__(
            base_url=cfg.base_url,
            timeouts=self.settings.timeouts.model_dump(),
            retry={"max": self.settings.retry.max, "base": self.settings.retry.base_backoff},
            transport=transport,
        )
        if not cfg.client_id or not cfg.client_secret:
            raise RuntimeError("PAYPAL__CLIENT_ID / PAYPAL__CLIENT_SECRET not configured")
        self._cached_token: Optional[AccessToken] = None
        self._token_expires_at: float = 0.0

    @staticmethod
    def _path(template: str, resource_id: str) -> str:
        return template.format(resource_id=resource_id)

    async def authenticate(self) -> AccessToken:
        cfg = self.settings.paypal
        response = await self._send(
            "POST",
            PaypalUrls.AUTHENTICATION,
            auth=(cfg.client_id, cfg.client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Content-Type": "application/x-www-form-urlencoded", "Accept": "application/json"},
        )
        self._raise_for_status(
            response,
            "Error while authenticating with payment provider",
            error_cls=AuthenticationFailed,
            name_key="error",
            message_key="error_description",
        )
        data = self._json(response)
        if not data.get("access_token"):
            raise MalformedPspResponse("Authentication response without access token", provider=self.provider)
        return self._parse(AccessToken, {**data, "status": response.status_code})

    async def _access_token(self) -> str:
        ttl = self.settings.paypal.token_cache_seconds
        if ttl > 0 and self._cached_token is not None and time.monotonic() < self._token_expires_at:
            return self._cached_token.access_token
        token = await self.authenticate()
        if ttl > 0:
            lifetime = min(ttl, token.expires_in) if token.expires_in else ttl
            self._cached_token = token
            self._token_expires_at = time.monotonic() + lifetime
        return token.access_token

    async def _headers(self, *, mutating: bool) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "PayPal-Partner-Attribution-Id": self.settings.paypal.partner_attribution_id,
            "Authorization": f"Bearer {await self._access_token()}",
        }
        if mutating:
            headers["PayPal-Request-Id"] = str(uuid.uuid4())
        return headers

    async def create_order(self, req: CreateOrderRequest) -> PaypalOrder:
        response = await self._send(
            "POST",
            PaypalUrls.ORDERS,
            json=req.model_dump(mode="json", exclude_none=True),
            headers=await self._headers(mutating=True),
        )
        self._raise_for_status(response, "not able to create a paypal order")
        order = self._parse(PaypalOrder, self._json(response))
        self._log("paypal_order_created", order_id=order.id, status=order.status)
        return order

    async def get_order(self, order_id: str) -> PaypalOrder:
        response = await self._send(
            "GET",
            self._path(PaypalUrls.GET_ORDER, order_id),
            headers=await self._headers(mutating=False),
        )
        self._raise_for_status(response, "not able to fetch the paypal order")
        return self._parse(PaypalOrder, self._json(response))

    async def capture_order(self, order_id: str) -> CaptureResult:
        response = await self._send(
            "POST",
            self._path(PaypalUrls.ORDERS_CAPTURE, order_id),
            headers=await self._headers(mutating=True),
        )
        self._raise_for_status(response, "not able to capture the paypal order")
        result = self._extract_capture(self._json(response))
        self._log(
            "paypal_order_captured",
            order_id=result.order_id,
            capture_id=result.capture_id,
            status=result.capture_status,
        )
        return result

    def _extract_capture(self, data: dict[str, Any]) -> CaptureResult:
        """Pick purchase_units[0].payments.captures[0]; without it nothing can be reconciled."""
        try:
            capture = data["purchase_units"][0]["payments"]["captures"][0]
            capture_id = capture["id"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedPspResponse(
                "not able to extract the capture ID",
                provider=self.provider,
                details={"order_id": data.get("id")},
            ) from exc
        order_status = data.get("status")
        if not order_status:
            raise MalformedPspResponse(
                "capture status not received",
                provider=self.provider,
                details={"order_id": data.get("id")},
            )
        return CaptureResult(
            order_id=str(data.get("id") or ""),
            order_status=str(order_status),
            capture_id=str(capture_id),
            capture_status=str(capture.get("status") or order_status),
        )

    async def refund_partial(self, capture_id: str, amount: PaypalAmount) -> PaypalRefund:
        return await self._refund(capture_id, RefundRequest(amount=amount).model_dump(mode="json"))

    async def refund_full(self, capture_id: str) -> PaypalRefund:
        return await self._refund(capture_id, None)

    async def _refund(self, capture_id: str, payload: Optional[dict[str, Any]]) -> PaypalRefund:
        kwargs: dict[str, Any] = {"headers": await self._headers(mutating=True)}
        if payload is not None:
            kwargs["json"] = payload
        response = await self._send("POST", self._path(PaypalUrls.CAPTURES_REFUND, capture_id), **kwargs)
        self._raise_for_status(
            response,
            "not able to partially refund a payment" if payload else "not able to fully refund a payment",
        )
        created = self._json(response)
        refund_id = created.get("id")
        if not refund_id:
            raise MalformedPspResponse(
                "Refund response without id",
                provider=self.provider,
                details={"capture_id": capture_id},
            )
        self._log("paypal_refund_created", capture_id=capture_id, refund_id=refund_id, partial=payload is not None)
        return await self.get_refund(str(refund_id))

    async def get_refund(self, refund_id: str) -> PaypalRefund:
        response = await self._send(
            "GET",
            self._path(PaypalUrls.GET_REFUND, refund_id),
            headers=await self._headers(mutating=False),
        )
        self._raise_for_status(response, "not able to fetch the paypal refund")
        return self._parse(PaypalRefund, self._json(response))

    async def verify_notification(self, headers: dict[str, Any], event: dict[str, Any]) -> NotificationVerification:
        webhook_id = self.settings.paypal.webhook_id
        if not webhook_id:
            raise RuntimeError("PAYPAL__WEBHOOK_ID not configured")
        lowered = {k.lower(): v for k, v in headers.items()}
        req = NotificationVerificationRequest(
            auth_algo=lowered.get("paypal-auth-algo"),
            cert_url=lowered.get("paypal-cert-url"),
            transmission_id=lowered.get("paypal-transmission-id"),
            transmission_sig=lowered.get("paypal-transmission-sig"),
            transmission_time=lowered.get("paypal-transmission-time"),
            webhook_id=webhook_id,
            webhook_event=event,
        )
        response = await self._send(
            "POST",
            PaypalUrls.NOTIFICATION_VERIFY,
            json=req.model_dump(mode="json"),
            headers=await self._headers(mutating=True),
        )
        self._raise_for_status(response, "not able to verify the notification")
        return self._parse(NotificationVerification, self._json(response))
