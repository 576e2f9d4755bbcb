"""
Base payment client implementing shared concerns: http, retry, logging, error mapping.

Concrete providers should subclass and implement provider-specific logic.
"""
from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.logging_config import get_logger
from infrastructure.external.payments.exceptions import (
    MalformedPspResponse,
    PspRequestFailed,
    UpstreamUnavailable,
)


logger = get_logger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class BasePaymentClient:
    provider: str = "base"
    correlation_header: str = "x-request-id"

    def __init__(
        self,
        *,
        base_url: str,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeouts_cfg = timeouts or {"connect": 1.0, "read": 5.0, "write": 5.0, "total": 10.0}
        self._retry_cfg = retry or {"max": 0, "base": 0.2}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
            timeout=self._timeouts_cfg["total"],
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeouts,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def _retry(self, fn: Callable[[], Awaitable[T]]) -> T:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg["max"]) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg["base"], min=0.1, max=2.0),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await fn()
        raise AssertionError("unreachable")  # pragma: no cover

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request; transport failures become UpstreamUnavailable.

        The same kwargs (and therefore the same idempotency header) are reused
        on every retry of this logical attempt.
        """
        try:
            return await self._retry(lambda: self.client.request(method, path, **kwargs))
        except httpx.TimeoutException as exc:
            self._log("psp_request_timeout", method=method, path=path, level="warning")
            raise UpstreamUnavailable(
                "Request to payment provider timed out",
                provider=self.provider,
                details={"path": path},
            ) from exc
        except httpx.TransportError as exc:
            self._log("psp_network_error", method=method, path=path, error=str(exc), level="warning")
            raise UpstreamUnavailable(
                "Failed due to network error",
                provider=self.provider,
                details={"path": path},
            ) from exc

    def _correlation_id(self, response: httpx.Response, body: Optional[dict]) -> Optional[str]:
        if body and body.get("debug_id"):
            return str(body["debug_id"])
        return response.headers.get(self.correlation_header)

    @staticmethod
    def _error_body(response: httpx.Response) -> dict:
        # Graceful handling if the error body is not JSON
        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError):
            return {}
        return body if isinstance(body, dict) else {}

    def _raise_for_status(
        self,
        response: httpx.Response,
        message: str,
        *,
        error_cls: Type[PspRequestFailed] = PspRequestFailed,
        name_key: str = "name",
        message_key: str = "message",
    ) -> None:
        if response.is_success:
            return
        body = self._error_body(response)
        error = error_cls(
            message,
            provider=self.provider,
            http_status=response.status_code,
            psp_error_name=body.get(name_key),
            psp_error_message=body.get(message_key),
            correlation_id=self._correlation_id(response, body),
        )
        self._log(
            "psp_request_failed",
            level="error",
            path=response.request.url.path if response.request else None,
            http_status=error.http_status,
            psp_error_name=error.psp_error_name,
            correlation_id=error.correlation_id,
        )
        raise error

    def _json(self, response: httpx.Response) -> dict:
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise UpstreamUnavailable(
                "Failed to parse response JSON",
                provider=self.provider,
                details={"http_status": response.status_code},
            ) from exc
        if not isinstance(data, dict):
            raise UpstreamUnavailable(
                "Unexpected response JSON",
                provider=self.provider,
                details={"http_status": response.status_code},
            )
        return data

    def _parse(self, model: Type[M], data: dict) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise MalformedPspResponse(
                f"Unexpected {model.__name__} payload",
                provider=self.provider,
                details={"fields": sorted({str(e["loc"][0]) for e in exc.errors() if e.get("loc")})},
            ) from exc

    def _log(self, event: str, level: str = "info", **kwargs) -> None:
        getattr(logger, level)(
            event,
            provider=self.provider,
            **kwargs,
        )
