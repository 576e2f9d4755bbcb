"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Settings are loaded once at startup and handed to the PSP client as an
explicit, immutable value (see `infrastructure.external.payments`).
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, ConfigDict, Field


PAYPAL_SANDBOX_URL = "https://api-m.sandbox.paypal.com"
PAYPAL_LIVE_URL = "https://api-m.paypal.com"


class PaymentTimeouts(BaseModel):
    model_config = ConfigDict(frozen=True)

    connect: float = 1.0
    read: float = 5.0
    write: float = 5.0
    total: float = 10.0


class PaymentRetry(BaseModel):
    model_config = ConfigDict(frozen=True)

    # 0 disables retries: retry policy belongs to the caller unless an operator opts in
    max: int = 0
    base_backoff: float = 0.2


class PaypalSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    environment: str = "test"  # test | live
    partner_attribution_id: str = "commercetools_Cart_Checkout"
    webhook_id: Optional[str] = None
    # Seconds an access token may be reused; 0 reacquires a token per call
    token_cache_seconds: int = 0

    @property
    def base_url(self) -> str:
        if self.environment.lower() == "live":
            return PAYPAL_LIVE_URL
        return PAYPAL_SANDBOX_URL


class PaymentSettings(BaseSettings):
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    paypal: PaypalSettings = Field(default_factory=PaypalSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
        frozen=True,
    )


payment_settings = PaymentSettings()
