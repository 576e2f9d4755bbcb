"""
购物车领域实体 - 仅包含支付流程需要读取的字段
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.payment.entity import Money


@dataclass(frozen=True)
class Address:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    street_name: Optional[str] = None
    street_number: Optional[str] = None
    additional_street_info: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def address_line(self) -> str:
        return " ".join(part for part in (self.street_name, self.street_number) if part)


@dataclass
class Cart:
    id: str
    version: int
    total_price: Money
    customer_id: Optional[str] = None
    shipping_address: Optional[Address] = None
