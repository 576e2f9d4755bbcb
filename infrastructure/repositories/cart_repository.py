"""
购物车仓储实现 - 进程内存实现
"""
from __future__ import annotations

import copy

from domain.cart.entity import Cart
from domain.cart.repository import CartRepository
from domain.common.exceptions import CartNotFound, DomainValidationException
from domain.payment.entity import Money
from core.logging_config import get_logger


logger = get_logger(__name__)


class InMemoryCartRepository(CartRepository):
    """购物车仓储的内存实现，add_payment 使用乐观版本校验"""

    def __init__(self, carts: list[Cart] | None = None):
        self._carts: dict[str, Cart] = {c.id: copy.deepcopy(c) for c in carts or []}
        self._payments: dict[str, list[str]] = {}

    async def get_cart(self, cart_id: str) -> Cart:
        cart = self._carts.get(cart_id)
        if cart is None:
            raise CartNotFound(cart_id)
        return copy.deepcopy(cart)

    async def get_payment_amount(self, cart: Cart) -> Money:
        return cart.total_price

    async def add_payment(self, cart_id: str, cart_version: int, payment_id: str) -> Cart:
        cart = self._carts.get(cart_id)
        if cart is None:
            raise CartNotFound(cart_id)
        if cart.version != cart_version:
            raise DomainValidationException(
                f"购物车版本冲突: 期望 {cart_version}，当前 {cart.version}",
                field="version",
                details={"cart_id": cart_id},
            )
        self._payments.setdefault(cart_id, []).append(payment_id)
        cart.version += 1
        logger.info("cart_payment_added", cart_id=cart_id, payment_id=payment_id, version=cart.version)
        return copy.deepcopy(cart)

    def payment_ids(self, cart_id: str) -> list[str]:
        return list(self._payments.get(cart_id, []))
