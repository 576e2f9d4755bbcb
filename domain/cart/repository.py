"""
购物车仓储接口
"""
from abc import ABC, abstractmethod

from domain.payment.entity import Money
from .entity import Cart


class CartRepository(ABC):
    """购物车仓储抽象接口"""

    @abstractmethod
    async def get_cart(self, cart_id: str) -> Cart:
        """根据ID获取购物车，不存在时抛出 CartNotFound"""
        pass

    @abstractmethod
    async def get_payment_amount(self, cart: Cart) -> Money:
        """计算购物车需要支付的金额"""
        pass

    @abstractmethod
    async def add_payment(self, cart_id: str, cart_version: int, payment_id: str) -> Cart:
        """将支付关联到购物车"""
        pass
