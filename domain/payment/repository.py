"""
支付仓储接口 - 定义支付数据访问的抽象接口
"""
from abc import ABC, abstractmethod

from .entity import Payment, PaymentDraft, PaymentUpdate


class PaymentRepository(ABC):
    """
    支付仓储抽象接口 - 只定义能做什么，不管怎么做

    并发要求：同一笔支付的交易列表更新必须按调用原子生效，且不能丢失
    其他在途修改（例如同步确认尚未返回时到达的 webhook）。实现可采用
    乐观版本校验或按聚合串行化。
    """

    @abstractmethod
    async def get_payment(self, payment_id: str) -> Payment:
        """根据ID获取支付，不存在时抛出 PaymentNotFound"""
        pass

    @abstractmethod
    async def create_payment(self, draft: PaymentDraft) -> Payment:
        """创建支付记录"""
        pass

    @abstractmethod
    async def update_payment(self, update: PaymentUpdate) -> Payment:
        """
        应用一条更新指令

        交易更新对 {payment_id, type, interaction_id} 幂等：重复投递不会
        产生重复交易记录。
        """
        pass
