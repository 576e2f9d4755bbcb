"""
支付领域实体 - 支付聚合根、交易记录与更新指令
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException


class TransactionType(str, Enum):
    """交易类型"""
    AUTHORIZATION = "Authorization"
    CHARGE = "Charge"
    REFUND = "Refund"


class TransactionState(str, Enum):
    """交易状态"""
    INITIAL = "Initial"
    SUCCESS = "Success"
    FAILURE = "Failure"


class PaymentLifecycle(str, Enum):
    """由交易历史推导出的支付生命周期（不单独存储）"""
    NO_PAYMENT = "NoPayment"
    AUTHORIZED = "Authorized"
    CAPTURED = "Captured"
    PARTIALLY_REFUNDED = "PartiallyRefunded"
    FULLY_REFUNDED = "FullyRefunded"
    FAILED = "Failed"


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class Money:
    """
    金额值对象 - 以最小货币单位保存

    业务规则：
    1. cent_amount 为非负整数
    2. fraction_digits 属于币种，范围 0-4
    3. 货币代码必须是3位字母
    """

    cent_amount: int
    currency_code: str
    fraction_digits: int = 2

    def __post_init__(self):
        if isinstance(self.cent_amount, bool) or not isinstance(self.cent_amount, int) or self.cent_amount < 0:
            raise DomainValidationException(
                f"金额必须是非负整数: {self.cent_amount}",
                field="cent_amount",
            )
        if not 0 <= self.fraction_digits <= 4:
            raise DomainValidationException(
                f"无效的小数位数: {self.fraction_digits}",
                field="fraction_digits",
            )
        if not self.currency_code or len(self.currency_code) != 3 or not self.currency_code.isalpha():
            raise DomainValidationException(
                f"无效的货币代码: {self.currency_code}",
                field="currency_code",
            )


@dataclass
class Transaction:
    """交易记录 - 属于唯一一笔支付，按创建时间排序"""

    id: str
    type: TransactionType
    state: TransactionState
    amount: Money
    interaction_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.created_at = _ensure_utc(self.created_at) or datetime.now(timezone.utc)

    def matches(self, type_: TransactionType, interaction_id: Optional[str]) -> bool:
        return (
            interaction_id is not None
            and self.type == type_
            and self.interaction_id == interaction_id
        )


@dataclass
class TransactionDraft:
    """
    交易更新指令

    以 {payment_id, type, interaction_id} 作为幂等键；尚未拿到渠道ID的
    在途交易使用本地 transaction_id 定位。
    """

    type: TransactionType
    state: TransactionState
    amount: Money
    interaction_id: Optional[str] = None
    transaction_id: Optional[str] = None


@dataclass
class PaymentUpdate:
    payment_id: str
    psp_reference: Optional[str] = None
    interface_id: Optional[str] = None
    payment_method: Optional[str] = None
    transaction: Optional[TransactionDraft] = None


@dataclass
class PaymentDraft:
    amount_planned: Money
    cart_id: Optional[str] = None
    customer_id: Optional[str] = None
    payment_interface: str = "paypal"
    payment_method: Optional[str] = None


@dataclass
class Payment:
    """
    支付聚合根

    业务规则：
    1. 每次结账尝试创建一笔，只关联一个购物车，本系统从不删除
    2. psp_reference 在渠道订单创建前为空
    3. 交易记录只能通过仓储的 update_payment 追加或更新状态
    """

    id: str
    amount_planned: Money
    psp_reference: Optional[str] = None
    interface_id: Optional[str] = None
    cart_id: Optional[str] = None
    customer_id: Optional[str] = None
    payment_interface: str = "paypal"
    payment_method: Optional[str] = None
    transactions: list[Transaction] = field(default_factory=list)
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    @property
    def fraction_digits(self) -> int:
        return self.amount_planned.fraction_digits

    def find_transaction(
        self, type_: TransactionType, interaction_id: Optional[str]
    ) -> Optional[Transaction]:
        for tx in self.transactions:
            if tx.matches(type_, interaction_id):
                return tx
        return None

    def latest_successful_charge(self) -> Optional[Transaction]:
        """最近一笔成功的扣款（退款目标）"""
        charges = [
            tx for tx in self.transactions
            if tx.type == TransactionType.CHARGE and tx.state == TransactionState.SUCCESS
        ]
        if not charges:
            return None
        return charges[-1]

    def _sum(self, type_: TransactionType) -> int:
        return sum(
            tx.amount.cent_amount for tx in self.transactions
            if tx.type == type_ and tx.state == TransactionState.SUCCESS
        )

    @property
    def lifecycle(self) -> PaymentLifecycle:
        """
        根据交易历史推导生命周期

        NoPayment -> Authorized -> Captured -> (PartiallyRefunded | FullyRefunded)，
        任何在途尝试失败且尚无成功扣款时为 Failed。
        """
        charged = self._sum(TransactionType.CHARGE)
        if charged > 0:
            refunded = self._sum(TransactionType.REFUND)
            if refunded == 0:
                return PaymentLifecycle.CAPTURED
            if refunded >= charged:
                return PaymentLifecycle.FULLY_REFUNDED
            return PaymentLifecycle.PARTIALLY_REFUNDED

        attempts = [
            tx for tx in self.transactions
            if tx.type in (TransactionType.AUTHORIZATION, TransactionType.CHARGE)
            and tx.state != TransactionState.INITIAL
        ]
        if not attempts:
            return PaymentLifecycle.NO_PAYMENT
        latest = attempts[-1]
        if latest.state == TransactionState.FAILURE:
            return PaymentLifecycle.FAILED
        return PaymentLifecycle.AUTHORIZED
