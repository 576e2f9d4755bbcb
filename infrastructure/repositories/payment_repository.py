"""
支付仓储实现 - 进程内存实现，按支付聚合串行化更新

用于本地组装与测试；生产环境由商务平台的支付服务实现同一接口。
"""
from __future__ import annotations

import asyncio
import copy
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from domain.common.exceptions import PaymentNotFound
from domain.payment.entity import (
    Payment,
    PaymentDraft,
    PaymentUpdate,
    Transaction,
    TransactionDraft,
    TransactionState,
)
from domain.payment.repository import PaymentRepository
from core.logging_config import get_logger


logger = get_logger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryPaymentRepository(PaymentRepository):
    """支付仓储的内存实现"""

    def __init__(self, id_factory: Optional[Callable[[], str]] = None):
        self._payments: dict[str, Payment] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._id_factory = id_factory or _new_id

    def _lock(self, payment_id: str) -> asyncio.Lock:
        return self._locks.setdefault(payment_id, asyncio.Lock())

    async def get_payment(self, payment_id: str) -> Payment:
        payment = self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id)
        return copy.deepcopy(payment)

    async def create_payment(self, draft: PaymentDraft) -> Payment:
        now = datetime.now(timezone.utc)
        payment = Payment(
            id=self._id_factory(),
            amount_planned=draft.amount_planned,
            cart_id=draft.cart_id,
            customer_id=draft.customer_id,
            payment_interface=draft.payment_interface,
            payment_method=draft.payment_method,
            created_at=now,
            updated_at=now,
        )
        self._payments[payment.id] = payment
        logger.info(
            "payment_created",
            payment_id=payment.id,
            cart_id=payment.cart_id,
            cent_amount=payment.amount_planned.cent_amount,
            currency=payment.amount_planned.currency_code,
        )
        return copy.deepcopy(payment)

    async def update_payment(self, update: PaymentUpdate) -> Payment:
        async with self._lock(update.payment_id):
            payment = self._payments.get(update.payment_id)
            if payment is None:
                raise PaymentNotFound(update.payment_id)

            if update.psp_reference is not None:
                payment.psp_reference = update.psp_reference
            if update.interface_id is not None:
                payment.interface_id = update.interface_id
            if update.payment_method is not None:
                payment.payment_method = update.payment_method
            if update.transaction is not None:
                self._apply_transaction(payment, update.transaction)

            payment.version += 1
            payment.updated_at = datetime.now(timezone.utc)
            return copy.deepcopy(payment)

    def _apply_transaction(self, payment: Payment, draft: TransactionDraft) -> Transaction:
        """
        合并规则（按顺序）：
        1. transaction_id 命中 -> 更新该记录
        2. {type, interaction_id} 命中 -> 更新该记录
        3. 同类型、无 interaction_id 的 Initial 记录 -> 认领该记录
        4. 追加新记录
        """
        existing = payment.find_transaction(draft.type, draft.interaction_id)
        target: Optional[Transaction] = None

        if draft.transaction_id is not None:
            target = next((tx for tx in payment.transactions if tx.id == draft.transaction_id), None)
            if target is not None and existing is not None and existing is not target:
                # A notification already recorded this interaction; the in-flight placeholder is absorbed
                payment.transactions.remove(target)
                logger.info(
                    "transaction_placeholder_absorbed",
                    payment_id=payment.id,
                    transaction_id=target.id,
                    interaction_id=draft.interaction_id,
                )
                target = existing

        if target is None:
            target = existing

        if target is None and draft.interaction_id is not None and draft.transaction_id is None:
            target = next(
                (
                    tx for tx in reversed(payment.transactions)
                    if tx.type == draft.type
                    and tx.state == TransactionState.INITIAL
                    and tx.interaction_id is None
                ),
                None,
            )

        if target is None:
            target = Transaction(
                id=draft.transaction_id or _new_id(),
                type=draft.type,
                state=draft.state,
                amount=draft.amount,
                interaction_id=draft.interaction_id,
            )
            payment.transactions.append(target)
            return target

        # A late Initial never rolls back a terminal state
        if draft.state != TransactionState.INITIAL or target.state == TransactionState.INITIAL:
            target.state = draft.state
        target.amount = draft.amount
        if draft.interaction_id is not None:
            target.interaction_id = draft.interaction_id
        return target
