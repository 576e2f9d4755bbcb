"""
Translate PayPal webhook events into payment transaction updates.

The converter is pure: it does no I/O and leaves duplicate detection to the
orchestrator and the repository merge rules.
"""
from __future__ import annotations

from application.dtos.payments import NotificationPayload
from application.dtos.paypal import NotificationEventType
from domain.common.exceptions import UnsupportedEventType
from domain.payment.amount import from_psp_amount
from domain.payment.entity import PaymentUpdate, TransactionDraft, TransactionState, TransactionType


EVENT_TRANSACTIONS: dict[str, tuple[TransactionType, TransactionState]] = {
    NotificationEventType.PAYMENT_CAPTURE_COMPLETED.value: (TransactionType.CHARGE, TransactionState.SUCCESS),
    NotificationEventType.PAYMENT_CAPTURE_DECLINED.value: (TransactionType.CHARGE, TransactionState.FAILURE),
    NotificationEventType.PAYMENT_CAPTURE_REFUNDED.value: (TransactionType.REFUND, TransactionState.SUCCESS),
    # A reversal returns funds to the payer, so it is booked as a refund
    NotificationEventType.PAYMENT_CAPTURE_REVERSED.value: (TransactionType.REFUND, TransactionState.SUCCESS),
}


class NotificationConverter:
    def convert(self, event: NotificationPayload, fraction_digits: int) -> PaymentUpdate:
        """Map one webhook event to a PaymentUpdate for ``resource.invoice_id``.

        Raises:
            UnsupportedEventType: for event types outside the handled set.
            InvalidAmountFormat: if the resource amount cannot be parsed
                with ``fraction_digits``.
        """
        resource = event.resource
        mapping = EVENT_TRANSACTIONS.get(event.event_type)
        if mapping is None:
            raise UnsupportedEventType(event.event_type, payment_id=resource.invoice_id)

        tx_type, tx_state = mapping
        amount = from_psp_amount(resource.amount.model_dump(), fraction_digits)
        return PaymentUpdate(
            payment_id=resource.invoice_id,
            transaction=TransactionDraft(
                type=tx_type,
                state=tx_state,
                amount=amount,
                interaction_id=resource.id,
            ),
        )
