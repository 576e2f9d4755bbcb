import pytest

from application.dtos.payments import NotificationPayload
from application.services.notification_converter import NotificationConverter
from domain.common.exceptions import InvalidAmountFormat, UnsupportedEventType
from domain.payment.entity import Money, TransactionState, TransactionType


def _event(event_type: str, value: str = "30.00", currency: str = "USD") -> NotificationPayload:
    return NotificationPayload.model_validate(
        {
            "id": "WH-EVT-1",
            "event_type": event_type,
            "resource_type": "capture",
            "resource": {
                "id": "CAPTURE-9",
                "invoice_id": "payment-1",
                "status": "COMPLETED",
                "amount": {"currency_code": currency, "value": value},
            },
        }
    )


@pytest.mark.parametrize(
    "event_type,tx_type,tx_state",
    [
        ("PAYMENT.CAPTURE.COMPLETED", TransactionType.CHARGE, TransactionState.SUCCESS),
        ("PAYMENT.CAPTURE.DECLINED", TransactionType.CHARGE, TransactionState.FAILURE),
        ("PAYMENT.CAPTURE.REFUNDED", TransactionType.REFUND, TransactionState.SUCCESS),
        ("PAYMENT.CAPTURE.REVERSED", TransactionType.REFUND, TransactionState.SUCCESS),
    ],
)
def test_convert_event_types(event_type, tx_type, tx_state):
    update = NotificationConverter().convert(_event(event_type), 2)
    assert update.payment_id == "payment-1"
    assert update.psp_reference is None
    assert update.transaction.type == tx_type
    assert update.transaction.state == tx_state
    assert update.transaction.interaction_id == "CAPTURE-9"
    assert update.transaction.transaction_id is None


def test_capture_completed_amount_uses_target_fraction_digits():
    update = NotificationConverter().convert(_event("PAYMENT.CAPTURE.COMPLETED", value="1500", currency="JPY"), 0)
    assert update.transaction.amount == Money(cent_amount=1500, currency_code="JPY", fraction_digits=0)


def test_unsupported_event_type():
    with pytest.raises(UnsupportedEventType) as exc:
        NotificationConverter().convert(_event("CHECKOUT.ORDER.APPROVED"), 2)
    assert exc.value.details["event_type"] == "CHECKOUT.ORDER.APPROVED"
    assert exc.value.details["payment_id"] == "payment-1"


def test_amount_not_matching_fraction_digits_propagates():
    with pytest.raises(InvalidAmountFormat):
        NotificationConverter().convert(_event("PAYMENT.CAPTURE.COMPLETED", value="30.00"), 0)
