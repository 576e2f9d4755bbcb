"""
Payment specific codes and PSP status mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Local payment state errors (2xxxx)
    PAYMENT_NOT_FOUND = 20101
    CART_NOT_FOUND = 20102
    INTERFACE_ID_MISMATCH = 20103
    NO_CAPTURE_TO_REFUND = 20104
    UNSUPPORTED_OPERATION = 20105
    UNSUPPORTED_EVENT_TYPE = 20106
    INVALID_AMOUNT_FORMAT = 20107

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    UPSTREAM_UNAVAILABLE = 60001
    SIGNATURE_ERROR = 60002
    AUTHENTICATION_FAILED = 60005
    MALFORMED_RESPONSE = 60006


# PayPal order status -> create outcome. Orders in these states are accepted
# and wait for the payer; anything else is a rejection.
ACCEPTED_ORDER_STATUSES = {"CREATED", "SAVED", "APPROVED", "PAYER_ACTION_REQUIRED", "COMPLETED"}

# PayPal status -> commerce transaction state. A capture is judged by the
# order status after capture: the order is COMPLETED once money has moved,
# even while the capture itself is still PENDING. Unknown statuses resolve to
# Failure; a pending refund stays Initial until its webhook arrives.
PROVIDER_STATUS_TO_TRANSACTION_STATE = {
    "order": {
        "COMPLETED": "Success",
    },
    "refund": {
        "COMPLETED": "Success",
        "PENDING": "Initial",
        "CANCELLED": "Failure",
        "FAILED": "Failure",
    },
}
