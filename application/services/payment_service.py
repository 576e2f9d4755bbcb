"""
Application service orchestrating payment use-cases.

This class depends only on the application PaymentGateway port, the domain
repository contracts and DTOs. Gateway and repository implementations are
provided by infrastructure and must be injected from the composition root,
keeping dependencies one-way.

Every flow is strictly sequential (authenticate -> PSP call -> local update).
Transaction updates are sent as idempotent instructions keyed by
{payment_id, type, interaction_id}; an in-flight record is addressed by its
local transaction id until the PSP reference is known.
"""
from __future__ import annotations

import uuid
from typing import Any, Awaitable, Callable, Optional

from application.dtos.payments import (
    CancelPaymentAction,
    CapturePaymentAction,
    ConfirmPaymentRequest,
    CreatePaymentRequest,
    ModifyPaymentRequest,
    NotificationPayload,
    PaymentIntentResponse,
    PaymentModificationStatus,
    PaymentOutcome,
    PaymentResponse,
    RefundPaymentAction,
    ReversePaymentAction,
)
from application.dtos.paypal import (
    CreateOrderRequest,
    PaypalAddress,
    PaypalAmount,
    PaypalName,
    PaypalShipping,
    PurchaseUnit,
)
from application.ports.payment_gateway import PaymentGateway
from application.services.notification_converter import NotificationConverter
from core.logging_config import get_logger, payment_log_context
from domain.cart.entity import Address, Cart
from domain.cart.repository import CartRepository
from domain.common.exceptions import (
    DomainValidationException,
    InterfaceIdMismatch,
    NoCaptureToRefund,
    NotificationVerificationFailed,
    UnsupportedOperation,
)
from domain.payment.amount import to_psp_amount
from domain.payment.entity import (
    Money,
    Payment,
    PaymentDraft,
    PaymentUpdate,
    TransactionDraft,
    TransactionState,
    TransactionType,
)
from domain.payment.repository import PaymentRepository
from shared.codes.payment_codes import ACCEPTED_ORDER_STATUSES, PROVIDER_STATUS_TO_TRANSACTION_STATE


logger = get_logger(__name__)

REFERENCE_ID_PREFIX = "ct-connect-paypal-"

_STATE_TO_OUTCOME = {
    TransactionState.SUCCESS: PaymentModificationStatus.APPROVED,
    TransactionState.FAILURE: PaymentModificationStatus.REJECTED,
    TransactionState.INITIAL: PaymentModificationStatus.RECEIVED,
}

# (transaction state, PSP interaction id) produced by one PSP call
PspCall = Callable[[], Awaitable[tuple[TransactionState, str]]]


def _provider_state(kind: str, status: Optional[str]) -> TransactionState:
    mapped = PROVIDER_STATUS_TO_TRANSACTION_STATE[kind].get((status or "").upper(), "Failure")
    return TransactionState(mapped)


def _new_transaction_id() -> str:
    return str(uuid.uuid4())


class PaymentService:
    def __init__(
        self,
        gateway: PaymentGateway,
        payment_repository: PaymentRepository,
        cart_repository: CartRepository,
        converter: Optional[NotificationConverter] = None,
    ) -> None:
        self.gateway = gateway
        self.payment_repository = payment_repository
        self.cart_repository = cart_repository
        self.converter = converter or NotificationConverter()

    # ------------------------------------------------------------------
    # create / confirm
    # ------------------------------------------------------------------
    async def create_payment(self, cart_id: str, request: Optional[CreatePaymentRequest] = None) -> PaymentResponse:
        """Create the local payment for a cart and the matching PayPal order.

        The PayPal invoice id is the local payment id; webhooks and confirm
        calls join back on it.
        """
        request = request or CreatePaymentRequest()
        cart = await self.cart_repository.get_cart(cart_id)
        amount_planned = await self.cart_repository.get_payment_amount(cart)
        payment = await self.payment_repository.create_payment(
            PaymentDraft(
                amount_planned=amount_planned,
                cart_id=cart.id,
                customer_id=cart.customer_id,
                payment_interface=self.gateway.provider,
            )
        )
        await self.cart_repository.add_payment(cart.id, cart.version, payment.id)

        logger.info(
            "payment_create_request",
            payment_id=payment.id,
            cart_id=cart.id,
            provider=self.gateway.provider,
        )
        order = await self.gateway.create_order(self._build_order_request(cart, payment))
        authorized = order.status.upper() in ACCEPTED_ORDER_STATUSES
        outcome = PaymentOutcome.AUTHORIZED if authorized else PaymentOutcome.REJECTED

        updated = await self.payment_repository.update_payment(
            PaymentUpdate(
                payment_id=payment.id,
                psp_reference=order.id,
                interface_id=order.id,
                payment_method=request.payment_method.type,
                transaction=TransactionDraft(
                    type=TransactionType.AUTHORIZATION,
                    state=TransactionState.SUCCESS if authorized else TransactionState.FAILURE,
                    amount=payment.amount_planned,
                    interaction_id=order.id,
                ),
            )
        )
        logger.info(
            "payment_create_response",
            payment_id=updated.id,
            psp_reference=order.id,
            order_status=order.status,
            outcome=outcome.value,
        )
        return PaymentResponse(outcome=outcome, payment_reference=updated.id)

    async def confirm_payment(self, request: ConfirmPaymentRequest) -> PaymentIntentResponse:
        """Capture the approved PayPal order and record the charge."""
        details = request.details
        payment = await self.payment_repository.get_payment(details.payment_reference)
        if not details.psp_reference or details.psp_reference not in {payment.interface_id, payment.psp_reference}:
            logger.warning(
                "payment_confirm_mismatch",
                payment_id=payment.id,
                psp_reference=details.psp_reference,
            )
            raise InterfaceIdMismatch(payment_id=payment.id, psp_reference=details.psp_reference)

        async def capture() -> tuple[TransactionState, str]:
            result = await self.gateway.capture_order(details.psp_reference)
            return _provider_state("order", result.order_status), result.capture_id

        return await self._process_modification(
            payment,
            TransactionType.CHARGE,
            payment.amount_planned,
            capture,
            operation="confirm",
        )

    # ------------------------------------------------------------------
    # modifications
    # ------------------------------------------------------------------
    async def modify_payment(self, payment_id: str, request: ModifyPaymentRequest) -> PaymentIntentResponse:
        """Route the first requested action to its operation."""
        payment = await self.payment_repository.get_payment(payment_id)
        action = request.actions[0]
        if isinstance(action, CapturePaymentAction):
            return await self.capture_payment(payment, action)
        if isinstance(action, RefundPaymentAction):
            return await self.refund_payment(payment, action)
        if isinstance(action, CancelPaymentAction):
            return await self.cancel_payment(payment, action)
        if isinstance(action, ReversePaymentAction):
            return await self.reverse_payment(payment, action)
        name = getattr(action, "action", None)
        logger.error("payment_modification_unsupported", payment_id=payment.id, action=name)
        raise UnsupportedOperation(name, payment_id=payment.id)

    async def capture_payment(self, payment: Payment, action: CapturePaymentAction) -> PaymentIntentResponse:
        if not payment.psp_reference:
            raise UnsupportedOperation(action.action, payment_id=payment.id)
        order_id = payment.psp_reference

        async def capture() -> tuple[TransactionState, str]:
            result = await self.gateway.capture_order(order_id)
            return _provider_state("order", result.order_status), result.capture_id

        return await self._process_modification(
            payment,
            TransactionType.CHARGE,
            self._money(payment, action.amount.cent_amount, action.amount.currency_code),
            capture,
            operation="capture",
        )

    async def refund_payment(self, payment: Payment, action: RefundPaymentAction) -> PaymentIntentResponse:
        """Refund against the latest successful charge.

        The refund is partial iff the requested amount is below the planned
        amount; otherwise the whole capture is refunded and the planned amount
        is recorded, since PayPal never refunds more than was captured.
        """
        requested = self._money(payment, action.amount.cent_amount, action.amount.currency_code)
        capture_id = self._refund_target(payment)
        partial = requested.cent_amount < payment.amount_planned.cent_amount
        amount = requested if partial else payment.amount_planned

        async def refund() -> tuple[TransactionState, str]:
            if partial:
                result = await self.gateway.refund_partial(capture_id, PaypalAmount(**to_psp_amount(amount)))
            else:
                result = await self.gateway.refund_full(capture_id)
            return _provider_state("refund", result.status), result.id

        return await self._process_modification(
            payment,
            TransactionType.REFUND,
            amount,
            refund,
            operation="refund_partial" if partial else "refund_full",
        )

    async def cancel_payment(self, payment: Payment, action: CancelPaymentAction) -> PaymentIntentResponse:
        # Orders are created with intent CAPTURE; there is no authorization to void
        logger.error("payment_modification_unsupported", payment_id=payment.id, action=action.action)
        raise UnsupportedOperation(action.action, payment_id=payment.id)

    async def reverse_payment(self, payment: Payment, action: ReversePaymentAction) -> PaymentIntentResponse:
        capture_id = self._refund_target(payment)

        async def refund() -> tuple[TransactionState, str]:
            result = await self.gateway.refund_full(capture_id)
            return _provider_state("refund", result.status), result.id

        return await self._process_modification(
            payment,
            TransactionType.REFUND,
            payment.amount_planned,
            refund,
            operation="reverse",
        )

    def _refund_target(self, payment: Payment) -> str:
        charge = payment.latest_successful_charge()
        if charge is None or not charge.interaction_id:
            raise NoCaptureToRefund(payment.id)
        return charge.interaction_id

    @staticmethod
    def _money(payment: Payment, cent_amount: int, currency_code: str) -> Money:
        if currency_code != payment.amount_planned.currency_code:
            raise DomainValidationException(
                f"Currency {currency_code} does not match payment currency {payment.amount_planned.currency_code}",
                field="currency_code",
                details={"payment_id": payment.id},
            )
        return Money(
            cent_amount=cent_amount,
            currency_code=currency_code,
            fraction_digits=payment.fraction_digits,
        )

    async def _process_modification(
        self,
        payment: Payment,
        tx_type: TransactionType,
        amount: Money,
        call: PspCall,
        *,
        operation: str,
    ) -> PaymentIntentResponse:
        """Record an Initial transaction, run the PSP call, then settle it.

        A failing PSP call forces the in-flight record to Failure before the
        error is re-raised, so no record is left Initial by an error.
        """
        transaction_id = _new_transaction_id()
        with payment_log_context(payment.id, operation=operation, transaction_id=transaction_id):
            await self._record(payment.id, tx_type, TransactionState.INITIAL, amount, transaction_id)
            logger.info(
                "payment_modification_request",
                cent_amount=amount.cent_amount,
                currency=amount.currency_code,
            )

            try:
                state, interaction_id = await call()
            except Exception as exc:
                await self._record(payment.id, tx_type, TransactionState.FAILURE, amount, transaction_id)
                logger.error(
                    "payment_modification_failed",
                    error_type=getattr(exc, "error_type", type(exc).__name__),
                    details=getattr(exc, "details", None),
                )
                raise

            await self._record(payment.id, tx_type, state, amount, transaction_id, interaction_id)
            outcome = _STATE_TO_OUTCOME[state]
            logger.info(
                "payment_modification_response",
                interaction_id=interaction_id,
                state=state.value,
                outcome=outcome.value,
            )
        return PaymentIntentResponse(outcome=outcome, payment_reference=payment.id, psp_reference=interaction_id)

    async def _record(
        self,
        payment_id: str,
        tx_type: TransactionType,
        state: TransactionState,
        amount: Money,
        transaction_id: str,
        interaction_id: Optional[str] = None,
    ) -> Payment:
        return await self.payment_repository.update_payment(
            PaymentUpdate(
                payment_id=payment_id,
                transaction=TransactionDraft(
                    type=tx_type,
                    state=state,
                    amount=amount,
                    interaction_id=interaction_id,
                    transaction_id=transaction_id,
                ),
            )
        )

    # ------------------------------------------------------------------
    # notifications
    # ------------------------------------------------------------------
    async def process_notification(self, event: NotificationPayload) -> Payment:
        """Apply one webhook event to the payment named by its invoice id.

        Redeliveries of an already applied {type, interaction_id, state} are
        ignored; the repository merge rules make any other replay idempotent.
        """
        payment = await self.payment_repository.get_payment(event.resource.invoice_id)
        update = self.converter.convert(event, payment.fraction_digits)
        draft = update.transaction
        existing = payment.find_transaction(draft.type, draft.interaction_id)
        if existing is not None and existing.state == draft.state:
            logger.info(
                "notification_duplicate_ignored",
                payment_id=payment.id,
                event_id=event.id,
                event_type=event.event_type,
                interaction_id=draft.interaction_id,
            )
            return payment

        updated = await self.payment_repository.update_payment(update)
        logger.info(
            "notification_applied",
            payment_id=updated.id,
            event_id=event.id,
            event_type=event.event_type,
            interaction_id=draft.interaction_id,
            state=draft.state.value,
        )
        return updated

    async def verify_and_process_notification(self, headers: dict[str, Any], body: dict[str, Any]) -> Payment:
        """Verify the webhook signature with PayPal, then process the event.

        ``body`` must be the event exactly as delivered; PayPal checks the
        signature against it.
        """
        event = NotificationPayload.model_validate(body)
        verification = await self.gateway.verify_notification(headers, body)
        if not verification.verified:
            logger.warning(
                "notification_verification_failed",
                event_id=event.id,
                verification_status=verification.verification_status,
            )
            raise NotificationVerificationFailed(
                event_id=event.id,
                verification_status=verification.verification_status,
            )
        return await self.process_notification(event)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _build_order_request(self, cart: Cart, payment: Payment) -> CreateOrderRequest:
        return CreateOrderRequest(
            intent="CAPTURE",
            purchase_units=[
                PurchaseUnit(
                    reference_id=REFERENCE_ID_PREFIX + str(uuid.uuid4()),
                    invoice_id=payment.id,
                    amount=PaypalAmount(**to_psp_amount(payment.amount_planned)),
                    shipping=self._build_shipping(cart.shipping_address),
                )
            ],
        )

    @staticmethod
    def _build_shipping(address: Optional[Address]) -> Optional[PaypalShipping]:
        if address is None:
            return None
        return PaypalShipping(
            name=PaypalName(full_name=address.full_name),
            address=PaypalAddress(
                address_line_1=address.address_line,
                address_line_2=address.additional_street_info,
                postal_code=address.postal_code,
                admin_area_1=address.state or address.region or "",
                admin_area_2=address.city,
                country_code=address.country or "",
            ),
        )

    async def aclose(self) -> None:
        # Best-effort close underlying resources
        close = getattr(self.gateway, "aclose", None)
        if callable(close):
            await close()
