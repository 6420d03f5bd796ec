import logging

from sqlalchemy.ext.asyncio import AsyncSession

from enums.checkout_denial_reason import CheckoutDenialReason
from enums.checkout_phase import CheckoutPhase
from enums.checkout_step import CheckoutStep
from exceptions.checkout import (
    CheckoutEntryDeniedException,
    DeliveryInfoValidationException,
    InvalidCheckoutStateException,
)
from exceptions.order import OrderSubmissionFailedException
from models.checkout import CheckoutState, DeliveryInfoDTO
from models.order import OrderReceiptDTO
from models.session import SessionContext
from services.cart import CartStore
from services.notification import NotificationService
from services.order_submission import OrderSubmissionService


class CheckoutSequencer:
    """
    Pure transitions of the checkout flow.

    DELIVERY_INFO -> REVIEW -> PAYMENT. Every method takes a CheckoutState
    and returns a new one; nothing here performs I/O.
    """

    @staticmethod
    def begin(cart: CartStore, session: SessionContext) -> CheckoutState:
        """
        Enter checkout at the delivery step.

        Raises:
            CheckoutEntryDeniedException: not logged in, or the cart is empty
        """
        if not session.is_authenticated:
            raise CheckoutEntryDeniedException(CheckoutDenialReason.LOGIN_REQUIRED)
        if cart.is_empty:
            raise CheckoutEntryDeniedException(CheckoutDenialReason.CART_EMPTY)

        delivery_info = DeliveryInfoDTO(
            address=session.profile.address or "",
            phone=session.profile.phone or ""
        )
        return CheckoutState(step=CheckoutStep.first(), delivery_info=delivery_info)

    @staticmethod
    def next(state: CheckoutState) -> CheckoutState:
        if not state.is_active or state.step == CheckoutStep.last():
            return state
        return state.model_copy(update={"step": CheckoutStep(state.step + 1)})

    @staticmethod
    def back(state: CheckoutState) -> CheckoutState:
        """Go one step back; from the first step this cancels checkout."""
        if not state.is_active:
            return state
        if state.step == CheckoutStep.first():
            return state.model_copy(update={"phase": CheckoutPhase.CANCELLED, "delivery_info": DeliveryInfoDTO()})
        return state.model_copy(update={"step": CheckoutStep(state.step - 1)})

    @staticmethod
    def update_delivery_info(
        state: CheckoutState,
        address: str | None = None,
        phone: str | None = None,
        notes: str | None = None
    ) -> CheckoutState:
        changes = {
            field: value
            for field, value in (("address", address), ("phone", phone), ("notes", notes))
            if value is not None
        }
        if not changes:
            return state
        return state.model_copy(update={"delivery_info": state.delivery_info.model_copy(update=changes)})

    @staticmethod
    def can_submit(state: CheckoutState) -> bool:
        return (
            state.is_active
            and state.step == CheckoutStep.PAYMENT
            and not state.delivery_info.missing_fields()
        )

    @staticmethod
    def validate(state: CheckoutState) -> None:
        missing_fields = state.delivery_info.missing_fields()
        if missing_fields:
            raise DeliveryInfoValidationException(missing_fields)

    @staticmethod
    def complete(state: CheckoutState, receipt: OrderReceiptDTO) -> CheckoutState:
        return state.model_copy(update={"phase": CheckoutPhase.COMPLETED, "receipt": receipt})


class CheckoutService:

    @staticmethod
    def start(
        cart: CartStore,
        session: SessionContext,
        notification_service: NotificationService | None = None
    ) -> CheckoutState:
        """
        Enter checkout from the cart view. A denied entry is shown as a
        destructive toast before the exception reaches the caller.

        Raises:
            CheckoutEntryDeniedException: not logged in, or the cart is empty
        """
        try:
            return CheckoutSequencer.begin(cart, session)
        except CheckoutEntryDeniedException as e:
            logging.info(f"Checkout denied for user {session.user_id}: {e.reason.value}")
            if notification_service is not None:
                notification_service.notify(NotificationService.checkout_denied(e.message))
            raise

    @staticmethod
    async def place_order(
        state: CheckoutState,
        cart: CartStore,
        session: SessionContext,
        db_session: AsyncSession,
        notification_service: NotificationService | None = None
    ) -> CheckoutState:
        """
        Submit the order from the payment step.

        Args:
            state: Current checkout state (must be active, at PAYMENT)
            cart: Session cart; cleared by a successful submission
            session: Authenticated customer session
            db_session: Database session
            notification_service: Receives the success/failure toast

        Returns:
            The completed CheckoutState carrying the receipt

        Raises:
            InvalidCheckoutStateException: not at the payment step
            DeliveryInfoValidationException: address or phone missing
            OrderSubmissionFailedException: submission failed; cart kept
        """
        if not state.is_active:
            raise InvalidCheckoutStateException(state.phase.value, CheckoutPhase.ACTIVE.value)
        if state.step != CheckoutStep.PAYMENT:
            raise InvalidCheckoutStateException(state.step.name, CheckoutStep.PAYMENT.name)
        CheckoutSequencer.validate(state)

        try:
            receipt = await OrderSubmissionService.submit(
                cart,
                state.delivery_info,
                session.user_id,
                db_session,
                payment_method=state.payment_method
            )
        except OrderSubmissionFailedException as e:
            logging.error(f"Checkout for user {session.user_id} failed: {e}")
            if notification_service is not None:
                notification_service.notify(NotificationService.order_submission_failed(e))
            raise

        if notification_service is not None:
            notification_service.notify(NotificationService.order_submitted(receipt))
        return CheckoutSequencer.complete(state, receipt)
