"""
Checkout-related exceptions.
"""

from enums.checkout_denial_reason import CheckoutDenialReason
from .base import OrderPipelineException


class CheckoutException(OrderPipelineException):
    """Base exception for checkout-related errors."""
    pass


class CheckoutEntryDeniedException(CheckoutException):
    """Raised when checkout is entered without a login or with an empty cart."""

    def __init__(self, reason: CheckoutDenialReason):
        messages = {
            CheckoutDenialReason.LOGIN_REQUIRED: "Please login to complete your order.",
            CheckoutDenialReason.CART_EMPTY: "Your cart is empty.",
        }
        super().__init__(messages[reason], details={'reason': reason.value})
        self.reason = reason


class DeliveryInfoValidationException(CheckoutException):
    """Raised when required delivery fields (address, phone) are missing."""

    def __init__(self, missing_fields: list[str]):
        super().__init__(
            f"Missing required delivery information: {', '.join(missing_fields)}",
            details={'missing_fields': missing_fields}
        )
        self.missing_fields = missing_fields


class InvalidCheckoutStateException(CheckoutException):
    """Raised when an action is not allowed in the current checkout state."""

    def __init__(self, current_state: str, required_state: str):
        super().__init__(
            f"Checkout is in state '{current_state}', required '{required_state}'",
            details={'current_state': current_state, 'required_state': required_state}
        )
        self.current_state = current_state
        self.required_state = required_state
