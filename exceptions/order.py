"""
Order-related exceptions.
"""

from .base import OrderPipelineException


class OrderException(OrderPipelineException):
    """Base exception for order-related errors."""
    pass


class OrderNotFoundException(OrderException):
    """Raised when order is not found in database."""

    def __init__(self, order_id: str):
        super().__init__(
            f"Order {order_id} not found",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class OrderSubmissionFailedException(OrderException):
    """
    Raised when any write of an order submission fails.

    The underlying error is kept as `cause` (and chained as __cause__).
    The cart is never cleared when this is raised.
    """

    def __init__(self, step: str, cause: Exception | None = None, order_number: str | None = None):
        reason = str(cause) if cause is not None else "unknown error"
        super().__init__(
            f"Order submission failed at step '{step}': {reason}",
            details={'step': step, 'order_number': order_number}
        )
        self.step = step
        self.cause = cause
        self.order_number = order_number


class OrderNumberCollisionException(OrderException):
    """Raised when a generated order number already exists."""

    def __init__(self, order_number: str):
        super().__init__(
            f"Order number {order_number} already exists",
            details={'order_number': order_number}
        )
        self.order_number = order_number


class StatusUpdateForbiddenException(OrderException):
    """Raised when a non-staff session attempts to change an order status."""

    def __init__(self, order_id: str, user_id: str | None):
        super().__init__(
            f"User {user_id} is not allowed to change the status of order {order_id}",
            details={'order_id': order_id, 'user_id': user_id}
        )
        self.order_id = order_id
        self.user_id = user_id
