"""
Cart-related exceptions.
"""

from .base import OrderPipelineException


class CartException(OrderPipelineException):
    """Base exception for cart-related errors."""
    pass


class CartStorageException(CartException):
    """Raised when the cart storage backend cannot be read or written."""

    def __init__(self, storage_key: str, reason: str):
        super().__init__(
            f"Cart storage '{storage_key}' failed: {reason}",
            details={'storage_key': storage_key, 'reason': reason}
        )
        self.storage_key = storage_key
        self.reason = reason
