"""
Custom exceptions for the order pipeline.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
OrderPipelineException (base)
├── CatalogException
│   ├── MenuItemNotFoundException
│   ├── InvalidSelectionException
│   └── InvalidCatalogDataException
├── CartException
│   └── CartStorageException
├── CheckoutException
│   ├── CheckoutEntryDeniedException
│   ├── DeliveryInfoValidationException
│   └── InvalidCheckoutStateException
├── OrderException
│   ├── OrderNotFoundException
│   ├── OrderSubmissionFailedException
│   ├── OrderNumberCollisionException
│   └── StatusUpdateForbiddenException
└── ChannelException
    └── ChannelDisconnectedException

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundException(order_id="8f1c...")

Callers catch and turn them into toasts:
    try:
        await CheckoutService.place_order(...)
    except OrderSubmissionFailedException as e:
        notifications.notify(ToastDTO.destructive("Order failed", str(e)))
"""

from .base import OrderPipelineException
from .catalog import CatalogException, MenuItemNotFoundException, InvalidSelectionException, InvalidCatalogDataException
from .cart import CartException, CartStorageException
from .checkout import (
    CheckoutException,
    CheckoutEntryDeniedException,
    DeliveryInfoValidationException,
    InvalidCheckoutStateException
)
from .order import (
    OrderException,
    OrderNotFoundException,
    OrderSubmissionFailedException,
    OrderNumberCollisionException,
    StatusUpdateForbiddenException
)
from .channel import ChannelException, ChannelDisconnectedException

__all__ = [
    # Base
    'OrderPipelineException',

    # Catalog
    'CatalogException',
    'MenuItemNotFoundException',
    'InvalidSelectionException',
    'InvalidCatalogDataException',

    # Cart
    'CartException',
    'CartStorageException',

    # Checkout
    'CheckoutException',
    'CheckoutEntryDeniedException',
    'DeliveryInfoValidationException',
    'InvalidCheckoutStateException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'OrderSubmissionFailedException',
    'OrderNumberCollisionException',
    'StatusUpdateForbiddenException',

    # Channel
    'ChannelException',
    'ChannelDisconnectedException',
]
