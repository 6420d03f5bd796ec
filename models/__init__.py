"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for foreign keys between tables to resolve correctly.
"""

from models.base import Base
from models.menu_item import MenuItem
from models.variation import Variation
from models.addon import Addon, MenuItemAddon
from models.order import Order
from models.order_item import OrderItem
from models.order_item_addon import OrderItemAddon

__all__ = [
    'Base',
    'MenuItem',
    'Variation',
    'Addon',
    'MenuItemAddon',
    'Order',
    'OrderItem',
    'OrderItemAddon',
]
