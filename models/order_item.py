from datetime import datetime
from decimal import Decimal
import uuid

from pydantic import BaseModel
from sqlalchemy import Column, String, Integer, Numeric, Text, DateTime, ForeignKey, CheckConstraint, Index, func

from models.base import Base
from models.order_item_addon import OrderItemAddonDTO


class OrderItem(Base):
    __tablename__ = 'order_items'

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_order_item_positive_quantity'),
        CheckConstraint('price >= 0', name='ck_order_item_non_negative_price'),
        Index('ix_order_items_order_id', 'order_id'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    item_id = Column(String(36), ForeignKey('menu_items.id', ondelete='SET NULL'), nullable=True)
    variation_id = Column(String(36), ForeignKey('menu_item_variations.id', ondelete='SET NULL'), nullable=True)
    line_index = Column(Integer, nullable=False, default=0)  # Position of the line in the cart
    quantity = Column(Integer, nullable=False)
    # Unit price captured at submission time (base + variation + add-ons);
    # later catalog changes never touch it
    price = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)


class OrderItemDTO(BaseModel):
    id: str | None = None
    order_id: str | None = None
    item_id: str | None = None
    variation_id: str | None = None
    line_index: int | None = None
    quantity: int | None = None
    price: Decimal | None = None
    notes: str | None = None
    created_at: datetime | None = None


class OrderLineDetailsDTO(BaseModel):
    """An order line together with the add-ons captured for it."""
    line: OrderItemDTO
    addons: list[OrderItemAddonDTO] = []
