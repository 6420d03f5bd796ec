from datetime import datetime
from decimal import Decimal
import uuid

from pydantic import BaseModel
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Index, func

from models.base import Base


class OrderItemAddon(Base):
    __tablename__ = 'order_item_addons'

    __table_args__ = (
        Index('ix_order_item_addons_order_item_id', 'order_item_id'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_item_id = Column(String(36), ForeignKey('order_items.id', ondelete='CASCADE'), nullable=False)
    addon_id = Column(String(36), ForeignKey('addons.id', ondelete='SET NULL'), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)  # Add-on price at submission time
    created_at = Column(DateTime, default=func.now(), nullable=False)


class OrderItemAddonDTO(BaseModel):
    id: str | None = None
    order_item_id: str | None = None
    addon_id: str | None = None
    price: Decimal | None = None
    created_at: datetime | None = None
