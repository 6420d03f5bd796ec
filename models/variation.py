from decimal import Decimal
import uuid

from pydantic import BaseModel
from sqlalchemy import Column, String, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.base import Base


class Variation(Base):
    """Size/type option of exactly one menu item, priced as a delta on the base price."""
    __tablename__ = 'menu_item_variations'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    item_id = Column(String(36), ForeignKey('menu_items.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    # No check constraint: a negative delta is surfaced as a data error when
    # the catalog snapshot is built instead of being rejected on write
    price_delta = Column(Numeric(10, 2), nullable=False, default=0)

    menu_item = relationship("MenuItem", back_populates="variations")

    __table_args__ = (
        Index('ix_menu_item_variations_item_id', 'item_id'),
    )


class VariationDTO(BaseModel):
    id: str
    item_id: str | None = None
    name: str
    price_delta: Decimal = Decimal("0")
