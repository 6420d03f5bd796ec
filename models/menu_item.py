# A menu item is an immutable catalog fact from the pipeline's point of view.
# Rows are created and updated by catalog management only; the order pipeline
# reads them into a CatalogSnapshot and never writes them.
from datetime import datetime
from decimal import Decimal
import uuid

from pydantic import BaseModel
from sqlalchemy import Column, String, Text, Numeric, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship

from models.base import Base


class MenuItem(Base):
    __tablename__ = 'menu_items'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String(500), nullable=True)
    category_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    variations = relationship("Variation", back_populates="menu_item", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_menu_item_price_non_negative'),
    )


class MenuItemDTO(BaseModel):
    id: str
    name: str
    description: str = ""
    price: Decimal
    image: str | None = None
    category_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
