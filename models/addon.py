# Add-ons are independent flat-price extras, offered by menu items through
# the menu_item_addons mapping table (many-to-many).
from decimal import Decimal
import uuid

from pydantic import BaseModel
from sqlalchemy import Column, String, Numeric, ForeignKey, CheckConstraint, PrimaryKeyConstraint

from models.base import Base


class Addon(Base):
    __tablename__ = 'addons'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_addon_price_non_negative'),
    )


class MenuItemAddon(Base):
    __tablename__ = 'menu_item_addons'

    item_id = Column(String(36), ForeignKey('menu_items.id', ondelete='CASCADE'), nullable=False)
    addon_id = Column(String(36), ForeignKey('addons.id', ondelete='CASCADE'), nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint('item_id', 'addon_id', name='pk_menu_item_addons'),
    )


class AddonDTO(BaseModel):
    id: str
    name: str
    price: Decimal = Decimal("0")
