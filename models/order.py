from datetime import datetime
from decimal import Decimal
import uuid

from pydantic import BaseModel
from sqlalchemy import Column, String, Numeric, DateTime, Text, func, CheckConstraint, Enum as SQLEnum

from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from models.base import Base


def _enum_values(enum_cls) -> list[str]:
    # Store the lowercase wire values ("pending"), not the member names
    return [member.value for member in enum_cls]


class Order(Base):
    __tablename__ = 'orders'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    # Human-readable ORD-<timestamp>-<random>, generated at submission time
    order_number = Column(String(32), nullable=False, unique=True)
    status = Column(
        SQLEnum(OrderStatus, values_callable=_enum_values, name="order_status"),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True
    )
    total_amount = Column(Numeric(10, 2), nullable=False)

    # Delivery info captured by the checkout flow
    delivery_address = Column(Text, nullable=True)
    delivery_phone = Column(String(32), nullable=True)
    delivery_notes = Column(Text, nullable=True)
    payment_method = Column(
        SQLEnum(PaymentMethod, values_callable=_enum_values, name="payment_method"),
        nullable=False,
        default=PaymentMethod.PAY_ON_DELIVERY
    )

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('total_amount >= 0', name='check_order_total_amount_non_negative'),
    )


class OrderDTO(BaseModel):
    id: str | None = None
    user_id: str | None = None
    order_number: str | None = None
    status: OrderStatus | None = None
    total_amount: Decimal | None = None
    delivery_address: str | None = None
    delivery_phone: str | None = None
    delivery_notes: str | None = None
    payment_method: PaymentMethod | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderReceiptDTO(BaseModel):
    """What the customer sees after a successful submission."""
    order_id: str
    order_number: str
    total: Decimal
    line_count: int


class OrderStatusEventDTO(BaseModel):
    """Pushed over the order status channel after a status write."""
    order_id: str
    order_number: str | None = None
    user_id: str
    previous_status: OrderStatus | None = None
    new_status: OrderStatus
    changed_by: str | None = None
    changed_at: datetime

    @property
    def display_number(self) -> str:
        return self.order_number or self.order_id[:8]
