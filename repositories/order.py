from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush, session_refresh
from enums.order_status import OrderStatus
from models.order import Order, OrderDTO


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, session: AsyncSession) -> OrderDTO:
        order = Order(**order_dto.model_dump(exclude_none=True))
        session.add(order)
        await session_flush(session)
        await session_refresh(session, order)
        return OrderDTO.model_validate(order, from_attributes=True)

    @staticmethod
    async def get_by_id(order_id: str, session: AsyncSession) -> OrderDTO | None:
        stmt = select(Order).where(Order.id == order_id)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_order_number(order_number: str, session: AsyncSession) -> OrderDTO | None:
        stmt = select(Order).where(Order.order_number == order_number)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_user_id(user_id: str, session: AsyncSession) -> list[OrderDTO]:
        stmt = select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def get_all(session: AsyncSession, status: OrderStatus | None = None) -> list[OrderDTO]:
        stmt = select(Order).order_by(Order.created_at.desc())
        if status is not None:
            stmt = stmt.where(Order.status == status)
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def update_status(order_id: str, status: OrderStatus, session: AsyncSession) -> int:
        """Single-row status update. Returns the number of rows touched (0 or 1)."""
        stmt = update(Order).where(Order.id == order_id).values(status=status)
        result = await session_execute(stmt, session)
        return result.rowcount
