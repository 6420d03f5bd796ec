from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush, session_refresh
from models.order_item import OrderItem, OrderItemDTO


class OrderItemRepository:
    @staticmethod
    async def create_many(order_items: list[OrderItemDTO], session: AsyncSession) -> list[OrderItemDTO]:
        """Insert order lines, returning them (with ids) in input order."""
        rows = [OrderItem(**order_item_dto.model_dump(exclude_none=True)) for order_item_dto in order_items]
        session.add_all(rows)
        await session_flush(session)
        for row in rows:
            await session_refresh(session, row)
        return [OrderItemDTO.model_validate(row, from_attributes=True) for row in rows]

    @staticmethod
    async def get_by_order_id(order_id: str, session: AsyncSession) -> list[OrderItemDTO]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.line_index)
        order_items = await session_execute(stmt, session)
        return [OrderItemDTO.model_validate(order_item, from_attributes=True) for order_item in order_items.scalars().all()]

    @staticmethod
    async def count_by_order_id(order_id: str, session: AsyncSession) -> int:
        stmt = select(func.count(OrderItem.id)).where(OrderItem.order_id == order_id)
        result = await session_execute(stmt, session)
        return result.scalar_one()
