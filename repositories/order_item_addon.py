from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from models.order_item_addon import OrderItemAddon, OrderItemAddonDTO


class OrderItemAddonRepository:
    @staticmethod
    async def create_many(addons: list[OrderItemAddonDTO], session: AsyncSession) -> None:
        session.add_all([OrderItemAddon(**addon_dto.model_dump(exclude_none=True)) for addon_dto in addons])
        await session_flush(session)

    @staticmethod
    async def get_by_order_item_ids(order_item_ids: list[str], session: AsyncSession) -> list[OrderItemAddonDTO]:
        if not order_item_ids:
            return []
        stmt = select(OrderItemAddon).where(OrderItemAddon.order_item_id.in_(order_item_ids))
        addons = await session_execute(stmt, session)
        return [OrderItemAddonDTO.model_validate(addon, from_attributes=True) for addon in addons.scalars().all()]
