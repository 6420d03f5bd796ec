from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute
from models.addon import Addon, AddonDTO, MenuItemAddon
from models.menu_item import MenuItem, MenuItemDTO
from models.variation import Variation, VariationDTO


class CatalogRepository:
    """Read-only queries over menu items, variations and add-ons."""

    @staticmethod
    async def get_menu_items(session: AsyncSession, item_ids: list[str] | None = None) -> list[MenuItemDTO]:
        stmt = select(MenuItem).order_by(MenuItem.name)
        if item_ids is not None:
            stmt = stmt.where(MenuItem.id.in_(item_ids))
        result = await session_execute(stmt, session)
        return [MenuItemDTO.model_validate(item, from_attributes=True) for item in result.scalars().all()]

    @staticmethod
    async def get_variations(session: AsyncSession, item_ids: list[str] | None = None) -> list[VariationDTO]:
        stmt = select(Variation).order_by(Variation.item_id, Variation.price_delta, Variation.name)
        if item_ids is not None:
            stmt = stmt.where(Variation.item_id.in_(item_ids))
        result = await session_execute(stmt, session)
        return [VariationDTO.model_validate(variation, from_attributes=True) for variation in result.scalars().all()]

    @staticmethod
    async def get_item_addons(session: AsyncSession, item_ids: list[str] | None = None) -> dict[str, list[AddonDTO]]:
        """
        Add-ons offered per item.

        Returns:
            dict mapping item_id -> list of AddonDTO (ordered by name)
        """
        stmt = (
            select(MenuItemAddon.item_id, Addon)
            .join(Addon, Addon.id == MenuItemAddon.addon_id)
            .order_by(MenuItemAddon.item_id, Addon.name)
        )
        if item_ids is not None:
            stmt = stmt.where(MenuItemAddon.item_id.in_(item_ids))
        result = await session_execute(stmt, session)

        addons_by_item: dict[str, list[AddonDTO]] = {}
        for item_id, addon in result.all():
            addons_by_item.setdefault(item_id, []).append(AddonDTO.model_validate(addon, from_attributes=True))
        return addons_by_item
