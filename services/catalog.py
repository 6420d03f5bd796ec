import logging
from datetime import datetime
from types import MappingProxyType
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from exceptions.catalog import MenuItemNotFoundException, InvalidCatalogDataException
from models.addon import AddonDTO
from models.menu_item import MenuItemDTO
from models.variation import VariationDTO
from repositories.catalog import CatalogRepository


class CatalogSnapshot:
    """
    Read-only lookup of menu items, their variations and their add-ons,
    keyed by item id, as fetched at one point in time.

    Pricing rules are checked while the snapshot is built: a variation with
    a negative price delta or an add-on with a negative price is a data
    error and raises InvalidCatalogDataException instead of being clamped.
    """

    def __init__(
        self,
        items: dict[str, MenuItemDTO],
        variations_by_item: dict[str, tuple[VariationDTO, ...]],
        addons_by_item: dict[str, tuple[AddonDTO, ...]],
        taken_at: datetime | None = None
    ):
        self._items = MappingProxyType(dict(items))
        self._variations = MappingProxyType(dict(variations_by_item))
        self._addons = MappingProxyType(dict(addons_by_item))
        self.taken_at = taken_at or datetime.now()

    @classmethod
    def build(
        cls,
        items: Iterable[MenuItemDTO],
        variations: Iterable[VariationDTO] = (),
        addons_by_item: dict[str, list[AddonDTO]] | None = None
    ) -> 'CatalogSnapshot':
        items_by_id = {item.id: item for item in items}

        variations_by_item: dict[str, list[VariationDTO]] = {}
        for variation in variations:
            if variation.item_id not in items_by_id:
                logging.warning(f"Variation {variation.id} references unknown item {variation.item_id} - skipped")
                continue
            if variation.price_delta < 0:
                raise InvalidCatalogDataException(
                    "variation", variation.id,
                    f"price delta {variation.price_delta} would reduce the price below the base price"
                )
            variations_by_item.setdefault(variation.item_id, []).append(variation)

        addons: dict[str, tuple[AddonDTO, ...]] = {}
        for item_id, item_addons in (addons_by_item or {}).items():
            if item_id not in items_by_id:
                logging.warning(f"Add-on mapping references unknown item {item_id} - skipped")
                continue
            for addon in item_addons:
                if addon.price < 0:
                    raise InvalidCatalogDataException("addon", addon.id, f"negative price {addon.price}")
            addons[item_id] = tuple(item_addons)

        return cls(
            items=items_by_id,
            variations_by_item={item_id: tuple(vs) for item_id, vs in variations_by_item.items()},
            addons_by_item=addons
        )

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def items(self) -> list[MenuItemDTO]:
        return list(self._items.values())

    def get_item(self, item_id: str) -> MenuItemDTO:
        item = self._items.get(item_id)
        if item is None:
            raise MenuItemNotFoundException(item_id)
        return item

    def get_variations(self, item_id: str) -> tuple[VariationDTO, ...]:
        return self._variations.get(item_id, ())

    def get_addons(self, item_id: str) -> tuple[AddonDTO, ...]:
        return self._addons.get(item_id, ())

    def find_variation(self, item_id: str, variation_id: str) -> VariationDTO | None:
        return next((v for v in self.get_variations(item_id) if v.id == variation_id), None)

    def find_addon(self, item_id: str, addon_id: str) -> AddonDTO | None:
        return next((a for a in self.get_addons(item_id) if a.id == addon_id), None)


class CatalogService:

    @staticmethod
    async def load_snapshot(session: AsyncSession, item_ids: list[str] | None = None) -> CatalogSnapshot:
        """
        Fetch items, variations and add-on mappings and freeze them into a
        CatalogSnapshot. Pass item_ids to restrict the snapshot to those items.
        """
        items = await CatalogRepository.get_menu_items(session, item_ids)
        variations = await CatalogRepository.get_variations(session, item_ids)
        addons_by_item = await CatalogRepository.get_item_addons(session, item_ids)

        snapshot = CatalogSnapshot.build(items, variations, addons_by_item)
        logging.info(
            f"Catalog snapshot loaded: {len(items)} items, {len(variations)} variations, "
            f"{sum(len(a) for a in addons_by_item.values())} add-on mappings"
        )
        return snapshot
