from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from exceptions.catalog import InvalidSelectionException, InvalidCatalogDataException
from models.cart import CustomizationDTO
from models.menu_item import MenuItemDTO
from services.catalog import CatalogSnapshot
from utils.money import quantize_money


class ResolvedCustomization(BaseModel):
    menu_item: MenuItemDTO
    customization: CustomizationDTO
    effective_price: Decimal


class CustomizationResolver:
    """
    Pure pricing of a customized menu item.

    effective price = base price + variation delta + sum of add-on prices
    """

    @staticmethod
    def resolve(
        snapshot: CatalogSnapshot,
        item_id: str,
        variation_id: str | None = None,
        addon_ids: Iterable[str] = ()
    ) -> ResolvedCustomization:
        """
        Resolve a selection against the catalog snapshot.

        Args:
            snapshot: Catalog snapshot to price against
            item_id: Menu item being customized
            variation_id: Chosen variation, or None for no sizing choice
            addon_ids: Chosen add-ons; duplicates collapse, first-choice order kept

        Returns:
            ResolvedCustomization with the effective unit price

        Raises:
            MenuItemNotFoundException: item is not in the snapshot
            InvalidSelectionException: variation or add-on not offered by the item
        """
        item = snapshot.get_item(item_id)

        variation = None
        if variation_id is not None:
            variation = snapshot.find_variation(item_id, variation_id)
            if variation is None:
                raise InvalidSelectionException(item_id, variation_id=variation_id)

        addons = []
        unknown_addon_ids = []
        for addon_id in dict.fromkeys(addon_ids):
            addon = snapshot.find_addon(item_id, addon_id)
            if addon is None:
                unknown_addon_ids.append(addon_id)
            else:
                addons.append(addon)
        if unknown_addon_ids:
            raise InvalidSelectionException(item_id, addon_ids=unknown_addon_ids)

        customization = CustomizationDTO(variation=variation, addons=addons)
        return ResolvedCustomization(
            menu_item=item,
            customization=customization,
            effective_price=CustomizationResolver.effective_price(item, customization)
        )

    @staticmethod
    def effective_price(item: MenuItemDTO, customization: CustomizationDTO | None = None) -> Decimal:
        """Unit price of an item with an already-validated customization."""
        if customization is None:
            return quantize_money(item.price)
        if customization.variation is not None and customization.variation.price_delta < 0:
            raise InvalidCatalogDataException(
                "variation", customization.variation.id,
                f"price delta {customization.variation.price_delta} would reduce the price below the base price"
            )
        return quantize_money(item.price + customization.price_delta)

    @staticmethod
    def price_range(snapshot: CatalogSnapshot, item_id: str) -> tuple[Decimal, Decimal]:
        """
        Price range shown for a not-yet-customized item.

        Returns:
            (base price, base price + largest variation delta); both values
            are the base price when the item has no variations
        """
        item = snapshot.get_item(item_id)
        deltas = [variation.price_delta for variation in snapshot.get_variations(item_id)]
        max_delta = max(deltas + [Decimal("0")])
        return quantize_money(item.price), quantize_money(item.price + max_delta)
