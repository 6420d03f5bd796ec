# The cart has no server-side representation until it is submitted: these are
# value objects only, persisted as JSON through a CartStorage backend.
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from models.addon import AddonDTO
from models.menu_item import MenuItemDTO
from models.variation import VariationDTO
from utils.money import quantize_money

CART_STORAGE_VERSION = 1

CartLineKey = tuple[str, str | None, tuple[str, ...]]


class CustomizationDTO(BaseModel):
    """Chosen variation plus chosen add-on set of one cart or order line."""
    variation: VariationDTO | None = None
    addons: list[AddonDTO] = Field(default_factory=list)

    @field_validator('addons')
    @classmethod
    def unique_addons(cls, addons: list[AddonDTO]) -> list[AddonDTO]:
        """Add-ons form an ordered set: selecting one twice is a no-op."""
        seen = set()
        unique = []
        for addon in addons:
            if addon.id not in seen:
                seen.add(addon.id)
                unique.append(addon)
        return unique

    @property
    def variation_id(self) -> str | None:
        return self.variation.id if self.variation is not None else None

    @property
    def addon_ids(self) -> tuple[str, ...]:
        return tuple(addon.id for addon in self.addons)

    @property
    def price_delta(self) -> Decimal:
        delta = self.variation.price_delta if self.variation is not None else Decimal("0")
        return delta + sum((addon.price for addon in self.addons), Decimal("0"))

    def is_empty(self) -> bool:
        return self.variation is None and not self.addons

    def describe(self) -> str:
        """
        Human-readable descriptor, e.g. "Large, Extra cheese, Bacon".

        Empty string for an uncustomized line.
        """
        parts = []
        if self.variation is not None:
            parts.append(self.variation.name)
        parts.extend(addon.name for addon in self.addons)
        return ", ".join(parts)


class CartLineDTO(BaseModel):
    menu_item: MenuItemDTO
    customization: CustomizationDTO = Field(default_factory=CustomizationDTO)
    # Effective unit price resolved when the line was added
    unit_price: Decimal
    quantity: int = Field(ge=1)

    @property
    def key(self) -> CartLineKey:
        """Line identity: item, variation and the sorted add-on ids."""
        return make_line_key(self.menu_item.id, self.customization.variation_id, self.customization.addon_ids)

    @property
    def line_total(self) -> Decimal:
        return quantize_money(self.unit_price * self.quantity)


class CartSnapshotDTO(BaseModel):
    """Persisted layout of a cart under its storage key."""
    version: int = CART_STORAGE_VERSION
    lines: list[CartLineDTO] = Field(default_factory=list)


class CartTotalsDTO(BaseModel):
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    item_count: int


def make_line_key(item_id: str, variation_id: str | None = None, addon_ids=()) -> CartLineKey:
    return item_id, variation_id, tuple(sorted(set(addon_ids)))
