import json
import logging
from decimal import Decimal
from typing import Iterable

from pydantic import ValidationError

import config
from exceptions.cart import CartStorageException
from models.cart import (
    CART_STORAGE_VERSION,
    CartLineDTO,
    CartLineKey,
    CartSnapshotDTO,
    CartTotalsDTO,
    CustomizationDTO,
    make_line_key,
)
from models.menu_item import MenuItemDTO
from models.notification import ToastDTO
from services.cart_storage import CartStorage
from services.catalog import CatalogSnapshot
from services.customization import CustomizationResolver
from services.notification import NotificationService
from utils.money import quantize_money


class CartStore:
    """
    The customer's cart: an ordered list of (item, customization, quantity)
    lines with derived totals.

    One CartStore is constructed per browsing session and handed to whoever
    needs the cart. Every mutation writes the full line list to `storage`
    synchronously; construction rehydrates from it. Unreadable stored state
    gives an empty cart rather than an error.

    Lines are identified by (item id, variation id, sorted add-on ids): the
    same item with a different add-on set is a separate line with its own
    unit price.
    """

    def __init__(
        self,
        storage: CartStorage,
        notification_service: NotificationService | None = None,
        storage_key: str | None = None,
        tax_rate: Decimal | None = None
    ):
        self.storage = storage
        self.notification_service = notification_service
        self.storage_key = storage_key or config.CART_STORAGE_KEY
        self.tax_rate = Decimal(tax_rate) if tax_rate is not None else config.TAX_RATE
        self._lines: list[CartLineDTO] = self._load()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def lines(self) -> tuple[CartLineDTO, ...]:
        return tuple(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def subtotal(self) -> Decimal:
        return quantize_money(sum((line.unit_price * line.quantity for line in self._lines), Decimal("0")))

    @property
    def tax(self) -> Decimal:
        return quantize_money(self.subtotal * self.tax_rate)

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax

    def totals(self) -> CartTotalsDTO:
        subtotal = self.subtotal
        tax = quantize_money(subtotal * self.tax_rate)
        return CartTotalsDTO(subtotal=subtotal, tax=tax, total=subtotal + tax, item_count=self.item_count)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_line(
        self,
        menu_item: MenuItemDTO,
        quantity: int = 1,
        customization: CustomizationDTO | None = None,
        unit_price: Decimal | None = None
    ) -> CartLineDTO | None:
        """
        Add `quantity` of a (customized) item, merging into the matching line.

        Args:
            menu_item: Item being added
            quantity: Positive integer; anything else is ignored (no-op)
            customization: Chosen variation/add-ons, None for the plain item
            unit_price: Already-resolved effective price; computed if omitted

        Returns:
            The resulting cart line, or None if the input was rejected
        """
        if not _is_positive_int(quantity):
            logging.warning(f"Ignoring add_line for item {menu_item.id} with invalid quantity {quantity!r}")
            return None

        customization = customization or CustomizationDTO()
        if unit_price is None:
            unit_price = CustomizationResolver.effective_price(menu_item, customization)

        key = make_line_key(menu_item.id, customization.variation_id, customization.addon_ids)
        index = self._index_of(key)
        if index is None:
            line = CartLineDTO(
                menu_item=menu_item,
                customization=customization,
                unit_price=quantize_money(unit_price),
                quantity=quantity
            )
            self._lines.append(line)
        else:
            existing = self._lines[index]
            line = existing.model_copy(update={"quantity": existing.quantity + quantity})
            self._lines[index] = line

        self._persist()
        self._confirm_added(menu_item, quantity, customization)
        return line

    def add_selection(
        self,
        snapshot: CatalogSnapshot,
        item_id: str,
        variation_id: str | None = None,
        addon_ids: Iterable[str] = (),
        quantity: int = 1
    ) -> CartLineDTO | None:
        """
        Resolve a selection against the catalog and add it.

        Raises:
            InvalidSelectionException: variation or add-on not offered by the item
        """
        resolved = CustomizationResolver.resolve(snapshot, item_id, variation_id, addon_ids)
        return self.add_line(
            resolved.menu_item,
            quantity=quantity,
            customization=resolved.customization,
            unit_price=resolved.effective_price
        )

    def remove_line(self, item_id: str, variation_id: str | None = None, addon_ids: Iterable[str] = ()) -> None:
        key = make_line_key(item_id, variation_id, addon_ids)
        index = self._index_of(key)
        if index is None:
            return
        del self._lines[index]
        self._persist()

    def update_quantity(
        self,
        item_id: str,
        new_quantity: int,
        variation_id: str | None = None,
        addon_ids: Iterable[str] = ()
    ) -> None:
        """Set a line's quantity; an integer below 1 removes the line, a non-integer is ignored."""
        if not isinstance(new_quantity, int) or isinstance(new_quantity, bool):
            logging.warning(f"Ignoring update_quantity for item {item_id} with invalid quantity {new_quantity!r}")
            return
        if new_quantity < 1:
            self.remove_line(item_id, variation_id, addon_ids)
            return

        key = make_line_key(item_id, variation_id, addon_ids)
        index = self._index_of(key)
        if index is None:
            return
        self._lines[index] = self._lines[index].model_copy(update={"quantity": new_quantity})
        self._persist()

    def clear(self) -> None:
        self._lines = []
        self._persist()

    def reload(self) -> None:
        """Re-read the stored cart, picking up whatever another writer stored last."""
        self._lines = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        return CartSnapshotDTO(version=CART_STORAGE_VERSION, lines=self._lines).model_dump_json()

    def _persist(self) -> None:
        try:
            self.storage.set(self.storage_key, self.serialize())
        except CartStorageException as e:
            # The in-memory cart stays usable; the next successful write stores it
            logging.error(f"Failed to persist cart '{self.storage_key}': {e}")

    def _load(self) -> list[CartLineDTO]:
        try:
            raw = self.storage.get(self.storage_key)
        except CartStorageException as e:
            logging.error(f"Failed to read cart '{self.storage_key}', starting empty: {e}")
            return []
        if not raw:
            return []

        try:
            return deserialize_cart(raw)
        except (ValueError, TypeError, KeyError) as e:
            # json.JSONDecodeError and pydantic.ValidationError are ValueErrors
            logging.warning(f"Stored cart '{self.storage_key}' is unreadable, starting empty: {e}")
            return []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _index_of(self, key: CartLineKey) -> int | None:
        return next((i for i, line in enumerate(self._lines) if line.key == key), None)

    def _confirm_added(self, menu_item: MenuItemDTO, quantity: int, customization: CustomizationDTO) -> None:
        if self.notification_service is None:
            return
        self.notification_service.notify(NotificationService.cart_item_added(menu_item, quantity, customization))


def deserialize_cart(raw: str) -> list[CartLineDTO]:
    """
    Parse a stored cart.

    Accepts the versioned layout {"version": 1, "lines": [...]} and the
    older bare array of {"menuItem": {...}, "quantity": n} records.

    Raises:
        ValueError: unparsable JSON, invalid records or unknown version
    """
    data = json.loads(raw)

    if isinstance(data, list):
        return [_legacy_record_to_line(record) for record in data]

    snapshot = CartSnapshotDTO.model_validate(data)
    if snapshot.version > CART_STORAGE_VERSION:
        raise ValueError(f"Unsupported cart storage version {snapshot.version}")
    return snapshot.lines


def _legacy_record_to_line(record: dict) -> CartLineDTO:
    item_data = dict(record["menuItem"])
    if "category" in item_data and "category_id" not in item_data:
        item_data["category_id"] = item_data.pop("category")
    try:
        menu_item = MenuItemDTO.model_validate(item_data)
        return CartLineDTO(
            menu_item=menu_item,
            unit_price=quantize_money(menu_item.price),
            quantity=record["quantity"]
        )
    except ValidationError as e:
        raise ValueError(f"Invalid legacy cart record: {e}") from e


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1
