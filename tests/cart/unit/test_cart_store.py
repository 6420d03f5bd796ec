"""
Unit Tests: CartStore

Tests for services/cart.py covering:
- add_line() / add_selection() - merge rules and confirmation toasts
- remove_line() / update_quantity() / clear()
- subtotal / tax / total derived on every read
- Persistence: round trip, shared storage key, corrupt and legacy stored data
"""

import json
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from exceptions.cart import CartStorageException
from exceptions.catalog import InvalidSelectionException
from models.cart import CustomizationDTO
from models.menu_item import MenuItemDTO
from services.cart import CartStore
from services.cart_storage import InMemoryCartStorage


@pytest.fixture
def pizza():
    return MenuItemDTO(id="pizza", name="Margherita", price=Decimal("10.00"), category_id="mains")


@pytest.fixture
def soda():
    return MenuItemDTO(id="soda", name="Soda", price=Decimal("2.50"))


class TestAddLine:

    def test_same_plain_item_twice_merges(self, cart, soda):
        cart.add_line(soda)
        cart.add_line(soda)

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2

    def test_same_variation_merges(self, cart, snapshot):
        cart.add_selection(snapshot, "pizza", "large")
        cart.add_selection(snapshot, "pizza", "large", quantity=3)

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 4

    def test_different_variation_is_separate_line(self, cart, snapshot):
        cart.add_selection(snapshot, "pizza", "small")
        cart.add_selection(snapshot, "pizza", "large")

        assert [line.customization.variation_id for line in cart.lines] == ["small", "large"]

    def test_different_addon_set_is_separate_line(self, cart, snapshot):
        cart.add_selection(snapshot, "pizza", "large", ["cheese"])
        cart.add_selection(snapshot, "pizza", "large", ["bacon"])

        assert len(cart.lines) == 2
        assert [line.unit_price for line in cart.lines] == [Decimal("15.50"), Decimal("16.00")]

    def test_addon_order_does_not_matter_for_merge(self, cart, snapshot):
        cart.add_selection(snapshot, "pizza", None, ["cheese", "bacon"])
        cart.add_selection(snapshot, "pizza", None, ["bacon", "cheese"])

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True, None])
    def test_invalid_quantity_is_noop(self, cart, cart_storage, soda, toast_sink, quantity):
        assert cart.add_line(soda, quantity=quantity) is None

        assert cart.is_empty
        assert cart_storage.get("cart") is None
        assert toast_sink.toasts == []

    def test_confirmation_toast_names_customization(self, cart, snapshot, toast_sink):
        cart.add_selection(snapshot, "pizza", "large", ["cheese", "bacon"], quantity=2)

        assert len(toast_sink.toasts) == 1
        assert toast_sink.toasts[0].title == "Added to cart"
        assert "Margherita (Large, Extra cheese, Bacon)" in toast_sink.toasts[0].description

    def test_invalid_selection_leaves_cart_untouched(self, cart, snapshot):
        with pytest.raises(InvalidSelectionException):
            cart.add_selection(snapshot, "pizza", "family-size")

        assert cart.is_empty

    def test_unit_price_resolved_when_omitted(self, cart, pizza):
        from models.addon import AddonDTO
        customization = CustomizationDTO(addons=[AddonDTO(id="cheese", name="Extra cheese", price=Decimal("1.50"))])

        line = cart.add_line(pizza, customization=customization)

        assert line.unit_price == Decimal("11.50")


class TestQuantityBoundaries:

    def test_update_to_zero_removes_line(self, cart, soda):
        cart.add_line(soda, quantity=3)

        cart.update_quantity("soda", 0)

        assert cart.is_empty

    def test_update_to_negative_removes_line(self, cart, soda):
        cart.add_line(soda, quantity=3)

        cart.update_quantity("soda", -5)

        assert cart.is_empty
        assert json.loads(cart.serialize())["lines"] == []

    def test_update_sets_quantity(self, cart, snapshot):
        cart.add_selection(snapshot, "pizza", "large", ["cheese"])

        cart.update_quantity("pizza", 5, variation_id="large", addon_ids=["cheese"])

        assert cart.lines[0].quantity == 5

    def test_update_missing_line_is_noop(self, cart, soda):
        cart.add_line(soda)

        cart.update_quantity("pizza", 4)

        assert cart.item_count == 1

    @pytest.mark.parametrize("bad_quantity", [2.7, "3", None, True])
    def test_update_with_non_integer_is_noop(self, cart, soda, bad_quantity):
        cart.add_line(soda, quantity=3)

        cart.update_quantity("soda", bad_quantity)

        assert cart.lines[0].quantity == 3
        assert json.loads(cart.serialize())["lines"][0]["quantity"] == 3

    def test_remove_only_matching_variation(self, cart, snapshot):
        cart.add_selection(snapshot, "pizza", "small")
        cart.add_selection(snapshot, "pizza", "large")

        cart.remove_line("pizza", "small")

        assert [line.customization.variation_id for line in cart.lines] == ["large"]

    def test_remove_absent_line_is_noop(self, cart, soda):
        cart.add_line(soda)

        cart.remove_line("pizza")

        assert len(cart.lines) == 1


class TestTotals:

    def test_subtotal_tracks_every_mutation(self, cart, snapshot):
        def expected():
            return sum((line.unit_price * line.quantity for line in cart.lines), Decimal("0"))

        cart.add_selection(snapshot, "pizza", "large", ["cheese"], quantity=2)
        assert cart.subtotal == expected()
        cart.add_selection(snapshot, "soda", quantity=3)
        assert cart.subtotal == expected()
        cart.update_quantity("soda", 1)
        assert cart.subtotal == expected()
        cart.remove_line("pizza", "large", ["cheese"])
        assert cart.subtotal == expected() == Decimal("2.50")

    def test_tax_is_eight_percent(self, cart_storage):
        cart = CartStore(cart_storage)
        cart.add_line(MenuItemDTO(id="platter", name="Platter", price=Decimal("25.00")), quantity=4)

        assert cart.subtotal == Decimal("100.00")
        assert cart.tax == Decimal("8.00")
        assert cart.total == Decimal("108.00")

    def test_totals_snapshot(self, cart, soda):
        cart.add_line(soda, quantity=2)

        totals = cart.totals()

        assert totals.subtotal == Decimal("5.00")
        assert totals.tax == Decimal("0.40")
        assert totals.total == Decimal("5.40")
        assert totals.item_count == 2

    def test_tax_rounds_half_up(self, cart_storage):
        cart = CartStore(cart_storage)
        cart.add_line(MenuItemDTO(id="tea", name="Tea", price=Decimal("0.19")))

        # 0.19 * 0.08 = 0.0152
        assert cart.tax == Decimal("0.02")

    def test_empty_cart_totals_are_zero(self, cart):
        assert cart.subtotal == Decimal("0.00")
        assert cart.total == Decimal("0.00")
        assert cart.item_count == 0


class TestPersistence:

    def test_round_trip(self, cart_storage, snapshot):
        cart = CartStore(cart_storage)
        cart.add_selection(snapshot, "pizza", "large", ["bacon", "cheese"], quantity=2)
        cart.add_selection(snapshot, "soda")

        rehydrated = CartStore(cart_storage)

        assert rehydrated.lines == cart.lines
        assert rehydrated.total == cart.total

    def test_clear_persists_empty_cart(self, cart, cart_storage, soda):
        cart.add_line(soda)

        cart.clear()

        assert CartStore(cart_storage).is_empty

    def test_last_writer_wins_on_shared_key(self, soda, pizza):
        shared = {}
        tab_a = CartStore(InMemoryCartStorage(shared))
        tab_b = CartStore(InMemoryCartStorage(shared))

        tab_a.add_line(soda)
        tab_b.add_line(pizza)

        assert [line.menu_item.id for line in CartStore(InMemoryCartStorage(shared)).lines] == ["pizza"]
        tab_a.reload()
        assert [line.menu_item.id for line in tab_a.lines] == ["pizza"]

    @pytest.mark.parametrize("raw", [
        "not json",
        "{\"version\": 1, \"lines\": [{\"quantity\": 0}]}",
        "{\"version\": 99, \"lines\": []}",
        "[{\"menuItem\": {\"id\": \"x\"}, \"quantity\": 1}]",
        "42",
    ])
    def test_corrupt_storage_fails_open(self, raw):
        cart = CartStore(InMemoryCartStorage({"cart": raw}))

        assert cart.is_empty

    def test_legacy_layout_is_read(self):
        legacy = json.dumps([
            {"menuItem": {"id": "soda", "name": "Soda", "price": 2.5, "category": "drinks"}, "quantity": 2}
        ])

        cart = CartStore(InMemoryCartStorage({"cart": legacy}))

        assert cart.lines[0].menu_item.category_id == "drinks"
        assert cart.lines[0].quantity == 2
        assert cart.subtotal == Decimal("5.00")

    def test_storage_write_failure_keeps_cart_usable(self, soda):
        storage = MagicMock()
        storage.get.return_value = None
        storage.set.side_effect = CartStorageException("cart", "quota exceeded")
        cart = CartStore(storage)

        cart.add_line(soda)

        assert cart.item_count == 1

    def test_storage_read_failure_starts_empty(self):
        storage = MagicMock()
        storage.get.side_effect = CartStorageException("cart", "connection refused")

        assert CartStore(storage).is_empty

    def test_custom_storage_key(self, cart_storage, soda):
        cart = CartStore(cart_storage, storage_key="cart:user-1")

        cart.add_line(soda)

        assert cart_storage.get("cart:user-1") is not None
        assert cart_storage.get("cart") is None
