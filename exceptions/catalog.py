"""
Catalog and customization exceptions.
"""

from .base import OrderPipelineException


class CatalogException(OrderPipelineException):
    """Base exception for catalog-related errors."""
    pass


class MenuItemNotFoundException(CatalogException):
    """Raised when a menu item is not part of the catalog snapshot."""

    def __init__(self, item_id: str):
        super().__init__(
            f"Menu item {item_id} not found",
            details={'item_id': item_id}
        )
        self.item_id = item_id


class InvalidSelectionException(CatalogException):
    """
    Raised when a chosen variation or add-on is not offered by the item.

    Local and non-retryable: surfaced as a form error on the item dialog.
    """

    def __init__(self, item_id: str, variation_id: str | None = None, addon_ids: list[str] | None = None):
        if variation_id is not None:
            message = f"Variation {variation_id} is not available for item {item_id}"
        else:
            message = f"Add-on(s) {', '.join(addon_ids or [])} not available for item {item_id}"
        super().__init__(
            message,
            details={'item_id': item_id, 'variation_id': variation_id, 'addon_ids': addon_ids or []}
        )
        self.item_id = item_id
        self.variation_id = variation_id
        self.addon_ids = addon_ids or []


class InvalidCatalogDataException(CatalogException):
    """Raised when catalog data violates a pricing rule (e.g. negative variation delta)."""

    def __init__(self, entity: str, entity_id: str, reason: str):
        super().__init__(
            f"Invalid catalog data for {entity} {entity_id}: {reason}",
            details={'entity': entity, 'entity_id': entity_id, 'reason': reason}
        )
        self.entity = entity
        self.entity_id = entity_id
        self.reason = reason
