"""In-memory inventory catalog of item configuration."""

from typing import Iterable

from kitchen_inventory.models.inventory import InventoryItem


class InventoryCatalog:
    """Item configuration per SKU: names, reorder settings, costs, suppliers."""

    def __init__(self, items: Iterable[InventoryItem] | None = None):
        self._items: dict[str, InventoryItem] = {}
        for item in items or []:
            self.upsert(item)

    def upsert(self, item: InventoryItem) -> None:
        """Add or replace an item."""
        self._items[item.sku] = item

    def get(self, sku: str) -> InventoryItem | None:
        """Get an item by SKU."""
        return self._items.get(sku)

    def remove(self, sku: str) -> bool:
        """Remove an item. Returns False if it was not present."""
        return self._items.pop(sku, None) is not None

    def items(self, include_inactive: bool = False) -> list[InventoryItem]:
        """All items, active ones only by default."""
        return [
            item for item in self._items.values() if include_inactive or item.is_active
        ]

    def name_for(self, sku: str) -> str:
        """Display name for a SKU, the SKU itself when unknown."""
        item = self.get(sku)
        return item.name if item else sku

    def category_for(self, sku: str) -> str:
        """Category value for a SKU, ``uncategorized`` when unknown."""
        item = self.get(sku)
        return item.category.value if item else "uncategorized"

    def __contains__(self, sku: object) -> bool:
        return sku in self._items

    def __len__(self) -> int:
        return len(self._items)
