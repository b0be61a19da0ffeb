"""Inventory services."""

from kitchen_inventory.services.base import BaseService
from kitchen_inventory.services.batch_tracker import BatchTracker
from kitchen_inventory.services.catalog import InventoryCatalog
from kitchen_inventory.services.inventory_service import (
    AutoReorderResult,
    InventoryDashboard,
    InventoryService,
    ReceivedItem,
    SaleOutcome,
)
from kitchen_inventory.services.ledger import InventoryLedger, OversellError
from kitchen_inventory.services.policy import OversellPolicyStore
from kitchen_inventory.services.recipes import RecipeResolver, RecipeTable
from kitchen_inventory.services.reorder_monitor import ReorderMonitor

__all__ = [
    "BaseService",
    "BatchTracker",
    "InventoryCatalog",
    "InventoryLedger",
    "InventoryService",
    "InventoryDashboard",
    "OversellError",
    "OversellPolicyStore",
    "ReceivedItem",
    "RecipeResolver",
    "RecipeTable",
    "ReorderMonitor",
    "SaleOutcome",
    "AutoReorderResult",
]
