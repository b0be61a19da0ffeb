"""Data models for the inventory core."""

from kitchen_inventory.models.alerts import (
    AlertStatus,
    ExpirationAlert,
    ReorderAlert,
    UrgencyLevel,
)
from kitchen_inventory.models.batch import (
    Batch,
    BatchConsumption,
    BatchReceipt,
    BatchTraceability,
    CategoryWaste,
    ConsumptionReason,
    ConsumptionResult,
    ExpirationAnalytics,
    RotationMethod,
    WasteRecord,
)
from kitchen_inventory.models.events import InventoryEvent
from kitchen_inventory.models.inventory import (
    AdjustmentReport,
    ComponentRequirement,
    InventoryAdjustment,
    InventoryCategory,
    InventoryItem,
    OversellPolicy,
    SaleLine,
    SalePayload,
)
from kitchen_inventory.models.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    ReorderRecommendation,
)

__all__ = [
    # Alerts
    "AlertStatus",
    "UrgencyLevel",
    "ReorderAlert",
    "ExpirationAlert",
    # Batches
    "Batch",
    "BatchReceipt",
    "BatchConsumption",
    "BatchTraceability",
    "CategoryWaste",
    "ConsumptionReason",
    "ConsumptionResult",
    "ExpirationAnalytics",
    "RotationMethod",
    "WasteRecord",
    # Events
    "InventoryEvent",
    # Inventory
    "AdjustmentReport",
    "ComponentRequirement",
    "InventoryAdjustment",
    "InventoryCategory",
    "InventoryItem",
    "OversellPolicy",
    "SaleLine",
    "SalePayload",
    # Purchasing
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
    "ReorderRecommendation",
]
