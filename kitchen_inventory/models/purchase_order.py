"""Purchase order models."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from kitchen_inventory.models.alerts import UrgencyLevel, utcnow


class PurchaseOrderStatus(str, Enum):
    """Purchase order progression."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    PARTIALLY_RECEIVED = "partially_received"
    FULLY_RECEIVED = "fully_received"
    CANCELLED = "cancelled"


class PurchaseOrderItem(BaseModel):
    """Line item on a purchase order."""

    sku: str
    name: str
    quantity_ordered: float = Field(ge=0)
    quantity_received: float | None = None
    unit_cost: float = Field(ge=0)
    total_cost: float = Field(ge=0)
    unit: str = "each"


class PurchaseOrder(BaseModel):
    """Order placed with a supplier."""

    id: str = Field(default_factory=lambda: f"PO_{uuid4().hex[:12].upper()}")
    supplier_id: str
    location_id: str = "main"
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    order_date: datetime = Field(default_factory=utcnow)
    subtotal: float = Field(default=0.0, ge=0)
    total_amount: float = Field(default=0.0, ge=0)
    items: list[PurchaseOrderItem] = Field(default_factory=list)
    notes: str | None = None
    created_by: str
    triggered_by_alert: str | None = None


class ReorderRecommendation(BaseModel):
    """Suggested replenishment for a SKU at or below its reorder point."""

    sku: str
    item_name: str
    current_qty: float
    reorder_point: float
    recommended_order_qty: float
    urgency_level: UrgencyLevel
    estimated_cost: float
    primary_supplier: str | None = None
