"""Inventory catalog, sale and adjustment models."""

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class OversellPolicy(str, Enum):
    """What the ledger does when a sale needs more stock than is on hand."""

    BLOCK = "block"
    ALLOW_NEGATIVE_ALERT = "allow_negative_alert"


class InventoryCategory(str, Enum):
    """Inventory item categories."""

    FOOD_PERISHABLE = "food_perishable"
    FOOD_NON_PERISHABLE = "food_non_perishable"
    BEVERAGES = "beverages"
    ALCOHOL = "alcohol"
    PACKAGING = "packaging"
    CLEANING_SUPPLIES = "cleaning_supplies"
    EQUIPMENT = "equipment"
    OTHER = "other"


class InventoryItem(BaseModel):
    """Catalog configuration for a stocked SKU."""

    sku: str
    name: str
    unit: str = "each"
    category: InventoryCategory = InventoryCategory.OTHER
    reorder_point: float | None = Field(default=None, ge=0)
    reorder_quantity: float | None = Field(default=None, ge=0)
    max_stock_level: float | None = Field(default=None, ge=0)
    cost_per_unit: float | None = Field(default=None, ge=0)
    last_order_cost: float | None = Field(default=None, ge=0)
    primary_supplier_id: str | None = None
    is_active: bool = True
    notes: str | None = None

    @property
    def has_reorder_config(self) -> bool:
        """Check if the item takes part in reorder scans."""
        return bool(self.reorder_point) and bool(self.reorder_quantity)

    @property
    def estimated_unit_cost(self) -> float:
        """Last order cost, falling back to standard cost, falling back to 0."""
        return self.last_order_cost or self.cost_per_unit or 0.0


class ComponentRequirement(BaseModel):
    """Raw material needed to fulfil a sale."""

    sku: str
    qty: float = Field(ge=0)


class SaleLine(BaseModel):
    """Individual line of a recorded sale."""

    sku: str | None = None
    name: str
    qty: float = Field(ge=0)
    price: float = 0.0
    tax_rate: float = 0.0


class SalePayload(BaseModel):
    """A recorded sale handed over by the point of sale."""

    ticket_id: str = Field(default_factory=lambda: str(uuid4()))
    lines: list[SaleLine] = Field(default_factory=list)
    customer_id: str | None = None


class InventoryAdjustment(BaseModel):
    """Quantity change applied to one SKU."""

    sku: str
    old_qty: float
    new_qty: float
    delta: float


class AdjustmentReport(BaseModel):
    """
    Outcome of applying a sale to the ledger.

    ``alerts`` stays ``None`` when nothing noteworthy happened, as opposed to
    an empty list.
    """

    adjustments: list[InventoryAdjustment] = Field(default_factory=list)
    alerts: list[str] | None = None
