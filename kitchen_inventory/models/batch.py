"""Batch and lot tracking models."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from kitchen_inventory.models.alerts import utcnow


class RotationMethod(str, Enum):
    """Order in which batches are drawn down."""

    FIFO = "FIFO"  # first in, first out
    LIFO = "LIFO"  # last in, first out
    FEFO = "FEFO"  # first expired, first out


class ConsumptionReason(str, Enum):
    """Why stock left a batch."""

    SALE = "sale"
    WASTE = "waste"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"


class BatchReceipt(BaseModel):
    """Information supplied when a batch is received."""

    quantity: float = Field(ge=0)
    received_date: datetime = Field(default_factory=utcnow)
    expiration_date: datetime | None = None
    cost_per_unit: float = Field(default=0.0, ge=0)
    supplier_id: str | None = None
    lot_number: str | None = None
    notes: str | None = None

    @field_validator("received_date", "expiration_date")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC so they compare with the clock."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class Batch(BatchReceipt):
    """A quantity-bearing lot of one SKU."""

    batch_id: str
    sku: str
    location_id: str = "main"
    is_expired: bool = False


class BatchConsumption(BaseModel):
    """A single draw from a batch."""

    batch_id: str
    quantity_consumed: float
    consumed_date: datetime = Field(default_factory=utcnow)
    reason: ConsumptionReason = ConsumptionReason.SALE
    notes: str | None = None


class ConsumptionResult(BaseModel):
    """Outcome of drawing a quantity of one SKU from its batches."""

    sku: str
    requested: float
    consumptions: list[BatchConsumption] = Field(default_factory=list)
    shortfall: float = 0.0

    @property
    def consumed(self) -> float:
        """Total quantity actually drawn."""
        return sum(c.quantity_consumed for c in self.consumptions)

    @property
    def fulfilled(self) -> bool:
        """Check if the full quantity was available."""
        return self.shortfall <= 0


class WasteRecord(BaseModel):
    """Stock written off from a batch."""

    batch_id: str
    sku: str
    quantity: float
    reason: str
    marked_by: str
    waste_date: datetime = Field(default_factory=utcnow)
    waste_value: float


class CategoryWaste(BaseModel):
    """Waste totals for one category."""

    quantity: float = 0.0
    value: float = 0.0


class ExpirationAnalytics(BaseModel):
    """Summary of batch freshness across all tracked stock."""

    total_batches: int = 0
    batches_expiring_soon: int = 0
    batches_expired: int = 0
    total_waste_value: float = 0.0
    written_off_value: float = 0.0
    waste_by_category: dict[str, CategoryWaste] = Field(default_factory=dict)
    average_shelf_life: float = 0.0  # days
    rotation_efficiency: float = 100.0  # percent


class BatchTraceability(BaseModel):
    """Full history of a batch."""

    batch: Batch | None = None
    consumptions: list[BatchConsumption] = Field(default_factory=list)
    waste: list[WasteRecord] = Field(default_factory=list)
    alert_ids: list[str] = Field(default_factory=list)
    total_consumed: float = 0.0
    remaining_quantity: float = 0.0
