"""Reorder and expiration alert models."""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class AlertStatus(str, Enum):
    """Alert lifecycle states."""

    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"

    @property
    def is_open(self) -> bool:
        """Resolved and dismissed are terminal."""
        return self in (AlertStatus.ACTIVE, AlertStatus.ACKNOWLEDGED)


class UrgencyLevel(str, Enum):
    """Coarse alert severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Numeric rank, critical highest."""
        return _URGENCY_RANK[self]


_URGENCY_RANK = {
    UrgencyLevel.LOW: 1,
    UrgencyLevel.MEDIUM: 2,
    UrgencyLevel.HIGH: 3,
    UrgencyLevel.CRITICAL: 4,
}


class ReorderAlert(BaseModel):
    """Raised when a SKU falls to or below its reorder point."""

    id: str = Field(default_factory=lambda: f"alert_{uuid4().hex[:12]}")
    sku: str
    item_name: str
    current_quantity: float
    reorder_point: float
    reorder_quantity: float
    location_id: str = "main"
    status: AlertStatus = AlertStatus.ACTIVE
    urgency_level: UrgencyLevel
    created_date: datetime = Field(default_factory=utcnow)

    # Audit
    acknowledged_by: str | None = None
    acknowledged_date: datetime | None = None
    resolved_by: str | None = None
    resolved_date: datetime | None = None
    dismissed_by: str | None = None
    dismissed_date: datetime | None = None
    notes: str | None = None


class ExpirationAlert(BaseModel):
    """Raised for a batch that is expiring soon or has just expired."""

    id: str = Field(default_factory=lambda: f"exp_alert_{uuid4().hex[:12]}")
    sku: str
    item_name: str
    batch_id: str
    quantity: float
    expiration_date: datetime
    days_until_expiration: int
    location_id: str = "main"
    status: AlertStatus = AlertStatus.ACTIVE
    urgency_level: UrgencyLevel
    created_date: datetime = Field(default_factory=utcnow)
    notes: str | None = None
