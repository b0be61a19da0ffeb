"""Event envelope handed to the external event sink."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from kitchen_inventory.models.alerts import utcnow


class InventoryEvent(BaseModel):
    """Append-only record of something the core did."""

    id: UUID = Field(default_factory=uuid4)
    type: str
    at: datetime = Field(default_factory=utcnow)
    key: str
    aggregate_id: str
    aggregate_type: str
    payload: dict[str, Any] = Field(default_factory=dict)
