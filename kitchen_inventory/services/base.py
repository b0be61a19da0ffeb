"""Base service class with common functionality for inventory services."""

from typing import Any

from kitchen_inventory.models.events import InventoryEvent
from kitchen_inventory.state.events import EventSink, InMemoryEventSink
from kitchen_inventory.utils.logging import ServiceLogger


class BaseService:
    """Base class for services that mirror their activity to an event sink."""

    def __init__(self, service_id: str, event_sink: EventSink | None = None):
        self.service_id = service_id
        self.event_sink: EventSink = event_sink if event_sink is not None else InMemoryEventSink()
        self.logger = ServiceLogger(service_id)

    async def record_event(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        key: str,
        aggregate_id: str,
        aggregate_type: str,
    ) -> InventoryEvent | None:
        """
        Append an event to the sink on a best-effort basis.

        In-memory state is the source of truth; the sink is a mirror. A failed
        append is logged and ``None`` is returned, it never rolls back state.

        Args:
            event_type: Dotted event name, e.g. ``inventory.batch.created``
            payload: JSON-serializable event body
            key: Idempotency key for the event
            aggregate_id: Identifier of the entity the event belongs to
            aggregate_type: Kind of entity, e.g. ``inventory_item``

        Returns:
            The stored event, or None if the append failed
        """
        try:
            return await self.event_sink.append(
                event_type,
                payload,
                key=key,
                aggregate_id=aggregate_id,
                aggregate_type=aggregate_type,
            )
        except Exception as e:
            self.logger.log_event_failure(event_type=event_type, error=str(e), key=key)
            return None
