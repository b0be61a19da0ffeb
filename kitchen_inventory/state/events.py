"""Event sinks that mirror inventory activity to external storage."""

from typing import Any, Protocol

from kitchen_inventory.models.events import InventoryEvent
from kitchen_inventory.state.manager import StateManager
from kitchen_inventory.utils.logging import get_logger

logger = get_logger(__name__)


class EventSink(Protocol):
    """Append-only destination for inventory events."""

    async def append(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        key: str,
        aggregate_id: str,
        aggregate_type: str,
    ) -> InventoryEvent:
        """Append an event and return the stored envelope."""
        ...


class InMemoryEventSink:
    """Keeps events in process memory, in append order."""

    def __init__(self) -> None:
        self.events: list[InventoryEvent] = []

    async def append(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        key: str,
        aggregate_id: str,
        aggregate_type: str,
    ) -> InventoryEvent:
        """Append an event to the in-memory log."""
        event = InventoryEvent(
            type=event_type,
            key=key,
            aggregate_id=aggregate_id,
            aggregate_type=aggregate_type,
            payload=payload,
        )
        self.events.append(event)
        return event

    def of_type(self, event_type: str) -> list[InventoryEvent]:
        """Get all recorded events of one type."""
        return [event for event in self.events if event.type == event_type]

    def clear(self) -> None:
        """Drop all recorded events."""
        self.events.clear()


class RedisEventSink:
    """
    Appends events to per-type Redis lists and publishes them.

    Events land under ``{prefix}:{event_type}`` and are announced on the
    ``{prefix}`` channel so listeners can pick them up live.
    """

    def __init__(self, state_manager: StateManager, prefix: str = "events"):
        self.state_manager = state_manager
        self.prefix = prefix

    def stream_key(self, event_type: str) -> str:
        """Redis key of the list holding events of one type."""
        return f"{self.prefix}:{event_type}"

    async def append(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        key: str,
        aggregate_id: str,
        aggregate_type: str,
    ) -> InventoryEvent:
        """Append an event to Redis and publish it."""
        event = InventoryEvent(
            type=event_type,
            key=key,
            aggregate_id=aggregate_id,
            aggregate_type=aggregate_type,
            payload=payload,
        )
        message = event.model_dump_json()

        await self.state_manager.append(self.stream_key(event_type), message)
        await self.state_manager.publish(self.prefix, message)

        logger.debug("event_appended", event_type=event_type, key=key)
        return event

    async def read(self, event_type: str) -> list[InventoryEvent]:
        """Read back all stored events of one type."""
        entries = await self.state_manager.lrange(self.stream_key(event_type))
        return [InventoryEvent.model_validate(entry) for entry in entries]
