"""State management modules."""

from kitchen_inventory.state.events import EventSink, InMemoryEventSink, RedisEventSink
from kitchen_inventory.state.manager import StateManager

__all__ = ["StateManager", "EventSink", "InMemoryEventSink", "RedisEventSink"]
