"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from kitchen_inventory.config import Settings
from kitchen_inventory.models.inventory import InventoryCategory, InventoryItem
from kitchen_inventory.services.batch_tracker import BatchTracker
from kitchen_inventory.services.catalog import InventoryCatalog
from kitchen_inventory.services.inventory_service import InventoryService
from kitchen_inventory.services.ledger import InventoryLedger
from kitchen_inventory.services.recipes import RecipeResolver, RecipeTable
from kitchen_inventory.services.reorder_monitor import ReorderMonitor
from kitchen_inventory.state.events import InMemoryEventSink
from kitchen_inventory.state.manager import StateManager


class FakeClock:
    """Controllable replacement for the wall clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FailingEventSink:
    """Event sink whose appends always fail."""

    def __init__(self) -> None:
        self.attempts = 0

    async def append(self, event_type: str, payload: dict[str, Any], **kwargs: Any) -> None:
        self.attempts += 1
        raise ConnectionError("event store unavailable")


class SlowEventSink(InMemoryEventSink):
    """In-memory sink that yields to the event loop before each append."""

    def __init__(self, delay: float = 0.01) -> None:
        super().__init__()
        self.delay = delay

    async def append(self, event_type: str, payload: dict[str, Any], **kwargs: Any):
        await asyncio.sleep(self.delay)
        return await super().append(event_type, payload, **kwargs)


@pytest.fixture
def settings() -> Settings:
    """Settings that ignore any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at noon on 1 March 2024."""
    return FakeClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def event_sink() -> InMemoryEventSink:
    """Create an in-memory event sink."""
    return InMemoryEventSink()


@pytest.fixture
def burger_recipes() -> RecipeTable:
    """Single burger recipe used by the oversell scenarios."""
    return RecipeTable(
        by_name={
            "Classic Burger": [
                {"sku": "beef-patty", "qty": 1},
                {"sku": "burger-bun", "qty": 1},
                {"sku": "lettuce", "qty": 0.02},
            ]
        },
        by_sku={
            "1": [
                {"sku": "beef-patty", "qty": 1},
                {"sku": "burger-bun", "qty": 1},
                {"sku": "lettuce", "qty": 0.02},
            ]
        },
    )


@pytest.fixture
def ledger(burger_recipes: RecipeTable) -> InventoryLedger:
    """Ledger with enough stock for one burger only."""
    return InventoryLedger(
        resolver=RecipeResolver(burger_recipes),
        initial={"beef-patty": 1, "burger-bun": 50, "lettuce": 10},
    )


@pytest.fixture
def catalog() -> InventoryCatalog:
    """Catalog with reorder configuration for a few SKUs."""
    return InventoryCatalog(
        [
            InventoryItem(
                sku="beef-patty",
                name="Beef Patty (1/4 lb)",
                unit="pieces",
                category=InventoryCategory.FOOD_PERISHABLE,
                reorder_point=20,
                reorder_quantity=100,
                cost_per_unit=2.50,
                last_order_cost=2.45,
                primary_supplier_id="SUPPLIER_001",
            ),
            InventoryItem(
                sku="burger-bun",
                name="Hamburger Buns",
                unit="pieces",
                category=InventoryCategory.FOOD_PERISHABLE,
                reorder_point=25,
                reorder_quantity=200,
                cost_per_unit=0.35,
                primary_supplier_id="SUPPLIER_002",
            ),
            InventoryItem(
                sku="fries-frozen",
                name="Frozen French Fries",
                unit="lbs",
                category=InventoryCategory.FOOD_NON_PERISHABLE,
                reorder_point=30,
                reorder_quantity=150,
                cost_per_unit=1.25,
            ),
            InventoryItem(
                sku="napkins",
                name="Napkins",
                category=InventoryCategory.PACKAGING,
            ),
        ]
    )


@pytest.fixture
def batch_tracker(
    event_sink: InMemoryEventSink,
    catalog: InventoryCatalog,
    clock: FakeClock,
) -> BatchTracker:
    """Create a batch tracker on the fake clock."""
    return BatchTracker(event_sink=event_sink, catalog=catalog, clock=clock)


@pytest.fixture
def reorder_monitor(
    catalog: InventoryCatalog,
    event_sink: InMemoryEventSink,
) -> ReorderMonitor:
    """Create a reorder monitor over a ledger with healthy stock."""
    ledger = InventoryLedger(
        initial={"beef-patty": 100, "burger-bun": 100, "fries-frozen": 100, "napkins": 0}
    )
    return ReorderMonitor(catalog=catalog, ledger=ledger, event_sink=event_sink)


@pytest.fixture
def inventory_service(
    catalog: InventoryCatalog,
    burger_recipes: RecipeTable,
    event_sink: InMemoryEventSink,
    settings: Settings,
) -> InventoryService:
    """Create a service with the burger recipe and modest stock."""
    return InventoryService.create(
        catalog=catalog,
        recipes=burger_recipes,
        initial_quantities={"beef-patty": 30, "burger-bun": 30, "lettuce": 10},
        event_sink=event_sink,
        settings=settings,
    )


@pytest.fixture
def state_manager() -> MagicMock:
    """StateManager double backed by a plain dict."""
    store: dict[str, Any] = {}
    manager = MagicMock(spec=StateManager)
    manager.store = store

    async def _set(key: str, value: Any, ttl: int | None = None) -> None:
        store[key] = value

    async def _get(key: str) -> Any:
        return store.get(key)

    async def _delete(*keys: str) -> None:
        for key in keys:
            store.pop(key, None)

    manager.set = AsyncMock(side_effect=_set)
    manager.get = AsyncMock(side_effect=_get)
    manager.delete = AsyncMock(side_effect=_delete)
    manager.append = AsyncMock(return_value=1)
    manager.publish = AsyncMock()
    manager.lrange = AsyncMock(return_value=[])
    return manager
