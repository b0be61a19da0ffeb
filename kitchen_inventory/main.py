"""Runtime entry point: wires the inventory service and runs its monitors."""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Mapping

from kitchen_inventory.config import get_settings
from kitchen_inventory.services.catalog import InventoryCatalog
from kitchen_inventory.services.inventory_service import InventoryService
from kitchen_inventory.services.policy import OversellPolicyStore
from kitchen_inventory.services.recipes import RecipeTable
from kitchen_inventory.state.events import RedisEventSink
from kitchen_inventory.state.manager import get_state_manager
from kitchen_inventory.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def inventory_runtime(
    catalog: InventoryCatalog | None = None,
    recipes: RecipeTable | None = None,
    initial_quantities: Mapping[str, float] | None = None,
) -> AsyncGenerator[InventoryService, None]:
    """Build a Redis-backed inventory service with monitoring running."""
    settings = get_settings()

    # Startup
    logger.info("inventory_runtime_starting", environment=settings.environment)
    state_manager = await get_state_manager()

    service = InventoryService.create(
        catalog=catalog,
        recipes=recipes,
        initial_quantities=initial_quantities,
        event_sink=RedisEventSink(state_manager, prefix=settings.event_stream_prefix),
        policy_store=OversellPolicyStore(state_manager, settings),
        settings=settings,
    )
    service.start_monitoring()

    try:
        yield service
    finally:
        # Shutdown
        logger.info("inventory_runtime_shutting_down")
        await service.stop_monitoring()
        await state_manager.disconnect()


async def run() -> None:
    """Run the monitors until SIGINT/SIGTERM."""
    setup_logging()
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms
            pass

    async with inventory_runtime():
        await stop_event.wait()


if __name__ == "__main__":
    asyncio.run(run())
