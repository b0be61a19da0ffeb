"""Reset inventory state in Redis (useful for testing)."""

import asyncio

from kitchen_inventory.config import get_settings
from kitchen_inventory.services.policy import OVERSELL_POLICY_DEFAULT_KEY, OVERSELL_POLICY_KEY
from kitchen_inventory.state.manager import StateManager


async def reset_all_state() -> None:
    """Clear the oversell policy keys and all inventory event streams."""
    settings = get_settings()

    print("\n⚠️  WARNING: This will delete the oversell policy and all inventory events!")
    response = input("Are you sure? (yes/no): ")

    if response.lower() != "yes":
        print("Cancelled.")
        return

    print("\nResetting state...")

    state_manager = StateManager()
    await state_manager.connect()

    try:
        event_keys = await state_manager.keys(f"{settings.event_stream_prefix}:*")
        await state_manager.delete(OVERSELL_POLICY_KEY, OVERSELL_POLICY_DEFAULT_KEY, *event_keys)
        print(f"✓ Cleared policy keys and {len(event_keys)} event streams\n")
    finally:
        await state_manager.disconnect()


if __name__ == "__main__":
    asyncio.run(reset_all_state())
