"""Seed the oversell policy defaults and run a demo inventory session."""

import asyncio
from datetime import timedelta

from kitchen_inventory.models.alerts import utcnow
from kitchen_inventory.models.inventory import (
    InventoryCategory,
    InventoryItem,
    OversellPolicy,
    SaleLine,
    SalePayload,
)
from kitchen_inventory.services.catalog import InventoryCatalog
from kitchen_inventory.services.inventory_service import InventoryService, ReceivedItem
from kitchen_inventory.services.ledger import OversellError
from kitchen_inventory.services.policy import OversellPolicyStore
from kitchen_inventory.state.events import RedisEventSink
from kitchen_inventory.state.manager import StateManager

# Opening stock for the burger restaurant demo (fractional amounts are kg/litres)
DEMO_STOCK = {
    "beef-patty": 100,
    "chicken-breast": 50,
    "burger-bun": 100,
    "sandwich-bun": 50,
    "lettuce": 5,
    "tomato": 3,
    "onion": 2,
    "onions": 10,
    "mayo": 5,
    "potatoes": 20,
    "batter-mix": 5,
    "oil": 10,
    "cola-syrup": 5,
    "coffee-beans": 10,
    "water": 100,
    "cup-large": 200,
    "cup-medium": 150,
    "lid-large": 200,
    "lid-medium": 150,
}


def demo_catalog() -> InventoryCatalog:
    """Catalog with reorder settings for the demo stock."""
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
                last_order_cost=0.33,
                primary_supplier_id="SUPPLIER_002",
            ),
            InventoryItem(
                sku="potatoes",
                name="Potatoes",
                unit="kg",
                category=InventoryCategory.FOOD_PERISHABLE,
                reorder_point=5,
                reorder_quantity=50,
                cost_per_unit=1.25,
                primary_supplier_id="SUPPLIER_001",
            ),
            InventoryItem(
                sku="cup-large",
                name="Large Cup",
                category=InventoryCategory.PACKAGING,
                reorder_point=50,
                reorder_quantity=500,
                cost_per_unit=0.08,
            ),
        ]
    )


async def seed_policy(state_manager: StateManager) -> None:
    """Store the technical default oversell policy."""
    print("Seeding oversell policy...")

    store = OversellPolicyStore(state_manager)
    await store.set_default(OversellPolicy.BLOCK)
    print(f"  ✓ Technical default: {(await store.get_default()).value}")
    print(f"  ✓ Effective policy: {(await store.get_policy()).value}\n")


async def run_demo(state_manager: StateManager) -> None:
    """Receive stock, sell, and run the scans once."""
    print("Running demo session...")

    service = InventoryService.create(
        catalog=demo_catalog(),
        initial_quantities=DEMO_STOCK,
        event_sink=RedisEventSink(state_manager),
        policy_store=OversellPolicyStore(state_manager),
    )

    now = utcnow()
    batch_ids = await service.receive_inventory(
        [
            ReceivedItem(
                sku="beef-patty",
                quantity_received=40,
                unit_cost=2.45,
                expiration_date=now + timedelta(days=2),
                supplier_id="SUPPLIER_001",
                lot_number="LOT_BEEF_A",
            ),
            ReceivedItem(
                sku="beef-patty",
                quantity_received=60,
                unit_cost=2.45,
                expiration_date=now + timedelta(days=9),
                supplier_id="SUPPLIER_001",
                lot_number="LOT_BEEF_B",
            ),
        ],
        received_by="demo",
    )
    print(f"  ✓ Received {len(batch_ids)} batches")

    sale = SalePayload(
        lines=[
            SaleLine(sku="1", name="Classic Burger", qty=85, price=9.5),
            SaleLine(name="French Fries", qty=10, price=3.0),
        ]
    )
    outcome = await service.record_sale(sale)
    print(f"  ✓ Sale {outcome.ticket_id} applied under '{outcome.policy.value}'")
    for alert in outcome.report.alerts or []:
        print(f"    ! {alert}")

    try:
        await service.record_sale(
            SalePayload(lines=[SaleLine(name="Classic Burger", qty=500, price=9.5)])
        )
    except OversellError as e:
        print(f"  ✓ Oversell blocked: {e}")

    dashboard = await service.get_dashboard()
    print(f"  ✓ {len(dashboard.reorder_alerts)} reorder alerts")
    for alert in dashboard.reorder_alerts:
        print(f"    - {alert.sku}: {alert.current_quantity} ({alert.urgency_level.value})")
    print(f"  ✓ {len(dashboard.expiration_alerts)} expiration alerts\n")

    orders = await service.process_automatic_reorders(created_by="demo")
    print(f"  ✓ {len(orders)} purchase orders drafted\n")


async def main() -> None:
    """Run all seed functions."""
    print("\n" + "=" * 50)
    print("  Seeding Kitchen Inventory Data")
    print("=" * 50 + "\n")

    state_manager = StateManager()
    await state_manager.connect()
    try:
        await seed_policy(state_manager)
        await run_demo(state_manager)
    finally:
        await state_manager.disconnect()

    print("=" * 50)
    print("  ✓ Done!")
    print("=" * 50 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
