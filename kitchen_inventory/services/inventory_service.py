"""Inventory service: wires the ledger, batch tracker and reorder monitor together."""

from datetime import datetime
from typing import Callable, Literal, Mapping

from pydantic import BaseModel, Field

from kitchen_inventory.config import Settings, get_settings
from kitchen_inventory.models.alerts import (
    AlertStatus,
    ExpirationAlert,
    ReorderAlert,
    UrgencyLevel,
    utcnow,
)
from kitchen_inventory.models.batch import (
    BatchReceipt,
    ConsumptionReason,
    ConsumptionResult,
    ExpirationAnalytics,
    RotationMethod,
)
from kitchen_inventory.models.inventory import AdjustmentReport, OversellPolicy, SalePayload
from kitchen_inventory.services.base import BaseService
from kitchen_inventory.services.batch_tracker import BatchTracker
from kitchen_inventory.services.catalog import InventoryCatalog
from kitchen_inventory.services.ledger import InventoryLedger, OversellError
from kitchen_inventory.services.policy import OversellPolicyStore
from kitchen_inventory.services.recipes import RecipeResolver, RecipeTable
from kitchen_inventory.services.reorder_monitor import ReorderMonitor
from kitchen_inventory.state.events import EventSink, InMemoryEventSink


class SaleOutcome(BaseModel):
    """Everything that happened when a sale was recorded."""

    ticket_id: str
    policy: OversellPolicy
    report: AdjustmentReport
    batch_consumptions: list[ConsumptionResult] = Field(default_factory=list)

    @property
    def batch_shortfalls(self) -> dict[str, float]:
        """SKUs whose batches could not cover the sale, with the missing quantity."""
        return {r.sku: r.shortfall for r in self.batch_consumptions if not r.fulfilled}


class ReceivedItem(BaseModel):
    """A line of a delivery being received into stock."""

    sku: str
    quantity_received: float = Field(ge=0)
    unit_cost: float = Field(default=0.0, ge=0)
    expiration_date: datetime | None = None
    supplier_id: str | None = None
    lot_number: str | None = None
    condition: Literal["good", "damaged", "expired"] = "good"
    notes: str | None = None


class AutoReorderResult(BaseModel):
    """Purchase order drafted for a critical alert."""

    alert_id: str
    sku: str
    purchase_order_id: str | None


class InventoryDashboard(BaseModel):
    """Snapshot of inventory health."""

    tracked_skus: int
    low_stock_skus: list[str]
    negative_stock_skus: list[str]
    reorder_alerts: list[ReorderAlert]
    expiration_alerts: list[ExpirationAlert]
    expiration_analytics: ExpirationAnalytics


class InventoryService(BaseService):
    """
    Entry point for the surrounding application.

    Owns one ledger, batch tracker and reorder monitor; there is no
    module-level instance.
    """

    def __init__(
        self,
        catalog: InventoryCatalog,
        ledger: InventoryLedger,
        batch_tracker: BatchTracker,
        reorder_monitor: ReorderMonitor,
        event_sink: EventSink | None = None,
        policy_store: OversellPolicyStore | None = None,
        settings: Settings | None = None,
    ):
        super().__init__("inventory_service", event_sink)
        self.catalog = catalog
        self.ledger = ledger
        self.batch_tracker = batch_tracker
        self.reorder_monitor = reorder_monitor
        self.policy_store = policy_store
        self.settings = settings or get_settings()

    @classmethod
    def create(
        cls,
        catalog: InventoryCatalog | None = None,
        recipes: RecipeTable | None = None,
        initial_quantities: Mapping[str, float] | None = None,
        event_sink: EventSink | None = None,
        policy_store: OversellPolicyStore | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "InventoryService":
        """Build a service and its components sharing one catalog, event sink and clock."""
        settings = settings or get_settings()
        catalog = catalog if catalog is not None else InventoryCatalog()
        event_sink = event_sink if event_sink is not None else InMemoryEventSink()

        ledger = InventoryLedger(
            resolver=RecipeResolver(recipes),
            initial=initial_quantities,
            low_stock_threshold=settings.low_stock_threshold,
        )
        batch_tracker = BatchTracker(
            event_sink=event_sink,
            catalog=catalog,
            expiration_warning_days=settings.expiration_warning_days,
            check_interval_seconds=settings.expiration_check_interval,
            clock=clock,
        )
        reorder_monitor = ReorderMonitor(
            catalog=catalog,
            ledger=ledger,
            event_sink=event_sink,
            check_interval_seconds=settings.reorder_check_interval,
            location_id=settings.default_location_id,
            clock=clock,
        )

        return cls(
            catalog=catalog,
            ledger=ledger,
            batch_tracker=batch_tracker,
            reorder_monitor=reorder_monitor,
            event_sink=event_sink,
            policy_store=policy_store,
            settings=settings,
        )

    def start_monitoring(self) -> None:
        """Start the reorder and expiration scans."""
        self.logger.logger.info("inventory_monitoring_starting")
        self.reorder_monitor.start_monitoring()
        self.batch_tracker.start_expiration_monitoring()

    async def stop_monitoring(self) -> None:
        """Stop both scans, letting in-flight runs finish."""
        await self.reorder_monitor.stop_monitoring()
        await self.batch_tracker.stop_expiration_monitoring()
        self.logger.logger.info("inventory_monitoring_stopped")

    async def resolve_policy(self, policy: OversellPolicy | str | None = None) -> OversellPolicy:
        """Explicit policy, else the stored policy, else the configured default."""
        if policy is not None:
            return OversellPolicy(policy)
        if self.policy_store is not None:
            return await self.policy_store.get_policy()
        return OversellPolicy(self.settings.oversell_policy_default)

    async def record_sale(
        self,
        payload: SalePayload,
        policy: OversellPolicy | str | None = None,
        rotation: RotationMethod = RotationMethod.FIFO,
    ) -> SaleOutcome:
        """
        Apply a sale to the ledger and draw it from tracked batches.

        Args:
            payload: The recorded sale
            policy: Oversell policy override for this sale
            rotation: Batch ordering for batch-tracked SKUs

        Returns:
            The adjustment report plus per-SKU batch draws

        Raises:
            OversellError: The sale was blocked; nothing was changed
        """
        effective_policy = await self.resolve_policy(policy)

        try:
            report = await self.ledger.apply_sale(payload, effective_policy)
        except OversellError as e:
            self.logger.log_error(
                error=str(e),
                action="record_sale",
                ticket_id=payload.ticket_id,
                sku=e.sku,
                shortfall=e.shortfall,
            )
            raise

        await self.record_event(
            "sale.inventory_applied",
            {
                "ticket_id": payload.ticket_id,
                "policy": effective_policy.value,
                "report": report.model_dump(mode="json", exclude_none=True),
            },
            key=f"sale-applied-{payload.ticket_id}",
            aggregate_id=payload.ticket_id,
            aggregate_type="sale",
        )
        for adjustment in report.adjustments:
            await self.record_event(
                "inventory.adjusted",
                {
                    "sku": adjustment.sku,
                    "old_qty": adjustment.old_qty,
                    "new_qty": adjustment.new_qty,
                    "reason": f"sale:{payload.ticket_id}",
                },
                key=f"inventory-adjusted-{payload.ticket_id}-{adjustment.sku}",
                aggregate_id=adjustment.sku,
                aggregate_type="inventory_item",
            )

        batch_consumptions = []
        for adjustment in report.adjustments:
            if not self.batch_tracker.has_batches(adjustment.sku):
                continue
            batch_consumptions.append(
                await self.batch_tracker.consume_from_batches(
                    adjustment.sku,
                    -adjustment.delta,
                    rotation=rotation,
                    reason=ConsumptionReason.SALE,
                    notes=f"ticket {payload.ticket_id}",
                )
            )

        outcome = SaleOutcome(
            ticket_id=payload.ticket_id,
            policy=effective_policy,
            report=report,
            batch_consumptions=batch_consumptions,
        )
        self.logger.log_operation(
            "record_sale",
            ticket_id=payload.ticket_id,
            policy=effective_policy.value,
            adjustments=len(report.adjustments),
            batch_shortfalls=outcome.batch_shortfalls or None,
        )
        return outcome

    async def receive_inventory(
        self,
        items: list[ReceivedItem],
        received_by: str,
        purchase_order_id: str | None = None,
        location_id: str | None = None,
    ) -> list[str]:
        """
        Receive a delivery: good lines become batches and increase stock.

        Returns:
            IDs of the batches created
        """
        location_id = location_id or self.settings.default_location_id
        receipt_ref = purchase_order_id or f"{location_id}-{utcnow().timestamp()}"
        batch_ids = []

        for item in items:
            if item.condition != "good" or item.quantity_received <= 0:
                self.logger.logger.info(
                    "received_item_skipped",
                    sku=item.sku,
                    condition=item.condition,
                    quantity=item.quantity_received,
                )
                continue

            batch_id = await self.batch_tracker.add_batch(
                item.sku,
                BatchReceipt(
                    quantity=item.quantity_received,
                    received_date=utcnow(),
                    expiration_date=item.expiration_date,
                    cost_per_unit=item.unit_cost,
                    supplier_id=item.supplier_id,
                    lot_number=item.lot_number,
                    notes=item.notes,
                ),
                location_id=location_id,
            )
            await self.ledger.adjust(item.sku, item.quantity_received)
            batch_ids.append(batch_id)

        await self.record_event(
            "inventory.received",
            {
                "purchase_order_id": purchase_order_id,
                "items": [item.model_dump(mode="json") for item in items],
                "batch_ids": batch_ids,
                "received_by": received_by,
                "location_id": location_id,
            },
            key=f"inventory-received-{receipt_ref}",
            aggregate_id=location_id,
            aggregate_type="location",
        )

        self.logger.log_operation(
            "receive_inventory",
            purchase_order_id=purchase_order_id,
            batches=len(batch_ids),
            received_by=received_by,
        )
        return batch_ids

    async def process_automatic_reorders(self, created_by: str = "system") -> list[AutoReorderResult]:
        """Draft purchase orders for critical SKUs that have a primary supplier."""
        results = []

        for recommendation in self.reorder_monitor.get_reorder_recommendations():
            if recommendation.urgency_level != UrgencyLevel.CRITICAL:
                continue
            if not recommendation.primary_supplier:
                continue

            open_alerts = [
                alert
                for alert in self.reorder_monitor.get_active_alerts()
                if alert.sku == recommendation.sku
            ]
            if not open_alerts:
                continue
            # An active alert wins over an older acknowledged one
            open_alert = next(
                (a for a in open_alerts if a.status == AlertStatus.ACTIVE), open_alerts[0]
            )

            purchase_order_id = await self.reorder_monitor.generate_purchase_order(
                open_alert.id,
                supplier_id=recommendation.primary_supplier,
                location_id=open_alert.location_id,
                created_by=created_by,
                notes=(
                    "Auto-generated for critical stock level: "
                    f"{recommendation.current_qty} remaining"
                ),
            )
            results.append(
                AutoReorderResult(
                    alert_id=open_alert.id,
                    sku=recommendation.sku,
                    purchase_order_id=purchase_order_id,
                )
            )

        if results:
            self.logger.log_operation("process_automatic_reorders", orders=len(results))
        return results

    async def get_dashboard(self) -> InventoryDashboard:
        """Run both scans and summarize inventory health."""
        await self.reorder_monitor.check_reorder_points()
        expiration_alerts = await self.batch_tracker.check_expirations()

        quantities = self.ledger.get_all_quantities()
        threshold = self.ledger.low_stock_threshold

        return InventoryDashboard(
            tracked_skus=len(quantities),
            low_stock_skus=sorted(sku for sku, qty in quantities.items() if 0 <= qty <= threshold),
            negative_stock_skus=sorted(sku for sku, qty in quantities.items() if qty < 0),
            reorder_alerts=self.reorder_monitor.get_active_alerts(),
            expiration_alerts=expiration_alerts,
            expiration_analytics=self.batch_tracker.get_expiration_analytics(),
        )
