"""Reorder monitor: reorder point detection, alerts and draft purchase orders."""

import asyncio
from datetime import datetime
from typing import Callable

from kitchen_inventory.models.alerts import AlertStatus, ReorderAlert, UrgencyLevel, utcnow
from kitchen_inventory.models.inventory import InventoryItem
from kitchen_inventory.models.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    ReorderRecommendation,
)
from kitchen_inventory.services.base import BaseService
from kitchen_inventory.services.catalog import InventoryCatalog
from kitchen_inventory.services.ledger import InventoryLedger
from kitchen_inventory.state.events import EventSink
from kitchen_inventory.utils.scheduling import PeriodicTask


def calculate_urgency_level(current_quantity: float, reorder_point: float) -> UrgencyLevel:
    """
    Classify how far a SKU has fallen below its reorder point.

    Out of stock is always critical. Otherwise the percentage below the
    reorder point decides: 75% or more is high, 50% or more is medium.
    """
    if current_quantity <= 0:
        return UrgencyLevel.CRITICAL

    percent_below = (reorder_point - current_quantity) / reorder_point * 100
    if percent_below >= 75:
        return UrgencyLevel.HIGH
    if percent_below >= 50:
        return UrgencyLevel.MEDIUM
    return UrgencyLevel.LOW


class ReorderMonitor(BaseService):
    """
    Watches on-hand quantities against configured reorder points.

    At most one active alert exists per SKU; scans skip SKUs that already
    have one. Acknowledged alerts stay open but do not suppress new ones.
    Lookup misses return None/False so the periodic scan never dies on a
    single bad record.
    """

    def __init__(
        self,
        catalog: InventoryCatalog,
        ledger: InventoryLedger,
        event_sink: EventSink | None = None,
        check_interval_seconds: float = 60.0,
        location_id: str = "main",
        clock: Callable[[], datetime] | None = None,
    ):
        super().__init__("reorder_monitor", event_sink)
        self.clock = clock or utcnow
        self.catalog = catalog
        self.ledger = ledger
        self.location_id = location_id

        self.alerts: dict[str, ReorderAlert] = {}
        self.purchase_orders: dict[str, PurchaseOrder] = {}
        self._lock = asyncio.Lock()

        self._monitor_task = PeriodicTask(
            "reorder_scan", self.check_reorder_points, check_interval_seconds
        )

    def start_monitoring(self) -> None:
        """Start the periodic reorder scan (runs once immediately)."""
        self._monitor_task.start()

    async def stop_monitoring(self) -> None:
        """Stop the periodic reorder scan."""
        await self._monitor_task.stop()

    @property
    def is_monitoring(self) -> bool:
        """Check if the reorder scan is scheduled."""
        return self._monitor_task.is_running

    def get_alert(self, alert_id: str) -> ReorderAlert | None:
        """Get an alert by ID."""
        return self.alerts.get(alert_id)

    def get_active_alerts(self) -> list[ReorderAlert]:
        """All open alerts (active or acknowledged), most urgent first."""
        open_alerts = [a for a in self.alerts.values() if a.status.is_open]
        return sorted(open_alerts, key=lambda a: a.urgency_level.rank, reverse=True)

    def get_alerts_for_sku(self, sku: str) -> list[ReorderAlert]:
        """Alert history for a SKU, oldest first."""
        return [a for a in self.alerts.values() if a.sku == sku]

    def _active_alert_for(self, sku: str) -> ReorderAlert | None:
        for alert in self.alerts.values():
            if alert.sku == sku and alert.status == AlertStatus.ACTIVE:
                return alert
        return None

    async def check_reorder_points(self) -> list[ReorderAlert]:
        """
        Create alerts for SKUs at or below their reorder point.

        Returns:
            Alerts created by this scan
        """
        new_alerts: list[ReorderAlert] = []

        try:
            async with self._lock:
                for item in self.catalog.items():
                    if not item.has_reorder_config:
                        continue

                    if self._active_alert_for(item.sku) is not None:
                        continue

                    current_quantity = self.ledger.get_qty(item.sku)
                    if current_quantity <= item.reorder_point:
                        alert = self._create_reorder_alert(item, current_quantity)
                        self.alerts[alert.id] = alert
                        new_alerts.append(alert)
        except Exception as e:
            self.logger.log_error(error=str(e), action="check_reorder_points")
            return []

        for alert in new_alerts:
            self.logger.log_alert(
                "reorder_alert_created",
                sku=alert.sku,
                urgency=alert.urgency_level.value,
                current_quantity=alert.current_quantity,
                reorder_point=alert.reorder_point,
            )
            await self.record_event(
                "inventory.reorder_alert.created",
                {"alert": alert.model_dump(mode="json"), "automatically_generated": True},
                key=f"reorder-alert-{alert.id}",
                aggregate_id=alert.sku,
                aggregate_type="inventory_item",
            )

        return new_alerts

    def _create_reorder_alert(
        self, item: InventoryItem, current_quantity: float
    ) -> ReorderAlert:
        return ReorderAlert(
            sku=item.sku,
            item_name=item.name,
            current_quantity=current_quantity,
            reorder_point=item.reorder_point,
            reorder_quantity=item.reorder_quantity,
            location_id=self.location_id,
            urgency_level=calculate_urgency_level(current_quantity, item.reorder_point),
            created_date=self.clock(),
        )

    async def acknowledge_alert(self, alert_id: str, acknowledged_by: str) -> bool:
        """
        Acknowledge an active alert.

        Returns:
            False if the alert does not exist or is not active
        """
        async with self._lock:
            alert = self.alerts.get(alert_id)
            if alert is None or alert.status != AlertStatus.ACTIVE:
                return False

            alert.status = AlertStatus.ACKNOWLEDGED
            alert.acknowledged_by = acknowledged_by
            alert.acknowledged_date = self.clock()

        await self.record_event(
            "inventory.reorder_alert.acknowledged",
            {
                "alert_id": alert_id,
                "acknowledged_by": acknowledged_by,
                "acknowledged_date": alert.acknowledged_date.isoformat(),
            },
            key=f"reorder-alert-ack-{alert_id}",
            aggregate_id=alert_id,
            aggregate_type="reorder_alert",
        )
        return True

    async def dismiss_alert(self, alert_id: str, dismissed_by: str, reason: str) -> bool:
        """
        Dismiss an open alert.

        Returns:
            False if the alert does not exist or is already closed
        """
        async with self._lock:
            alert = self.alerts.get(alert_id)
            if alert is None or not alert.status.is_open:
                return False

            alert.status = AlertStatus.DISMISSED
            alert.dismissed_by = dismissed_by
            alert.dismissed_date = self.clock()
            alert.notes = reason

        await self.record_event(
            "inventory.reorder_alert.dismissed",
            {
                "alert_id": alert_id,
                "dismissed_by": dismissed_by,
                "reason": reason,
                "dismissed_date": alert.dismissed_date.isoformat(),
            },
            key=f"reorder-alert-dismiss-{alert_id}",
            aggregate_id=alert_id,
            aggregate_type="reorder_alert",
        )
        return True

    async def generate_purchase_order(
        self,
        alert_id: str,
        supplier_id: str,
        location_id: str,
        created_by: str,
        notes: str | None = None,
    ) -> str | None:
        """
        Draft a purchase order from an open alert and resolve the alert.

        Creating the order and resolving the alert happen together; if either
        lookup misses, neither happens.

        Args:
            alert_id: Triggering reorder alert
            supplier_id: Supplier to order from
            location_id: Delivery location
            created_by: User or system creating the order
            notes: Order notes, defaults to a reference to the alert

        Returns:
            The purchase order ID, or None if the alert or item is missing
        """
        async with self._lock:
            alert = self.alerts.get(alert_id)
            if alert is None or not alert.status.is_open:
                self.logger.logger.info(
                    "purchase_order_skipped", alert_id=alert_id, reason="alert_not_open"
                )
                return None

            item = self.catalog.get(alert.sku)
            if item is None:
                self.logger.logger.info(
                    "purchase_order_skipped", alert_id=alert_id, reason="item_not_found"
                )
                return None

            unit_cost = item.estimated_unit_cost
            total_cost = unit_cost * alert.reorder_quantity

            purchase_order = PurchaseOrder(
                supplier_id=supplier_id,
                location_id=location_id,
                status=PurchaseOrderStatus.DRAFT,
                order_date=self.clock(),
                subtotal=total_cost,
                total_amount=total_cost,
                items=[
                    PurchaseOrderItem(
                        sku=item.sku,
                        name=item.name,
                        quantity_ordered=alert.reorder_quantity,
                        unit_cost=unit_cost,
                        total_cost=total_cost,
                        unit=item.unit,
                    )
                ],
                notes=notes or f"Auto-generated from reorder alert {alert_id}",
                created_by=created_by,
                triggered_by_alert=alert_id,
            )
            self.purchase_orders[purchase_order.id] = purchase_order

            alert.status = AlertStatus.RESOLVED
            alert.resolved_by = created_by
            alert.resolved_date = self.clock()

        await self.record_event(
            "inventory.purchase_order.created",
            {
                "purchase_order": purchase_order.model_dump(mode="json"),
                "triggered_by_reorder_alert": alert_id,
            },
            key=f"purchase-order-{purchase_order.id}",
            aggregate_id=purchase_order.id,
            aggregate_type="purchase_order",
        )
        await self.record_event(
            "inventory.reorder_alert.resolved",
            {
                "alert_id": alert_id,
                "resolved_by": created_by,
                "resolved_date": alert.resolved_date.isoformat(),
            },
            key=f"reorder-alert-resolve-{alert_id}",
            aggregate_id=alert_id,
            aggregate_type="reorder_alert",
        )

        self.logger.log_operation(
            "generate_purchase_order",
            purchase_order_id=purchase_order.id,
            alert_id=alert_id,
            sku=alert.sku,
            total_amount=total_cost,
        )
        return purchase_order.id

    def get_purchase_order(self, purchase_order_id: str) -> PurchaseOrder | None:
        """Get a purchase order by ID."""
        return self.purchase_orders.get(purchase_order_id)

    def get_reorder_recommendations(self) -> list[ReorderRecommendation]:
        """Replenishment suggestions for every SKU at or below its reorder point, most urgent first."""
        recommendations = []

        for item in self.catalog.items():
            if not item.has_reorder_config:
                continue

            current_qty = self.ledger.get_qty(item.sku)
            if current_qty > item.reorder_point:
                continue

            recommendations.append(
                ReorderRecommendation(
                    sku=item.sku,
                    item_name=item.name,
                    current_qty=current_qty,
                    reorder_point=item.reorder_point,
                    recommended_order_qty=item.reorder_quantity,
                    urgency_level=calculate_urgency_level(current_qty, item.reorder_point),
                    estimated_cost=item.estimated_unit_cost * item.reorder_quantity,
                    primary_supplier=item.primary_supplier_id,
                )
            )

        return sorted(recommendations, key=lambda r: r.urgency_level.rank, reverse=True)
