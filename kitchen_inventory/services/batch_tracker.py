"""Batch tracker: lot rotation, expiration monitoring and waste write-offs."""

import asyncio
import math
import random
import string
from datetime import datetime, timedelta, timezone
from typing import Callable

from kitchen_inventory.models.alerts import ExpirationAlert, UrgencyLevel, utcnow
from kitchen_inventory.models.batch import (
    Batch,
    BatchConsumption,
    BatchReceipt,
    BatchTraceability,
    CategoryWaste,
    ConsumptionReason,
    ConsumptionResult,
    ExpirationAnalytics,
    RotationMethod,
    WasteRecord,
)
from kitchen_inventory.services.base import BaseService
from kitchen_inventory.services.catalog import InventoryCatalog
from kitchen_inventory.state.events import EventSink
from kitchen_inventory.utils.scheduling import PeriodicTask

SECONDS_PER_DAY = 86400
_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, rounded up."""
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def expiration_urgency(days_until_expiration: int) -> UrgencyLevel:
    """Classify how soon a batch expires."""
    if days_until_expiration <= 1:
        return UrgencyLevel.CRITICAL
    if days_until_expiration <= 2:
        return UrgencyLevel.HIGH
    if days_until_expiration <= 4:
        return UrgencyLevel.MEDIUM
    return UrgencyLevel.LOW


def sort_batches(batches: list[Batch], method: RotationMethod) -> list[Batch]:
    """Order batches for consumption according to a rotation method."""
    if method == RotationMethod.FIFO:
        return sorted(batches, key=lambda b: b.received_date)

    if method == RotationMethod.LIFO:
        return sorted(batches, key=lambda b: b.received_date, reverse=True)

    if method == RotationMethod.FEFO:
        # Dated batches first, soonest expiry first, then oldest receipt
        return sorted(
            batches,
            key=lambda b: (
                b.expiration_date is None,
                b.expiration_date or _FAR_FUTURE,
                b.received_date,
            ),
        )

    return list(batches)


class BatchTracker(BaseService):
    """
    Tracks stock per SKU in batches.

    Responsibilities:
    - Receive batches and keep them per SKU
    - Draw stock down in FIFO, LIFO or FEFO order
    - Flag expired batches and raise expiration alerts
    - Write off waste and report freshness analytics
    """

    def __init__(
        self,
        event_sink: EventSink | None = None,
        catalog: InventoryCatalog | None = None,
        expiration_warning_days: int = 7,
        check_interval_seconds: float = 3600.0,
        clock: Callable[[], datetime] | None = None,
    ):
        super().__init__("batch_tracker", event_sink)
        self.catalog = catalog
        self.expiration_warning_days = expiration_warning_days
        self.clock = clock or utcnow

        self.batches: dict[str, Batch] = {}
        self.item_batches: dict[str, list[str]] = {}  # SKU -> batch IDs
        self._consumptions: dict[str, list[BatchConsumption]] = {}
        self._waste: list[WasteRecord] = []
        self._alert_ids: dict[str, list[str]] = {}
        self._lock = asyncio.Lock()

        self._expiration_task = PeriodicTask(
            "expiration_scan", self.check_expirations, check_interval_seconds
        )

    def start_expiration_monitoring(self) -> None:
        """Start the periodic expiration scan (runs once immediately)."""
        self._expiration_task.start()

    async def stop_expiration_monitoring(self) -> None:
        """Stop the periodic expiration scan."""
        await self._expiration_task.stop()

    @property
    def is_monitoring(self) -> bool:
        """Check if the expiration scan is scheduled."""
        return self._expiration_task.is_running

    async def add_batch(
        self,
        sku: str,
        receipt: BatchReceipt,
        location_id: str = "main",
    ) -> str:
        """
        Start tracking a newly received batch.

        Args:
            sku: SKU the batch belongs to
            receipt: Quantity, dates, cost and supplier details
            location_id: Where the batch is stored

        Returns:
            The generated batch ID
        """
        async with self._lock:
            batch_id = self._generate_batch_id(sku)
            batch = Batch(
                **receipt.model_dump(),
                batch_id=batch_id,
                sku=sku,
                location_id=location_id,
            )

            self.batches[batch_id] = batch
            self.item_batches.setdefault(sku, []).append(batch_id)
            snapshot = batch.model_dump(mode="json")

        await self.record_event(
            "inventory.batch.created",
            {"batch": snapshot, "location_id": location_id},
            key=f"batch-created-{batch_id}",
            aggregate_id=sku,
            aggregate_type="inventory_item",
        )

        self.logger.log_operation(
            "add_batch", sku=sku, batch_id=batch_id, quantity=receipt.quantity
        )
        return batch_id

    def get_batch(self, batch_id: str) -> Batch | None:
        """Get a batch by ID."""
        return self.batches.get(batch_id)

    def get_batches_for_item(self, sku: str) -> list[Batch]:
        """All batches ever received for a SKU, in receipt order."""
        return [self.batches[batch_id] for batch_id in self.item_batches.get(sku, [])]

    def get_available_batches_for_item(
        self,
        sku: str,
        rotation: RotationMethod = RotationMethod.FIFO,
    ) -> list[Batch]:
        """Non-empty, unexpired batches for a SKU in consumption order."""
        available = [
            batch
            for batch in self.get_batches_for_item(sku)
            if batch.quantity > 0 and not batch.is_expired
        ]
        return sort_batches(available, RotationMethod(rotation))

    def get_available_quantity(self, sku: str) -> float:
        """Total consumable quantity for a SKU."""
        return sum(b.quantity for b in self.get_available_batches_for_item(sku))

    def has_batches(self, sku: str) -> bool:
        """Check if a SKU is batch-tracked."""
        return bool(self.item_batches.get(sku))

    async def consume_from_batches(
        self,
        sku: str,
        quantity: float,
        rotation: RotationMethod = RotationMethod.FIFO,
        reason: ConsumptionReason = ConsumptionReason.SALE,
        notes: str | None = None,
    ) -> ConsumptionResult:
        """
        Draw a quantity of a SKU from its batches.

        Insufficient stock is not an error: whatever is available is drawn
        and the rest is reported as ``shortfall`` on the result.

        Args:
            sku: SKU to draw
            quantity: Quantity requested
            rotation: Batch ordering to use
            reason: Why stock is leaving
            notes: Free-form notes stored on each draw

        Returns:
            Result listing one consumption per batch touched
        """
        reason = ConsumptionReason(reason)
        consumptions: list[BatchConsumption] = []
        remaining_after: list[float] = []
        remaining = quantity

        # Selection and draw-down share the expiration scan's critical section
        async with self._lock:
            for batch in self.get_available_batches_for_item(sku, rotation):
                if remaining <= 0:
                    break

                drawn = min(remaining, batch.quantity)
                batch.quantity -= drawn
                remaining -= drawn

                consumption = BatchConsumption(
                    batch_id=batch.batch_id,
                    quantity_consumed=drawn,
                    consumed_date=self.clock(),
                    reason=reason,
                    notes=notes,
                )
                consumptions.append(consumption)
                remaining_after.append(batch.quantity)
                self._consumptions.setdefault(batch.batch_id, []).append(consumption)

        for consumption, batch_quantity in zip(consumptions, remaining_after):
            await self.record_event(
                "inventory.batch.consumed",
                {
                    "sku": sku,
                    "consumption": consumption.model_dump(mode="json"),
                    "remaining_batch_quantity": batch_quantity,
                },
                key=(
                    f"batch-consumed-{consumption.batch_id}-"
                    f"{consumption.consumed_date.timestamp()}"
                ),
                aggregate_id=sku,
                aggregate_type="inventory_item",
            )

        shortfall = max(remaining, 0.0)
        if shortfall > 0:
            self.logger.logger.warning(
                "batch_stock_short",
                sku=sku,
                requested=quantity,
                shortfall=shortfall,
            )

        return ConsumptionResult(
            sku=sku,
            requested=quantity,
            consumptions=consumptions,
            shortfall=shortfall,
        )

    async def check_expirations(self) -> list[ExpirationAlert]:
        """
        Scan batches, flag expired ones and raise expiration alerts.

        A batch is flagged expired at most once. An alert is raised for the
        scan that flags it and for every scan that finds it within the warning
        window. Alerts are not deduplicated across scans.
        """
        alerts: list[ExpirationAlert] = []
        expired_payloads: dict[str, dict] = {}

        async with self._lock:
            now = self.clock()

            for batch in list(self.batches.values()):
                if batch.expiration_date is None or batch.quantity <= 0:
                    continue

                days_until_expiration = days_between(now, batch.expiration_date)
                newly_expired = False

                if days_until_expiration <= 0 and not batch.is_expired:
                    batch.is_expired = True
                    newly_expired = True
                    expired_payloads[batch.batch_id] = {
                        "batch_id": batch.batch_id,
                        "sku": batch.sku,
                        "expired_date": now.isoformat(),
                        "quantity": batch.quantity,
                    }

                in_window = 0 <= days_until_expiration <= self.expiration_warning_days
                if newly_expired or in_window:
                    alert = self._create_expiration_alert(
                        batch, days_until_expiration, now, newly_expired
                    )
                    alerts.append(alert)
                    self._alert_ids.setdefault(batch.batch_id, []).append(alert.id)

        for alert in alerts:
            expired_payload = expired_payloads.get(alert.batch_id)
            if expired_payload is not None:
                await self.record_event(
                    "inventory.batch.expired",
                    expired_payload,
                    key=f"batch-expired-{alert.batch_id}",
                    aggregate_id=alert.batch_id,
                    aggregate_type="batch",
                )

            self.logger.log_alert(
                "expiration_alert_created",
                sku=alert.sku,
                urgency=alert.urgency_level.value,
                batch_id=alert.batch_id,
                days_until_expiration=alert.days_until_expiration,
            )
            await self.record_event(
                "inventory.expiration_alert.created",
                {
                    "alert": alert.model_dump(mode="json"),
                    "days_until_expiration": alert.days_until_expiration,
                },
                key=f"expiration-alert-{alert.id}",
                aggregate_id=alert.sku,
                aggregate_type="inventory_item",
            )

        if alerts:
            self.logger.log_operation("check_expirations", alerts=len(alerts))

        return alerts

    def _create_expiration_alert(
        self,
        batch: Batch,
        days_until_expiration: int,
        now: datetime,
        newly_expired: bool,
    ) -> ExpirationAlert:
        return ExpirationAlert(
            sku=batch.sku,
            item_name=self.catalog.name_for(batch.sku) if self.catalog else batch.sku,
            batch_id=batch.batch_id,
            quantity=batch.quantity,
            expiration_date=batch.expiration_date,
            days_until_expiration=days_until_expiration,
            location_id=batch.location_id,
            urgency_level=expiration_urgency(days_until_expiration),
            created_date=now,
            notes="Batch has expired" if newly_expired else None,
        )

    def get_batches_expiring_soon(self, days: int | None = None) -> list[Batch]:
        """Unexpired batches with stock that expire within ``days``, soonest first."""
        if days is None:
            days = self.expiration_warning_days
        cutoff = self.clock() + timedelta(days=days)

        expiring = [
            batch
            for batch in self.batches.values()
            if batch.expiration_date is not None
            and batch.quantity > 0
            and not batch.is_expired
            and batch.expiration_date <= cutoff
        ]
        return sorted(expiring, key=lambda b: b.expiration_date)

    async def mark_batch_as_waste(
        self,
        batch_id: str,
        quantity: float,
        reason: str,
        marked_by: str = "system",
    ) -> bool:
        """
        Write off stock from a batch.

        The write-off is capped at what the batch holds.

        Returns:
            False if the batch is unknown, True otherwise
        """
        async with self._lock:
            batch = self.batches.get(batch_id)
            if batch is None:
                return False

            wasted = min(max(quantity, 0.0), batch.quantity)
            batch.quantity -= wasted

            record = WasteRecord(
                batch_id=batch_id,
                sku=batch.sku,
                quantity=wasted,
                reason=reason,
                marked_by=marked_by,
                waste_date=self.clock(),
                waste_value=wasted * batch.cost_per_unit,
            )
            self._waste.append(record)
            self._consumptions.setdefault(batch_id, []).append(
                BatchConsumption(
                    batch_id=batch_id,
                    quantity_consumed=wasted,
                    consumed_date=record.waste_date,
                    reason=ConsumptionReason.WASTE,
                    notes=reason,
                )
            )

        await self.record_event(
            "inventory.batch.wasted",
            record.model_dump(mode="json"),
            key=f"batch-waste-{batch_id}-{record.waste_date.timestamp()}",
            aggregate_id=batch_id,
            aggregate_type="batch",
        )

        self.logger.log_operation(
            "mark_batch_as_waste",
            batch_id=batch_id,
            quantity=wasted,
            waste_value=record.waste_value,
            reason=reason,
        )
        return True

    def get_waste_records(self, sku: str | None = None) -> list[WasteRecord]:
        """Recorded write-offs, optionally for one SKU."""
        return [w for w in self._waste if sku is None or w.sku == sku]

    def get_expiration_analytics(self) -> ExpirationAnalytics:
        """Summarize freshness and waste across batches that still hold stock."""
        now = self.clock()
        warning_date = now + timedelta(days=self.expiration_warning_days)
        analytics = ExpirationAnalytics()

        total_shelf_life_days = 0
        batches_with_shelf_life = 0

        for batch in self.batches.values():
            if batch.quantity <= 0:
                continue

            analytics.total_batches += 1
            if batch.expiration_date is None:
                continue

            shelf_life_days = days_between(batch.received_date, batch.expiration_date)
            if shelf_life_days > 0:
                total_shelf_life_days += shelf_life_days
                batches_with_shelf_life += 1

            if batch.expiration_date <= now:
                analytics.batches_expired += 1
                self._add_waste(
                    analytics, batch.sku, batch.quantity, batch.quantity * batch.cost_per_unit
                )
            elif batch.expiration_date <= warning_date:
                analytics.batches_expiring_soon += 1

        for record in self._waste:
            analytics.written_off_value += record.waste_value
            self._add_waste(analytics, record.sku, record.quantity, record.waste_value)

        if batches_with_shelf_life:
            analytics.average_shelf_life = total_shelf_life_days / batches_with_shelf_life
        if analytics.total_batches:
            analytics.rotation_efficiency = (
                (analytics.total_batches - analytics.batches_expired)
                / analytics.total_batches
                * 100
            )

        return analytics

    def _add_waste(
        self, analytics: ExpirationAnalytics, sku: str, quantity: float, value: float
    ) -> None:
        category = self.catalog.category_for(sku) if self.catalog else "uncategorized"
        bucket = analytics.waste_by_category.setdefault(category, CategoryWaste())
        bucket.quantity += quantity
        bucket.value += value
        analytics.total_waste_value += value

    def get_batch_traceability(self, batch_id: str) -> BatchTraceability:
        """Everything known about a batch: draws, write-offs and alerts."""
        batch = self.batches.get(batch_id)
        consumptions = list(self._consumptions.get(batch_id, []))

        return BatchTraceability(
            batch=batch,
            consumptions=consumptions,
            waste=[w for w in self._waste if w.batch_id == batch_id],
            alert_ids=list(self._alert_ids.get(batch_id, [])),
            total_consumed=sum(c.quantity_consumed for c in consumptions),
            remaining_quantity=batch.quantity if batch else 0.0,
        )

    def _generate_batch_id(self, sku: str) -> str:
        date = self.clock().strftime("%Y%m%d")
        suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
        batch_id = f"{sku}_{date}_{suffix}"
        if batch_id in self.batches:
            return self._generate_batch_id(sku)
        return batch_id
