"""Tests for batch rotation, expiration monitoring and waste."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import FailingEventSink, FakeClock, SlowEventSink
from kitchen_inventory.models.alerts import UrgencyLevel
from kitchen_inventory.models.batch import BatchReceipt, ConsumptionReason, RotationMethod
from kitchen_inventory.services.batch_tracker import BatchTracker, days_between
from kitchen_inventory.state.events import InMemoryEventSink

FEB_1 = datetime(2024, 2, 1, tzinfo=timezone.utc)
FEB_10 = datetime(2024, 2, 10, tzinfo=timezone.utc)
FEB_20 = datetime(2024, 2, 20, tzinfo=timezone.utc)


async def receive(
    tracker: BatchTracker,
    sku: str,
    quantity: float,
    received: datetime,
    expires: datetime | None = None,
    cost: float = 0.0,
) -> str:
    return await tracker.add_batch(
        sku,
        BatchReceipt(
            quantity=quantity,
            received_date=received,
            expiration_date=expires,
            cost_per_unit=cost,
        ),
    )


def drawn(result) -> list[tuple[str, float]]:
    return [(c.batch_id, c.quantity_consumed) for c in result.consumptions]


@pytest.mark.asyncio
async def test_add_batch_generates_dated_id(
    batch_tracker: BatchTracker, event_sink: InMemoryEventSink
) -> None:
    """Test batch ID format and the creation event."""
    batch_id = await receive(batch_tracker, "beef-patty", 10, FEB_1)

    assert batch_id.startswith("beef-patty_20240301_")
    assert len(batch_id.rsplit("_", 1)[1]) == 6

    batch = batch_tracker.get_batch(batch_id)
    assert batch.sku == "beef-patty"
    assert batch.is_expired is False
    assert batch_tracker.has_batches("beef-patty")
    assert not batch_tracker.has_batches("lettuce")

    events = event_sink.of_type("inventory.batch.created")
    assert len(events) == 1
    assert events[0].aggregate_id == "beef-patty"


@pytest.mark.asyncio
async def test_fifo_draws_oldest_first(batch_tracker: BatchTracker) -> None:
    """Test first in, first out."""
    old = await receive(batch_tracker, "burger-bun", 10, FEB_1)
    new = await receive(batch_tracker, "burger-bun", 10, FEB_10)

    result = await batch_tracker.consume_from_batches("burger-bun", 15, RotationMethod.FIFO)

    assert drawn(result) == [(old, 10), (new, 5)]
    assert result.fulfilled
    assert batch_tracker.get_batch(old).quantity == 0
    assert batch_tracker.get_batch(new).quantity == 5


@pytest.mark.asyncio
async def test_lifo_draws_newest_first(batch_tracker: BatchTracker) -> None:
    """Test last in, first out."""
    old = await receive(batch_tracker, "burger-bun", 10, FEB_1)
    new = await receive(batch_tracker, "burger-bun", 10, FEB_10)

    result = await batch_tracker.consume_from_batches("burger-bun", 15, RotationMethod.LIFO)

    assert drawn(result) == [(new, 10), (old, 5)]


@pytest.mark.asyncio
async def test_fefo_draws_soonest_expiry_first_and_undated_last(
    batch_tracker: BatchTracker, clock: FakeClock
) -> None:
    """Test first expired, first out."""
    undated = await receive(batch_tracker, "lettuce", 5, FEB_1)
    later = await receive(batch_tracker, "lettuce", 5, FEB_1, clock.now + timedelta(days=20))
    sooner = await receive(batch_tracker, "lettuce", 5, FEB_10, clock.now + timedelta(days=4))

    result = await batch_tracker.consume_from_batches("lettuce", 12, "FEFO")

    assert drawn(result) == [(sooner, 5), (later, 5), (undated, 2)]


@pytest.mark.asyncio
async def test_shortfall_is_reported_not_raised(
    batch_tracker: BatchTracker, event_sink: InMemoryEventSink
) -> None:
    """Test drawing more than the batches hold."""
    await receive(batch_tracker, "tomato", 8, FEB_1)
    await receive(batch_tracker, "tomato", 4, FEB_10)

    result = await batch_tracker.consume_from_batches("tomato", 20)

    assert result.consumed == 12
    assert result.shortfall == 8
    assert not result.fulfilled
    assert batch_tracker.get_available_quantity("tomato") == 0
    assert len(event_sink.of_type("inventory.batch.consumed")) == 2


@pytest.mark.asyncio
async def test_consumption_reason_is_kept(batch_tracker: BatchTracker) -> None:
    """Test that draws carry the reason they were made for."""
    await receive(batch_tracker, "onion", 3, FEB_1)

    result = await batch_tracker.consume_from_batches(
        "onion", 1, reason=ConsumptionReason.TRANSFER, notes="to patio bar"
    )

    assert result.consumptions[0].reason == ConsumptionReason.TRANSFER
    assert result.consumptions[0].notes == "to patio bar"


@pytest.mark.asyncio
async def test_batch_expired_yesterday_is_flagged_once(
    batch_tracker: BatchTracker, clock: FakeClock, event_sink: InMemoryEventSink
) -> None:
    """Test that an expired batch is flagged and alerted exactly once."""
    batch_id = await receive(batch_tracker, "beef-patty", 6, FEB_20, clock.now - timedelta(days=1))
    assert batch_tracker.get_batch(batch_id).is_expired is False

    alerts = await batch_tracker.check_expirations()

    assert batch_tracker.get_batch(batch_id).is_expired is True
    assert len(alerts) == 1
    assert alerts[0].urgency_level == UrgencyLevel.CRITICAL
    assert alerts[0].notes == "Batch has expired"
    assert alerts[0].item_name == "Beef Patty (1/4 lb)"
    assert batch_tracker.get_available_quantity("beef-patty") == 0

    assert await batch_tracker.check_expirations() == []
    assert len(event_sink.of_type("inventory.batch.expired")) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("days", "urgency"),
    [
        (1, UrgencyLevel.CRITICAL),
        (2, UrgencyLevel.HIGH),
        (3, UrgencyLevel.MEDIUM),
        (4, UrgencyLevel.MEDIUM),
        (6, UrgencyLevel.LOW),
        (7, UrgencyLevel.LOW),
    ],
)
async def test_expiration_alert_urgency(
    batch_tracker: BatchTracker, clock: FakeClock, days: int, urgency: UrgencyLevel
) -> None:
    """Test urgency by days until expiration."""
    await receive(batch_tracker, "lettuce", 2, FEB_20, clock.now + timedelta(days=days))

    alerts = await batch_tracker.check_expirations()

    assert len(alerts) == 1
    assert alerts[0].days_until_expiration == days
    assert alerts[0].urgency_level == urgency


@pytest.mark.asyncio
async def test_batches_outside_window_are_not_alerted(
    batch_tracker: BatchTracker, clock: FakeClock
) -> None:
    """Test that far-off, undated and empty batches are skipped."""
    await receive(batch_tracker, "lettuce", 2, FEB_20, clock.now + timedelta(days=10))
    await receive(batch_tracker, "lettuce", 2, FEB_20)
    await receive(batch_tracker, "lettuce", 0, FEB_20, clock.now + timedelta(days=1))

    assert await batch_tracker.check_expirations() == []


@pytest.mark.asyncio
async def test_expiry_exactly_now_yields_single_alert(
    batch_tracker: BatchTracker, clock: FakeClock
) -> None:
    """Test that the expiring scan raises one alert, not two."""
    batch_id = await receive(batch_tracker, "tomato", 3, FEB_20, clock.now)

    alerts = await batch_tracker.check_expirations()

    assert len(alerts) == 1
    assert alerts[0].days_until_expiration == 0
    assert batch_tracker.get_batch(batch_id).is_expired


@pytest.mark.asyncio
async def test_expiration_alerts_repeat_across_scans(
    batch_tracker: BatchTracker, clock: FakeClock
) -> None:
    """Test that a batch in the window is alerted on every scan."""
    batch_id = await receive(batch_tracker, "tomato", 3, FEB_20, clock.now + timedelta(days=3))

    await batch_tracker.check_expirations()
    clock.advance(days=1)
    second = await batch_tracker.check_expirations()

    assert second[0].days_until_expiration == 2
    assert len(batch_tracker.get_batch_traceability(batch_id).alert_ids) == 2


@pytest.mark.asyncio
async def test_get_batches_expiring_soon(batch_tracker: BatchTracker, clock: FakeClock) -> None:
    """Test listing batches inside a horizon, soonest first."""
    five = await receive(batch_tracker, "lettuce", 1, FEB_20, clock.now + timedelta(days=5))
    two = await receive(batch_tracker, "tomato", 1, FEB_20, clock.now + timedelta(days=2))
    await receive(batch_tracker, "onion", 1, FEB_20, clock.now + timedelta(days=30))

    assert [b.batch_id for b in batch_tracker.get_batches_expiring_soon()] == [two, five]
    assert [b.batch_id for b in batch_tracker.get_batches_expiring_soon(days=3)] == [two]


@pytest.mark.asyncio
async def test_waste_is_capped_at_batch_quantity(
    batch_tracker: BatchTracker, event_sink: InMemoryEventSink
) -> None:
    """Test writing off more than a batch holds."""
    batch_id = await receive(batch_tracker, "beef-patty", 10, FEB_1, cost=2.0)

    assert await batch_tracker.mark_batch_as_waste(batch_id, 15, "dropped", "chef")

    assert batch_tracker.get_batch(batch_id).quantity == 0
    record = batch_tracker.get_waste_records("beef-patty")[0]
    assert record.quantity == 10
    assert record.waste_value == 20.0
    assert record.marked_by == "chef"
    assert len(event_sink.of_type("inventory.batch.wasted")) == 1


@pytest.mark.asyncio
async def test_waste_on_unknown_batch_returns_false(batch_tracker: BatchTracker) -> None:
    """Test that an unknown batch is not an error."""
    assert await batch_tracker.mark_batch_as_waste("nope", 1, "spoiled") is False
    assert batch_tracker.get_waste_records() == []


@pytest.mark.asyncio
async def test_expiration_analytics(batch_tracker: BatchTracker, clock: FakeClock) -> None:
    """Test freshness and waste totals."""
    await receive(
        batch_tracker,
        "beef-patty",
        10,
        clock.now - timedelta(days=10),
        clock.now - timedelta(days=1),
        cost=2.0,
    )
    buns = await receive(
        batch_tracker, "burger-bun", 5, clock.now, clock.now + timedelta(days=3), cost=1.0
    )
    await receive(batch_tracker, "fries-frozen", 40, FEB_1, cost=1.25)
    await batch_tracker.mark_batch_as_waste(buns, 2, "crushed")

    analytics = batch_tracker.get_expiration_analytics()

    assert analytics.total_batches == 3
    assert analytics.batches_expired == 1
    assert analytics.batches_expiring_soon == 1
    assert analytics.written_off_value == pytest.approx(2.0)
    assert analytics.total_waste_value == pytest.approx(22.0)
    assert analytics.waste_by_category["food_perishable"].value == pytest.approx(22.0)
    assert analytics.waste_by_category["food_perishable"].quantity == pytest.approx(12.0)
    # 9 days for the beef, 3 for the buns
    assert analytics.average_shelf_life == pytest.approx(6.0)
    assert analytics.rotation_efficiency == pytest.approx(200 / 3)


@pytest.mark.asyncio
async def test_analytics_with_no_batches(batch_tracker: BatchTracker) -> None:
    """Test the empty summary."""
    analytics = batch_tracker.get_expiration_analytics()

    assert analytics.total_batches == 0
    assert analytics.rotation_efficiency == 100.0
    assert analytics.waste_by_category == {}


@pytest.mark.asyncio
async def test_batch_traceability(batch_tracker: BatchTracker) -> None:
    """Test the full history of a batch."""
    batch_id = await receive(batch_tracker, "onion", 10, FEB_1, cost=0.5)
    await batch_tracker.consume_from_batches("onion", 4)
    await batch_tracker.mark_batch_as_waste(batch_id, 1, "moldy")

    trace = batch_tracker.get_batch_traceability(batch_id)

    assert trace.batch.batch_id == batch_id
    assert [c.reason for c in trace.consumptions] == [
        ConsumptionReason.SALE,
        ConsumptionReason.WASTE,
    ]
    assert trace.total_consumed == 5
    assert trace.remaining_quantity == 5
    assert len(trace.waste) == 1


def test_traceability_for_unknown_batch(batch_tracker: BatchTracker) -> None:
    """Test that an unknown batch yields an empty trace."""
    trace = batch_tracker.get_batch_traceability("missing")

    assert trace.batch is None
    assert trace.remaining_quantity == 0


@pytest.mark.asyncio
async def test_event_sink_failure_does_not_block_tracking(clock: FakeClock) -> None:
    """Test that a broken sink is logged and ignored."""
    sink = FailingEventSink()
    tracker = BatchTracker(event_sink=sink, clock=clock)

    batch_id = await receive(tracker, "lettuce", 3, FEB_1)
    result = await tracker.consume_from_batches("lettuce", 1)

    assert tracker.get_batch(batch_id).quantity == 2
    assert result.consumed == 1
    assert sink.attempts == 2


@pytest.mark.asyncio
async def test_draw_completes_before_concurrent_expiration_scan(clock: FakeClock) -> None:
    """Test that a scan cannot flag a batch in the middle of a draw from it."""
    sink = SlowEventSink()
    tracker = BatchTracker(event_sink=sink, clock=clock)
    first = await receive(tracker, "lettuce", 5, FEB_1)
    second = await receive(tracker, "lettuce", 5, FEB_10, clock.now + timedelta(hours=1))

    async def scan_later() -> None:
        await asyncio.sleep(0.005)
        clock.advance(hours=2)
        await tracker.check_expirations()

    result, _ = await asyncio.gather(tracker.consume_from_batches("lettuce", 10), scan_later())

    assert drawn(result) == [(first, 5), (second, 5)]
    assert result.shortfall == 0
    for consumption in result.consumptions:
        assert not tracker.get_batch(consumption.batch_id).is_expired
    assert sink.of_type("inventory.batch.expired") == []


@pytest.mark.asyncio
async def test_draw_after_expiration_scan_skips_flagged_batch(
    batch_tracker: BatchTracker, clock: FakeClock
) -> None:
    """Test that a batch flagged by a scan is no longer drawn from."""
    first = await receive(batch_tracker, "lettuce", 5, FEB_1)
    second = await receive(batch_tracker, "lettuce", 5, FEB_10, clock.now + timedelta(hours=1))

    clock.advance(hours=2)
    await batch_tracker.check_expirations()
    result = await batch_tracker.consume_from_batches("lettuce", 10)

    assert batch_tracker.get_batch(second).is_expired
    assert drawn(result) == [(first, 5)]
    assert result.shortfall == 5
    assert batch_tracker.get_batch(second).quantity == 5


@pytest.mark.asyncio
async def test_concurrent_draws_never_overdraw_a_batch(clock: FakeClock) -> None:
    """Test two simultaneous draws against one batch."""
    tracker = BatchTracker(event_sink=SlowEventSink(), clock=clock)
    batch_id = await receive(tracker, "lettuce", 5, FEB_1)

    results = await asyncio.gather(
        tracker.consume_from_batches("lettuce", 5),
        tracker.consume_from_batches("lettuce", 5),
    )

    quantities = [c.quantity_consumed for r in results for c in r.consumptions]
    assert all(q > 0 for q in quantities)
    assert sum(quantities) == 5
    assert sum(r.shortfall for r in results) == 5
    assert tracker.get_batch(batch_id).quantity == 0


@pytest.mark.asyncio
async def test_waste_and_draw_share_batch_stock(clock: FakeClock) -> None:
    """Test a write-off racing a draw never takes more than the batch holds."""
    tracker = BatchTracker(event_sink=SlowEventSink(), clock=clock)
    batch_id = await receive(tracker, "lettuce", 5, FEB_1)

    result, _ = await asyncio.gather(
        tracker.consume_from_batches("lettuce", 4),
        tracker.mark_batch_as_waste(batch_id, 4, "wilted"),
    )

    wasted = sum(w.quantity for w in tracker.get_waste_records("lettuce"))
    assert result.consumed + wasted == 5
    assert tracker.get_batch(batch_id).quantity == 0


@pytest.mark.asyncio
async def test_expiration_monitoring_scans_on_start(
    batch_tracker: BatchTracker, clock: FakeClock
) -> None:
    """Test that starting the monitor runs a scan straight away."""
    batch_id = await receive(batch_tracker, "tomato", 3, FEB_20, clock.now - timedelta(hours=1))

    batch_tracker.start_expiration_monitoring()
    assert batch_tracker.is_monitoring
    await asyncio.sleep(0.05)
    await batch_tracker.stop_expiration_monitoring()

    assert not batch_tracker.is_monitoring
    assert batch_tracker.get_batch(batch_id).is_expired


def test_days_between_rounds_up() -> None:
    """Test partial days count as whole days."""
    start = datetime(2024, 3, 1, 12, tzinfo=timezone.utc)

    assert days_between(start, start + timedelta(hours=1)) == 1
    assert days_between(start, start - timedelta(hours=25)) == -1
    assert days_between(start, start) == 0
