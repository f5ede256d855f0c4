"""Tests for driver, zone and batch assignment."""

from datetime import date, datetime

import pytest
from unittest.mock import AsyncMock

from shippxpress.models.driver import Driver
from shippxpress.models.zone import Zone
from shippxpress.services import assignment, batches, history, order_store, transitions
from shippxpress.services.access import OrderLifecycle
from shippxpress.services.errors import (
    BatchClosed, DriverUnavailable, GeocodingUnavailable, IllegalTransition, InvalidState, NotFound,
    UnresolvedZone,
)
from shippxpress.services.zones import GeocodingZoneResolver
from tests.conftest import StubResolver, make_draft


@pytest.mark.asyncio
async def test_full_lifecycle_scenario(db, staff_ctx, driver, resolver):
    lifecycle = OrderLifecycle(db, staff_ctx, resolver)
    order = await lifecycle.create_order(make_draft())
    number = order.order_number
    assert order.status == "pending"
    assert await history.list_for(db, number) == []

    order = await lifecycle.assign_driver(number, driver.id)
    assert order.status == "assigned"
    assert order.driver_id == driver.id
    assert len(await history.list_for(db, number)) == 1

    order = await lifecycle.transition_order(number, "picked_up")
    assert order.status == "picked_up"
    assert len(await history.list_for(db, number)) == 2

    order = await lifecycle.transition_order(number, "delivered")
    assert order.status == "delivered"
    assert order.actual_delivery_time is not None
    assert len(await history.list_for(db, number)) == 3

    with pytest.raises(IllegalTransition):
        await lifecycle.transition_order(number, "voided")
    assert len(await history.list_for(db, number)) == 3


@pytest.mark.asyncio
async def test_busy_driver_leaves_order_unchanged(db, staff_ctx, busy_driver, resolver):
    lifecycle = OrderLifecycle(db, staff_ctx, resolver)
    order = await lifecycle.create_order(make_draft())
    number = order.order_number

    with pytest.raises(DriverUnavailable):
        await lifecycle.assign_driver(number, busy_driver.id)

    fresh = await order_store.find_by_number(db, number)
    await db.refresh(fresh)
    assert fresh.status == "pending"
    assert fresh.driver_id is None
    assert fresh.zone_id is None
    assert await history.list_for(db, number) == []


@pytest.mark.asyncio
async def test_assign_sets_zone_from_resolver(db, driver, zone, resolver):
    order = await order_store.create(db, make_draft(), actor="staff-1")
    await assignment.assign_driver(db, order.order_number, driver.id, "staff-1", resolver)
    assert order.zone_id == zone.id
    assert resolver.calls == 1


@pytest.mark.asyncio
async def test_existing_zone_is_kept(db, driver, zone):
    order = await order_store.create(db, make_draft(), actor="staff-1")
    order.zone_id = zone.id
    resolver = StubResolver()
    await assignment.assign_driver(db, order.order_number, driver.id, "staff-1", resolver)
    assert resolver.calls == 0
    assert order.zone_id == zone.id


@pytest.mark.asyncio
async def test_unresolved_zone(db, driver):
    order = await order_store.create(db, make_draft(), actor="staff-1")
    with pytest.raises(UnresolvedZone):
        await assignment.assign_driver(db, order.order_number, driver.id, "staff-1", StubResolver())
    assert order.status == "pending"
    assert order.driver_id is None


@pytest.mark.asyncio
async def test_unknown_driver(db, resolver):
    import uuid
    order = await order_store.create(db, make_draft(), actor="staff-1")
    with pytest.raises(NotFound):
        await assignment.assign_driver(db, order.order_number, uuid.uuid4(), "staff-1", resolver)


@pytest.mark.asyncio
async def test_driver_from_other_zone_rejected(db, zone):
    other = Zone(name="South", base_address="2 Depot Rd", center_lat=38.0, center_lng=-89.0, radius_km=50)
    db.add(other)
    await db.flush()
    d = Driver(user_id="drv-9", full_name="Sam South", status="available", zone_id=other.id)
    db.add(d)
    await db.flush()

    order = await order_store.create(db, make_draft(), actor="staff-1")
    with pytest.raises(InvalidState):
        await assignment.assign_driver(db, order.order_number, d.id, "staff-1", StubResolver(zone.id))


@pytest.mark.asyncio
async def test_reassign_keeps_status_and_history(db, driver, zone, resolver):
    order = await order_store.create(db, make_draft(), actor="staff-1")
    await assignment.assign_driver(db, order.order_number, driver.id, "staff-1", resolver)
    second = Driver(user_id="drv-3", full_name="Nia Next", status="available", zone_id=zone.id)
    db.add(second)
    await db.flush()

    await assignment.assign_driver(db, order.order_number, second.id, "staff-1", resolver)
    await db.flush()
    assert order.status == "assigned"
    assert order.driver_id == second.id
    assert len(await history.list_for(db, order.order_number)) == 1


@pytest.mark.asyncio
async def test_picked_up_order_cannot_be_reassigned(db, driver, resolver):
    order = await order_store.create(db, make_draft(), actor="staff-1")
    await assignment.assign_driver(db, order.order_number, driver.id, "staff-1", resolver)
    await transitions.stage_transition(db, order, "picked_up", "drv-1")
    with pytest.raises(InvalidState):
        await assignment.assign_driver(db, order.order_number, driver.id, "staff-1", resolver)


# ── Batches ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_batch_to_current_batch_by_cutoff(db):
    order = await order_store.create(db, make_draft(), actor="staff-1")
    morning = datetime(2026, 3, 2, 9, 0)
    _, batch = await assignment.assign_to_batch(db, order.order_number, None, "staff-1", now=morning)
    assert batch.batch_date == date(2026, 3, 2)
    assert batch.order_count == 1
    assert order.batch_id == batch.id


@pytest.mark.asyncio
async def test_batch_after_cutoff_goes_to_tomorrow(db):
    order = await order_store.create(db, make_draft(), actor="staff-1")
    evening = datetime(2026, 3, 2, 15, 0)
    _, batch = await assignment.assign_to_batch(db, order.order_number, None, "staff-1", now=evening)
    assert batch.batch_date == date(2026, 3, 3)


@pytest.mark.asyncio
async def test_closed_batch_rejects_orders(db):
    batch = await batches.create_batch(db, date(2026, 3, 2))
    await batches.close_batch(db, batch.id)
    order = await order_store.create(db, make_draft(), actor="staff-1")
    with pytest.raises(BatchClosed):
        await assignment.assign_to_batch(db, order.order_number, batch.id, "staff-1")
    assert order.batch_id is None


@pytest.mark.asyncio
async def test_move_between_batches_updates_counts(db):
    first = await batches.create_batch(db, date(2026, 3, 2))
    second = await batches.create_batch(db, date(2026, 3, 3))
    order = await order_store.create(db, make_draft(), actor="staff-1")

    await assignment.assign_to_batch(db, order.order_number, first.id, "staff-1")
    await assignment.assign_to_batch(db, order.order_number, first.id, "staff-1")
    assert first.order_count == 1

    await assignment.assign_to_batch(db, order.order_number, second.id, "staff-1")
    assert first.order_count == 0
    assert second.order_count == 1
    assert order.batch_id == second.id


@pytest.mark.asyncio
async def test_cannot_leave_closed_batch(db):
    first = await batches.create_batch(db, date(2026, 3, 2))
    second = await batches.create_batch(db, date(2026, 3, 3))
    order = await order_store.create(db, make_draft(), actor="staff-1")
    await assignment.assign_to_batch(db, order.order_number, first.id, "staff-1")
    await batches.close_batch(db, first.id)

    with pytest.raises(BatchClosed):
        await assignment.assign_to_batch(db, order.order_number, second.id, "staff-1")
    assert order.batch_id == first.id


@pytest.mark.asyncio
async def test_voided_order_cannot_be_batched(db):
    order = await order_store.create(db, make_draft(), actor="staff-1")
    await transitions.stage_transition(db, order, "voided", "staff-1")
    with pytest.raises(InvalidState):
        await assignment.assign_to_batch(db, order.order_number, None, "staff-1")


@pytest.mark.asyncio
async def test_geocoder_outage_leaves_order_unassigned(db, staff_ctx, driver):
    resolver = GeocodingZoneResolver(AsyncMock(side_effect=GeocodingUnavailable("down")))
    lifecycle = OrderLifecycle(db, staff_ctx, resolver)
    number = (await lifecycle.create_order(make_draft())).order_number

    with pytest.raises(GeocodingUnavailable) as exc:
        await lifecycle.assign_driver(number, driver.id)
    assert exc.value.retryable is True

    order = await lifecycle.get_order(number)
    await db.refresh(order)
    assert order.status == "pending"
    assert order.driver_id is None
    assert order.zone_id is None
    assert await history.list_for(db, number) == []
