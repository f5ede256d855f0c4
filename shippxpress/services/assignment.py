"""
Assignment Resolver — ties an order to a driver, a zone and a route batch.

Only the association fields of an order are written here (plus the delivery
coordinates found while resolving its zone). Status changes go through the
transition engine so the history stays complete.
"""

from __future__ import annotations
import logging
import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.models.driver import Driver
from shippxpress.models.order import Order
from shippxpress.models.route_batch import RouteBatch
from shippxpress.services import batches, order_store, transitions
from shippxpress.services.errors import (
    BatchClosed, DriverUnavailable, InvalidState, NotFound, UnresolvedZone,
)
from shippxpress.services.zones import ZoneResolver

logger = logging.getLogger(__name__)

DRIVER_ASSIGNABLE_STATUSES = frozenset({"pending", "assigned"})
BATCHABLE_STATUSES = frozenset({"pending", "assigned"})


async def get_driver(db: AsyncSession, driver_id: uuid.UUID) -> Driver:
    driver = await db.get(Driver, driver_id)
    if driver is None:
        raise NotFound(f"Driver {driver_id} not found", driver_id=str(driver_id))
    return driver


async def assign_driver(
    db: AsyncSession,
    order_number: str,
    driver_id: uuid.UUID,
    actor: str,
    resolver: ZoneResolver,
    notes: str | None = None,
) -> Order:
    order = await order_store.find_by_number(db, order_number)
    if order.status not in DRIVER_ASSIGNABLE_STATUSES:
        raise InvalidState(
            f"Order {order_number} is {order.status}; drivers can only be set while pending or assigned",
            order_number=order_number,
            current=order.status,
        )

    driver = await get_driver(db, driver_id)
    if driver.status != "available":
        raise DriverUnavailable(
            f"Driver {driver.full_name} is {driver.status}",
            driver_id=str(driver.id),
            driver_status=driver.status,
        )

    zone_id = order.zone_id
    if zone_id is None:
        zone = await resolver.resolve(db, order)
        if zone is None:
            raise UnresolvedZone(f"No zone covers the delivery address of {order_number}", order_number=order_number)
        zone_id = zone.id

    if driver.zone_id is not None and driver.zone_id != zone_id:
        raise InvalidState(
            f"Driver {driver.full_name} serves another zone",
            order_number=order_number,
            driver_zone_id=str(driver.zone_id),
            order_zone_id=str(zone_id),
        )

    previous_driver = order.driver_id
    order.driver_id = driver.id
    order.zone_id = zone_id

    if order.status == "pending":
        await transitions.stage_transition(db, order, "assigned", actor, notes=notes)
    elif previous_driver != driver.id:
        logger.info("Order %s reassigned from %s to %s by %s", order_number, previous_driver, driver.id, actor)

    return order


async def assign_to_batch(
    db: AsyncSession,
    order_number: str,
    batch_id: uuid.UUID | None,
    actor: str,
    now: datetime | None = None,
) -> tuple[Order, RouteBatch]:
    """Put an order in a batch; with no batch id, the current cutoff batch is used."""
    order = await order_store.find_by_number(db, order_number)
    if order.status not in BATCHABLE_STATUSES:
        raise InvalidState(
            f"Order {order_number} is {order.status}; only orders not yet picked up can be batched",
            order_number=order_number,
            current=order.status,
        )

    if batch_id is not None:
        batch = await batches.get_batch(db, batch_id)
    else:
        batch = await batches.current_batch(db, now)
    if batch.status == "closed":
        raise BatchClosed(f"Batch {batch.id} is closed", batch_id=str(batch.id))

    if order.batch_id == batch.id:
        return order, batch

    if order.batch_id is not None:
        old = await batches.get_batch(db, order.batch_id)
        if old.status == "closed":
            raise BatchClosed(
                f"Order {order_number} belongs to closed batch {old.id}",
                batch_id=str(old.id),
            )
        old.order_count = max(old.order_count - 1, 0)

    batch.order_count += 1
    order.batch_id = batch.id
    logger.info("Order %s added to batch %s (%s) by %s", order_number, batch.id, batch.batch_date, actor)
    return order, batch
