"""Dashboard KPIs for the admin and client portals."""

import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.models.driver import Driver
from shippxpress.models.order import Order, ORDER_STATUSES
from shippxpress.models.route_batch import RouteBatch


async def _count_by_status(db: AsyncSession, client_id: uuid.UUID | None = None) -> dict[str, int]:
    query = select(Order.status, func.count(Order.id)).group_by(Order.status)
    if client_id is not None:
        query = query.where(Order.client_id == client_id)
    counts = {status: 0 for status in ORDER_STATUSES}
    for status, count in (await db.execute(query)).all():
        counts[status] = count
    return counts


async def dashboard_stats(db: AsyncSession) -> dict:
    by_status = await _count_by_status(db)
    available = (await db.execute(
        select(func.count(Driver.id)).where(Driver.status == "available")
    )).scalar() or 0
    open_batches = (await db.execute(
        select(func.count(RouteBatch.id)).where(RouteBatch.status == "open")
    )).scalar() or 0
    return {
        "total_orders": sum(by_status.values()),
        "orders_by_status": by_status,
        "available_drivers": available,
        "open_batches": open_batches,
    }


async def client_stats(db: AsyncSession, client_id: uuid.UUID) -> dict:
    by_status = await _count_by_status(db, client_id)
    return {
        "client_id": client_id,
        "total_orders": sum(by_status.values()),
        "pending_orders": by_status["pending"],
        "delivered_orders": by_status["delivered"],
        "voided_orders": by_status["voided"],
    }
