"""Append-only status history ledger."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.models.order import Order, OrderStatusHistory
from shippxpress.services.errors import NotFound


async def record(
    db: AsyncSession,
    order: Order,
    status: str,
    actor: str,
    notes: str | None = None,
    from_status: str | None = None,
) -> OrderStatusHistory:
    """
    Stage one history entry in the caller's transaction. Inserts only.

    The entry is written by the same commit as the status change it
    describes; storage failures surface from there as StorageUnavailable.
    """
    entry = OrderStatusHistory(
        order_id=order.id,
        from_status=from_status,
        status=status,
        actor=actor,
        notes=notes,
    )
    db.add(entry)
    return entry


async def list_for(db: AsyncSession, order_number: str) -> list[OrderStatusHistory]:
    """Entries for an order in insertion order."""
    order_id = (await db.execute(
        select(Order.id).where(Order.order_number == order_number)
    )).scalar_one_or_none()
    if order_id is None:
        raise NotFound(f"Order {order_number} not found", order_number=order_number)

    result = await db.execute(
        select(OrderStatusHistory)
        .where(OrderStatusHistory.order_id == order_id)
        .order_by(OrderStatusHistory.id.asc())
    )
    return list(result.scalars().all())
