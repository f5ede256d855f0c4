"""
Status Transition Engine.

    pending ──► assigned ──► picked_up ──► in_transit ──► delivered
                                 └─────────────────────────► delivered
    any non-terminal status ──► voided

`delivered` and `voided` are terminal. Functions here stage changes on the
session only; `services.atomic.atomically` commits the status change and its
history entry together.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.models.order import Order
from shippxpress.schemas import OrderStatus
from shippxpress.services import history, order_store
from shippxpress.services.errors import IllegalTransition, InvalidState

logger = logging.getLogger(__name__)

TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"assigned", "voided"}),
    "assigned": frozenset({"picked_up", "voided"}),
    "picked_up": frozenset({"in_transit", "delivered", "voided"}),
    "in_transit": frozenset({"delivered", "voided"}),
    "delivered": frozenset(),
    "voided": frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


def _status_value(status: OrderStatus | str) -> str:
    try:
        return OrderStatus(status).value
    except ValueError:
        raise IllegalTransition(f"Unknown status '{status}'", target=str(status))


def can_transition(current: str, target: OrderStatus | str) -> bool:
    try:
        return _status_value(target) in TRANSITIONS.get(current, frozenset())
    except IllegalTransition:
        return False


def allowed_targets(current: str) -> list[str]:
    return sorted(TRANSITIONS.get(current, frozenset()))


async def stage_transition(
    db: AsyncSession,
    order: Order,
    target: OrderStatus | str,
    actor: str,
    notes: str | None = None,
) -> Order:
    """Validate and stage one transition on an already-loaded order."""
    target = _status_value(target)
    current = order.status

    if target not in TRANSITIONS.get(current, frozenset()):
        raise IllegalTransition(
            f"Order {order.order_number} cannot move from {current} to {target}",
            order_number=order.order_number,
            current=current,
            target=target,
            allowed=allowed_targets(current),
        )
    if target == "assigned" and order.driver_id is None:
        raise InvalidState(
            f"Order {order.order_number} has no driver; use driver assignment",
            order_number=order.order_number,
        )

    now = datetime.utcnow()
    order.status = target
    if target == "assigned":
        order.assigned_at = now
    elif target == "picked_up":
        order.picked_up_at = now
    elif target == "delivered":
        order.actual_delivery_time = now
    elif target == "voided":
        order.voided_at = now
        order.void_reason = notes
        order.voided_by = actor

    await history.record(db, order, target, actor, notes=notes, from_status=current)
    logger.info("Order %s: %s -> %s by %s", order.order_number, current, target, actor)
    return order


async def apply_transition(
    db: AsyncSession,
    order_number: str,
    target: OrderStatus | str,
    actor: str,
    notes: str | None = None,
) -> Order:
    order = await order_store.find_by_number(db, order_number)
    return await stage_transition(db, order, target, actor, notes)
