"""
Capability-scoped facade over the order lifecycle.

Each request carries an explicit RequestContext. The facade decides what the
caller may see and do, then runs the core operation as one unit of work.

  super_admin, staff → everything
  client             → create, read, list, history and void of its own orders
  driver             → read, list and history of orders assigned to it;
                       picked_up / in_transit / delivered on those orders

Reads of records outside the caller's scope look exactly like missing ones.
"""

from __future__ import annotations
import dataclasses
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.models.client import Client
from shippxpress.models.order import Order, OrderStatusHistory
from shippxpress.models.route_batch import RouteBatch
from shippxpress.schemas import OrderDraft, OrderStatus, Role
from shippxpress.services import assignment, history, order_store, transitions
from shippxpress.services.activity import log_activity
from shippxpress.services.atomic import atomically
from shippxpress.services.errors import NotFound, PermissionDenied
from shippxpress.services.order_store import OrderFilter
from shippxpress.services.zones import GeocodingZoneResolver, ZoneResolver

logger = logging.getLogger(__name__)

OPERATOR_ROLES = frozenset({Role.SUPER_ADMIN, Role.STAFF})
DRIVER_TARGETS = frozenset({"picked_up", "in_transit", "delivered"})


@dataclass(frozen=True)
class RequestContext:
    actor_id: str
    role: Role
    client_id: uuid.UUID | None = None
    driver_id: uuid.UUID | None = None

    @property
    def is_operator(self) -> bool:
        return self.role in OPERATOR_ROLES


class OrderLifecycle:
    def __init__(self, db: AsyncSession, ctx: RequestContext, resolver: ZoneResolver | None = None):
        self.db = db
        self.ctx = ctx
        self.resolver = resolver or GeocodingZoneResolver()

    # ── Scope checks ───────────────────────────────────────

    def _deny(self, action: str) -> PermissionDenied:
        logger.warning("Denied %s for %s (%s)", action, self.ctx.actor_id, self.ctx.role.value)
        return PermissionDenied(f"{self.ctx.role.value} may not {action}", action=action)

    def _require_operator(self, action: str) -> None:
        if not self.ctx.is_operator:
            raise self._deny(action)

    def _ensure_visible(self, order: Order) -> Order:
        ctx = self.ctx
        if ctx.is_operator:
            return order
        if ctx.role == Role.CLIENT and ctx.client_id is not None and order.client_id == ctx.client_id:
            return order
        if ctx.role == Role.DRIVER and ctx.driver_id is not None and order.driver_id == ctx.driver_id:
            return order
        raise NotFound(f"Order {order.order_number} not found", order_number=order.order_number)

    async def _load(self, order_number: str) -> Order:
        return self._ensure_visible(await order_store.find_by_number(self.db, order_number))

    def _check_transition_allowed(self, target: str) -> None:
        role = self.ctx.role
        if self.ctx.is_operator:
            return
        if role == Role.CLIENT and target == "voided":
            return
        if role == Role.DRIVER and target in DRIVER_TARGETS:
            return
        raise self._deny(f"move orders to {target}")

    # ── Commands ───────────────────────────────────────────

    async def create_order(self, draft: OrderDraft | dict) -> Order:
        ctx = self.ctx
        if ctx.role == Role.CLIENT:
            if ctx.client_id is None:
                raise self._deny("create orders without a client account")
            client_id = ctx.client_id
        elif ctx.is_operator:
            client_id = None
        else:
            raise self._deny("create orders")

        async def _create(db: AsyncSession) -> Order:
            if client_id is not None and await db.get(Client, client_id) is None:
                raise NotFound(f"Client {client_id} not found", client_id=str(client_id))
            order = await order_store.create(db, draft, actor=ctx.actor_id, client_id=client_id)
            log_activity(
                db, ctx.actor_id, "ORDER_CREATED",
                f"Created order {order.order_number}",
                {"order_number": order.order_number},
            )
            return order

        return await atomically(self.db, _create)

    async def transition_order(
        self,
        order_number: str,
        target: OrderStatus | str,
        notes: str | None = None,
    ) -> Order:
        target_value = target.value if isinstance(target, OrderStatus) else str(target)
        self._check_transition_allowed(target_value)
        ctx = self.ctx

        async def _transition(db: AsyncSession) -> Order:
            order = await self._load(order_number)
            from_status = order.status
            await transitions.stage_transition(db, order, target_value, ctx.actor_id, notes)
            action = "ORDER_VOIDED" if target_value == "voided" else "ORDER_STATUS_UPDATED"
            log_activity(
                db, ctx.actor_id, action,
                f"Order {order_number}: {from_status} -> {target_value}",
                {"order_number": order_number, "from": from_status, "to": target_value, "notes": notes},
            )
            return order

        return await atomically(self.db, _transition)

    async def void_order(self, order_number: str, reason: str) -> Order:
        return await self.transition_order(order_number, OrderStatus.VOIDED, notes=reason)

    async def assign_driver(self, order_number: str, driver_id: uuid.UUID) -> Order:
        self._require_operator("assign drivers")
        ctx = self.ctx

        async def _assign(db: AsyncSession) -> Order:
            order = await assignment.assign_driver(db, order_number, driver_id, ctx.actor_id, self.resolver)
            log_activity(
                db, ctx.actor_id, "ORDER_ASSIGNED",
                f"Assigned order {order_number} to driver {driver_id}",
                {"order_number": order_number, "driver_id": str(driver_id), "zone_id": str(order.zone_id)},
            )
            return order

        return await atomically(self.db, _assign)

    async def assign_to_batch(
        self,
        order_number: str,
        batch_id: uuid.UUID | None = None,
    ) -> tuple[Order, RouteBatch]:
        self._require_operator("batch orders")
        ctx = self.ctx

        async def _batch(db: AsyncSession) -> tuple[Order, RouteBatch]:
            order, batch = await assignment.assign_to_batch(db, order_number, batch_id, ctx.actor_id)
            log_activity(
                db, ctx.actor_id, "ORDER_BATCHED",
                f"Added order {order_number} to batch {batch.batch_date}",
                {"order_number": order_number, "batch_id": str(batch.id)},
            )
            return order, batch

        return await atomically(self.db, _batch)

    # ── Queries ────────────────────────────────────────────

    async def get_order(self, order_number: str) -> Order:
        return await self._load(order_number)

    async def list_orders(self, filters: OrderFilter | None = None) -> list[Order]:
        f = filters or OrderFilter()
        ctx = self.ctx
        if ctx.role == Role.CLIENT:
            if ctx.client_id is None:
                raise self._deny("list orders without a client account")
            f = dataclasses.replace(f, client_id=ctx.client_id)
        elif ctx.role == Role.DRIVER:
            if ctx.driver_id is None:
                raise self._deny("list orders without a driver profile")
            f = dataclasses.replace(f, driver_id=ctx.driver_id)
        return await order_store.list_orders(self.db, f)

    async def get_history(self, order_number: str) -> list[OrderStatusHistory]:
        await self._load(order_number)
        return await history.list_for(self.db, order_number)
