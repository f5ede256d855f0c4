"""
Order Store — durable order records.

Orders are created in `pending` with no driver, zone or batch and are never
deleted; voiding is a status, not a removal. Order numbers follow
ORD-YYYY-NNNNNN and are allocated from a per-year counter row, so they are
sequential within a year and unique across the table.
"""

from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

import pydantic
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from shippxpress.config import settings
from shippxpress.models.customer import Customer
from shippxpress.models.order import Order, OrderSequence
from shippxpress.schemas.order import OrderDraft
from shippxpress.services.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class OrderFilter:
    status: str | None = None
    search: str | None = None
    client_id: uuid.UUID | None = None
    driver_id: uuid.UUID | None = None
    batch_id: uuid.UUID | None = None
    zone_id: uuid.UUID | None = None
    limit: int | None = None
    offset: int = 0


def format_order_number(year: int, value: int) -> str:
    return f"{settings.ORDER_NUMBER_PREFIX}-{year}-{value:06d}"


def validate_draft(draft: OrderDraft | dict) -> OrderDraft:
    """Validate an incoming draft once, at the core boundary."""
    if isinstance(draft, OrderDraft):
        return draft
    try:
        return OrderDraft.model_validate(draft)
    except pydantic.ValidationError as e:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"]}
            for err in e.errors(include_url=False)
        ]
        raise ValidationError("Invalid order data", errors=errors) from e


async def next_order_number(db: AsyncSession, now: datetime | None = None) -> str:
    year = (now or datetime.utcnow()).year
    seq = await db.get(OrderSequence, year, with_for_update=True)
    if seq is None:
        seq = OrderSequence(year=year, last_value=0)
        db.add(seq)
        try:
            await db.flush()
        except IntegrityError as e:
            # Another request opened the year first; retry against its row.
            raise StaleDataError(f"Order sequence for {year} created concurrently") from e
    seq.last_value += 1
    return format_order_number(year, seq.last_value)


async def _find_or_create_customer(db: AsyncSession, draft: OrderDraft) -> Customer:
    result = await db.execute(select(Customer).where(Customer.phone == draft.customer_phone))
    customer = result.scalar_one_or_none()
    if customer is None:
        customer = Customer(
            name=draft.customer_name,
            phone=draft.customer_phone,
            email=draft.customer_email or None,
        )
        db.add(customer)
        try:
            await db.flush()
        except IntegrityError as e:
            raise StaleDataError(f"Customer {draft.customer_phone} created concurrently") from e
    return customer


async def create(
    db: AsyncSession,
    draft: OrderDraft | dict,
    actor: str,
    client_id: uuid.UUID | None = None,
) -> Order:
    draft = validate_draft(draft)
    customer = await _find_or_create_customer(db, draft)

    order = Order(
        order_number=await next_order_number(db),
        client_id=client_id,
        customer_id=customer.id,
        customer_name=draft.customer_name,
        customer_phone=draft.customer_phone,
        customer_email=draft.customer_email or None,
        delivery_line1=draft.delivery.line1,
        delivery_line2=draft.delivery.line2,
        delivery_city=draft.delivery.city,
        delivery_state=draft.delivery.state,
        delivery_zip=draft.delivery.zip,
        delivery_country=draft.delivery.country,
        packages=[p.model_dump(mode="json") for p in draft.packages],
        total_weight_kg=draft.total_weight_kg(),
        pickup_date=draft.pickup_date,
        special_instructions=draft.special_instructions,
        status="pending",
        created_by=actor,
    )
    db.add(order)
    await db.flush()
    logger.info("Order staged: %s by %s", order.order_number, actor)
    return order


async def find_by_number(db: AsyncSession, order_number: str) -> Order:
    result = await db.execute(select(Order).where(Order.order_number == order_number))
    order = result.scalar_one_or_none()
    if not order:
        raise NotFound(f"Order {order_number} not found", order_number=order_number)
    return order


async def list_orders(db: AsyncSession, filters: OrderFilter | None = None) -> list[Order]:
    """Matching orders, newest first."""
    f = filters or OrderFilter()
    query = select(Order)
    if f.status:
        query = query.where(Order.status == f.status)
    if f.search:
        pattern = f"%{f.search.strip()}%"
        query = query.where(or_(
            Order.customer_name.ilike(pattern),
            Order.order_number.ilike(pattern),
        ))
    if f.client_id:
        query = query.where(Order.client_id == f.client_id)
    if f.driver_id:
        query = query.where(Order.driver_id == f.driver_id)
    if f.batch_id:
        query = query.where(Order.batch_id == f.batch_id)
    if f.zone_id:
        query = query.where(Order.zone_id == f.zone_id)

    query = (
        query.order_by(Order.created_at.desc(), Order.order_number.desc())
        .offset(f.offset)
        .limit(f.limit or settings.DEFAULT_PAGE_SIZE)
    )
    result = await db.execute(query)
    return list(result.scalars().all())
