"""
Route batches — orders grouped by pickup day.

Rules:
  - Each day has a cutoff (default 2:30 PM, BATCH_CUTOFF_TIME)
  - Up to and including the cutoff, new work goes into today's batch
  - After the cutoff it goes into tomorrow's batch
  - A closed batch accepts no more orders
  - A day has at most one open batch at a time
"""

from __future__ import annotations
import logging
import uuid
from datetime import datetime, date, time, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from shippxpress.config import settings
from shippxpress.models.route_batch import RouteBatch
from shippxpress.services.errors import BatchClosed, Conflict, NotFound, ValidationError

logger = logging.getLogger(__name__)


def parse_cutoff(value: str) -> time:
    try:
        hours, minutes = map(int, value.split(":"))
        return time(hours, minutes)
    except ValueError:
        raise ValidationError(f"Invalid cutoff time '{value}', expected HH:MM")


def batch_date_for(now: datetime, cutoff: time | None = None) -> date:
    cutoff = cutoff or parse_cutoff(settings.BATCH_CUTOFF_TIME)
    if now.time() > cutoff:
        return now.date() + timedelta(days=1)
    return now.date()


async def get_batch(db: AsyncSession, batch_id: uuid.UUID) -> RouteBatch:
    batch = await db.get(RouteBatch, batch_id)
    if batch is None:
        raise NotFound(f"Batch {batch_id} not found", batch_id=str(batch_id))
    return batch


async def _open_batch_for(db: AsyncSession, batch_date: date) -> RouteBatch | None:
    result = await db.execute(
        select(RouteBatch).where(RouteBatch.batch_date == batch_date, RouteBatch.status == "open")
    )
    return result.scalar_one_or_none()


async def _insert_batch(db: AsyncSession, batch_date: date, cutoff_time: str) -> RouteBatch:
    batch = RouteBatch(batch_date=batch_date, cutoff_time=cutoff_time, status="open", order_count=0)
    db.add(batch)
    try:
        await db.flush()
    except IntegrityError as e:
        # Another request opened the day first; the unit of work retries.
        raise StaleDataError(f"Open batch for {batch_date} created concurrently") from e
    logger.info("Batch created for %s (cutoff %s)", batch_date, cutoff_time)
    return batch


async def create_batch(db: AsyncSession, batch_date: date, cutoff_time: str | None = None) -> RouteBatch:
    cutoff_time = cutoff_time or settings.BATCH_CUTOFF_TIME
    parse_cutoff(cutoff_time)
    existing = await _open_batch_for(db, batch_date)
    if existing is not None:
        raise Conflict(
            f"An open batch for {batch_date} already exists",
            batch_id=str(existing.id),
        )
    return await _insert_batch(db, batch_date, cutoff_time)


async def current_batch(db: AsyncSession, now: datetime | None = None) -> RouteBatch:
    """Open batch for the day new work currently falls into, created on demand."""
    target_date = batch_date_for(now or datetime.utcnow())
    batch = await _open_batch_for(db, target_date)
    if batch is None:
        batch = await _insert_batch(db, target_date, settings.BATCH_CUTOFF_TIME)
    return batch


async def list_batches(
    db: AsyncSession,
    batch_date: date | None = None,
    status: str | None = None,
) -> list[RouteBatch]:
    query = select(RouteBatch)
    if batch_date:
        query = query.where(RouteBatch.batch_date == batch_date)
    if status:
        query = query.where(RouteBatch.status == status)
    query = query.order_by(RouteBatch.batch_date.desc(), RouteBatch.created_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def close_batch(db: AsyncSession, batch_id: uuid.UUID) -> RouteBatch:
    batch = await get_batch(db, batch_id)
    if batch.status == "closed":
        raise BatchClosed(f"Batch {batch_id} is already closed", batch_id=str(batch_id))
    batch.status = "closed"
    batch.closed_at = datetime.utcnow()
    logger.info("Batch %s closed with %d orders", batch_id, batch.order_count)
    return batch
