"""Route batch endpoints — daily cutoff groups of orders."""

import uuid
from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.db.database import get_db
from shippxpress.models.route_batch import RouteBatch
from shippxpress.routers.deps import require_operator
from shippxpress.schemas import BatchCreate, BatchResponse, BatchStatus
from shippxpress.services import batches
from shippxpress.services.access import RequestContext
from shippxpress.services.activity import log_activity
from shippxpress.services.atomic import atomically

router = APIRouter()


@router.get("/", response_model=list[BatchResponse])
async def list_batches(
    batch_date: date | None = None,
    status: BatchStatus | None = None,
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    return await batches.list_batches(db, batch_date, status.value if status else None)


@router.get("/current", response_model=BatchResponse)
async def get_current_batch(
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    """Open batch new work lands in right now (created if it does not exist yet)."""
    return await atomically(db, batches.current_batch)


@router.post("/", response_model=BatchResponse)
async def create_batch(
    data: BatchCreate,
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    async def _create(db: AsyncSession) -> RouteBatch:
        batch = await batches.create_batch(db, data.batch_date, data.cutoff_time)
        log_activity(
            db, ctx.actor_id, "BATCH_CREATED",
            f"Created batch for {data.batch_date} (cutoff {data.cutoff_time})",
            {"batch_id": str(batch.id)},
        )
        return batch

    return await atomically(db, _create)


@router.post("/{batch_id}/close", response_model=BatchResponse)
async def close_batch(
    batch_id: uuid.UUID,
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    """Close a batch; it accepts no further orders."""
    async def _close(db: AsyncSession) -> RouteBatch:
        batch = await batches.close_batch(db, batch_id)
        log_activity(
            db, ctx.actor_id, "BATCH_CLOSED",
            f"Closed batch {batch.batch_date} with {batch.order_count} orders",
            {"batch_id": str(batch_id)},
        )
        return batch

    return await atomically(db, _close)
