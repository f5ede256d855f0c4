"""Order lifecycle API endpoints."""

import uuid
from fastapi import APIRouter, Depends, Query

from shippxpress.routers.deps import get_lifecycle
from shippxpress.schemas import (
    OrderDraft, OrderResponse, OrderStatus, OrderTransitionRequest, OrderVoidRequest,
    AssignDriverRequest, AssignBatchRequest, StatusHistoryResponse,
)
from shippxpress.services.access import OrderLifecycle
from shippxpress.services.order_store import OrderFilter

router = APIRouter()


@router.post("/", response_model=OrderResponse)
async def create_order(data: OrderDraft, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """Create a new order in pending status."""
    return await lifecycle.create_order(data)


@router.get("/", response_model=list[OrderResponse])
async def list_orders(
    status: OrderStatus | None = None,
    search: str | None = None,
    batch_id: uuid.UUID | None = None,
    zone_id: uuid.UUID | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
):
    """List orders visible to the caller, newest first."""
    filters = OrderFilter(
        status=status.value if status else None,
        search=search,
        batch_id=batch_id,
        zone_id=zone_id,
        limit=limit,
        offset=skip,
    )
    return await lifecycle.list_orders(filters)


@router.get("/{order_number}", response_model=OrderResponse)
async def get_order(order_number: str, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    return await lifecycle.get_order(order_number)


@router.patch("/{order_number}/status", response_model=OrderResponse)
async def update_order_status(
    order_number: str,
    data: OrderTransitionRequest,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
):
    """Move an order along its lifecycle (also used by barcode scans)."""
    return await lifecycle.transition_order(order_number, data.status, data.notes)


@router.post("/{order_number}/void", response_model=OrderResponse)
async def void_order(
    order_number: str,
    data: OrderVoidRequest,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.void_order(order_number, data.reason)


@router.post("/{order_number}/assign", response_model=OrderResponse)
async def assign_driver(
    order_number: str,
    data: AssignDriverRequest,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
):
    """Assign (or reassign) a driver; a pending order becomes assigned."""
    return await lifecycle.assign_driver(order_number, data.driver_id)


@router.post("/{order_number}/batch", response_model=OrderResponse)
async def assign_to_batch(
    order_number: str,
    data: AssignBatchRequest,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
):
    """Add an order to a batch; without batch_id the current cutoff batch is used."""
    order, _ = await lifecycle.assign_to_batch(order_number, data.batch_id)
    return order


@router.get("/{order_number}/history", response_model=list[StatusHistoryResponse])
async def get_history(order_number: str, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """Status history in the order it happened."""
    return await lifecycle.get_history(order_number)
