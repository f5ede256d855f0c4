"""Driver management API endpoints — CRUD, availability, location, zone."""

import uuid
from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.db.database import get_db
from shippxpress.models.driver import Driver
from shippxpress.models.zone import Zone
from shippxpress.routers.deps import get_context, require_operator
from shippxpress.schemas import (
    DriverCreate, DriverResponse, DriverStatusUpdate, DriverLocationUpdate, DriverZoneUpdate, Role,
)
from shippxpress.services.access import RequestContext
from shippxpress.services.activity import log_activity
from shippxpress.services.assignment import get_driver
from shippxpress.services.errors import Conflict, NotFound, PermissionDenied

router = APIRouter()


def _ensure_self_or_operator(ctx: RequestContext, driver_id: uuid.UUID) -> None:
    if ctx.is_operator:
        return
    if ctx.role == Role.DRIVER and ctx.driver_id == driver_id:
        return
    raise PermissionDenied(f"{ctx.role.value} may not update driver {driver_id}")


async def _ensure_zone(db: AsyncSession, zone_id: uuid.UUID | None) -> None:
    if zone_id is not None and await db.get(Zone, zone_id) is None:
        raise NotFound(f"Zone {zone_id} not found", zone_id=str(zone_id))


# ── CRUD ───────────────────────────────────────────────────

@router.post("/", response_model=DriverResponse)
async def create_driver(
    data: DriverCreate,
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    """Register a driver profile for an existing user account."""
    existing = await db.execute(select(Driver).where(Driver.user_id == data.user_id))
    if existing.scalar_one_or_none():
        raise Conflict("Driver for this user already exists", user_id=data.user_id)
    await _ensure_zone(db, data.zone_id)

    driver = Driver(
        user_id=data.user_id,
        full_name=data.full_name,
        phone=data.phone,
        vehicle_type=data.vehicle_type,
        vehicle_number=data.vehicle_number,
        zone_id=data.zone_id,
        status="offline",
    )
    db.add(driver)
    log_activity(db, ctx.actor_id, "DRIVER_CREATED", f"Registered driver {data.full_name}", {"user_id": data.user_id})
    await db.commit()
    await db.refresh(driver)
    return driver


@router.get("/", response_model=list[DriverResponse])
async def list_drivers(
    status: str | None = None,
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    """List all drivers with optional status filter."""
    query = select(Driver)
    if status:
        query = query.where(Driver.status == status)
    query = query.order_by(Driver.created_at.desc())
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/available", response_model=list[DriverResponse])
async def list_available_drivers(
    zone_id: uuid.UUID | None = None,
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    """Drivers that can take an assignment right now, optionally within one zone."""
    query = select(Driver).where(Driver.status == "available")
    if zone_id:
        query = query.where(Driver.zone_id == zone_id)
    result = await db.execute(query.order_by(Driver.full_name))
    return result.scalars().all()


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver_by_id(
    driver_id: uuid.UUID,
    ctx: RequestContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    _ensure_self_or_operator(ctx, driver_id)
    return await get_driver(db, driver_id)


# ── Status & Location ──────────────────────────────────────

@router.patch("/{driver_id}/status", response_model=DriverResponse)
async def update_driver_status(
    driver_id: uuid.UUID,
    data: DriverStatusUpdate,
    ctx: RequestContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Go online/offline. Only available drivers receive new assignments."""
    _ensure_self_or_operator(ctx, driver_id)
    driver = await get_driver(db, driver_id)
    old_status = driver.status
    driver.status = data.status.value
    log_activity(
        db, ctx.actor_id, "DRIVER_STATUS_UPDATED",
        f"Driver {driver.full_name}: {old_status} -> {data.status.value}",
        {"driver_id": str(driver_id)},
    )
    await db.commit()
    return driver


@router.patch("/{driver_id}/location")
async def update_driver_location(
    driver_id: uuid.UUID,
    data: DriverLocationUpdate,
    ctx: RequestContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Update driver's current GPS location."""
    _ensure_self_or_operator(ctx, driver_id)
    driver = await get_driver(db, driver_id)
    driver.current_lat = data.lat
    driver.current_lng = data.lng
    driver.last_location_update = datetime.utcnow()

    await db.commit()
    return {"driver_id": str(driver_id), "lat": data.lat, "lng": data.lng}


@router.post("/{driver_id}/zone", response_model=DriverResponse)
async def set_driver_zone(
    driver_id: uuid.UUID,
    data: DriverZoneUpdate,
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    """Affiliate a driver with a zone (or clear it with null)."""
    driver = await get_driver(db, driver_id)
    await _ensure_zone(db, data.zone_id)
    driver.zone_id = data.zone_id
    log_activity(
        db, ctx.actor_id, "DRIVER_ZONE_UPDATED",
        f"Driver {driver.full_name} zone set to {data.zone_id}",
        {"driver_id": str(driver_id), "zone_id": str(data.zone_id) if data.zone_id else None},
    )
    await db.commit()
    return driver
