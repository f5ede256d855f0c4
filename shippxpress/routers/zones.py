"""Delivery zone endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.db.database import get_db
from shippxpress.models.zone import Zone
from shippxpress.routers.deps import get_context, require_operator
from shippxpress.schemas import ZoneCreate, ZoneResponse
from shippxpress.services.access import RequestContext
from shippxpress.services.activity import log_activity
from shippxpress.services.errors import Conflict
from shippxpress.services.zones import list_zones

router = APIRouter()


@router.get("/", response_model=list[ZoneResponse])
async def get_zones(
    include_inactive: bool = False,
    ctx: RequestContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    return await list_zones(db, include_inactive=include_inactive)


@router.post("/", response_model=ZoneResponse)
async def create_zone(
    data: ZoneCreate,
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    existing = await db.execute(select(Zone).where(Zone.name == data.name))
    if existing.scalar_one_or_none():
        raise Conflict(f"Zone '{data.name}' already exists", name=data.name)

    zone = Zone(**data.model_dump(), is_active=True)
    db.add(zone)
    log_activity(db, ctx.actor_id, "ZONE_CREATED", f"Created zone {data.name}", {"name": data.name})
    await db.commit()
    await db.refresh(zone)
    return zone
