"""Admin dashboard API endpoints — KPIs, activity feed, client accounts."""

import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.db.database import get_db
from shippxpress.models.client import Client
from shippxpress.routers.deps import get_context, require_operator, require_super_admin
from shippxpress.schemas import (
    ActivityResponse, ClientCreate, ClientResponse, ClientStats, DashboardStats, Role,
)
from shippxpress.services.access import RequestContext
from shippxpress.services.activity import log_activity, recent_activity
from shippxpress.services.errors import NotFound
from shippxpress.services.stats import client_stats, dashboard_stats

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    """Get real-time dashboard KPI statistics."""
    return DashboardStats(**await dashboard_stats(db))


@router.get("/activity", response_model=list[ActivityResponse])
async def get_activity(
    limit: int = Query(20, ge=1, le=200),
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    """Recent activity, newest first."""
    return await recent_activity(db, limit)


# ── Clients ────────────────────────────────────────────────

@router.get("/clients", response_model=list[ClientResponse])
async def list_clients(
    ctx: RequestContext = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Client).order_by(Client.name))
    return result.scalars().all()


@router.post("/clients", response_model=ClientResponse)
async def create_client(
    data: ClientCreate,
    ctx: RequestContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    client = Client(**data.model_dump(), is_active=True)
    db.add(client)
    log_activity(db, ctx.actor_id, "CLIENT_CREATED", f"Created client {data.name}", {"name": data.name})
    await db.commit()
    await db.refresh(client)
    return client


@router.get("/clients/{client_id}/stats", response_model=ClientStats)
async def get_client_stats(
    client_id: uuid.UUID,
    ctx: RequestContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Order counts for one client. Clients may only see their own."""
    own = ctx.role == Role.CLIENT and ctx.client_id == client_id
    if not (ctx.is_operator or own) or await db.get(Client, client_id) is None:
        raise NotFound(f"Client {client_id} not found", client_id=str(client_id))
    return ClientStats(**await client_stats(db, client_id))
