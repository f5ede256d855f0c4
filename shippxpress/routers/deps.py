"""Request-scoped dependencies shared by the routers."""

import uuid

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.db.database import get_db
from shippxpress.schemas import Role
from shippxpress.services.access import OrderLifecycle, RequestContext
from shippxpress.services.errors import PermissionDenied
from shippxpress.services.zones import GeocodingZoneResolver, ZoneResolver


async def get_context(
    x_actor_id: str = Header(...),
    x_actor_role: Role = Header(...),
    x_client_id: uuid.UUID | None = Header(None),
    x_driver_id: uuid.UUID | None = Header(None),
) -> RequestContext:
    """Identity is asserted by the upstream gateway; we only carry it."""
    return RequestContext(
        actor_id=x_actor_id,
        role=x_actor_role,
        client_id=x_client_id,
        driver_id=x_driver_id,
    )


def get_zone_resolver() -> ZoneResolver:
    return GeocodingZoneResolver()


async def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
    resolver: ZoneResolver = Depends(get_zone_resolver),
) -> OrderLifecycle:
    return OrderLifecycle(db, ctx, resolver)


async def require_operator(ctx: RequestContext = Depends(get_context)) -> RequestContext:
    if not ctx.is_operator:
        raise PermissionDenied(f"{ctx.role.value} may not use this endpoint")
    return ctx


async def require_super_admin(ctx: RequestContext = Depends(get_context)) -> RequestContext:
    if ctx.role != Role.SUPER_ADMIN:
        raise PermissionDenied("Access denied")
    return ctx
