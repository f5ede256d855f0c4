"""
Zone resolution — which geographic partition an order's delivery address
falls into. A point belongs to the nearest active zone whose radius covers it.
"""

from __future__ import annotations
import logging
from typing import Awaitable, Callable, Iterable, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.models.order import Order
from shippxpress.models.zone import Zone
from shippxpress.services import maps

logger = logging.getLogger(__name__)


class ZoneResolver(Protocol):
    async def resolve(self, db: AsyncSession, order: Order) -> Zone | None: ...


def order_address(order: Order) -> str:
    parts = [
        order.delivery_line1,
        order.delivery_line2,
        order.delivery_city,
        f"{order.delivery_state} {order.delivery_zip}",
        order.delivery_country,
    ]
    return ", ".join(p.strip() for p in parts if p and p.strip())


def nearest_zone(zones: Iterable[Zone], lat: float, lng: float) -> Zone | None:
    best: Zone | None = None
    best_km: float | None = None
    for zone in zones:
        if not zone.is_active:
            continue
        d = maps.haversine_distance(lat, lng, float(zone.center_lat), float(zone.center_lng))
        if d > float(zone.radius_km):
            continue
        if best_km is None or d < best_km:
            best, best_km = zone, d
    return best


class GeocodingZoneResolver:
    """
    Geocodes the delivery address (once) and matches it against active zones.

    None means the address is unknown or outside every zone. A geocoder outage
    propagates as GeocodingUnavailable, which callers may retry.
    """

    def __init__(self, geocoder: Callable[..., Awaitable[dict | None]] | None = None):
        self._geocode = geocoder or maps.geocode

    async def resolve(self, db: AsyncSession, order: Order) -> Zone | None:
        if order.delivery_lat is not None and order.delivery_lng is not None:
            lat, lng = float(order.delivery_lat), float(order.delivery_lng)
        else:
            geo = await self._geocode(order_address(order), order.delivery_country)
            if not geo:
                logger.warning("Zone resolution: address of order %s is unknown to the geocoder", order.order_number)
                return None
            lat, lng = geo["lat"], geo["lng"]
            order.delivery_lat = lat
            order.delivery_lng = lng

        result = await db.execute(select(Zone).where(Zone.is_active.is_(True)))
        zone = nearest_zone(result.scalars().all(), lat, lng)
        if zone is None:
            logger.warning("Zone resolution: no zone covers %.4f,%.4f for order %s", lat, lng, order.order_number)
        return zone


async def list_zones(db: AsyncSession, include_inactive: bool = False) -> list[Zone]:
    query = select(Zone).order_by(Zone.name)
    if not include_inactive:
        query = query.where(Zone.is_active.is_(True))
    result = await db.execute(query)
    return list(result.scalars().all())
