"""
Geocoding service — delivery address to coordinates, with caching.

Strategy:
  1. "lat,lng" literals are returned as-is (pins dropped in the UI)
  2. Redis cache (30-day TTL) keyed by the normalised address
  3. Geoapify when an API key is configured
  4. Nominatim (OpenStreetMap) as free fallback

An address no provider knows gives None. When every provider that was asked
failed to answer, GeocodingUnavailable is raised so callers can retry later.
"""

import hashlib
import logging
import math

import httpx
import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shippxpress.config import settings
from shippxpress.services.errors import GeocodingUnavailable

logger = logging.getLogger(__name__)

_redis: aioredis.Redis | None = None
_http: httpx.AsyncClient | None = None

GEOAPIFY_GEOCODE_URL = "https://api.geoapify.com/v1/geocode/search"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"

GEOCODE_CACHE_TTL = 30 * 24 * 3600  # 30 days
EARTH_RADIUS_KM = 6371


async def _get_redis() -> aioredis.Redis:
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis


async def _get_http() -> httpx.AsyncClient:
    global _http
    if _http is None:
        _http = httpx.AsyncClient(timeout=settings.GEOCODE_TIMEOUT_SEC)
    return _http


async def close() -> None:
    """Release pooled clients on shutdown."""
    global _redis, _http
    if _http is not None:
        await _http.aclose()
        _http = None
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def _address_hash(address: str) -> str:
    """Normalize and hash an address for cache key."""
    normalized = " ".join(address.strip().lower().split())
    return hashlib.sha256(normalized.encode()).hexdigest()[:16]


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in km."""
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 2)


def _parse_lat_lng(text: str) -> tuple[float, float] | None:
    """Parse a 'lat,lng' literal."""
    if not text or "," not in text:
        return None
    parts = text.strip().split(",", 1)
    try:
        lat, lng = float(parts[0].strip()), float(parts[1].strip())
    except ValueError:
        return None
    if -90 <= lat <= 90 and -180 <= lng <= 180:
        return (lat, lng)
    return None


async def _cache_get(key: str) -> dict | None:
    try:
        r = await _get_redis()
        cached = await r.hgetall(key)
    except RedisError as e:
        logger.warning("Geocode cache read failed: %s", e)
        return None
    if cached and "lat" in cached:
        return cached
    return None


async def _cache_put(key: str, result: dict) -> None:
    try:
        r = await _get_redis()
        await r.hset(key, mapping={
            "lat": str(result["lat"]),
            "lng": str(result["lng"]),
            "formatted": result["formatted"],
        })
        await r.expire(key, GEOCODE_CACHE_TTL)
    except RedisError as e:
        logger.warning("Geocode cache write failed: %s", e)


async def _geoapify(address: str, country: str) -> dict | None:
    http = await _get_http()
    resp = await http.get(
        GEOAPIFY_GEOCODE_URL,
        params={
            "text": address,
            "filter": f"countrycode:{country.lower()}",
            "apiKey": settings.GEOAPIFY_API_KEY,
        },
    )
    resp.raise_for_status()
    features = resp.json().get("features") or []
    if not features:
        return None
    props = features[0].get("properties", {}) or {}
    lat, lon = props.get("lat"), props.get("lon")
    if lat is None or lon is None:
        return None
    return {"lat": float(lat), "lng": float(lon), "formatted": props.get("formatted") or address}


async def _nominatim(address: str, country: str) -> dict | None:
    http = await _get_http()
    resp = await http.get(NOMINATIM_URL, params={
        "q": address,
        "format": "json",
        "limit": 1,
        "countrycodes": country.lower(),
    }, headers={"User-Agent": "ShippXpress/1.0 (dispatch@shippxpress.app)"})
    resp.raise_for_status()
    hits = resp.json()
    if not hits:
        return None
    return {
        "lat": float(hits[0]["lat"]),
        "lng": float(hits[0]["lon"]),
        "formatted": hits[0].get("display_name", address),
    }


async def geocode(address: str, country: str = "US") -> dict | None:
    """
    Geocode an address to lat/lng.

    Returns:
        {"lat": float, "lng": float, "formatted": str} or None when unknown

    Raises:
        GeocodingUnavailable when no provider could be reached
    """
    coords = _parse_lat_lng(address)
    if coords is not None:
        return {"lat": coords[0], "lng": coords[1], "formatted": address}

    cache_key = f"geo:{_address_hash(address)}"
    cached = await _cache_get(cache_key)
    if cached:
        return {
            "lat": float(cached["lat"]),
            "lng": float(cached["lng"]),
            "formatted": cached.get("formatted", address),
        }

    result = None
    asked = failed = 0
    if settings.GEOAPIFY_API_KEY:
        asked += 1
        try:
            result = await _geoapify(address, country)
        except (httpx.HTTPError, ValueError) as e:
            failed += 1
            logger.warning("Geoapify geocode failed for '%s': %s", address[:60], e)

    if result is None:
        asked += 1
        try:
            result = await _nominatim(address, country)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            failed += 1
            logger.warning("Nominatim geocode failed for '%s': %s", address[:60], e)

    if result is None and failed == asked:
        raise GeocodingUnavailable(f"No geocoding provider answered for '{address[:60]}'")

    if result:
        await _cache_put(cache_key, result)
    return result
