"""Shared fixtures: in-memory SQLite database, sample zone/driver, contexts."""

import os

# Must be set before shippxpress.config is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["GEOAPIFY_API_KEY"] = ""

import uuid
from datetime import date
from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import shippxpress.models  # noqa: F401
from shippxpress.db.database import Base
from shippxpress.models.client import Client
from shippxpress.models.driver import Driver
from shippxpress.models.zone import Zone
from shippxpress.schemas import Role
from shippxpress.services.access import RequestContext


class StubResolver:
    """Zone resolver that always answers with a fixed zone id (or nothing)."""

    def __init__(self, zone_id: uuid.UUID | None = None):
        self.zone_id = zone_id
        self.calls = 0

    async def resolve(self, db, order):
        self.calls += 1
        if self.zone_id is None:
            return None
        return SimpleNamespace(id=self.zone_id)


def make_draft(**overrides) -> dict:
    draft = {
        "customer_name": "Jane Doe",
        "customer_phone": "5551234567",
        "customer_email": "jane@example.com",
        "delivery": {
            "line1": "100 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip": "62701",
        },
        "pickup_date": date(2026, 3, 2).isoformat(),
        "packages": [{"description": "Box", "quantity": 2, "weight_kg": 1.5}],
    }
    draft.update(overrides)
    return draft


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """File database with foreign keys enforced; sessions get separate connections."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shippxpress.db'}")

    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(eng, expire_on_commit=False)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def zone(db):
    z = Zone(
        name="North",
        direction="north",
        base_address="1 Depot Rd, Springfield, IL",
        center_lat=39.80,
        center_lng=-89.65,
        radius_km=50,
        is_active=True,
    )
    db.add(z)
    await db.commit()
    return z


@pytest_asyncio.fixture
async def driver(db, zone):
    d = Driver(user_id="drv-1", full_name="Dan Driver", status="available", zone_id=zone.id)
    db.add(d)
    await db.commit()
    return d


@pytest_asyncio.fixture
async def busy_driver(db, zone):
    d = Driver(user_id="drv-2", full_name="Bea Busy", status="busy", zone_id=zone.id)
    db.add(d)
    await db.commit()
    return d


@pytest_asyncio.fixture
async def client_account(db):
    c = Client(name="Acme Shipping", address="9 Dock St")
    db.add(c)
    await db.commit()
    return c


@pytest.fixture
def staff_ctx():
    return RequestContext(actor_id="staff-1", role=Role.STAFF)


@pytest.fixture
def resolver(zone):
    return StubResolver(zone.id)
