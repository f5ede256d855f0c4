"""
ShippXpress — FastAPI Backend
Order lifecycle, driver assignment and route batching for the delivery desk.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from shippxpress import __version__
from shippxpress.config import settings
from shippxpress.db.database import engine, create_all
from shippxpress.routers import orders, drivers, zones, batches, admin
from shippxpress.services import maps
from shippxpress.services.errors import LifecycleError, ValidationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("ShippXpress API starting...")
    await create_all()
    yield
    await maps.close()
    await engine.dispose()
    logger.info("ShippXpress API shut down.")


app = FastAPI(
    title="ShippXpress Logistics API",
    description="Order lifecycle and dispatch backend",
    version=__version__,
    lifespan=lifespan,
)

# ── CORS ───────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Errors ─────────────────────────────────────────────────
@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]
    error = ValidationError("Invalid request", errors=errors)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# ── Routers ────────────────────────────────────────────────
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(drivers.router, prefix="/api/drivers", tags=["Drivers"])
app.include_router(zones.router, prefix="/api/zones", tags=["Zones"])
app.include_router(batches.router, prefix="/api/batches", tags=["Route Batches"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin Dashboard"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": f"ShippXpress API v{__version__}"}


@app.get("/health/db")
async def health_db():
    """Verify the database answers."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        return JSONResponse(status_code=503, content={"status": "error", "detail": str(e)})
