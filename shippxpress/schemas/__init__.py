"""Pydantic schemas for API request/response models."""

from __future__ import annotations
import uuid
from datetime import datetime, date
from enum import Enum
from pydantic import BaseModel, Field

from shippxpress.schemas.order import OrderDraft, AddressIn, PackageIn, Dimensions


# ── Enums ──────────────────────────────────────────────────

class OrderStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    VOIDED = "voided"


class DriverStatus(str, Enum):
    OFFLINE = "offline"
    AVAILABLE = "available"
    BUSY = "busy"


class BatchStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    STAFF = "staff"
    CLIENT = "client"
    DRIVER = "driver"


# ── Order Schemas ──────────────────────────────────────────

class OrderResponse(BaseModel):
    id: uuid.UUID
    order_number: str
    status: OrderStatus
    client_id: uuid.UUID | None
    customer_name: str
    customer_phone: str
    customer_email: str | None
    delivery_line1: str
    delivery_line2: str | None
    delivery_city: str
    delivery_state: str
    delivery_zip: str
    delivery_country: str
    pickup_date: date
    packages: list[dict]
    total_weight_kg: float
    distance_km: float | None
    special_instructions: str | None
    driver_id: uuid.UUID | None
    zone_id: uuid.UUID | None
    batch_id: uuid.UUID | None
    void_reason: str | None
    voided_by: str | None
    voided_at: datetime | None
    created_by: str
    created_at: datetime
    assigned_at: datetime | None
    picked_up_at: datetime | None
    actual_delivery_time: datetime | None

    class Config:
        from_attributes = True


class StatusHistoryResponse(BaseModel):
    id: int
    from_status: str | None
    status: str
    actor: str
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class OrderTransitionRequest(BaseModel):
    status: OrderStatus
    notes: str | None = None


class OrderVoidRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class AssignDriverRequest(BaseModel):
    driver_id: uuid.UUID


class AssignBatchRequest(BaseModel):
    batch_id: uuid.UUID | None = None  # None = current batch by cutoff


# ── Driver Schemas ─────────────────────────────────────────

class DriverCreate(BaseModel):
    user_id: str
    full_name: str
    phone: str | None = None
    vehicle_type: str | None = None
    vehicle_number: str | None = None
    zone_id: uuid.UUID | None = None


class DriverResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    full_name: str
    phone: str | None
    vehicle_type: str | None
    vehicle_number: str | None
    status: DriverStatus
    current_lat: float | None
    current_lng: float | None
    zone_id: uuid.UUID | None
    created_at: datetime

    class Config:
        from_attributes = True


class DriverStatusUpdate(BaseModel):
    status: DriverStatus


class DriverLocationUpdate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class DriverZoneUpdate(BaseModel):
    zone_id: uuid.UUID | None


# ── Zone Schemas ───────────────────────────────────────────

class ZoneCreate(BaseModel):
    name: str = Field(..., min_length=1)
    direction: str | None = None
    base_address: str
    center_lat: float = Field(..., ge=-90, le=90)
    center_lng: float = Field(..., ge=-180, le=180)
    radius_km: float = Field(default=480, gt=0)


class ZoneResponse(BaseModel):
    id: uuid.UUID
    name: str
    direction: str | None
    base_address: str
    center_lat: float
    center_lng: float
    radius_km: float
    is_active: bool

    class Config:
        from_attributes = True


# ── Route Batch Schemas ────────────────────────────────────

class BatchCreate(BaseModel):
    batch_date: date
    cutoff_time: str = Field(default="14:30", pattern=r"^\d{2}:\d{2}$")


class BatchResponse(BaseModel):
    id: uuid.UUID
    batch_date: date
    cutoff_time: str
    status: BatchStatus
    order_count: int
    created_at: datetime
    closed_at: datetime | None

    class Config:
        from_attributes = True


# ── Client Schemas ─────────────────────────────────────────

class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1)
    address: str
    contact_email: str | None = None
    contact_phone: str | None = None


class ClientResponse(BaseModel):
    id: uuid.UUID
    name: str
    address: str
    contact_email: str | None
    contact_phone: str | None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


# ── Activity / Analytics Schemas ───────────────────────────

class ActivityResponse(BaseModel):
    id: int
    actor: str
    action: str
    description: str
    metadata_json: dict | None = Field(default=None, serialization_alias="metadata")
    created_at: datetime

    class Config:
        from_attributes = True


class DashboardStats(BaseModel):
    total_orders: int
    orders_by_status: dict[str, int]
    available_drivers: int
    open_batches: int


class ClientStats(BaseModel):
    client_id: uuid.UUID
    total_orders: int
    pending_orders: int
    delivered_orders: int
    voided_orders: int


__all__ = [
    "OrderDraft", "AddressIn", "PackageIn", "Dimensions",
    "OrderStatus", "DriverStatus", "BatchStatus", "Role",
    "OrderResponse", "StatusHistoryResponse", "OrderTransitionRequest",
    "OrderVoidRequest", "AssignDriverRequest", "AssignBatchRequest",
    "DriverCreate", "DriverResponse", "DriverStatusUpdate",
    "DriverLocationUpdate", "DriverZoneUpdate",
    "ZoneCreate", "ZoneResponse", "BatchCreate", "BatchResponse",
    "ClientCreate", "ClientResponse", "ActivityResponse",
    "DashboardStats", "ClientStats",
]
