"""Order, OrderStatusHistory and OrderSequence ORM models."""

import uuid
from datetime import datetime, date
from sqlalchemy import (
    String, Integer, Numeric, Date, DateTime, ForeignKey, Text, JSON,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column
from shippxpress.db.database import Base

ORDER_STATUSES = ("pending", "assigned", "picked_up", "in_transit", "delivered", "voided")


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    client_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("clients.id"))
    customer_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("customers.id"))

    # Customer info for labels and display
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(30), nullable=False)
    customer_email: Mapped[str | None] = mapped_column(String(255))

    # Delivery address
    delivery_line1: Mapped[str] = mapped_column(String(255), nullable=False)
    delivery_line2: Mapped[str] = mapped_column(String(255), default="")
    delivery_city: Mapped[str] = mapped_column(String(100), nullable=False)
    delivery_state: Mapped[str] = mapped_column(String(100), nullable=False)
    delivery_zip: Mapped[str] = mapped_column(String(20), nullable=False)
    delivery_country: Mapped[str] = mapped_column(String(2), default="US")
    delivery_lat: Mapped[float | None] = mapped_column(Numeric(10, 7))
    delivery_lng: Mapped[float | None] = mapped_column(Numeric(10, 7))

    # Packages: [{"description", "quantity", "weight_kg", "dimensions"}]
    packages: Mapped[list] = mapped_column(JSON, nullable=False)
    total_weight_kg: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    distance_km: Mapped[float | None] = mapped_column(Numeric(8, 2))
    pickup_date: Mapped[date] = mapped_column(Date, nullable=False)
    special_instructions: Mapped[str] = mapped_column(Text, default="")

    status: Mapped[str] = mapped_column(
        SAEnum(*ORDER_STATUSES, name="order_status"),
        default="pending",
        nullable=False,
    )

    # Assignments
    driver_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("drivers.id"))
    zone_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("zones.id"))
    batch_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("route_batches.id"))

    # Void metadata
    void_reason: Mapped[str | None] = mapped_column(Text)
    voided_by: Mapped[str | None] = mapped_column(String(100))
    voided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    picked_up_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    actual_delivery_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Optimistic concurrency: every flush checks and bumps this counter
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class OrderStatusHistory(Base):
    __tablename__ = "order_status_history"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    order_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    from_status: Mapped[str | None] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    actor: Mapped[str] = mapped_column(String(100), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class OrderSequence(Base):
    """Per-year counter backing ORD-YYYY-NNNNNN numbers."""

    __tablename__ = "order_sequences"

    year: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
