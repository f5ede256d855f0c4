"""Driver ORM model — delivery agents."""

import uuid
from datetime import datetime
from sqlalchemy import String, Numeric, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column
from shippxpress.db.database import Base

DRIVER_STATUSES = ("offline", "available", "busy")


class Driver(Base):
    __tablename__ = "drivers"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30))
    vehicle_type: Mapped[str | None] = mapped_column(String(20))  # van, truck, bike
    vehicle_number: Mapped[str | None] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(
        SAEnum(*DRIVER_STATUSES, name="driver_status"),
        default="offline",
        nullable=False,
    )
    current_lat: Mapped[float | None] = mapped_column(Numeric(10, 7))
    current_lng: Mapped[float | None] = mapped_column(Numeric(10, 7))
    last_location_update: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    zone_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("zones.id"))  # one zone per driver
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)
