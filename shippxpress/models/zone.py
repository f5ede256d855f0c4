"""Zone ORM model — geographic partitions used to route orders."""

import uuid
from datetime import datetime
from sqlalchemy import String, Numeric, Boolean, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from shippxpress.db.database import Base


class Zone(Base):
    __tablename__ = "zones"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    direction: Mapped[str | None] = mapped_column(String(20))  # north, south, east, west
    base_address: Mapped[str] = mapped_column(Text, nullable=False)
    center_lat: Mapped[float] = mapped_column(Numeric(10, 7), nullable=False)
    center_lng: Mapped[float] = mapped_column(Numeric(10, 7), nullable=False)
    radius_km: Mapped[float] = mapped_column(Numeric(8, 2), default=480)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
