"""RouteBatch ORM model — orders grouped by pickup date and cutoff."""

import uuid
from datetime import datetime, date
from sqlalchemy import String, Integer, Date, DateTime, Index, Enum as SAEnum, text
from sqlalchemy.orm import Mapped, mapped_column
from shippxpress.db.database import Base


class RouteBatch(Base):
    __tablename__ = "route_batches"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    batch_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    cutoff_time: Mapped[str] = mapped_column(String(5), default="14:30")
    status: Mapped[str] = mapped_column(
        SAEnum("open", "closed", name="batch_status"),
        default="open",
        nullable=False,
    )
    order_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        # At most one open batch per day
        Index(
            "uq_route_batches_open_date",
            "batch_date",
            unique=True,
            postgresql_where=text("status = 'open'"),
            sqlite_where=text("status = 'open'"),
        ),
    )
