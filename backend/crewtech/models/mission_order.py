# backend/crewtech/models/mission_order.py
from datetime import datetime, timezone
from sqlalchemy import String, Integer, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from crewtech.db import Base


class MissionOrderRow(Base):
    """
    One row per mission order. The full snapshot lives in `payload`; the
    columns next to it are copies kept for filtering and for the
    conditional write on `version`.
    """
    __tablename__ = "mission_orders"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(48), nullable=False)
    crew_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

# status filter used by the completion sweep and list views
Index("ix_mission_orders_status", MissionOrderRow.status)
Index("ix_mission_orders_crew", MissionOrderRow.crew_id)
