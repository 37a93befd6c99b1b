from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class ConflictEvent(Base):
    __tablename__ = "conflicts"
    __table_args__ = (
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_conflict_latitude_range"),
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_conflict_longitude_range"),
        CheckConstraint("fatalities IS NULL OR fatalities >= 0", name="ck_conflict_fatalities_nonneg"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    country: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    region: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    source: Mapped[str] = mapped_column(String(100), nullable=False)

    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    # naive UTC
    date: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)

    # NULL means unknown, not zero
    fatalities: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
