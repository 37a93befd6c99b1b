from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


def iso_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ConflictOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    country: str
    region: str
    latitude: float
    longitude: float
    date: datetime
    fatalities: Optional[int] = Field(default=None, ge=0)
    event_type: str
    source: str
    created_at: datetime
    updated_at: datetime

    @field_serializer("date", "created_at", "updated_at")
    def _serialize_dt(self, value: datetime) -> str:
        return iso_utc(value)


class PaginationOut(CamelModel):
    page: int
    limit: int
    total: int = Field(ge=0)
    total_pages: int
    has_next: bool
    has_prev: bool


class ConflictPageOut(CamelModel):
    conflicts: list[ConflictOut]
    pagination: PaginationOut
