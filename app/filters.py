from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError

SortField = Literal["date", "fatalities", "country", "eventType"]
SortOrder = Literal["asc", "desc"]

MAX_LIMIT = 1000


EPOCH = datetime(1970, 1, 1)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_epoch_millis(value: float) -> datetime:
    try:
        return EPOCH + timedelta(milliseconds=value)
    except OverflowError:
        raise ValueError("timestamp out of range") from None


def _is_millis_string(value: str) -> bool:
    digits = value[1:] if value.startswith("-") else value
    return digits.isdecimal()


class FilterSpec(BaseModel):
    """
    Validated query constraints for the conflict listing.

    Text filters and date bounds are None when the caller did not send them,
    which is different from filtering on an empty string.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    country: Optional[str] = None
    region: Optional[str] = None
    event_type: Optional[str] = Field(default=None, alias="eventType")

    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")

    sort_by: SortField = Field(default="date", alias="sortBy")
    sort_order: SortOrder = Field(default="desc", alias="sortOrder")

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=MAX_LIMIT)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Any:
        if v is None:
            return None
        if isinstance(v, datetime):
            return to_naive_utc(v)
        if isinstance(v, date):
            return datetime(v.year, v.month, v.day)
        # numbers are epoch milliseconds
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return from_epoch_millis(v)
        if not isinstance(v, str):
            raise ValueError("must be an ISO-8601 date string or epoch milliseconds")

        text = v.strip()
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            if _is_millis_string(text):
                return from_epoch_millis(int(text))
            raise ValueError("must be a valid ISO-8601 date") from None
        return to_naive_utc(parsed)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _field_name(loc: tuple) -> str:
    return ".".join(str(p) for p in loc) if loc else "query"


def normalize_filters(raw: Mapping[str, Any]) -> FilterSpec:
    """
    Coerces a raw transport map (strings / numbers, all optional) into a FilterSpec.

    Out-of-range page/limit values and unknown sort keys are rejected rather than
    clamped or defaulted. An end date before the start date is accepted as-is.
    Raises ValidationError listing every offending field.
    """
    present = {k: v for k, v in raw.items() if v is not None}
    try:
        return FilterSpec.model_validate(present)
    except PydanticValidationError as e:
        errors = [
            {"field": _field_name(err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError(errors) from e
