from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import ColumnElement, UnaryExpression

from app.core.errors import NotFoundError
from app.db import store_errors
from app.filters import FilterSpec
from app.models import ConflictEvent

SORT_COLUMNS = {
    "date": ConflictEvent.date,
    "fatalities": ConflictEvent.fatalities,
    "country": ConflictEvent.country,
    "eventType": ConflictEvent.event_type,
}


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass(frozen=True)
class PageResult:
    records: list[ConflictEvent]
    pagination: Pagination


def build_predicates(spec: FilterSpec) -> list[ColumnElement[bool]]:
    """
    Maps a FilterSpec to the clauses every matching row must satisfy (ANDed).
    Absent filters contribute nothing, so an empty spec matches every row.
    """
    clauses: list[ColumnElement[bool]] = []

    if spec.country is not None:
        clauses.append(ConflictEvent.country.icontains(spec.country, autoescape=True))
    if spec.region is not None:
        clauses.append(ConflictEvent.region.icontains(spec.region, autoescape=True))
    if spec.event_type is not None:
        clauses.append(ConflictEvent.event_type.icontains(spec.event_type, autoescape=True))

    if spec.start_date is not None:
        clauses.append(ConflictEvent.date >= spec.start_date)
    if spec.end_date is not None:
        clauses.append(ConflictEvent.date <= spec.end_date)

    return clauses


def order_by_clauses(spec: FilterSpec) -> list[UnaryExpression]:
    col = SORT_COLUMNS[spec.sort_by]
    primary = col.asc() if spec.sort_order == "asc" else col.desc()
    if spec.sort_by == "fatalities":
        # unknown fatalities go last in both directions
        primary = primary.nulls_last()
    # id breaks ties so page boundaries don't move between requests
    return [primary, ConflictEvent.id.asc()]


def fetch_conflict_page(db: Session, spec: FilterSpec) -> PageResult:
    """
    Count + fetch for one page of the listing.

    The two statements are not run in one transaction; under concurrent writes
    `total` may be stale relative to the returned records for that response.
    A page past the end skips the fetch, so the offset never reaches the driver.
    """
    predicates = build_predicates(spec)
    count_q = select(func.count()).select_from(ConflictEvent).where(*predicates)

    with store_errors("conflict page query"):
        total = db.execute(count_q).scalar_one()

        records: list[ConflictEvent] = []
        if spec.offset < total:
            page_q = (
                select(ConflictEvent)
                .where(*predicates)
                .order_by(*order_by_clauses(spec))
                .offset(spec.offset)
                .limit(spec.limit)
            )
            records = list(db.execute(page_q).scalars().all())

    return PageResult(
        records=records,
        pagination=Pagination(page=spec.page, limit=spec.limit, total=total),
    )


def fetch_conflict(db: Session, conflict_id: str) -> ConflictEvent:
    with store_errors("conflict lookup"):
        conflict = db.get(ConflictEvent, conflict_id)
    if conflict is None:
        raise NotFoundError("conflict not found")
    return conflict


def region_predicates(region: str) -> list[ColumnElement[bool]]:
    return build_predicates(FilterSpec(region=region))


def fetch_conflicts_for_region(db: Session, region: str) -> list[ConflictEvent]:
    q = (
        select(ConflictEvent)
        .where(*region_predicates(region))
        .order_by(ConflictEvent.date.desc(), ConflictEvent.id.asc())
    )
    with store_errors("region conflicts query"):
        return list(db.execute(q).scalars().all())
