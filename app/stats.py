from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.conflict_queries import region_predicates
from app.core.config import settings
from app.db import store_errors
from app.filters import to_naive_utc
from app.models import ConflictEvent

log = logging.getLogger("app.stats")


@dataclass(frozen=True)
class StatsSummary:
    total_conflicts: int
    total_fatalities: int
    recent_conflicts: int
    conflicts_by_region: dict[str, int]
    conflicts_by_event_type: dict[str, int]


@dataclass(frozen=True)
class RegionSummary:
    total_conflicts: int
    total_fatalities: int
    average_fatalities: int


@dataclass(frozen=True)
class Directory:
    regions: list[tuple[str, int]]
    countries: list[tuple[str, int]]


def round_half_up(value) -> int:
    if value is None:
        return 0
    d = value if isinstance(value, Decimal) else Decimal(str(value))
    return int(d.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _grouped_counts(db: Session, column) -> list[tuple[str, int]]:
    q = select(column, func.count()).group_by(column).order_by(column.asc())
    return [(key, int(n)) for key, n in db.execute(q).all()]


def summarize(db: Session, now: Optional[datetime] = None) -> StatsSummary:
    """
    Whole-dataset statistics. Filters are deliberately not applied here.

    recent_conflicts counts rows dated on or after `now` minus the recent window,
    so the result depends on wall-clock time when `now` is not given.
    """
    now = to_naive_utc(now or datetime.now(timezone.utc))
    window_start = now - timedelta(days=settings.RECENT_WINDOW_DAYS)

    totals_q = select(
        func.count(),
        func.coalesce(func.sum(ConflictEvent.fatalities), 0),
    ).select_from(ConflictEvent)
    recent_q = (
        select(func.count())
        .select_from(ConflictEvent)
        .where(ConflictEvent.date >= window_start)
    )

    with store_errors("stats aggregation"):
        total_conflicts, total_fatalities = db.execute(totals_q).one()
        recent_conflicts = db.execute(recent_q).scalar_one()
        by_region = _grouped_counts(db, ConflictEvent.region)
        by_event_type = _grouped_counts(db, ConflictEvent.event_type)

    log.info(
        "stats computed",
        extra={"total_conflicts": total_conflicts, "recent_conflicts": recent_conflicts},
    )

    return StatsSummary(
        total_conflicts=int(total_conflicts),
        total_fatalities=int(total_fatalities),
        recent_conflicts=int(recent_conflicts),
        conflicts_by_region=dict(by_region),
        conflicts_by_event_type=dict(by_event_type),
    )


def summarize_region(db: Session, region: str) -> RegionSummary:
    # avg() skips NULL fatalities; unknown counts are not treated as zero here
    q = select(
        func.count(),
        func.coalesce(func.sum(ConflictEvent.fatalities), 0),
        func.avg(ConflictEvent.fatalities),
    ).select_from(ConflictEvent).where(*region_predicates(region))

    with store_errors("region aggregation"):
        count, total, avg = db.execute(q).one()

    return RegionSummary(
        total_conflicts=int(count),
        total_fatalities=int(total),
        average_fatalities=round_half_up(avg),
    )


def list_regions(db: Session) -> Directory:
    with store_errors("region directory"):
        return Directory(
            regions=_grouped_counts(db, ConflictEvent.region),
            countries=_grouped_counts(db, ConflictEvent.country),
        )
