from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.filters import to_naive_utc
from app.models import ConflictEvent

log = logging.getLogger("app.importer")


def _parse_int_optional(val: str) -> Optional[int]:
    v = val.strip()
    if not v:
        return None
    return int(v)


def _parse_text_optional(val: str) -> Optional[str]:
    v = val.strip()
    return v or None


def _require_text(r: dict, key: str) -> str:
    v = (r.get(key) or "").strip()
    if not v:
        raise ValueError(f"{key} must not be empty")
    return v


def _parse_row(r: dict) -> ConflictEvent:
    latitude = float(r["latitude"])
    longitude = float(r["longitude"])
    if not -90 <= latitude <= 90:
        raise ValueError("latitude must be within [-90, 90]")
    if not -180 <= longitude <= 180:
        raise ValueError("longitude must be within [-180, 180]")

    fatalities = _parse_int_optional(r.get("fatalities") or "")
    if fatalities is not None and fatalities < 0:
        raise ValueError("fatalities must be non-negative")

    return ConflictEvent(
        title=_require_text(r, "title"),
        description=_parse_text_optional(r.get("description") or ""),
        country=_require_text(r, "country"),
        region=_require_text(r, "region"),
        event_type=_require_text(r, "event_type"),
        source=_require_text(r, "source"),
        latitude=latitude,
        longitude=longitude,
        date=to_naive_utc(datetime.fromisoformat(r["date"].strip())),
        fatalities=fatalities,
    )


def import_sample_csv_if_empty(db: Session, csv_path: Path) -> int:
    existing = db.execute(select(func.count()).select_from(ConflictEvent)).scalar_one()
    if existing > 0:
        log.info("CSV import skipped (conflicts already has rows)", extra={"rows": existing})
        return 0

    if not csv_path.exists():
        log.error("CSV import failed: file not found", extra={"path": str(csv_path)})
        return 0

    with csv_path.open(newline="", encoding="utf-8") as f:
        rows = [_parse_row(r) for r in csv.DictReader(f)]

    db.add_all(rows)
    db.commit()
    log.info("CSV import completed", extra={"inserted": len(rows), "path": str(csv_path)})
    return len(rows)
