from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import select
from sqlalchemy.engine import ScalarResult
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ValidationError
from app.db import store_errors
from app.models import ConflictEvent
from app.schemas.conflict import ConflictOut, iso_utc

log = logging.getLogger("app.export")

EXPORT_FORMATS = ("json", "csv")

MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
}

CSV_COLUMNS = [
    "ID",
    "Title",
    "Country",
    "Region",
    "Event Type",
    "Date",
    "Fatalities",
    "Latitude",
    "Longitude",
    "Source",
]

_CSV_SPECIAL = (",", '"', "\r", "\n")


def quote_csv(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _csv_field(value) -> str:
    text = "" if value is None else str(value)
    if any(ch in text for ch in _CSV_SPECIAL):
        return quote_csv(text)
    return text


def _coordinate(value: float) -> str:
    # whole numbers drop the trailing ".0"
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def csv_row(c: ConflictEvent) -> str:
    # Title is always quoted; the rest only when they need it
    return ",".join(
        [
            _csv_field(c.id),
            quote_csv(c.title),
            _csv_field(c.country),
            _csv_field(c.region),
            _csv_field(c.event_type),
            c.date.strftime("%Y-%m-%d"),
            str(c.fatalities if c.fatalities is not None else 0),
            _coordinate(c.latitude),
            _coordinate(c.longitude),
            _csv_field(c.source),
        ]
    )


def _stream_all(db: Session, batch_size: int) -> ScalarResult[ConflictEvent]:
    q = (
        select(ConflictEvent)
        .order_by(ConflictEvent.date.desc(), ConflictEvent.id.asc())
        .execution_options(yield_per=batch_size)
    )
    return db.execute(q).scalars()


def _iter_csv(db: Session, batch_size: int) -> Iterator[bytes]:
    with store_errors("csv export"):
        rows = _stream_all(db, batch_size)
        yield (",".join(CSV_COLUMNS) + "\n").encode("utf-8")

        written = 0
        buf: list[str] = []
        for c in rows:
            buf.append(csv_row(c) + "\n")
            written += 1
            if len(buf) >= batch_size:
                yield "".join(buf).encode("utf-8")
                buf.clear()
        if buf:
            yield "".join(buf).encode("utf-8")

    log.info("export completed", extra={"format": "csv", "rows": written})


def _iter_json(db: Session, batch_size: int, now: datetime) -> Iterator[bytes]:
    with store_errors("json export"):
        rows = _stream_all(db, batch_size)
        yield ('{"exportDate":' + json.dumps(iso_utc(now)) + ',"data":[').encode("utf-8")

        written = 0
        buf: list[str] = []
        for c in rows:
            item = ConflictOut.model_validate(c).model_dump_json(by_alias=True)
            buf.append(item if written == 0 else "," + item)
            written += 1
            if len(buf) >= batch_size:
                yield "".join(buf).encode("utf-8")
                buf.clear()
        if buf:
            yield "".join(buf).encode("utf-8")

    # written after the rows so the count always matches what was streamed
    yield f'],"totalRecords":{written}}}'.encode("utf-8")
    log.info("export completed", extra={"format": "json", "rows": written})


def iter_export(
    db: Session,
    fmt: str,
    now: Optional[datetime] = None,
    batch_size: Optional[int] = None,
) -> Iterator[bytes]:
    """
    Streams the whole dataset, newest first, as `json` or `csv`.

    The store query runs when the first chunk is requested, so callers that
    need store failures before committing to a response should pull one chunk
    up front.
    """
    if fmt not in EXPORT_FORMATS:
        raise ValidationError.single("format", f"must be one of: {', '.join(EXPORT_FORMATS)}")

    batch_size = batch_size or settings.EXPORT_BATCH_SIZE
    log.info("export started", extra={"format": fmt, "batch_size": batch_size})

    if fmt == "csv":
        return _iter_csv(db, batch_size)
    return _iter_json(db, batch_size, now or datetime.now(timezone.utc))


def export(db: Session, fmt: str, now: Optional[datetime] = None) -> bytes:
    return b"".join(iter_export(db, fmt, now=now))
