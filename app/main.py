from pathlib import Path
import logging

from fastapi import (
    FastAPI,
    Depends,
    Query,
    Request,
)
from fastapi.responses import JSONResponse, StreamingResponse

from sqlalchemy.orm import Session

from app.db import Base, SessionLocal, engine, get_db
from app.importer import import_sample_csv_if_empty
from app.core.config import settings
from app.core.errors import NotFoundError, StoreError, ValidationError

from app.auth.deps import Caller, get_current_caller

from app.schemas.conflict import ConflictOut, ConflictPageOut, PaginationOut
from app.schemas.stats import (
    EventTypeCountOut,
    NamedCountOut,
    RegionConflictsOut,
    RegionCountOut,
    RegionDirectoryOut,
    RegionStatsOut,
    StatsOut,
)
from app.schemas.errors import NotFoundOut, ServerErrorOut, UnauthorizedOut, ValidationErrorOut
from app.schemas.meta import HealthOut

from app.filters import normalize_filters
from app.conflict_queries import (
    fetch_conflict,
    fetch_conflict_page,
    fetch_conflicts_for_region,
)
from app.stats import list_regions, summarize, summarize_region
from app.exporter import MEDIA_TYPES, iter_export


log = logging.getLogger("app")

app = FastAPI(title="Conflict events API", version="0.1.0")

COMMON_RESPONSES = {
    401: {"model": UnauthorizedOut},
    500: {"model": ServerErrorOut},
}


@app.on_event("startup")
def startup() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    Base.metadata.create_all(bind=engine)

    if not settings.SAMPLE_DATA_PATH:
        return
    db = SessionLocal()
    try:
        import_sample_csv_if_empty(db, Path(settings.SAMPLE_DATA_PATH))
    finally:
        db.close()


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": "validation failed", "errors": exc.errors},
    )


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
    # full cause goes to the log only
    log.error(
        "store error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(status_code=500, content={"detail": "internal server error"})


@app.get("/health", tags=["meta"], response_model=HealthOut)
def health() -> HealthOut:
    return HealthOut(status="ok")


@app.get(
    "/api/conflicts",
    response_model=ConflictPageOut,
    responses={400: {"model": ValidationErrorOut}, **COMMON_RESPONSES},
    tags=["conflicts"],
)
def list_conflicts(
    request: Request,
    _: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> ConflictPageOut:
    """
    Filtered, sorted, paginated listing.

    Query parameters: country, region, eventType (case-insensitive substring),
    startDate, endDate (inclusive), sortBy, sortOrder, page, limit.
    """
    spec = normalize_filters(dict(request.query_params))
    result = fetch_conflict_page(db, spec)
    page = result.pagination

    return ConflictPageOut(
        conflicts=[ConflictOut.model_validate(r) for r in result.records],
        pagination=PaginationOut(
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
            has_next=page.has_next,
            has_prev=page.has_prev,
        ),
    )


@app.get(
    "/api/conflicts/stats",
    response_model=StatsOut,
    responses=COMMON_RESPONSES,
    tags=["conflicts"],
)
def conflict_stats(
    _: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> StatsOut:
    summary = summarize(db)
    return StatsOut(
        total_conflicts=summary.total_conflicts,
        total_fatalities=summary.total_fatalities,
        recent_conflicts=summary.recent_conflicts,
        conflicts_by_region=[
            RegionCountOut(region=region, count=n)
            for region, n in summary.conflicts_by_region.items()
        ],
        conflicts_by_event_type=[
            EventTypeCountOut(event_type=event_type, count=n)
            for event_type, n in summary.conflicts_by_event_type.items()
        ],
    )


@app.get(
    "/api/conflicts/export",
    responses={
        200: {"content": {"application/json": {}, "text/csv": {}}},
        400: {"model": ValidationErrorOut},
        **COMMON_RESPONSES,
    },
    tags=["conflicts"],
)
def export_conflicts(
    fmt: str = Query("json", alias="format"),
    caller: Caller = Depends(get_current_caller),
):
    # The stream outlives this handler, so it gets its own session.
    db = SessionLocal()
    try:
        chunks = iter_export(db, fmt)
        # pull the first chunk so store failures surface as a 500 before streaming
        first = next(chunks)
    except Exception:
        db.close()
        raise

    def body():
        try:
            yield first
            yield from chunks
        finally:
            db.close()

    log.info("export requested", extra={"caller": caller.id, "format": fmt})
    return StreamingResponse(
        body(),
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f"attachment; filename=conflicts.{fmt}"},
    )


@app.get(
    "/api/conflicts/{conflict_id}",
    response_model=ConflictOut,
    responses={404: {"model": NotFoundOut}, **COMMON_RESPONSES},
    tags=["conflicts"],
)
def get_conflict(
    conflict_id: str,
    _: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> ConflictOut:
    return ConflictOut.model_validate(fetch_conflict(db, conflict_id))


@app.get(
    "/api/regions",
    response_model=RegionDirectoryOut,
    responses=COMMON_RESPONSES,
    tags=["regions"],
)
def get_regions(
    _: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> RegionDirectoryOut:
    directory = list_regions(db)
    return RegionDirectoryOut(
        regions=[NamedCountOut(name=name, conflict_count=n) for name, n in directory.regions],
        countries=[NamedCountOut(name=name, conflict_count=n) for name, n in directory.countries],
    )


@app.get(
    "/api/regions/{region}/conflicts",
    response_model=RegionConflictsOut,
    responses=COMMON_RESPONSES,
    tags=["regions"],
)
def get_region_conflicts(
    region: str,
    _: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> RegionConflictsOut:
    conflicts = fetch_conflicts_for_region(db, region)
    stats = summarize_region(db, region)

    return RegionConflictsOut(
        region=region,
        conflicts=[ConflictOut.model_validate(c) for c in conflicts],
        stats=RegionStatsOut(
            total_conflicts=stats.total_conflicts,
            total_fatalities=stats.total_fatalities,
            average_fatalities=stats.average_fatalities,
        ),
    )
