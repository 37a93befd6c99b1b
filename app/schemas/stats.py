from app.schemas.conflict import CamelModel, ConflictOut


class RegionCountOut(CamelModel):
    region: str
    count: int


class EventTypeCountOut(CamelModel):
    event_type: str
    count: int


class StatsOut(CamelModel):
    total_conflicts: int
    total_fatalities: int
    recent_conflicts: int
    conflicts_by_region: list[RegionCountOut]
    conflicts_by_event_type: list[EventTypeCountOut]


class NamedCountOut(CamelModel):
    name: str
    conflict_count: int


class RegionDirectoryOut(CamelModel):
    regions: list[NamedCountOut]
    countries: list[NamedCountOut]


class RegionStatsOut(CamelModel):
    total_conflicts: int
    total_fatalities: int
    average_fatalities: int


class RegionConflictsOut(CamelModel):
    region: str
    conflicts: list[ConflictOut]
    stats: RegionStatsOut
