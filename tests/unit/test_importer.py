"""Unit tests for the seed CSV importer."""

from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import func, select

from app.importer import import_sample_csv_if_empty
from app.models import ConflictEvent

SAMPLE_CSV = Path(__file__).resolve().parents[2] / "sample_data.csv"

HEADER = "title,description,country,region,latitude,longitude,date,fatalities,event_type,source\n"


def _write_csv(tmp_path: Path, *rows: str) -> Path:
    path = tmp_path / "seed.csv"
    path.write_text(HEADER + "".join(r + "\n" for r in rows), encoding="utf-8")
    return path


def _count(db) -> int:
    return db.execute(select(func.count()).select_from(ConflictEvent)).scalar_one()


class TestImportSampleCsv:
    """Tests for importing the bundled seed data."""

    def test_imports_bundled_sample(self, db):
        inserted = import_sample_csv_if_empty(db, SAMPLE_CSV)
        assert inserted == 15
        assert _count(db) == 15

        syria = db.execute(select(ConflictEvent).where(ConflictEvent.country == "Syria")).scalar_one()
        assert syria.region == "Middle East"
        assert syria.event_type == "Battles"
        assert syria.fatalities == 23
        assert syria.date == datetime(2023, 3, 15)
        assert syria.latitude == pytest.approx(36.2021)
        assert syria.id

    def test_quoted_description_with_comma(self, db):
        import_sample_csv_if_empty(db, SAMPLE_CSV)
        drc = db.execute(
            select(ConflictEvent).where(ConflictEvent.country == "Democratic Republic of Congo")
        ).scalar_one()
        assert drc.description == "Criminal group attacks village, resulting in multiple deaths."

    def test_skipped_when_store_has_rows(self, db, add_conflicts):
        add_conflicts({"title": "existing"})
        assert import_sample_csv_if_empty(db, SAMPLE_CSV) == 0
        assert _count(db) == 1

    def test_missing_file(self, db, tmp_path):
        assert import_sample_csv_if_empty(db, tmp_path / "nope.csv") == 0
        assert _count(db) == 0

    def test_blank_fatalities_and_description_are_none(self, db, tmp_path):
        path = _write_csv(tmp_path, "Clash,,Mali,Western Africa,16.7,-3.0,2023-07-03,,Battles,ACLED")
        import_sample_csv_if_empty(db, path)
        row = db.execute(select(ConflictEvent)).scalar_one()
        assert row.fatalities is None
        assert row.description is None

    def test_aware_timestamps_stored_as_naive_utc(self, db, tmp_path):
        path = _write_csv(tmp_path, "Clash,,Mali,Western Africa,16.7,-3.0,2023-07-03T02:00:00+02:00,1,Battles,ACLED")
        import_sample_csv_if_empty(db, path)
        row = db.execute(select(ConflictEvent)).scalar_one()
        assert row.date == datetime(2023, 7, 3, 0, 0)

    @pytest.mark.parametrize(
        "row",
        [
            "Clash,,Mali,Western Africa,16.7,-3.0,2023-07-03,-1,Battles,ACLED",
            "Clash,,Mali,Western Africa,91.0,-3.0,2023-07-03,1,Battles,ACLED",
            "Clash,,Mali,Western Africa,16.7,-181.0,2023-07-03,1,Battles,ACLED",
            ",,Mali,Western Africa,16.7,-3.0,2023-07-03,1,Battles,ACLED",
            "Clash,,Mali,Western Africa,16.7,-3.0,not-a-date,1,Battles,ACLED",
        ],
    )
    def test_invalid_rows_rejected(self, db, tmp_path, row):
        path = _write_csv(tmp_path, row)
        with pytest.raises(ValueError):
            import_sample_csv_if_empty(db, path)
        assert _count(db) == 0
