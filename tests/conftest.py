"""Pytest configuration for conflict events tests."""

import os
from datetime import datetime

import pytest

# Settings are read at import time, so the environment has to be in place
# before anything under app/ is imported.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-67890")
os.environ["SAMPLE_DATA_PATH"] = ""

from app.db import Base, SessionLocal, engine  # noqa: E402
from app.models import ConflictEvent  # noqa: E402


# Ten events; Syria/Yemen/Iraq are the Middle East rows (23, 15, 27).
# c04 and c05 share a date to exercise the id tie-break, c09 has unknown fatalities.
SAMPLE_ROWS = [
    ("c01", "Armed clashes in Aleppo", "Syria", "Middle East", "Battles", datetime(2023, 3, 15), 23),
    ("c02", "Market bombing in Kabul", "Afghanistan", "South Asia", "Violence against civilians", datetime(2023, 4, 12), 45),
    ("c03", "Ethnic violence in Tigray", "Ethiopia", "Eastern Africa", "Violence against civilians", datetime(2023, 5, 8), 18),
    ("c04", "Operation against separatists", "Ukraine", "Eastern Europe", "Battles", datetime(2023, 6, 22), 12),
    ("c05", "Attack on military outpost", "Mali", "Western Africa", "Battles", datetime(2023, 6, 22), 8),
    ("c06", "Police clash with protesters", "Myanmar", "Southeast Asia", "Riots", datetime(2023, 8, 17), 6),
    ("c07", "Drone strike on facility", "Yemen", "Middle East", "Remote violence", datetime(2023, 9, 5), 15),
    ("c08", "Violence over water access", "Nigeria", "Western Africa", "Violence against civilians", datetime(2023, 10, 11), 34),
    ("c09", "Airstrike on rebel positions", "Libya", "Northern Africa", "Remote violence", datetime(2023, 11, 28), None),
    ("c10", "IED near government building", "Iraq", "Middle East", "Explosions/Remote violence", datetime(2023, 12, 14), 27),
]


@pytest.fixture
def db():
    """Fresh schema per test on the shared in-memory engine."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def add_conflicts(db):
    """Factory that inserts conflicts from keyword overrides and commits them."""

    def _add(*rows: dict) -> list[ConflictEvent]:
        created = []
        for overrides in rows:
            values = {
                "title": "Untitled event",
                "country": "Syria",
                "region": "Middle East",
                "event_type": "Battles",
                "source": "ACLED",
                "latitude": 0.0,
                "longitude": 0.0,
                "date": datetime(2023, 1, 1),
            }
            values.update(overrides)
            created.append(ConflictEvent(**values))
        db.add_all(created)
        db.commit()
        return created

    return _add


@pytest.fixture
def sample_conflicts(add_conflicts):
    return add_conflicts(
        *[
            {
                "id": cid,
                "title": title,
                "country": country,
                "region": region,
                "event_type": event_type,
                "date": date,
                "fatalities": fatalities,
                "latitude": 10.5,
                "longitude": 20.25,
            }
            for cid, title, country, region, event_type, date, fatalities in SAMPLE_ROWS
        ]
    )


@pytest.fixture
def test_client(db):
    """FastAPI TestClient bound to the per-test schema (startup hooks not run)."""
    from fastapi.testclient import TestClient

    from app.main import app

    return TestClient(app)


@pytest.fixture
def auth_headers():
    from app.auth.jwt import create_access_token

    token = create_access_token(sub="42", role="user")
    return {"Authorization": f"Bearer {token}"}
