"""
Shared fixtures: every test gets its own SQLite file, initialized and seeded.
"""

import pytest
from datetime import datetime, timedelta, timezone

from reviewpool import database


NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Point the record store at a fresh database file."""
    monkeypatch.setattr(database, "DATABASE_PATH", str(tmp_path / "test.db"))
    database.initialize_database()
    return database


@pytest.fixture
def add_review(store):
    """Insert one review; keyword arguments override the defaults."""
    def _add(days_ago: float = 0, **overrides) -> dict:
        row = {
            "author_name": "Jane Doe",
            "author_email": "jane@example.com",
            "rating": 5,
            "content": "Great product, would buy again. " * 3,
            "status": "pending",
            "created_at": database.to_iso(NOW - timedelta(days=days_ago)),
        }
        row.update(overrides)
        return store.insert("reviews", [row])[0]
    return _add
