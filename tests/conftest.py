"""
Shared pytest fixtures for Raider Tracker tests.

Provides:
  - In-memory SQLite DB with migrations applied
  - In-memory storage backends for the progress and checklist ledgers
  - The bundled sample catalog and its requirement index
  - FastAPI TestClient backed by a throwaway database file
"""

import os
import sqlite3
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so we can import app modules
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Use a writable temp directory for the default DB so app startup succeeds.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="raider_tracker_test_")
os.environ["DB_DIR"] = _TEST_DB_DIR


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def db_conn() -> Generator[sqlite3.Connection, None, None]:
    """Yield an in-memory SQLite connection with all migrations applied."""
    from db_migrations import apply_migrations

    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    apply_migrations(conn)

    yield conn
    conn.close()


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def progress_storage():
    from storage import MemoryStorage
    return MemoryStorage()


@pytest.fixture()
def checklist_storage():
    from storage import MemoryStorage
    return MemoryStorage()


@pytest.fixture()
def progress_store(progress_storage):
    from progress_service import ProgressStore
    return ProgressStore(progress_storage)


@pytest.fixture()
def checklist_store(checklist_storage):
    from checklist_service import ChecklistStore
    return ChecklistStore(checklist_storage)


class FailingStorage:
    """Backend whose writes fail after ``fail_after`` successful writes."""

    def __init__(self, initial=None, fail_after=0):
        self.blob = initial
        self.fail_after = fail_after
        self.writes = 0

    def read(self):
        return self.blob

    def write(self, blob):
        if self.writes >= self.fail_after:
            raise OSError("storage quota exceeded")
        self.blob = blob
        self.writes += 1


@pytest.fixture()
def failing_storage_cls():
    return FailingStorage


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def catalog():
    import catalog_service
    return catalog_service.load_catalog(PROJECT_ROOT / "catalog")


@pytest.fixture(scope="session")
def requirement_index(catalog):
    import catalog_service
    return catalog_service.build_requirement_index(catalog)


@pytest.fixture()
def tracker(catalog, requirement_index, progress_storage, checklist_storage):
    from checklist_service import ChecklistStore
    from progress_service import ProgressStore
    from tracker_service import Tracker

    return Tracker(
        catalog,
        ProgressStore(progress_storage),
        ChecklistStore(checklist_storage, requirement_index),
    )


# ---------------------------------------------------------------------------
# FastAPI TestClient
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(tmp_path, monkeypatch):
    """Return a Starlette TestClient wired to the FastAPI app.

    Each client gets its own database file, so ledgers start empty.
    """
    import db
    from fastapi.testclient import TestClient
    from main import app

    monkeypatch.setattr(db, "DB_PATH", tmp_path / "tracker.db")
    with TestClient(app) as c:
        yield c
