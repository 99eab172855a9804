"""Test configuration and fixtures."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, List, Optional

import pytest

from modelsync.config import Settings
from modelsync.database import Database, ExecResult
from modelsync.dialects import MYSQL, Dialect
from modelsync.engine import SQLITE_MEMORY_URL
from modelsync.fields import model_class, resolve_model
from modelsync.snapshots import FileSnapshotStore


def ticking_clock(start: Optional[datetime] = None) -> Callable[[], datetime]:
    """Clock advancing one second per call, so every save gets its own file."""
    state = {"now": start or datetime(2026, 1, 26, 12, 0, 0)}

    def tick() -> datetime:
        moment = state["now"]
        state["now"] = moment + timedelta(seconds=1)
        return moment

    return tick


class RecordingDatabase:
    """Database double that records statements instead of executing them.

    ``fail_on`` makes exec() raise for the first statement containing that
    text; ``rows`` is what query() returns.
    """

    def __init__(
        self,
        snapshot_dir: Path,
        dialect: Dialect = MYSQL,
        fail_on: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.dialect = dialect
        self.statements: List[str] = []
        self.params: List[tuple] = []
        self.models: List[type] = []
        self.latest_migration = None
        self.migrations_dir = str(snapshot_dir)
        self.snapshot_store = FileSnapshotStore(snapshot_dir, clock=clock or ticking_clock())
        self.limit = 1000
        self.fail_on = fail_on
        self.rows: List[tuple] = []

    def __str__(self) -> str:
        return "Database: recording"

    def register(self, model: Any, fields=None) -> None:
        resolve_model(model, fields)
        self.models.append(model_class(model))

    def all_models(self) -> List[type]:
        return list(self.models)

    def exec(self, sql: str, *args: Any) -> ExecResult:
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError("statement rejected")
        self.statements.append(sql)
        self.params.append(args)
        return ExecResult(rows_affected=1, last_insert_id=None)

    def query(self, sql: str, *args: Any) -> List[tuple]:
        self.statements.append(sql)
        self.params.append(args)
        return list(self.rows)

    def query_row(self, sql: str, *args: Any) -> Optional[tuple]:
        rows = self.query(sql, *args)
        return rows[0] if rows else None

    def migrate(self):
        from modelsync.migrations import MigrationRunner

        return MigrationRunner(self).run()


@pytest.fixture
def snapshot_dir(tmp_path) -> Path:
    """Fresh snapshot directory (not created yet)."""
    return tmp_path / "migrations"


@pytest.fixture
def recording_db(snapshot_dir) -> RecordingDatabase:
    """MySQL-flavoured database double."""
    return RecordingDatabase(snapshot_dir)


@pytest.fixture
def make_recording_db(snapshot_dir):
    """Factory for database doubles sharing the test's snapshot directory."""

    def make(**kwargs: Any) -> RecordingDatabase:
        return RecordingDatabase(kwargs.pop("snapshot_dir", snapshot_dir), **kwargs)

    return make


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def sqlite_db(snapshot_dir, settings):
    """Create a fresh in-memory database for each test."""
    db = Database(SQLITE_MEMORY_URL, settings=settings, migrations_dir=str(snapshot_dir))
    db.snapshot_store = FileSnapshotStore(snapshot_dir, clock=ticking_clock())
    yield db
    db.close()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Deterministic snapshot clock starting at 2026-01-26 12:00:00."""
    return ticking_clock()
