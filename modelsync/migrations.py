"""
Migration runs: detect -> diff -> apply -> persist.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import structlog

from .applier import MigrationApplier
from .differ import SchemaDiff, diff_schemas
from .errors import NoChangesError
from .schema import Migration
from .snapshots import FileSnapshotStore, SnapshotStore

if TYPE_CHECKING:
    from .database import Database

logger = structlog.get_logger()


@dataclass
class MigrationResult:
    """Outcome of a migration run that changed something."""

    operations: int
    snapshot: str
    diff: SchemaDiff
    migration: Migration


class MigrationRunner:
    """Runs one migration cycle for the models registered on a Database.

    The runner assumes it is the only one touching the database and the
    snapshot directory for the duration of run().
    """

    def __init__(self, db: "Database", store: Optional[SnapshotStore] = None):
        self.db = db
        self.store = store or db.snapshot_store

    def current(self) -> Migration:
        """Schema of the currently registered models."""
        directory = self.db.migrations_dir
        if isinstance(self.store, FileSnapshotStore):
            directory = str(self.store.directory)
        return Migration.from_models(
            self.db.all_models(),
            dialect=self.db.dialect,
            database=self.db,
            directory=directory,
        )

    def plan(self) -> SchemaDiff:
        """Diff the registered models against the persisted snapshot."""
        return diff_schemas(self.current(), self.store.load())

    def run(self) -> MigrationResult:
        """Apply pending schema changes and persist the new snapshot.

        Raises:
            NoChangesError: If no statement had to be executed
            StatementError: If a statement failed; earlier statements stay applied
            ConfigurationError: For malformed models or snapshot file names
            SnapshotIOError: If the snapshot could not be read or written
        """
        run_logger = logger.bind(database=str(self.db))
        run_logger.info("migration_start", models=len(self.db.all_models()))

        current = self.current()
        persisted = self.store.load()
        diff = diff_schemas(current, persisted)
        run_logger.debug("migration_diff", **diff.summary())

        operations = MigrationApplier(self.db).apply(diff)
        if operations == 0:
            run_logger.info("migration_nothing_to_do")
            raise NoChangesError()

        self.db.latest_migration = current
        path = self.store.save(current)
        run_logger.info("migration_complete", operations=operations, snapshot=path)
        return MigrationResult(
            operations=operations, snapshot=path, diff=diff, migration=current
        )
