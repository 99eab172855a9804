"""
Snapshot storage for migration runs.

One JSON record per successful run, named ``Migration_<YYYY-MM-DD-HH-MM-SS>.json``.
The record with the latest timestamp is the persisted schema. Timestamps are
UTC, not local time; snapshots written in local time by other tools do not
order correctly against them.

Design principle: treat storage as a URI, not a path. ``file://`` URIs and
plain paths are supported.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

import structlog
from pydantic import ValidationError

from .errors import SnapshotIOError, SnapshotNameError
from .schema import DEFAULT_DIRECTORY, Migration

logger = structlog.get_logger()

PREFIX = "Migration_"
SUFFIX = ".json"
TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def snapshot_filename(moment: datetime) -> str:
    """File name of the snapshot written at ``moment`` (second resolution)."""
    return f"{PREFIX}{moment.strftime(TIMESTAMP_FORMAT)}{SUFFIX}"


def parse_snapshot_filename(filename: str) -> datetime:
    """Parse the timestamp encoded in a snapshot file name.

    Raises:
        SnapshotNameError: If the name does not carry a valid timestamp
    """
    stamp = filename
    if stamp.startswith(PREFIX):
        stamp = stamp[len(PREFIX):]
    if stamp.endswith(SUFFIX):
        stamp = stamp[: -len(SUFFIX)]
    try:
        return datetime.strptime(stamp, TIMESTAMP_FORMAT)
    except ValueError:
        raise SnapshotNameError(filename) from None


class SnapshotStore(ABC):
    """Abstract base class for snapshot storage."""

    @abstractmethod
    def load(self) -> Migration:
        """Load the most recent snapshot, or an empty Migration."""
        pass

    @abstractmethod
    def save(self, migration: Migration) -> str:
        """Persist a snapshot and return where it was written."""
        pass

    @abstractmethod
    def list(self) -> List[str]:
        """Snapshot record names, oldest first."""
        pass

    @abstractmethod
    def get_uri(self) -> str:
        """Get the full URI of this snapshot store."""
        pass


class FileSnapshotStore(SnapshotStore):
    """Local filesystem snapshot store.

    Structure:
        ./migrations/
        ├── Migration_2026-01-26-12-00-00.json
        └── Migration_2026-01-27-09-30-12.json
    """

    def __init__(
        self,
        directory: Path,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize with the snapshot directory.

        Args:
            directory: Folder holding the snapshot records (created on demand)
            clock: Source of the save timestamp, defaults to UTC now
        """
        self.directory = Path(directory)
        self.clock = clock or utc_now

    def _ensure_directory(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SnapshotIOError(
                f"could not create migrations folder {self.directory}: {e}"
            ) from e

    def _records(self) -> List[Tuple[datetime, Path]]:
        self._ensure_directory()
        records = []
        for path in self.directory.iterdir():
            if path.is_dir() or not path.name.startswith(PREFIX):
                continue
            records.append((parse_snapshot_filename(path.name), path))
        records.sort(key=lambda record: record[0])
        return records

    def list(self) -> List[str]:
        return [path.name for _, path in self._records()]

    def latest_path(self) -> Optional[Path]:
        records = self._records()
        return records[-1][1] if records else None

    def load(self) -> Migration:
        path = self.latest_path()
        if path is None:
            logger.debug("snapshot_none", directory=str(self.directory))
            return Migration(directory=str(self.directory))

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            migration = Migration.from_snapshot(data)
        except OSError as e:
            raise SnapshotIOError(f"failed to read latest migration {path.name}: {e}") from e
        except (ValueError, ValidationError) as e:
            raise SnapshotIOError(f"failed to parse latest migration {path.name}: {e}") from e

        logger.debug("snapshot_loaded", file=path.name, tables=len(migration.tables))
        return migration

    def save(self, migration: Migration) -> str:
        self._ensure_directory()
        path = self.directory / snapshot_filename(self.clock())
        if path.exists():
            logger.warning("snapshot_overwritten", file=path.name)

        try:
            path.write_text(
                json.dumps(migration.to_snapshot(), indent=4), encoding="utf-8"
            )
        except OSError as e:
            raise SnapshotIOError(f"failed to write migration file {path}: {e}") from e

        logger.debug("snapshot_written", file=path.name)
        return str(path)

    def get_uri(self) -> str:
        return f"file://{self.directory.resolve()}"


def create_snapshot_store(
    uri: str = DEFAULT_DIRECTORY,
    clock: Optional[Callable[[], datetime]] = None,
) -> SnapshotStore:
    """Factory function to create the appropriate SnapshotStore.

    Args:
        uri: ``file:///var/lib/app/migrations`` or a plain directory path

    Raises:
        ValueError: If the URI scheme is not supported
    """
    parsed = urlparse(uri)

    if parsed.scheme == "file":
        return FileSnapshotStore(Path(parsed.path), clock=clock)
    elif parsed.scheme == "":
        return FileSnapshotStore(Path(uri), clock=clock)
    else:
        raise ValueError(
            f"Unsupported snapshot storage scheme: {parsed.scheme}. Supported: file://"
        )
