"""Gateway over the local development SQLite database.

Rows use the app's snake_case columns with JSON text for the list and
mapping attributes; records use the API's camelCase shape.  The column
mapping and defaults below are the ones the app server applies, so a
record written here reads back exactly as the API would serve it.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from timeline_sync.errors import PreconditionError, SnapshotError
from timeline_sync.sync.models import Record, Snapshot
from timeline_sync.validators import validate_record

logger = logging.getLogger(__name__)

DEFAULT_START_YEAR = 2011
DEFAULT_END_YEAR = 2026
DEFAULT_TYPE_COLOR = "#5a8a99"

SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    number INTEGER NOT NULL,
    name TEXT NOT NULL,
    practice_name TEXT,
    brief_description TEXT,
    client TEXT,
    value TEXT,
    area TEXT,
    location TEXT,
    project_types TEXT NOT NULL,
    type_color TEXT NOT NULL,
    thumbnail TEXT,
    notes TEXT,
    stages TEXT NOT NULL,
    pauses TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    start_year INTEGER DEFAULT 2011,
    end_year INTEGER DEFAULT 2026,
    color_map TEXT NOT NULL,
    project_type_colors TEXT
);
"""

_WRITE_COLUMNS = (
    "number",
    "name",
    "practice_name",
    "brief_description",
    "client",
    "value",
    "area",
    "location",
    "project_types",
    "type_color",
    "thumbnail",
    "notes",
    "stages",
    "pauses",
)


def _loads(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    return json.loads(raw)


def row_to_record(row: sqlite3.Row) -> Record:
    """Convert a ``projects`` row to an API-shaped record."""
    return {
        "id": row["id"],
        "number": row["number"],
        "name": row["name"],
        "practiceName": row["practice_name"],
        "briefDescription": row["brief_description"],
        "client": row["client"],
        "value": row["value"],
        "area": row["area"],
        "location": row["location"],
        "projectTypes": _loads(row["project_types"], []),
        "typeColor": row["type_color"],
        "thumbnail": row["thumbnail"],
        "notes": row["notes"],
        "stages": _loads(row["stages"], {}),
        "pauses": _loads(row["pauses"], []),
    }


def row_to_settings(row: sqlite3.Row | None) -> dict[str, Any]:
    """Convert the ``settings`` row (or its absence) to API shape."""
    if row is None:
        return {
            "startYear": DEFAULT_START_YEAR,
            "endYear": DEFAULT_END_YEAR,
            "colorMap": {},
            "projectTypeColors": {},
        }
    return {
        "startYear": row["start_year"] or DEFAULT_START_YEAR,
        "endYear": row["end_year"] or DEFAULT_END_YEAR,
        "colorMap": _loads(row["color_map"], {}),
        "projectTypeColors": _loads(row["project_type_colors"], {}),
    }


def record_to_values(record: Record) -> tuple[Any, ...]:
    """Column values for ``_WRITE_COLUMNS``, with the app's defaults."""
    return (
        record.get("number"),
        record.get("name"),
        record.get("practiceName") or None,
        record.get("briefDescription") or None,
        record.get("client") or "",
        record.get("value") or "",
        record.get("area") or "",
        record.get("location") or "",
        json.dumps(record.get("projectTypes") or []),
        record.get("typeColor") or DEFAULT_TYPE_COLOR,
        record.get("thumbnail") or "",
        record.get("notes") or "",
        json.dumps(record.get("stages") or {}),
        json.dumps(record.get("pauses") or []),
    )


class SqliteProjectGateway:
    """``ProjectGateway`` backed by the local SQLite database.

    Args:
        db_path: Path to the database file.
    """

    name = "local"

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        with closing(sqlite3.connect(self.db_path)) as connection:
            connection.row_factory = sqlite3.Row
            with connection:
                yield connection

    def initialize(self) -> None:
        """Create the tables if they do not exist yet."""
        with self._connect() as connection:
            connection.executescript(SCHEMA)

    def fetch_all(self) -> Snapshot:
        """Read every project (ordered by ``number``) and the settings row.

        Raises:
            PreconditionError: If the database file is missing or unreadable.
            SnapshotError: If stored data does not form a valid snapshot.
        """
        if not self.db_path.is_file():
            raise PreconditionError(f"Local database not found: {self.db_path}")

        try:
            with self._connect() as connection:
                settings_row = connection.execute(
                    "SELECT * FROM settings LIMIT 1"
                ).fetchone()
                rows = connection.execute(
                    "SELECT * FROM projects ORDER BY number"
                ).fetchall()
        except sqlite3.Error as exc:
            raise PreconditionError(
                f"Failed to read local database {self.db_path}: {exc}"
            ) from exc

        try:
            projects = [row_to_record(row) for row in rows]
            return Snapshot(projects=projects, settings=row_to_settings(settings_row))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise SnapshotError(f"{self.db_path}: invalid stored data: {exc}") from exc

    def create(self, record: Record) -> None:
        self._check(record)
        values = record_to_values(record)
        with self._connect() as connection:
            if values[0] is None:
                # Unnumbered records go to the end of the timeline
                next_number = connection.execute(
                    "SELECT COALESCE(MAX(number), 0) + 1 FROM projects"
                ).fetchone()[0]
                values = (next_number, *values[1:])
            placeholders = ", ".join("?" for _ in range(len(_WRITE_COLUMNS) + 1))
            connection.execute(
                f"INSERT INTO projects (id, {', '.join(_WRITE_COLUMNS)}) "
                f"VALUES ({placeholders})",
                (str(record["id"]), *values),
            )

    def update(self, record_id: Any, record: Record) -> None:
        self._check(record)
        assignments = ", ".join(f"{column}=?" for column in _WRITE_COLUMNS)
        with self._connect() as connection:
            cursor = connection.execute(
                f"UPDATE projects SET {assignments}, updated_at=CURRENT_TIMESTAMP "
                "WHERE id=?",
                (*record_to_values(record), str(record_id)),
            )
            if cursor.rowcount == 0:
                logger.warning("Update matched no local project with id %s", record_id)

    def delete(self, record_id: Any) -> None:
        with self._connect() as connection:
            connection.execute("DELETE FROM projects WHERE id=?", (str(record_id),))

    @staticmethod
    def _check(record: Record) -> None:
        is_valid, reason = validate_record(record)
        if not is_valid:
            raise ValueError(reason)
