"""Snapshot persistence layer.

Reads and writes the JSON snapshot files the commands exchange: the
local export (``local-data.json``), the downloaded production copy
(``backup-data.json``) and the timestamped pre-replace backups.

Key design choices:

* **Stable field order** -- ``save()`` writes ``projects`` before
  ``settings``, record attributes in the API's canonical order (unknown
  attributes after, sorted) and settings in canonical order, so two
  snapshots of the same data diff cleanly.
* **Atomic writes** -- ``save()`` goes through a temp file and
  ``os.replace()``; backups are created with exclusive-create and are
  never overwritten.
* **Encoding tolerant reads** -- ``load()`` detects the file encoding
  rather than assuming UTF-8.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from timeline_sync.errors import (
    BackupError,
    SnapshotError,
    SnapshotNotFoundError,
)
from timeline_sync.file_handler import (
    read_file_with_encoding,
    write_file_atomic,
    write_new_file,
)
from timeline_sync.sync.models import (
    RECORD_FIELDS,
    SETTINGS_FIELDS,
    Snapshot,
)
from timeline_sync.sync.reconcile import ordered_keys

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "production-backup-"


def canonical_document(snapshot: Snapshot) -> dict[str, Any]:
    """Return *snapshot* as a plain dict with stable key ordering."""
    projects = [
        {key: project[key] for key in ordered_keys(project.keys(), RECORD_FIELDS)}
        for project in snapshot.projects
    ]
    settings = {
        key: snapshot.settings[key]
        for key in ordered_keys(snapshot.settings.keys(), SETTINGS_FIELDS)
    }
    return {"projects": projects, "settings": settings}


def dumps_snapshot(snapshot: Snapshot) -> str:
    """Serialise *snapshot* as indented JSON with a trailing newline."""
    return (
        json.dumps(canonical_document(snapshot), indent=2, ensure_ascii=False)
        + "\n"
    )


def parse_snapshot(data: Any, origin: str) -> Snapshot:
    """Validate decoded JSON *data* into a ``Snapshot``.

    Raises:
        SnapshotError: If the document is not a snapshot.
    """
    if not isinstance(data, dict) or not isinstance(data.get("projects"), list):
        raise SnapshotError(f"{origin}: expected an object with a 'projects' list")
    try:
        return Snapshot(
            projects=data["projects"],
            settings=data.get("settings") or {},
        )
    except ValidationError as exc:
        raise SnapshotError(f"{origin}: invalid snapshot: {exc}") from exc


def backup_filename(captured_at: datetime) -> str:
    """File name for a backup captured at *captured_at*.

    ``production-backup-2026-01-31T10-15-00-123Z.json`` style: the UTC
    ISO timestamp with ``:`` and ``.`` replaced so the name is portable.
    """
    stamp = captured_at.isoformat(timespec="milliseconds")
    stamp = stamp.replace("+00:00", "Z").replace(":", "-").replace(".", "-")
    return f"{BACKUP_PREFIX}{stamp}.json"


class SnapshotStore:
    """Load and save snapshot files."""

    def load(self, path: Path, hint: str | None = None) -> Snapshot:
        """Load a snapshot from *path*.

        Args:
            path: Snapshot file to read.
            hint: Extra advice included in the not-found error, e.g.
                which command produces the file.

        Raises:
            SnapshotNotFoundError: If *path* does not exist.
            SnapshotError: If the file is not valid snapshot JSON.
        """
        if not path.is_file():
            raise SnapshotNotFoundError(path, hint)

        content, encoding = read_file_with_encoding(path)
        logger.debug("Read %s (%s, %d chars)", path, encoding, len(content))
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise SnapshotError(f"{path}: invalid JSON: {exc}") from exc

        return parse_snapshot(data, str(path))

    def save(self, path: Path, snapshot: Snapshot) -> int:
        """Write *snapshot* to *path* atomically.

        Returns:
            Number of bytes written.
        """
        size = write_file_atomic(path, dumps_snapshot(snapshot))
        logger.info("Saved %d projects to %s (%d bytes)", len(snapshot.projects), path, size)
        return size

    def write_backup(
        self, snapshot: Snapshot, directory: Path, captured_at: datetime
    ) -> Path:
        """Write a write-once, timestamped backup of *snapshot*.

        Returns:
            Path of the new backup file.

        Raises:
            BackupError: If the file exists already or cannot be written.
        """
        path = directory / backup_filename(captured_at)
        try:
            size = write_new_file(path, dumps_snapshot(snapshot))
        except OSError as exc:
            raise BackupError(f"Could not write backup {path}: {exc}") from exc
        logger.info("Backup written: %s (%d bytes)", path, size)
        return path
