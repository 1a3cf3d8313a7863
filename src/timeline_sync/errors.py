"""Exception hierarchy for timeline-sync.

Two families matter to callers:

- ``PreconditionError`` and its subclasses are fatal to a run and are
  raised *before* any remote mutation happens.  The CLI maps them to
  exit status 1.
- ``ApiError`` describes a single failed remote operation.  The sync
  executor and the replace workflow catch it (and anything else raised by
  a gateway call) per record and turn it into a report entry.
"""

from __future__ import annotations

from pathlib import Path


class TimelineSyncError(Exception):
    """Base class for all timeline-sync errors."""


class PreconditionError(TimelineSyncError):
    """A run cannot start; nothing has been mutated."""


class SnapshotNotFoundError(PreconditionError):
    """The snapshot file to load does not exist."""

    def __init__(self, path: Path, hint: str | None = None) -> None:
        self.path = path
        self.hint = hint
        message = f"Snapshot file not found: {path}"
        if hint:
            message += f" ({hint})"
        super().__init__(message)


class SnapshotError(PreconditionError):
    """A snapshot document is malformed or fails validation."""


class RemoteUnavailableError(PreconditionError):
    """The remote collection could not be fetched in full."""


class BackupError(PreconditionError):
    """The pre-destroy backup could not be written."""


class ApiError(TimelineSyncError):
    """A single remote create/update/delete call was rejected.

    Attributes:
        status_code: HTTP status of the response, or ``None`` when the
            request never produced one.
        message: Error text taken from the response body when available.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            super().__init__(f"HTTP {status_code}: {message}")
        else:
            super().__init__(message)


class ReplaceInterruptedError(TimelineSyncError):
    """The replace workflow stopped after it began mutating production.

    Production may be partially or fully empty.  ``backup_path`` is the
    file written before the first delete and is the recovery source.

    Attributes:
        backup_path: Pre-destroy backup of production.
        deleted: Production records deleted before the stop.
        created: Local records created before the stop.
        production_count: Records production held before the run.
        local_count: Records the local snapshot holds.
    """

    def __init__(
        self,
        backup_path: Path,
        cause: str,
        *,
        deleted: int = 0,
        created: int = 0,
        production_count: int = 0,
        local_count: int = 0,
    ) -> None:
        self.backup_path = backup_path
        self.deleted = deleted
        self.created = created
        self.production_count = production_count
        self.local_count = local_count
        super().__init__(
            f"Replace interrupted: {cause}. "
            f"Deleted {deleted}/{production_count} production projects and "
            f"created {created}/{local_count} local projects before stopping. "
            f"Production may be in an inconsistent state; "
            f"restore from backup: {backup_path}"
        )
