"""Pydantic models for the reconciliation engine.

Defines the data contracts shared by the sync modules:

- ``Snapshot``: the full ``{projects, settings}`` state of one side.
- ``RecordUpdate``: a source/target pair whose contents differ.
- ``ChangePlan``: create/update/delete classification between snapshots.
- ``OperationKind`` / ``OperationResult``: one applied remote operation.
- ``ExecutionReport``: outcome of applying a change plan.
- ``ReplaceReport``: outcome of the full replace workflow.

Projects are kept as plain JSON mappings rather than typed models: every
attribute, including ones this tool does not know about, takes part in
change detection and is written back unchanged.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator

Record = dict[str, Any]

# Canonical attribute order of a project record, as served by the API.
RECORD_FIELDS: tuple[str, ...] = (
    "id",
    "number",
    "name",
    "practiceName",
    "briefDescription",
    "client",
    "value",
    "area",
    "location",
    "projectTypes",
    "typeColor",
    "thumbnail",
    "notes",
    "stages",
    "pauses",
)

SETTINGS_FIELDS: tuple[str, ...] = (
    "startYear",
    "endYear",
    "colorMap",
    "projectTypeColors",
)

SETTINGS_UNSUPPORTED_NOTE = (
    "Settings differ but were NOT applied: the remote API has no "
    "settings-update operation. Update settings manually."
)

REPLACE_SETTINGS_NOTE = (
    "Settings are not part of a replace: the remote API has no "
    "settings-update operation, so production settings were left as they are."
)


def record_label(record: Record) -> str:
    """Short display label for a record: its name, falling back to the id."""
    name = record.get("name")
    if isinstance(name, str) and name.strip():
        return name
    return f"<{record.get('id')}>"


class Snapshot(BaseModel):
    """State of one side (local or production) at a point in time.

    Attributes:
        projects: Project records, each a JSON mapping with an ``id``.
        settings: The singleton settings object.
    """

    projects: list[Record] = []
    settings: dict[str, Any] = {}

    model_config = {"frozen": True}

    @field_validator("projects")
    @classmethod
    def _check_identities(cls, projects: list[Record]) -> list[Record]:
        seen: set[str] = set()
        for index, project in enumerate(projects):
            record_id = project.get("id")
            if record_id is None or str(record_id).strip() == "":
                raise ValueError(f"project at index {index} has no 'id'")
            key = str(record_id)
            if key in seen:
                raise ValueError(f"duplicate project id {key!r}")
            seen.add(key)
        return projects

    @field_validator("settings", mode="before")
    @classmethod
    def _none_settings(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def project_ids(self) -> list[str]:
        """Project ids in snapshot order."""
        return [str(p["id"]) for p in self.projects]

    def by_id(self) -> dict[str, Record]:
        """Map of id -> record (ids compared as strings)."""
        return {str(p["id"]): p for p in self.projects}


class RecordUpdate(BaseModel):
    """A record present on both sides with differing contents.

    Attributes:
        source: Authoritative version; this is what gets written.
        target: Current receiving-side version, kept for display only.
        changed_fields: Top-level attributes whose values differ.
    """

    source: Record
    target: Record
    changed_fields: list[str] = []

    model_config = {"frozen": True}

    @property
    def record_id(self) -> str:
        return str(self.source["id"])


class ChangePlan(BaseModel):
    """Classification of every record id across two snapshots.

    The four id groups (create, update, delete, unchanged) are disjoint
    and together cover the union of both sides' ids.  ``settings_changes``
    describes a settings difference for display; it is never applied.
    """

    to_create: list[Record] = []
    to_update: list[RecordUpdate] = []
    to_delete: list[Record] = []
    unchanged_ids: list[str] = []
    settings_changed: bool = False
    settings_changes: list[str] = []

    model_config = {"frozen": True}

    @property
    def operation_count(self) -> int:
        """Number of remote record operations the plan implies."""
        return len(self.to_create) + len(self.to_update) + len(self.to_delete)

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to create, update, delete or report."""
        return self.operation_count == 0 and not self.settings_changed


class OperationKind(str, Enum):
    """Remote record operations, in the order they are applied."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class OperationResult(BaseModel):
    """Outcome of one remote record operation.

    Attributes:
        kind: Operation that was attempted.
        record_id: Id of the record the operation targeted.
        name: Display label of the record.
        success: Whether the remote side accepted the operation.
        error: Error description if the operation failed.
    """

    kind: OperationKind
    record_id: str
    name: str
    success: bool
    error: str | None = None

    model_config = {"frozen": True}


def _count(results: list[OperationResult], kind: OperationKind) -> int:
    return sum(1 for r in results if r.kind == kind and r.success)


class ExecutionReport(BaseModel):
    """Aggregate result of executing a change plan.

    Attributes:
        results: Per-operation outcomes in the order they ran.
        settings_changed: Whether the plan flagged a settings difference.
        settings_applied: Always ``False``; see ``settings_note``.
        cancelled: True when confirmation was refused (zero mutations).
        in_sync: True when the plan was empty (zero remote calls).
        dry_run: True when the plan was only previewed.
        started_at: ISO 8601 timestamp when execution started.
        completed_at: ISO 8601 timestamp when execution finished.
    """

    results: list[OperationResult] = []
    settings_changed: bool = False
    settings_applied: bool = False
    cancelled: bool = False
    in_sync: bool = False
    dry_run: bool = False
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def created(self) -> int:
        return _count(self.results, OperationKind.CREATE)

    @property
    def updated(self) -> int:
        return _count(self.results, OperationKind.UPDATE)

    @property
    def deleted(self) -> int:
        return _count(self.results, OperationKind.DELETE)

    @property
    def errors(self) -> list[OperationResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    @property
    def settings_note(self) -> str | None:
        """Explanation shown whenever a settings difference was detected."""
        if self.settings_changed and not self.settings_applied:
            return SETTINGS_UNSUPPORTED_NOTE
        return None


class ReplaceReport(BaseModel):
    """Aggregate result of the full replace workflow.

    Attributes:
        backup_path: Pre-destroy backup of production (recovery source).
        production_count: Records in production before the run.
        local_count: Records in the local snapshot.
        deleted: Outcomes of the delete pass.
        created: Outcomes of the create pass.
        cancelled: True when either confirmation phrase did not match.
        settings_changed: Whether local and production settings differ.
        settings_applied: Always ``False``.
        verified_count: Production record count after the run, or
            ``None`` if the verification fetch failed.
        verification_error: Why verification failed, if it did.
    """

    backup_path: str
    production_count: int
    local_count: int
    deleted: list[OperationResult] = []
    created: list[OperationResult] = []
    cancelled: bool = False
    settings_changed: bool = False
    settings_applied: bool = False
    verified_count: int | None = None
    verification_error: str | None = None
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def results(self) -> list[OperationResult]:
        return [*self.deleted, *self.created]

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def settings_note(self) -> str:
        """Replace never writes settings, so a note is always present."""
        if self.settings_changed:
            return SETTINGS_UNSUPPORTED_NOTE
        return REPLACE_SETTINGS_NOTE
