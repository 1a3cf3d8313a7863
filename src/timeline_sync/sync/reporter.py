"""Report formatting functions.

Provides human-readable and machine-readable output for sync operations:

- ``format_plan`` -- change plan preview shown before confirmation.
- ``format_execution_report`` -- post-sync summary.
- ``format_replace_plan`` / ``format_replace_report`` -- replace workflow.
- ``format_snapshot_summary`` -- download/export/status summaries.
- ``report_to_json`` -- structured dict for ``--report`` files.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .models import ExecutionReport, OperationResult, record_label

if TYPE_CHECKING:
    from .models import ChangePlan, ReplaceReport, Snapshot

PREVIEW_LIMIT = 5
SCHEMA_KEYS = ("practiceName", "briefDescription")

# ------------------------------------------------------------------
# Change plan
# ------------------------------------------------------------------


def format_plan(plan: ChangePlan, target_name: str = "production") -> str:
    """Format a change plan grouped by operation.

    Sections are only included when they contain at least one record.

    Args:
        plan: The computed plan.
        target_name: Name of the receiving side, used in the header.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append(f"Changes to apply to {target_name}:")
    lines.append(
        f"  {len(plan.to_create)} to create, {len(plan.to_update)} to update, "
        f"{len(plan.to_delete)} to delete, {len(plan.unchanged_ids)} unchanged"
    )
    lines.append("")

    if plan.to_create:
        lines.append(f"CREATE ({len(plan.to_create)}):")
        for record in plan.to_create:
            lines.append(f"  + {record_label(record)}")
        lines.append("")

    if plan.to_update:
        lines.append(f"UPDATE ({len(plan.to_update)}):")
        for update in plan.to_update:
            fields = ", ".join(update.changed_fields)
            lines.append(f"  ~ {record_label(update.source)} ({fields})")
        lines.append("")

    if plan.to_delete:
        lines.append(f"DELETE ({len(plan.to_delete)}):")
        for record in plan.to_delete:
            lines.append(f"  - {record_label(record)}")
        lines.append("")

    if plan.settings_changed:
        lines.append("SETTINGS differ:")
        for change in plan.settings_changes:
            lines.append(f"  {change}")
        lines.append("")

    if plan.is_empty:
        lines.append("Already in sync. No changes needed.")

    return "\n".join(lines).rstrip()


def _format_errors(errors: list[OperationResult]) -> list[str]:
    lines = ["Errors:"]
    for r in errors:
        lines.append(f"  {r.kind.value} {r.name}: {r.error}")
    lines.append("")
    return lines


def format_execution_report(report: ExecutionReport) -> str:
    """Format the outcome of an executed (or cancelled) plan."""
    if report.in_sync:
        return "Already in sync. No changes needed."
    if report.dry_run:
        return "DRY RUN -- no changes were made."
    if report.cancelled:
        return "Cancelled. No changes were made."

    lines: list[str] = []
    lines.append("Sync complete")
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")
    lines.append(
        f"{report.succeeded} succeeded, {report.failed} failed: "
        f"{report.created} created, {report.updated} updated, "
        f"{report.deleted} deleted"
    )
    lines.append("")

    if report.errors:
        lines.extend(_format_errors(report.errors))

    if report.settings_note:
        lines.append(f"WARNING: {report.settings_note}")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Replace workflow
# ------------------------------------------------------------------


def format_replace_plan(
    production: Snapshot,
    local: Snapshot,
    backup_path: Path,
    *,
    settings_changed: bool = False,
) -> str:
    """Format the destructive replacement plan shown before the phrases.

    Settings are always listed: a replace cannot write them, whether or
    not they differ.
    """
    settings = "differ, NOT updated" if settings_changed else "unchanged, not updated"
    lines = [
        "REPLACE PRODUCTION",
        f"  Production projects to delete: {len(production.projects)}",
        f"  Local projects to create:      {len(local.projects)}",
        f"  Settings:                      {settings} (no settings-update operation)",
        f"  Backup written to:             {backup_path}",
        "",
        "WARNING: every production project will be deleted and recreated",
        "from the local snapshot. Restore from the backup above if needed.",
    ]
    return "\n".join(lines)


def format_replace_report(report: ReplaceReport) -> str:
    """Format the outcome of the replace workflow."""
    if report.cancelled:
        return (
            "Cancelled. Production was not modified.\n"
            f"Backup kept at: {report.backup_path}"
        )

    deleted_ok = sum(1 for r in report.deleted if r.success)
    created_ok = sum(1 for r in report.created if r.success)

    lines: list[str] = []
    lines.append("Replace complete")
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")
    lines.append(f"Deleted {deleted_ok}/{report.production_count} production projects")
    lines.append(f"Created {created_ok}/{report.local_count} local projects")
    lines.append("")

    errors = [r for r in report.results if not r.success]
    if errors:
        lines.extend(_format_errors(errors))

    if report.verification_error:
        lines.append(f"Verification failed: {report.verification_error}")
    elif report.verified_count is not None:
        status = "OK" if report.verified_count == report.local_count else "MISMATCH"
        lines.append(
            f"Verification: production now has {report.verified_count} "
            f"projects (expected {report.local_count}) {status}"
        )

    label = "WARNING" if report.settings_changed else "NOTE"
    lines.append(f"{label}: {report.settings_note}")

    lines.append(f"Backup: {report.backup_path}")
    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Snapshot summaries
# ------------------------------------------------------------------


def schema_problems(snapshot: Snapshot) -> list[str]:
    """List projects missing the expected schema.

    A project passes when ``projectTypes`` is a list and both
    ``practiceName`` and ``briefDescription`` keys are present.
    """
    problems: list[str] = []
    for project in snapshot.projects:
        missing = [key for key in SCHEMA_KEYS if key not in project]
        if not isinstance(project.get("projectTypes"), list):
            missing.insert(0, "projectTypes (list)")
        if missing:
            problems.append(f"{record_label(project)}: missing {', '.join(missing)}")
    return problems


def format_snapshot_summary(
    snapshot: Snapshot,
    title: str,
    *,
    size: int | None = None,
    check_schema: bool = False,
) -> str:
    """Summarise a snapshot for the download, export and status commands.

    Args:
        snapshot: The snapshot to describe.
        title: First line of the summary.
        size: File size in bytes, if the snapshot was just written.
        check_schema: Include the schema check and a preview of the first
            projects.
    """
    settings = snapshot.settings
    lines = [title, f"  Projects: {len(snapshot.projects)}"]
    if size is not None:
        lines.append(f"  File size: {size / 1024:.2f} KB")
    if settings:
        lines.append(
            f"  Year range: {settings.get('startYear')}-{settings.get('endYear')}"
        )
        lines.append(f"  Color map: {len(settings.get('colorMap') or {})} colors")
        lines.append(
            f"  Project type colors: {len(settings.get('projectTypeColors') or {})} colors"
        )
    else:
        lines.append("  Settings: none")

    if not check_schema:
        return "\n".join(lines)

    lines.append("")
    problems = schema_problems(snapshot)
    if problems:
        lines.append(f"Schema check: {len(problems)} projects need attention")
        for problem in problems:
            lines.append(f"  {problem}")
    else:
        lines.append("Schema check: OK")

    if snapshot.projects:
        lines.append("")
        lines.append(f"First {min(PREVIEW_LIMIT, len(snapshot.projects))} projects:")
        for project in snapshot.projects[:PREVIEW_LIMIT]:
            types = project.get("projectTypes")
            types_text = ", ".join(map(str, types)) if isinstance(types, list) else "-"
            lines.append(f"  {project.get('number', '?')}. {record_label(project)} [{types_text}]")
        if len(snapshot.projects) > PREVIEW_LIMIT:
            lines.append(f"  ... ({len(snapshot.projects) - PREVIEW_LIMIT} more)")

    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def _result_entry(r: OperationResult) -> dict:
    entry: dict = {
        "kind": r.kind.value,
        "id": r.record_id,
        "name": r.name,
        "success": r.success,
    }
    if r.error:
        entry["error"] = r.error
    return entry


def report_to_json(report: ExecutionReport | ReplaceReport) -> dict:
    """Convert an execution or replace report to a JSON-ready dict.

    Args:
        report: The completed report.

    Returns:
        Dict with timestamps, counts, settings status and per-result
        details.
    """
    data: dict = {
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "cancelled": report.cancelled,
        "settings_changed": report.settings_changed,
        "settings_applied": report.settings_applied,
        "counts": {
            "total": len(report.results),
            "succeeded": report.succeeded,
            "failed": report.failed,
        },
        "results": [_result_entry(r) for r in report.results],
    }
    if report.settings_note:
        data["settings_note"] = report.settings_note

    if isinstance(report, ExecutionReport):
        data["in_sync"] = report.in_sync
        data["dry_run"] = report.dry_run
        data["counts"].update(
            created=report.created,
            updated=report.updated,
            deleted=report.deleted,
        )
    else:
        data["backup_path"] = report.backup_path
        data["production_count"] = report.production_count
        data["local_count"] = report.local_count
        data["verified_count"] = report.verified_count
        if report.verification_error:
            data["verification_error"] = report.verification_error
    return data
