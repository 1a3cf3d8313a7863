"""One-way snapshot reconciliation between local data and production.

Modules:

- ``models``    -- ``Snapshot``, ``ChangePlan``, ``OperationResult``,
  ``ExecutionReport``, ``ReplaceReport``: core data contracts.
- ``reconcile`` -- ``compute_plan``: id-matched structural diff.
- ``confirm``   -- ``Confirmer`` protocol and ``ConsoleConfirmer``.
- ``executor``  -- ``SyncExecutor``: apply a plan, record per-op results.
- ``replace``   -- ``ReplaceWorkflow``: backup, delete all, create all.
- ``snapshot``  -- ``SnapshotStore``: JSON snapshot files and backups.
- ``reporter``  -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from timeline_sync.sync import SnapshotStore, SyncExecutor, compute_plan
    from timeline_sync.sync.confirm import ConsoleConfirmer

    local = SnapshotStore().load(Path("local-data.json"))
    plan = compute_plan(local, gateway.fetch_all())
    report = SyncExecutor(gateway, ConsoleConfirmer()).execute(plan)
"""

from .executor import SyncExecutor
from .models import (
    ChangePlan,
    ExecutionReport,
    OperationKind,
    OperationResult,
    RecordUpdate,
    ReplaceReport,
    Snapshot,
)
from .reconcile import compute_plan, values_equal
from .replace import ReplaceWorkflow
from .reporter import (
    format_execution_report,
    format_plan,
    format_replace_report,
    report_to_json,
)
from .snapshot import SnapshotStore

__all__ = [
    "ChangePlan",
    "ExecutionReport",
    "OperationKind",
    "OperationResult",
    "RecordUpdate",
    "ReplaceReport",
    "ReplaceWorkflow",
    "Snapshot",
    "SnapshotStore",
    "SyncExecutor",
    "compute_plan",
    "format_execution_report",
    "format_plan",
    "format_replace_report",
    "report_to_json",
    "values_equal",
]
