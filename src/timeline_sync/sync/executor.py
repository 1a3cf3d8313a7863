"""Apply a change plan to the receiving side.

The ``SyncExecutor`` shows the plan, asks for one confirmation and then
applies creates, updates and deletes in that order.  Error handling is
per-record: a single failed call is recorded in the report and the batch
continues.  There is no rollback.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from .models import (
    ChangePlan,
    ExecutionReport,
    OperationKind,
    OperationResult,
    record_label,
)
from .reporter import format_plan

if TYPE_CHECKING:
    from timeline_sync.gateways.base import ProjectGateway

    from .confirm import Confirmer

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def apply_operation(
    kind: OperationKind,
    record_id: str,
    name: str,
    call: Callable[[], Any],
) -> OperationResult:
    """Run one gateway call and capture its outcome.

    Any exception raised by *call* becomes a failed result.
    """
    context = {"operation": kind.value, "record_id": record_id}
    try:
        call()
    except Exception as exc:
        logger.error(
            "Failed to %s %s (%s): %s", kind.value, name, record_id, exc, extra=context
        )
        return OperationResult(
            kind=kind, record_id=record_id, name=name, success=False, error=str(exc)
        )
    logger.info("%s %s", kind.value.capitalize() + "d", name, extra=context)
    return OperationResult(kind=kind, record_id=record_id, name=name, success=True)


class SyncExecutor:
    """Execute a ``ChangePlan`` against a gateway.

    Args:
        gateway: Receiving side of the sync.
        confirmer: Asked once before any mutation unless auto-confirmed.
        delay: Seconds to wait after every operation.
        sleep: Sleep function, replaced in tests.
    """

    def __init__(
        self,
        gateway: ProjectGateway,
        confirmer: Confirmer,
        *,
        delay: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.gateway = gateway
        self.confirmer = confirmer
        self.delay = delay
        self._sleep = sleep

    def execute(
        self,
        plan: ChangePlan,
        auto_confirm: bool = False,
        *,
        dry_run: bool = False,
        out: Callable[[str], None] = print,
    ) -> ExecutionReport:
        """Show *plan*, confirm, and apply it.

        Args:
            plan: The plan to apply.
            auto_confirm: Skip the confirmation prompt.
            dry_run: Only show the plan.
            out: Sink for user-facing text.

        Returns:
            An ``ExecutionReport``.  ``in_sync`` and ``cancelled`` runs
            make no gateway calls.
        """
        started_at = _now()

        if plan.is_empty:
            logger.info("Nothing to do: %s is already in sync", self.gateway.name)
            return ExecutionReport(
                in_sync=True, started_at=started_at, completed_at=_now()
            )

        out(format_plan(plan, self.gateway.name))

        if dry_run:
            return ExecutionReport(
                dry_run=True,
                settings_changed=plan.settings_changed,
                started_at=started_at,
                completed_at=_now(),
            )

        if not auto_confirm and not self.confirmer.ask_yes_no(
            f"Apply these changes to {self.gateway.name}?"
        ):
            logger.info("Sync cancelled by operator")
            return ExecutionReport(
                cancelled=True,
                settings_changed=plan.settings_changed,
                started_at=started_at,
                completed_at=_now(),
            )

        results: list[OperationResult] = []

        for record in plan.to_create:
            results.append(
                self._run(
                    OperationKind.CREATE,
                    record,
                    lambda r=record: self.gateway.create(r),
                )
            )

        for update in plan.to_update:
            results.append(
                self._run(
                    OperationKind.UPDATE,
                    update.source,
                    lambda u=update: self.gateway.update(u.source["id"], u.source),
                )
            )

        for record in plan.to_delete:
            results.append(
                self._run(
                    OperationKind.DELETE,
                    record,
                    lambda r=record: self.gateway.delete(r["id"]),
                )
            )

        report = ExecutionReport(
            results=results,
            settings_changed=plan.settings_changed,
            started_at=started_at,
            completed_at=_now(),
        )
        if report.settings_note:
            logger.warning(report.settings_note)
        logger.info(
            "Sync finished: %d succeeded, %d failed", report.succeeded, report.failed
        )
        return report

    def _run(
        self, kind: OperationKind, record: dict, call: Callable[[], Any]
    ) -> OperationResult:
        result = apply_operation(kind, str(record["id"]), record_label(record), call)
        self._sleep(self.delay)
        return result
