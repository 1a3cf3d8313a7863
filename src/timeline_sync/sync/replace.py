"""Full replacement of production with a local snapshot.

Order of a run:

1. Fetch production and write a timestamped backup.  Nothing is mutated
   if either step fails.
2. Show the plan and require two typed phrases (``REPLACE``, then
   ``YES``).
3. Delete every production record, then create every local record.
   Individual failures are recorded and the run continues.
4. Re-fetch production and record the resulting count.

Once step 3 has started, an interruption is re-raised as
``ReplaceInterruptedError`` carrying the backup path.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from timeline_sync.errors import ReplaceInterruptedError, TimelineSyncError

from .executor import apply_operation
from .models import (
    OperationKind,
    OperationResult,
    ReplaceReport,
    Snapshot,
    record_label,
)
from .reconcile import values_equal
from .reporter import format_replace_plan

if TYPE_CHECKING:
    from timeline_sync.gateways.base import ProjectGateway

    from .confirm import Confirmer
    from .snapshot import SnapshotStore

logger = logging.getLogger(__name__)

REPLACE_PHRASE = "REPLACE"
FINAL_PHRASE = "YES"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReplaceWorkflow:
    """Replace the whole production collection with a local snapshot.

    Args:
        gateway: Production gateway.
        store: Snapshot store used to write the backup.
        confirmer: Asked for both confirmation phrases.
        backup_dir: Directory the backup file is written to.
        delay: Seconds to wait after every operation.
        sleep: Sleep function, replaced in tests.
        clock: Returns the current UTC time; names the backup file.
    """

    def __init__(
        self,
        gateway: ProjectGateway,
        store: SnapshotStore,
        confirmer: Confirmer,
        *,
        backup_dir: Path,
        delay: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.confirmer = confirmer
        self.backup_dir = Path(backup_dir)
        self.delay = delay
        self._sleep = sleep
        self._clock = clock

    def run(
        self,
        local_snapshot: Snapshot,
        auto_confirm: bool = False,
        *,
        out: Callable[[str], None] = print,
    ) -> ReplaceReport:
        """Run the replace workflow.

        Raises:
            RemoteUnavailableError: If production cannot be fetched.
            BackupError: If the backup cannot be written.
            ReplaceInterruptedError: If the run stops after the first
                mutation.
        """
        started = self._clock()
        production = self.gateway.fetch_all()
        backup_path = self.store.write_backup(production, self.backup_dir, started)

        base = {
            "backup_path": str(backup_path),
            "production_count": len(production.projects),
            "local_count": len(local_snapshot.projects),
            "settings_changed": not values_equal(
                local_snapshot.settings, production.settings
            ),
            "started_at": started.isoformat(),
        }

        out(
            format_replace_plan(
                production,
                local_snapshot,
                backup_path,
                settings_changed=base["settings_changed"],
            )
        )

        if not auto_confirm and not self._confirmed():
            logger.info("Replace cancelled; backup kept at %s", backup_path)
            return ReplaceReport(
                **base, cancelled=True, completed_at=self._clock().isoformat()
            )

        deleted: list[OperationResult] = []
        created: list[OperationResult] = []
        try:
            for record in production.projects:
                deleted.append(
                    self._apply(
                        OperationKind.DELETE,
                        record,
                        lambda r=record: self.gateway.delete(r["id"]),
                    )
                )
                self._sleep(self.delay)
            for record in local_snapshot.projects:
                created.append(
                    self._apply(
                        OperationKind.CREATE,
                        record,
                        lambda r=record: self.gateway.create(r),
                    )
                )
                self._sleep(self.delay)
        except KeyboardInterrupt as exc:
            raise self._interrupted(
                "interrupted by operator", backup_path, deleted, created, base
            ) from exc
        except Exception as exc:
            raise self._interrupted(str(exc), backup_path, deleted, created, base) from exc

        verified_count: int | None = None
        verification_error: str | None = None
        try:
            verified_count = len(self.gateway.fetch_all().projects)
        except TimelineSyncError as exc:
            logger.error("Verification fetch failed: %s", exc)
            verification_error = str(exc)

        if verified_count is not None and verified_count != len(local_snapshot.projects):
            logger.warning(
                "Production has %d projects after replace, expected %d",
                verified_count,
                len(local_snapshot.projects),
            )

        report = ReplaceReport(
            **base,
            deleted=deleted,
            created=created,
            verified_count=verified_count,
            verification_error=verification_error,
            completed_at=self._clock().isoformat(),
        )
        if report.settings_changed:
            logger.warning(report.settings_note)
        return report

    def _confirmed(self) -> bool:
        if not self.confirmer.ask_phrase(
            "This deletes ALL production projects.", REPLACE_PHRASE
        ):
            return False
        return self.confirmer.ask_phrase("Are you absolutely sure?", FINAL_PHRASE)

    @staticmethod
    def _apply(kind: OperationKind, record: dict, call) -> OperationResult:
        return apply_operation(kind, str(record["id"]), record_label(record), call)

    @staticmethod
    def _interrupted(
        cause: str,
        backup_path: Path,
        deleted: list[OperationResult],
        created: list[OperationResult],
        base: dict,
    ) -> ReplaceInterruptedError:
        return ReplaceInterruptedError(
            backup_path,
            cause,
            deleted=sum(1 for r in deleted if r.success),
            created=sum(1 for r in created if r.success),
            production_count=base["production_count"],
            local_count=base["local_count"],
        )
