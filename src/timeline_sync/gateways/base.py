"""Storage capability shared by the remote API and the local database.

Business logic only ever sees a ``ProjectGateway``; which backing store
sits behind it is decided once, when ``create_gateway()`` builds it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from timeline_sync.config import Config
    from timeline_sync.sync.models import Record, Snapshot


class ProjectGateway(Protocol):
    """Fetch-all plus single-record create/update/delete.

    Mutating methods raise on failure (``ApiError`` for a rejected remote
    call, ``sqlite3.Error`` locally); callers decide whether a failure is
    fatal.  There is intentionally no settings mutation.
    """

    name: str

    def fetch_all(self) -> Snapshot:
        """Return the complete collection or raise; never partial data."""
        ...  # pragma: no cover

    def create(self, record: Record) -> None:
        ...  # pragma: no cover

    def update(self, record_id: Any, record: Record) -> None:
        """Replace the whole record stored under *record_id*."""
        ...  # pragma: no cover

    def delete(self, record_id: Any) -> None:
        """Delete *record_id*; an unknown id is accepted as success."""
        ...  # pragma: no cover


def create_gateway(config: Config, kind: str) -> ProjectGateway:
    """Build the gateway for *kind*.

    Args:
        config: Validated runtime configuration.
        kind: ``"remote"`` (production HTTP API) or ``"local"`` (the
            development SQLite database).

    Raises:
        ValueError: If *kind* is not recognised.
    """
    if kind == "remote":
        from timeline_sync.core.client import ProjectApiClient
        from timeline_sync.gateways.remote import HttpProjectGateway

        return HttpProjectGateway(ProjectApiClient(config))
    if kind == "local":
        from timeline_sync.gateways.local import SqliteProjectGateway

        return SqliteProjectGateway(config.local_db)
    raise ValueError(
        f"Unknown gateway kind: '{kind}'. Valid kinds: ['local', 'remote']"
    )
