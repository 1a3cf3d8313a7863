"""Gateway over the production REST API."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from timeline_sync.core.client import ProjectApiClient
from timeline_sync.errors import ApiError, RemoteUnavailableError
from timeline_sync.sync.models import Record, Snapshot
from timeline_sync.validators import validate_record

logger = logging.getLogger(__name__)


class HttpProjectGateway:
    """``ProjectGateway`` backed by ``ProjectApiClient``.

    Args:
        client: Configured API client.
    """

    name = "production"

    def __init__(self, client: ProjectApiClient) -> None:
        self.client = client

    def fetch_all(self) -> Snapshot:
        data = self.client.get_data()
        projects = data.get("projects")
        if not isinstance(projects, list):
            raise RemoteUnavailableError(
                "Production data has no 'projects' list; refusing partial data"
            )
        try:
            snapshot = Snapshot(projects=projects, settings=data.get("settings") or {})
        except ValidationError as exc:
            raise RemoteUnavailableError(f"Production data is invalid: {exc}") from exc
        logger.debug("Fetched %d projects from %s", len(snapshot.projects), self.client.base_url)
        return snapshot

    def create(self, record: Record) -> None:
        self._check(record)
        self.client.create_project(record)

    def update(self, record_id: Any, record: Record) -> None:
        self._check(record)
        self.client.update_project(record_id, record)

    def delete(self, record_id: Any) -> None:
        self.client.delete_project(record_id)

    @staticmethod
    def _check(record: Record) -> None:
        is_valid, reason = validate_record(record)
        if not is_valid:
            raise ApiError(reason)
