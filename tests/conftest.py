"""Shared pytest fixtures for timeline-sync tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from timeline_sync.config import Config
from timeline_sync.errors import ApiError
from timeline_sync.sync.confirm import is_affirmative, matches_phrase
from timeline_sync.sync.models import Snapshot


def _build_project(record_id: str, name: str | None = None, **fields: Any) -> dict:
    """Build a project record in API shape."""
    project = {
        "id": record_id,
        "number": fields.pop("number", 1),
        "name": name or f"Project {record_id}",
        "practiceName": None,
        "briefDescription": None,
        "client": "",
        "value": "",
        "area": "",
        "location": "",
        "projectTypes": ["residential"],
        "typeColor": "#5a8a99",
        "thumbnail": "",
        "notes": "",
        "stages": {"design": {"start": "2020-01", "end": "2020-06"}},
        "pauses": [],
    }
    project.update(fields)
    return project


DEFAULT_SETTINGS = {
    "startYear": 2011,
    "endYear": 2026,
    "colorMap": {"design": "#aaa"},
    "projectTypeColors": {},
}


class FakeGateway:
    """In-memory ``ProjectGateway`` that records every call.

    Args:
        snapshot: Initial contents.
        fail_ids: Record ids whose create/update/delete raise ``ApiError``.
        fetch_error: Exception raised by ``fetch_all`` (every call), or a
            list of outcomes consumed one per call (``None`` means fetch
            normally).
    """

    name = "production"

    def __init__(
        self,
        snapshot: Snapshot | None = None,
        fail_ids: set[str] | None = None,
        fetch_error: Exception | list | None = None,
    ) -> None:
        snapshot = snapshot or Snapshot()
        self.records: dict[str, dict] = {str(p["id"]): p for p in snapshot.projects}
        self.settings = dict(snapshot.settings)
        self.fail_ids = fail_ids or set()
        self.fetch_error = fetch_error
        self.calls: list[tuple[str, str]] = []
        self.fetch_count = 0

    def fetch_all(self) -> Snapshot:
        self.fetch_count += 1
        error = self.fetch_error
        if isinstance(error, list):
            error = error.pop(0) if error else None
        if error is not None:
            raise error
        return Snapshot(projects=list(self.records.values()), settings=self.settings)

    def _maybe_fail(self, record_id: str) -> None:
        if record_id in self.fail_ids:
            raise ApiError("boom", status_code=500)

    def create(self, record: dict) -> None:
        record_id = str(record["id"])
        self.calls.append(("create", record_id))
        self._maybe_fail(record_id)
        self.records[record_id] = record

    def update(self, record_id: Any, record: dict) -> None:
        self.calls.append(("update", str(record_id)))
        self._maybe_fail(str(record_id))
        self.records[str(record_id)] = record

    def delete(self, record_id: Any) -> None:
        self.calls.append(("delete", str(record_id)))
        self._maybe_fail(str(record_id))
        self.records.pop(str(record_id), None)


class ScriptedConfirmer:
    """Confirmer that replays prepared answers and records the prompts.

    Args:
        answers: Raw answers, consumed in order.  ``ask_yes_no`` treats
            them with the console rules, ``ask_phrase`` compares exactly.
    """

    def __init__(self, *answers: str) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    def _next(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answers.pop(0) if self.answers else ""

    def ask_yes_no(self, prompt: str) -> bool:
        return is_affirmative(self._next(prompt))

    def ask_phrase(self, prompt: str, phrase: str) -> bool:
        return matches_phrase(self._next(prompt), phrase)


@pytest.fixture
def sample_project():
    """A single project record in API shape."""
    return _build_project("p1", "Riverside House")


@pytest.fixture
def make_snapshot():
    """Factory fixture: ``make_snapshot(*projects, settings=...)``."""

    def _make(*projects: dict, settings: dict | None = None) -> Snapshot:
        return Snapshot(
            projects=list(projects),
            settings=DEFAULT_SETTINGS if settings is None else settings,
        )

    return _make


@pytest.fixture
def config(tmp_path):
    """A validated-looking Config pointing at temporary files."""
    return Config(
        api_url="https://timeline.example.com/api",
        local_db=str(tmp_path / "timeline.db"),
        local_data_file=str(tmp_path / "local-data.json"),
        download_file=str(tmp_path / "backup-data.json"),
        backup_dir=str(tmp_path / "backups"),
        request_delay=0.0,
    )


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays."""
    delays: list[float] = []

    def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep


@pytest.fixture
def make_project():
    """Factory fixture: ``make_project(record_id, name=None, **fields)``."""
    return _build_project


@pytest.fixture
def default_settings():
    """A fresh copy of the default settings document."""
    return copy.deepcopy(DEFAULT_SETTINGS)


@pytest.fixture
def fake_gateway():
    """Factory fixture building a recording ``FakeGateway``."""
    return FakeGateway


@pytest.fixture
def scripted_confirmer():
    """Factory fixture: ``scripted_confirmer(*answers)``."""
    return ScriptedConfirmer
