"""Tests for timeline_sync.gateways.local -- the SQLite gateway."""

import json
import sqlite3

import pytest

from timeline_sync.config import Config
from timeline_sync.errors import PreconditionError, SnapshotError
from timeline_sync.gateways import (
    HttpProjectGateway,
    SqliteProjectGateway,
    create_gateway,
)


@pytest.fixture
def gateway(tmp_path):
    gw = SqliteProjectGateway(tmp_path / "timeline.db")
    gw.initialize()
    return gw


def _insert_settings(gateway, **values):
    row = {
        "start_year": 2015,
        "end_year": 2030,
        "color_map": json.dumps({"design": "#123"}),
        "project_type_colors": json.dumps({"retail": "#456"}),
    }
    row.update(values)
    with sqlite3.connect(gateway.db_path) as conn:
        conn.execute(
            "INSERT INTO settings (start_year, end_year, color_map, project_type_colors) "
            "VALUES (?, ?, ?, ?)",
            (row["start_year"], row["end_year"], row["color_map"], row["project_type_colors"]),
        )
    conn.close()


class TestFetchAll:
    """Reading the local database into a snapshot."""

    def test_missing_database(self, tmp_path):
        with pytest.raises(PreconditionError, match="not found"):
            SqliteProjectGateway(tmp_path / "absent.db").fetch_all()

    def test_empty_database_defaults(self, gateway):
        snapshot = gateway.fetch_all()
        assert snapshot.projects == []
        assert snapshot.settings == {
            "startYear": 2011,
            "endYear": 2026,
            "colorMap": {},
            "projectTypeColors": {},
        }

    def test_settings_row(self, gateway):
        _insert_settings(gateway)
        assert gateway.fetch_all().settings == {
            "startYear": 2015,
            "endYear": 2030,
            "colorMap": {"design": "#123"},
            "projectTypeColors": {"retail": "#456"},
        }

    def test_ordered_by_number(self, gateway, make_project):
        gateway.create(make_project("b", number=2))
        gateway.create(make_project("a", number=1))
        gateway.create(make_project("c", number=3))
        assert gateway.fetch_all().project_ids == ["a", "b", "c"]

    def test_corrupt_json_column(self, gateway, make_project):
        gateway.create(make_project("1"))
        with sqlite3.connect(gateway.db_path) as conn:
            conn.execute("UPDATE projects SET stages='{broken' WHERE id='1'")
        conn.close()
        with pytest.raises(SnapshotError, match="invalid stored data"):
            gateway.fetch_all()

    def test_missing_tables(self, tmp_path):
        path = tmp_path / "empty.db"
        sqlite3.connect(path).close()
        with pytest.raises(PreconditionError, match="Failed to read"):
            SqliteProjectGateway(path).fetch_all()


class TestWrites:
    """create/update/delete mirror the API's column mapping."""

    def test_create_round_trip(self, gateway, make_project):
        record = make_project(
            "p1",
            "Riverside",
            number=4,
            practiceName="Studio",
            pauses=[{"start": "2021-01", "end": "2021-03"}],
        )
        gateway.create(record)
        assert gateway.fetch_all().projects == [record]

    def test_create_applies_defaults(self, gateway):
        gateway.create({"id": "p1", "number": 1, "name": "Bare"})
        stored = gateway.fetch_all().projects[0]
        assert stored["typeColor"] == "#5a8a99"
        assert stored["projectTypes"] == []
        assert stored["stages"] == {}
        assert stored["client"] == ""
        assert stored["practiceName"] is None

    def test_create_without_number_appends(self, gateway, make_project):
        gateway.create(make_project("a", number=7))
        gateway.create({"id": "b", "name": "Next"})
        numbers = {p["id"]: p["number"] for p in gateway.fetch_all().projects}
        assert numbers == {"a": 7, "b": 8}

    def test_create_duplicate_raises(self, gateway, make_project):
        gateway.create(make_project("a"))
        with pytest.raises(sqlite3.IntegrityError):
            gateway.create(make_project("a"))

    def test_create_invalid_record(self, gateway):
        with pytest.raises(ValueError, match="missing 'id'"):
            gateway.create({"name": "no id"})

    def test_update(self, gateway, make_project):
        gateway.create(make_project("a", "Old"))
        gateway.update("a", make_project("a", "New", notes="n"))
        stored = gateway.fetch_all().projects[0]
        assert stored["name"] == "New"
        assert stored["notes"] == "n"

    def test_update_unknown_id_is_noop(self, gateway, caplog, make_project):
        gateway.update("ghost", make_project("ghost"))
        assert gateway.fetch_all().projects == []
        assert "matched no local project" in caplog.text

    def test_delete(self, gateway, make_project):
        gateway.create(make_project("a"))
        gateway.create(make_project("b", number=2))
        gateway.delete("a")
        gateway.delete("unknown")
        assert gateway.fetch_all().project_ids == ["b"]


class TestCreateGateway:
    """Gateway selection at construction time."""

    def test_remote(self):
        gateway = create_gateway(Config(api_url="https://x.example.com"), "remote")
        assert isinstance(gateway, HttpProjectGateway)
        assert gateway.client.base_url == "https://x.example.com"

    def test_local(self, tmp_path):
        gateway = create_gateway(Config(local_db=str(tmp_path / "t.db")), "local")
        assert isinstance(gateway, SqliteProjectGateway)
        assert gateway.db_path == tmp_path / "t.db"

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown gateway kind"):
            create_gateway(Config(), "ftp")
