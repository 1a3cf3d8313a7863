"""Tests for file_handler module: encoding-aware reads, atomic and write-once writes."""

import pytest

from timeline_sync.file_handler import (
    read_file_with_encoding,
    write_file_atomic,
    write_new_file,
)

# =============================================================================
# read_file_with_encoding
# =============================================================================


TEXT = '{"name": "Café Ürban", "location": "Zürich", "notes": "Überdachung, Fassade, Straße"}'


class TestReadFileWithEncoding:
    """Tests for read_file_with_encoding(path)."""

    def test_utf8_file(self, tmp_path):
        f = tmp_path / "data.json"
        f.write_text(TEXT, encoding="utf-8")
        content, encoding = read_file_with_encoding(f)
        assert content == TEXT
        assert encoding.replace("_", "-").lower() == "utf-8"

    def test_ascii_reported_as_utf8(self, tmp_path):
        f = tmp_path / "plain.json"
        f.write_bytes(b'{"projects": []}')
        _, encoding = read_file_with_encoding(f)
        assert encoding.replace("_", "-").lower() == "utf-8"

    def test_empty_file(self, tmp_path):
        f = tmp_path / "empty.json"
        f.write_bytes(b"")
        assert read_file_with_encoding(f) == ("", "utf-8")

    def test_bom_stripped(self, tmp_path):
        f = tmp_path / "bom.json"
        f.write_bytes(b"\xef\xbb\xbf" + '{"a": "ok"}'.encode("utf-8"))
        content, _ = read_file_with_encoding(f)
        assert content == '{"a": "ok"}'


# =============================================================================
# write_file_atomic / write_new_file
# =============================================================================


class TestWriteFileAtomic:
    """Tests for write_file_atomic(path, content)."""

    def test_creates_parents_and_returns_size(self, tmp_path):
        f = tmp_path / "a" / "b" / "out.json"
        size = write_file_atomic(f, "héllo")
        assert f.read_text(encoding="utf-8") == "héllo"
        assert size == len("héllo".encode("utf-8"))

    def test_replaces_existing(self, tmp_path):
        f = tmp_path / "out.json"
        f.write_text("old", encoding="utf-8")
        write_file_atomic(f, "new")
        assert f.read_text(encoding="utf-8") == "new"

    def test_no_temp_files_left(self, tmp_path):
        write_file_atomic(tmp_path / "out.json", "x")
        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]


class TestWriteNewFile:
    """Tests for write_new_file(path, content)."""

    def test_creates_file(self, tmp_path):
        f = tmp_path / "backups" / "b.json"
        assert write_new_file(f, "{}") == 2
        assert f.read_text(encoding="utf-8") == "{}"

    def test_refuses_existing(self, tmp_path):
        f = tmp_path / "b.json"
        f.write_text("original", encoding="utf-8")
        with pytest.raises(FileExistsError):
            write_new_file(f, "replacement")
        assert f.read_text(encoding="utf-8") == "original"
