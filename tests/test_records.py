"""Tests for the persisted record cache."""

from __future__ import annotations

import hashlib
from pathlib import Path

from hicolor_sync.records import RecordCache, file_digest, parse_record_line, render_records


def test_load_missing_file_is_empty(tmp_path: Path) -> None:
    records = RecordCache.load(tmp_path / "missing")

    assert len(records) == 0
    assert not records.modified


def test_load_unreadable_file_is_empty(tmp_path: Path) -> None:
    path = tmp_path / "records"
    path.write_bytes(b"\xff\xfe\x00garbage")

    assert len(RecordCache.load(path)) == 0


def test_load_skips_malformed_lines(tmp_path: Path) -> None:
    path = tmp_path / "records"
    path.write_text("foo|abc\nno-separator\n|missingname\nbar|def|extra\n\nbaz|\n", encoding="utf-8")

    records = RecordCache.load(path)

    assert records.as_dict() == {"foo": "abc", "bar": "def"}


def test_parse_record_line() -> None:
    assert parse_record_line("icon|0123\n") == ("icon", "0123")
    assert parse_record_line("icon") is None


def test_flush_skips_when_unchanged(tmp_path: Path) -> None:
    path = tmp_path / "records"
    records = RecordCache(path, records={"foo": "abc"})

    assert records.flush() is False
    assert not path.exists()


def test_flush_writes_sorted_full_file(tmp_path: Path) -> None:
    path = tmp_path / "state" / "records"
    records = RecordCache(path)
    records.set("zeta", "01")
    records.set("alpha", "02")

    assert records.flush() is True
    assert path.read_text(encoding="utf-8") == "alpha|02\nzeta|01\n"
    assert not records.modified
    assert list(path.parent.iterdir()) == [path]


def test_set_same_digest_does_not_mark_modified() -> None:
    records = RecordCache(Path("unused"), records={"foo": "abc"})

    records.set("foo", "abc")
    assert not records.modified
    assert records.drop("missing") is False
    assert not records.modified
    assert records.drop("foo") is True
    assert records.modified


def test_render_roundtrip_is_stable(tmp_path: Path) -> None:
    path = tmp_path / "records"
    path.write_text(render_records({"b": "2", "a": "1"}), encoding="utf-8")

    records = RecordCache.load(path)

    assert render_records(records.as_dict()) == path.read_text(encoding="utf-8")


def test_file_digest(tmp_path: Path) -> None:
    path = tmp_path / "artifact.dci"
    path.write_bytes(b"content")

    assert file_digest(path) == hashlib.md5(b"content").hexdigest()
    assert file_digest(tmp_path / "missing") is None
