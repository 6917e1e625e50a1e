"""Tests for the external converter subprocess contract."""

from __future__ import annotations

from pathlib import Path

import pytest

from hicolor_sync.converter import (
    ConverterInvocation,
    converter_problem,
    reset_output_dir,
    run_converter,
)


def _source_tree(tmp_path: Path) -> Path:
    source = tmp_path / "stage" / "scalable" / "apps"
    source.mkdir(parents=True)
    (source / "bar.svg").write_text("<svg/>", encoding="utf-8")
    return source


def test_invocation_argv(tmp_path: Path) -> None:
    invocation = ConverterInvocation(
        tool_path=Path("/opt/tool"),
        source_dir=tmp_path / "in",
        output_dir=tmp_path / "out",
    )

    assert invocation.argv() == ["/opt/tool", str(tmp_path / "in"), "-o", str(tmp_path / "out"), "-O", "3=95"]


def test_run_converter_success(tmp_path: Path, fake_converter: Path) -> None:
    source = _source_tree(tmp_path)
    output = tmp_path / "out"

    result = run_converter(ConverterInvocation(tool_path=fake_converter, source_dir=source, output_dir=output))

    assert result.ok
    assert result.returncode == 0
    assert (output / "bar.dci").read_bytes().startswith(b"DCI 3=95\n")


def test_run_converter_failure_captures_stderr(
    tmp_path: Path, fake_converter: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("FAKE_CONVERTER_FAIL", "all")
    source = _source_tree(tmp_path)

    result = run_converter(
        ConverterInvocation(tool_path=fake_converter, source_dir=source, output_dir=tmp_path / "out")
    )

    assert not result.ok
    assert result.returncode == 3
    assert "conversion exploded" in result.stderr


def test_run_converter_timeout_is_a_failed_result(
    tmp_path: Path, fake_converter: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("FAKE_CONVERTER_SLEEP", "10")
    source = _source_tree(tmp_path)

    result = run_converter(
        ConverterInvocation(
            tool_path=fake_converter,
            source_dir=source,
            output_dir=tmp_path / "out",
            timeout_sec=0.5,
        )
    )

    assert result.timed_out
    assert not result.ok


def test_run_converter_missing_tool(tmp_path: Path) -> None:
    result = run_converter(
        ConverterInvocation(tool_path=tmp_path / "nope", source_dir=tmp_path, output_dir=tmp_path / "out")
    )

    assert not result.ok
    assert result.returncode is None


def test_converter_problem(tmp_path: Path, fake_converter: Path) -> None:
    not_executable = tmp_path / "plain"
    not_executable.write_text("", encoding="utf-8")
    not_executable.chmod(0o644)

    assert converter_problem(fake_converter) is None
    assert "not found" in (converter_problem(tmp_path / "missing") or "")
    assert "not executable" in (converter_problem(not_executable) or "")
    assert "absolute" in (converter_problem(Path("relative/tool")) or "")


def test_reset_output_dir_removes_stale_output(tmp_path: Path) -> None:
    stale = tmp_path / "out" / "nested"
    stale.mkdir(parents=True)
    (stale / "old.dci").write_text("stale", encoding="utf-8")

    reset_output_dir(tmp_path / "out")

    assert not (tmp_path / "out").exists()
    assert tmp_path.is_dir()
