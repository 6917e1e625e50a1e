"""Shared pytest fixtures: theme trees, a fake converter executable and settings."""

from __future__ import annotations

import stat
import sys
from pathlib import Path
from typing import Callable

import pytest

from hicolor_sync.config import AppSettings, ConverterConfig, ExecutionConfig, PathsConfig, ScanConfig

FAKE_CONVERTER_SOURCE = '''#!{python}
"""Stand-in for the icon converter: one <name>.dci per distinct icon name."""
import os
import sys
import time
from pathlib import Path

args = sys.argv[1:]
source = Path(args[0])
output = Path(args[args.index("-o") + 1])
option = args[args.index("-O") + 1]

sleep_for = os.environ.get("FAKE_CONVERTER_SLEEP")
if sleep_for:
    time.sleep(float(sleep_for))

fail_match = os.environ.get("FAKE_CONVERTER_FAIL")
if fail_match and (fail_match == "all" or fail_match in source.as_posix()):
    sys.stderr.write("conversion exploded for " + source.as_posix() + "\\n")
    sys.exit(3)

if output.exists():
    sys.stderr.write("output directory already exists\\n")
    sys.exit(4)

groups = {{}}
for path in sorted(source.rglob("*")):
    if path.is_file() and path.suffix in (".svg", ".png"):
        groups.setdefault(path.stem, []).append(path)

output.mkdir(parents=True)
for name, paths in groups.items():
    payload = b"DCI " + option.encode() + b"\\n"
    for path in paths:
        payload += path.relative_to(source).as_posix().encode() + b"\\n" + path.read_bytes() + b"\\n"
    (output / (name + ".dci")).write_bytes(payload)
'''


@pytest.fixture(autouse=True)
def _isolated_settings_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the repository's configs/settings.yaml out of test settings."""

    monkeypatch.setenv("HICOLOR_SYNC_SETTINGS_FILE", str(tmp_path / "no-settings.yaml"))
    monkeypatch.delenv("FAKE_CONVERTER_FAIL", raising=False)
    monkeypatch.delenv("FAKE_CONVERTER_SLEEP", raising=False)


@pytest.fixture
def theme_root(tmp_path: Path) -> Path:
    root = tmp_path / "hicolor"
    root.mkdir()
    return root


@pytest.fixture
def add_icon(theme_root: Path) -> Callable[..., Path]:
    """Create ``<theme_root>/<relative>`` with the given content."""

    def _add(relative: str, content: str | None = None) -> Path:
        path = theme_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content if content is not None else f"<icon {relative}>", encoding="utf-8")
        return path

    return _add


@pytest.fixture
def fake_converter(tmp_path: Path) -> Path:
    tool = tmp_path / "bin" / "dci-icon-theme"
    tool.parent.mkdir(parents=True)
    tool.write_text(FAKE_CONVERTER_SOURCE.format(python=sys.executable), encoding="utf-8")
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return tool


@pytest.fixture
def settings(tmp_path: Path, theme_root: Path, fake_converter: Path) -> AppSettings:
    return AppSettings(
        paths=PathsConfig(
            source_root=theme_root,
            target_root=tmp_path / "target",
            record_file=tmp_path / "state" / "records",
            log_file=tmp_path / "logs" / "sync.log",
            artifacts_root=tmp_path / "artifacts",
            scratch_root=tmp_path / "scratch",
        ),
        converter=ConverterConfig(tool_path=fake_converter, single_size_timeout_sec=30, multi_size_timeout_sec=30),
        scan=ScanConfig(contexts=["apps"]),
        execution=ExecutionConfig(jobs=2),
    )
