"""Subprocess contract with the external icon converter."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from hicolor_sync.config import ConverterConfig
from hicolor_sync.utils.paths import remove_tree

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConverterInvocation:
    """One converter call: ``<tool> <source> <output_flag> <output> <option_flag> <option>``."""

    tool_path: Path
    source_dir: Path
    output_dir: Path
    output_flag: str = "-o"
    option_flag: str = "-O"
    compression_option: str = "3=95"
    timeout_sec: float = 60.0

    @classmethod
    def from_config(
        cls,
        config: ConverterConfig,
        *,
        source_dir: Path,
        output_dir: Path,
        timeout_sec: float,
    ) -> "ConverterInvocation":
        return cls(
            tool_path=config.tool_path,
            source_dir=source_dir,
            output_dir=output_dir,
            output_flag=config.output_flag,
            option_flag=config.option_flag,
            compression_option=config.compression_option,
            timeout_sec=timeout_sec,
        )

    def argv(self) -> list[str]:
        return [
            str(self.tool_path),
            str(self.source_dir),
            self.output_flag,
            str(self.output_dir),
            self.option_flag,
            self.compression_option,
        ]


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Outcome of a converter call; failures are values, not exceptions."""

    returncode: int | None
    stderr: str = ""
    timed_out: bool = False
    elapsed_sec: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def converter_problem(tool_path: Path) -> str | None:
    """Describe why ``tool_path`` cannot be executed, or ``None`` when usable."""

    if not tool_path.is_absolute():
        return f"converter path must be absolute: {tool_path}"
    if not tool_path.exists():
        return f"converter not found: {tool_path}"
    if not tool_path.is_file() or not os.access(tool_path, os.X_OK):
        return f"converter not executable: {tool_path}"
    return None


def reset_output_dir(output_dir: Path, logger: logging.Logger | None = None) -> None:
    """Remove stale output so the converter always creates ``output_dir`` itself."""

    effective_logger = logger or LOGGER
    if remove_tree(output_dir):
        effective_logger.info("converter.stale_output_removed path=%s", output_dir)
    output_dir.parent.mkdir(parents=True, exist_ok=True)


def run_converter(invocation: ConverterInvocation, logger: logging.Logger | None = None) -> ConversionResult:
    """Run the converter synchronously with a bounded wait."""

    effective_logger = logger or LOGGER
    started = time.monotonic()
    try:
        completed = subprocess.run(
            invocation.argv(),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            timeout=invocation.timeout_sec,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        stderr = exc.stderr.decode("utf-8", "replace") if isinstance(exc.stderr, bytes) else (exc.stderr or "")
        effective_logger.warning(
            "converter.timeout source=%s timeout_sec=%s", invocation.source_dir, invocation.timeout_sec
        )
        return ConversionResult(
            returncode=None,
            stderr=stderr,
            timed_out=True,
            elapsed_sec=time.monotonic() - started,
        )
    except OSError as exc:
        effective_logger.warning("converter.launch_failed tool=%s error=%s", invocation.tool_path, exc)
        return ConversionResult(returncode=None, stderr=str(exc), elapsed_sec=time.monotonic() - started)

    result = ConversionResult(
        returncode=completed.returncode,
        stderr=completed.stderr or "",
        elapsed_sec=time.monotonic() - started,
    )
    effective_logger.debug(
        "converter.finished source=%s returncode=%s elapsed_sec=%.2f",
        invocation.source_dir,
        result.returncode,
        result.elapsed_sec,
    )
    return result
