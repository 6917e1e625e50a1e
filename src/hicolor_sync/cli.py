"""Typer CLI entrypoint for hicolor_sync."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
import yaml

from hicolor_sync.catalog.backends import get_backend
from hicolor_sync.catalog.scan import catalog_counts, scan_catalog
from hicolor_sync.config import AppSettings, load_settings
from hicolor_sync.logging_utils import PACKAGE_LOGGER, configure_logging
from hicolor_sync.pipeline import SyncRunOptions, run_sync
from hicolor_sync.preflight import PreflightError, run_preflight
from hicolor_sync.selection import select_icons

app = typer.Typer(
    add_completion=False,
    help="Synchronize an XDG icon theme into converted icon artifacts.",
    no_args_is_help=True,
)

CONFIG_FILE_OPTION = typer.Option(
    None,
    "--config-file",
    help="Optional settings YAML path.",
    exists=False,
    file_okay=True,
    dir_okay=False,
    readable=True,
)


def _settings_with_overrides(
    config_file: Path | None,
    source: Path | None,
    target: Path | None,
) -> AppSettings:
    settings = load_settings(config_file=config_file)
    updates: dict[str, Path] = {}
    if source is not None:
        updates["source_root"] = source.resolve()
    if target is not None:
        updates["target_root"] = target.resolve()
    if not updates:
        return settings
    return settings.model_copy(update={"paths": settings.paths.model_copy(update=updates)})


@app.command("show-config")
def show_config(config_file: Path | None = CONFIG_FILE_OPTION) -> None:
    """Print the effective configuration after env overrides."""

    settings = load_settings(config_file=config_file)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("scan")
def scan_cmd(
    source: Path | None = typer.Option(None, "--source", "-s", help="Icon theme root to scan."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Scan the theme and report what would be submitted for conversion."""

    settings = _settings_with_overrides(config_file, source, None)
    logger = configure_logging(None, level=logging.WARNING)
    catalog = scan_catalog(
        settings.paths.source_root,
        settings.scan.contexts,
        backend=get_backend(settings.scan.backend, logger=logger),
        logger=logger,
    )
    selection = select_icons(catalog, settings.scan.contexts, logger=logger)
    counts = catalog_counts(catalog)

    typer.echo(f"source_root: {settings.paths.source_root}")
    typer.echo(f"catalog_files: {len(catalog.entries)}")
    typer.echo(f"catalog_icons: {len(catalog.icon_names)}")
    typer.echo(f"files_by_role: {counts['by_role']}")
    typer.echo(f"files_by_format: {counts['by_format']}")
    typer.echo(f"multi_size_icons: {len(selection.multi_size_icons)}")
    typer.echo(f"sizes: {sorted(selection.multi_size)}")
    typer.echo(f"single_size_icons: {len(selection.single_size_icons)}")
    typer.echo(f"single_size_dirs: {[path.as_posix() for path in selection.single_size_order]}")
    typer.echo(f"format_rejected: {selection.format_rejected}")
    typer.echo(f"shadowed: {selection.shadowed}")
    typer.echo(f"unconverted_icons: {len(selection.unconverted_icons)}")


@app.command("sync")
def sync_cmd(
    source: Path | None = typer.Option(None, "--source", "-s", help="Icon theme root to convert."),
    target: Path | None = typer.Option(None, "--target", "-t", help="Directory receiving converted artifacts."),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Scan and select icons without converting or installing.",
    ),
    full: bool = typer.Option(
        False,
        "--full",
        help="Reinstall every converted artifact, ignoring recorded digests.",
    ),
    jobs: int | None = typer.Option(
        None,
        "--jobs",
        min=1,
        help="Worker threads for staging, hashing and converter sub-batches.",
    ),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Run one incremental sync of the icon theme into the target directory."""

    settings = _settings_with_overrides(config_file, source, target)
    try:
        run_preflight(settings)
        logger = configure_logging(settings.paths.log_file)
    except (PreflightError, OSError) as exc:
        logging.getLogger(PACKAGE_LOGGER).error("sync.preflight_failed error=%s", exc)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    try:
        result = run_sync(settings, options=SyncRunOptions(dry_run=dry_run, full=full, jobs=jobs), logger=logger)
    except PreflightError as exc:
        logger.error("sync.preflight_failed error=%s", exc)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    counts = result.counts
    typer.echo(f"run_id: {result.run_id}")
    typer.echo(f"found: {counts['found']}")
    typer.echo(f"installed: {counts['installed']}")
    typer.echo(f"skipped: {counts['skipped']}")
    typer.echo(f"retracked: {counts['retracked']}")
    typer.echo(f"failed: {counts['failed']}")
    typer.echo(f"removed: {counts['removed']}")
    if result.summary_path is not None:
        typer.echo(f"summary_path: {result.summary_path}")


def main() -> None:
    """CLI script entrypoint."""

    app()


if __name__ == "__main__":
    main()
