"""Configuration models and loading logic."""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from hicolor_sync.utils.paths import artifact_target

DEFAULT_SETTINGS_FILE = Path("configs/settings.yaml")
SETTINGS_FILE_ENV = "HICOLOR_SYNC_SETTINGS_FILE"


class ProjectConfig(BaseModel):
    """Project metadata settings."""

    name: str = "hicolor_sync"
    env: str = "dev"


class PathsConfig(BaseModel):
    """Filesystem locations read and written by a sync run."""

    source_root: Path = Path("/usr/share/icons/hicolor")
    target_root: Path = Path("/usr/share/dsg/icons/convert")
    record_file: Path = Path("/var/lib/deepin-desktop-theme/xdgicon2dci-record")
    log_file: Path = Path("/var/log/xdgicon2dci.log")
    artifacts_root: Path = Path("./artifacts")
    scratch_root: Path | None = None

    def resolved(self, project_root: Path) -> "PathsConfig":
        """Return a copy with project-relative paths resolved to absolute paths."""

        updates: dict[str, Path] = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            if value is None:
                continue
            updates[field_name] = value if value.is_absolute() else (project_root / value).resolve()
        return self.model_copy(update=updates)


class ConverterConfig(BaseModel):
    """External converter command contract."""

    tool_path: Path = Path("/usr/libexec/dtk6/DGui/bin/dci-icon-theme")
    output_flag: str = "-o"
    option_flag: str = "-O"
    compression_option: str = "3=95"
    artifact_extension: str = "dci"
    multi_size_timeout_sec: float = Field(default=180.0, gt=0.0)
    single_size_timeout_sec: float = Field(default=60.0, gt=0.0)


class ScanConfig(BaseModel):
    """Theme scanning behavior."""

    contexts: list[str] = Field(default_factory=lambda: ["apps"], min_length=1)
    backend: Literal["walk", "index_theme"] = "walk"


class ExecutionConfig(BaseModel):
    """Worker pool sizing for staging, hashing and converter sub-batches."""

    jobs: int = Field(default_factory=lambda: min(8, os.cpu_count() or 1), ge=1)


class AppSettings(BaseSettings):
    """Top-level application settings."""

    _yaml_file_override: ClassVar[Path | None] = None

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    converter: ConverterConfig = Field(default_factory=ConverterConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)

    model_config = SettingsConfigDict(
        env_prefix="HICOLOR_SYNC_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Use YAML defaults while allowing env vars to override values."""

        yaml_file = resolve_settings_file(cls._yaml_file_override)
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def as_dict(self) -> dict[str, object]:
        """Return settings as a standard nested dictionary."""

        return self.model_dump(mode="json")

    @property
    def artifact_suffix(self) -> str:
        return "." + self.converter.artifact_extension.lstrip(".")

    def artifact_path(self, icon_name: str) -> Path:
        """Return the installed artifact location for an icon name."""

        return artifact_target(self.paths.target_root, icon_name, self.artifact_suffix)


def find_project_root(start: Path | None = None) -> Path:
    """Locate the project root by traversing upward for config markers."""

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / "configs/settings.yaml").exists():
            return candidate
    return current


def resolve_settings_file(override: Path | None = None) -> Path:
    """Resolve settings file from explicit override, env var, or default."""

    chosen = override
    if chosen is None:
        env_value = os.getenv(SETTINGS_FILE_ENV)
        if env_value:
            chosen = Path(env_value)
    if chosen is None:
        chosen = DEFAULT_SETTINGS_FILE

    if not chosen.is_absolute():
        chosen = (find_project_root() / chosen).resolve()
    return chosen


def load_settings(config_file: Path | None = None) -> AppSettings:
    """Load settings with YAML defaults and environment variable overrides."""

    settings_file = resolve_settings_file(config_file)
    project_root = settings_file.parent.parent.resolve()
    AppSettings._yaml_file_override = settings_file
    try:
        settings = AppSettings()
    finally:
        AppSettings._yaml_file_override = None
    resolved_paths = settings.paths.resolved(project_root=project_root)
    return settings.model_copy(update={"paths": resolved_paths})
