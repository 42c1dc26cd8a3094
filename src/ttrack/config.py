"""Configuration management for ttrack."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Mapping

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

OPTION_LINE = re.compile(r'^(?P<name>[A-Za-z_]+)="(?P<value>.*)"$')

OPTION_NAMES: tuple[str, ...] = (
    "refresh_time",
    "format_duration",
    "format_time",
    "format_date",
    "format_entry",
    "format_total",
)


class TrackerSettings(BaseSettings):
    """Process-wide settings sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    log_level: str = Field(default="WARNING", validation_alias="TT_LOG_LEVEL")
    cascade_defaults: bool = Field(default=False, validation_alias="TT_CASCADE_DEFAULTS")
    defaults_filename: str = Field(default=".tt-defaults", validation_alias="TT_DEFAULTS_FILENAME")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError("TT_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG")
        return normalized

    @field_validator("defaults_filename")
    @classmethod
    def _validate_defaults_filename(cls, value: str) -> str:
        name = value.strip()
        if not name or "/" in name or "\\" in name:
            raise ValueError("TT_DEFAULTS_FILENAME must be a bare file name")
        return name


@lru_cache(maxsize=1)
def get_settings() -> TrackerSettings:
    """Return cached settings instance."""

    return TrackerSettings()


class Options(BaseModel):
    """The six recognized per-file options, kept as the raw strings found on disk."""

    refresh_time: str = Field(default="0.2", description="Seconds between live redraws.")
    format_duration: str = Field(default="%H:%M:%S", description="Elapsed time pattern.")
    format_time: str = Field(default="%H:%M:%S", description="Wall-clock time pattern.")
    format_date: str = Field(default="%a %b %d %Y", description="Wall-clock date pattern.")
    format_entry: str = Field(
        default="  %{duration} | %{last_date} | %{last_time} - %{curr_time}",
        description="Template rendered for every entry line.",
    )
    format_total: str = Field(default="total: %H:%M:%S", description="Pattern for printed totals.")

    @field_validator("refresh_time")
    @classmethod
    def _validate_refresh_time(cls, value: str) -> str:
        try:
            seconds = float(value)
        except ValueError as exc:
            raise ValueError(f"refresh_time must be a number of seconds, got {value!r}") from exc
        if seconds < 0:
            raise ValueError("refresh_time must be >= 0")
        return value

    @property
    def refresh_seconds(self) -> float:
        return float(self.refresh_time)

    def as_mapping(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in OPTION_NAMES}


def parse_option_line(line: str) -> tuple[str, str] | None:
    """Return ``(name, value)`` for a ``name="value"`` line, otherwise ``None``."""

    match = OPTION_LINE.match(line)
    if match is None:
        return None
    return match.group("name"), match.group("value")


def resolve(
    defaults: Mapping[str, str],
    directory_chain: Iterable[Mapping[str, str]],
    file_overrides: Mapping[str, str],
) -> Options:
    """Layer option tiers into a validated :class:`Options`.

    Later tiers override earlier ones key by key. Keys outside the recognized
    set are ignored here; the file store keeps them for round-trip.
    """

    merged: dict[str, str] = {}
    for tier in (defaults, *directory_chain, file_overrides):
        merged.update({key: value for key, value in tier.items() if key in OPTION_NAMES})
    return Options.model_validate(merged)


def read_defaults_file(path: Path) -> dict[str, str]:
    """Parse a directory defaults file using the tracked-file header syntax."""

    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        parsed = parse_option_line(line)
        if parsed is not None:
            values[parsed[0]] = parsed[1]
    return values


def directory_defaults_chain(path: Path, filename: str) -> list[dict[str, str]]:
    """Collect defaults files from the filesystem root down to ``path``'s directory.

    ``path`` may be a tracked file or a directory; for a directory its own
    defaults file is the last (most specific) tier.
    """

    target = Path(path).expanduser().absolute()
    start = target if target.is_dir() else target.parent
    directories = [*reversed(start.parents), start]
    chain: list[dict[str, str]] = []
    for directory in directories:
        candidate = directory / filename
        if candidate.is_file():
            chain.append(read_defaults_file(candidate))
    return chain


def options_for(
    path: Path,
    file_overrides: Mapping[str, str] | None = None,
    settings: TrackerSettings | None = None,
) -> Options:
    """Resolve the options that apply to ``path`` under the current settings."""

    settings = settings or get_settings()
    chain = directory_defaults_chain(path, settings.defaults_filename) if settings.cascade_defaults else []
    return resolve(Options().as_mapping(), chain, file_overrides or {})


__all__ = [
    "OPTION_NAMES",
    "Options",
    "TrackerSettings",
    "directory_defaults_chain",
    "get_settings",
    "options_for",
    "parse_option_line",
    "read_defaults_file",
    "resolve",
]
