"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

from roster.common.constants import DEFAULT_METADATA_KEY, DEFAULT_RECORDS_KEY
from roster.common.errors import ConfigError
from roster.common.fs import read_yaml
from roster.common.schema import validate_roster_config

DEFAULT_CONFIG_PATH = Path("config") / "roster.yml"


@dataclass(frozen=True)
class RefreshConfig:
    interval: timedelta = timedelta(hours=24)
    fetch_timeout_seconds: float = 60.0
    metadata_write_attempts: int = 3
    task_name: str = "roster-refresh"


@dataclass(frozen=True)
class StoreConfig:
    backend: str = "file"
    root: Path = Path("data") / "cache"
    records_key: str = DEFAULT_RECORDS_KEY
    metadata_key: str = DEFAULT_METADATA_KEY


@dataclass(frozen=True)
class SourceConfig:
    senators_url: str
    members_url: str
    probe_enabled: bool = True
    probe_timeout_seconds: float = 10.0
    connect_timeout_seconds: float = 10.0
    read_timeout_seconds: float = 30.0
    max_attempts: int = 3


@dataclass(frozen=True)
class RosterConfig:
    source: SourceConfig
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = "INFO"


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path) or {}
    return _deep_merge(base, overlay)


def build_config(cfg: dict) -> RosterConfig:
    refresh = cfg["refresh"]
    store = cfg["store"]
    source = cfg["source"]
    return RosterConfig(
        refresh=RefreshConfig(
            interval=timedelta(hours=float(refresh["interval_hours"])),
            fetch_timeout_seconds=float(refresh["fetch_timeout_seconds"]),
            metadata_write_attempts=int(refresh.get("metadata_write_attempts", 3)),
            task_name=str(refresh.get("task_name", "roster-refresh")),
        ),
        store=StoreConfig(
            backend=store["backend"],
            root=Path(store.get("root") or StoreConfig.root),
            records_key=store.get("records_key") or DEFAULT_RECORDS_KEY,
            metadata_key=store.get("metadata_key") or DEFAULT_METADATA_KEY,
        ),
        source=SourceConfig(
            senators_url=source["senators_url"],
            members_url=source["members_url"],
            probe_enabled=bool(source.get("probe_enabled", True)),
            probe_timeout_seconds=float(source.get("probe_timeout_seconds", 10.0)),
            connect_timeout_seconds=float(source.get("connect_timeout_seconds", 10.0)),
            read_timeout_seconds=float(source.get("read_timeout_seconds", 30.0)),
            max_attempts=int(source.get("max_attempts", 3)),
        ),
        log_level=str(cfg.get("log_level", "INFO")).upper(),
    )


def load_config(
    config_path: Path = DEFAULT_CONFIG_PATH,
    *,
    allow_unknown: bool = False,
    overlay_path: Path | None = None,
) -> RosterConfig:
    raw = _load_yaml_with_overlay(config_path, overlay_path)
    return build_config(validate_roster_config(raw, allow_unknown=allow_unknown))
