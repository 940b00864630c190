"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from roster.common.errors import ConfigError

STORE_BACKENDS = {"file", "memory"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "WARN", "ERROR"}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive(obj: dict, keys: set[str], ctx: str) -> None:
    for key in sorted(keys):
        value = obj[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"{ctx}.{key} must be a positive number, got {value!r}")


def validate_roster_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"refresh", "store", "source"}
    top_known = top_required | {"log_level"}
    _assert_required_keys(cfg, top_required, "roster config")
    _assert_no_unknown_keys(cfg, top_known, "roster config", allow_unknown)

    level = str(cfg.get("log_level", "INFO")).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"Unsupported log_level: {level}")

    refresh_required = {"interval_hours", "fetch_timeout_seconds"}
    refresh_known = refresh_required | {"metadata_write_attempts", "task_name"}
    _assert_required_keys(cfg["refresh"], refresh_required, "refresh")
    _assert_no_unknown_keys(cfg["refresh"], refresh_known, "refresh", allow_unknown)
    _assert_positive(cfg["refresh"], refresh_required, "refresh")
    if "metadata_write_attempts" in cfg["refresh"]:
        _assert_positive(cfg["refresh"], {"metadata_write_attempts"}, "refresh")

    store_required = {"backend"}
    store_known = store_required | {"root", "records_key", "metadata_key"}
    _assert_required_keys(cfg["store"], store_required, "store")
    _assert_no_unknown_keys(cfg["store"], store_known, "store", allow_unknown)
    if cfg["store"]["backend"] not in STORE_BACKENDS:
        raise ConfigError(f"Unsupported store backend: {cfg['store']['backend']!r}")
    if cfg["store"]["backend"] == "file" and not cfg["store"].get("root"):
        raise ConfigError("store.root is required for the file backend")
    if cfg["store"].get("records_key") and cfg["store"].get("records_key") == cfg["store"].get("metadata_key"):
        raise ConfigError("store.records_key and store.metadata_key must differ")

    source_required = {"senators_url", "members_url"}
    timeout_keys = {"probe_timeout_seconds", "connect_timeout_seconds", "read_timeout_seconds", "max_attempts"}
    source_known = source_required | timeout_keys | {"probe_enabled"}
    _assert_required_keys(cfg["source"], source_required, "source")
    _assert_no_unknown_keys(cfg["source"], source_known, "source", allow_unknown)
    _assert_positive(cfg["source"], timeout_keys & set(cfg["source"]), "source")

    return cfg
