"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from roadlabels.common.constants import ROAD_WEATHER_ELEMENTS
from roadlabels.common.errors import ConfigError

TAXONOMIES = {"fine", "coarse"}


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


def _validate_frost(cfg: dict, allow_unknown: bool) -> None:
    required = {"base_url", "station_holder", "elements", "time_resolution", "retry", "timeout"}
    known = required | {
        "client_id",
        "client_id_env",
        "time_offset",
        "timeseries_id",
        "performance_category",
        "exposure_category",
        "probe_pause_seconds",
    }
    _assert_required_keys(cfg, required, "frost")
    _assert_no_unknown_keys(cfg, known, "frost", allow_unknown)
    _assert_required_keys(cfg["retry"], {"max_attempts", "wait_seconds"}, "frost.retry")
    _assert_required_keys(cfg["timeout"], {"connect", "read"}, "frost.timeout")

    elements = cfg["elements"]
    if not isinstance(elements, list) or sorted(elements) != sorted(ROAD_WEATHER_ELEMENTS):
        raise ConfigError(f"frost.elements must list exactly: {', '.join(ROAD_WEATHER_ELEMENTS)}")
    if int(cfg["retry"]["max_attempts"]) < 1:
        raise ConfigError("frost.retry.max_attempts must be at least 1")
    if float(cfg["retry"]["wait_seconds"]) < 0 or float(cfg.get("probe_pause_seconds", 0)) < 0:
        raise ConfigError("frost delays must be non-negative")


def _validate_registry(cfg: dict, allow_unknown: bool) -> None:
    _assert_required_keys(cfg, {"db_path"}, "registry")
    _assert_no_unknown_keys(cfg, {"db_path", "table", "id_column", "foreign_id_column"}, "registry", allow_unknown)


def _validate_run(cfg: dict, allow_unknown: bool) -> None:
    _assert_required_keys(cfg, {"taxonomy", "start"}, "run")
    _assert_no_unknown_keys(cfg, {"taxonomy", "start", "stop", "denylist"}, "run", allow_unknown)
    if cfg["taxonomy"] not in TAXONOMIES:
        raise ConfigError(f"run.taxonomy must be one of: {', '.join(sorted(TAXONOMIES))}")
    denylist = cfg.get("denylist") or []
    if not isinstance(denylist, list):
        raise ConfigError("run.denylist must be a list of source ids")


def _validate_sampling(cfg: dict, allow_unknown: bool) -> None:
    _assert_required_keys(cfg, {"cadence_hours"}, "sampling")
    _assert_no_unknown_keys(cfg, {"minute_aligned", "cadence_hours"}, "sampling", allow_unknown)
    cadence = cfg["cadence_hours"] or {}
    if not isinstance(cadence, dict):
        raise ConfigError("sampling.cadence_hours must map class labels to hour lists")
    for label, hours in cadence.items():
        if hours is None:
            continue
        if not isinstance(hours, list) or any(not isinstance(h, int) or not 0 <= h <= 23 for h in hours):
            raise ConfigError(f"sampling.cadence_hours.{label} must be a list of hours 0-23")


def validate_app_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"frost", "registry", "run", "sampling"}
    top_known = top_required | {"output"}
    _assert_required_keys(cfg, top_required, "roadlabels config")
    _assert_no_unknown_keys(cfg, top_known, "roadlabels config", allow_unknown)

    _validate_frost(cfg["frost"], allow_unknown)
    _validate_registry(cfg["registry"], allow_unknown)
    _validate_run(cfg["run"], allow_unknown)
    _validate_sampling(cfg["sampling"], allow_unknown)
    if "output" in cfg:
        _assert_no_unknown_keys(cfg["output"] or {}, {"write_csv"}, "output", allow_unknown)
    return cfg
