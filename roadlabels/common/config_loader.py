"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from roadlabels.common.errors import ConfigError
from roadlabels.common.frost import FrostApi, ObservationQuery
from roadlabels.common.fs import read_yaml
from roadlabels.common.http import HttpClient, RetryConfig, TimeoutConfig
from roadlabels.common.schema import validate_app_config

CONFIG_FILENAME = "roadlabels.yml"
DEFAULT_CLIENT_ID_ENV = "FROST_CLIENT_ID"


@dataclass(frozen=True)
class ConfigBundle:
    frost: dict
    registry: dict
    run: dict
    sampling: dict
    output: dict
    config_dir: Path


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
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    return _deep_merge(base, overlay)


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    overlay_path = overlay_config_dir / CONFIG_FILENAME if overlay_config_dir is not None else None
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    if not isinstance(cfg, dict):
        raise ConfigError(f"{config_dir / CONFIG_FILENAME} must contain a mapping")
    cfg = validate_app_config(cfg, allow_unknown=allow_unknown)
    return ConfigBundle(
        frost=cfg["frost"],
        registry=cfg["registry"],
        run=cfg["run"],
        sampling=cfg["sampling"],
        output=cfg.get("output") or {},
        config_dir=config_dir,
    )


def resolve_client_id(frost_config: dict, environ: Mapping[str, str] | None = None) -> str | None:
    env = os.environ if environ is None else environ
    env_name = frost_config.get("client_id_env") or DEFAULT_CLIENT_ID_ENV
    return env.get(env_name) or frost_config.get("client_id") or None


def build_http_client(frost_config: dict, environ: Mapping[str, str] | None = None) -> HttpClient:
    return HttpClient(
        client_id=resolve_client_id(frost_config, environ),
        timeout=TimeoutConfig(
            connect=float(frost_config["timeout"]["connect"]),
            read=float(frost_config["timeout"]["read"]),
        ),
        retry=RetryConfig(
            max_attempts=int(frost_config["retry"]["max_attempts"]),
            wait_seconds=float(frost_config["retry"]["wait_seconds"]),
        ),
    )


def build_frost_api(frost_config: dict, http_client: HttpClient) -> FrostApi:
    defaults = ObservationQuery()
    query = ObservationQuery(
        time_resolution=str(frost_config.get("time_resolution", defaults.time_resolution)),
        time_offset=str(frost_config.get("time_offset", defaults.time_offset)),
        timeseries_id=int(frost_config.get("timeseries_id", defaults.timeseries_id)),
        performance_category=str(frost_config.get("performance_category", defaults.performance_category)),
        exposure_category=str(frost_config.get("exposure_category", defaults.exposure_category)),
    )
    return FrostApi(http_client, base_url=frost_config["base_url"], query=query)
