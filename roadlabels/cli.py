"""CLI entrypoint for the road condition labelling pipeline."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from roadlabels.common.config_loader import ConfigBundle, build_frost_api, build_http_client, load_config
from roadlabels.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS, TIME_RESOLUTION
from roadlabels.common.errors import PipelineError
from roadlabels.common.frost import FrostApi
from roadlabels.common.fs import run_output_dir, write_json
from roadlabels.common.ids import generate_run_id
from roadlabels.common.logging import build_logger, log_event
from roadlabels.common.models import SourceMap
from roadlabels.common.registry import SqliteCameraRegistry
from roadlabels.discovery.stations import resolve_sources
from roadlabels.pipeline.build import RunOptions, run_label_pipeline
from roadlabels.pipeline.export import write_dataset
from roadlabels.pipeline.reports import write_run_summary


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--taxonomy", default=None, choices=["fine", "coarse"])
    parser.add_argument("--start", default=None, help="UTC start date or datetime (inclusive)")
    parser.add_argument("--stop", default=None, help="UTC stop date or datetime (exclusive); default now")
    parser.add_argument(
        "--denylist",
        default=None,
        help="Comma separated source ids to drop; an empty string disables the configured list",
    )
    parser.add_argument("--strict", action="store_true", help="Fail the run if any day window was skipped")
    return parser.parse_args(argv)


def _denylist_arg(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def build_registry(bundle: ConfigBundle) -> SqliteCameraRegistry:
    return SqliteCameraRegistry.from_config(bundle.registry)


def resolve_source_map(bundle: ConfigBundle, api: FrostApi) -> SourceMap:
    return resolve_sources(
        api,
        build_registry(bundle),
        station_holder=bundle.frost["station_holder"],
        elements=tuple(bundle.frost["elements"]),
        time_resolution=bundle.frost.get("time_resolution", TIME_RESOLUTION),
        pause_seconds=float(bundle.frost.get("probe_pause_seconds", 2.0)),
    )


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    bundle = load_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)
    options = RunOptions.from_config(
        bundle.run,
        bundle.sampling,
        taxonomy=args.taxonomy,
        start=args.start,
        stop=args.stop,
        denylist=_denylist_arg(args.denylist),
    )
    out_dir = run_output_dir(data_dir, run_id)

    with build_http_client(bundle.frost) as http_client:
        api = build_frost_api(bundle.frost, http_client)

        log_event(logger, "stage start", stage="resolve", event="STAGE_START", status="ok")
        source_map = resolve_source_map(bundle, api)
        write_json(out_dir / "sources.json", source_map.to_dict())
        log_event(
            logger,
            "stage end",
            stage="resolve",
            event="STAGE_END",
            status="ok",
            rows_out=len(source_map),
        )
        if args.command == "resolve":
            return EXIT_SUCCESS

        log_event(logger, "stage start", stage="build", event="STAGE_START", status="ok")
        result = run_label_pipeline(api, source_map, options)

    write_dataset(result.dataset, out_dir, write_class_csv=bool(bundle.output.get("write_csv", True)))
    write_run_summary(out_dir, run_id=run_id, result=result)
    log_event(
        logger,
        "stage end",
        stage="build",
        event="STAGE_END",
        status=result.status,
        rows_out=sum(result.dataset.retained_counts.values()),
    )

    if result.failed:
        return EXIT_HARD_FAIL
    if result.partial:
        return EXIT_HARD_FAIL if args.strict else EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    logger = logging.getLogger("roadlabels.cli")
    try:
        return run_command(args)
    except PipelineError as exc:
        log_event(
            logger,
            f"run failed: {exc}",
            level=logging.ERROR,
            event="RUN_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    except Exception:
        logger.exception("unexpected failure", extra={"event": "RUN_FAIL", "error_code": "UNEXPECTED_ERROR"})
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
