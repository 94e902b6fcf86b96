"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from roadlabels.common.fs import write_json
from roadlabels.pipeline.build import PipelineResult


def write_run_summary(out_dir: Path, *, run_id: str, result: PipelineResult) -> Path:
    options = result.options
    harvest = result.harvest.to_dict()

    payload = {
        "run_id": run_id,
        "status": result.status,
        "span": {
            "start": options.start,
            "stop": options.stop,
        },
        "taxonomy": options.taxonomy.value,
        "denylist": sorted(options.denylist),
        "sampling": {
            "minute_aligned": options.policy.minute_aligned,
            "cadence_hours": {
                str(int(code)): sorted(hours) for code, hours in sorted(options.policy.cadence_hours.items())
            },
        },
        "sources": {
            "stations": len(result.source_map.stations),
            "source_ids": len(result.source_map),
        },
        "harvest": harvest,
        "dataset": result.dataset.summary(),
    }
    summary_path = out_dir / "run_summary.json"
    write_json(summary_path, payload)
    return summary_path
