"""Dataset export: per-class CSV files plus a JSON manifest."""

from __future__ import annotations

import re
from pathlib import Path

from roadlabels.common.fs import write_csv, write_json
from roadlabels.common.models import LabeledRecord
from roadlabels.pipeline.sampling import LabeledDataset

RECORD_HEADERS = [
    "reference_time",
    "source_id",
    "camera_id",
    "ice_thickness",
    "water_film_thickness",
    "snow_thickness",
    "condition",
    "label",
]


def _slug(label: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", label.lower()).strip("_")


def _serialize_record(record: LabeledRecord, label: str) -> dict:
    out = record.to_dict()
    out["label"] = label
    return out


def write_dataset(dataset: LabeledDataset, out_dir: Path, *, write_class_csv: bool = True) -> Path:
    labels = dataset.labels()
    files: dict[str, str] = {}
    if write_class_csv:
        for code, records in sorted(dataset.records_by_class.items()):
            label = labels[code]
            filename = f"class_{code}_{_slug(label)}.csv"
            write_csv(out_dir / filename, RECORD_HEADERS, (_serialize_record(r, label) for r in records))
            files[label] = filename

    manifest_path = out_dir / "dataset.json"
    write_json(
        manifest_path,
        {
            "taxonomy": dataset.summary()["taxonomy"],
            "classes": {str(int(code)): label for code, label in labels.items()},
            "files": files,
            "counts": dataset.summary()["retained_counts"],
            # Folder names of the labelling application, keyed by class code.
            "label_app": {
                "names": {str(int(code)): name for code, name in dataset.label_app_names().items()},
                "counts": {name: len(records) for name, records in dataset.by_label().items()},
            },
        },
    )
    return manifest_path
