"""Class-aware temporal downsampling of labeled records."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping

from roadlabels.common.constants import DRY_CADENCE_HOURS
from roadlabels.common.models import LabeledRecord
from roadlabels.pipeline.classify import LABEL_APP_NAMES, Taxonomy, class_enum, class_from_label

DRY_CODE = 0


@dataclass(frozen=True)
class SamplingPolicy:
    """Which records of each class make it into the dataset.

    ``cadence_hours`` maps a class code to the UTC hours at which records of
    that class are kept. Classes without an entry keep every record.
    """

    cadence_hours: Mapping[int, frozenset[int]] = field(
        default_factory=lambda: {DRY_CODE: frozenset(DRY_CADENCE_HOURS)}
    )
    minute_aligned: bool = True

    @classmethod
    def from_config(cls, sampling_config: dict, taxonomy: Taxonomy) -> "SamplingPolicy":
        cadence: dict[int, frozenset[int]] = {}
        for label, hours in (sampling_config.get("cadence_hours") or {}).items():
            if hours is None:
                continue
            cadence[int(class_from_label(taxonomy, label))] = frozenset(int(h) for h in hours)
        return cls(cadence_hours=cadence, minute_aligned=bool(sampling_config.get("minute_aligned", True)))

    def is_aligned(self, reference_time: datetime) -> bool:
        return not self.minute_aligned or reference_time.minute == 0

    def keeps(self, record: LabeledRecord) -> bool:
        if not self.is_aligned(record.reference_time):
            return False
        hours = self.cadence_hours.get(record.condition)
        return hours is None or record.reference_time.hour in hours


@dataclass
class LabeledDataset:
    taxonomy: Taxonomy
    records_by_class: dict[int, list[LabeledRecord]] = field(default_factory=dict)
    classified_counts: Counter = field(default_factory=Counter)
    retained_counts: Counter = field(default_factory=Counter)
    discarded: Counter = field(default_factory=Counter)

    def labels(self) -> dict[int, str]:
        return {int(member): member.label for member in class_enum(self.taxonomy)}

    def label_app_names(self) -> dict[int, str]:
        if Taxonomy(self.taxonomy) is Taxonomy.FINE:
            return {int(member): name for member, name in LABEL_APP_NAMES.items()}
        return self.labels()

    def by_label(self) -> dict[str, list[LabeledRecord]]:
        """Per-class records keyed by the names the labelling application uses."""
        names = self.label_app_names()
        return {names[code]: list(records) for code, records in sorted(self.records_by_class.items())}

    def summary(self) -> dict:
        labels = self.labels()
        return {
            "taxonomy": Taxonomy(self.taxonomy).value,
            "classified_counts": {labels[code]: self.classified_counts.get(code, 0) for code in labels},
            "retained_counts": {labels[code]: self.retained_counts.get(code, 0) for code in labels},
            "discarded": dict(sorted(self.discarded.items())),
            "retained_total": sum(self.retained_counts.values()),
        }


class StratifiedSampler:
    """Accumulates classified records into per-class lists in arrival order."""

    def __init__(self, taxonomy: Taxonomy, policy: SamplingPolicy | None = None) -> None:
        self.policy = policy or SamplingPolicy()
        self.dataset = LabeledDataset(taxonomy=Taxonomy(taxonomy))

    def discard(self, reason: str) -> None:
        self.dataset.discarded[reason] += 1

    def add(self, record: LabeledRecord) -> bool:
        if not self.policy.is_aligned(record.reference_time):
            self.discard("unaligned")
            return False
        self.dataset.classified_counts[record.condition] += 1
        if not self.policy.keeps(record):
            self.discard("downsampled")
            return False
        self.dataset.records_by_class.setdefault(record.condition, []).append(record)
        self.dataset.retained_counts[record.condition] += 1
        return True

    def result(self) -> LabeledDataset:
        return self.dataset
