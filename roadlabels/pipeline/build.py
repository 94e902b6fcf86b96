"""Fetch, classify and stratify: one parameterized labelling run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from roadlabels.common.constants import ROAD_WEATHER_ELEMENTS
from roadlabels.common.errors import ConfigError, DataQualityError
from roadlabels.common.logging import log_event
from roadlabels.common.models import LabeledRecord, ObservationRow, SourceMap
from roadlabels.common.time_utils import parse_utc, utc_now
from roadlabels.harvest.observations import HarvestStats, ObservationSource, iter_observation_batches
from roadlabels.harvest.windows import day_windows
from roadlabels.pipeline.classify import Taxonomy, classify, thickness_from_readings
from roadlabels.pipeline.sampling import LabeledDataset, SamplingPolicy, StratifiedSampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunOptions:
    taxonomy: Taxonomy = Taxonomy.FINE
    start: datetime | None = None
    stop: datetime | None = None
    denylist: frozenset[str] = frozenset()
    policy: SamplingPolicy = field(default_factory=SamplingPolicy)
    elements: tuple[str, ...] = ROAD_WEATHER_ELEMENTS

    @classmethod
    def from_config(
        cls,
        run_config: dict,
        sampling_config: dict,
        *,
        taxonomy: str | None = None,
        start: str | None = None,
        stop: str | None = None,
        denylist: Iterable[str] | None = None,
    ) -> "RunOptions":
        try:
            chosen = Taxonomy(taxonomy or run_config["taxonomy"])
        except ValueError as exc:
            raise ConfigError(f"Unknown taxonomy: {taxonomy or run_config['taxonomy']}") from exc
        try:
            start_at = parse_utc(start or run_config["start"])
            stop_at = parse_utc(stop if stop is not None else run_config.get("stop"))
        except ValueError as exc:
            raise ConfigError(f"Invalid run span: {exc}") from exc
        if start_at is None:
            raise ConfigError("run.start is required")
        if stop_at is not None and stop_at <= start_at:
            raise ConfigError("run.stop must be after run.start")
        try:
            policy = SamplingPolicy.from_config(sampling_config, chosen)
        except KeyError as exc:
            raise ConfigError(f"Invalid sampling config: {exc}") from exc

        deny = (run_config.get("denylist") or []) if denylist is None else denylist
        return cls(
            taxonomy=chosen,
            start=start_at,
            stop=stop_at,
            denylist=frozenset(str(s) for s in deny if str(s)),
            policy=policy,
        )


def label_row(row: ObservationRow, camera_id: int, taxonomy: Taxonomy) -> LabeledRecord:
    thickness = thickness_from_readings(row.readings)
    condition = classify(thickness, taxonomy)
    return LabeledRecord(
        reference_time=row.reference_time,
        source_id=row.source_id,
        camera_id=camera_id,
        ice_thickness=thickness.ice,
        water_film_thickness=thickness.water,
        snow_thickness=thickness.snow,
        condition=int(condition),
        taxonomy=Taxonomy(taxonomy).value,
    )


def label_rows(
    rows: Iterable[ObservationRow],
    source_map: SourceMap,
    sampler: StratifiedSampler,
    *,
    taxonomy: Taxonomy,
    denylist: frozenset[str] = frozenset(),
    span: tuple[datetime, datetime] | None = None,
) -> None:
    """Label fetched rows into ``sampler``.

    Day windows may reach past either end of ``span``; rows outside
    ``[start, stop)`` are dropped here. Unaligned rows are dropped before
    classification so they never reach the classifier's checks.
    """
    for row in rows:
        if span is not None and not span[0] <= row.reference_time < span[1]:
            sampler.discard("out_of_span")
            continue
        if not sampler.policy.is_aligned(row.reference_time):
            sampler.discard("unaligned")
            continue
        if row.source_id in denylist:
            sampler.discard("denylisted")
            continue
        camera = source_map.camera_for(row.source_id)
        if camera is None:
            sampler.discard("unmapped_source")
            continue
        try:
            record = label_row(row, camera.id, taxonomy)
        except DataQualityError as exc:
            log_event(
                logger,
                f"row dropped: {exc}",
                level=logging.WARNING,
                stage="classify",
                source=row.source_id,
                event="ROW_INVALID",
                status="error",
                error_code=exc.error_code,
            )
            sampler.discard("invalid")
            continue
        sampler.add(record)


@dataclass
class PipelineResult:
    dataset: LabeledDataset
    harvest: HarvestStats
    source_map: SourceMap
    options: RunOptions

    @property
    def partial(self) -> bool:
        return bool(self.harvest.skipped_windows)

    @property
    def failed(self) -> bool:
        # Every window skipped: nothing was fetched at all.
        return self.partial and self.harvest.windows_fetched == 0

    @property
    def status(self) -> str:
        if self.failed:
            return "error"
        return "partial" if self.partial else "success"


def run_label_pipeline(
    source: ObservationSource,
    source_map: SourceMap,
    options: RunOptions,
    *,
    source_ids: Sequence[str] | None = None,
) -> PipelineResult:
    if options.start is None:
        raise ConfigError("A start time is required for the backfill span")
    span = (options.start, options.stop or utc_now())
    windows = day_windows(*span)
    ids = list(source_ids) if source_ids is not None else source_map.source_ids()

    log_event(
        logger,
        f"labelling {len(windows)} day windows for {len(ids)} sources",
        stage="build",
        event="BUILD_START",
        status="ok",
        rows_in=len(ids),
    )

    harvest = HarvestStats()
    sampler = StratifiedSampler(options.taxonomy, options.policy)
    for batch in iter_observation_batches(source, ids, windows, elements=options.elements, stats=harvest):
        label_rows(
            batch.rows,
            source_map,
            sampler,
            taxonomy=options.taxonomy,
            denylist=options.denylist,
            span=span,
        )

    dataset = sampler.result()
    result = PipelineResult(dataset=dataset, harvest=harvest, source_map=source_map, options=options)
    log_event(
        logger,
        f"class counts: {dataset.summary()['classified_counts']}",
        stage="build",
        event="BUILD_END",
        status=result.status,
        rows_in=harvest.rows_fetched,
        rows_out=sum(dataset.retained_counts.values()),
    )
    return result
