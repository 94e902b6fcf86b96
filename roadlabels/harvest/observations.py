"""Windowed observation harvest with fail-soft semantics per day window."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Protocol, Sequence

from roadlabels.common.constants import ROAD_WEATHER_ELEMENTS
from roadlabels.common.errors import StageError
from roadlabels.common.logging import log_event
from roadlabels.common.models import ObservationRow
from roadlabels.harvest.windows import TimeWindow

logger = logging.getLogger(__name__)


class ObservationSource(Protocol):
    def observations(
        self, source_ids: Iterable[str], elements: Iterable[str], reference_time: str
    ) -> list[ObservationRow]: ...


@dataclass(frozen=True)
class ObservationBatch:
    window: TimeWindow
    rows: list[ObservationRow]


@dataclass
class HarvestStats:
    windows_total: int = 0
    windows_fetched: int = 0
    rows_fetched: int = 0
    skipped_windows: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "windows_total": self.windows_total,
            "windows_fetched": self.windows_fetched,
            "windows_skipped": len(self.skipped_windows),
            "rows_fetched": self.rows_fetched,
            "skipped_windows": list(self.skipped_windows),
        }


def iter_observation_batches(
    source: ObservationSource,
    source_ids: Sequence[str],
    windows: Sequence[TimeWindow],
    *,
    elements: Sequence[str] = ROAD_WEATHER_ELEMENTS,
    stats: HarvestStats | None = None,
) -> Iterator[ObservationBatch]:
    """Yield one batch per day window in chronological order.

    A window whose request fails is recorded on ``stats`` and skipped; it is
    not retried later and does not stop the remaining windows.
    """
    stats = stats if stats is not None else HarvestStats()
    stats.windows_total += len(windows)
    ordered = sorted(windows, key=lambda w: w.start)

    for window in ordered:
        try:
            rows = source.observations(source_ids, elements, window.reference_time())
        except StageError as exc:
            stats.skipped_windows.append(
                {"window": window.label(), "error_code": exc.error_code, "detail": str(exc)}
            )
            log_event(
                logger,
                f"observation window skipped: {exc}",
                level=logging.WARNING,
                stage="harvest",
                window=window.label(),
                event="WINDOW_SKIPPED",
                status="error",
                error_code=exc.error_code,
            )
            continue

        stats.windows_fetched += 1
        stats.rows_fetched += len(rows)
        log_event(
            logger,
            f"observation batch {window.index + 1} of {len(ordered)}",
            stage="harvest",
            window=window.label(),
            event="WINDOW_FETCHED",
            status="ok",
            rows_out=len(rows),
        )
        yield ObservationBatch(window=window, rows=rows)
