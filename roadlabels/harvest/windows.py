"""Day-window partitioning of a backfill span."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from roadlabels.common.time_utils import as_utc, format_frost_time, utc_midnight, utc_now

WINDOW_LENGTH = timedelta(hours=24)


@dataclass(frozen=True)
class TimeWindow:
    index: int
    start: datetime
    stop: datetime

    def reference_time(self) -> str:
        return f"{format_frost_time(self.start)}/{format_frost_time(self.stop)}"

    def label(self) -> str:
        return self.start.date().isoformat()


def day_windows(start: datetime, stop: datetime | None = None) -> list[TimeWindow]:
    """Split ``[start, stop)`` into contiguous 24 hour windows.

    The first window begins at UTC midnight of ``start``. Windows are emitted
    while their start is before ``stop``; ``stop=None`` bounds the span by now.
    """
    end = utc_now() if stop is None else as_utc(stop)
    cursor = utc_midnight(start)
    windows: list[TimeWindow] = []
    while cursor < end:
        windows.append(TimeWindow(index=len(windows), start=cursor, stop=cursor + WINDOW_LENGTH))
        cursor += WINDOW_LENGTH
    return windows
