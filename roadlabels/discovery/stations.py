"""Station resolution: join the Frost station catalog to the local camera registry."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Protocol, Sequence

from roadlabels.common.constants import DEFAULT_STATION_HOLDER, ROAD_WEATHER_ELEMENTS, TIME_RESOLUTION
from roadlabels.common.errors import PipelineError, ResolutionError
from roadlabels.common.logging import log_event
from roadlabels.common.models import Camera, ResolvedStation, SeriesInfo, SourceMap, Station

logger = logging.getLogger(__name__)


class StationCatalog(Protocol):
    def stations(self, station_holder: str) -> list[Station]: ...

    def available_series(
        self, source_id: str, elements: Iterable[str], time_resolution: str
    ) -> list[SeriesInfo]: ...


class CameraRegistry(Protocol):
    def list_cameras(self) -> list[Camera]: ...


def camera_lookup(cameras: Iterable[Camera]) -> dict[str, Camera]:
    """Key cameras by the station id prefix of their foreign id."""
    return {camera.station_key: camera for camera in cameras}


def match_camera(station: Station, lookup: dict[str, Camera]) -> tuple[str, Camera] | None:
    for external_id in station.external_ids:
        camera = lookup.get(external_id)
        if camera is not None:
            return external_id, camera
    return None


def has_required_series(series: Sequence[SeriesInfo], elements: Sequence[str]) -> bool:
    # Exactly one series per element: no subsets, supersets or duplicates.
    if len(series) != len(elements):
        return False
    return sorted(s.element_id for s in series) == sorted(elements)


def resolve_sources(
    catalog: StationCatalog,
    registry: CameraRegistry,
    *,
    station_holder: str = DEFAULT_STATION_HOLDER,
    elements: Sequence[str] = ROAD_WEATHER_ELEMENTS,
    time_resolution: str = TIME_RESOLUTION,
    pause_seconds: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> SourceMap:
    try:
        cameras = registry.list_cameras()
    except ResolutionError:
        raise
    except PipelineError as exc:
        raise ResolutionError(f"Camera registry unavailable: {exc}") from exc
    lookup = camera_lookup(cameras)

    try:
        stations = catalog.stations(station_holder)
    except PipelineError as exc:
        raise ResolutionError(f"Station catalog unavailable for {station_holder!r}: {exc}") from exc

    log_event(
        logger,
        "station catalog loaded",
        stage="resolve",
        event="CATALOG_LOADED",
        status="ok",
        rows_in=len(stations),
        rows_out=len(lookup),
    )

    sources: dict[str, Camera] = {}
    resolved: list[ResolvedStation] = []
    for station in stations:
        match = match_camera(station, lookup)
        if match is None:
            continue
        external_id, camera = match

        try:
            series = catalog.available_series(station.source_id, elements, time_resolution)
        except PipelineError as exc:
            log_event(
                logger,
                f"availability probe failed: {exc}",
                level=logging.WARNING,
                stage="resolve",
                source=station.source_id,
                event="PROBE_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            sleep(pause_seconds)
            continue

        if has_required_series(series, elements):
            sources[station.source_id] = camera
            for item in series:
                sources[item.source_id] = camera
            resolved.append(
                ResolvedStation(
                    station_id=station.source_id,
                    camera=camera,
                    matched_external_id=external_id,
                    series_ids=tuple(item.source_id for item in series),
                )
            )
            log_event(
                logger,
                f"station accepted for camera {camera.id}",
                stage="resolve",
                source=station.source_id,
                event="STATION_ACCEPTED",
                status="ok",
            )
        else:
            logger.debug(
                "station rejected, series: %s",
                [item.element_id for item in series],
                extra={"stage": "resolve", "source": station.source_id, "event": "STATION_REJECTED"},
            )
        sleep(pause_seconds)

    if not sources:
        raise ResolutionError("No stations with all road weather sensors matched a camera")

    return SourceMap(cameras=sources, stations=tuple(resolved))
