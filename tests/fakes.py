"""Shared in-memory stand-ins for the Frost API and camera registry."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from roadlabels.common.errors import StageError
from roadlabels.common.frost import parse_observations
from roadlabels.common.http import RetryableHttpError
from roadlabels.common.models import Camera, SeriesInfo, Station

ELEMENTS = ("road_ice_thickness", "road_water_film_thickness", "road_snow_thickness")


def observation_item(source_id: str, at: datetime, ice: float, water: float, snow: float) -> dict:
    return {
        "sourceId": source_id,
        "referenceTime": at.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        "observations": [
            {"elementId": "road_ice_thickness", "value": ice, "unit": "mm"},
            {"elementId": "road_water_film_thickness", "value": water, "unit": "mm"},
            {"elementId": "road_snow_thickness", "value": snow, "unit": "mm"},
        ],
    }


class FakeFrostApi:
    """Serves a synthetic day of ten-minute readings per station per window.

    ``conditions`` maps a source id to the (ice, water, snow) triple it reports
    all day. Windows listed in ``failing_days`` raise as if retries ran out.
    """

    def __init__(self, conditions: dict[str, tuple[float, float, float]], failing_days=()):
        self.conditions = conditions
        self.failing_days = set(failing_days)
        self.requested: list[str] = []

    def stations(self, station_holder: str):
        return [Station(source_id=sid, external_ids=("nomatch", sid.split(":")[0])) for sid in self.conditions]

    def available_series(self, source_id, elements, time_resolution):
        return [SeriesInfo(source_id=source_id, element_id=e, unit="mm") for e in ELEMENTS]

    def observations(self, source_ids, elements, reference_time):
        self.requested.append(reference_time)
        day = reference_time[:10]
        if day in self.failing_days:
            raise RetryableHttpError(f"HTTP status 503 for {day}")
        start = datetime.fromisoformat(day).replace(tzinfo=timezone.utc)
        items = []
        for step in range(144):
            at = start + timedelta(minutes=10 * step)
            for sid in source_ids:
                if sid in self.conditions:
                    items.append(observation_item(sid, at, *self.conditions[sid]))
        return parse_observations({"data": items})


class BrokenFrostApi(FakeFrostApi):
    def stations(self, station_holder: str):
        raise StageError("catalog down")


class FakeRegistry:
    def __init__(self, conditions: dict[str, tuple[float, float, float]]):
        self.cameras = [Camera(id=i + 1, foreign_id=f"{sid.split(':')[0]}_0") for i, sid in enumerate(conditions)]

    def list_cameras(self):
        return list(self.cameras)


def write_fast_overlay(directory) -> str:
    """Overlay config that removes the probe pacing delay."""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "roadlabels.yml").write_text(
        "frost:\n  probe_pause_seconds: 0\n  retry:\n    wait_seconds: 0\n",
        encoding="utf-8",
    )
    return str(directory)
