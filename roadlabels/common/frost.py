"""Frost observation API adapter.

Builds the three request kinds the pipeline needs (station catalog,
availability probe, observations) and decodes the JSON-LD responses into
domain models. Anything that does not decode raises ``ResponseSchemaError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from roadlabels.common.constants import FROST_BASE_URL, ROAD_WEATHER_ELEMENTS, TIME_RESOLUTION
from roadlabels.common.errors import ResponseSchemaError
from roadlabels.common.http import HttpClient
from roadlabels.common.models import ObservationRow, Reading, SeriesInfo, Station
from roadlabels.common.time_utils import as_utc

SOURCES_PATH = "sources/v0.jsonld"
AVAILABLE_SERIES_PATH = "observations/availableTimeSeries/v0.jsonld"
OBSERVATIONS_PATH = "observations/v0.jsonld"


@dataclass(frozen=True)
class ObservationQuery:
    time_resolution: str = TIME_RESOLUTION
    time_offset: str = "PT0H"
    timeseries_id: int = 0
    performance_category: str = "C"
    exposure_category: str = "2"


def _data_items(payload: Any, url: str) -> list[dict]:
    if not isinstance(payload, dict):
        raise ResponseSchemaError(f"Expected a JSON object from {url}")
    items = payload.get("data", [])
    if not isinstance(items, list):
        raise ResponseSchemaError(f"Expected 'data' to be a list in response from {url}")
    return items


def _parse_time(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"timestamp is not a string: {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    return as_utc(datetime.fromisoformat(text))


def parse_stations(payload: Any, url: str = SOURCES_PATH) -> list[Station]:
    stations: list[Station] = []
    for item in _data_items(payload, url):
        try:
            stations.append(
                Station(
                    source_id=str(item["id"]),
                    external_ids=tuple(str(v) for v in item.get("externalIds") or []),
                    station_holders=tuple(str(v) for v in item.get("stationHolders") or []),
                    name=item.get("name"),
                )
            )
        except (KeyError, TypeError) as exc:
            raise ResponseSchemaError(f"Malformed station entry in {url}: {exc}") from exc
    return stations


def parse_series(payload: Any, url: str = AVAILABLE_SERIES_PATH) -> list[SeriesInfo]:
    series: list[SeriesInfo] = []
    for item in _data_items(payload, url):
        try:
            series.append(
                SeriesInfo(
                    source_id=str(item["sourceId"]),
                    element_id=str(item["elementId"]),
                    unit=item.get("unit"),
                    time_resolution=item.get("timeResolution"),
                )
            )
        except (KeyError, TypeError) as exc:
            raise ResponseSchemaError(f"Malformed time series entry in {url}: {exc}") from exc
    return series


def parse_observations(payload: Any, url: str = OBSERVATIONS_PATH) -> list[ObservationRow]:
    rows: list[ObservationRow] = []
    for item in _data_items(payload, url):
        try:
            readings = tuple(
                Reading(
                    element_id=str(obs["elementId"]),
                    value=float(obs["value"]),
                    unit=obs.get("unit"),
                )
                for obs in item.get("observations") or []
                # A reading without a value is the same as a missing reading.
                if obs.get("value") is not None
            )
            rows.append(
                ObservationRow(
                    source_id=str(item["sourceId"]),
                    reference_time=_parse_time(item["referenceTime"]),
                    readings=readings,
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ResponseSchemaError(f"Malformed observation entry in {url}: {exc}") from exc
    return rows


class FrostApi:
    def __init__(
        self,
        http_client: HttpClient,
        *,
        base_url: str = FROST_BASE_URL,
        query: ObservationQuery | None = None,
    ) -> None:
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.query = query or ObservationQuery()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def stations(self, station_holder: str) -> list[Station]:
        url = self._url(SOURCES_PATH)
        payload = self.http_client.get_json(url, params={"stationholder": station_holder})
        return parse_stations(payload, url)

    def available_series(
        self,
        source_id: str,
        elements: Iterable[str] = ROAD_WEATHER_ELEMENTS,
        time_resolution: str = TIME_RESOLUTION,
    ) -> list[SeriesInfo]:
        url = self._url(AVAILABLE_SERIES_PATH)
        payload = self.http_client.probe_json(
            url,
            params={
                "sources": source_id,
                "elements": ",".join(elements),
                "timeresolutions": time_resolution,
            },
        )
        if payload is None:
            return []
        return parse_series(payload, url)

    def observations(
        self,
        source_ids: Iterable[str],
        elements: Iterable[str],
        reference_time: str,
    ) -> list[ObservationRow]:
        url = self._url(OBSERVATIONS_PATH)
        payload = self.http_client.get_json(
            url,
            params={
                "sources": ",".join(source_ids),
                "referencetime": reference_time,
                "elements": ",".join(elements),
                "timeoffsets": self.query.time_offset,
                "timeresolutions": self.query.time_resolution,
                "timeseriesids": str(self.query.timeseries_id),
                "performancecategories": self.query.performance_category,
                "exposurecategories": self.query.exposure_category,
            },
        )
        return parse_observations(payload, url)
