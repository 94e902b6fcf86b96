"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Iterator, Mapping


@dataclass(frozen=True)
class Station:
    source_id: str
    external_ids: tuple[str, ...] = ()
    station_holders: tuple[str, ...] = ()
    name: str | None = None


@dataclass(frozen=True)
class Camera:
    id: int
    foreign_id: str

    @property
    def station_key(self) -> str:
        return self.foreign_id.split("_", 1)[0]


@dataclass(frozen=True)
class SeriesInfo:
    source_id: str
    element_id: str
    unit: str | None = None
    time_resolution: str | None = None


@dataclass(frozen=True)
class Reading:
    element_id: str
    value: float
    unit: str | None


@dataclass(frozen=True)
class ObservationRow:
    source_id: str
    reference_time: datetime
    readings: tuple[Reading, ...] = ()


@dataclass(frozen=True)
class ResolvedStation:
    station_id: str
    camera: Camera
    matched_external_id: str
    series_ids: tuple[str, ...]


@dataclass(frozen=True)
class SourceMap(Mapping[str, Camera]):
    """Read-only source id -> camera mapping built by the station resolver.

    Keys are both station ids and element-series ids. ``camera_for`` also falls
    back from a series id such as ``SN123:0`` to its station id ``SN123``.
    """

    cameras: Mapping[str, Camera] = field(default_factory=dict)
    stations: tuple[ResolvedStation, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "cameras", MappingProxyType(dict(self.cameras)))

    def __getitem__(self, key: str) -> Camera:
        return self.cameras[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.cameras)

    def __len__(self) -> int:
        return len(self.cameras)

    def source_ids(self) -> list[str]:
        return list(self.cameras)

    def camera_for(self, source_id: str) -> Camera | None:
        camera = self.cameras.get(source_id)
        if camera is None and ":" in source_id:
            camera = self.cameras.get(source_id.split(":", 1)[0])
        return camera

    def to_dict(self) -> dict[str, Any]:
        return {
            "sources": {key: {"camera_id": cam.id, "foreign_id": cam.foreign_id} for key, cam in self.cameras.items()},
            "stations": [
                {
                    "station_id": st.station_id,
                    "camera_id": st.camera.id,
                    "matched_external_id": st.matched_external_id,
                    "series_ids": list(st.series_ids),
                }
                for st in self.stations
            ],
        }


@dataclass(frozen=True)
class LabeledRecord:
    reference_time: datetime
    source_id: str
    camera_id: int
    ice_thickness: float
    water_film_thickness: float
    snow_thickness: float
    condition: int
    taxonomy: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "reference_time": self.reference_time.isoformat().replace("+00:00", "Z"),
            "source_id": self.source_id,
            "camera_id": self.camera_id,
            "ice_thickness": self.ice_thickness,
            "water_film_thickness": self.water_film_thickness,
            "snow_thickness": self.snow_thickness,
            "condition": self.condition,
            "taxonomy": self.taxonomy,
        }
