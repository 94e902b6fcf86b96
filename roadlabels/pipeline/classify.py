"""Road-surface condition classification of (ice, water, snow) thickness triples.

Two taxonomies are supported. The fine taxonomy has eight classes, the coarse
one three; the coarse result is always a coarsening of the fine one. Both
decision tables are total over non-negative input, so there is no fallthrough
branch. Negative or NaN values are rejected with ``DataQualityError``.

Rules 3 to 5 of the fine table (the two-condition classes) are written in the
strictly exclusive form, requiring the third value to be zero. Since rule 2
already takes every triple with all three values positive, the "at least" form
of these rules selects the same triples, so the two forms never disagree on
valid input.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable

from roadlabels.common.constants import EXPECTED_UNIT, ICE_THICKNESS, SNOW_THICKNESS, WATER_FILM_THICKNESS
from roadlabels.common.errors import DataQualityError
from roadlabels.common.models import Reading

logger = logging.getLogger(__name__)


class Taxonomy(str, Enum):
    FINE = "fine"
    COARSE = "coarse"


class FineClass(IntEnum):
    DRY = 0
    WET = 1
    SNOW = 2
    ICE = 3
    WET_SNOW = 4
    WET_ICE = 5
    SNOW_ICE = 6
    SNOW_ICE_WET = 7

    @property
    def label(self) -> str:
        return FINE_LABELS[self]


class CoarseClass(IntEnum):
    DRY = 0
    WET = 1
    SNOW_OR_ICE = 2

    @property
    def label(self) -> str:
        return COARSE_LABELS[self]


FINE_LABELS = {
    FineClass.DRY: "Dry",
    FineClass.WET: "Wet",
    FineClass.SNOW: "Snow",
    FineClass.ICE: "Ice",
    FineClass.WET_SNOW: "Wet+Snow",
    FineClass.WET_ICE: "Wet+Ice",
    FineClass.SNOW_ICE: "Snow+Ice",
    FineClass.SNOW_ICE_WET: "Snow+Ice+Wet",
}
COARSE_LABELS = {
    CoarseClass.DRY: "Dry",
    CoarseClass.WET: "Wet",
    CoarseClass.SNOW_OR_ICE: "SnowOrIce",
}

# Names used by the labelling application's class folders.
LABEL_APP_NAMES = {
    FineClass.DRY: "Dry",
    FineClass.WET: "Water",
    FineClass.SNOW: "Snow",
    FineClass.ICE: "Ice",
    FineClass.WET_SNOW: "Water+Snow",
    FineClass.WET_ICE: "Water+Ice",
    FineClass.SNOW_ICE: "Snow+Ice",
    FineClass.SNOW_ICE_WET: "Snow+Ice+Water",
}


@dataclass(frozen=True)
class Thickness:
    """Road-surface layer thicknesses in millimetres."""

    ice: float = 0.0
    water: float = 0.0
    snow: float = 0.0

    def validate(self) -> "Thickness":
        for name, value in (("ice", self.ice), ("water", self.water), ("snow", self.snow)):
            if math.isnan(value) or value < 0:
                raise DataQualityError(f"Invalid {name} thickness: {value}")
        return self


def thickness_from_readings(readings: Iterable[Reading], expected_unit: str = EXPECTED_UNIT) -> Thickness:
    """Collapse the readings of one observation row into a ``Thickness``.

    Missing elements count as zero. A reading in an unexpected unit is
    discarded with a warning, so its element also counts as zero. Elements
    other than the three road weather thicknesses are ignored.
    """
    values = {ICE_THICKNESS: 0.0, WATER_FILM_THICKNESS: 0.0, SNOW_THICKNESS: 0.0}
    for reading in readings:
        if reading.element_id not in values:
            continue
        if reading.unit != expected_unit:
            logger.warning(
                "unsupported unit %r for %s, treating as zero",
                reading.unit,
                reading.element_id,
                extra={"stage": "classify", "event": "UNSUPPORTED_UNIT"},
            )
            continue
        values[reading.element_id] = float(reading.value)
    return Thickness(
        ice=values[ICE_THICKNESS],
        water=values[WATER_FILM_THICKNESS],
        snow=values[SNOW_THICKNESS],
    )


def classify_fine(thickness: Thickness) -> FineClass:
    t = thickness.validate()
    ice, water, snow = t.ice > 0, t.water > 0, t.snow > 0

    if not (ice or water or snow):
        return FineClass.DRY
    if ice and water and snow:
        return FineClass.SNOW_ICE_WET
    if ice and snow and not water:
        return FineClass.SNOW_ICE
    if ice and water and not snow:
        return FineClass.WET_ICE
    if snow and water and not ice:
        return FineClass.WET_SNOW
    if ice:
        return FineClass.ICE
    if snow:
        return FineClass.SNOW
    return FineClass.WET


def classify_coarse(thickness: Thickness) -> CoarseClass:
    t = thickness.validate()
    if t.ice == 0 and t.water == 0 and t.snow == 0:
        return CoarseClass.DRY
    if t.ice > 0 or t.snow > 0:
        return CoarseClass.SNOW_OR_ICE
    return CoarseClass.WET


def coarsen(fine: FineClass) -> CoarseClass:
    if fine is FineClass.DRY:
        return CoarseClass.DRY
    if fine is FineClass.WET:
        return CoarseClass.WET
    return CoarseClass.SNOW_OR_ICE


def classify(thickness: Thickness, taxonomy: Taxonomy = Taxonomy.FINE) -> IntEnum:
    if Taxonomy(taxonomy) is Taxonomy.COARSE:
        return classify_coarse(thickness)
    return classify_fine(thickness)


def class_enum(taxonomy: Taxonomy) -> type[IntEnum]:
    return CoarseClass if Taxonomy(taxonomy) is Taxonomy.COARSE else FineClass


def class_from_label(taxonomy: Taxonomy, label: str) -> IntEnum:
    labels = COARSE_LABELS if Taxonomy(taxonomy) is Taxonomy.COARSE else FINE_LABELS
    for member, name in labels.items():
        if name.lower() == label.lower():
            return member
    raise KeyError(f"Unknown {Taxonomy(taxonomy).value} class label: {label}")
