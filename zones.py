from __future__ import annotations

import math
from bisect import bisect_right
from dataclasses import dataclass
from typing import Sequence

from constants import FEVER_ZONES, Y_AXIS_MAX, Y_AXIS_MIN


@dataclass(frozen=True)
class SeverityZone:
    y_min: float
    y_max: float
    label: str
    color: str

    @property
    def label_color(self) -> str:
        # Opaque version of the translucent band fill for text.
        return self.color.replace("0.1)", "1)")

    def contains(self, value: float) -> bool:
        return self.y_min <= value < self.y_max


ZONES: tuple[SeverityZone, ...] = tuple(SeverityZone(*z) for z in FEVER_ZONES)


def validate_zones(zones: Sequence[SeverityZone], lo: float, hi: float) -> None:
    """
    Raise ValueError unless ``zones`` are ordered, contiguous, non-overlapping
    and cover ``[lo, hi]``. The top zone may stop short of ``hi``: values
    above it clamp into it and the chart extends its band to the axis.
    """
    if not zones:
        raise ValueError("At least one severity zone is required.")
    for zone in zones:
        if not zone.y_min < zone.y_max:
            raise ValueError(f"Zone {zone.label!r} is empty or inverted.")
    for below, above in zip(zones, zones[1:]):
        if below.y_max != above.y_min:
            raise ValueError(
                f"Zones {below.label!r} and {above.label!r} must share a boundary "
                f"({below.y_max} != {above.y_min})."
            )
    if zones[0].y_min > lo:
        raise ValueError(f"Zones start at {zones[0].y_min}, above the axis floor {lo}.")
    if zones[-1].y_min >= hi:
        raise ValueError(f"Top zone starts at or above the axis ceiling {hi}.")


validate_zones(ZONES, Y_AXIS_MIN, Y_AXIS_MAX)

_FLOORS = [z.y_min for z in ZONES]


def classify(temperature: float, zones: Sequence[SeverityZone] = ZONES) -> SeverityZone:
    """
    Return the zone whose half-open ``[y_min, y_max)`` interval holds the
    value. A value exactly on a boundary belongs to the higher zone; values
    outside the configured zones clamp to the first or last one.
    """
    value = float(temperature)
    if not math.isfinite(value):
        raise ValueError(f"Cannot classify non-finite temperature {temperature!r}.")
    floors = _FLOORS if zones is ZONES else [z.y_min for z in zones]
    idx = bisect_right(floors, value) - 1
    return zones[min(max(idx, 0), len(zones) - 1)]
