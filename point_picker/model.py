from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .calibration import Point
from .errors import IndexOutOfRange
from .transform import PointTransformer

logger = logging.getLogger(__name__)


@dataclass
class Curve:
    # pixel points in source image coordinates, in pick order
    px_points: List[Point] = field(default_factory=list)
    label: str = ""


class CurveStore:
    """Uncalibrated picks per curve index; calibrated only when read."""

    def __init__(self) -> None:
        self._curves: List[Curve] = []
        self._newest: Optional[Point] = None

    def __len__(self) -> int:
        return len(self._curves)

    @property
    def curves(self) -> List[Curve]:
        return list(self._curves)

    @property
    def newest_point(self) -> Optional[Point]:
        return self._newest

    def labels(self) -> List[str]:
        return [c.label for c in self._curves]

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self._curves):
            raise IndexOutOfRange("curve", index, len(self._curves))

    def append_point(self, curve_index: int, pixel_point: Sequence[float]) -> None:
        if curve_index < 0:
            raise IndexOutOfRange("curve", curve_index, len(self._curves))
        while len(self._curves) <= curve_index:
            self._curves.append(Curve())
        p = Point(float(pixel_point[0]), float(pixel_point[1]))
        self._curves[curve_index].px_points.append(p)
        self._newest = p
        logger.debug("Curve %d: appended %s", curve_index, p)

    def set_label(self, index: int, label: str) -> None:
        self._check(index)
        self._curves[index].label = label.strip()

    def remove_curve(self, index: int) -> None:
        # cleared in place; later curves keep their indices
        self._check(index)
        self._curves[index] = Curve()
        logger.info("Cleared curve %d", index)

    def reset(self) -> None:
        self._curves.clear()
        self._newest = None

    def get_calibrated_curves(self, transformer: PointTransformer) -> List[List[Point]]:
        if not self._curves:
            return []
        # NoValidTransform propagates; no partial output
        return [transformer.scale_points(c.px_points) for c in self._curves]
