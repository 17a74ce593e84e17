from __future__ import annotations

from typing import List, Sequence

from .calibration import Point, ReferenceCalibrator


def scale_ordinate(value: float, scale: float, offset: float) -> float:
    """Widget-reported coordinate -> source image pixel coordinate."""
    return value * scale + offset


class PointTransformer:
    """Applies the calibrator's current transform to pixel points."""

    def __init__(self, calibrator: ReferenceCalibrator) -> None:
        self.calibrator = calibrator

    def scale_point(self, pixel_point: Sequence[float]) -> Point:
        # raises NoValidTransform while the calibration is in error
        return self.calibrator.transform.apply(pixel_point)

    def scale_points(self, pixel_points: Sequence[Sequence[float]]) -> List[Point]:
        t = self.calibrator.transform
        return [t.apply(p) for p in pixel_points]
