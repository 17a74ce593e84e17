from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .config import MIN_REFERENCES, CalibratorConfig
from .errors import (
    CalibrationError,
    DegenerateReferences,
    IndexOutOfRange,
    InsufficientReferences,
    NoValidTransform,
)

logger = logging.getLogger(__name__)


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class ReferencePair:
    image_coords: Point
    value_coords: Point


class AxisScaling(str, Enum):
    # Declaration order is the tie-break order.
    LINEAR = "linear"
    SEMI_LOG_Y = "semilogy"
    SEMI_LOG_X = "semilogx"
    LOG_LOG = "loglog"

    @property
    def x_is_logarithmic(self) -> bool:
        return self in (AxisScaling.SEMI_LOG_X, AxisScaling.LOG_LOG)

    @property
    def y_is_logarithmic(self) -> bool:
        return self in (AxisScaling.SEMI_LOG_Y, AxisScaling.LOG_LOG)

    @classmethod
    def from_flags(cls, x_log: bool, y_log: bool) -> "AxisScaling":
        if x_log and y_log:
            return cls.LOG_LOG
        if x_log:
            return cls.SEMI_LOG_X
        if y_log:
            return cls.SEMI_LOG_Y
        return cls.LINEAR


def _project(h: np.ndarray, x: float, y: float) -> Tuple[float, float]:
    w = h[2, 0] * x + h[2, 1] * y + h[2, 2]
    if w == 0:
        raise ValueError(f"Point ({x}, {y}) maps to infinity.")
    return (
        float((h[0, 0] * x + h[0, 1] * y + h[0, 2]) / w),
        float((h[1, 0] * x + h[1, 1] * y + h[1, 2]) / w),
    )


@dataclass(frozen=True, eq=False)
class Transform:
    """Projective pixel -> value map, with optional log10 axes on the value side."""

    matrix: np.ndarray
    x_is_logarithmic: bool = False
    y_is_logarithmic: bool = False
    # sum of squared reference residuals for the fit that produced it
    error: float = 0.0

    def __post_init__(self) -> None:
        m = np.array(self.matrix, dtype=float)
        if m.shape != (3, 3):
            raise ValueError(f"Transform matrix must be 3x3; got {m.shape}")
        m.setflags(write=False)
        object.__setattr__(self, "matrix", m)

    @property
    def scaling(self) -> AxisScaling:
        return AxisScaling.from_flags(self.x_is_logarithmic, self.y_is_logarithmic)

    def apply(self, p: Sequence[float]) -> Point:
        u, v = _project(self.matrix, float(p[0]), float(p[1]))
        if self.x_is_logarithmic:
            u = 10.0 ** u
        if self.y_is_logarithmic:
            v = 10.0 ** v
        return Point(u, v)

    def inverse(self, p: Sequence[float]) -> Point:
        u, v = float(p[0]), float(p[1])
        if self.x_is_logarithmic:
            if u <= 0:
                raise ValueError("Log x axis requires positive values.")
            u = math.log10(u)
        if self.y_is_logarithmic:
            if v <= 0:
                raise ValueError("Log y axis requires positive values.")
            v = math.log10(v)
        x, y = _project(np.linalg.inv(self.matrix), u, v)
        return Point(x, y)


@dataclass(frozen=True, eq=False)
class CalibrationResult:
    """Outcome of one recompute: a transform or the reason there is none."""

    transform: Optional[Transform] = None
    error: Optional[CalibrationError] = None

    @classmethod
    def success(cls, transform: Transform) -> "CalibrationResult":
        return cls(transform=transform)

    @classmethod
    def failure(cls, error: CalibrationError) -> "CalibrationResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.transform is not None

    @property
    def error_message(self) -> Optional[str]:
        return None if self.error is None else self.error.message

    def unwrap(self) -> Transform:
        if self.transform is None:
            raise NoValidTransform(self.error) from self.error
        return self.transform


# ---------- fitting ----------

def scaling_applicable(pairs: Sequence[ReferencePair], scaling: AxisScaling) -> bool:
    """A log axis can only be fitted when every value on it is strictly positive."""
    if scaling.x_is_logarithmic and any(p.value_coords.x <= 0 for p in pairs):
        return False
    if scaling.y_is_logarithmic and any(p.value_coords.y <= 0 for p in pairs):
        return False
    return True


def _normalizer(pts: np.ndarray) -> np.ndarray:
    # Per-axis centring and scaling; conditions the DLT system and catches
    # reference sets that collapse onto a line in either space.
    center = pts.mean(axis=0)
    spread = pts.std(axis=0)
    if not np.all(np.isfinite(spread)) or np.any(spread == 0):
        raise DegenerateReferences()
    sx, sy = 1.0 / spread
    return np.array([
        [sx, 0.0, -sx * center[0]],
        [0.0, sy, -sy * center[1]],
        [0.0, 0.0, 1.0],
    ])


def _apply_h(h: np.ndarray, pts: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    homog = np.column_stack([pts, np.ones(len(pts))]) @ h.T
    return homog[:, :2], homog[:, 2]


def _dlt_system(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
    """2N x 9 coefficients of ``dst ~ H . src`` with H flattened row-major."""
    n = src.shape[0]
    x, y = src[:, 0], src[:, 1]
    u, v = dst[:, 0], dst[:, 1]
    a = np.zeros((2 * n, 9))
    a[0::2, 0] = x
    a[0::2, 1] = y
    a[0::2, 2] = 1.0
    a[0::2, 6] = -u * x
    a[0::2, 7] = -u * y
    a[0::2, 8] = -u
    a[1::2, 3] = x
    a[1::2, 4] = y
    a[1::2, 5] = 1.0
    a[1::2, 6] = -v * x
    a[1::2, 7] = -v * y
    a[1::2, 8] = -v
    return a


def compute_transformation(
    pairs: Sequence[ReferencePair],
    scaling: AxisScaling = AxisScaling.LINEAR,
    *,
    singular_value_tolerance: float = CalibratorConfig.singular_value_tolerance,
) -> Tuple[np.ndarray, float]:
    """
    Fit the 3x3 matrix H for one axis-scaling hypothesis.

    Log axes are fitted in log10 space. The solution is the right singular
    vector of the smallest singular value of the DLT system. Returns H
    (scaled so its largest-magnitude entry is +1) and the sum of squared
    distances between the back-transformed predictions and the true values.

    Raises DegenerateReferences when the fit is not unique or a reference
    pixel lands on the line at infinity.
    """
    if len(pairs) < MIN_REFERENCES:
        raise InsufficientReferences(len(pairs), MIN_REFERENCES)
    if not scaling_applicable(pairs, scaling):
        raise ValueError(f"{scaling.value} requires positive values on log axes.")

    src = np.array([p.image_coords for p in pairs], dtype=float)
    values = np.array([p.value_coords for p in pairs], dtype=float)
    dst = values.copy()
    if scaling.x_is_logarithmic:
        dst[:, 0] = np.log10(dst[:, 0])
    if scaling.y_is_logarithmic:
        dst[:, 1] = np.log10(dst[:, 1])

    t_src = _normalizer(src)
    t_dst = _normalizer(dst)
    a = _dlt_system(_apply_h(t_src, src)[0], _apply_h(t_dst, dst)[0])

    _u, s, vt = np.linalg.svd(a)
    # 2N x 9 with N == 4 has only 8 singular values; the ninth is zero.
    padded = np.zeros(9)
    padded[: len(s)] = s
    if s[0] == 0 or np.count_nonzero(padded <= singular_value_tolerance * s[0]) > 1:
        raise DegenerateReferences()

    h = np.linalg.inv(t_dst) @ vt[-1].reshape(3, 3) @ t_src
    h = h / h.flat[int(np.argmax(np.abs(h)))]

    predicted, w = _apply_h(h, src)
    if np.any(np.abs(w) <= np.finfo(float).eps * np.abs(h).sum()):
        raise DegenerateReferences()
    with np.errstate(over="ignore", invalid="ignore"):
        predicted = predicted / w[:, None]
        if scaling.x_is_logarithmic:
            predicted[:, 0] = np.power(10.0, predicted[:, 0])
        if scaling.y_is_logarithmic:
            predicted[:, 1] = np.power(10.0, predicted[:, 1])
        error = float(((predicted - values) ** 2).sum())
    if not math.isfinite(error):
        raise DegenerateReferences()
    return h, error


def select_scaling(
    fits: Sequence[Tuple[AxisScaling, np.ndarray, float]],
    lin_log_error_ratio: float,
) -> Tuple[AxisScaling, np.ndarray, float]:
    """
    Pick the lowest-error fit. Fits are expected in AxisScaling order, so ties
    keep the earlier hypothesis. The linear fit is only displaced when its
    error exceeds ``lin_log_error_ratio`` times the competitor's.
    """
    best = fits[0]
    for cand in fits[1:]:
        if best[0] is AxisScaling.LINEAR:
            better = best[2] > lin_log_error_ratio * cand[2]
        else:
            better = cand[2] < best[2]
        if better:
            best = cand
    return best


# ---------- reference set ----------

def _as_point(p: Sequence[float], label: str) -> Point:
    x, y = float(p[0]), float(p[1])
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"{label} must be finite; got ({x}, {y})")
    return Point(x, y)


class ReferenceCalibrator:
    """Owns the reference pairs and the transform derived from them."""

    def __init__(self, config: Optional[CalibratorConfig] = None) -> None:
        self.config = config or CalibratorConfig()
        self._pairs: List[ReferencePair] = []
        self._result = CalibrationResult.failure(
            InsufficientReferences(0, self.config.min_references)
        )
        self._last_valid: Optional[Transform] = None

    def __len__(self) -> int:
        return len(self._pairs)

    @property
    def references(self) -> List[ReferencePair]:
        return list(self._pairs)

    def value_points(self) -> List[Point]:
        return [p.value_coords for p in self._pairs]

    @property
    def result(self) -> CalibrationResult:
        return self._result

    @property
    def error_message(self) -> Optional[str]:
        return self._result.error_message

    @property
    def transform(self) -> Transform:
        """Current transform; raises NoValidTransform while in error."""
        return self._result.unwrap()

    @property
    def last_valid_transform(self) -> Optional[Transform]:
        return self._last_valid

    def add_reference(self, image_point: Sequence[float], value_point: Sequence[float]) -> CalibrationResult:
        pair = ReferencePair(_as_point(image_point, "image point"), _as_point(value_point, "value point"))
        self._pairs.append(pair)
        logger.info("Added reference %s -> %s (%d total)", pair.image_coords, pair.value_coords, len(self._pairs))
        return self.recompute()

    def remove_reference(self, index: int) -> CalibrationResult:
        if not 0 <= index < len(self._pairs):
            raise IndexOutOfRange("reference", index, len(self._pairs))
        pair = self._pairs.pop(index)
        logger.info("Removed reference %d (%s -> %s)", index, pair.image_coords, pair.value_coords)
        return self.recompute()

    def reset(self) -> None:
        self._pairs.clear()
        self._result = CalibrationResult.failure(
            InsufficientReferences(0, self.config.min_references)
        )
        self._last_valid = None
        logger.info("Reference points reset")

    def recompute(self) -> CalibrationResult:
        n = len(self._pairs)
        if n < self.config.min_references:
            result = CalibrationResult.failure(InsufficientReferences(n, self.config.min_references))
        else:
            result = self._fit(self._pairs)
        self._result = result
        if result.transform is not None:
            self._last_valid = result.transform
        return result

    def _fit(self, pairs: Sequence[ReferencePair]) -> CalibrationResult:
        if len(pairs) == MIN_REFERENCES:
            # four pairs determine a projective map exactly; nothing to compare
            candidates = [AxisScaling.LINEAR]
        else:
            candidates = list(AxisScaling)

        fits: List[Tuple[AxisScaling, np.ndarray, float]] = []
        for scaling in candidates:
            if not scaling_applicable(pairs, scaling):
                logger.debug("Skipping %s fit: non-positive values on a log axis", scaling.value)
                continue
            try:
                matrix, error = compute_transformation(
                    pairs, scaling,
                    singular_value_tolerance=self.config.singular_value_tolerance,
                )
            except DegenerateReferences:
                logger.debug("%s fit is degenerate", scaling.value)
                continue
            logger.debug("%s fit error %.6g", scaling.value, error)
            fits.append((scaling, matrix, error))

        if not fits:
            err = DegenerateReferences()
            logger.warning("Calibration failed: %s", err.message)
            return CalibrationResult.failure(err)

        scaling, matrix, error = select_scaling(fits, self.config.lin_log_error_ratio)
        logger.debug("Selected %s scaling (error %.6g)", scaling.value, error)
        return CalibrationResult.success(Transform(
            matrix,
            x_is_logarithmic=scaling.x_is_logarithmic,
            y_is_logarithmic=scaling.y_is_logarithmic,
            error=error,
        ))
