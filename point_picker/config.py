from __future__ import annotations

import math
from dataclasses import dataclass

# A log hypothesis only replaces the linear fit when
#     linear_error > LIN_LOG_ERROR_RATIO * log_error
# Heuristic bias toward linear axes; not derived, retune against real plots.
LIN_LOG_ERROR_RATIO = 1.0

MIN_REFERENCES = 4


@dataclass(frozen=True)
class CalibratorConfig:
    min_references: int = MIN_REFERENCES
    lin_log_error_ratio: float = LIN_LOG_ERROR_RATIO
    # relative to the largest singular value of the (normalized) DLT system
    singular_value_tolerance: float = 1e-9
    # printf-style format for readout/clipboard text
    float_format: str = "%f"

    def __post_init__(self) -> None:
        if self.min_references < MIN_REFERENCES:
            raise ValueError(f"min_references must be >= {MIN_REFERENCES}")
        if not math.isfinite(self.lin_log_error_ratio) or self.lin_log_error_ratio <= 0:
            raise ValueError("lin_log_error_ratio must be a positive finite number")
        if not (0 < self.singular_value_tolerance < 1):
            raise ValueError("singular_value_tolerance must be in (0, 1)")
        try:
            self.float_format % 1.0
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid float_format: {self.float_format!r}") from e

    def format_value(self, v: float) -> str:
        return self.float_format % v
