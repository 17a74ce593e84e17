"""Error taxonomy for the point picker core.

Calibration problems are recoverable: they are stored on the calibrator as the
current result and only raised (as ``NoValidTransform``) when someone asks for
calibrated output.
"""

from __future__ import annotations


class PointPickerError(Exception):
    pass


class CalibrationError(PointPickerError):
    """Why the current reference set does not yield a transform."""

    default_message = "calibration failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InsufficientReferences(CalibrationError):
    default_message = "not enough reference points"

    def __init__(self, count: int = 0, required: int = 4) -> None:
        self.count = count
        self.required = required
        super().__init__(
            f"not enough reference points ({count} of {required} required)"
        )


class DegenerateReferences(CalibrationError):
    default_message = "reference points must span image and plot spaces"


class NoValidTransform(PointPickerError):
    """Calibrated output was requested while the calibration is in error."""

    def __init__(self, reason: CalibrationError | None = None) -> None:
        self.reason = reason
        detail = reason.message if reason is not None else "no transform"
        super().__init__(f"no valid transform: {detail}")


class IndexOutOfRange(PointPickerError, IndexError):
    def __init__(self, what: str, index: int, size: int) -> None:
        self.what = what
        self.index = index
        self.size = size
        super().__init__(f"{what} index {index} out of range (size {size})")


class UserCancelledInput(PointPickerError):
    """The reference value prompt was dismissed."""
