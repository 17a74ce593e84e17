from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from .calibration import CalibrationResult, Point, ReferenceCalibrator
from .config import CalibratorConfig
from .errors import NoValidTransform, UserCancelledInput
from .model import CurveStore
from .transform import PointTransformer, scale_ordinate
from .viewport import load_image

logger = logging.getLogger(__name__)


class ExtractionMode(str, Enum):
    NONE = "none"
    REFERENCE = "reference"
    CURVE = "curve"


class ClipboardMode(str, Enum):
    NONE = "none"
    X = "x"
    Y = "y"
    BOTH = "both"


class ValuePrompt(Protocol):
    def ask_value(self, image_point: Point) -> Optional[Point]:
        """Plot value for a clicked reference pixel; None if the user cancels."""
        ...


class Clipboard(Protocol):
    def copy(self, text: str) -> None:
        ...


class PointPicker:
    """
    One image-picking session: reference calibration plus curve picks.

    The GUI feeds raw widget clicks into add_point() together with the display
    scale/offset of the shown image and reads calibrated data back.
    """

    def __init__(
        self,
        prompt: Optional[ValuePrompt] = None,
        clipboard: Optional[Clipboard] = None,
        config: Optional[CalibratorConfig] = None,
    ) -> None:
        self.config = config or CalibratorConfig()
        self.prompt = prompt
        self.clipboard = clipboard
        self.calibrator = ReferenceCalibrator(self.config)
        self.transformer = PointTransformer(self.calibrator)
        self.curves = CurveStore()
        self.extraction_mode = ExtractionMode.NONE
        self.clipboard_mode = ClipboardMode.NONE
        self._curve_index = 0
        self.image_size: Optional[Tuple[int, int]] = None

    # ---------- session ----------

    def load_image(self, path: Union[str, Path]) -> Tuple[int, int]:
        im = load_image(path)
        self.reset_all()
        self.image_size = im.size
        logger.info("Loaded %s (%dx%d)", path, im.size[0], im.size[1])
        return im.size

    def reset_all(self) -> None:
        self.calibrator.reset()
        self.curves.reset()
        self._curve_index = 0

    @property
    def curve_index(self) -> int:
        return self._curve_index

    def set_curve_index(self, index: int) -> None:
        if index < 0:
            raise ValueError(f"curve index must be >= 0; got {index}")
        self._curve_index = index

    @property
    def newest_point(self) -> Optional[Point]:
        return self.curves.newest_point

    # ---------- references ----------

    def add_reference(self, image_pixel: Sequence[float], plot_value: Sequence[float]) -> CalibrationResult:
        return self.calibrator.add_reference(image_pixel, plot_value)

    def remove_reference(self, index: int) -> CalibrationResult:
        return self.calibrator.remove_reference(index)

    def reset_references(self) -> None:
        self.calibrator.reset()

    def get_references(self) -> List[Point]:
        return self.calibrator.value_points()

    def get_error_message(self) -> Optional[str]:
        return self.calibrator.error_message

    def prompt_reference(self, image_pixel: Point) -> Optional[CalibrationResult]:
        """Ask for the plot value of ``image_pixel``; None when cancelled."""
        if self.prompt is None:
            raise RuntimeError("No value prompt configured for reference picking.")
        try:
            value = self.prompt.ask_value(image_pixel)
        except UserCancelledInput:
            value = None
        if value is None:
            logger.debug("Reference entry cancelled at %s", image_pixel)
            return None
        return self.add_reference(image_pixel, value)

    # ---------- curves ----------

    def append_curve_point(self, curve_index: int, pixel_point: Sequence[float]) -> None:
        self.curves.append_point(curve_index, pixel_point)

    def get_calibrated_curves(self) -> List[List[Point]]:
        return self.curves.get_calibrated_curves(self.transformer)

    def reset_curve(self, index: int) -> None:
        self.curves.remove_curve(index)

    def set_curve_label(self, index: int, label: str) -> None:
        self.curves.set_label(index, label)

    # ---------- clicks ----------

    def scale_single_point(
        self,
        raw_pixel: Sequence[float],
        display_scale: Sequence[float] = (1.0, 1.0),
        display_offset: Sequence[float] = (0.0, 0.0),
    ) -> Tuple[Point, Optional[Point]]:
        """Source-image pixel for a widget position, and its calibrated value if any."""
        px = Point(
            scale_ordinate(float(raw_pixel[0]), display_scale[0], display_offset[0]),
            scale_ordinate(float(raw_pixel[1]), display_scale[1], display_offset[1]),
        )
        try:
            value = self.transformer.scale_point(px)
        except NoValidTransform:
            value = None
        return px, value

    def add_point(
        self,
        raw_pixel: Sequence[float],
        display_scale: Sequence[float] = (1.0, 1.0),
        display_offset: Sequence[float] = (0.0, 0.0),
    ) -> Point:
        """Handle a click on the image; returns the source-image pixel."""
        px, _ = self.scale_single_point(raw_pixel, display_scale, display_offset)
        if self.extraction_mode is ExtractionMode.REFERENCE:
            self.prompt_reference(px)
        elif self.extraction_mode is ExtractionMode.CURVE:
            self.append_curve_point(self._curve_index, px)
        self._copy_to_clipboard(px)
        return px

    def clipboard_text(self, px: Point) -> Optional[str]:
        if self.clipboard_mode is ClipboardMode.NONE:
            return None
        try:
            p = self.transformer.scale_point(px)
        except NoValidTransform:
            p = px
        fmt = self.config.format_value
        if self.clipboard_mode is ClipboardMode.X:
            return fmt(p.x)
        if self.clipboard_mode is ClipboardMode.Y:
            return fmt(p.y)
        return f"{fmt(p.x)}\t{fmt(p.y)}"

    def _copy_to_clipboard(self, px: Point) -> None:
        text = self.clipboard_text(px)
        if text is None or self.clipboard is None:
            return
        self.clipboard.copy(text)
