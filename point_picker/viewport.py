from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from PIL import Image


def load_image(path: Union[str, Path]) -> Image.Image:
    """Open an image for a picking session; raises OSError if unreadable."""
    im = Image.open(path)
    im.load()
    return im


@dataclass(frozen=True)
class ImageViewport:
    """Where a source image sits inside a widget: canvas = offset + image_px * scale."""

    image_size: Tuple[int, int]
    scale: float = 1.0
    offset: Tuple[float, float] = (0.0, 0.0)

    @classmethod
    def fit(cls, image_size: Tuple[int, int], widget_size: Tuple[int, int], *, upscale: bool = True) -> "ImageViewport":
        iw, ih = image_size
        if iw <= 0 or ih <= 0:
            raise ValueError(f"Invalid image size: {image_size}")
        cw = max(10, int(widget_size[0]))
        ch = max(10, int(widget_size[1]))
        sx = cw / iw
        sy = ch / ih
        scale = min(sx, sy) if upscale else min(1.0, sx, sy)
        disp_w = int(iw * scale)
        disp_h = int(ih * scale)
        return cls((iw, ih), scale, ((cw - disp_w) // 2, (ch - disp_h) // 2))

    @property
    def display_size(self) -> Tuple[int, int]:
        return int(self.image_size[0] * self.scale), int(self.image_size[1] * self.scale)

    # scale/offset pairs for scale_ordinate(widget_coord, ...) -> image px
    @property
    def display_scale(self) -> Tuple[float, float]:
        return 1.0 / self.scale, 1.0 / self.scale

    @property
    def display_offset(self) -> Tuple[float, float]:
        return -self.offset[0] / self.scale, -self.offset[1] / self.scale

    def to_canvas(self, xpx: float, ypx: float) -> Tuple[float, float]:
        return self.offset[0] + xpx * self.scale, self.offset[1] + ypx * self.scale

    def contains(self, cx: float, cy: float) -> bool:
        w, h = self.display_size
        return self.offset[0] <= cx < self.offset[0] + w and self.offset[1] <= cy < self.offset[1] + h
