"""Tests for display <-> image pixel mapping."""

from __future__ import annotations

import pytest
from PIL import Image

from point_picker.transform import scale_ordinate
from point_picker.viewport import ImageViewport, load_image


class TestImageViewport:
    def test_fit_upscale(self) -> None:
        vp = ImageViewport.fit((200, 100), (400, 400))
        assert vp.scale == 2.0
        assert vp.offset == (0, 100)
        assert vp.display_size == (400, 200)

    def test_fit_no_upscale(self) -> None:
        vp = ImageViewport.fit((200, 100), (400, 400), upscale=False)
        assert vp.scale == 1.0
        assert vp.offset == (100, 150)

    def test_widget_to_image(self) -> None:
        vp = ImageViewport.fit((200, 100), (400, 400))
        sx, sy = vp.display_scale
        ox, oy = vp.display_offset
        x = scale_ordinate(200.0, sx, ox)
        y = scale_ordinate(150.0, sy, oy)
        assert (x, y) == (100.0, 25.0)
        assert vp.to_canvas(x, y) == (200.0, 150.0)
        assert vp.contains(200, 150)
        assert not vp.contains(200, 50)

    def test_invalid_image_size(self) -> None:
        with pytest.raises(ValueError):
            ImageViewport.fit((0, 10), (100, 100))


def test_load_image(tmp_path) -> None:
    path = tmp_path / "scan.png"
    Image.new("L", (30, 20)).save(path)
    assert load_image(path).size == (30, 20)
