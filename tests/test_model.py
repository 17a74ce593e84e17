"""Tests for the curve store."""

from __future__ import annotations

import pytest

from point_picker.calibration import Point, ReferenceCalibrator
from point_picker.errors import IndexOutOfRange, NoValidTransform
from point_picker.model import CurveStore
from point_picker.transform import PointTransformer


@pytest.fixture
def transformer() -> PointTransformer:
    cal = ReferenceCalibrator()
    cal.add_reference((0, 0), (0, 0))
    cal.add_reference((100, 0), (10, 0))
    cal.add_reference((0, 100), (0, 10))
    cal.add_reference((100, 100), (10, 10))
    return PointTransformer(cal)


class TestCurveStore:
    def test_empty(self) -> None:
        # no transform needed for an empty store
        assert CurveStore().get_calibrated_curves(PointTransformer(ReferenceCalibrator())) == []

    def test_append_grows_curves(self) -> None:
        store = CurveStore()
        store.append_point(2, (5, 6))
        assert len(store) == 3
        assert store.curves[0].px_points == []
        assert store.curves[2].px_points == [Point(5.0, 6.0)]
        assert store.newest_point == Point(5.0, 6.0)

    def test_negative_index(self) -> None:
        with pytest.raises(IndexOutOfRange):
            CurveStore().append_point(-1, (0, 0))

    def test_calibrated_is_ragged(self, transformer: PointTransformer) -> None:
        store = CurveStore()
        store.append_point(0, (10, 10))
        store.append_point(0, (20, 20))
        store.append_point(1, (50, 50))
        out = store.get_calibrated_curves(transformer)
        assert [len(c) for c in out] == [2, 1]
        assert out[0][1] == pytest.approx((2.0, 2.0))
        assert out[1][0] == pytest.approx((5.0, 5.0))

    def test_calibrated_uses_current_transform(self, transformer: PointTransformer) -> None:
        store = CurveStore()
        store.append_point(0, (100, 100))
        before = store.get_calibrated_curves(transformer)[0][0]
        cal = transformer.calibrator
        cal.reset()
        cal.add_reference((0, 0), (0, 0))
        cal.add_reference((100, 0), (20, 0))
        cal.add_reference((0, 100), (0, 20))
        cal.add_reference((100, 100), (20, 20))
        after = store.get_calibrated_curves(transformer)[0][0]
        assert before == pytest.approx((10.0, 10.0))
        assert after == pytest.approx((20.0, 20.0))

    def test_no_partial_output(self) -> None:
        store = CurveStore()
        store.append_point(0, (1, 1))
        with pytest.raises(NoValidTransform):
            store.get_calibrated_curves(PointTransformer(ReferenceCalibrator()))

    def test_round_trip(self, transformer: PointTransformer) -> None:
        store = CurveStore()
        store.append_point(0, (37.5, 81.25))
        value = store.get_calibrated_curves(transformer)[0][0]
        px = transformer.calibrator.transform.inverse(value)
        assert px == pytest.approx((37.5, 81.25))

    def test_remove_and_reset(self) -> None:
        store = CurveStore()
        store.append_point(0, (1, 1))
        store.append_point(1, (2, 2))
        store.set_label(0, "lower")
        store.remove_curve(0)
        assert len(store) == 2
        assert store.curves[0].px_points == []
        assert store.curves[0].label == ""
        assert store.curves[1].px_points == [Point(2.0, 2.0)]
        with pytest.raises(IndexOutOfRange):
            store.remove_curve(2)
        store.reset()
        assert len(store) == 0
        assert store.newest_point is None

    def test_labels(self) -> None:
        store = CurveStore()
        store.append_point(1, (1, 1))
        store.set_label(1, "  drag ")
        assert store.labels() == ["", "drag"]
        with pytest.raises(IndexOutOfRange):
            store.set_label(2, "x")
