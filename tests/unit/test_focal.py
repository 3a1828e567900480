"""Tests for focal length and sensor width conversions."""

import math

import pytest

from camerainit.core.focal import (
    FULL_FRAME_DIAGONAL,
    estimate_from_focal_35mm,
    focal_35mm_equivalent,
    focal_from_field_of_view,
    focal_from_sensor_width,
    sensor_width_from_focal,
    sensor_width_from_ratio,
)


class TestSensorWidthFromRatio:
    def test_full_frame_ratio(self):
        assert sensor_width_from_ratio(1.5) == pytest.approx(36.0)

    def test_square(self):
        assert sensor_width_from_ratio(1.0) == pytest.approx(FULL_FRAME_DIAGONAL / math.sqrt(2))


class TestRoundTrip:
    @pytest.mark.parametrize("focal, focal_35mm, ratio", [
        (4.5, 26.0, 4 / 3),
        (50.0, 50.0, 1.5),
        (18.0, 27.0, 16 / 9),
    ])
    def test_width_then_focal(self, focal, focal_35mm, ratio):
        sensor_width = sensor_width_from_focal(focal, focal_35mm, ratio)
        assert focal_from_sensor_width(sensor_width, focal_35mm, ratio) == pytest.approx(focal)
        assert focal_35mm_equivalent(focal, sensor_width, ratio) == pytest.approx(focal_35mm)

    def test_full_frame_equivalent_is_identity(self):
        assert focal_35mm_equivalent(50.0, 36.0, 1.5) == pytest.approx(50.0)


class TestEstimateFromFocal35mm:
    def test_no_35mm_value(self):
        estimate = estimate_from_focal_35mm(None, 50.0, None, 1.5)
        assert not estimate.contributed
        assert estimate.sensor_width is None
        assert estimate.focal_length == 50.0

    def test_both_known_unchanged(self):
        estimate = estimate_from_focal_35mm(23.5, 18.0, 27.0, 1.5)
        assert not estimate.contributed
        assert estimate.sensor_width == 23.5
        assert estimate.focal_length == 18.0

    def test_ratio_only(self):
        """No sensor width and no focal: full-frame diagonal at the image ratio."""
        estimate = estimate_from_focal_35mm(None, None, 35.0, 1.5)
        assert estimate.contributed
        assert estimate.sensor_width == pytest.approx(36.0)
        assert estimate.focal_length == pytest.approx(35.0)

    def test_width_from_focal(self):
        estimate = estimate_from_focal_35mm(None, 25.0, 50.0, 1.5)
        assert estimate.contributed
        assert estimate.sensor_width == pytest.approx(18.0)
        assert estimate.focal_length == 25.0

    def test_focal_from_width(self):
        estimate = estimate_from_focal_35mm(18.0, None, 50.0, 1.5)
        assert estimate.contributed
        assert estimate.sensor_width == 18.0
        assert estimate.focal_length == pytest.approx(25.0)


class TestFocalFromFieldOfView:
    def test_ninety_degrees(self):
        assert focal_from_field_of_view(90.0, 4000, 3000) == pytest.approx(2000.0)

    def test_uses_larger_side(self):
        assert focal_from_field_of_view(90.0, 3000, 4000) == pytest.approx(2000.0)

    def test_narrower_is_longer(self):
        assert focal_from_field_of_view(45.0, 4000, 3000) > focal_from_field_of_view(90.0, 4000, 3000)
