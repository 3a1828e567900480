"""Tests for initial intrinsic construction."""

import math

import pytest

from camerainit.config.schema import (
    CameraModel,
    InitializationMode,
    InvalidConfigurationError,
    View,
)
from camerainit.core.intrinsic import (
    GOPRO_DISTORTION,
    IntrinsicDefaults,
    build_view_intrinsic,
    check_default_overrides,
    initial_distortion,
    is_resized,
    make_intrinsic_defaults,
    parse_intrinsic_matrix,
    select_camera_model,
)


class TestParseIntrinsicMatrix:
    def test_valid(self):
        assert parse_intrinsic_matrix("1000;0;960;0;1000;540;0;0;1") == (1000.0, 960.0, 540.0)

    def test_wrong_field_count(self):
        with pytest.raises(InvalidConfigurationError, match="9"):
            parse_intrinsic_matrix("1000;0;960;0;1000;540;0;0")

    def test_non_numeric(self):
        with pytest.raises(InvalidConfigurationError, match="not a number"):
            parse_intrinsic_matrix("f;0;960;0;1000;540;0;0;1")


class TestDefaultOverrides:
    def test_single_override_ok(self):
        check_default_overrides(None, 1200.0, None)
        check_default_overrides(None, None, 70.0)
        check_default_overrides("1000;0;960;0;1000;540;0;0;1", None, None)

    def test_focal_and_fov_conflict(self):
        with pytest.raises(InvalidConfigurationError, match="Cannot combine"):
            check_default_overrides(None, 1200.0, 70.0)

    def test_intrinsic_and_focal_conflict(self):
        with pytest.raises(InvalidConfigurationError):
            check_default_overrides("1000;0;960;0;1000;540;0;0;1", 1200.0, None)

    def test_non_positive_values_are_unset(self):
        check_default_overrides(None, -1.0, 70.0)

    def test_make_defaults_from_matrix(self):
        defaults = make_intrinsic_defaults(default_intrinsic="1000;0;960;0;1000;540;0;0;1")
        assert defaults.focal_length_pix == 1000.0
        assert defaults.principal_point == (960.0, 540.0)
        assert defaults.field_of_view is None

    def test_make_defaults_matrix_without_principal_point(self):
        defaults = make_intrinsic_defaults(default_intrinsic="1000;0;0;0;1000;0;0;0;1")
        assert defaults.focal_length_pix == 1000.0
        assert defaults.principal_point is None

    def test_make_defaults_passthrough(self):
        defaults = make_intrinsic_defaults(
            default_field_of_view=70.0, default_camera_model=CameraModel.BROWN
        )
        assert defaults.field_of_view == 70.0
        assert defaults.focal_length_pix is None
        assert defaults.camera_model == CameraModel.BROWN


class TestIsResized:
    def test_no_metadata_size(self):
        assert not is_resized(View(0, "a.jpg", 3000, 2000))

    def test_same_size(self):
        view = View(0, "a.jpg", 6000, 4000, metadata={"PixelXDimension": "6000", "PixelYDimension": "4000"})
        assert not is_resized(view)

    def test_rotated_is_not_resized(self):
        view = View(0, "a.jpg", 4000, 6000, metadata={"PixelXDimension": "6000", "PixelYDimension": "4000"})
        assert not is_resized(view)

    def test_resized(self):
        view = View(0, "a.jpg", 3000, 2000, metadata={"PixelXDimension": "6000", "PixelYDimension": "4000"})
        assert is_resized(view)


class TestSelectCameraModel:
    def test_default_radial3(self):
        assert select_camera_model(View(0, "a.jpg", 4000, 3000), 35.0, IntrinsicDefaults()) == CameraModel.RADIAL3

    def test_unknown_focal_radial3(self):
        assert select_camera_model(View(0, "a.jpg", 4000, 3000), None, IntrinsicDefaults()) == CameraModel.RADIAL3

    def test_short_focal_fisheye(self):
        assert select_camera_model(View(0, "a.jpg", 4000, 3000), 14.0, IntrinsicDefaults()) == CameraModel.FISHEYE4

    def test_wide_default_fov_fisheye(self):
        defaults = IntrinsicDefaults(field_of_view=120.0)
        assert select_camera_model(View(0, "a.jpg", 4000, 3000), None, defaults) == CameraModel.FISHEYE4

    def test_configured_default_wins_over_fisheye(self):
        defaults = IntrinsicDefaults(camera_model=CameraModel.PINHOLE)
        assert select_camera_model(View(0, "a.jpg", 4000, 3000), 14.0, defaults) == CameraModel.PINHOLE

    def test_resized_is_pinhole(self):
        view = View(0, "a.jpg", 3000, 2000, metadata={"PixelXDimension": "6000", "PixelYDimension": "4000"})
        defaults = IntrinsicDefaults(camera_model=CameraModel.BROWN)
        assert select_camera_model(view, 14.0, defaults) == CameraModel.PINHOLE

    def test_custom_make(self):
        view = View(0, "a.jpg", 4000, 3000, metadata={"Make": "Custom", "Model": "fisheye1"})
        assert select_camera_model(view, 50.0, IntrinsicDefaults()) == CameraModel.FISHEYE1

    def test_custom_make_invalid_model(self):
        view = View(0, "a.jpg", 4000, 3000, metadata={"Make": "Custom", "Model": "MyCam"})
        with pytest.raises(InvalidConfigurationError):
            select_camera_model(view, 50.0, IntrinsicDefaults())


class TestInitialDistortion:
    def test_zeros(self):
        assert initial_distortion(CameraModel.BROWN, "Canon") == [0.0] * 5
        assert initial_distortion(CameraModel.PINHOLE, "Canon") == []

    def test_gopro(self):
        assert initial_distortion(CameraModel.FISHEYE4, "GoPro") == GOPRO_DISTORTION[CameraModel.FISHEYE4]
        assert initial_distortion(CameraModel.FISHEYE1, "GoPro") == [1.04]

    def test_gopro_non_fisheye(self):
        assert initial_distortion(CameraModel.RADIAL3, "GoPro") == [0.0, 0.0, 0.0]

    def test_returns_copy(self):
        params = initial_distortion(CameraModel.FISHEYE4, "GoPro")
        params[0] = 99.0
        assert GOPRO_DISTORTION[CameraModel.FISHEYE4][0] != 99.0


class TestBuildViewIntrinsic:
    def test_focal_from_sensor_width(self):
        view = View(0, "a.jpg", 5760, 3840, metadata={"Make": "Canon", "Model": "EOS 5D"})
        intrinsic = build_view_intrinsic(
            view, 50.0, 36.0, IntrinsicDefaults(), InitializationMode.COMPUTED
        )
        assert intrinsic.focal_length_pix == pytest.approx(8000.0)
        assert intrinsic.principal_point == (2880.0, 1920.0)
        assert intrinsic.camera_model == CameraModel.RADIAL3
        assert intrinsic.distortion_params == [0.0, 0.0, 0.0]
        assert intrinsic.initialization_mode == InitializationMode.COMPUTED
        assert (intrinsic.width, intrinsic.height) == (5760, 3840)
        assert intrinsic.is_complete

    @pytest.mark.parametrize("focal, sensor", [(None, 36.0), (50.0, None), (None, None)])
    def test_unknown_focal(self, focal, sensor):
        intrinsic = build_view_intrinsic(View(0, "a.jpg", 4000, 3000), focal, sensor, IntrinsicDefaults())
        assert intrinsic.focal_length_pix == -1.0
        assert not intrinsic.is_complete

    def test_default_focal_overrides(self):
        defaults = IntrinsicDefaults(focal_length_pix=1234.0)
        intrinsic = build_view_intrinsic(View(0, "a.jpg", 5760, 3840), 50.0, 36.0, defaults)
        assert intrinsic.focal_length_pix == 1234.0

    def test_default_fov(self):
        defaults = IntrinsicDefaults(field_of_view=90.0)
        intrinsic = build_view_intrinsic(View(0, "a.jpg", 4000, 3000), None, None, defaults)
        assert intrinsic.focal_length_pix == pytest.approx(2000.0)
        assert intrinsic.initialization_mode == InitializationMode.FROM_DEFAULT_FOV

    def test_wide_default_fov(self):
        defaults = IntrinsicDefaults(field_of_view=120.0)
        intrinsic = build_view_intrinsic(View(0, "a.jpg", 4000, 3000), None, None, defaults)
        assert intrinsic.camera_model == CameraModel.FISHEYE4
        assert intrinsic.focal_length_pix == pytest.approx(2000.0 / math.tan(math.radians(60.0)))

    def test_default_principal_point(self):
        defaults = IntrinsicDefaults(focal_length_pix=1000.0, principal_point=(950.0, 530.0))
        intrinsic = build_view_intrinsic(View(0, "a.jpg", 1920, 1080), None, None, defaults)
        assert intrinsic.principal_point == (950.0, 530.0)

    def test_short_computed_focal_selects_fisheye(self):
        """35mm equivalent computed from focal and sensor width, below 18 mm."""
        view = View(0, "a.jpg", 4000, 3000, metadata={"Make": "Acme", "Model": "W1"})
        intrinsic = build_view_intrinsic(view, 2.0, 6.17, IntrinsicDefaults())
        assert intrinsic.camera_model == CameraModel.FISHEYE4
        assert intrinsic.distortion_params == [0.0] * 4

    def test_gopro_fisheye(self):
        view = View(0, "a.jpg", 4000, 3000, metadata={
            "Make": "GoPro",
            "Model": "HERO4 Black",
            "FocalLengthIn35mmFilm": "15",
        })
        intrinsic = build_view_intrinsic(view, 3.0, 6.17, IntrinsicDefaults())
        assert intrinsic.camera_model == CameraModel.FISHEYE4
        assert intrinsic.distortion_params == GOPRO_DISTORTION[CameraModel.FISHEYE4]

    def test_resized_is_pinhole(self):
        view = View(0, "a.jpg", 3000, 2000, metadata={"PixelXDimension": "6000", "PixelYDimension": "4000"})
        intrinsic = build_view_intrinsic(view, 50.0, 36.0, IntrinsicDefaults())
        assert intrinsic.camera_model == CameraModel.PINHOLE
        assert intrinsic.distortion_params == []
        assert intrinsic.focal_length_pix == pytest.approx(50.0 * 3000 / 36.0)

    def test_serial_number_from_metadata(self):
        view = View(0, "a.jpg", 4000, 3000, metadata={
            "BodySerialNumber": "123",
            "LensSerialNumber": "456",
        })
        intrinsic = build_view_intrinsic(view, None, None, IntrinsicDefaults())
        assert intrinsic.serial_number == "123456"
