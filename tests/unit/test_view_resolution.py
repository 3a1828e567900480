"""Tests for per-view intrinsic resolution."""

import pytest

from camerainit.config.schema import (
    CameraModel,
    GroupingMode,
    InitializationMode,
    Intrinsic,
    SensorDatasheet,
    View,
)
from camerainit.core.grouping import IntrinsicGroupingPolicy
from camerainit.core.intrinsic import IntrinsicDefaults
from camerainit.initialization.view_resolution import ViewOutcome, resolve_view


@pytest.fixture
def database():
    return [
        SensorDatasheet("Canon", "EOS 5D", 36.0),
        SensorDatasheet("Canon", "Canon EOS 5D Mark II", 36.0),
    ]


@pytest.fixture
def policy():
    return IntrinsicGroupingPolicy(GroupingMode.METADATA_OR_FOLDER)


def _resolve(view, database, policy, existing=None, defaults=None, allow_incomplete_output=False):
    return resolve_view(
        view,
        existing_intrinsics=existing or {},
        sensor_database=database,
        defaults=defaults or IntrinsicDefaults(),
        policy=policy,
        allow_incomplete_output=allow_incomplete_output,
    )


class TestSensorLookup:
    def test_computed_from_database(self, database, policy):
        view = View(1, "/data/a.jpg", 5760, 3840, metadata={
            "Make": "Canon", "Model": "EOS 5D", "FocalLength": "50",
        })
        outcome = _resolve(view, database, policy)

        assert isinstance(outcome, ViewOutcome)
        assert outcome.complete
        assert outcome.intrinsic.focal_length_pix == pytest.approx(8000.0)
        assert outcome.intrinsic.initialization_mode == InitializationMode.COMPUTED
        assert outcome.unsure_datasheet is None
        assert outcome.focal_35mm_estimate is None
        assert not outcome.sensor_missing

    def test_unsure_match_recorded(self, database, policy):
        view = View(1, "/data/a.jpg", 5760, 3840, metadata={
            "Make": "Canon", "Model": "5D", "FocalLength": "50",
        })
        outcome = _resolve(view, database, policy)
        assert outcome.unsure_datasheet == database[0]
        assert outcome.complete

    def test_sensor_width_without_focal(self, database, policy):
        view = View(1, "/data/a.jpg", 5760, 3840, metadata={"Make": "Canon", "Model": "EOS 5D"})
        outcome = _resolve(view, database, policy)
        assert not outcome.sensor_missing
        assert not outcome.complete
        assert outcome.intrinsic.initialization_mode == InitializationMode.FROM_DEFAULT_FOV

    def test_unknown_camera(self, database, policy):
        view = View(1, "/data/a.jpg", 4000, 3000, metadata={
            "Make": "Acme", "Model": "Z 100", "FocalLength": "8",
        })
        outcome = _resolve(view, database, policy)
        assert outcome.sensor_missing
        assert outcome.has_camera_metadata
        assert outcome.intrinsic is not None
        assert outcome.intrinsic.focal_length_pix == -1.0
        assert not outcome.complete

    def test_unknown_camera_incomplete_output(self, database, policy):
        view = View(1, "/data/a.jpg", 4000, 3000, metadata={"Make": "Acme", "Model": "Z 100"})
        outcome = _resolve(view, database, policy, allow_incomplete_output=True)
        assert outcome.sensor_missing
        assert outcome.intrinsic is None
        assert outcome.undefined_intrinsic


class TestFocal35mmEstimation:
    def test_ratio_only_estimate(self, database, policy):
        """No make/model: full-frame diagonal at the image ratio."""
        view = View(1, "/data/a.jpg", 5760, 3840, metadata={"FocalLengthIn35mmFilm": "35"})
        outcome = _resolve(view, database, policy)

        sensor_width, focal_length = outcome.focal_35mm_estimate
        assert sensor_width == pytest.approx(36.0)
        assert focal_length == pytest.approx(35.0)
        assert outcome.intrinsic.initialization_mode == InitializationMode.ESTIMATED
        assert outcome.intrinsic.focal_length_pix == pytest.approx(5600.0)
        assert not outcome.sensor_missing
        assert outcome.complete

    def test_estimate_with_unknown_camera(self, database, policy):
        view = View(1, "/data/a.jpg", 4000, 3000, metadata={
            "Make": "Acme", "Model": "Z 100", "FocalLength": "8", "FocalLengthIn35mmFilm": "40",
        })
        outcome = _resolve(view, database, policy)
        assert not outcome.sensor_missing
        assert outcome.complete
        assert outcome.intrinsic.initialization_mode == InitializationMode.ESTIMATED

    def test_database_wins_when_complete(self, database, policy):
        view = View(1, "/data/a.jpg", 5760, 3840, metadata={
            "Make": "Canon", "Model": "EOS 5D", "FocalLength": "50", "FocalLengthIn35mmFilm": "50",
        })
        outcome = _resolve(view, database, policy)
        assert outcome.focal_35mm_estimate is None
        assert outcome.intrinsic.initialization_mode == InitializationMode.COMPUTED


class TestExistingIntrinsic:
    def test_complete_intrinsic_reused(self, database, policy):
        existing = Intrinsic(CameraModel.PINHOLE, 4000, 3000, 3000.0, (2000.0, 1500.0))
        view = View(1, "/data/a.jpg", 4000, 3000, intrinsic_id=42)
        outcome = _resolve(view, database, policy, existing={42: existing})
        assert outcome.reused_intrinsic
        assert outcome.complete
        assert outcome.intrinsic is None
        assert not outcome.undefined_intrinsic

    def test_incomplete_intrinsic_rebuilt(self, database, policy):
        existing = Intrinsic(CameraModel.PINHOLE, 4000, 3000, -1.0, (2000.0, 1500.0))
        view = View(1, "/data/a.jpg", 4000, 3000, intrinsic_id=42)
        defaults = IntrinsicDefaults(focal_length_pix=2500.0)
        outcome = _resolve(view, database, policy, existing={42: existing}, defaults=defaults)
        assert not outcome.reused_intrinsic
        assert outcome.intrinsic.focal_length_pix == 2500.0


class TestRigAndOverrides:
    def test_rig_view(self, database, policy):
        view = View(1, "/data/rig/1/000003.jpg", 1920, 1080)
        defaults = IntrinsicDefaults(focal_length_pix=1000.0)
        outcome = _resolve(view, database, policy, defaults=defaults)

        assert outcome.rig.sub_pose_id == 1
        assert outcome.rig.frame_id == 3
        assert outcome.intrinsic.serial_number == f"no_metadata_rig_{outcome.rig.rig_id}_1"
        # Input view untouched
        assert view.rig_id is None
        assert view.sub_pose_id is None

    def test_invalid_rig_warning(self, database, policy):
        view = View(1, "/data/rig/left/000003.jpg", 1920, 1080)
        outcome = _resolve(view, database, policy)
        assert outcome.rig is None
        assert "Invalid rig structure" in outcome.rig_warning

    def test_folder_serial(self, database, policy):
        view = View(1, "/data/video1/frame_1.jpg", 1920, 1080)
        outcome = _resolve(view, database, policy)
        assert outcome.intrinsic.serial_number == "/data/video1"

    def test_resize_warning(self, database, policy):
        view = View(1, "/data/a.jpg", 2880, 1920, metadata={
            "Make": "Canon", "Model": "EOS 5D", "FocalLength": "50",
            "PixelXDimension": "5760", "PixelYDimension": "3840",
        })
        outcome = _resolve(view, database, policy)
        assert "Resized image detected" in outcome.resize_warning
        assert outcome.intrinsic.camera_model == CameraModel.PINHOLE
        assert outcome.intrinsic.focal_length_pix == pytest.approx(4000.0)
