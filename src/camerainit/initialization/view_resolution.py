"""Per-view intrinsic resolution.

resolve_view() runs in a worker thread. It reads the view and the shared
read-only inputs and returns a ViewOutcome; it never writes shared state.
Outcomes are merged single-threaded after all workers finish.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from camerainit.config.schema import (
    InitializationMode,
    Intrinsic,
    SensorDatasheet,
    View,
)
from camerainit.core.focal import estimate_from_focal_35mm
from camerainit.core.grouping import IntrinsicGroupingPolicy
from camerainit.core.intrinsic import IntrinsicDefaults, build_view_intrinsic, is_resized
from camerainit.core.rig import RigObservation, detect_rig
from camerainit.core.sensor_db import find_sensor


@dataclass
class ViewOutcome:
    """Result of resolving one view.

    Attributes:
        view_id: Resolved view
        image_path: Image path of the view
        make: Camera make from metadata
        model: Camera model from metadata
        rig: Rig membership, None for single images
        rig_warning: Message if the path looked like a rig path but was invalid
        reused_intrinsic: True if the view already had a complete intrinsic
        intrinsic: Newly built intrinsic, None if reused or left undefined
        complete: True if the view ends with a positive focal length
        sensor_missing: True if no sensor width could be resolved
        unsure_datasheet: Matched datasheet whose model differs from the metadata
        focal_35mm_estimate: (sensor width, focal length) if estimated from
            35mm-equivalent metadata
        resize_warning: Message if the image was resized after capture
    """
    view_id: int
    image_path: str
    make: str = ""
    model: str = ""
    rig: RigObservation | None = None
    rig_warning: str | None = None
    reused_intrinsic: bool = False
    intrinsic: Intrinsic | None = None
    complete: bool = False
    sensor_missing: bool = False
    unsure_datasheet: SensorDatasheet | None = None
    focal_35mm_estimate: tuple[float, float] | None = None
    resize_warning: str | None = None

    @property
    def has_camera_metadata(self) -> bool:
        return bool(self.make or self.model)

    @property
    def undefined_intrinsic(self) -> bool:
        """True if the view is left without an intrinsic."""
        return not self.reused_intrinsic and self.intrinsic is None


def resolve_view(
    view: View,
    existing_intrinsics: dict[int, Intrinsic],
    sensor_database: Sequence[SensorDatasheet],
    defaults: IntrinsicDefaults,
    policy: IntrinsicGroupingPolicy,
    allow_incomplete_output: bool = False,
) -> ViewOutcome:
    """
    Resolve the rig membership and initial intrinsic of one view.

    Steps:
    1. Detect rig membership from the image path
    2. Reuse the view's intrinsic if it is already complete
    3. Look up the sensor width, then fill gaps from 35mm-equivalent metadata
    4. If no sensor width was found, record it; with incomplete output
       allowed, leave the intrinsic undefined
    5. Build the intrinsic and apply grouping serial overrides

    Args:
        view: View to resolve (not modified)
        existing_intrinsics: Intrinsics loaded with the views (read-only)
        sensor_database: Sensor database entries
        defaults: User overrides
        policy: Grouping policy (only its serial overrides are applied here)
        allow_incomplete_output: Leave views without sensor width undefined

    Returns:
        ViewOutcome for the view
    """
    make = view.make
    model = view.model
    outcome = ViewOutcome(view_id=view.view_id, image_path=view.image_path, make=make, model=model)

    rig_result = detect_rig(view.image_path)
    outcome.rig = rig_result.observation
    outcome.rig_warning = rig_result.warning

    if view.intrinsic_id is not None:
        existing = existing_intrinsics.get(view.intrinsic_id)
        if existing is not None and existing.is_complete:
            outcome.reused_intrinsic = True
            outcome.complete = True
            return outcome

    init_mode = InitializationMode.FROM_DEFAULT_FOV
    sensor_width = None
    focal_length = view.focal_length_mm

    if outcome.has_camera_metadata:
        match = find_sensor(make, model, sensor_database)
        if match is not None:
            if match.unsure:
                outcome.unsure_datasheet = match.datasheet
            sensor_width = match.sensor_width
            if focal_length is not None:
                init_mode = InitializationMode.COMPUTED

    estimate = estimate_from_focal_35mm(
        sensor_width, focal_length, view.focal_length_35mm, view.aspect_ratio
    )
    if estimate.contributed:
        sensor_width = estimate.sensor_width
        focal_length = estimate.focal_length
        outcome.focal_35mm_estimate = (sensor_width, focal_length)
        init_mode = InitializationMode.ESTIMATED

    if sensor_width is None:
        outcome.sensor_missing = True
        if allow_incomplete_output:
            return outcome

    if is_resized(view):
        exif_w, exif_h = view.metadata_image_size
        outcome.resize_warning = (
            f"Resized image detected: {view.image_path} "
            f"(real size {view.width}x{view.height}, metadata size {exif_w}x{exif_h})"
        )

    intrinsic = build_view_intrinsic(view, focal_length, sensor_width, defaults, init_mode)

    # Rig tags are needed by the serial overrides
    tagged = view
    if outcome.rig is not None:
        tagged = replace(
            view,
            rig_id=outcome.rig.rig_id,
            sub_pose_id=outcome.rig.sub_pose_id,
            frame_id=outcome.rig.frame_id,
        )
    policy.apply_serial_overrides(intrinsic, tagged)

    outcome.intrinsic = intrinsic
    outcome.complete = intrinsic.is_complete
    return outcome
