"""Core per-view resolution modules."""

from camerainit.core.focal import (
    estimate_from_focal_35mm,
    focal_from_field_of_view,
)
from camerainit.core.grouping import (
    IntrinsicGroupingPolicy,
    SequentialIdentityGenerator,
)
from camerainit.core.intrinsic import (
    IntrinsicDefaults,
    build_view_intrinsic,
    make_intrinsic_defaults,
    parse_intrinsic_matrix,
)
from camerainit.core.rig import RigObservation, detect_rig, validate_rigs
from camerainit.core.sensor_db import SensorMatch, find_sensor

__all__ = [
    "find_sensor",
    "SensorMatch",
    "estimate_from_focal_35mm",
    "focal_from_field_of_view",
    "IntrinsicDefaults",
    "build_view_intrinsic",
    "make_intrinsic_defaults",
    "parse_intrinsic_matrix",
    "IntrinsicGroupingPolicy",
    "SequentialIdentityGenerator",
    "RigObservation",
    "detect_rig",
    "validate_rigs",
]
