"""Configuration and schema definitions."""

from camerainit.config.schema import (
    CameraInitConfig,
    CameraInitError,
    CameraModel,
    GroupingMode,
    InitializationMode,
    Intrinsic,
    InsufficientCompleteViewsError,
    InvalidConfigurationError,
    InvalidRigStructureError,
    NoInputViewsError,
    Rig,
    SceneData,
    SensorDatasheet,
    UnknownSensorError,
    View,
)

__all__ = [
    # Dataclasses
    "View",
    "SensorDatasheet",
    "Intrinsic",
    "Rig",
    "SceneData",
    "CameraInitConfig",
    # Enums
    "CameraModel",
    "GroupingMode",
    "InitializationMode",
    # Exceptions
    "CameraInitError",
    "InvalidConfigurationError",
    "NoInputViewsError",
    "UnknownSensorError",
    "InvalidRigStructureError",
    "InsufficientCompleteViewsError",
]
