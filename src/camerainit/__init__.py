"""camerainit: Initial camera intrinsics for photo collections."""

from importlib.metadata import version as _get_version

__version__ = _get_version("camerainit")

# Core types
from camerainit.config.schema import (  # noqa: E402
    CameraInitConfig,
    CameraInitError,
    CameraModel,
    GroupingMode,
    Intrinsic,
    Rig,
    SceneData,
    SensorDatasheet,
    View,
)

# Run initialization
from camerainit.initialization.pipeline import (  # noqa: E402
    initialize_scene,
    load_config,
    run_camera_init,
)

# Load/save scenes and sensor databases
from camerainit.io.sensor_database import load_sensor_database  # noqa: E402
from camerainit.io.serialization import load_scene, save_scene  # noqa: E402

__all__ = [
    "__version__",
    # Load/save
    "load_scene",
    "save_scene",
    "load_sensor_database",
    # Core types
    "View",
    "SensorDatasheet",
    "Intrinsic",
    "Rig",
    "SceneData",
    "CameraInitConfig",
    "CameraModel",
    "GroupingMode",
    "CameraInitError",
    # Run initialization
    "initialize_scene",
    "run_camera_init",
    "load_config",
]
