"""Type definitions and schema for the camerainit intrinsic initialization system.

This module defines all dataclasses, enums, type aliases, and custom exceptions
used throughout the library. No validation is performed at runtime beyond enum
parsing; shapes and units are documented in docstrings.

Conventions:
- Focal lengths in millimeters are physical lens values read from metadata
- Focal lengths in pixels are expressed in units of the image width
- Principal point is (x, y) in pixels, origin at the top-left image corner
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional
import math
import hashlib

import numpy as np
from numpy.typing import NDArray

# Type aliases
Mat3 = NDArray[np.float64]  # shape (3, 3)
Vec2 = tuple[float, float]

# Metadata keys, looked up case-insensitively
MAKE_KEYS = ("Make", "cameraMake", "camera make")
MODEL_KEYS = ("Model", "cameraModel", "camera model")
FOCAL_LENGTH_KEYS = ("Exif:FocalLength", "FocalLength")
FOCAL_35MM_KEYS = ("Exif:FocalLengthIn35mmFilm", "FocalLengthIn35mmFilm")
BODY_SERIAL_KEYS = ("Exif:BodySerialNumber", "BodySerialNumber")
LENS_SERIAL_KEYS = ("Exif:LensSerialNumber", "LensSerialNumber")
PIXEL_X_DIMENSION_KEYS = ("Exif:PixelXDimension", "PixelXDimension")
PIXEL_Y_DIMENSION_KEYS = ("Exif:PixelYDimension", "PixelYDimension")


class CameraModel(str, Enum):
    """Closed set of supported camera models.

    Every member is a pinhole projection with a model-specific distortion
    term; the value is the tag written to scene files.
    """
    PINHOLE = "pinhole"
    RADIAL1 = "radial1"
    RADIAL3 = "radial3"
    BROWN = "brown"
    FISHEYE4 = "fisheye4"
    FISHEYE1 = "fisheye1"

    @classmethod
    def from_string(cls, name: str) -> CameraModel:
        """Parse a camera model tag (case-insensitive).

        Raises:
            InvalidConfigurationError: If the tag names no known model
        """
        key = name.strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise InvalidConfigurationError(
            f"Unknown camera model '{name}'. "
            f"Expected one of: {', '.join(m.value for m in cls)}"
        )

    @property
    def num_distortion_params(self) -> int:
        """Number of distortion coefficients carried by this model."""
        return _DISTORTION_PARAM_COUNT[self]

    @property
    def is_pinhole_family(self) -> bool:
        """True if the model exposes focal length and principal point."""
        return self in _PINHOLE_FAMILY

    @property
    def is_fisheye(self) -> bool:
        return self in (CameraModel.FISHEYE4, CameraModel.FISHEYE1)


_DISTORTION_PARAM_COUNT = {
    CameraModel.PINHOLE: 0,
    CameraModel.RADIAL1: 1,
    CameraModel.RADIAL3: 3,
    CameraModel.BROWN: 5,  # k1, k2, k3, t1, t2
    CameraModel.FISHEYE4: 4,
    CameraModel.FISHEYE1: 1,
}

_PINHOLE_FAMILY = frozenset(CameraModel)


class InitializationMode(str, Enum):
    """How the initial focal length of an intrinsic was obtained."""
    FROM_DEFAULT_FOV = "from_default_fov"
    COMPUTED = "computed"  # sensor database + focal length metadata
    ESTIMATED = "estimated"  # 35mm-equivalent focal length metadata
    UNKNOWN = "unknown"  # loaded from a scene file without a mode


class GroupingMode(int, Enum):
    """Intrinsic sharing policy.

    NEVER_SHARE: every view gets its own intrinsic
    METADATA: views share intrinsics with identical resolved parameters
    METADATA_OR_FOLDER: as METADATA, and views without make/model metadata
        are grouped by containing folder
    """
    NEVER_SHARE = 0
    METADATA = 1
    METADATA_OR_FOLDER = 2


def _parse_positive_float(value: str | None) -> float | None:
    """Return value as a finite positive float, or None."""
    if value is None:
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(number) or number <= 0.0:
        return None
    return number


@dataclass
class View:
    """A single input image.

    Attributes:
        view_id: Unique view identifier
        image_path: Path to the image file
        width: Image width in pixels
        height: Image height in pixels
        metadata: Raw image metadata (EXIF-like key/value strings)
        intrinsic_id: Identifier of the assigned Intrinsic, None if undefined
        rig_id: Identifier of the rig this view belongs to, None if not in a rig
        sub_pose_id: Index of the rig camera that took this view
        frame_id: Index of the synchronized rig capture
    """
    view_id: int
    image_path: str
    width: int
    height: int
    metadata: dict[str, str] = field(default_factory=dict)
    intrinsic_id: Optional[int] = None
    rig_id: Optional[int] = None
    sub_pose_id: Optional[int] = None
    frame_id: Optional[int] = None

    def get_metadata(self, keys: tuple[str, ...]) -> str:
        """Return the first metadata value matching any of keys, or "".

        Matching is case-insensitive.
        """
        lowered = {k.lower(): v for k, v in self.metadata.items()}
        for key in keys:
            value = lowered.get(key.lower())
            if value is not None:
                return value
        return ""

    @property
    def make(self) -> str:
        return self.get_metadata(MAKE_KEYS).strip()

    @property
    def model(self) -> str:
        return self.get_metadata(MODEL_KEYS).strip()

    @property
    def has_camera_metadata(self) -> bool:
        """True if the view has a camera make or model."""
        return bool(self.make or self.model)

    @property
    def focal_length_mm(self) -> float | None:
        """Focal length in millimeters from metadata, None if absent."""
        return _parse_positive_float(self.get_metadata(FOCAL_LENGTH_KEYS))

    @property
    def focal_length_35mm(self) -> float | None:
        """35mm-equivalent focal length from metadata, None if absent."""
        return _parse_positive_float(self.get_metadata(FOCAL_35MM_KEYS))

    @property
    def serial_number(self) -> str:
        """Concatenated body and lens serial numbers."""
        return self.get_metadata(BODY_SERIAL_KEYS) + self.get_metadata(LENS_SERIAL_KEYS)

    @property
    def metadata_image_size(self) -> tuple[int, int] | None:
        """Image (width, height) recorded in metadata, None if absent."""
        w = _parse_positive_float(self.get_metadata(PIXEL_X_DIMENSION_KEYS))
        h = _parse_positive_float(self.get_metadata(PIXEL_Y_DIMENSION_KEYS))
        if w is None or h is None:
            return None
        return int(w), int(h)

    @property
    def aspect_ratio(self) -> float:
        """Image width divided by height."""
        return float(self.width) / float(self.height)

    @property
    def is_part_of_rig(self) -> bool:
        return self.rig_id is not None and self.sub_pose_id is not None


@dataclass(frozen=True)
class SensorDatasheet:
    """Sensor database entry.

    Attributes:
        brand: Camera brand as stored in the database
        model: Camera model as stored in the database
        sensor_width: Physical sensor width in millimeters
    """
    brand: str
    model: str
    sensor_width: float  # mm


@dataclass
class Intrinsic:
    """Initial intrinsic parameters of a camera.

    Attributes:
        camera_model: Camera model tag
        width: Image width in pixels
        height: Image height in pixels
        focal_length_pix: Focal length in pixels, <= 0 if unknown
        principal_point: (x, y) in pixels
        distortion_params: Distortion coefficients, length given by the model
        serial_number: Grouping discriminator (body/lens serial, folder, rig camera)
        initialization_mode: How the focal length was obtained
    """
    camera_model: CameraModel
    width: int
    height: int
    focal_length_pix: float
    principal_point: Vec2
    distortion_params: list[float] = field(default_factory=list)
    serial_number: str = ""
    initialization_mode: InitializationMode = InitializationMode.FROM_DEFAULT_FOV

    @property
    def is_complete(self) -> bool:
        """True if the intrinsic has a usable focal length."""
        return self.camera_model.is_pinhole_family and self.focal_length_pix > 0

    @property
    def K(self) -> Mat3:
        """3x3 intrinsic matrix.

        Raises:
            TypeError: If the camera model is not a pinhole-family model
        """
        if not self.camera_model.is_pinhole_family:
            raise TypeError(f"Camera model '{self.camera_model.value}' has no K matrix")
        f = self.focal_length_pix
        cx, cy = self.principal_point
        return np.array([[f, 0.0, cx], [0.0, f, cy], [0.0, 0.0, 1.0]], dtype=np.float64)

    def hash_value(self) -> int:
        """Content hash of the defining fields.

        Two intrinsics hash identically iff model, image size, focal length,
        principal point, distortion and serial number are all identical.
        The value is stable across runs and platforms.

        Returns:
            Non-negative integer identifier (60 bits)
        """
        hash_input = (
            f"{self.camera_model.value};{self.width};{self.height};"
            f"{self.focal_length_pix!r};{self.principal_point[0]!r};{self.principal_point[1]!r};"
            f"{','.join(repr(float(d)) for d in self.distortion_params)};"
            f"{self.serial_number}"
        )
        return int(hashlib.md5(hash_input.encode()).hexdigest()[:15], 16)


@dataclass
class Rig:
    """A multi-camera rig.

    Attributes:
        rig_id: Rig identifier
        nb_sub_poses: Number of cameras in the rig
    """
    rig_id: int
    nb_sub_poses: int


@dataclass
class SceneData:
    """Views, intrinsics and rigs of a photo collection.

    Attributes:
        views: Dict mapping view id to View
        intrinsics: Dict mapping intrinsic id to Intrinsic
        rigs: Dict mapping rig id to Rig
    """
    views: dict[int, View] = field(default_factory=dict)
    intrinsics: dict[int, Intrinsic] = field(default_factory=dict)
    rigs: dict[int, Rig] = field(default_factory=dict)

    def get_intrinsic(self, view: View) -> Intrinsic | None:
        """Return the intrinsic assigned to view, None if undefined or missing."""
        if view.intrinsic_id is None:
            return None
        return self.intrinsics.get(view.intrinsic_id)


@dataclass
class CameraInitConfig:
    """Input configuration for the intrinsic initialization pipeline.

    Attributes:
        scene_path: Input scene file listing views (and optionally intrinsics).
            None when views are read from image_folder_path.
        sensor_database_path: Camera sensor width database file
        output_path: Output scene file path
        default_focal_length_pix: Focal length override in pixels. Mutually
            exclusive with default_field_of_view and default_intrinsic.
        default_field_of_view: Field of view override in degrees
        default_intrinsic: K matrix string "f;0;ppx;0;f;ppy;0;0;1"
        default_camera_model: Camera model used for every new intrinsic.
            None selects a model from the focal length.
        group_camera_model: Intrinsic sharing policy
        allow_incomplete_output: Permit views without an intrinsic and unknown
            sensors. The output then needs post-processing.
        allow_single_view: Require only one complete view instead of two
        num_workers: Number of parallel workers for the per-view pass
        image_folder_path: Image folder (or single image) to build views from
        metadata_provider: Entry point "module:attribute" of the
            ViewMetadataProvider used with image_folder_path
    """
    scene_path: Path | None
    sensor_database_path: Path
    output_path: Path
    default_focal_length_pix: float | None = None
    default_field_of_view: float | None = None  # degrees
    default_intrinsic: str | None = None
    default_camera_model: CameraModel | None = None
    group_camera_model: GroupingMode = GroupingMode.METADATA_OR_FOLDER
    allow_incomplete_output: bool = False
    allow_single_view: bool = False
    num_workers: int | None = None  # None = os.cpu_count()
    image_folder_path: Path | None = None
    metadata_provider: str | None = None


# --- Custom Exceptions ---

class CameraInitError(Exception):
    """Base class for intrinsic initialization errors."""
    pass


class InvalidConfigurationError(CameraInitError, ValueError):
    """Raised when configuration options conflict or are malformed."""
    pass


class NoInputViewsError(CameraInitError):
    """Raised when the input contains no views."""
    pass


class UnknownSensorError(CameraInitError):
    """Raised when camera make/model are missing from the sensor database."""
    pass


class InvalidRigStructureError(CameraInitError):
    """Raised when a detected rig has missing or unbalanced sub-poses."""
    pass


class InsufficientCompleteViewsError(CameraInitError):
    """Raised when too few views have an initialized intrinsic."""
    pass
