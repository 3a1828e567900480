"""Construction of initial camera intrinsics from resolved view data."""

from __future__ import annotations

from dataclasses import dataclass

from camerainit.config.schema import (
    CameraModel,
    InitializationMode,
    Intrinsic,
    InvalidConfigurationError,
    View,
)
from camerainit.core.focal import focal_35mm_equivalent, focal_from_field_of_view

# Below this 35mm-equivalent focal length (or above this default field of
# view) new intrinsics default to a fisheye model.
FISHEYE_MAX_FOCAL_35MM = 18.0
FISHEYE_MIN_FIELD_OF_VIEW = 100.0

# Brand value whose model string names the camera model directly
CUSTOM_BRAND = "Custom"

# Known initial distortion for GoPro fisheye lenses
GOPRO_DISTORTION = {
    CameraModel.FISHEYE4: [0.0524, 0.0094, -0.0037, -0.0004],
    CameraModel.FISHEYE1: [1.04],
}


@dataclass
class IntrinsicDefaults:
    """User overrides applied to every newly built intrinsic.

    Attributes:
        focal_length_pix: Focal length in pixels, None if unset
        field_of_view: Field of view in degrees, None if unset
        principal_point: (x, y) in pixels, None for the image center
        camera_model: Camera model, None to choose from the focal length
    """
    focal_length_pix: float | None = None
    field_of_view: float | None = None
    principal_point: tuple[float, float] | None = None
    camera_model: CameraModel | None = None


def parse_intrinsic_matrix(text: str) -> tuple[float, float, float]:
    """
    Parse a K matrix string "f;0;ppx;0;f;ppy;0;0;1".

    Args:
        text: Nine semicolon-separated numbers, row-major

    Returns:
        Tuple of (focal_length_pix, ppx, ppy)

    Raises:
        InvalidConfigurationError: If the string does not have exactly nine
            fields or a field is not a number
    """
    fields = text.split(";")
    if len(fields) != 9:
        raise InvalidConfigurationError(
            f"K matrix string must have 9 ';'-separated values, got {len(fields)}: '{text}'"
        )

    values = []
    for i, value in enumerate(fields):
        try:
            values.append(float(value))
        except ValueError:
            raise InvalidConfigurationError(
                f"K matrix string value {i} is not a number: '{value}'"
            ) from None

    return values[0], values[2], values[5]


def check_default_overrides(
    default_intrinsic: str | None,
    default_focal_length_pix: float | None,
    default_field_of_view: float | None,
) -> None:
    """
    Check that at most one focal length override is set.

    Raises:
        InvalidConfigurationError: If two or more overrides are combined
    """
    given = []
    if default_intrinsic:
        given.append("default_intrinsic")
    if default_focal_length_pix is not None and default_focal_length_pix > 0:
        given.append("default_focal_length_pix")
    if default_field_of_view is not None and default_field_of_view > 0:
        given.append("default_field_of_view")

    if len(given) > 1:
        raise InvalidConfigurationError(
            f"Cannot combine {' and '.join(given)} options"
        )


def make_intrinsic_defaults(
    default_intrinsic: str | None = None,
    default_focal_length_pix: float | None = None,
    default_field_of_view: float | None = None,
    default_camera_model: CameraModel | None = None,
) -> IntrinsicDefaults:
    """
    Validate user overrides and convert them to IntrinsicDefaults.

    A K matrix string sets both the default focal length and the default
    principal point.

    Raises:
        InvalidConfigurationError: If overrides conflict or the K matrix is malformed
    """
    check_default_overrides(default_intrinsic, default_focal_length_pix, default_field_of_view)

    focal_pix = default_focal_length_pix if default_focal_length_pix and default_focal_length_pix > 0 else None
    fov = default_field_of_view if default_field_of_view and default_field_of_view > 0 else None
    principal_point = None

    if default_intrinsic:
        focal_pix, ppx, ppy = parse_intrinsic_matrix(default_intrinsic)
        if ppx > 0 and ppy > 0:
            principal_point = (ppx, ppy)

    return IntrinsicDefaults(
        focal_length_pix=focal_pix,
        field_of_view=fov,
        principal_point=principal_point,
        camera_model=default_camera_model,
    )


def is_resized(view: View) -> bool:
    """True if the metadata image size differs from the real image size.

    A metadata size that is the real size rotated by 90 degrees is not a resize.
    """
    size = view.metadata_image_size
    if size is None:
        return False
    exif_w, exif_h = size
    if exif_w == view.height and exif_h == view.width:
        exif_w, exif_h = exif_h, exif_w
    return exif_w != view.width or exif_h != view.height


def select_camera_model(
    view: View,
    focal_35mm: float | None,
    defaults: IntrinsicDefaults,
) -> CameraModel:
    """
    Choose the camera model of a new intrinsic.

    Order: "Custom" make (model string names the camera model), resized
    image (assumed undistorted, pinhole), configured default, then fisheye
    for very short focal lengths or very wide default field of view, else
    radial3.

    Raises:
        InvalidConfigurationError: If a "Custom" model string is not a camera model
    """
    if view.make == CUSTOM_BRAND:
        return CameraModel.from_string(view.model)
    if is_resized(view):
        return CameraModel.PINHOLE
    if defaults.camera_model is not None:
        return defaults.camera_model

    if (focal_35mm is not None and focal_35mm < FISHEYE_MAX_FOCAL_35MM) or (
        defaults.field_of_view is not None and defaults.field_of_view > FISHEYE_MIN_FIELD_OF_VIEW
    ):
        return CameraModel.FISHEYE4
    return CameraModel.RADIAL3


def initial_distortion(camera_model: CameraModel, make: str) -> list[float]:
    """Initial distortion coefficients for a new intrinsic."""
    if make == "GoPro" and camera_model in GOPRO_DISTORTION:
        return list(GOPRO_DISTORTION[camera_model])
    return [0.0] * camera_model.num_distortion_params


def build_view_intrinsic(
    view: View,
    focal_length: float | None,
    sensor_width: float | None,
    defaults: IntrinsicDefaults,
    initialization_mode: InitializationMode = InitializationMode.FROM_DEFAULT_FOV,
) -> Intrinsic:
    """
    Build the initial intrinsic of a view.

    The focal length in pixels is focal_length * width / sensor_width when
    both are known, -1 otherwise. A default focal length in pixels, or else a
    default field of view, overrides it. The principal point is the image
    center unless a default principal point is set.

    Args:
        view: View to build the intrinsic for
        focal_length: Focal length in mm, None if unresolved
        sensor_width: Sensor width in mm, None if unresolved
        defaults: User overrides
        initialization_mode: Mode tag for the new intrinsic

    Returns:
        New Intrinsic (focal_length_pix <= 0 if no focal length could be set)

    Example:
        >>> view = View(0, "a.jpg", 5760, 3840)
        >>> build_view_intrinsic(view, 50.0, 36.0, IntrinsicDefaults()).focal_length_pix
        8000.0
    """
    focal_pix = -1.0
    if focal_length is not None and sensor_width is not None and sensor_width > 0:
        focal_pix = focal_length * view.width / sensor_width

    if defaults.focal_length_pix is not None:
        focal_pix = defaults.focal_length_pix
    elif defaults.field_of_view is not None:
        focal_pix = focal_from_field_of_view(defaults.field_of_view, view.width, view.height)

    if defaults.principal_point is not None:
        principal_point = defaults.principal_point
    else:
        principal_point = (view.width / 2.0, view.height / 2.0)

    focal_35mm = view.focal_length_35mm
    if focal_35mm is None and focal_length is not None and sensor_width is not None:
        focal_35mm = focal_35mm_equivalent(focal_length, sensor_width, view.aspect_ratio)

    camera_model = select_camera_model(view, focal_35mm, defaults)

    return Intrinsic(
        camera_model=camera_model,
        width=view.width,
        height=view.height,
        focal_length_pix=focal_pix,
        principal_point=principal_point,
        distortion_params=initial_distortion(camera_model, view.make),
        serial_number=view.serial_number,
        initialization_mode=initialization_mode,
    )
