"""Focal length and sensor width conversions.

Fills in a missing sensor width or focal length from the 35mm-equivalent
focal length and the image aspect ratio. All lengths are in millimeters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# Full-frame (36x24 mm) reference
FULL_FRAME_WIDTH = 36.0
FULL_FRAME_HEIGHT = 24.0
FULL_FRAME_DIAGONAL = math.sqrt(FULL_FRAME_WIDTH**2 + FULL_FRAME_HEIGHT**2)


@dataclass
class Focal35mmEstimate:
    """Sensor width and focal length after 35mm-equivalent estimation.

    Attributes:
        sensor_width: Sensor width in mm, None if still unresolved
        focal_length: Focal length in mm, None if still unresolved
        contributed: True if the estimator filled in a value
    """
    sensor_width: float | None
    focal_length: float | None
    contributed: bool


def _width_fraction_of_diagonal(ratio: float) -> float:
    """Sensor width divided by sensor diagonal for a width/height ratio."""
    inv_ratio = 1.0 / ratio
    return math.sqrt(1.0 / (1.0 + inv_ratio * inv_ratio))


def sensor_width_from_ratio(ratio: float) -> float:
    """Width of a sensor with the full-frame diagonal and the given aspect ratio."""
    return FULL_FRAME_DIAGONAL * _width_fraction_of_diagonal(ratio)


def sensor_width_from_focal(focal_length: float, focal_35mm: float, ratio: float) -> float:
    """Sensor width implied by a real and a 35mm-equivalent focal length."""
    sensor_diag = focal_length * FULL_FRAME_DIAGONAL / focal_35mm
    return sensor_diag * _width_fraction_of_diagonal(ratio)


def focal_from_sensor_width(sensor_width: float, focal_35mm: float, ratio: float) -> float:
    """Real focal length implied by a sensor width and a 35mm-equivalent focal length."""
    sensor_diag = math.sqrt(sensor_width**2 + (sensor_width / ratio) ** 2)
    return sensor_diag * focal_35mm / FULL_FRAME_DIAGONAL


def focal_35mm_equivalent(focal_length: float, sensor_width: float, ratio: float) -> float:
    """35mm-equivalent of a focal length, by sensor diagonal (crop factor)."""
    sensor_diag = math.sqrt(sensor_width**2 + (sensor_width / ratio) ** 2)
    return focal_length * FULL_FRAME_DIAGONAL / sensor_diag


def estimate_from_focal_35mm(
    sensor_width: float | None,
    focal_length: float | None,
    focal_35mm: float | None,
    ratio: float,
) -> Focal35mmEstimate:
    """
    Fill in sensor width and/or focal length from 35mm-equivalent metadata.

    Rules (applied only when focal_35mm is given):
    - sensor width unknown, focal known: width from focal and focal_35mm
    - sensor width unknown, focal unknown: width from the aspect ratio with
      the full-frame diagonal, then focal = width * focal_35mm / 36
    - sensor width known, focal unknown: focal from the sensor diagonal
    - both known: unchanged

    Args:
        sensor_width: Sensor width in mm, None if unresolved
        focal_length: Focal length in mm, None if unresolved
        focal_35mm: 35mm-equivalent focal length, None if absent
        ratio: Image width / height

    Returns:
        Focal35mmEstimate with the resolved values
    """
    if focal_35mm is None or (sensor_width is not None and focal_length is not None):
        return Focal35mmEstimate(sensor_width, focal_length, contributed=False)

    if sensor_width is None:
        if focal_length is not None:
            sensor_width = sensor_width_from_focal(focal_length, focal_35mm, ratio)
        else:
            sensor_width = sensor_width_from_ratio(ratio)
            focal_length = sensor_width * focal_35mm / FULL_FRAME_WIDTH
    else:
        focal_length = focal_from_sensor_width(sensor_width, focal_35mm, ratio)

    return Focal35mmEstimate(sensor_width, focal_length, contributed=True)


def focal_from_field_of_view(field_of_view: float, width: int, height: int) -> float:
    """
    Focal length in pixels for a horizontal field of view over the larger image side.

    Args:
        field_of_view: Field of view in degrees
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        Focal length in pixels
    """
    focal_ratio = 0.5 / math.tan(0.5 * math.radians(field_of_view))
    return focal_ratio * max(width, height)
