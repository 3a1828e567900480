"""Sensor width lookup in the camera sensor database."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from camerainit.config.schema import SensorDatasheet


@dataclass
class SensorMatch:
    """Result of a sensor database lookup.

    Attributes:
        datasheet: Matched database entry
        unsure: True if the stored model string differs from the queried one.
            The width is still used but the match needs human review.
    """
    datasheet: SensorDatasheet
    unsure: bool

    @property
    def sensor_width(self) -> float:
        return self.datasheet.sensor_width


def _has_digit(token: str) -> bool:
    return any(c.isdigit() for c in token)


def datasheet_matches(datasheet: SensorDatasheet, make: str, model: str) -> bool:
    """
    Check whether a database entry describes the queried camera.

    The brand must equal one of the space-separated words of make
    (case-insensitive). Every word of model containing a digit must appear
    among the words of the stored model (case-insensitive); words without
    digits ("EOS", "Digital", ...) are ignored.

    Args:
        datasheet: Database entry
        make: Camera make from metadata
        model: Camera model from metadata

    Returns:
        True if the entry matches

    Example:
        >>> sheet = SensorDatasheet("Canon", "Canon EOS 5D Mark II", 36.0)
        >>> datasheet_matches(sheet, "Canon", "EOS 5D MARK II")
        True
    """
    brand = datasheet.brand.lower()
    if brand not in (word.lower() for word in make.split()):
        return False

    stored_words = {word.lower() for word in datasheet.model.split()}
    for word in model.split():
        if _has_digit(word) and word.lower() not in stored_words:
            return False
    return True


def find_sensor(
    make: str,
    model: str,
    database: Iterable[SensorDatasheet],
) -> SensorMatch | None:
    """
    Find the sensor width of a camera in the database.

    Args:
        make: Camera make from metadata (may be empty)
        model: Camera model from metadata (may be empty)
        database: Sensor database entries, searched in order

    Returns:
        SensorMatch for the first matching entry, or None if make and model
        are both empty or no entry matches
    """
    if not make and not model:
        return None

    for datasheet in database:
        if datasheet_matches(datasheet, make, model):
            return SensorMatch(datasheet=datasheet, unsure=datasheet.model != model)
    return None
