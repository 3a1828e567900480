"""Camera sensor width database loading."""

from __future__ import annotations

from pathlib import Path

from camerainit.config.schema import SensorDatasheet


def parse_sensor_database(text: str) -> list[SensorDatasheet]:
    """
    Parse sensor database content.

    One entry per line as ``brand;model;sensor_width_mm``. Empty lines,
    lines starting with ``#`` and lines with fewer than three fields are
    skipped. Extra fields are ignored.

    Args:
        text: Database file content

    Returns:
        List of SensorDatasheet in file order

    Raises:
        ValueError: If a sensor width is not a number
    """
    database = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip() or line.startswith("#"):
            continue
        values = line.split(";")
        if len(values) < 3:
            continue
        try:
            sensor_width = float(values[2])
        except ValueError:
            raise ValueError(
                f"Invalid sensor width on line {line_number}: '{values[2]}'"
            ) from None
        database.append(SensorDatasheet(brand=values[0], model=values[1], sensor_width=sensor_width))
    return database


def load_sensor_database(path: str | Path) -> list[SensorDatasheet]:
    """
    Load a sensor database file.

    Args:
        path: Path to the database text file

    Returns:
        List of SensorDatasheet in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a sensor width is not a number
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sensor database not found: {path}")
    return parse_sensor_database(path.read_text())
