"""Input/output modules."""

from camerainit.io.images import (
    ViewMetadataProvider,
    list_image_files,
    load_metadata_provider,
    views_from_image_folder,
)
from camerainit.io.sensor_database import load_sensor_database, parse_sensor_database
from camerainit.io.serialization import load_scene, save_scene

__all__ = [
    # images
    "ViewMetadataProvider",
    "list_image_files",
    "load_metadata_provider",
    "views_from_image_folder",
    # sensor_database
    "load_sensor_database",
    "parse_sensor_database",
    # serialization
    "load_scene",
    "save_scene",
]
