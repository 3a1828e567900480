"""Build views from an image folder and an external metadata provider."""

from __future__ import annotations

import hashlib
import importlib
from pathlib import Path
from typing import Protocol, runtime_checkable

from natsort import natsorted

from camerainit.config.schema import InvalidConfigurationError, SceneData, View

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".tif", ".tiff", ".exr"}


@runtime_checkable
class ViewMetadataProvider(Protocol):
    """
    Protocol for image metadata extraction.

    Implementations read the pixel size and the metadata of an image file
    (EXIF or similar). Decoding images is left to the implementation.

    Example:
        >>> class StaticProvider:
        ...     def read(self, image_path):
        ...         return 4000, 3000, {"Make": "Canon", "Model": "EOS 5D"}
    """

    def read(self, image_path: Path) -> tuple[int, int, dict[str, str]]:
        """
        Read image size and metadata.

        Args:
            image_path: Path to the image file

        Returns:
            Tuple of (width, height, metadata)
        """
        ...


def list_image_files(folder_or_file: str | Path) -> list[Path]:
    """
    List image files recursively, in natural sort order.

    Supports JPEG, TIFF and EXR files (case-insensitive extensions).

    Args:
        folder_or_file: Image folder, or a single image file

    Returns:
        Sorted list of image paths (img_2 before img_10)

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If no image file is found
    """
    path = Path(folder_or_file)
    if not path.exists():
        raise FileNotFoundError(f"Image path not found: {path}")

    if path.is_file():
        candidates = [path]
    else:
        candidates = [p for p in path.rglob("*") if p.is_file()]

    image_files = [p for p in candidates if p.suffix.lower() in IMAGE_EXTENSIONS]
    if not image_files:
        raise ValueError(
            f"No images found in: {path} (looking for {sorted(IMAGE_EXTENSIONS)})"
        )

    return natsorted(image_files, key=lambda p: str(p))


def view_id_from_path(image_path: str) -> int:
    """Stable view identifier from an image path."""
    return int(hashlib.md5(image_path.encode()).hexdigest()[:15], 16)


def views_from_image_folder(
    folder_or_file: str | Path,
    provider: ViewMetadataProvider,
) -> SceneData:
    """
    Build a scene with one view per image file.

    Args:
        folder_or_file: Image folder (searched recursively) or single image
        provider: Metadata provider called once per image

    Returns:
        SceneData with views only

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If no image is found, or two paths hash to the same view id
    """
    scene = SceneData()
    for image_path in list_image_files(folder_or_file):
        width, height, metadata = provider.read(image_path)
        view_id = view_id_from_path(str(image_path))
        if view_id in scene.views:
            raise ValueError(f"Duplicate view id for image: {image_path}")
        scene.views[view_id] = View(
            view_id=view_id,
            image_path=str(image_path),
            width=width,
            height=height,
            metadata=dict(metadata),
        )
    return scene


def load_metadata_provider(entry_point: str) -> ViewMetadataProvider:
    """
    Instantiate a metadata provider from a "module:attribute" entry point.

    The attribute is called without arguments; it is usually a provider class.

    Args:
        entry_point: Importable reference, e.g. "mypackage.exif:ExifProvider"

    Returns:
        ViewMetadataProvider instance

    Raises:
        InvalidConfigurationError: If the entry point is malformed, cannot be
            imported, or does not produce a ViewMetadataProvider
    """
    module_name, sep, attribute = entry_point.partition(":")
    if not sep or not module_name or not attribute:
        raise InvalidConfigurationError(
            f"Metadata provider must be given as 'module:attribute', got '{entry_point}'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise InvalidConfigurationError(
            f"Cannot import metadata provider module '{module_name}': {e}"
        ) from e

    factory = getattr(module, attribute, None)
    if factory is None:
        raise InvalidConfigurationError(
            f"Module '{module_name}' has no attribute '{attribute}'"
        )

    provider = factory()
    if not isinstance(provider, ViewMetadataProvider):
        raise InvalidConfigurationError(
            f"'{entry_point}' does not provide a read(image_path) method"
        )
    return provider
