"""Save and load scene files (views, intrinsics, rigs)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from camerainit.config.schema import (
    CameraModel,
    InitializationMode,
    Intrinsic,
    Rig,
    SceneData,
    View,
)

# Current serialization format version
SERIALIZATION_VERSION = "1.0"


def _id_to_str(value: int | None) -> str | None:
    """Identifiers are stored as strings so 64-bit values survive JSON readers."""
    return None if value is None else str(value)


def _str_to_id(value: str | int | None) -> int | None:
    return None if value is None else int(value)


def _serialize_view(view: View) -> dict[str, Any]:
    """Serialize View to dict. Omits undefined rig fields."""
    result = {
        "view_id": _id_to_str(view.view_id),
        "path": view.image_path,
        "width": view.width,
        "height": view.height,
        "intrinsic_id": _id_to_str(view.intrinsic_id),
        "metadata": dict(view.metadata),
    }
    if view.rig_id is not None:
        result["rig_id"] = _id_to_str(view.rig_id)
        result["sub_pose_id"] = view.sub_pose_id
    if view.frame_id is not None:
        result["frame_id"] = view.frame_id
    return result


def _deserialize_view(data: dict[str, Any]) -> View:
    """Deserialize dict to View."""
    return View(
        view_id=_str_to_id(data["view_id"]),
        image_path=data["path"],
        width=int(data["width"]),
        height=int(data["height"]),
        metadata={str(k): str(v) for k, v in data.get("metadata", {}).items()},
        intrinsic_id=_str_to_id(data.get("intrinsic_id")),
        rig_id=_str_to_id(data.get("rig_id")),
        sub_pose_id=data.get("sub_pose_id"),
        frame_id=data.get("frame_id"),
    )


def _serialize_intrinsic(intrinsic_id: int, intrinsic: Intrinsic) -> dict[str, Any]:
    """Serialize Intrinsic to dict."""
    return {
        "intrinsic_id": _id_to_str(intrinsic_id),
        "type": intrinsic.camera_model.value,
        "width": intrinsic.width,
        "height": intrinsic.height,
        "serial_number": intrinsic.serial_number,
        "initialization_mode": intrinsic.initialization_mode.value,
        "focal_length_pix": intrinsic.focal_length_pix,
        "principal_point": list(intrinsic.principal_point),
        "distortion_params": list(intrinsic.distortion_params),
    }


def _deserialize_intrinsic(data: dict[str, Any]) -> tuple[int, Intrinsic]:
    """Deserialize dict to (intrinsic id, Intrinsic).

    Raises:
        ValueError: If the camera model tag is unknown
    """
    intrinsic = Intrinsic(
        camera_model=CameraModel.from_string(data["type"]),
        width=int(data["width"]),
        height=int(data["height"]),
        focal_length_pix=float(data["focal_length_pix"]),
        principal_point=tuple(float(v) for v in data["principal_point"]),
        distortion_params=[float(v) for v in data.get("distortion_params", [])],
        serial_number=data.get("serial_number", ""),
        initialization_mode=InitializationMode(data.get("initialization_mode", "unknown")),
    )
    return _str_to_id(data["intrinsic_id"]), intrinsic


def _serialize_rig(rig: Rig) -> dict[str, Any]:
    """Serialize Rig to dict."""
    return {"rig_id": _id_to_str(rig.rig_id), "nb_sub_poses": rig.nb_sub_poses}


def _deserialize_rig(data: dict[str, Any]) -> Rig:
    """Deserialize dict to Rig."""
    return Rig(rig_id=_str_to_id(data["rig_id"]), nb_sub_poses=int(data["nb_sub_poses"]))


def scene_to_dict(scene: SceneData) -> dict[str, Any]:
    """Convert SceneData to a JSON-compatible dict, sorted by identifier."""
    return {
        "version": SERIALIZATION_VERSION,
        "views": [_serialize_view(scene.views[k]) for k in sorted(scene.views)],
        "intrinsics": [
            _serialize_intrinsic(k, scene.intrinsics[k]) for k in sorted(scene.intrinsics)
        ],
        "rigs": [_serialize_rig(scene.rigs[k]) for k in sorted(scene.rigs)],
    }


def scene_from_dict(data: dict[str, Any]) -> SceneData:
    """
    Convert a scene dict to SceneData.

    Raises:
        ValueError: If the version is unsupported, a view id is duplicated,
            or a camera model tag is unknown
    """
    version = data.get("version")
    if version != SERIALIZATION_VERSION:
        raise ValueError(
            f"Unsupported scene file version: {version}. "
            f"Expected: {SERIALIZATION_VERSION}"
        )

    scene = SceneData()
    for view_data in data.get("views", []):
        view = _deserialize_view(view_data)
        if view.view_id in scene.views:
            raise ValueError(f"Duplicate view id: {view.view_id}")
        scene.views[view.view_id] = view

    for intrinsic_data in data.get("intrinsics", []):
        intrinsic_id, intrinsic = _deserialize_intrinsic(intrinsic_data)
        scene.intrinsics[intrinsic_id] = intrinsic

    for rig_data in data.get("rigs", []):
        rig = _deserialize_rig(rig_data)
        scene.rigs[rig.rig_id] = rig

    return scene


def save_scene(scene: SceneData, path: str | Path) -> None:
    """
    Save scene to JSON file.

    Args:
        scene: Views, intrinsics and rigs to save
        path: Output file path (parent directories are created)

    Raises:
        OSError: If file cannot be written

    Example:
        >>> save_scene(scene, "cameraInit.json")
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(scene_to_dict(scene), f, indent=2)


def load_scene(path: str | Path) -> SceneData:
    """
    Load scene from JSON file.

    Args:
        path: Path to scene JSON file

    Returns:
        SceneData object

    Raises:
        FileNotFoundError: If file does not exist
        ValueError: If file format is invalid or version mismatch

    Example:
        >>> scene = load_scene("views.json")
        >>> print(len(scene.views))
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Scene file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    return scene_from_dict(data)
