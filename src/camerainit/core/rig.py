"""Rig structure detection from image paths and rig validation.

Rig images follow the layout ``<rig root>/rig/<sub-pose>/<frame>.<ext>``:
each numbered folder under a folder named ``rig`` holds the images of one
rig camera, and images with the same frame number were captured together.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import PurePath

from camerainit.config.schema import InvalidRigStructureError, Rig

RIG_FOLDER_NAME = "rig"


@dataclass(frozen=True)
class RigObservation:
    """Rig membership of one view.

    Attributes:
        rig_id: Rig identifier
        sub_pose_id: Index of the rig camera
        frame_id: Index of the synchronized capture
    """
    rig_id: int
    sub_pose_id: int
    frame_id: int


@dataclass
class RigParseResult:
    """Outcome of rig detection on one image path.

    Attributes:
        observation: Rig membership, None if the view is a single image
        warning: Message if the path looked like a rig path but could not be parsed
    """
    observation: RigObservation | None = None
    warning: str | None = None


def rig_id_from_path(rig_root: str) -> int:
    """
    Stable identifier of a rig from its root folder path.

    Args:
        rig_root: Path of the folder named "rig"

    Returns:
        Non-negative integer, identical across runs and platforms for the
        same path string
    """
    return int(hashlib.md5(rig_root.encode()).hexdigest()[:15], 16)


def _parse_index(name: str) -> int | None:
    if not name.isdecimal():
        return None
    return int(name)


def detect_rig(image_path: str) -> RigParseResult:
    """
    Detect rig membership from an image path.

    Args:
        image_path: Path to the image file

    Returns:
        RigParseResult. Paths outside the rig layout give an empty result;
        rig-layout paths with non-numeric sub-pose or frame names give a
        warning and are treated as single images.

    Example:
        >>> result = detect_rig("/data/rig/2/000005.jpg")
        >>> result.observation.sub_pose_id, result.observation.frame_id
        (2, 5)
    """
    path = PurePath(image_path)
    sub_pose_dir = path.parent
    rig_dir = sub_pose_dir.parent

    if rig_dir.name != RIG_FOLDER_NAME:
        return RigParseResult()

    frame_id = _parse_index(path.stem)
    sub_pose_id = _parse_index(sub_pose_dir.name)
    if frame_id is None or sub_pose_id is None:
        return RigParseResult(
            warning=f"Invalid rig structure for view: {image_path}. Used as single image."
        )

    return RigParseResult(
        observation=RigObservation(
            rig_id=rig_id_from_path(str(rig_dir)),
            sub_pose_id=sub_pose_id,
            frame_id=frame_id,
        )
    )


def validate_rigs(detected_rigs: dict[int, dict[int, int]]) -> dict[int, Rig]:
    """
    Check detected rig structures and build Rig records.

    For each rig, the number of sub-poses is the number of distinct sub-pose
    indices seen, and every sub-pose must have been seen as often as the
    lowest one.

    Args:
        detected_rigs: Dict mapping rig id to dict of sub-pose index -> view count

    Returns:
        Dict mapping rig id to Rig

    Raises:
        InvalidRigStructureError: If a sub-pose index is outside
            [0, number of sub-poses) or sub-poses have different view counts
    """
    rigs = {}
    for rig_id in sorted(detected_rigs):
        counts = detected_rigs[rig_id]
        sub_pose_ids = sorted(counts)
        nb_sub_poses = len(sub_pose_ids)
        nb_poses = counts[sub_pose_ids[0]]

        for sub_pose_id in sub_pose_ids:
            if sub_pose_id < 0 or sub_pose_id >= nb_sub_poses:
                raise InvalidRigStructureError(
                    f"Wrong sub-pose id {sub_pose_id} in detected rig structure "
                    f"(rig {rig_id} has {nb_sub_poses} sub-poses)"
                )
            if counts[sub_pose_id] != nb_poses:
                raise InvalidRigStructureError(
                    f"Wrong number of poses per sub-pose in detected rig structure "
                    f"({counts[sub_pose_id]} != {nb_poses})"
                )

        rigs[rig_id] = Rig(rig_id=rig_id, nb_sub_poses=nb_sub_poses)

    return rigs
