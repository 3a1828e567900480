"""Intrinsic sharing policy: decides which views use the same intrinsic."""

from __future__ import annotations

from pathlib import PurePath
from typing import Callable, Container, Protocol

from camerainit.config.schema import GroupingMode, Intrinsic, View


class IdentityGenerator(Protocol):
    """Source of fresh intrinsic identifiers for views that never share."""

    def __call__(self, taken: Container[int]) -> int:
        """Return an identifier not contained in taken."""
        ...


class SequentialIdentityGenerator:
    """
    Issue increasing integer identifiers, skipping ones already taken.

    Example:
        >>> generate = SequentialIdentityGenerator(start=10)
        >>> generate(taken={10}), generate(taken=set())
        (11, 12)
    """

    def __init__(self, start: int = 0) -> None:
        self._next = start

    def __call__(self, taken: Container[int]) -> int:
        while self._next in taken:
            self._next += 1
        identifier = self._next
        self._next += 1
        return identifier


def rig_serial_number(rig_id: int, sub_pose_id: int) -> str:
    """Serial number identifying one camera of a rig without metadata."""
    return f"no_metadata_rig_{rig_id}_{sub_pose_id}"


class IntrinsicGroupingPolicy:
    """
    Assign intrinsic identities to views according to a GroupingMode.

    In METADATA modes the identity is the content hash of the intrinsic, so
    views with identical resolved parameters and serial number share one
    intrinsic. Views without make/model metadata have their serial number
    replaced by their folder (METADATA_OR_FOLDER) and, for rig views, by
    their rig camera, before hashing.

    Args:
        mode: Grouping mode
        id_generator: Identifier source for NEVER_SHARE. Defaults to a
            SequentialIdentityGenerator.
    """

    def __init__(
        self,
        mode: GroupingMode = GroupingMode.METADATA_OR_FOLDER,
        id_generator: IdentityGenerator | Callable[[Container[int]], int] | None = None,
    ) -> None:
        self.mode = GroupingMode(mode)
        self.id_generator = id_generator or SequentialIdentityGenerator()

    def apply_serial_overrides(self, intrinsic: Intrinsic, view: View) -> None:
        """
        Override the serial number of a metadata-less view's intrinsic in place.

        Args:
            intrinsic: Newly built intrinsic of view (owned by the caller)
            view: View with rig tags already set
        """
        if view.has_camera_metadata:
            return

        if self.mode == GroupingMode.METADATA_OR_FOLDER:
            # Frames extracted from one video share a folder and a lens
            intrinsic.serial_number = str(PurePath(view.image_path).parent)

        if view.is_part_of_rig:
            intrinsic.serial_number = rig_serial_number(view.rig_id, view.sub_pose_id)

    def assign_identity(
        self,
        intrinsic: Intrinsic,
        preset_id: int | None = None,
        taken: Container[int] = (),
    ) -> int:
        """
        Decide the identity of an intrinsic.

        Args:
            intrinsic: Intrinsic with serial overrides applied
            preset_id: Identity already referenced by the view, if any
            taken: Identities already in use (only consulted by NEVER_SHARE)

        Returns:
            Intrinsic identifier
        """
        if self.mode == GroupingMode.NEVER_SHARE:
            return self.id_generator(taken)
        if preset_id is not None:
            return preset_id
        return intrinsic.hash_value()
