"""End-to-end intrinsic initialization pipeline orchestration."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Sequence

import yaml
from tqdm import tqdm

from camerainit.config.schema import (
    CameraInitConfig,
    CameraModel,
    GroupingMode,
    InvalidConfigurationError,
    NoInputViewsError,
    SceneData,
    SensorDatasheet,
)
from camerainit.core.grouping import IdentityGenerator, IntrinsicGroupingPolicy
from camerainit.core.intrinsic import (
    IntrinsicDefaults,
    check_default_overrides,
    make_intrinsic_defaults,
)
from camerainit.core.rig import validate_rigs
from camerainit.initialization.view_resolution import ViewOutcome, resolve_view
from camerainit.io.images import ViewMetadataProvider, load_metadata_provider, views_from_image_folder
from camerainit.io.sensor_database import load_sensor_database
from camerainit.io.serialization import load_scene, save_scene
from camerainit.validation.diagnostics import (
    DiagnosticsData,
    aggregate_outcomes,
    check_run_status,
    format_summary,
    generate_warnings,
    save_diagnostic_report,
)


@dataclass
class CameraInitResult:
    """Output of the initialization pipeline.

    Attributes:
        scene: Views with resolved intrinsic and rig tags, intrinsics, rigs
        diagnostics: Aggregated diagnostics
        outcomes: Per-view outcomes, in view order
    """
    scene: SceneData
    diagnostics: DiagnosticsData
    outcomes: list[ViewOutcome]


def _optional_positive(value, name: str) -> float | None:
    """Read an optional override; None or -1 mean unset."""
    if value is None:
        return None
    value = float(value)
    if value == -1 or value == 0:
        return None
    if value < 0:
        raise ValueError(f"{name} must be positive (or -1 to unset), got {value}")
    return value


def load_config(config_path: str | Path) -> CameraInitConfig:
    """
    Load initialization configuration from YAML file.

    Args:
        config_path: Path to config.yaml file

    Returns:
        CameraInitConfig populated from file

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid or missing required fields
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Validate required sections
    required = ["input", "sensor_database"]
    for key in required:
        if key not in data:
            raise ValueError(f"Missing required config section: {key}")

    input_data = data["input"]
    if not isinstance(input_data, dict) or ("scene" in input_data) == ("image_folder" in input_data):
        raise ValueError("Config input needs exactly one of: input.scene, input.image_folder")
    if "image_folder" in input_data and not input_data.get("metadata_provider"):
        raise ValueError("Missing required config field: input.metadata_provider")

    output_path = Path(data.get("output", config_path.parent / "cameraInit.json"))

    # Focal length overrides
    defaults = data.get("defaults", {}) or {}
    default_focal = _optional_positive(defaults.get("focal_length_pix"), "defaults.focal_length_pix")
    default_fov = _optional_positive(defaults.get("field_of_view"), "defaults.field_of_view")
    default_intrinsic = defaults.get("intrinsic") or None
    check_default_overrides(default_intrinsic, default_focal, default_fov)

    camera_model_name = defaults.get("camera_model")
    default_camera_model = (
        CameraModel.from_string(camera_model_name) if camera_model_name else None
    )

    group_raw = data.get("group_camera_model", 2)
    try:
        group_camera_model = GroupingMode(int(group_raw))
    except ValueError:
        raise InvalidConfigurationError(
            f"group_camera_model must be 0, 1 or 2, got {group_raw}"
        ) from None

    num_workers = data.get("num_workers", None)
    if num_workers is not None:
        num_workers = int(num_workers)
        if num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {num_workers}")

    return CameraInitConfig(
        scene_path=Path(input_data["scene"]) if "scene" in input_data else None,
        sensor_database_path=Path(data["sensor_database"]),
        output_path=output_path,
        default_focal_length_pix=default_focal,
        default_field_of_view=default_fov,
        default_intrinsic=default_intrinsic,
        default_camera_model=default_camera_model,
        group_camera_model=group_camera_model,
        allow_incomplete_output=bool(data.get("allow_incomplete_output", False)),
        allow_single_view=bool(data.get("allow_single_view", False)),
        num_workers=num_workers,
        image_folder_path=Path(input_data["image_folder"]) if "image_folder" in input_data else None,
        metadata_provider=input_data.get("metadata_provider"),
    )


def _resolve_all(
    scene: SceneData,
    sensor_database: Sequence[SensorDatasheet],
    defaults: IntrinsicDefaults,
    policy: IntrinsicGroupingPolicy,
    allow_incomplete_output: bool,
    num_workers: int | None,
    verbose: bool,
) -> list[ViewOutcome]:
    """Run resolve_view over all views in parallel; results keep view order."""
    resolve = partial(
        resolve_view,
        existing_intrinsics=scene.intrinsics,
        sensor_database=sensor_database,
        defaults=defaults,
        policy=policy,
        allow_incomplete_output=allow_incomplete_output,
    )
    views = list(scene.views.values())

    with ThreadPoolExecutor(max_workers=num_workers or os.cpu_count()) as executor:
        results = executor.map(resolve, views)
        return list(tqdm(results, total=len(views), desc="Views", disable=not verbose))


def _apply_outcomes(
    scene: SceneData,
    outcomes: list[ViewOutcome],
    policy: IntrinsicGroupingPolicy,
) -> None:
    """
    Write per-view outcomes back to the scene, in view order.

    Sets rig tags, assigns intrinsic identities through the grouping policy
    and registers the new intrinsics.

    A preset intrinsic id shared by several views is kept only by views
    whose new intrinsics are identical to the first claimant's; the others
    fall back to the content hash. Preset intrinsics that no view references
    after the merge are removed.
    """
    previously_referenced = {
        v.intrinsic_id for v in scene.views.values() if v.intrinsic_id is not None
    }
    taken = set(scene.intrinsics) | previously_referenced
    # preset id -> content hash of the intrinsic now stored under it
    preset_claims: dict[int, int] = {}

    for outcome in outcomes:
        view = scene.views[outcome.view_id]

        if outcome.rig is not None:
            view.rig_id = outcome.rig.rig_id
            view.sub_pose_id = outcome.rig.sub_pose_id
            view.frame_id = outcome.rig.frame_id

        if outcome.reused_intrinsic:
            continue

        if outcome.intrinsic is None:
            view.intrinsic_id = None
            continue

        content_hash = outcome.intrinsic.hash_value()
        preset_id = view.intrinsic_id
        if preset_id is not None and preset_claims.get(preset_id, content_hash) != content_hash:
            preset_id = None

        intrinsic_id = policy.assign_identity(outcome.intrinsic, preset_id, taken)
        if preset_id is not None and intrinsic_id == preset_id:
            preset_claims[preset_id] = content_hash
        taken.add(intrinsic_id)
        view.intrinsic_id = intrinsic_id
        scene.intrinsics[intrinsic_id] = outcome.intrinsic

    still_referenced = {
        v.intrinsic_id for v in scene.views.values() if v.intrinsic_id is not None
    }
    for intrinsic_id in previously_referenced - still_referenced:
        scene.intrinsics.pop(intrinsic_id, None)


def initialize_scene(
    scene: SceneData,
    sensor_database: Sequence[SensorDatasheet],
    defaults: IntrinsicDefaults | None = None,
    group_camera_model: GroupingMode = GroupingMode.METADATA_OR_FOLDER,
    allow_incomplete_output: bool = False,
    allow_single_view: bool = False,
    num_workers: int | None = None,
    id_generator: IdentityGenerator | None = None,
    verbose: bool = False,
) -> CameraInitResult:
    """
    Resolve intrinsics and rig structure for every view of a scene.

    Stages:
    1. Parallel per-view pass (rig detection, sensor lookup, 35mm
       estimation, intrinsic construction)
    2. Merge outcomes: diagnostics, intrinsic identities, rig tags
    3. Rig validation
    4. Pass/fail policy check

    The scene is updated in place. Results do not depend on num_workers.

    Args:
        scene: Views and any known intrinsics
        sensor_database: Sensor database entries
        defaults: User overrides (default: none)
        group_camera_model: Intrinsic sharing policy
        allow_incomplete_output: Accept views without intrinsic and unknown sensors
        allow_single_view: Require one complete view instead of two
        num_workers: Worker threads (None = os.cpu_count())
        id_generator: Identity source for GroupingMode.NEVER_SHARE
        verbose: Show a progress bar

    Returns:
        CameraInitResult

    Raises:
        NoInputViewsError: If the scene has no views
        InvalidRigStructureError: If a detected rig is inconsistent
        UnknownSensorError: If cameras are missing from the database
        InsufficientCompleteViewsError: If too few views are complete
    """
    if not scene.views:
        raise NoInputViewsError("Can't find views in input.")

    defaults = defaults or IntrinsicDefaults()
    policy = IntrinsicGroupingPolicy(group_camera_model, id_generator)

    outcomes = _resolve_all(
        scene, sensor_database, defaults, policy,
        allow_incomplete_output, num_workers, verbose,
    )

    diagnostics = aggregate_outcomes(outcomes)
    _apply_outcomes(scene, outcomes, policy)

    scene.rigs.update(validate_rigs(diagnostics.rig_observations))

    check_run_status(diagnostics, allow_incomplete_output, allow_single_view)

    return CameraInitResult(scene=scene, diagnostics=diagnostics, outcomes=outcomes)


def run_camera_init(config_path: str | Path, verbose: bool = False) -> CameraInitResult:
    """
    Run complete initialization pipeline from config file.

    Loads configuration from YAML and delegates to run_camera_init_from_config().

    Args:
        config_path: Path to config.yaml file
        verbose: If True, show per-view progress

    Returns:
        Complete CameraInitResult

    Raises:
        FileNotFoundError: If config, scene or database files not found
        CameraInitError: If any stage fails
    """
    config = load_config(config_path)
    return run_camera_init_from_config(config, verbose=verbose)


def run_camera_init_from_config(
    config: CameraInitConfig,
    verbose: bool = False,
    id_generator: IdentityGenerator | None = None,
    metadata_provider: ViewMetadataProvider | None = None,
) -> CameraInitResult:
    """
    Run complete initialization pipeline from configuration object.

    Pipeline stages:
    1. Validate focal length overrides
    2. Load sensor database and input views (scene file, or image folder
       read through a metadata provider)
    3. Resolve all views (see initialize_scene)
    4. Save the scene and the diagnostics report

    Nothing is written if any stage fails.

    Args:
        config: Complete initialization configuration
        verbose: If True, show per-view progress
        id_generator: Identity source for GroupingMode.NEVER_SHARE
        metadata_provider: Provider for image folder input (default: loaded
            from config.metadata_provider)

    Returns:
        CameraInitResult

    Raises:
        InvalidConfigurationError: If overrides conflict or are malformed
        CameraInitError: If any stage fails
    """
    defaults = make_intrinsic_defaults(
        default_intrinsic=config.default_intrinsic,
        default_focal_length_pix=config.default_focal_length_pix,
        default_field_of_view=config.default_field_of_view,
        default_camera_model=config.default_camera_model,
    )

    print("=" * 60)
    print("camerainit Intrinsic Initialization")
    print("=" * 60)

    print("\n[Input] Loading sensor database and views...")
    sensor_database = load_sensor_database(config.sensor_database_path)
    if config.scene_path is not None:
        scene = load_scene(config.scene_path)
    else:
        provider = metadata_provider or load_metadata_provider(config.metadata_provider)
        scene = views_from_image_folder(config.image_folder_path, provider)
    print(f"  {len(sensor_database)} sensor database entries")
    print(f"  {len(scene.views)} views, {len(scene.intrinsics)} known intrinsics")

    print(f"\n[Views] Resolving intrinsics (grouping mode {int(config.group_camera_model)})...")
    result = initialize_scene(
        scene,
        sensor_database,
        defaults=defaults,
        group_camera_model=config.group_camera_model,
        allow_incomplete_output=config.allow_incomplete_output,
        allow_single_view=config.allow_single_view,
        num_workers=config.num_workers,
        id_generator=id_generator,
        verbose=verbose,
    )

    for w in generate_warnings(result.diagnostics):
        print(f"  WARNING: {w}")

    print("\n[Output] Saving scene and diagnostics...")
    save_scene(result.scene, config.output_path)
    print(f"  Saved {config.output_path}")
    written = save_diagnostic_report(
        result.diagnostics, result.outcomes, config.output_path.parent
    )
    for path in written.values():
        print(f"  Saved {path.name}")

    print("\n[Report]")
    for line in format_summary(
        result.diagnostics, len(result.scene.intrinsics), len(result.scene.rigs)
    ):
        print(line)

    return result
