"""Aggregation of per-view outcomes into diagnostics, and run pass/fail policy."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import pandas as pd

from camerainit.config.schema import (
    InsufficientCompleteViewsError,
    SensorDatasheet,
    UnknownSensorError,
)
from camerainit.initialization.view_resolution import ViewOutcome


@dataclass
class DiagnosticsData:
    """Aggregated outcome of the per-view pass.

    Attributes:
        view_count: Number of views processed
        complete_view_count: Views that end with an initialized intrinsic
        undefined_view_count: Views left without an intrinsic
        no_metadata_images: Images without make/model and without sensor width
        unsure_sensors: Dict mapping (make, model) to (first image, matched
            datasheet) for database matches with a different model string
        unknown_sensors: Dict mapping (make, model) to first image for cameras
            missing from the database
        focal_35mm_estimates: Dict mapping image to (sensor width, focal length)
            estimated from 35mm-equivalent metadata
        rig_observations: Dict mapping rig id to dict of sub-pose -> view count
        rig_warnings: Invalid rig path messages
        resize_warnings: Resized image messages
    """
    view_count: int = 0
    complete_view_count: int = 0
    undefined_view_count: int = 0
    no_metadata_images: list[str] = field(default_factory=list)
    unsure_sensors: dict[tuple[str, str], tuple[str, SensorDatasheet]] = field(default_factory=dict)
    unknown_sensors: dict[tuple[str, str], str] = field(default_factory=dict)
    focal_35mm_estimates: dict[str, tuple[float, float]] = field(default_factory=dict)
    rig_observations: dict[int, dict[int, int]] = field(default_factory=dict)
    rig_warnings: list[str] = field(default_factory=list)
    resize_warnings: list[str] = field(default_factory=list)


def aggregate_outcomes(outcomes: Iterable[ViewOutcome]) -> DiagnosticsData:
    """
    Merge per-view outcomes into diagnostics buckets.

    Keyed buckets keep the first image in iteration order; pass outcomes in
    view order for deterministic reports.

    Args:
        outcomes: Per-view outcomes

    Returns:
        DiagnosticsData
    """
    diagnostics = DiagnosticsData()

    for outcome in outcomes:
        diagnostics.view_count += 1
        if outcome.complete:
            diagnostics.complete_view_count += 1
        if outcome.undefined_intrinsic:
            diagnostics.undefined_view_count += 1

        if outcome.rig is not None:
            sub_poses = diagnostics.rig_observations.setdefault(outcome.rig.rig_id, {})
            sub_poses[outcome.rig.sub_pose_id] = sub_poses.get(outcome.rig.sub_pose_id, 0) + 1
        if outcome.rig_warning:
            diagnostics.rig_warnings.append(outcome.rig_warning)
        if outcome.resize_warning:
            diagnostics.resize_warnings.append(outcome.resize_warning)

        key = (outcome.make, outcome.model)
        if outcome.unsure_datasheet is not None:
            diagnostics.unsure_sensors.setdefault(key, (outcome.image_path, outcome.unsure_datasheet))
        if outcome.focal_35mm_estimate is not None:
            diagnostics.focal_35mm_estimates[outcome.image_path] = outcome.focal_35mm_estimate

        if outcome.sensor_missing:
            if outcome.has_camera_metadata:
                diagnostics.unknown_sensors.setdefault(key, outcome.image_path)
            else:
                diagnostics.no_metadata_images.append(outcome.image_path)

    return diagnostics


def check_run_status(
    diagnostics: DiagnosticsData,
    allow_incomplete_output: bool = False,
    allow_single_view: bool = False,
) -> None:
    """
    Decide whether the run may write its output.

    Args:
        diagnostics: Aggregated diagnostics
        allow_incomplete_output: Accept unknown sensors and too few complete views
        allow_single_view: Require one complete view instead of two

    Raises:
        UnknownSensorError: If cameras are missing from the sensor database
        InsufficientCompleteViewsError: If too few views have an initialized intrinsic
    """
    if allow_incomplete_output:
        return

    if diagnostics.unknown_sensors:
        cameras = ", ".join(f"'{make} {model}'" for make, model in diagnostics.unknown_sensors)
        raise UnknownSensorError(
            f"Sensor width doesn't exist in the database for camera(s): {cameras}. "
            f"Please add camera model(s) and sensor width(s) in the database."
        )

    min_complete = 1 if allow_single_view else 2
    if diagnostics.complete_view_count < min_complete:
        raise InsufficientCompleteViewsError(
            f"At least {'one image' if allow_single_view else 'two images'} should have "
            f"an initialized intrinsic, got {diagnostics.complete_view_count}. "
            f"Check your input images metadata (brand, model, focal length, ...)."
        )


def generate_warnings(diagnostics: DiagnosticsData) -> list[str]:
    """
    Human-readable warnings for uncertain or missing inferences.

    Returns:
        List of warning strings (empty = nothing to review)
    """
    warnings = list(diagnostics.rig_warnings) + list(diagnostics.resize_warnings)

    for (make, model), (image_path, datasheet) in diagnostics.unsure_sensors.items():
        warnings.append(
            f"Camera found in the database is slightly different for image "
            f"'{Path(image_path).name}': image camera '{make} {model}', "
            f"database camera '{datasheet.brand} {datasheet.model}' "
            f"({datasheet.sensor_width} mm). Please check the camera model name in the database."
        )

    for (make, model), image_path in diagnostics.unknown_sensors.items():
        warnings.append(
            f"Sensor width doesn't exist in the database for camera '{make} {model}' "
            f"(image '{Path(image_path).name}')"
        )

    if diagnostics.no_metadata_images:
        warnings.append(
            f"{len(diagnostics.no_metadata_images)} image(s) without camera metadata "
            f"(default intrinsic used)"
        )

    return warnings


def format_summary(diagnostics: DiagnosticsData, num_intrinsics: int, num_rigs: int) -> list[str]:
    """Summary lines of a completed run."""
    lines = [
        f"  Views listed: {diagnostics.view_count}",
        f"    with an initialized intrinsic: {diagnostics.complete_view_count}",
        f"    without metadata: {len(diagnostics.no_metadata_images)}",
        f"    estimated from 35mm-equivalent focal: {len(diagnostics.focal_35mm_estimates)}",
        f"  Intrinsics listed: {num_intrinsics}",
    ]
    if num_rigs:
        lines.append(f"  Rigs detected: {num_rigs}")
    return lines


def diagnostics_to_dataframe(outcomes: Iterable[ViewOutcome]) -> pd.DataFrame:
    """
    Per-view diagnostics table.

    Columns: view_id, image_path, make, model, complete, reused_intrinsic,
    undefined_intrinsic, sensor_missing, unsure_sensor, estimated_35mm,
    sensor_width, focal_length, rig_id, sub_pose_id, frame_id.

    Returns:
        DataFrame with one row per outcome
    """
    rows = []
    for outcome in outcomes:
        sensor_width, focal_length = outcome.focal_35mm_estimate or (None, None)
        rows.append({
            "view_id": outcome.view_id,
            "image_path": outcome.image_path,
            "make": outcome.make,
            "model": outcome.model,
            "complete": outcome.complete,
            "reused_intrinsic": outcome.reused_intrinsic,
            "undefined_intrinsic": outcome.undefined_intrinsic,
            "sensor_missing": outcome.sensor_missing,
            "unsure_sensor": outcome.unsure_datasheet is not None,
            "estimated_35mm": outcome.focal_35mm_estimate is not None,
            "sensor_width": sensor_width,
            "focal_length": focal_length,
            "rig_id": outcome.rig.rig_id if outcome.rig else None,
            "sub_pose_id": outcome.rig.sub_pose_id if outcome.rig else None,
            "frame_id": outcome.rig.frame_id if outcome.rig else None,
        })

    columns = [
        "view_id", "image_path", "make", "model", "complete", "reused_intrinsic",
        "undefined_intrinsic", "sensor_missing", "unsure_sensor", "estimated_35mm",
        "sensor_width", "focal_length", "rig_id", "sub_pose_id", "frame_id",
    ]
    return pd.DataFrame(rows, columns=columns)


def save_diagnostic_report(
    diagnostics: DiagnosticsData,
    outcomes: list[ViewOutcome],
    output_dir: Path,
) -> dict[str, Path]:
    """
    Save diagnostics to files.

    Creates:
    - diagnostics.json: Bucket contents and counts
    - diagnostics.csv: One row per view

    Args:
        diagnostics: Aggregated diagnostics
        outcomes: Per-view outcomes, in view order
        output_dir: Directory to save files (created if needed)

    Returns:
        Dict with keys:
        - "json": Path to diagnostics.json
        - "csv": Path to diagnostics.csv
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    result = {}

    json_path = output_dir / "diagnostics.json"
    json_data = {
        "view_count": diagnostics.view_count,
        "complete_view_count": diagnostics.complete_view_count,
        "undefined_view_count": diagnostics.undefined_view_count,
        "no_metadata_images": diagnostics.no_metadata_images,
        "unsure_sensors": [
            {
                "make": make,
                "model": model,
                "image": image_path,
                "database_brand": datasheet.brand,
                "database_model": datasheet.model,
                "sensor_width": datasheet.sensor_width,
            }
            for (make, model), (image_path, datasheet) in diagnostics.unsure_sensors.items()
        ],
        "unknown_sensors": [
            {"make": make, "model": model, "image": image_path}
            for (make, model), image_path in diagnostics.unknown_sensors.items()
        ],
        "focal_35mm_estimates": {
            image_path: {"sensor_width": sw, "focal_length": fl}
            for image_path, (sw, fl) in diagnostics.focal_35mm_estimates.items()
        },
        # JSON keys must be strings
        "rig_observations": {
            str(rig_id): {str(k): v for k, v in sub_poses.items()}
            for rig_id, sub_poses in diagnostics.rig_observations.items()
        },
        "rig_warnings": diagnostics.rig_warnings,
        "resize_warnings": diagnostics.resize_warnings,
    }
    with open(json_path, "w") as f:
        json.dump(json_data, f, indent=2)
    result["json"] = json_path

    csv_path = output_dir / "diagnostics.csv"
    diagnostics_to_dataframe(outcomes).to_csv(csv_path, index=False)
    result["csv"] = csv_path

    return result
