"""Command-line interface for the camerainit pipeline."""

import argparse
import sys
from pathlib import Path

from camerainit.config.schema import CameraInitError, InvalidConfigurationError
from camerainit.core.intrinsic import make_intrinsic_defaults
from camerainit.core.sensor_db import find_sensor
from camerainit.initialization.pipeline import load_config, run_camera_init_from_config
from camerainit.io.images import load_metadata_provider
from camerainit.io.sensor_database import load_sensor_database


def create_parser() -> argparse.ArgumentParser:
    """
    Create argument parser for CLI.

    Returns:
        Configured ArgumentParser with subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="camerainit",
        description="Initial camera intrinsics from image metadata for 3D reconstruction",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        required=True,
    )

    # run subcommand
    run_parser = subparsers.add_parser(
        "run",
        help="Run intrinsic initialization",
        description="Resolve initial intrinsics and rig structure for all views of a scene file.",
    )
    run_parser.add_argument(
        "config_path",
        type=Path,
        help="Path to configuration YAML file",
    )
    run_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show per-view progress",
    )
    run_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Override output scene path from config",
    )
    run_parser.add_argument(
        "-j",
        "--num-workers",
        type=int,
        default=None,
        help="Override number of worker threads from config",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration without processing views",
    )
    run_parser.set_defaults(func=cmd_run)

    # lookup subcommand
    lookup_parser = subparsers.add_parser(
        "lookup",
        help="Look up a camera in a sensor database",
        description="Print the sensor width matched for a camera make and model.",
    )
    lookup_parser.add_argument(
        "database",
        type=Path,
        help="Path to sensor database file",
    )
    lookup_parser.add_argument("make", help="Camera make (e.g. 'Canon')")
    lookup_parser.add_argument("model", help="Camera model (e.g. 'EOS 5D')")
    lookup_parser.set_defaults(func=cmd_lookup)

    return parser


def cmd_run(args: argparse.Namespace) -> int:
    """
    Execute run command.

    Args:
        args: Parsed arguments with config_path, verbose, output, num_workers, dry_run

    Returns:
        Exit code: 0 for success, 1 for file errors, 2 for invalid
        configuration, 3 for initialization failures
    """
    config_path = args.config_path

    # Check file exists
    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        return 1

    # Load and validate config
    try:
        config = load_config(config_path)
        make_intrinsic_defaults(
            default_intrinsic=config.default_intrinsic,
            default_focal_length_pix=config.default_focal_length_pix,
            default_field_of_view=config.default_field_of_view,
            default_camera_model=config.default_camera_model,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 2

    # Command-line overrides
    if args.output is not None:
        config.output_path = args.output
    if args.num_workers is not None:
        if args.num_workers < 1:
            print("Error: Invalid configuration: num_workers must be at least 1", file=sys.stderr)
            return 2
        config.num_workers = args.num_workers

    if config.scene_path is not None:
        inputs = [(config.scene_path, "Scene file")]
    else:
        inputs = [(config.image_folder_path, "Image folder")]
    inputs.append((config.sensor_database_path, "Sensor database"))
    for path, label in inputs:
        if not path.exists():
            print(f"Error: {label} not found: {path}", file=sys.stderr)
            return 1

    provider = None
    if config.scene_path is None:
        try:
            provider = load_metadata_provider(config.metadata_provider)
        except InvalidConfigurationError as e:
            print(f"Error: Invalid configuration: {e}", file=sys.stderr)
            return 2

    # Dry run: just validate
    if args.dry_run:
        overrides = []
        if config.default_intrinsic:
            overrides.append("K matrix")
        if config.default_focal_length_pix is not None:
            overrides.append(f"focal {config.default_focal_length_pix} px")
        if config.default_field_of_view is not None:
            overrides.append(f"field of view {config.default_field_of_view} deg")
        if config.default_camera_model is not None:
            overrides.append(f"camera model {config.default_camera_model.value}")

        if config.scene_path is not None:
            source = f"scene {config.scene_path}"
        else:
            source = f"image folder {config.image_folder_path} via {config.metadata_provider}"
        print(
            f"Configuration valid. Input: {source}. Grouping mode {int(config.group_camera_model)}, "
            f"overrides: {', '.join(overrides) if overrides else 'none'}. "
            f"Output will be saved to {config.output_path}. "
            f"Ready for initialization."
        )
        return 0

    # Run initialization
    try:
        run_camera_init_from_config(config, verbose=args.verbose, metadata_provider=provider)
        return 0
    except CameraInitError as e:
        print(f"Initialization failed: {e}", file=sys.stderr)
        return 3
    except ValueError as e:
        print(f"Error: Invalid input: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInitialization interrupted.", file=sys.stderr)
        return 130


def cmd_lookup(args: argparse.Namespace) -> int:
    """
    Execute lookup command.

    Args:
        args: Parsed arguments with database, make, model

    Returns:
        Exit code: 0 if found, 1 for file errors, 4 if not in the database
    """
    try:
        database = load_sensor_database(args.database)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: Invalid sensor database: {e}", file=sys.stderr)
        return 1

    match = find_sensor(args.make, args.model, database)
    if match is None:
        print(f"Camera '{args.make} {args.model}' not found in {args.database}")
        return 4

    sheet = match.datasheet
    print(f"{sheet.brand};{sheet.model};{sheet.sensor_width}")
    if match.unsure:
        print(
            f"Warning: database model '{sheet.model}' differs from '{args.model}'",
            file=sys.stderr,
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
