"""Command line interface for video-collage."""

import argparse
from pathlib import Path
from typing import Optional, Sequence

from video_collage.config.collage_config import (
    CollageConfig,
    create_default_config_file,
    load_config,
)
from video_collage.config.config import DEFAULT_CONFIG_PATH
from video_collage.core.pipeline import CollagePipeline
from video_collage.core.sampling import classify, sequence
from video_collage.exceptions import CollageError, ConfigError
from video_collage.logging.logger import setup_logging
from video_collage.models import Skip
from video_collage.utils.time_utils import parse_time_value


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="video-collage",
        description="Make contact-sheet collages for every video (or batch of images) in a folder tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One collage per video, screenshots removed afterwards
  video-collage videos /path/to/videos

  # Keep screenshots, 4x3 sheets, skip anything under 20 minutes
  video-collage videos /path/to/videos --keep --grid 4x3 --min-length 20m

  # Tile every photo in a folder into 3x3 sheets
  video-collage images /path/to/photos --grid 3x3 -o /path/to/output

  # Show which timestamps a 70 minute video would get
  video-collage plan 70m
        """
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default: INFO)"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to configuration file (JSON format)"
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Also write a log file into this directory"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    videos_parser = subparsers.add_parser(
        "videos",
        help="Create one collage per video file",
        description="Capture screenshots from every video under DIRECTORY and tile them into collages."
    )
    _add_directory_arguments(videos_parser)
    _add_grid_argument(videos_parser)
    videos_parser.add_argument(
        "--keep", "-k",
        action="store_true",
        default=None,
        help="Keep screenshots after creating the collage"
    )
    videos_parser.add_argument(
        "--min-length",
        type=str,
        default=None,
        help="Skip videos shorter than this (e.g. 1200, 20m, 00:20:00)"
    )

    images_parser = subparsers.add_parser(
        "images",
        help="Tile all images into fixed-size collages",
        description="Partition every image under DIRECTORY into collages of --grid capacity."
    )
    _add_directory_arguments(images_parser)
    _add_grid_argument(images_parser)

    regroup_parser = subparsers.add_parser(
        "regroup",
        help="Build collages from screenshots left on disk",
        description="Group existing '<name>-screenshot-NNN.jpg' files by video and compose them."
    )
    _add_directory_arguments(regroup_parser)
    _add_grid_argument(regroup_parser)
    regroup_parser.add_argument(
        "--keep", "-k",
        action="store_true",
        default=None,
        help="Keep screenshots after creating the collage"
    )

    plan_parser = subparsers.add_parser(
        "plan",
        help="Print the screenshot plan for a duration",
        description="Show the sampling plan and timestamps for a video of the given duration."
    )
    plan_parser.add_argument("duration", type=str, help="Video duration (e.g. 1500, 25m, 01:10:00)")
    _add_grid_argument(plan_parser)
    plan_parser.add_argument(
        "--min-length",
        type=str,
        default=None,
        help="Minimum video length (default: from configuration)"
    )

    config_parser = subparsers.add_parser(
        "create-config",
        help="Create a default configuration file",
        description="Generate a default configuration file that can be customized."
    )
    config_parser.add_argument(
        "--output", "-o",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"Output path for configuration file (default: {DEFAULT_CONFIG_PATH})"
    )

    return parser


def _add_directory_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument("directory", type=str, help="Directory to scan (recursively)")
    subparser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Directory for collages (default: a *-collages folder next to the sources)"
    )


def _add_grid_argument(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--grid", "-g",
        type=str,
        default=None,
        help="Collage grid as <columns>x<rows> (default: 3x2)"
    )


def apply_overrides(config: CollageConfig, args: argparse.Namespace) -> CollageConfig:
    """Apply command line arguments over the loaded configuration."""
    if getattr(args, "grid", None):
        config.grid = args.grid
    if getattr(args, "keep", None):
        config.keep = True
    if getattr(args, "min_length", None) is not None:
        config.min_length_seconds = parse_time_value(args.min_length, allow_zero=True)
    if getattr(args, "log_level", None):
        config.log_level = args.log_level
    if getattr(args, "log_dir", None):
        config.log_dir = args.log_dir
    return config.validate()


def handle_plan(config: CollageConfig, args: argparse.Namespace) -> int:
    duration = parse_time_value(args.duration, allow_zero=True)
    plan = classify(duration, config.min_length_seconds, config.requested_grid)
    if isinstance(plan, Skip):
        print(f"Skip: {plan.reason}")
        return 0
    print(f"Branch:   {plan.branch}")
    print(f"Frames:   {plan.count}")
    print(f"Start:    {plan.start_offset:.0f}s")
    print(f"Interval: {plan.interval:.2f}s")
    for timestamp in sequence(plan):
        print(f"  {timestamp.index:03d}  {timestamp.clock}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "create-config":
        path = create_default_config_file(args.output)
        print(f"Default configuration saved to: {path}")
        return 0

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        return 2

    logger = setup_logging(config.log_level, config.log_dir)

    if args.command == "plan":
        try:
            return handle_plan(config, args)
        except ConfigError as exc:
            logger.error(str(exc))
            return 2

    try:
        pipeline = CollagePipeline(config)
        if args.command == "videos":
            report = pipeline.run_videos(args.directory, args.output)
        elif args.command == "images":
            report = pipeline.run_images(args.directory, args.output)
        else:
            report = pipeline.run_regroup(args.directory, args.output)
    except CollageError as exc:
        logger.log_operation_error(args.command, exc)
        return 2

    for failure in report.failures:
        logger.debug(f"{failure.kind}: {failure.subject}: {failure.message}")
    logger.info(f"All tasks completed ({report.summary()})")
    return report.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
