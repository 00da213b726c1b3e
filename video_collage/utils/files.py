"""Directory scanning for collage inputs."""

import os
from pathlib import Path
from typing import Iterable, List, Union

from video_collage.config.config import (
    COLLAGE_DIR_MARKER,
    IMAGE_COLLAGE_SUFFIX,
    SCREENSHOT_MARKER,
    SUPPORTED_IMAGE_FORMATS,
    SUPPORTED_VIDEO_FORMATS,
    VIDEO_COLLAGE_SUFFIX,
)
from video_collage.core.grouping import is_screenshot
from video_collage.exceptions import ConfigError


def resolve_directory(path: Union[str, Path]) -> Path:
    """Resolve and check a directory argument."""
    if not path:
        raise ConfigError("Directory path is required")
    directory = Path(path).expanduser()
    if not directory.exists():
        raise ConfigError(f"Directory '{directory}' does not exist")
    if not directory.is_dir():
        raise ConfigError(f"Input path '{directory}' must be a directory")
    return directory.resolve()


def is_collage_dir(name: str) -> bool:
    return COLLAGE_DIR_MARKER in name.lower()


def is_collage_output(path: Path) -> bool:
    name = path.name.lower()
    return name.endswith(VIDEO_COLLAGE_SUFFIX) or name.endswith(IMAGE_COLLAGE_SUFFIX)


def walk_files(root: Path) -> List[Path]:
    """All files under ``root``, sorted, skipping collage output directories."""
    found: List[Path] = []
    for current, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not is_collage_dir(d))
        for filename in sorted(filenames):
            found.append(Path(current) / filename)
    return found


def _with_extension(paths: Iterable[Path], extensions: Iterable[str]) -> List[Path]:
    allowed = {ext.lower() for ext in extensions}
    return [p for p in paths if p.suffix.lower() in allowed]


def find_videos(root: Path) -> List[Path]:
    return _with_extension(walk_files(root), SUPPORTED_VIDEO_FORMATS)


def find_images(root: Path) -> List[Path]:
    """Images eligible for an image collage: no screenshots, no earlier collages."""
    return [
        p for p in _with_extension(walk_files(root), SUPPORTED_IMAGE_FORMATS)
        if not is_collage_output(p) and SCREENSHOT_MARKER not in p.name
    ]


def find_screenshots(root: Path) -> List[Path]:
    """Files named like captured screenshots, <base>-screenshot-NNN.jpg."""
    return [p for p in walk_files(root) if is_screenshot(p)]
