"""Screenshot grouping and batch partitioning."""

import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from video_collage.config.config import SCREENSHOT_EXTENSION, SCREENSHOT_MARKER
from video_collage.core.layout import MIN_COLLAGE_MEMBERS, final_chunk_grid
from video_collage.exceptions import ConfigError
from video_collage.logging.logger import get_logger
from video_collage.models import CollageGroup, ScreenshotRef, TileGrid

T = TypeVar("T")

_SCREENSHOT_PATTERN = re.compile(
    r"^(?P<source>.+)" + re.escape(SCREENSHOT_MARKER)
    + r"(?P<seq>\d{3,})" + re.escape(SCREENSHOT_EXTENSION) + r"$",
    re.IGNORECASE,
)


def screenshot_name(source_base: str, sequence_index: int) -> str:
    """File name of the ``sequence_index``-th screenshot of a source."""
    if sequence_index < 1:
        raise ValueError(f"sequence_index must be >= 1, got {sequence_index}")
    return f"{source_base}{SCREENSHOT_MARKER}{sequence_index:03d}{SCREENSHOT_EXTENSION}"


def parse_screenshot_path(path: Union[str, Path]) -> Optional[ScreenshotRef]:
    """Recover the ScreenshotRef encoded in a screenshot file name."""
    path = Path(path)
    match = _SCREENSHOT_PATTERN.match(path.name)
    if not match:
        return None
    sequence_index = int(match.group("seq"))
    if sequence_index < 1:
        return None
    return ScreenshotRef(
        source_media_id=match.group("source"),
        sequence_index=sequence_index,
        path=path,
    )


def is_screenshot(path: Union[str, Path]) -> bool:
    return parse_screenshot_path(path) is not None


def group(refs: Iterable[ScreenshotRef]) -> Dict[str, List[ScreenshotRef]]:
    """Group screenshots by source, each group ordered by sequence index."""
    groups: Dict[str, List[ScreenshotRef]] = defaultdict(list)
    for ref in refs:
        groups[ref.source_media_id].append(ref)
    return {
        source: sorted(members, key=lambda r: r.sequence_index)
        for source, members in sorted(groups.items())
    }


def regroup(paths: Iterable[Union[str, Path]]) -> Dict[str, List[ScreenshotRef]]:
    """Group screenshot files found on disk; foreign file names are ignored."""
    refs = []
    for path in paths:
        ref = parse_screenshot_path(path)
        if ref is None:
            get_logger().debug(f"Not a screenshot, ignoring: {path}")
            continue
        refs.append(ref)
    return group(refs)


def select_groups(
    groups: Dict[str, List[ScreenshotRef]],
    min_members: int = MIN_COLLAGE_MEMBERS,
) -> Tuple[Dict[str, List[ScreenshotRef]], Dict[str, List[ScreenshotRef]]]:
    """Split groups into (kept, skipped) by the minimum member count."""
    kept: Dict[str, List[ScreenshotRef]] = {}
    skipped: Dict[str, List[ScreenshotRef]] = {}
    for source, members in groups.items():
        if len(members) < min_members:
            skipped[source] = members
        else:
            kept[source] = members
    return kept, skipped


def partition(items: Sequence[T], chunk_size: int) -> List[List[T]]:
    """Split items into consecutive chunks of ``chunk_size``; the last may be shorter."""
    if chunk_size < 1:
        raise ConfigError(f"chunk_size must be >= 1, got {chunk_size}")
    items = list(items)
    return [items[i:i + chunk_size] for i in range(0, len(items), chunk_size)]


def partition_groups(
    items: Sequence[T],
    requested: TileGrid,
    key_prefix: str = "batch",
) -> List[CollageGroup]:
    """Partition items into collage groups of ``requested.capacity``.

    Full chunks keep the requested grid; a trailing partial chunk keeps the
    column count and gets only as many rows as it needs.
    """
    groups = []
    for number, chunk in enumerate(partition(items, requested.capacity), start=1):
        grid = requested if len(chunk) == requested.capacity else final_chunk_grid(len(chunk), requested)
        groups.append(CollageGroup(group_key=f"{key_prefix}-{number:03d}", members=chunk, grid=grid))
    return groups
