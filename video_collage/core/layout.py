"""Tile grid planning for collages."""

import math
import re
from typing import Tuple

from video_collage.config.config import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    GRID_BUCKETS,
)
from video_collage.exceptions import ConfigError
from video_collage.models import TileGrid

_GRID_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")

# smallest bucket capacity; fewer screenshots than this never make a collage
MIN_COLLAGE_MEMBERS = GRID_BUCKETS[0][0]


def parse_grid(value: str) -> TileGrid:
    """Parse ``<columns>x<rows>`` into a TileGrid."""
    if isinstance(value, TileGrid):
        return value
    if not isinstance(value, str):
        raise ConfigError(f"Invalid grid {value!r}. Expected a string such as 3x2")
    match = _GRID_PATTERN.match(value)
    if not match:
        raise ConfigError(f"Invalid grid '{value}'. Expected <columns>x<rows>, e.g. 3x2")
    columns, rows = int(match.group(1)), int(match.group(2))
    if columns < 1 or rows < 1:
        raise ConfigError(f"Invalid grid '{value}'. Columns and rows must be >= 1")
    return TileGrid(columns, rows)


def plan_grid(item_count: int, requested: TileGrid) -> TileGrid:
    """Pick the squarest bucket that holds ``item_count`` screenshots.

    Counts above the largest bucket fall through to the requested grid.
    """
    if item_count < 0:
        raise ValueError(f"item_count must be >= 0, got {item_count}")
    for limit, (columns, rows) in GRID_BUCKETS:
        if item_count <= limit:
            return TileGrid(columns, rows)
    return requested


def final_chunk_grid(partial_count: int, requested: TileGrid) -> TileGrid:
    """Grid for the last, possibly partial, chunk: same columns, fewer rows."""
    if partial_count < 1:
        raise ValueError(f"partial_count must be >= 1, got {partial_count}")
    if partial_count >= requested.capacity:
        return requested
    return TileGrid(requested.columns, math.ceil(partial_count / requested.columns))


def fit_grid(item_count: int, requested: TileGrid) -> TileGrid:
    """plan_grid, growing rows when the requested grid is too small for the items."""
    grid = plan_grid(item_count, requested)
    if item_count > grid.capacity:
        grid = TileGrid(grid.columns, math.ceil(item_count / grid.columns))
    return grid


def cell_geometry(
    grid: TileGrid,
    canvas: Tuple[int, int] = (DEFAULT_CANVAS_WIDTH, DEFAULT_CANVAS_HEIGHT),
) -> Tuple[int, int]:
    """Per-cell pixel size of a collage on the given canvas."""
    width, height = canvas
    return max(1, width // grid.columns), max(1, height // grid.rows)
