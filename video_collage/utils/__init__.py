"""Utilities for video-collage module."""

from .time_utils import (
    format_clock,
    format_duration,
    format_stamp_for_name,
    parse_time_value,
)

__all__ = [
    "format_clock",
    "format_duration",
    "format_stamp_for_name",
    "parse_time_value",
]
