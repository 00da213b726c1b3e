"""Time and clock formatting utilities."""

from datetime import datetime
from typing import Optional

from video_collage.exceptions import ConfigError

_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "min": 60.0,
    "h": 3600.0,
}


def parse_time_value(value: str, *, allow_zero: bool = False) -> float:
    """Parse time in seconds from user string.

    Accepts plain seconds (``1200``), a unit suffix (``90s``, ``20m``,
    ``20min``, ``1.5h``, ``500ms``) or a clock value ``HH:MM:SS``.
    """

    if value is None:
        raise ConfigError("Time value not specified")

    normalized = (
        str(value).strip()
        .replace(" ", "")
        .replace(",", ".")
        .lower()
    )

    if not normalized:
        raise ConfigError("Empty time value")

    if ":" in normalized:
        parts = normalized.split(":")
        if len(parts) != 3:
            raise ConfigError(
                f"Invalid time format '{value}'. Expected HH:MM:SS"
            )
        hours_str, minutes_str, seconds_str = parts
        try:
            hours = int(hours_str)
            minutes = int(minutes_str)
            seconds = float(seconds_str)
        except ValueError as exc:
            raise ConfigError(f"Failed to parse time '{value}'") from exc
        if minutes >= 60 or minutes < 0:
            raise ConfigError(f"Minutes out of range 0-59 in value '{value}'")
        if seconds < 0 or seconds >= 60:
            raise ConfigError(f"Seconds out of range 0-59 in value '{value}'")
        total_seconds = hours * 3600 + minutes * 60 + seconds
    else:
        multiplier = 1.0
        number_part = normalized
        # longest suffixes first so "ms" and "min" win over "s" and "m"
        for suffix in sorted(_UNIT_SECONDS, key=len, reverse=True):
            if normalized.endswith(suffix):
                multiplier = _UNIT_SECONDS[suffix]
                number_part = normalized[: -len(suffix)]
                break

        if not number_part:
            raise ConfigError(f"Invalid time format '{value}'")

        try:
            number = float(number_part)
        except ValueError as exc:
            raise ConfigError(f"Failed to parse number in '{value}'") from exc

        total_seconds = number * multiplier

    if total_seconds < 0 or (total_seconds == 0 and not allow_zero):
        raise ConfigError("Time must be > 0")

    return total_seconds


def format_clock(seconds: float) -> str:
    """Format seconds as HH:MM:SS, truncating the fractional part."""
    whole = int(seconds)
    if whole < 0:
        raise ValueError(f"Cannot format negative time {seconds}")
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_duration(seconds: float) -> str:
    """Readable duration for log lines, e.g. ``1h 10m 00s``."""
    whole = int(seconds)
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{seconds:.1f}s"


def format_stamp_for_name(moment: Optional[datetime] = None) -> str:
    """Run timestamp for use in file names."""
    return (moment or datetime.now()).strftime("%Y%m%d_%H%M%S")
