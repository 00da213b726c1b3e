"""Configuration management for collage runs."""

from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional, Union
from pathlib import Path
import json
import os
from dotenv import load_dotenv

from video_collage.config.config import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_CAPTURE_QUALITY,
    DEFAULT_CONFIG_PATH,
    DEFAULT_GRID,
    DEFAULT_MIN_LENGTH_SECONDS,
    ENV_PREFIX,
    MAX_CAPTURE_ATTEMPTS,
    RETRY_DELAY_SECONDS,
)
from video_collage.core.layout import parse_grid
from video_collage.exceptions import ConfigError
from video_collage.models import TileGrid
from video_collage.utils.time_utils import parse_time_value

COMPOSE_BACKENDS = ("auto", "montage", "pillow")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class CollageConfig:
    """Main configuration container."""
    grid: str = DEFAULT_GRID
    min_length_seconds: float = DEFAULT_MIN_LENGTH_SECONDS
    keep: bool = False
    min_collage_members: int = 4
    max_capture_attempts: int = MAX_CAPTURE_ATTEMPTS
    retry_delay: float = RETRY_DELAY_SECONDS
    canvas_width: int = DEFAULT_CANVAS_WIDTH
    canvas_height: int = DEFAULT_CANVAS_HEIGHT
    capture_quality: int = DEFAULT_CAPTURE_QUALITY
    compose_backend: str = "auto"
    output_dir: Optional[str] = None
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    @property
    def requested_grid(self) -> TileGrid:
        return parse_grid(self.grid)

    @property
    def canvas(self):
        return self.canvas_width, self.canvas_height

    def validate(self) -> "CollageConfig":
        """Raise ConfigError on values no run could use."""
        parse_grid(self.grid)
        if self.min_length_seconds < 0:
            raise ConfigError("min_length_seconds must be >= 0")
        if self.min_collage_members < 1:
            raise ConfigError("min_collage_members must be >= 1")
        if self.max_capture_attempts < 1:
            raise ConfigError("max_capture_attempts must be >= 1")
        if self.retry_delay < 0:
            raise ConfigError("retry_delay must be >= 0")
        if self.canvas_width < 1 or self.canvas_height < 1:
            raise ConfigError("canvas size must be positive")
        if not 2 <= self.capture_quality <= 31:
            raise ConfigError("capture_quality must be within 2..31")
        if self.compose_backend not in COMPOSE_BACKENDS:
            raise ConfigError(
                f"compose_backend must be one of {', '.join(COMPOSE_BACKENDS)}"
            )
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level '{self.log_level}'")
        return self

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'CollageConfig':
        """Load configuration from JSON file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid configuration file {config_path}: {exc}") from exc

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict) -> 'CollageConfig':
        """Create configuration from dictionary."""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**{
            name: _check_file_value(name, value, getattr(cls, name))
            for name, value in data.items()
        })

    @classmethod
    def from_env(cls) -> 'CollageConfig':
        """Load configuration from COLLAGE_* environment variables."""
        load_dotenv()

        config = cls()
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            setattr(config, f.name, _coerce(f.name, raw, getattr(cls, f.name, None)))
        return config

    def to_dict(self) -> Dict:
        """Convert configuration to dictionary."""
        return asdict(self)

    def save_to_file(self, config_path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)


def _coerce(name: str, raw: str, default):
    if name == "min_length_seconds":
        return parse_time_value(raw, allow_zero=True)
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    try:
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid value for {ENV_PREFIX}{name.upper()}: '{raw}'") from exc
    return raw


def _check_file_value(name: str, value, default):
    """Check a JSON value against the type of the field default."""
    if name == "min_length_seconds" and isinstance(value, str):
        return parse_time_value(value, allow_zero=True)
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
    elif isinstance(default, int):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif isinstance(value, str) or (value is None and default is None):
        return value
    raise ConfigError(f"Invalid value for {name}: {value!r}")


def load_config(config_path: Optional[Union[str, Path]] = None) -> CollageConfig:
    """Load configuration from file or environment."""
    if config_path:
        config = CollageConfig.from_file(config_path)
    else:
        config = CollageConfig.from_env()
    return config


def create_default_config_file(config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> Path:
    """Create a default configuration file."""
    config = CollageConfig()
    config.save_to_file(config_path)
    return Path(config_path)
