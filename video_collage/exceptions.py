"""Exceptions for video-collage module."""


class CollageError(Exception):
    """Base exception for video-collage."""
    pass


class ConfigError(CollageError):
    """Configuration error (bad grid string, missing path, bad config file)."""
    pass


class ProbeError(CollageError):
    """Media duration could not be determined."""
    pass


class CaptureError(CollageError):
    """Single frame extraction failed."""
    pass


class ComposeError(CollageError):
    """Tiling/composition of a collage failed."""
    pass
