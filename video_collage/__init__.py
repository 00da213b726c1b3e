"""Video Collage - contact-sheet collages for video and image folders."""

from .exceptions import CaptureError, CollageError, ComposeError, ConfigError, ProbeError

__version__ = "1.0.0"
__all__ = ["CollageError", "ConfigError", "ProbeError", "CaptureError", "ComposeError"]
