"""Logging helpers for video-collage."""
