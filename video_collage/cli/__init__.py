"""Command line interface for video-collage."""
