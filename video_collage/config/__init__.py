"""Settings for video-collage."""
