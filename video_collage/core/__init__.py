"""Collage planning core and media tool adapters."""
