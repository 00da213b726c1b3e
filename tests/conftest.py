from pathlib import Path

import pytest

from video_collage.config.collage_config import CollageConfig
from video_collage.exceptions import CaptureError, ComposeError, ProbeError


class FakeTools:
    """In-memory stand-in for MediaTools."""

    def __init__(self, durations=None, capture_failures=None, compose_failures=()):
        self.durations = durations or {}
        # (video stem, timestamp index) -> number of attempts that fail
        self.capture_failures = dict(capture_failures or {})
        self.compose_failures = set(compose_failures)
        self.captures = []
        self.composed = []

    def probe_duration(self, media_path):
        duration = self.durations.get(Path(media_path).name)
        if duration is None:
            raise ProbeError(f"no duration for {media_path}")
        return duration

    def capture_frame(self, media_path, timestamp, output_path):
        key = (Path(media_path).stem, timestamp.index)
        self.captures.append((key, timestamp.clock))
        if self.capture_failures.get(key, 0) > 0:
            self.capture_failures[key] -= 1
            raise CaptureError(f"capture failed at {timestamp.clock}")
        output_path.write_bytes(b"jpeg")
        return output_path

    def compose_grid(self, output_path, members, grid, geometry):
        if output_path.name in self.compose_failures:
            raise ComposeError(f"montage failed for {output_path.name}")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"collage")
        self.composed.append((output_path, list(members), grid, geometry))
        return output_path


@pytest.fixture
def make_tools():
    return FakeTools


@pytest.fixture
def config():
    return CollageConfig(retry_delay=0)


@pytest.fixture
def no_sleep():
    calls = []
    return calls.append, calls


@pytest.fixture
def media_dir(tmp_path):
    d = tmp_path / "media"
    d.mkdir()
    return d
