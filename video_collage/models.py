"""Data models for video-collage module."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Union

from video_collage.utils.time_utils import format_clock


@dataclass(frozen=True)
class SamplingPlan:
    """When to extract frames from a video."""
    count: int
    start_offset: float
    interval: float
    branch: str = "medium"

    def __post_init__(self):
        if self.count < 1:
            raise ValueError("SamplingPlan.count must be >= 1")
        if self.start_offset < 0:
            raise ValueError("SamplingPlan.start_offset must be >= 0")
        if self.interval <= 0:
            raise ValueError("SamplingPlan.interval must be > 0")


@dataclass(frozen=True)
class Skip:
    """Media item that must not be sampled."""
    reason: str


@dataclass(frozen=True)
class Timestamp:
    """Point in a video to capture, 1-based index in capture order."""
    index: int
    seconds: float

    @property
    def clock(self) -> str:
        return format_clock(self.seconds)


@dataclass(frozen=True)
class TileGrid:
    """Collage layout: columns x rows."""
    columns: int
    rows: int

    def __post_init__(self):
        if self.columns < 1 or self.rows < 1:
            raise ValueError(f"Grid sides must be >= 1, got {self.columns}x{self.rows}")

    @property
    def capacity(self) -> int:
        return self.columns * self.rows

    def __str__(self) -> str:
        return f"{self.columns}x{self.rows}"


@dataclass(frozen=True)
class ScreenshotRef:
    """Captured frame, attached to its source at capture time."""
    source_media_id: str
    sequence_index: int
    path: Path


Member = Union[ScreenshotRef, Path]


def member_path(member: Member) -> Path:
    """Filesystem path of a collage member."""
    if isinstance(member, ScreenshotRef):
        return Path(member.path)
    return Path(member)


@dataclass
class CollageGroup:
    """Ordered members composed into one collage."""
    group_key: str
    members: List[Member]
    grid: TileGrid

    def __post_init__(self):
        if len(self.members) > self.grid.capacity:
            raise ValueError(
                f"Group '{self.group_key}' has {len(self.members)} members, "
                f"grid {self.grid} holds {self.grid.capacity}"
            )

    @property
    def paths(self) -> List[Path]:
        return [member_path(m) for m in self.members]


@dataclass
class CaptureResult:
    """Outcome of capturing every planned timestamp of one video."""
    source: Path
    captured: List[ScreenshotRef] = field(default_factory=list)
    dropped: List[Timestamp] = field(default_factory=list)

    @property
    def planned(self) -> int:
        return len(self.captured) + len(self.dropped)


@dataclass
class RetryResult:
    """Outcome of a bounded retry."""
    success: bool
    attempts: int
    value: Any = None
    error: Optional[BaseException] = None


# Failure kinds recorded in a RunReport
CONFIG_FAILURE = "config"
PROBE_FAILURE = "probe"
CAPTURE_FAILURE = "capture"
COMPOSE_FAILURE = "compose"


@dataclass
class Failure:
    """Reported, non-fatal problem."""
    kind: str
    subject: str
    message: str


@dataclass
class RunReport:
    """Aggregated statuses of a collage run."""
    collages: List[Path] = field(default_factory=list)
    skipped_media: List[str] = field(default_factory=list)
    skipped_groups: List[str] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)
    removed_screenshots: int = 0

    def add_failure(self, kind: str, subject: Any, message: Any) -> Failure:
        failure = Failure(kind=kind, subject=str(subject), message=str(message))
        self.failures.append(failure)
        return failure

    def failures_of(self, kind: str) -> List[Failure]:
        return [f for f in self.failures if f.kind == kind]

    @property
    def exit_code(self) -> int:
        if self.failures_of(CONFIG_FAILURE):
            return 2
        if self.failures_of(PROBE_FAILURE) or self.failures_of(COMPOSE_FAILURE):
            return 1
        return 0

    def summary(self) -> str:
        return (
            f"collages={len(self.collages)}, skipped_media={len(self.skipped_media)}, "
            f"skipped_groups={len(self.skipped_groups)}, failures={len(self.failures)}"
        )