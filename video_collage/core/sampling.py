"""Screenshot timing: duration classification and timestamp sequencing."""

from typing import Iterator, Union

from video_collage.config.config import (
    LONG_ENDING_EXCLUDED,
    LONG_START_OFFSET,
    LONG_VIDEO_MIN,
    MEDIUM_START_OFFSET,
    MIN_SAMPLE_INTERVAL,
    SHORT_START_OFFSET,
    SHORT_TAIL_MARGIN,
    SHORT_VIDEO_MAX,
    VERY_SHORT_CAPTURE_COUNT,
    VERY_SHORT_VIDEO_MAX,
)
from video_collage.models import SamplingPlan, Skip, TileGrid, Timestamp


def classify(
    duration_seconds: float,
    minimum_length_seconds: float,
    requested_grid: TileGrid,
) -> Union[SamplingPlan, Skip]:
    """Map a media duration to a sampling plan.

    Three branches decide where sampling starts and how much of the video
    is usable:

    * short (<= 5 min): start at 5s, drop 10s from the span. Clips under
      40s always get 4 frames (a 2x2 sheet) whatever grid was requested.
    * medium (< 1 h): start at 30s, spread over the whole duration.
    * long (>= 1 h): start at 2 min and stop 10 min before the end so the
      ending is never shown.

    Frames are spaced ``usable / (count + 1)`` apart. When that spacing
    would drop below ``MIN_SAMPLE_INTERVAL`` the count shrinks instead;
    a span with nothing usable is skipped.
    """
    if duration_seconds < 0:
        return Skip(f"invalid duration {duration_seconds}")
    if duration_seconds < minimum_length_seconds:
        return Skip(
            f"duration {duration_seconds:.1f}s is below minimum length {minimum_length_seconds:.1f}s"
        )

    count = requested_grid.capacity
    if duration_seconds <= SHORT_VIDEO_MAX:
        branch = "short"
        if duration_seconds < VERY_SHORT_VIDEO_MAX:
            count = VERY_SHORT_CAPTURE_COUNT
        start = float(SHORT_START_OFFSET)
        usable = duration_seconds - SHORT_TAIL_MARGIN
    elif duration_seconds < LONG_VIDEO_MIN:
        branch = "medium"
        start = float(MEDIUM_START_OFFSET)
        usable = duration_seconds
    else:
        branch = "long"
        start = float(LONG_START_OFFSET)
        end = max(duration_seconds - LONG_ENDING_EXCLUDED, start)
        usable = end - start

    if usable <= 0:
        return Skip(f"no usable span in {duration_seconds:.1f}s ({branch} video)")

    count = _clamp_count(count, usable)
    return SamplingPlan(
        count=count,
        start_offset=start,
        interval=usable / (count + 1),
        branch=branch,
    )


def _clamp_count(count: int, usable: float) -> int:
    if usable / (count + 1) >= MIN_SAMPLE_INTERVAL:
        return count
    return max(1, int(usable // MIN_SAMPLE_INTERVAL) - 1)


class TimestampSequence:
    """Lazy, restartable sequence of the timestamps of a plan."""

    def __init__(self, plan: SamplingPlan):
        self.plan = plan

    def __len__(self) -> int:
        return self.plan.count

    def __iter__(self) -> Iterator[Timestamp]:
        plan = self.plan
        for i in range(1, plan.count + 1):
            yield Timestamp(index=i, seconds=plan.start_offset + plan.interval * i)

    def __getitem__(self, position: int) -> Timestamp:
        if position < 0:
            position += self.plan.count
        if not 0 <= position < self.plan.count:
            raise IndexError("timestamp index out of range")
        i = position + 1
        return Timestamp(index=i, seconds=self.plan.start_offset + self.plan.interval * i)

    def clocks(self):
        return [ts.clock for ts in self]

    def __repr__(self) -> str:
        return f"TimestampSequence({self.plan!r})"


def sequence(plan: SamplingPlan) -> TimestampSequence:
    """Timestamps ``start + interval * i`` for i in 1..count."""
    return TimestampSequence(plan)
