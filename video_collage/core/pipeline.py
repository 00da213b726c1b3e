"""Collage pipeline: plan, capture, group and compose."""

import itertools
import time
from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Set, Tuple, Union

from video_collage.config.collage_config import CollageConfig
from video_collage.config.config import (
    IMAGE_COLLAGE_DIR,
    IMAGE_COLLAGE_SUFFIX,
    VIDEO_COLLAGE_DIR,
    VIDEO_COLLAGE_SUFFIX,
)
from video_collage.core import grouping
from video_collage.core.layout import cell_geometry, fit_grid
from video_collage.core.media_tools import MediaTools
from video_collage.core.sampling import classify, sequence
from video_collage.exceptions import ComposeError, ConfigError, ProbeError
from video_collage.logging.logger import get_logger
from video_collage.models import (
    CAPTURE_FAILURE,
    COMPOSE_FAILURE,
    CONFIG_FAILURE,
    PROBE_FAILURE,
    CaptureResult,
    CollageGroup,
    Member,
    RunReport,
    SamplingPlan,
    ScreenshotRef,
    Skip,
    TileGrid,
)
from video_collage.utils.files import find_images, find_screenshots, find_videos, resolve_directory
from video_collage.utils.retry import with_retry
from video_collage.utils.time_utils import format_duration, format_stamp_for_name


class CollagePipeline:
    """Runs collage jobs over a directory tree, one media file at a time.

    Every problem met on the way is recorded in the returned RunReport;
    only configuration errors found before any work starts are raised.
    """

    def __init__(
        self,
        config: Optional[CollageConfig] = None,
        tools: Optional[MediaTools] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = (config or CollageConfig()).validate()
        self.requested_grid = self.config.requested_grid
        self.tools = tools or MediaTools(
            capture_quality=self.config.capture_quality,
            compose_backend=self.config.compose_backend,
        )
        self.sleep = sleep or time.sleep
        self.logger = get_logger()
        # names handed out in the current run
        self._claimed_bases: Set[Tuple[Path, str]] = set()
        self._claimed_collages: Set[Path] = set()

    # Core surface

    def plan_and_capture(
        self,
        media_duration_seconds: float,
        minimum_length_seconds: Optional[float] = None,
        requested_grid: Optional[TileGrid] = None,
    ) -> Union[SamplingPlan, Skip]:
        """Sampling plan for a duration, or Skip when nothing should be captured."""
        if minimum_length_seconds is None:
            minimum_length_seconds = self.config.min_length_seconds
        return classify(media_duration_seconds, minimum_length_seconds, requested_grid or self.requested_grid)

    def regroup(self, screenshot_paths: Sequence[Union[str, Path]]) -> Dict[str, List[ScreenshotRef]]:
        return grouping.regroup(screenshot_paths)

    def finalize_grid(
        self,
        group_key: str,
        members: Sequence[Member],
        requested_grid: Optional[TileGrid] = None,
    ) -> CollageGroup:
        """Collage group with the grid picked for its member count."""
        grid = fit_grid(len(members), requested_grid or self.requested_grid)
        return CollageGroup(group_key=group_key, members=list(members), grid=grid)

    # Video collages

    def run_videos(self, directory: Union[str, Path], output_dir: Optional[Union[str, Path]] = None) -> RunReport:
        report = RunReport()
        self._start_run()
        root = self._resolve_or_report(directory, report)
        if root is None:
            return report

        videos = find_videos(root)
        if not videos:
            self.logger.warning(f"No video files found in {root}")
            return report

        self.logger.log_operation_start("video collages", videos=len(videos), grid=self.requested_grid)
        started = time.monotonic()
        for position, video in enumerate(videos, start=1):
            self.logger.log_progress(position, len(videos), "videos")
            self.process_video(video, report, self._output_dir(output_dir, video.parent, VIDEO_COLLAGE_DIR))
        self.logger.log_operation_complete(
            "video collages", time.monotonic() - started, collages=len(report.collages),
            failures=len(report.failures),
        )
        return report

    def process_video(self, video: Path, report: RunReport, collage_dir: Path) -> Optional[Path]:
        """Probe, plan, capture and compose one video. Returns the collage path."""
        self.logger.info(f"Processing {video}")
        try:
            duration = self.tools.probe_duration(video)
        except ProbeError as exc:
            self.logger.log_operation_error(f"probe of {video.name}", exc)
            report.add_failure(PROBE_FAILURE, video, exc)
            report.skipped_media.append(str(video))
            return None

        plan = self.plan_and_capture(duration)
        if isinstance(plan, Skip):
            self.logger.log_skip(video.name, plan.reason)
            report.skipped_media.append(str(video))
            return None

        self.logger.debug(
            f"{video.name}: {format_duration(duration)}, {plan.branch} plan, "
            f"{plan.count} frames every {plan.interval:.2f}s from {plan.start_offset:.0f}s"
        )
        source_id = self._claim_screenshot_base(video)
        result = self.capture(video, plan, source_id)
        for timestamp in result.dropped:
            report.add_failure(CAPTURE_FAILURE, video, f"no frame at {timestamp.clock}")

        return self._compose_screenshots(source_id, result.captured, collage_dir, report, video.parent)

    def capture(self, video: Path, plan: SamplingPlan, source_id: Optional[str] = None) -> CaptureResult:
        """Capture every planned timestamp in order; exhausted retries drop the timestamp."""
        source_id = source_id or video.stem
        result = CaptureResult(source=video)
        for timestamp in sequence(plan):
            output = video.parent / grouping.screenshot_name(source_id, timestamp.index)
            attempt = with_retry(
                lambda: self.tools.capture_frame(video, timestamp, output),
                self.config.max_capture_attempts,
                delay=self.config.retry_delay,
                label=f"{video.name} @ {timestamp.clock}",
                sleep=self.sleep,
            )
            if attempt.success:
                result.captured.append(
                    ScreenshotRef(source_media_id=source_id, sequence_index=timestamp.index, path=output)
                )
            else:
                self.logger.error(
                    f"Giving up on {video.name} @ {timestamp.clock} after {attempt.attempts} attempts"
                )
                result.dropped.append(timestamp)
        self.logger.info(f"Captured {len(result.captured)}/{result.planned} screenshots for {video.name}")
        return result

    def _compose_screenshots(
        self,
        source_id: str,
        refs: Sequence[ScreenshotRef],
        collage_dir: Path,
        report: RunReport,
        folder: Path,
    ) -> Optional[Path]:
        groups = grouping.group(refs)
        kept, skipped = grouping.select_groups(groups, self.config.min_collage_members)
        for skipped_id, members in skipped.items():
            self.logger.log_skip(
                skipped_id,
                f"not enough screenshots ({len(members)} < {self.config.min_collage_members})",
            )
            report.skipped_groups.append(skipped_id)
        if not groups:
            self.logger.log_skip(source_id, "no screenshots captured")
            report.skipped_groups.append(source_id)

        collage = None
        for group_id, members in kept.items():
            collage_group = self.finalize_grid(group_id, members)
            name = self._claim_collage_name(collage_dir, group_id, folder)
            output = collage_dir / f"{name}{VIDEO_COLLAGE_SUFFIX}"
            collage = self._compose(collage_group, output, report)
            if collage is not None and not self.config.keep:
                report.removed_screenshots += self._remove(collage_group.paths)
        return collage

    # Regroup screenshots already on disk

    def run_regroup(self, directory: Union[str, Path], output_dir: Optional[Union[str, Path]] = None) -> RunReport:
        """Compose collages from screenshots left by an earlier run."""
        report = RunReport()
        self._start_run()
        root = self._resolve_or_report(directory, report)
        if root is None:
            return report

        by_folder: Dict[Path, List[Path]] = defaultdict(list)
        for path in find_screenshots(root):
            by_folder[path.parent].append(path)
        if not by_folder:
            self.logger.warning(f"No screenshots found in {root}")
            return report

        for folder, paths in sorted(by_folder.items()):
            collage_dir = self._output_dir(output_dir, folder, VIDEO_COLLAGE_DIR)
            for source_id, refs in self.regroup(paths).items():
                self._compose_screenshots(source_id, refs, collage_dir, report, folder)
        return report

    # Image collages

    def run_images(self, directory: Union[str, Path], output_dir: Optional[Union[str, Path]] = None) -> RunReport:
        report = RunReport()
        root = self._resolve_or_report(directory, report)
        if root is None:
            return report

        images = find_images(root)
        if not images:
            self.logger.warning(f"No image files found in {root}")
            return report

        collage_dir = self._output_dir(output_dir, root, IMAGE_COLLAGE_DIR)
        stamp = format_stamp_for_name()
        groups = grouping.partition_groups(images, self.requested_grid, key_prefix=stamp)
        self.logger.log_operation_start("image collages", images=len(images), collages=len(groups))
        for collage_group in groups:
            self._compose(collage_group, collage_dir / f"{collage_group.group_key}{IMAGE_COLLAGE_SUFFIX}", report)
        self.logger.log_operation_complete("image collages", collages=len(report.collages))
        return report

    # Helpers

    def _start_run(self) -> None:
        self._claimed_bases.clear()
        self._claimed_collages.clear()

    def _claim_screenshot_base(self, video: Path) -> str:
        """Screenshot base name no other video in the same folder uses in this run.

        Videos sharing a stem (movie.mp4, movie.mkv) get the extension appended.
        """
        extension = video.suffix.lstrip(".").lower()
        base = _first_unclaimed(
            self._claimed_bases,
            [video.stem, f"{video.stem}-{extension}"],
            lambda name: (video.parent, name),
        )
        if base != video.stem:
            self.logger.warning(f"{video.name}: screenshot name '{video.stem}' already used, using '{base}'")
        return base

    def _claim_collage_name(self, collage_dir: Path, source_id: str, folder: Path) -> str:
        """Collage base name not yet written to ``collage_dir`` in this run.

        Sources from different folders sharing one output directory get the
        folder name as a prefix.
        """
        name = _first_unclaimed(
            self._claimed_collages,
            [source_id, f"{folder.name}-{source_id}"],
            lambda candidate: collage_dir / f"{candidate}{VIDEO_COLLAGE_SUFFIX}",
        )
        if name != source_id:
            self.logger.warning(f"Collage name '{source_id}' already used in {collage_dir}, using '{name}'")
        return name

    def _compose(self, collage_group: CollageGroup, output: Path, report: RunReport) -> Optional[Path]:
        geometry = cell_geometry(collage_group.grid, self.config.canvas)
        self.logger.info(
            f"Creating collage {output.name} ({len(collage_group.members)} images, grid {collage_group.grid})"
        )
        try:
            collage = self.tools.compose_grid(output, collage_group.paths, collage_group.grid, geometry)
        except ComposeError as exc:
            self.logger.log_operation_error(f"collage {output.name}", exc)
            self.logger.warning(f"Keeping {len(collage_group.members)} source images of {collage_group.group_key}")
            report.add_failure(COMPOSE_FAILURE, output, exc)
            return None
        report.collages.append(collage)
        return collage

    def _remove(self, paths: Sequence[Path]) -> int:
        removed = 0
        for path in paths:
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as exc:
                self.logger.warning(f"Could not remove {path}: {exc}")
        return removed

    def _resolve_or_report(self, directory, report: RunReport) -> Optional[Path]:
        try:
            return resolve_directory(directory)
        except ConfigError as exc:
            self.logger.error(str(exc))
            report.add_failure(CONFIG_FAILURE, directory, exc)
            return None

    def _output_dir(self, output_dir, default_parent: Path, default_name: str) -> Path:
        if output_dir or self.config.output_dir:
            return Path(output_dir or self.config.output_dir)
        return default_parent / default_name


def _first_unclaimed(claimed: Set, candidates: Sequence[str], key: Callable[[str], Hashable]) -> str:
    """First candidate, then numbered variants of the first, whose key is not in ``claimed``."""
    numbered = (f"{candidates[0]}-{n}" for n in itertools.count(2))
    for candidate in itertools.chain(candidates, numbered):
        if key(candidate) not in claimed:
            claimed.add(key(candidate))
            return candidate
