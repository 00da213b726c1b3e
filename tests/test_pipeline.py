from pathlib import Path

import pytest

from video_collage.config.collage_config import CollageConfig
from video_collage.core.pipeline import CollagePipeline
from video_collage.models import (
    CAPTURE_FAILURE,
    COMPOSE_FAILURE,
    CONFIG_FAILURE,
    PROBE_FAILURE,
    SamplingPlan,
    Skip,
    TileGrid,
)


def add_videos(directory, *names):
    for name in names:
        (directory / name).write_bytes(b"video")


def screenshots_in(directory):
    return sorted(p.name for p in directory.glob("*-screenshot-*.jpg"))


@pytest.fixture
def pipeline_for(config, make_tools, no_sleep):
    sleep, _ = no_sleep

    def build(cfg=None, **tool_options):
        tools = make_tools(**tool_options)
        return CollagePipeline(cfg or config, tools=tools, sleep=sleep), tools

    return build


def test_video_collage_end_to_end(pipeline_for, media_dir):
    add_videos(media_dir, "movie.mp4")
    pipeline, tools = pipeline_for(durations={"movie.mp4": 1500})

    report = pipeline.run_videos(media_dir)

    collage = media_dir.resolve() / "video-collages" / "movie-videocollage.jpg"
    assert report.collages == [collage]
    assert collage.exists()
    assert [clock for _, clock in tools.captures] == [
        "00:04:04", "00:07:38", "00:11:12", "00:14:47", "00:18:21", "00:21:55",
    ]
    output, members, grid, geometry = tools.composed[0]
    assert [m.name for m in members] == [f"movie-screenshot-{i:03d}.jpg" for i in range(1, 7)]
    assert grid == TileGrid(3, 2)
    assert geometry == (640, 540)
    assert report.removed_screenshots == 6
    assert screenshots_in(media_dir) == []
    assert report.exit_code == 0


def test_keep_preserves_screenshots(pipeline_for, media_dir):
    add_videos(media_dir, "movie.mp4")
    pipeline, _ = pipeline_for(CollageConfig(retry_delay=0, keep=True), durations={"movie.mp4": 1500})

    report = pipeline.run_videos(media_dir)

    assert len(report.collages) == 1
    assert report.removed_screenshots == 0
    assert len(screenshots_in(media_dir)) == 6


def test_capture_retry_and_drop(pipeline_for, media_dir):
    add_videos(media_dir, "movie.mp4")
    pipeline, tools = pipeline_for(
        durations={"movie.mp4": 1500},
        capture_failures={("movie", 2): 3, ("movie", 3): 1},
    )

    report = pipeline.run_videos(media_dir, media_dir / "out")

    attempts = [key for key, _ in tools.captures]
    assert attempts.count(("movie", 2)) == 3
    assert attempts.count(("movie", 3)) == 2
    _, members, grid, _ = tools.composed[0]
    # the dropped frame leaves a gap in the sequence numbers
    assert [m.name[-7:-4] for m in members] == ["001", "003", "004", "005", "006"]
    assert grid == TileGrid(3, 2)
    assert [f.kind for f in report.failures] == [CAPTURE_FAILURE]
    assert "00:07:38" in report.failures[0].message
    assert report.collages == [media_dir / "out" / "movie-videocollage.jpg"]
    assert report.exit_code == 0


def test_retry_waits_between_attempts(make_tools, media_dir):
    calls = []
    add_videos(media_dir, "movie.mp4")
    tools = make_tools(durations={"movie.mp4": 1500}, capture_failures={("movie", 1): 3})
    pipeline = CollagePipeline(CollageConfig(retry_delay=0.5), tools=tools, sleep=calls.append)

    pipeline.run_videos(media_dir)

    assert calls == [0.5, 1.0]


def test_group_below_threshold_is_skipped(pipeline_for, media_dir):
    add_videos(media_dir, "movie.mp4")
    pipeline, tools = pipeline_for(
        durations={"movie.mp4": 1500},
        capture_failures={("movie", 1): 3, ("movie", 2): 3, ("movie", 3): 3},
    )

    report = pipeline.run_videos(media_dir)

    assert tools.composed == []
    assert report.collages == []
    assert report.skipped_groups == ["movie"]
    # nothing composed, so nothing removed
    assert len(screenshots_in(media_dir)) == 3


def test_short_and_unprobeable_videos(pipeline_for, media_dir):
    add_videos(media_dir, "broken.mp4", "clip.mp4", "movie.mp4")
    pipeline, tools = pipeline_for(durations={"clip.mp4": 6, "movie.mp4": 1500})

    report = pipeline.run_videos(media_dir)

    root = media_dir.resolve()
    assert report.skipped_media == [str(root / "broken.mp4"), str(root / "clip.mp4")]
    assert [f.kind for f in report.failures] == [PROBE_FAILURE]
    assert len(report.collages) == 1
    assert report.exit_code == 1


def test_min_length_skips_video(pipeline_for, media_dir):
    add_videos(media_dir, "episode.mkv")
    pipeline, tools = pipeline_for(
        CollageConfig(retry_delay=0, min_length_seconds=1200), durations={"episode.mkv": 900}
    )

    report = pipeline.run_videos(media_dir)

    assert tools.captures == []
    assert len(report.skipped_media) == 1
    assert report.exit_code == 0


def test_compose_failure_keeps_screenshots(pipeline_for, media_dir):
    add_videos(media_dir, "movie.mp4")
    pipeline, _ = pipeline_for(
        durations={"movie.mp4": 1500}, compose_failures={"movie-videocollage.jpg"}
    )

    report = pipeline.run_videos(media_dir)

    assert report.collages == []
    assert [f.kind for f in report.failures] == [COMPOSE_FAILURE]
    assert len(screenshots_in(media_dir)) == 6
    assert report.exit_code == 1


def test_missing_directory_is_config_failure(pipeline_for, tmp_path):
    pipeline, _ = pipeline_for()

    report = pipeline.run_videos(tmp_path / "missing")

    assert [f.kind for f in report.failures] == [CONFIG_FAILURE]
    assert report.exit_code == 2


def test_regroup_existing_screenshots(pipeline_for, media_dir):
    for i in range(1, 6):
        (media_dir / f"movie-screenshot-{i:03d}.jpg").write_bytes(b"jpeg")
    for i in range(1, 3):
        (media_dir / f"trailer-screenshot-{i:03d}.jpg").write_bytes(b"jpeg")
    pipeline, tools = pipeline_for()

    report = pipeline.run_regroup(media_dir)

    assert report.collages == [media_dir.resolve() / "video-collages" / "movie-videocollage.jpg"]
    assert report.skipped_groups == ["trailer"]
    assert tools.composed[0][2] == TileGrid(3, 2)
    assert screenshots_in(media_dir) == ["trailer-screenshot-001.jpg", "trailer-screenshot-002.jpg"]


def test_image_collages(pipeline_for, media_dir):
    for i in range(8):
        (media_dir / f"photo{i}.jpg").write_bytes(b"jpeg")
    pipeline, tools = pipeline_for()

    report = pipeline.run_images(media_dir)

    assert len(report.collages) == 2
    first, second = tools.composed
    assert len(first[1]) == 6 and first[2] == TileGrid(3, 2)
    assert len(second[1]) == 2 and second[2] == TileGrid(3, 1)
    assert second[3] == (640, 1080)
    assert first[0].parent == media_dir.resolve() / "image-collages"
    assert first[0].name.endswith("-001-imagecollage.jpg")
    assert second[0].name.endswith("-002-imagecollage.jpg")
    # images are never removed
    assert len(list(media_dir.glob("photo*.jpg"))) == 8


def test_plan_and_capture(pipeline_for):
    pipeline, _ = pipeline_for()

    plan = pipeline.plan_and_capture(1500)
    assert isinstance(plan, SamplingPlan)
    assert plan.count == 6
    assert plan.branch == "medium"

    assert isinstance(pipeline.plan_and_capture(1500, minimum_length_seconds=3600), Skip)


@pytest.mark.parametrize("count, expected", [
    (4, TileGrid(2, 2)),
    (5, TileGrid(3, 2)),
    (7, TileGrid(3, 3)),
    (20, TileGrid(3, 7)),
])
def test_finalize_grid(pipeline_for, count, expected):
    pipeline, _ = pipeline_for()

    group = pipeline.finalize_grid("movie", [Path(f"{i}.jpg") for i in range(count)])

    assert group.grid == expected
    assert len(group.members) <= group.grid.capacity


def test_videos_sharing_a_stem_keep_separate_outputs(pipeline_for, media_dir):
    add_videos(media_dir, "movie.mp4", "movie.mkv")
    pipeline, tools = pipeline_for(
        CollageConfig(retry_delay=0, keep=True),
        durations={"movie.mp4": 1500, "movie.mkv": 1500},
    )

    report = pipeline.run_videos(media_dir)

    collage_dir = media_dir.resolve() / "video-collages"
    assert report.collages == [
        collage_dir / "movie-videocollage.jpg",
        collage_dir / "movie-mp4-videocollage.jpg",
    ]
    assert all(path.exists() for path in report.collages)
    shots = screenshots_in(media_dir)
    assert len(shots) == 12
    assert "movie-mp4-screenshot-006.jpg" in shots
    assert [m.name for m in tools.composed[1][1]][0] == "movie-mp4-screenshot-001.jpg"


def test_shared_output_dir_prefixes_folder(pipeline_for, media_dir, tmp_path):
    for season in ("S1", "S2"):
        (media_dir / season).mkdir()
        add_videos(media_dir / season, "ep1.mkv")
    pipeline, _ = pipeline_for(durations={"ep1.mkv": 1500})

    report = pipeline.run_videos(media_dir, tmp_path / "out")

    assert report.collages == [
        tmp_path / "out" / "ep1-videocollage.jpg",
        tmp_path / "out" / "S2-ep1-videocollage.jpg",
    ]
    assert report.exit_code == 0


def test_rerun_reuses_collage_names(pipeline_for, media_dir):
    add_videos(media_dir, "movie.mp4")
    pipeline, _ = pipeline_for(durations={"movie.mp4": 1500})

    first = pipeline.run_videos(media_dir)
    second = pipeline.run_videos(media_dir)

    assert first.collages == second.collages
