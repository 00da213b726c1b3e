import json

import pytest

from video_collage.cli.main import create_parser, main


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("COLLAGE_GRID", "COLLAGE_MIN_LENGTH_SECONDS", "COLLAGE_KEEP", "COLLAGE_OUTPUT_DIR"):
        monkeypatch.delenv(name, raising=False)


def test_plan_prints_timestamps(capsys):
    assert main(["plan", "25m"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert "Branch:   medium" in lines
    assert "Frames:   6" in lines
    assert "  001  00:04:04" in lines
    assert "  006  00:21:55" in lines


def test_plan_with_grid(capsys):
    assert main(["plan", "01:10:00", "--grid", "2x2"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert "Branch:   long" in lines
    assert "Frames:   4" in lines


def test_plan_skip(capsys):
    assert main(["plan", "900", "--min-length", "20m"]) == 0
    assert any(line.startswith("Skip:") for line in capsys.readouterr().out.splitlines())


def test_bad_grid_is_config_error(capsys):
    assert main(["plan", "1500", "--grid", "3by2"]) == 2
    assert "Configuration error" in capsys.readouterr().out


def test_bad_duration_is_config_error():
    assert main(["plan", "soon"]) == 2


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage: video-collage" in capsys.readouterr().out


def test_create_config(tmp_path, capsys):
    target = tmp_path / "conf" / "collage.json"

    assert main(["create-config", "-o", str(target)]) == 0

    assert json.loads(target.read_text())["grid"] == "3x2"
    assert "Default configuration saved to" in capsys.readouterr().out


def test_missing_config_file():
    assert main(["--config", "nope.json", "plan", "1500"]) == 2


def test_videos_on_missing_directory(tmp_path):
    assert main(["videos", str(tmp_path / "missing"), "--keep"]) == 2


def test_parser_options():
    args = create_parser().parse_args(["videos", "/media", "-g", "4x3", "-k", "--min-length", "20m"])

    assert args.command == "videos"
    assert args.grid == "4x3"
    assert args.keep is True
    assert args.min_length == "20m"


@pytest.mark.parametrize("data", [{"grid": 3}, {"min_length_seconds": "later"}])
def test_wrong_typed_config_file_is_config_error(tmp_path, capsys, data):
    path = tmp_path / "collage.json"
    path.write_text(json.dumps(data))

    assert main(["--config", str(path), "plan", "1500"]) == 2
    assert "Configuration error" in capsys.readouterr().out


def test_config_file_time_string(tmp_path, capsys):
    path = tmp_path / "collage.json"
    path.write_text(json.dumps({"min_length_seconds": "20m"}))

    assert main(["--config", str(path), "plan", "900"]) == 0
    assert any(line.startswith("Skip:") for line in capsys.readouterr().out.splitlines())
