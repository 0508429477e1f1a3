"""Tests for CLI input validation and the work-directory commands.

Verifies that extension checks always fire before existence checks so that
wrong-extension files (even if non-existent) produce our Rich error panels
rather than Typer/Click's plain 'File does not exist' error, and that the
stage commands refuse a directory with no STORYBOARD.json.
"""

import zipfile
from pathlib import Path
from unittest import mock

import cv2
import numpy as np
from typer.testing import CliRunner

from inkboard.cli import app
from inkboard.models import Keyframe, KeyframeList
from inkboard.project import StoryboardProject, load_project, save_project

runner = CliRunner()


def _make_work_dir(tmp_path: Path, count: int = 2) -> Path:
    work_dir = tmp_path / "demo_inkboard_work"
    (work_dir / "keyframes").mkdir(parents=True)
    frames = []
    for i in range(count):
        path = work_dir / "keyframes" / f"frame_{i}.jpg"
        cv2.imwrite(str(path), np.full((36, 64, 3), 40 * i, dtype=np.uint8))
        frames.append(Keyframe.capture(i * 0.5, str(path)))
    keyframes = KeyframeList(frames)
    keyframes.set_caption(0, '主角说 "走"')
    project = StoryboardProject(
        source_file=str(tmp_path / "demo.mp4"),
        project_name="demo.mp4",
        duration_s=1.0,
    ).with_keyframes(keyframes)
    save_project(project, work_dir)
    return work_dir


def test_invalid_video_extension_nonexistent_file():
    """Wrong extension + file missing: Rich 'Unsupported video format' panel fires first."""
    result = runner.invoke(app, ["extract", "nonexistent_movie.pdf"])
    assert result.exit_code == 1
    assert "Unsupported video format" in result.output
    assert "File does not exist" not in result.output


def test_invalid_video_extension_existing_file(tmp_path):
    """Wrong extension + file exists: Rich 'Unsupported video format' panel fires."""
    pdf_file = tmp_path / "movie.pdf"
    pdf_file.write_bytes(b"fake pdf content")
    result = runner.invoke(app, ["extract", str(pdf_file)])
    assert result.exit_code == 1
    assert "Unsupported video format" in result.output


def test_valid_video_extension_nonexistent_file():
    """Valid extension + file missing: Rich 'File not found' panel fires (not Click's plain error)."""
    result = runner.invoke(app, ["extract", "nonexistent_movie.mp4"])
    assert result.exit_code == 1
    assert "File not found" in result.output
    assert "File does not exist" not in result.output


def test_non_positive_interval_rejected(tmp_path):
    mp4_file = tmp_path / "movie.mp4"
    mp4_file.write_bytes(b"fake mp4 content")
    result = runner.invoke(app, ["extract", str(mp4_file), "--interval", "0"])
    assert result.exit_code == 1
    assert "--interval must be at least" in result.output


def test_sub_centisecond_interval_rejected(tmp_path):
    """Intervals finer than the two-decimal keyframe ids get a panel, not a traceback."""
    mp4_file = tmp_path / "movie.mp4"
    mp4_file.write_bytes(b"fake mp4 content")
    result = runner.invoke(app, ["extract", str(mp4_file), "--interval", "0.004"])
    assert result.exit_code == 1
    assert "--interval must be at least" in result.output
    assert "Traceback" not in result.output
    assert not (tmp_path / "movie_inkboard_work").exists()


def test_undecodable_video_reports_extraction_error(tmp_path):
    """A file OpenCV cannot open surfaces as a Rich panel, not a traceback."""
    mp4_file = tmp_path / "movie.mp4"
    mp4_file.write_bytes(b"fake mp4 content")
    result = runner.invoke(app, ["extract", str(mp4_file)])
    assert result.exit_code == 1
    assert "Extraction Error" in result.output


def test_sketch_without_project_fails(tmp_path):
    result = runner.invoke(app, ["sketch", str(tmp_path)])
    assert result.exit_code == 1
    assert "Sketch Error" in result.output


def test_export_without_project_fails(tmp_path):
    result = runner.invoke(app, ["export", str(tmp_path)])
    assert result.exit_code == 1
    assert "Export Error" in result.output


def test_export_table_only(tmp_path):
    work_dir = _make_work_dir(tmp_path)
    result = runner.invoke(app, ["export", str(work_dir), "--table"])
    assert result.exit_code == 0, result.output

    out_dir = work_dir / "export"
    assert sorted(p.name for p in out_dir.iterdir()) == ["demo.mp4_shots.csv"]
    lines = (out_dir / "demo.mp4_shots.csv").read_text(encoding="utf-8-sig").splitlines()
    assert lines[1] == '1,0:00,"主角说 ""走"""'
    assert lines[2] == "2,0:00,"


def test_export_all_by_default(tmp_path):
    work_dir = _make_work_dir(tmp_path)
    out_dir = tmp_path / "out"
    result = runner.invoke(app, ["export", str(work_dir), "--output", str(out_dir)])
    assert result.exit_code == 0, result.output
    names = sorted(p.name for p in out_dir.iterdir())
    assert names == ["demo.mp4_shots.csv", "demo_frames.zip", "storyboard_demo.mp4.jpg"]
    with zipfile.ZipFile(out_dir / "demo_frames.zip") as zf:
        assert zf.namelist() == ["keyframes/shot_001.jpg", "keyframes/shot_002.jpg"]


def test_sketch_updates_project(tmp_path):
    work_dir = _make_work_dir(tmp_path, count=3)
    result = runner.invoke(app, ["sketch", str(work_dir), "--workers", "2"])
    assert result.exit_code == 0, result.output

    project = load_project(work_dir)
    assert all(entry.is_sketch for entry in project.keyframes)
    assert all(Path(entry.image_path).parent.name == "sketches" for entry in project.keyframes)


def test_export_dir_uncreatable_reports_panel(tmp_path):
    """An output directory that cannot be created is an Export Error panel, not a traceback."""
    work_dir = _make_work_dir(tmp_path)
    blocker = tmp_path / "blocker"
    blocker.write_text("plain file", encoding="utf-8")
    result = runner.invoke(app, ["export", str(work_dir), "--table", "--output", str(blocker / "out")])
    assert result.exit_code == 1
    assert "Export Error" in result.output


def test_caption_single_frame_by_id(tmp_path):
    """--frame re-captions just that keyframe and saves the project."""
    work_dir = _make_work_dir(tmp_path)
    response = mock.MagicMock()
    response.json.return_value = {"choices": [{"message": {"content": "[平视，全景]"}}]}
    response.raise_for_status.return_value = None
    with mock.patch("requests.post", return_value=response) as post:
        result = runner.invoke(app, ["caption", str(work_dir), "--frame", "frame-0.00", "--url", "http://x"])
    assert result.exit_code == 0, result.output
    assert post.call_count == 1

    captions = [entry.caption for entry in load_project(work_dir).keyframes]
    assert captions == ["[平视，全景]", None]


def test_caption_unknown_frame_id(tmp_path):
    work_dir = _make_work_dir(tmp_path)
    with mock.patch("requests.post") as post:
        result = runner.invoke(app, ["caption", str(work_dir), "--frame", "frame-9.99"])
    assert result.exit_code == 1
    assert "Unknown keyframe id" in result.output
    post.assert_not_called()
