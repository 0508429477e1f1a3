"""Unit tests for inkboard.imaging.sketch and inkboard.imaging.pool."""

from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
import pytest

from inkboard.errors import RenderError
from inkboard.imaging.pool import run_sketch_pool
from inkboard.imaging.sketch import color_dodge, luminance, sketch_image, sketch_pixels
from inkboard.models import Keyframe, KeyframeList


def _rgba(value: tuple[int, int, int], height: int = 9, width: int = 9, alpha: int = 255) -> np.ndarray:
    buf = np.zeros((height, width, 4), dtype=np.uint8)
    buf[..., :3] = value
    buf[..., 3] = alpha
    return buf


def _write_bgr(path: Path, value: tuple[int, int, int], height: int = 24, width: int = 32) -> Path:
    cv2.imwrite(str(path), np.full((height, width, 3), value, dtype=np.uint8))
    return path


class TestLuminance:
    def test_pure_channels(self) -> None:
        assert luminance(_rgba((255, 0, 0)))[0, 0] == pytest.approx(0.299 * 255, rel=1e-5)
        assert luminance(_rgba((0, 255, 0)))[0, 0] == pytest.approx(0.587 * 255, rel=1e-5)
        assert luminance(_rgba((0, 0, 255)))[0, 0] == pytest.approx(0.114 * 255, rel=1e-5)

    def test_shape(self) -> None:
        assert luminance(_rgba((1, 2, 3), 4, 6)).shape == (4, 6)


class TestColorDodge:
    def test_saturates_when_blend_is_255(self) -> None:
        out = color_dodge(np.array([0.0, 100.0]), np.array([255.0, 255.0]))
        np.testing.assert_array_equal(out, [255.0, 255.0])

    def test_formula(self) -> None:
        out = color_dodge(np.array([50.0]), np.array([155.0]))
        assert out[0] == pytest.approx(50 * 255 / 100)

    def test_clamped_to_255(self) -> None:
        out = color_dodge(np.array([200.0]), np.array([200.0]))
        assert out[0] == 255.0


class TestSketchPixels:
    def test_uniform_black_hits_saturate_branch(self) -> None:
        """base=0 and blurred=0 → blend=255 → 255 everywhere."""
        out = sketch_pixels(_rgba((0, 0, 0)))
        assert np.all(out[..., :3] == 255)

    def test_uniform_white(self) -> None:
        out = sketch_pixels(_rgba((255, 255, 255)))
        assert np.all(out[..., :3] == 255)

    def test_dark_pixel_on_light_field_stays_dark(self) -> None:
        """Centre base=0 with a non-zero blurred neighbourhood → 0 * 255 / x = 0."""
        img = _rgba((255, 255, 255))
        img[4, 4, :3] = 0
        out = sketch_pixels(img)
        assert out[4, 4, 0] == 0
        assert out[0, 0, 0] == 255

    def test_output_is_grayscale(self) -> None:
        rng = np.random.default_rng(5)
        img = rng.integers(0, 256, size=(12, 10, 4), dtype=np.uint8)
        out = sketch_pixels(img)
        assert np.array_equal(out[..., 0], out[..., 1])
        assert np.array_equal(out[..., 1], out[..., 2])

    def test_alpha_passed_through(self) -> None:
        img = _rgba((30, 60, 90), alpha=77)
        img[0, 0, 3] = 5
        out = sketch_pixels(img)
        assert np.array_equal(out[..., 3], img[..., 3])

    def test_input_not_modified(self) -> None:
        img = _rgba((10, 20, 30))
        before = img.copy()
        sketch_pixels(img)
        assert np.array_equal(img, before)

    def test_not_idempotent(self) -> None:
        rng = np.random.default_rng(9)
        img = rng.integers(0, 256, size=(16, 16, 4), dtype=np.uint8)
        once = sketch_pixels(img)
        assert not np.array_equal(sketch_pixels(once), once)


class TestSketchImage:
    def test_writes_same_dimensions(self, tmp_path: Path) -> None:
        src = _write_bgr(tmp_path / "src.jpg", (40, 120, 200), height=24, width=32)
        dst = sketch_image(src, tmp_path / "out.jpg")
        decoded = cv2.imread(str(dst))
        assert decoded.shape[:2] == (24, 32)

    def test_missing_source_raises_render_error(self, tmp_path: Path) -> None:
        with pytest.raises(RenderError):
            sketch_image(tmp_path / "missing.jpg", tmp_path / "out.jpg")


class TestSketchPool:
    def _keyframes(self, tmp_path: Path, count: int) -> KeyframeList:
        frames = []
        for i in range(count):
            path = _write_bgr(tmp_path / f"frame_{i}.jpg", (i * 20, 50, 90))
            frames.append(Keyframe.capture(i * 0.5, str(path)))
        return KeyframeList(frames)

    def test_converts_every_frame_once(self, tmp_path: Path) -> None:
        keyframes = self._keyframes(tmp_path, 4)
        converted = run_sketch_pool(keyframes, tmp_path / "sketches")
        assert converted == 4
        for i, kf in enumerate(keyframes):
            assert kf.is_sketch
            assert kf.image_path.endswith(f"sketch_{i + 1:03d}.jpg")
            assert kf.original_path != kf.image_path
            assert Path(kf.image_path).exists()

    def test_second_run_is_noop(self, tmp_path: Path) -> None:
        keyframes = self._keyframes(tmp_path, 2)
        run_sketch_pool(keyframes, tmp_path / "sketches")
        assert run_sketch_pool(keyframes, tmp_path / "sketches") == 0

    def test_failed_item_left_untouched(self, tmp_path: Path) -> None:
        keyframes = self._keyframes(tmp_path, 3)
        Path(keyframes[1].original_path).unlink()
        converted = run_sketch_pool(keyframes, tmp_path / "sketches")
        assert converted == 2
        assert not keyframes[1].is_sketch
        assert keyframes[1].image_path == keyframes[1].original_path
        assert keyframes[0].is_sketch and keyframes[2].is_sketch

    def test_progress_reports_every_item(self, tmp_path: Path) -> None:
        keyframes = self._keyframes(tmp_path, 3)
        calls: list[tuple[int, int]] = []
        run_sketch_pool(keyframes, tmp_path / "sketches", progress_callback=lambda d, t: calls.append((d, t)))
        assert calls == [(1, 3), (2, 3), (3, 3)]
