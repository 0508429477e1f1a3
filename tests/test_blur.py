"""Unit tests for inkboard.imaging.blur.box_blur."""

from __future__ import annotations

import numpy as np
import pytest

from inkboard.imaging.blur import box_blur


def _naive_box_blur(data: np.ndarray, radius: int) -> np.ndarray:
    """Reference two-pass blur with clamped coordinates, written loop by loop."""
    h, w = data.shape
    temp = np.zeros_like(data, dtype=np.float64)
    for y in range(h):
        for x in range(w):
            total = 0.0
            for k in range(-radius, radius + 1):
                total += data[y, min(w - 1, max(0, x + k))]
            temp[y, x] = total / (2 * radius + 1)
    out = np.zeros_like(temp)
    for y in range(h):
        for x in range(w):
            total = 0.0
            for k in range(-radius, radius + 1):
                total += temp[min(h - 1, max(0, y + k)), x]
            out[y, x] = total / (2 * radius + 1)
    return out


class TestBoxBlurInvariants:
    @pytest.mark.parametrize("radius", [0, 1, 4, 10])
    def test_uniform_raster_unchanged(self, radius: int) -> None:
        data = np.full((5, 7), 42.5, dtype=np.float32)
        np.testing.assert_allclose(box_blur(data, radius), data, rtol=1e-6)

    def test_radius_zero_is_exact_copy(self) -> None:
        rng = np.random.default_rng(3)
        data = rng.random((4, 6), dtype=np.float32) * 255
        out = box_blur(data, 0)
        assert np.array_equal(out, data)
        assert out is not data

    def test_shape_and_dtype_preserved(self) -> None:
        out = box_blur(np.zeros((3, 11), dtype=np.float32), 2)
        assert out.shape == (3, 11)
        assert out.dtype == np.float32


class TestBoxBlurBoundaries:
    def test_single_pixel_raster_large_radius(self) -> None:
        data = np.array([[123.0]], dtype=np.float32)
        assert box_blur(data, 5)[0, 0] == pytest.approx(123.0)

    def test_edge_replication_single_row(self) -> None:
        """[0, 0, 9] at radius 1: x0 sees (0,0,0), x1 (0,0,9), x2 (0,9,9)."""
        data = np.array([[0.0, 0.0, 9.0]], dtype=np.float32)
        np.testing.assert_allclose(box_blur(data, 1), [[0.0, 3.0, 6.0]], rtol=1e-6)

    def test_matches_naive_reference(self) -> None:
        rng = np.random.default_rng(21)
        data = (rng.random((6, 9)) * 255).astype(np.float32)
        for radius in (1, 2, 4):
            np.testing.assert_allclose(
                box_blur(data, radius), _naive_box_blur(data.astype(np.float64), radius),
                rtol=1e-5, atol=1e-3,
            )

    def test_empty_raster(self) -> None:
        assert box_blur(np.zeros((0, 5), dtype=np.float32), 3).shape == (0, 5)


class TestBoxBlurValidation:
    def test_negative_radius_raises(self) -> None:
        with pytest.raises(ValueError, match="radius"):
            box_blur(np.zeros((2, 2), dtype=np.float32), -1)

    def test_non_2d_raises(self) -> None:
        with pytest.raises(ValueError, match="2-D"):
            box_blur(np.zeros((2, 2, 3), dtype=np.float32), 1)
