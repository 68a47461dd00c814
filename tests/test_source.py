"""Tests for source placement, sampling and resizing."""

import numpy as np
import pytest

from quicklens.errors import GridShapeError
from quicklens.source import Source


def _flat_image(width, height):
    return np.zeros((height, width, 3), dtype=np.uint8)


def test_sample_at_integer_pixel_is_exact(rgb_image, source):
    assert source.origin == (0, 0)
    assert source.get_interpolated_pixel(5.0, 7.0) == tuple(int(v) for v in rgb_image[7, 5])
    assert source.get_interpolated_pixel(23.0, 19.0) == tuple(int(v) for v in rgb_image[19, 23])


def test_sample_between_pixels_is_bilinear():
    image = _flat_image(6, 6)
    image[2, 2] = 10
    image[2, 3] = 30
    image[3, 2] = 50
    image[3, 3] = 70
    src = Source(image, 3, 3)

    assert src.get_interpolated_pixel(2.5, 2.0) == (20, 20, 20)
    assert src.get_interpolated_pixel(2.0, 2.5) == (30, 30, 30)
    assert src.get_interpolated_pixel(2.5, 2.5) == (40, 40, 40)


def test_sample_outside_is_black(source):
    assert source.get_interpolated_pixel(-1.0, 3.0) == (0, 0, 0)
    assert source.get_interpolated_pixel(0.0, 3.0) == (0, 0, 0)
    assert source.get_interpolated_pixel(5.0, 20.0) == (0, 0, 0)
    assert source.get_interpolated_pixel(500.0, -500.0) == (0, 0, 0)


def test_contains_is_strict(source):
    assert not source.contains(0.5, 3.0)
    assert source.contains(1.0, 3.0)
    assert source.contains(23.9, 5.0)
    assert not source.contains(24.0, 5.0)
    assert not source.contains(5.0, 0.0)
    assert source.contains(5.0, 19.5)


def test_contains_floors_negative_coordinates():
    src = Source(_flat_image(6, 6), -5, -5)
    assert src.origin == (-8, -8)

    # -7.5 floors to -8, the excluded origin cell
    assert not src.contains(-7.5, -6.0)
    assert not src.contains(-6.0, -7.5)
    assert src.contains(-6.9, -6.0)
    assert src.get_interpolated_pixel(-7.5, -6.0) == (0, 0, 0)


def test_move_keeps_size(source):
    source.move(100, 50)
    assert source.position == (100, 50)
    assert source.origin == (88, 40)
    assert source.extent == (24, 20)


def test_resize_keeps_center_and_uses_original(source):
    source.resize_area(0.5)
    assert source.extent == (12, 10)
    assert source.channels.shape == (3, 10, 12)
    assert source.origin == (6, 5)
    assert source.position == (12, 10)

    source.resize_area(2.0)
    assert source.extent == (48, 40)
    assert source.origin == (-12, -10)

    source.resize_area(0.5)
    assert source.extent == (12, 10)
    assert source.image.shape == (20, 24, 3)


def test_resize_to_one_keeps_pixels(rgb_image, source):
    source.resize_area(1.0)
    assert source.extent == (24, 20)
    assert np.array_equal(np.moveaxis(source.channels, 0, 2), rgb_image)


def test_degenerate_resize_is_ignored(source):
    source.resize_area(0.5)
    source.resize_area(0.0)
    assert source.extent == (12, 10)
    source.resize_area(0.04)
    assert source.extent == (12, 10)
    assert source.position == (12, 10)


def test_original_image_is_read_only(source):
    with pytest.raises(ValueError):
        source.image[0, 0, 0] = 1


def test_rejects_non_rgb_input():
    with pytest.raises(GridShapeError):
        Source(np.zeros((4, 4), dtype=np.uint8), 0, 0)
    with pytest.raises(GridShapeError):
        Source(np.zeros((0, 4, 3), dtype=np.uint8), 0, 0)
