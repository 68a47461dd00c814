"""Test configuration for quicklens."""

import numpy as np
import pytest

from quicklens.lens import Lens
from quicklens.source import Source


@pytest.fixture
def zero_kappa():
    """4x4 grid without any mass."""
    return np.zeros((4, 4), dtype=np.float64)


@pytest.fixture
def point_kappa():
    """32x32 grid with a single unit mass cell at (row 16, col 16)."""
    kappa = np.zeros((32, 32), dtype=np.float64)
    kappa[16, 16] = 1.0
    return kappa


@pytest.fixture
def disk_kappa():
    """64x64 grid with a supercritical uniform disk of radius 10 at the center."""
    y, x = np.mgrid[0:64, 0:64]
    kappa = np.zeros((64, 64), dtype=np.float64)
    kappa[(x - 32) ** 2 + (y - 32) ** 2 <= 100] = 1.5
    return kappa


@pytest.fixture
def rgb_image():
    """Deterministic 20x24 RGB test image."""
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(20, 24, 3), dtype=np.uint8)


@pytest.fixture
def zero_lens():
    """Massless 20x20 lens centered at screen pixel (20, 20)."""
    return Lens(np.zeros((20, 20), dtype=np.float64), 20, 20, num_threads=2)


@pytest.fixture
def source(rgb_image):
    return Source(rgb_image, 12, 10)
