"""
Grid helpers shared by the lens field and the renderer.

Coordinate relocation and the exponential fall-off are numba functions so they
can be called from the per-pixel kernels as well as from plain Python.
"""

import enum
import math

import numba
import numpy as np

from quicklens import defaults
from quicklens.errors import GridShapeError

_GREEN_ORIGIN_VALUE = defaults.GREEN_ORIGIN_VALUE


@numba.njit(cache=True, nogil=True)
def relocate(coord, length):
    """Replace a coordinate by the nearest integer within [0, length-1]."""
    nearest = int(math.floor(coord + 0.5))
    if nearest < 0:
        return 0
    if nearest >= length:
        return length - 1
    return nearest


@numba.njit(cache=True, nogil=True)
def fall_off(rel_px, length, half, lm1):
    """
    Exponential fall-off of the deflection outside the area covered by lens data.

    Args:
        rel_px: Coordinate relative to the lens origin
        length: Interval length
        half: Half interval length (decay scale)
        lm1: Interval length minus one pixel

    Returns:
        1D weight in (0, 1]; multiply the weights of both axes for 2D.
    """
    if rel_px < 0:
        return math.exp(rel_px / half)
    if rel_px >= length:
        return math.exp((lm1 - rel_px) / half)
    return 1.0


@numba.njit(cache=True, nogil=True)
def relocate_with_fall_off(rel_px, length, half, lm1):
    """Clamp rel_px into the lens grid and return (safe_index, fall_off_weight)."""
    if rel_px < 0:
        return 0, math.exp(rel_px / half)
    if rel_px >= length:
        return int(lm1), math.exp((lm1 - rel_px) / half)
    return rel_px, 1.0


@numba.njit(cache=True, nogil=True)
def fill_convolution_kernel(kernel: np.ndarray) -> None:
    """
    Fill kernel in place with the 2D Green's function log(r)/pi.

    Offsets are measured from the (0, 0) corner with wraparound, so the four
    corners of the array hold the four quadrants of the kernel. One quadrant is
    computed and mirrored into the other three.
    """
    rows, cols = kernel.shape
    half_rows = rows // 2
    half_cols = cols // 2
    factor = 1.0 / math.pi

    for i in range(half_rows + 1):
        mirror_i = rows - i
        i_sq = i * i
        for j in range(half_cols + 1):
            mirror_j = cols - j
            if i == 0 and j == 0:
                val = _GREEN_ORIGIN_VALUE
            else:
                val = factor * math.log(math.sqrt(i_sq + j * j))

            kernel[i, j] = val
            if i != 0:
                kernel[mirror_i, j] = val
                if j != 0:
                    kernel[mirror_i, mirror_j] = val
            if j != 0:
                kernel[i, mirror_j] = val


class Direction(enum.Enum):
    """Direction in which grid content is moved by shift()."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


def shift(grid: np.ndarray, n: int, direction: Direction) -> np.ndarray:
    """Translate grid content by n pixels, filling vacated cells with zero."""
    if grid.ndim != 2:
        raise GridShapeError(f"shift expects a 2D grid, got shape {grid.shape}")

    if n <= 0:
        return grid.copy()

    out = np.zeros_like(grid)
    rows, cols = grid.shape

    if direction is Direction.UP and n < rows:
        out[:rows - n, :] = grid[n:, :]
    elif direction is Direction.DOWN and n < rows:
        out[n:, :] = grid[:rows - n, :]
    elif direction is Direction.LEFT and n < cols:
        out[:, :cols - n] = grid[:, n:]
    elif direction is Direction.RIGHT and n < cols:
        out[:, n:] = grid[:, :cols - n]
    return out


def derivative_x(grid: np.ndarray) -> np.ndarray:
    """Central difference along x; two border columns per side copy the nearest interior value."""
    result = (shift(grid, 1, Direction.LEFT) - shift(grid, 1, Direction.RIGHT)) / 2.0

    cols = result.shape[1]
    if cols >= 3:
        border_left = result[:, 2].copy()
        border_right = result[:, cols - 3].copy()
        result[:, 0] = border_left
        result[:, 1] = border_left
        result[:, cols - 1] = border_right
        result[:, cols - 2] = border_right
    return result


def derivative_y(grid: np.ndarray) -> np.ndarray:
    """Central difference along y; two border rows per side copy the nearest interior value."""
    result = (shift(grid, 1, Direction.UP) - shift(grid, 1, Direction.DOWN)) / 2.0

    rows = result.shape[0]
    if rows >= 3:
        border_top = result[2, :].copy()
        border_bottom = result[rows - 3, :].copy()
        result[0, :] = border_top
        result[1, :] = border_top
        result[rows - 1, :] = border_bottom
        result[rows - 2, :] = border_bottom
    return result


def median(grid: np.ndarray) -> float:
    """Median of all grid values (lower median for an even count)."""
    flat = np.asarray(grid, dtype=np.float64).ravel()
    if flat.size == 0:
        raise GridShapeError("median of an empty grid")
    k = (flat.size - 1) // 2
    return float(np.partition(flat, k)[k])
