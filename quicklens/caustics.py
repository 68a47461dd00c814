"""
Critical-curve extraction and inversion into caustics.

Critical curves are the zero contours of the (smoothed) lens-mapping Jacobian
determinant. Caustics are found by ray tracing every critical-curve pixel back
to the source plane.
"""

import math

import cv2
import numba
import numpy as np
from scipy.ndimage import gaussian_filter

from quicklens import defaults
from quicklens.parallel import parallel_for


@numba.njit(cache=True, nogil=True)
def _binary_from_sign_rows(values: np.ndarray, out: np.ndarray, start: int, end: int) -> None:
    width = values.shape[1]
    for i in range(start, end):
        for j in range(width):
            if values[i, j] <= 0.0:
                out[i, j] = 1
            else:
                out[i, j] = 0


@numba.njit(cache=True, nogil=True)
def _mark(grid: np.ndarray, row: int, col: int) -> None:
    if 0 <= row < grid.shape[0] and 0 <= col < grid.shape[1]:
        grid[row, col] = 255


@numba.njit(cache=True, nogil=True)
def _invert_rows(
    cc_map: np.ndarray,
    alpha1: np.ndarray,
    alpha2: np.ndarray,
    weight: float,
    caustic_map: np.ndarray,
    start: int,
    end: int,
) -> None:
    width = cc_map.shape[1]
    for i in range(start, end):
        for j in range(width):
            if cc_map[i, j] == 0:
                continue

            # Nearest cell, no interpolation
            b1 = int(math.floor(j - weight * alpha1[i, j] + 0.5))
            b2 = int(math.floor(i - weight * alpha2[i, j] + 0.5))
            _mark(caustic_map, b2, b1)
            _mark(caustic_map, b2, b1 + 1)
            _mark(caustic_map, b2 + 1, b1)
            _mark(caustic_map, b2 + 1, b1 + 1)


def binary_from_sign(values: np.ndarray, num_threads: int | None = None) -> np.ndarray:
    """Return a uint8 map that is 1 where values <= 0 and 0 elsewhere."""
    values = np.ascontiguousarray(values, dtype=np.float64)
    out = np.zeros(values.shape, dtype=np.uint8)

    def body(start: int, end: int) -> None:
        _binary_from_sign_rows(values, out, start, end)

    parallel_for(values.shape[0], body, num_threads)
    return out


def critical_curve_mask(
    jacobian: np.ndarray,
    sigma: float = defaults.CRITICAL_CURVE_SMOOTH_SIGMA,
    num_threads: int | None = None,
) -> np.ndarray:
    """
    Draw the outlines of the regions where the smoothed Jacobian proxy is <= 0.

    Args:
        jacobian: Jacobian determinant (or tangential eigenvalue) map
        sigma: Gaussian smoothing applied before the sign test (0 = none)
        num_threads: Worker count for the sign test (None = auto)

    Returns:
        uint8 map with 1px anti-aliased contour lines (255 on the line center).
    """
    smoothed = np.asarray(jacobian, dtype=np.float64)
    if sigma > 0:
        smoothed = gaussian_filter(smoothed, sigma=sigma, mode="mirror")

    inside = binary_from_sign(smoothed, num_threads)
    contours, _ = cv2.findContours(inside, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)

    cc_map = np.zeros(inside.shape, dtype=np.uint8)
    if contours:
        cv2.drawContours(cc_map, contours, -1, defaults.CURVE_INTENSITY_MAX, 1, cv2.LINE_AA)
    return cc_map


def invert_critical_curves(
    cc_map: np.ndarray,
    alpha1: np.ndarray,
    alpha2: np.ndarray,
    weight: float,
    caustic_map: np.ndarray | None = None,
    num_threads: int | None = None,
) -> np.ndarray:
    """
    Map critical-curve pixels to the source plane and mark them in caustic_map.

    Each curve pixel is ray traced without fall-off or interpolation, rounded to
    the nearest cell, and marked together with its right, lower and lower-right
    neighbours. Cells outside caustic_map are dropped.

    Args:
        cc_map: Critical-curve mask (nonzero = on a curve)
        alpha1: Deflection x-component, same shape as cc_map
        alpha2: Deflection y-component, same shape as cc_map
        weight: Lens weight applied to the deflection
        caustic_map: Output map, written in place (allocated zeroed if None)
        num_threads: Worker count (None = auto)

    Returns:
        The caustic map (uint8, 0/255), in lens-relative coordinates.
    """
    if caustic_map is None:
        caustic_map = np.zeros(cc_map.shape, dtype=np.uint8)

    cc_map = np.ascontiguousarray(cc_map, dtype=np.uint8)
    alpha1 = np.ascontiguousarray(alpha1, dtype=np.float64)
    alpha2 = np.ascontiguousarray(alpha2, dtype=np.float64)
    weight = float(weight)

    def body(start: int, end: int) -> None:
        _invert_rows(cc_map, alpha1, alpha2, weight, caustic_map, start, end)

    parallel_for(cc_map.shape[0], body, num_threads)
    return caustic_map
