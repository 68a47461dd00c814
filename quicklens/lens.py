"""
Gravitational lens: convergence, lensing potential, deflection field and shear.

The potential is the convolution of the convergence with the 2D Green's
function log(r)/pi, computed with FFTs on a zero-padded grid. Deflection and
shear follow from central differences of the potential.
"""

import logging
import time

import numba
import numpy as np
from scipy import fft

from quicklens import defaults
from quicklens.caustics import critical_curve_mask, invert_critical_curves
from quicklens.errors import GridShapeError
from quicklens.fieldmath import derivative_x, derivative_y, fill_convolution_kernel
from quicklens.parallel import resolve_num_threads

logger = logging.getLogger(__name__)


def kappa_to_display(kappa: np.ndarray) -> np.ndarray:
    """Log-compress a convergence map into uint8 display intensities.

    byte = round(70 * (log(kappa) + 2.5)), clamped to [0, 255]; kappa <= 0 maps to 0.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = defaults.KAPPA_LOG_DISPLAY_GAIN * (np.log(kappa) + defaults.KAPPA_LOG_DISPLAY_OFFSET)
    scaled = np.nan_to_num(scaled, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


@numba.njit(cache=True, nogil=True)
def raytrace(x1, x2, alpha1, alpha2, rel_x, rel_y, scale_factor, weight):
    """Lens equation: source position = image position - weight * scale * alpha."""
    y1 = x1 - alpha1[rel_y, rel_x] * scale_factor * weight
    y2 = x2 - alpha2[rel_y, rel_x] * scale_factor * weight
    return y1, y2


class Lens:
    """Lens with its physical fields and its placement on the screen.

    Attributes:
        width, height: Size of the lens grid (fixed at construction)
        origin: (x, y) screen position of the lens grid's top-left pixel
        weight: User factor applied to deflection and shear at query time
        kappa: Convergence (float64)
        kappa8u: Display version of the convergence (uint8)
        psi: Lensing potential
        alpha1, alpha2: Deflection field components along x and y
        shear: Shear magnitude
        cc_map: Critical-curve contour mask (uint8, anti-aliased)
        caustic_map: Caustic mask in lens-relative coordinates (uint8, 0/255)
    """

    def __init__(
        self,
        kappa_in: np.ndarray,
        center_x: int,
        center_y: int,
        num_threads: int | None = None,
    ):
        kappa_in = np.asarray(kappa_in)
        if kappa_in.ndim != 2 or kappa_in.size == 0:
            raise GridShapeError(f"convergence must be a non-empty 2D grid, got shape {kappa_in.shape}")

        self.height, self.width = kappa_in.shape
        self.weight = defaults.DEFAULT_WEIGHT
        self.num_threads = num_threads
        self.origin = (0, 0)
        self.move(center_x, center_y)

        if kappa_in.dtype == np.uint8:
            self.kappa8u = kappa_in.copy()
            self.kappa = kappa_in.astype(np.float64) * (defaults.BYTE_KAPPA_MAX / 255.0)
        else:
            self.kappa = kappa_in.astype(np.float64, copy=True)
            self.kappa8u = kappa_to_display(self.kappa)

        self.psi: np.ndarray | None = None
        self.alpha1: np.ndarray | None = None
        self.alpha2: np.ndarray | None = None
        self.shear: np.ndarray | None = None
        self.cc_map: np.ndarray | None = None
        self.caustic_map: np.ndarray | None = None

        logger.info("Performing Fourier transforms and convolution (%dx%d)...", self.width, self.height)
        self.compute_psi_from_kappa()
        logger.info("Creating deflection field and shear...")
        self.compute_derivatives_from_psi()
        self.update_critical_curves_and_caustics(include_radial=True)

    def __repr__(self) -> str:
        return (
            f"Lens(width={self.width}, height={self.height}, "
            f"origin={self.origin}, weight={self.weight})"
        )

    @property
    def extent(self) -> tuple[int, int]:
        return self.width, self.height

    def move(self, x: int, y: int) -> None:
        """Center the lens on screen pixel (x, y)."""
        self.origin = (int(x) - self.width // 2, int(y) - self.height // 2)

    def contains(self, x: int, y: int) -> bool:
        """Whether screen pixel (x, y) lies strictly inside the lens data area."""
        ox, oy = self.origin
        return ox < x < ox + self.width and oy < y < oy + self.height

    def raytrace_pixel(
        self,
        x1: float,
        x2: float,
        rel_x: int,
        rel_y: int,
        scale_factor: float = 1.0,
    ) -> tuple[float, float]:
        """Source-plane position of screen pixel (x1, x2).

        rel_x, rel_y must already be valid indices into the deflection grid;
        no bounds checking is done here.
        """
        return raytrace(x1, x2, self.alpha1, self.alpha2, rel_x, rel_y, scale_factor, self.weight)

    def compute_psi_from_kappa(self) -> None:
        """Compute the lensing potential by FFT convolution of kappa with the Green's function.

        Both grids are zero-padded to a fast transform size of at least twice
        the convergence size so the circular convolution does not wrap around.
        """
        h, w = self.kappa.shape
        pad_h = fft.next_fast_len(2 * h, real=True)
        pad_w = fft.next_fast_len(2 * w, real=True)

        padded = np.zeros((pad_h, pad_w), dtype=np.float64)
        padded[:h, :w] = self.kappa

        green = np.zeros((pad_h, pad_w), dtype=np.float64)
        fill_convolution_kernel(green)

        workers = resolve_num_threads(self.num_threads)
        product = fft.rfft2(padded, workers=workers) * fft.rfft2(green, workers=workers)
        psi = fft.irfft2(product, s=(pad_h, pad_w), workers=workers)

        self.psi = np.ascontiguousarray(psi[:h, :w])

    def compute_derivatives_from_psi(self) -> None:
        """Compute deflection (first derivatives) and shear (second derivatives) of psi."""
        if self.psi is None:
            self.compute_psi_from_kappa()

        self.alpha1 = derivative_x(self.psi)
        self.alpha2 = derivative_y(self.psi)

        psi_11 = derivative_x(self.alpha1)
        psi_22 = derivative_y(self.alpha2)
        psi_12 = derivative_y(self.alpha1)

        diff = psi_11 - psi_22
        self.shear = np.sqrt(0.25 * diff * diff + psi_12 * psi_12)

    def update_critical_curves_and_caustics(self, include_radial: bool = False) -> None:
        """(Re)compute critical curves and caustics for the current weight.

        Args:
            include_radial: Use the full Jacobian determinant (tangential and
                radial curves) instead of the tangential eigenvalue only.
        """
        if self.shear is None:
            self.compute_derivatives_from_psi()

        t_start = time.perf_counter()

        tangential = 1.0 - self.weight * (self.kappa + self.shear)
        if include_radial:
            radial = 1.0 - self.weight * (self.kappa - self.shear)
            det_j = tangential * radial
        else:
            det_j = tangential

        self.cc_map = critical_curve_mask(det_j, num_threads=self.num_threads)
        self.caustic_map = invert_critical_curves(
            self.cc_map,
            self.alpha1,
            self.alpha2,
            self.weight,
            num_threads=self.num_threads,
        )

        logger.debug(
            "Critical curves updated (weight=%.2f, radial=%s) in %.3fs",
            self.weight,
            include_radial,
            time.perf_counter() - t_start,
        )
