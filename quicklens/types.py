"""Core data types for quicklens - framework-agnostic."""

import enum
from dataclasses import dataclass, field

import numpy as np

from quicklens.errors import GridShapeError


class OverlayMode(enum.IntEnum):
    """Overlay layers composited over the lensed image.

    The integer values match the overlay slider positions.
    """

    NONE = 0
    CONVERGENCE = 1
    CRITICAL_CURVES = 2
    CRITICAL_CURVES_WITH_RADIAL = 3
    CONVERGENCE_AND_CRITICAL_CURVES = 4

    @property
    def show_overlays(self) -> bool:
        return self is not OverlayMode.NONE

    @property
    def show_convergence(self) -> bool:
        return self in (OverlayMode.CONVERGENCE, OverlayMode.CONVERGENCE_AND_CRITICAL_CURVES)

    @property
    def show_critical_curves(self) -> bool:
        return self in (
            OverlayMode.CRITICAL_CURVES,
            OverlayMode.CRITICAL_CURVES_WITH_RADIAL,
            OverlayMode.CONVERGENCE_AND_CRITICAL_CURVES,
        )

    @property
    def include_radial(self) -> bool:
        """Whether critical curves are extracted from the full Jacobian determinant."""
        return self in (
            OverlayMode.CRITICAL_CURVES_WITH_RADIAL,
            OverlayMode.CONVERGENCE_AND_CRITICAL_CURVES,
        )

    @property
    def marks_source(self) -> bool:
        """Whether the source center is marked by a dot."""
        return self.show_critical_curves

    @property
    def description(self) -> str:
        return _MODE_DESCRIPTIONS[self]


_MODE_DESCRIPTIONS = {
    OverlayMode.NONE: "",
    OverlayMode.CONVERGENCE: "Add lens convergence",
    OverlayMode.CRITICAL_CURVES: "Add critical curves (t) + source center (dot)",
    OverlayMode.CRITICAL_CURVES_WITH_RADIAL: "Add critical curves (t+r) + source center (dot)",
    OverlayMode.CONVERGENCE_AND_CRITICAL_CURVES: "Add lens + critical curves + source center (dot)",
}


@dataclass
class RenderTarget:
    """Screen-sized output buffers.

    Attributes:
        width: Screen width in pixels
        height: Screen height in pixels
        overlay_mode: Active overlay layers
        lensed: Ray-traced colors before overlays, (height, width, 3) uint8 RGB
        final: Composited colors after overlays, (height, width, 3) uint8 RGB
    """

    width: int
    height: int
    overlay_mode: OverlayMode = OverlayMode.CONVERGENCE
    lensed: np.ndarray = field(init=False, repr=False)
    final: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise GridShapeError(f"render target must be at least 1x1, got {self.width}x{self.height}")
        self.overlay_mode = OverlayMode(self.overlay_mode)
        self.lensed = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self.final = np.zeros((self.height, self.width, 3), dtype=np.uint8)
