"""
Parallel renderer: ray traces every screen pixel through the lens and
composites the overlays (critical curves, caustics, convergence) on top.

Rows are independent, so the screen is split into row ranges that run on a
thread pool. The per-row work is a numba kernel released from the GIL.
"""

import logging
import time

import cv2
import numba
import numpy as np

from quicklens import defaults
from quicklens.fieldmath import relocate_with_fall_off
from quicklens.lens import Lens, raytrace
from quicklens.parallel import parallel_for, resolve_num_threads
from quicklens.source import Source, interpolate_pixel
from quicklens.types import RenderTarget

logger = logging.getLogger(__name__)

_CURVE_MAX = defaults.CURVE_INTENSITY_MAX
_CAUSTIC_R, _CAUSTIC_G, _CAUSTIC_B = defaults.CAUSTIC_COLOR
_CURVE_R, _CURVE_G, _CURVE_B = defaults.CRITICAL_CURVE_COLOR


@numba.njit(cache=True, nogil=True)
def _render_rows(
    lensed,
    final,
    alpha1,
    alpha2,
    cc_map,
    caustic_map,
    kappa8u,
    lens_ox,
    lens_oy,
    weight,
    channels,
    src_ox,
    src_oy,
    show_overlays,
    show_cc,
    show_kappa,
    recompute,
    start,
    end,
):
    screen_w = final.shape[1]
    lens_h = alpha1.shape[0]
    lens_w = alpha1.shape[1]
    h2 = lens_h * 0.5
    w2 = lens_w * 0.5
    hm1 = lens_h - 1.0
    wm1 = lens_w - 1.0

    for i in range(start, end):
        rel_i = i - lens_oy
        safe_i = 0
        fi = 1.0
        if recompute:
            safe_i, fi = relocate_with_fall_off(rel_i, lens_h, h2, hm1)
        row_in_lens = lens_oy < i < lens_oy + lens_h

        for j in range(screen_w):
            rel_j = j - lens_ox
            overlay_sum = 0
            is_caustic = False

            if show_overlays and row_in_lens and lens_ox < j < lens_ox + lens_w:
                cc_val = 0
                if show_cc:
                    cc_val = int(cc_map[rel_i, rel_j])
                if cc_val > 0:
                    # Critical curves are always on top
                    if cc_val == _CURVE_MAX and not recompute:
                        final[i, j, 0] = _CURVE_R
                        final[i, j, 1] = _CURVE_G
                        final[i, j, 2] = _CURVE_B
                        continue
                    overlay_sum += cc_val

                if show_cc and caustic_map[rel_i, rel_j] > 0:
                    is_caustic = True
                    final[i, j, 0] = _CAUSTIC_R
                    final[i, j, 1] = _CAUSTIC_G
                    final[i, j, 2] = _CAUSTIC_B
                    if not recompute:
                        continue
                elif show_kappa:
                    overlay_sum += int(kappa8u[rel_i, rel_j])

            if recompute:
                safe_j, fj = relocate_with_fall_off(rel_j, lens_w, w2, wm1)
                beta1, beta2 = raytrace(j, i, alpha1, alpha2, safe_j, safe_i, fi * fj, weight)
                r, g, b = interpolate_pixel(channels, src_ox, src_oy, beta1, beta2)
                lensed[i, j, 0] = r
                lensed[i, j, 1] = g
                lensed[i, j, 2] = b

            if not is_caustic:
                for c in range(3):
                    val = int(lensed[i, j, c]) + overlay_sum
                    if val > 255:
                        val = 255
                    final[i, j, c] = val


def draw_source_marker(final: np.ndarray, position: tuple[int, int]) -> None:
    """Mark the source center with a filled gray dot."""
    level = defaults.SOURCE_MARKER_LEVEL
    cv2.circle(
        final,
        (int(position[0]), int(position[1])),
        defaults.SOURCE_MARKER_RADIUS,
        (level, level, level),
        -1,
    )


def render_lensed_image(
    lens: Lens,
    source: Source,
    target: RenderTarget,
    overlay_only: bool = False,
    num_threads: int | None = None,
) -> np.ndarray:
    """
    Render the lensed source plus overlays into target.final.

    Args:
        lens: Lens to trace through (read-only during the pass)
        source: Source to sample (read-only during the pass)
        target: Buffers to write; target.overlay_mode selects the layers
        overlay_only: Reuse target.lensed and only recomposite the overlays
        num_threads: Worker count (None = auto)

    Returns:
        target.final
    """
    mode = target.overlay_mode
    recompute = not overlay_only
    threads = resolve_num_threads(num_threads)
    t_start = time.perf_counter()

    lens_ox, lens_oy = lens.origin
    src_ox, src_oy = source.origin
    weight = float(lens.weight)

    def body(start: int, end: int) -> None:
        _render_rows(
            target.lensed,
            target.final,
            lens.alpha1,
            lens.alpha2,
            lens.cc_map,
            lens.caustic_map,
            lens.kappa8u,
            lens_ox,
            lens_oy,
            weight,
            source.channels,
            src_ox,
            src_oy,
            mode.show_overlays,
            mode.show_critical_curves,
            mode.show_convergence,
            recompute,
            start,
            end,
        )

    parallel_for(target.height, body, threads)

    if mode.marks_source:
        draw_source_marker(target.final, source.position)

    logger.debug(
        "Rendered %dx%d (%s, mode=%s, threads=%d) in %.3fs",
        target.width,
        target.height,
        "overlays only" if overlay_only else "full",
        mode.name,
        threads,
        time.perf_counter() - t_start,
    )
    return target.final


class Renderer:
    """Renders a lens/source pair into a render target.

    Holds non-owning references; the caller owns lens, source and target and
    must not mutate them while a render is running.
    """

    def __init__(
        self,
        lens: Lens,
        source: Source,
        target: RenderTarget,
        num_threads: int | None = None,
    ):
        self.lens = lens
        self.source = source
        self.target = target
        self.num_threads = num_threads

    def render(self, overlay_only: bool = False) -> np.ndarray:
        return render_lensed_image(
            self.lens,
            self.source,
            self.target,
            overlay_only=overlay_only,
            num_threads=self.num_threads,
        )
