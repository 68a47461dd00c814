"""High-level mutations on AppState, driven by user input events."""

from __future__ import annotations

import numpy as np

from quicklens import defaults
from quicklens.app.core import AppState
from quicklens.lens import Lens
from quicklens.render import render_lensed_image
from quicklens.source import Source
from quicklens.types import OverlayMode, RenderTarget


def create_app_state(
    kappa: np.ndarray,
    image: np.ndarray,
    num_threads: int | None = None,
    overlay_mode: OverlayMode = OverlayMode(defaults.DEFAULT_OVERLAY_MODE),
) -> AppState:
    """Build lens, source and screen for a new session and render the first frame.

    The screen covers the area shared by the convergence map and the source
    image; lens and source start centered on it.
    """
    screen_w = min(kappa.shape[1], image.shape[1])
    screen_h = min(kappa.shape[0], image.shape[0])

    lens = Lens(kappa, screen_w // 2, screen_h // 2, num_threads=num_threads)
    source = Source(image, screen_w // 2, screen_h // 2)
    target = RenderTarget(screen_w, screen_h, overlay_mode=overlay_mode)
    state = AppState(lens=lens, source=source, target=target, num_threads=num_threads)

    set_weight(state, state.weight_slider)
    return state


def refresh(state: AppState, overlay_only: bool = False) -> np.ndarray:
    """Re-render the frame; overlay_only reuses the previous lensed image."""
    return render_lensed_image(
        state.lens,
        state.source,
        state.target,
        overlay_only=overlay_only,
        num_threads=state.num_threads,
    )


def move_lens(state: AppState, x: int, y: int) -> None:
    """Center the lens on screen pixel (x, y) and redraw."""
    state.lens.move(x, y)
    refresh(state)


def set_weight(state: AppState, raw_value: int) -> None:
    """Apply weight slider value (weight = raw / 20) and redraw.

    Critical curves are re-extracted right away when visible, otherwise on
    the next overlay change.
    """
    raw_value = int(np.clip(raw_value, 0, defaults.MAX_WEIGHT_SLIDER))
    state.weight_slider = raw_value
    state.lens.weight = raw_value / defaults.WEIGHT_SLIDER_DIVISOR

    mode = state.overlay_mode
    if mode.show_critical_curves:
        state.lens.update_critical_curves_and_caustics(mode.include_radial)
        state.curves_include_radial = mode.include_radial
        state.redraw_curves_on_next_action = False
    else:
        state.redraw_curves_on_next_action = True
    refresh(state)


def set_overlay_mode(state: AppState, mode: int | OverlayMode) -> None:
    """Switch overlay layers and recomposite without re-tracing rays."""
    mode = OverlayMode(int(np.clip(int(mode), 0, defaults.MAX_OVERLAY_MODE)))
    state.target.overlay_mode = mode

    if mode.show_critical_curves:
        if state.curves_include_radial != mode.include_radial:
            state.redraw_curves_on_next_action = True
            state.curves_include_radial = mode.include_radial

        if state.redraw_curves_on_next_action:
            state.lens.update_critical_curves_and_caustics(mode.include_radial)
            state.redraw_curves_on_next_action = False

    state.set_status(mode.description)
    refresh(state, overlay_only=True)


def resize_source(state: AppState, raw_value: int) -> None:
    """Apply source size slider value (factor = raw / 100) and redraw."""
    raw_value = int(np.clip(raw_value, 0, defaults.MAX_SOURCE_SIZE_SLIDER))
    state.source_size_slider = raw_value
    state.source.resize_area(raw_value / defaults.SOURCE_SIZE_DIVISOR)
    refresh(state)
