"""Headless session setup and rendering - no UI dependencies."""

import logging
import time
from pathlib import Path

from quicklens.app.actions import create_app_state, refresh
from quicklens.app.core import AppState
from quicklens.image_io import load_convergence_map, load_source_image, save_image
from quicklens.parallel import resolve_num_threads
from quicklens.types import OverlayMode

logger = logging.getLogger(__name__)


def build_scene(
    lens_path: str,
    source_path: str,
    num_threads: int | None = None,
    overlay_mode: OverlayMode = OverlayMode.CONVERGENCE,
) -> AppState:
    """Load the convergence map and source image, then set up and render a session.

    Raises:
        ImageLoadError: If either input cannot be read. No state is created.
    """
    t_start = time.time()

    source_image = load_source_image(source_path)
    kappa = load_convergence_map(lens_path)

    logger.info("Started with %d threads", resolve_num_threads(num_threads))
    logger.info(
        "Creating lens (%dx%d, %s), source (%dx%d) and screen...",
        kappa.shape[1],
        kappa.shape[0],
        kappa.dtype,
        source_image.shape[1],
        source_image.shape[0],
    )
    state = create_app_state(kappa, source_image, num_threads=num_threads, overlay_mode=overlay_mode)

    logger.info("Scene ready in %.2fs", time.time() - t_start)
    return state


def render_to_file(state: AppState, path: str, overlay_only: bool = False) -> Path:
    """Render the current frame and save the composited image."""
    t_start = time.time()
    final = refresh(state, overlay_only=overlay_only)
    out = save_image(path, final)
    logger.info("Saved %s in %.2fs", out, time.time() - t_start)
    return out
