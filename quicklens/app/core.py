"""Toolkit-neutral application state for quicklens."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from quicklens import defaults
from quicklens.lens import Lens
from quicklens.source import Source
from quicklens.types import OverlayMode, RenderTarget


@dataclass
class AppState:
    """Central session state passed to every controller action.

    Lens, source and render target are owned here; renders read them and
    actions mutate them strictly between renders.
    """

    lens: Lens
    source: Source
    target: RenderTarget
    num_threads: int | None = None

    # Slider positions (raw integer values)
    weight_slider: int = defaults.DEFAULT_WEIGHT_SLIDER
    source_size_slider: int = defaults.DEFAULT_SOURCE_SIZE_SLIDER

    # Critical curves are only re-extracted when they are about to be shown
    redraw_curves_on_next_action: bool = True
    curves_include_radial: bool = False

    # Transient status line (e.g. name of the overlay mode just selected)
    status_message: str = ""
    status_since: float = 0.0
    _clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    @property
    def overlay_mode(self) -> OverlayMode:
        return self.target.overlay_mode

    @property
    def screen_size(self) -> tuple[int, int]:
        return self.target.width, self.target.height

    def set_status(self, message: str) -> None:
        self.status_message = message
        self.status_since = self._clock()

    def clear_expired_status(self, max_age: float = defaults.STATUS_MESSAGE_SECONDS) -> bool:
        """Drop the status message once it is older than max_age seconds.

        Returns True if a message was cleared.
        """
        if not self.status_message:
            return False
        if self._clock() - self.status_since < max_age:
            return False
        self.status_message = ""
        return True
