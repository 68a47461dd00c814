"""Tests for AppState and the controller actions."""

import numpy as np
import pytest

from quicklens import defaults
from quicklens.app.actions import (
    create_app_state,
    move_lens,
    refresh,
    resize_source,
    set_overlay_mode,
    set_weight,
)
from quicklens.types import OverlayMode


@pytest.fixture
def state(point_kappa, rgb_image):
    return create_app_state(point_kappa, rgb_image, num_threads=2)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def test_create_app_state(state):
    assert state.screen_size == (24, 20)
    assert state.target.final.shape == (20, 24, 3)
    assert state.overlay_mode is OverlayMode.CONVERGENCE
    assert state.lens.origin == (12 - 16, 10 - 16)
    assert state.source.origin == (0, 0)

    assert state.weight_slider == defaults.DEFAULT_WEIGHT_SLIDER
    assert state.lens.weight == pytest.approx(5.0)
    # Curves are not shown yet, so their update is deferred
    assert state.redraw_curves_on_next_action
    assert state.target.final.any()


def test_set_weight_clips_and_scales(state):
    set_weight(state, 40)
    assert state.lens.weight == pytest.approx(2.0)

    set_weight(state, 500)
    assert state.weight_slider == defaults.MAX_WEIGHT_SLIDER
    assert state.lens.weight == pytest.approx(10.0)

    set_weight(state, -3)
    assert state.weight_slider == 0
    assert state.lens.weight == 0.0


def test_set_weight_with_curves_visible_updates_them(state):
    set_overlay_mode(state, OverlayMode.CRITICAL_CURVES)
    assert not state.redraw_curves_on_next_action

    set_weight(state, 40)
    assert not state.redraw_curves_on_next_action
    assert not state.curves_include_radial

    set_weight(state, 0)
    assert not state.lens.cc_map.any()
    assert not state.lens.caustic_map.any()


def test_set_overlay_mode_recomposites_only(state):
    lensed = state.target.lensed.copy()

    set_overlay_mode(state, 2)
    assert state.overlay_mode is OverlayMode.CRITICAL_CURVES
    assert state.status_message == "Add critical curves (t) + source center (dot)"
    assert np.array_equal(state.target.lensed, lensed)

    set_overlay_mode(state, 0)
    assert state.overlay_mode is OverlayMode.NONE
    assert np.array_equal(state.target.final, lensed)


def test_switching_to_radial_curves_redraws(state):
    set_overlay_mode(state, 2)
    assert not state.curves_include_radial

    set_overlay_mode(state, 3)
    assert state.curves_include_radial
    assert not state.redraw_curves_on_next_action
    assert state.status_message == OverlayMode.CRITICAL_CURVES_WITH_RADIAL.description


def test_set_overlay_mode_clips(state):
    set_overlay_mode(state, 9)
    assert state.overlay_mode is OverlayMode.CONVERGENCE_AND_CRITICAL_CURVES
    set_overlay_mode(state, -1)
    assert state.overlay_mode is OverlayMode.NONE


def test_deferred_curves_follow_weight_change(state):
    set_weight(state, 0)
    assert state.redraw_curves_on_next_action

    set_overlay_mode(state, 2)
    assert not state.redraw_curves_on_next_action
    assert not state.lens.cc_map.any()


def test_resize_source(state):
    resize_source(state, 50)
    assert state.source_size_slider == 50
    assert state.source.extent == (12, 10)
    assert state.source.position == (12, 10)

    resize_source(state, 0)
    assert state.source_size_slider == 0
    assert state.source.extent == (12, 10)


def test_move_lens(state):
    move_lens(state, 3, 4)
    assert state.lens.origin == (3 - 16, 4 - 16)


def test_refresh_returns_final(state):
    assert refresh(state) is state.target.final


def test_status_message_expires(state):
    clock = FakeClock(10.0)
    state._clock = clock

    state.set_status("Add lens convergence")
    assert state.status_since == 10.0

    clock.now = 10.5
    assert not state.clear_expired_status()
    assert state.status_message == "Add lens convergence"

    clock.now = 11.0
    assert state.clear_expired_status()
    assert state.status_message == ""
    assert not state.clear_expired_status()
