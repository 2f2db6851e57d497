#!/usr/bin/env python3
"""
Tests for the colour field, colour helpers and the brightness ledger.

Verifies:
1. Corner hues rotate with time and are static without one
2. Hue blending takes the short way round the wheel
3. Vectorised colours agree with the per-position path
4. Malformed colours degrade instead of raising
5. Ledger decay, toggle reconciliation and transplanting
"""

import numpy as np

from glowgrid.brightness import BrightnessLedger
from glowgrid.colour_field import ColourField, hsl_to_rgb, hsl_to_rgb_array
from glowgrid.colours import (
    apply_brightness, format_colour, interpolate_colour, parse_colour,
)


def hue_distance(a, b):
    d = abs(a - b) % 360
    return min(d, 360 - d)


# --- Colour field ---

def test_corner_hue_static_and_rotating():
    field = ColourField(start_time=0)
    assert field.corner_hue("top_left") == 45
    assert field.corner_hue("bottom_left", None) == 315
    # A quarter of the 60s period later
    assert abs(field.corner_hue("top_left", 15000) - 135) < 1e-9
    assert abs(field.corner_hue("top_right", 75000) - 135) < 1e-9


def test_corners_map_to_surface_corners():
    field = ColourField()
    w, h = 400, 300
    assert hue_distance(field.hue_at_position(0, 0, w, h), 45) < 1e-6
    assert hue_distance(field.hue_at_position(w, 0, w, h), 135) < 1e-6
    assert hue_distance(field.hue_at_position(w, h, w, h), 225) < 1e-6
    assert hue_distance(field.hue_at_position(0, h, w, h), 315) < 1e-6
    # Off-surface positions clamp to the nearest edge
    assert hue_distance(field.hue_at_position(-50, -50, w, h), 45) < 1e-6


def test_hue_blends_across_zero():
    field = ColourField(corners={
        "top_left": {"start_hue": 350},
        "top_right": {"start_hue": 10},
    })
    for x in range(0, 101, 10):
        hue = field.hue_at_position(x, 0, 100, 100)
        assert hue_distance(hue, 0) <= 10 + 1e-6, f"x={x} went the long way: {hue}"
    mid = field.hue_at_position(50, 0, 100, 100)
    assert min(mid, 360 - mid) < 1


def test_vectorised_colours_match_scalar():
    field = ColourField(start_time=0)
    w, h = 200, 100
    xs = np.array([0, 37, 120, 200])
    ys = np.array([0, 50, 99])
    grid = field.colours_for(xs[np.newaxis, :], ys[:, np.newaxis], w, h,
                             current_time=12345)
    assert grid.shape == (3, 4, 3) and grid.dtype == np.uint8
    for i, y in enumerate(ys):
        for j, x in enumerate(xs):
            expected = field.colour_at_position(x, y, w, h, current_time=12345)
            diff = np.abs(grid[i, j].astype(int) - np.array(expected))
            assert diff.max() <= 1, (x, y, grid[i, j], expected)


def test_hsl_primaries():
    assert hsl_to_rgb(0, 100, 50) == (255, 0, 0)
    assert hsl_to_rgb(120, 100, 50) == (0, 255, 0)
    assert hsl_to_rgb(240, 100, 50) == (0, 0, 255)
    assert hsl_to_rgb(360, 0, 100) == (255, 255, 255)
    arr = hsl_to_rgb_array(np.array([0.0, 120.0, 240.0]), 100, 50)
    assert arr.tolist() == [[255, 0, 0], [0, 255, 0], [0, 0, 255]]


# --- Colour helpers ---

def test_parse_colour_forms():
    assert parse_colour("#fff") == (255, 255, 255)
    assert parse_colour("#102030") == (16, 32, 48)
    assert parse_colour("rgb(1, 2, 3)") == (1, 2, 3)
    assert parse_colour("rgba(4,5,6,0.5)") == (4, 5, 6)
    assert parse_colour((300, -5, 10)) == (255, 0, 10)
    assert parse_colour("#12") is None
    assert parse_colour("bogus") is None
    assert parse_colour(None) is None


def test_brightness_and_interpolation():
    assert apply_brightness((100, 50, 200), 2) == (200, 100, 255)
    assert apply_brightness("rgb(10, 20, 30)", 0.5) == (5, 10, 15)
    assert apply_brightness("nope", 0.5) == "nope", "Malformed colours pass through"
    assert interpolate_colour((0, 0, 0), (255, 255, 255), 0.5) == (128, 128, 128)
    assert interpolate_colour((0, 0, 0), (255, 0, 0), 4) == (255, 0, 0)
    assert interpolate_colour("bad", (1, 2, 3), 0.5) == "bad"
    assert format_colour((1, 2, 3)) == "rgb(1, 2, 3)"
    assert format_colour((1, 2, 3), 0.5) == "rgba(1, 2, 3, 0.5)"


# --- Brightness ledger ---

def test_decay_only_touches_recorded_cells():
    ledger = BrightnessLedger(4, 4)
    grid = np.zeros((4, 4), dtype=bool)
    grid[1, 1] = True
    ledger.mark_active(grid)
    ledger.decay(0.3)
    assert abs(ledger.get(1, 1) - 0.7) < 1e-9
    assert ledger.get(0, 0) == 0.0 and not ledger.is_touched(0, 0)
    for _ in range(3):
        ledger.decay(0.3)
    assert ledger.get(1, 1) == 0.0
    assert ledger.stats == {"touched": 1, "lit": 0, "fading": 0}


def test_apply_toggle():
    ledger = BrightnessLedger(3, 3)
    # Never-seen cell turned off still starts visible
    ledger.apply_toggle(0, 0, False)
    assert ledger.get(0, 0) == 1.0

    ledger.apply_toggle(1, 1, True)
    ledger.decay(0.5)
    ledger.apply_toggle(1, 1, False)
    assert ledger.get(1, 1) == 0.5, "Turned-off cell keeps fading from where it was"

    ledger.apply_toggle(7, 7, True)
    assert ledger.get(7, 7) == 0.0


def test_as_array_falls_back_for_untouched_active():
    ledger = BrightnessLedger(2, 3)
    grid = np.array([[True, False, False], [False, False, True]])
    values = ledger.as_array(grid)
    assert values.tolist() == [[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]]
    assert not ledger.touched.any(), "as_array must not record anything"


def test_transplant_between_sizes():
    big = BrightnessLedger(5, 5)
    big.mark_active(np.ones((5, 5), dtype=bool))
    small = BrightnessLedger(3, 2)
    small.transplant(big)
    assert small.touched.all() and (small.values == 1.0).all()

    again = BrightnessLedger(6, 6)
    again.transplant(small)
    assert again.touched[:3, :2].all()
    assert not again.touched[3:, :].any() and not again.touched[:, 2:].any()

    dup = again.copy()
    dup.clear()
    assert again.touched.any(), "copy() is independent"


if __name__ == "__main__":
    print("\n=== Testing colour and brightness ===\n")

    test_corner_hue_static_and_rotating()
    test_corners_map_to_surface_corners()
    test_hue_blends_across_zero()
    test_vectorised_colours_match_scalar()
    test_hsl_primaries()
    test_parse_colour_forms()
    test_brightness_and_interpolation()
    test_decay_only_touches_recorded_cells()
    test_apply_toggle()
    test_as_array_falls_back_for_untouched_active()
    test_transplant_between_sizes()

    print("\n✓ All tests passed!\n")
