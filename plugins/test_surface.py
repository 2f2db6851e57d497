#!/usr/bin/env python3
"""
Tests for RenderSurface.

Verifies:
1. Detached surfaces ignore drawing calls
2. Primitive fills land on the right pixels
3. blit_cells honours the lit mask and the 1px cell gap
4. Glow blooms past the drawn shape
"""

import numpy as np

from glowgrid.surface import RenderSurface


def test_detached_surface_is_inert():
    surface = RenderSurface()
    assert not surface.is_attached
    assert surface.size == (0, 0)
    surface.fill_rect((0, 0, 10, 10), (255, 0, 0))
    surface.fill_circle((5, 5), 3, (255, 0, 0))
    surface.blit_cells(np.zeros((2, 2, 3), dtype=np.uint8), (0, 0), 4)
    assert surface.present() is None
    assert surface.to_array().shape == (0, 0, 3)


def test_set_size_attaches_and_detaches():
    surface = RenderSurface(10, 20)
    assert surface.is_attached and surface.size == (10, 20)
    assert surface.to_array().shape == (20, 10, 3)
    surface.set_size(-1, 5)
    assert not surface.is_attached


def test_fill_rect_pixels():
    surface = RenderSurface(20, 10)
    surface.fill_rect((2, 3, 4, 2), (10, 200, 30))
    pixels = surface.to_array()
    assert tuple(pixels[3, 2]) == (10, 200, 30)
    assert tuple(pixels[4, 5]) == (10, 200, 30)
    assert tuple(pixels[5, 2]) == (0, 0, 0), "Rect is 2px tall"
    assert tuple(pixels[3, 6]) == (0, 0, 0), "Rect is 4px wide"

    surface.clear()
    assert surface.to_array().sum() == 0


def test_fill_circle_alpha_blends_to_background():
    surface = RenderSurface(20, 20)
    surface.fill_circle((10, 10), 3, (255, 0, 0), alpha=0.5)
    assert tuple(surface.to_array()[10, 10]) == (127, 0, 0)


def test_blit_cells_mask_and_gap():
    surface = RenderSurface(16, 8)
    colours = np.zeros((2, 4, 3), dtype=np.uint8)
    colours[..., 0] = 200
    lit = np.ones((2, 4), dtype=bool)
    lit[1, 3] = False
    surface.blit_cells(colours, (0, 0), 4, lit=lit)
    pixels = surface.to_array()

    assert pixels[0, 0, 0] == 200
    assert pixels[0, 3, 0] == 0, "Last column of each cell is a gap"
    assert pixels[3, 0, 0] == 0, "Last row of each cell is a gap"
    assert pixels[0, 4, 0] == 200
    assert pixels[5, 13, 0] == 0, "Unlit cell stays dark"
    assert pixels[5, 9, 0] == 200


def test_blit_cells_clips_to_surface():
    surface = RenderSurface(6, 6)
    colours = np.full((3, 3, 3), 50, dtype=np.uint8)
    surface.blit_cells(colours, (2, 2), 3, gap=0)
    pixels = surface.to_array()
    assert pixels[5, 5].tolist() == [50, 50, 50]
    assert pixels[0, 0].sum() == 0


def test_glow_blooms_outside_shape():
    surface = RenderSurface(100, 100)
    surface.set_glow((255, 255, 255), 15)
    surface.fill_rect((40, 40, 8, 8), (255, 255, 255))
    surface.clear_glow()
    before = surface.to_array()
    assert before[44, 52].sum() == 0

    frame = surface.present()
    assert frame is surface.surface
    after = surface.to_array()
    assert after[44, 52].sum() > 0, "Glow should spill past the rect"
    assert after[5, 5].sum() == 0, "Glow should stay local"

    # The glow layer is consumed by present()
    surface.clear()
    surface.present()
    assert surface.to_array().sum() == 0


if __name__ == "__main__":
    print("\n=== Testing RenderSurface ===\n")

    test_detached_surface_is_inert()
    test_set_size_attaches_and_detaches()
    test_fill_rect_pixels()
    test_fill_circle_alpha_blends_to_background()
    test_blit_cells_mask_and_gap()
    test_blit_cells_clips_to_surface()
    test_glow_blooms_outside_shape()

    print("\n✓ All tests passed!\n")
