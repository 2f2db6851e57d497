#!/usr/bin/env python3
"""
Tests for the Game of Life simulation and the shared fade protocol.

Verifies:
1. Toroidal neighbour counting
2. B3/S23 birth and survival
3. Faded cells reach exactly 0 and never brighten on their own
4. Cells that were never alive stay dark
5. State survives resize_preserve_state()
"""

import math

import numpy as np

from glowgrid.life import LifeSimulation, count_neighbours_moore, life_step
from glowgrid.surface import RenderSurface


def make_life(width=800, height=600):
    sim = LifeSimulation(RenderSurface(width, height))
    sim.init()
    sim.clear()
    return sim


def test_geometry_from_surface():
    sim = make_life()
    assert sim.cell_size == 6, f"800x600 should give 6px cells, got {sim.cell_size}"
    assert (sim.rows, sim.cols) == (100, 133)
    assert (sim.grid_offset_x, sim.grid_offset_y) == (1, 0)
    assert sim.grid.shape == (100, 133)


def test_toroidal_wrap():
    sim = make_life()
    sim.set_cell(0, 5)
    sim.set_cell(sim.rows - 1, 5)
    grid = sim.grid
    assert sim.count_neighbours(grid, 0, 5) == 1, "Row 0 should see row rows-1"
    assert count_neighbours_moore(grid)[0, 5] == 1
    assert sim.count_neighbours(grid, 0, 5, wrap=False) == 0


def test_birth_and_survival():
    sim = make_life()
    # L-tromino: (11, 11) has exactly 3 live neighbours
    for r, c in ((10, 10), (10, 11), (11, 10)):
        sim.set_cell(r, c)
    # Isolated pair: each cell has 1 neighbour
    sim.set_cell(50, 50)
    sim.set_cell(50, 51)

    sim.update()
    grid = sim.grid
    assert grid[11, 11], "Dead cell with 3 neighbours should be born"
    assert grid[10, 10] and grid[10, 11] and grid[11, 10], "2 neighbours should survive"
    assert not grid[50, 50] and not grid[50, 51], "Cells with 1 neighbour should die"
    assert sim.generation == 1
    assert sim.cell_count == 4


def test_life_step_on_small_torus():
    grid = np.zeros((3, 3), dtype=bool)
    grid[0, :] = True
    nxt = life_step(grid)
    # On a 3x3 torus every cell neighbours every other cell
    assert nxt[1, 1], "Centre has 3 live neighbours"
    assert nxt[0, 0], "Live cell with 2 neighbours survives"


def test_brightness_monotonic_and_reaches_zero():
    for decrement in (0.2, 0.3, 0.07):
        sim = make_life()
        sim.set_fade_decrement(decrement)
        sim.set_cell(20, 20)
        assert sim.ledger.get(20, 20) == 1.0

        limit = math.ceil(1 / decrement)
        values = []
        for _ in range(limit):
            sim.update()
            values.append(sim.ledger.get(20, 20))
        assert all(a >= b for a, b in zip(values, values[1:])), values
        assert values[-1] == 0.0, f"Should be fully dark after {limit} steps: {values}"

        sim.update()
        assert sim.ledger.get(20, 20) == 0.0, "Should stay at 0"


def test_never_active_cells_stay_dark():
    sim = make_life()
    # Blinker far from the probe cell
    for c in (60, 61, 62):
        sim.set_cell(60, c)
    for _ in range(12):
        sim.update()
        assert sim.ledger.get(5, 5) == 0.0
        assert not sim.ledger.is_touched(5, 5), "Untouched cell should never be faded"


def test_active_cells_full_brightness_after_update():
    np.random.seed(3)
    sim = make_life()
    sim.randomize(0.4)
    for _ in range(3):
        sim.update()
        rows, cols = np.nonzero(sim.grid)
        assert np.all(sim.ledger.values[rows, cols] == 1.0)


def test_toggle_keeps_fading_cell_visible():
    sim = make_life()
    x, y = sim.grid_to_screen(7, 3)
    sim.toggle_cell(x, y)
    assert sim.grid[3, 7]
    assert sim.ledger.get(3, 7) == 1.0
    sim.toggle_cell(x, y)
    assert not sim.grid[3, 7]
    assert sim.ledger.get(3, 7) == 1.0, "Turned-off cell starts fading from full"
    assert sim.cell_count == 0


def test_randomize_resets_generation_and_ledger():
    np.random.seed(0)
    sim = make_life()
    sim.update()
    sim.randomize(0.5)
    assert sim.generation == 0
    assert sim.cell_count == int(sim.grid.sum())
    assert 0.4 < sim.cell_count / sim.grid.size < 0.6
    assert np.array_equal(sim.ledger.touched, sim.grid)


def test_resize_preserves_state():
    sim = make_life()
    # 2x2 block is a still life, so it stays put while we step
    for r, c in ((2, 2), (2, 3), (3, 2), (3, 3)):
        sim.set_cell(r, c)
    for _ in range(3):
        sim.update()
    before = sim.get_state()

    sim.resize_preserve_state(600, 600)
    assert sim.cols == 100, "Grid should have shrunk"
    assert sim.generation == before["generation"] == 3
    assert sim.cell_count == before["cell_count"] == 4

    sim.resize_preserve_state(1000, 600)
    assert sim.cols == 166
    assert sim.generation == 3
    assert sim.cell_count == 4
    assert sim.grid[2:4, 2:4].all()


def test_resize_shrinking_below_content_does_not_raise():
    np.random.seed(1)
    sim = make_life()
    sim.randomize(0.5)
    sim.resize_preserve_state(200, 100)
    assert sim.grid.shape == (sim.rows, sim.cols)
    assert sim.cell_count == int(sim.grid.sum())


def test_draw_paints_live_cells():
    sim = make_life()
    sim.set_cell(10, 10)
    frame = sim.draw()
    assert frame.get_size() == (800, 600)
    pixels = sim.surface.to_array()
    x, y = sim.grid_to_screen(10, 10)
    assert pixels[y + 1, x + 1].sum() > 0, "Live cell should be lit"
    assert pixels[500, 700].sum() == 0, "Far away pixels stay black"


if __name__ == "__main__":
    print("\n=== Testing Game of Life ===\n")

    test_geometry_from_surface()
    test_toroidal_wrap()
    test_birth_and_survival()
    test_life_step_on_small_torus()
    test_brightness_monotonic_and_reaches_zero()
    test_never_active_cells_stay_dark()
    test_active_cells_full_brightness_after_update()
    test_toggle_keeps_fading_cell_visible()
    test_randomize_resets_generation_and_ledger()
    test_resize_preserves_state()
    test_resize_shrinking_below_content_does_not_raise()
    test_draw_paints_live_cells()

    print("\n✓ All tests passed!\n")
