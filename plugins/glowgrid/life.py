"""
Game of Life - Toroidal B3/S23

Classic Conway rules on a wrap-around grid:
  - a live cell survives with 2 or 3 live neighbours
  - a dead cell is born with exactly 3 live neighbours

Each generation runs the shared fade protocol: decay every recorded
brightness, step the automaton, then set every live cell back to full
brightness, so dying cells fade to black over a few generations.
"""

import numpy as np

from .engine_base import SimulationEngine

BIRTH = frozenset({3})
SURVIVE = frozenset({2, 3})


def count_neighbours_moore(grid):
    """Count Moore neighbourhood (8 neighbours) using np.roll with periodic boundaries."""
    g = grid.astype(np.int8)
    n = np.zeros(g.shape, dtype=np.int8)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dy == 0 and dx == 0:
                continue
            n += np.roll(np.roll(g, dy, axis=0), dx, axis=1)
    return n


def life_step(current, out=None):
    """One B3/S23 generation of a bool grid. Writes into out if given."""
    neighbours = count_neighbours_moore(current)
    born = ~current & np.isin(neighbours, list(BIRTH))
    survives = current & np.isin(neighbours, list(SURVIVE))
    if out is None:
        return born | survives
    np.logical_or(born, survives, out=out)
    return out


class LifeSimulation(SimulationEngine):

    sim_id = "conway"
    sim_label = "Game of Life"

    def __init__(self, surface=None, **kwargs):
        super().__init__(surface, **kwargs)
        self.grids = None
        self.state_manager.register_serializer(self._capture, self._restore)

    @staticmethod
    def _capture(sim):
        if sim.grids is None:
            return {}
        return {"grids": {k: v.copy() for k, v in sim.grids.items()}}

    @staticmethod
    def _restore(sim, state):
        grids = state.get("grids")
        if grids is None:
            return
        sim.init_grids()
        for key in ("current", "next"):
            old = grids[key]
            r = min(old.shape[0], sim.rows)
            c = min(old.shape[1], sim.cols)
            sim.grids[key][:r, :c] = old[:r, :c]
        sim.cell_count = sim.count_live_cells(sim.grids["current"])

    def init_grids(self):
        self.grids = self.create_grids(self.rows, self.cols, False)

    def init_data(self):
        self.init_grids()

    @property
    def grid(self):
        """The visible (current) buffer."""
        return self.grids["current"]

    def reset(self):
        super().reset()
        self.init_data()

    def clear(self):
        super().clear()
        self.init_grids()

    def resize(self, width=None, height=None):
        super().resize(width, height)
        self.init_data()

    def update(self):
        # 1. fade every recorded cell
        self.ledger.decay(self.fade_decrement)
        self.generation += 1
        # 2. B3/S23 into the back buffer, then swap
        life_step(self.grids["current"], out=self.grids["next"])
        self.swap_grids(self.grids)
        # 3. live cells back to full brightness
        self.ledger.mark_active(self.grids["current"])
        self.cell_count = self.count_live_cells(self.grids["current"])
        super().update()

    def draw(self, now=None):
        self.draw_grid(self.grids["current"])
        return super().draw(now)

    def toggle_cell(self, x, y):
        col, row = self.screen_to_grid(x, y)
        if not self.is_valid_grid_position(row, col):
            return
        grid = self.grids["current"]
        grid[row, col] = not grid[row, col]
        self.cell_count = self.count_live_cells(grid)
        self.ledger.apply_toggle(row, col, bool(grid[row, col]))

    def randomize(self, density=None):
        self.init_grids()
        self.cell_count = self.randomize_grid(self.grids["current"], density)
        self.generation = 0
        self.ledger.reset_from(self.grids["current"])

    def set_cell(self, row, col, alive=True):
        """Set one cell directly (patterns, tests). Returns False if off-grid."""
        if not self.is_valid_grid_position(row, col):
            return False
        self.grids["current"][row, col] = bool(alive)
        self.cell_count = self.count_live_cells(self.grids["current"])
        if alive:
            self.ledger.mark_active(self.grids["current"])
        return True
