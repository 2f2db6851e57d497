"""
Termites - Stigmergic Chip Sorting

Wood chips lie on the grid; termites wander the pixel surface:
  - a termite carrying a chip drops it on the first empty cell it reaches
  - an empty-handed termite picks up the chip under it
  - every tick each termite may veer off by up to +/-45 degrees

No termite knows about any other. Piles emerge purely from chips being
moved around (stigmergy).
"""

import logging
import math

import numpy as np

from .actors import ContinuousActor
from .engine_base import SimulationEngine
from .presets import ACTOR_DEFAULTS, SLIDERS, TERMITE_DEFAULTS

logger = logging.getLogger(__name__)


class TermiteSimulation(SimulationEngine):

    sim_id = "termite"
    sim_label = "Termites"

    def __init__(self, surface=None, **kwargs):
        super().__init__(surface, **kwargs)
        self.termites = []
        self.grid = self.create_grid(self.rows, self.cols, False)
        self.max_termites = TERMITE_DEFAULTS["max_termites_default"]
        self.move_speed = TERMITE_DEFAULTS["move_speed"]
        self.turn_probability = TERMITE_DEFAULTS["random_turn_probability"]
        self.state_manager.register_serializer(self._capture, self._restore)

    @staticmethod
    def _capture(sim):
        return {
            "grid": sim.grid.copy(),
            "termites": [t.to_dict() for t in sim.termites],
        }

    @staticmethod
    def _restore(sim, state):
        old = state.get("grid")
        if old is not None:
            sim.grid = sim.create_grid(sim.rows, sim.cols, False)
            r = min(old.shape[0], sim.rows)
            c = min(old.shape[1], sim.cols)
            sim.grid[:r, :c] = old[:r, :c]
        termites = state.get("termites")
        if termites is not None:
            w, h = sim.surface.width, sim.surface.height
            sim.termites = []
            for data in termites:
                t = ContinuousActor.from_dict(data)
                t.x = max(0.0, min(t.x, w))
                t.y = max(0.0, min(t.y, h))
                sim.termites.append(t)
        sim.cell_count = sim.count_live_cells(sim.grid)

    # --- Data ---

    def _random_termite(self):
        return ContinuousActor(
            np.random.random() * self.surface.width,
            np.random.random() * self.surface.height,
            angle=np.random.random() * math.pi * 2,
        )

    def init_termites(self):
        self.termites = [self._random_termite() for _ in range(self.max_termites)]

    def init_active_grid(self):
        self.grid = self.create_grid(self.rows, self.cols, False)
        self.randomize_grid(self.grid)
        self.ledger.reset_from(self.grid)
        self.cell_count = self.count_live_cells(self.grid)

    def init_data(self):
        self.init_termites()
        self.init_active_grid()

    # --- Lifecycle ---

    def reset(self):
        super().reset()
        self.init_data()

    def clear(self):
        super().clear()
        self.grid = self.create_grid(self.rows, self.cols, False)
        for termite in self.termites:
            termite.is_carrying = False

    def resize(self, width=None, height=None):
        super().resize(width, height)
        self.init_data()

    def cell_under(self, x, y):
        """(row, col) under a pixel position, clamped onto the grid."""
        col = math.floor((x - self.grid_offset_x) / self.cell_size)
        row = math.floor((y - self.grid_offset_y) / self.cell_size)
        col = max(0, min(self.cols - 1, col))
        row = max(0, min(self.rows - 1, row))
        return row, col

    def _step_termite(self, termite):
        self.update_actor_trail(termite, termite.x, termite.y)
        termite.advance(self.move_speed)
        termite.wrap(self.surface.width, self.surface.height)

        row, col = self.cell_under(termite.x, termite.y)
        has_chip = self.grid[row, col]
        if termite.is_carrying:
            if not has_chip:
                self.grid[row, col] = True
                termite.is_carrying = False
        elif has_chip:
            self.grid[row, col] = False
            termite.is_carrying = True

        if np.random.random() < self.turn_probability:
            termite.angle += (np.random.random() - 0.5) * math.pi / 2

    def update(self):
        self.ledger.decay(self.fade_decrement)
        self.generation += 1
        for termite in list(self.termites):
            self.run_guarded(self._step_termite, termite, "TermiteSimulation.update")
        self.ledger.mark_active(self.grid)
        self.cell_count = self.count_live_cells(self.grid)
        super().update()

    def draw(self, now=None):
        self.draw_grid(self.grid)
        for termite in self.termites:
            self.draw_actor_trail(termite, 2)
            self.draw_actor(termite.x, termite.y, 3)
            if self.show_direction_indicator:
                self.draw_direction_indicator(termite.x, termite.y, termite.angle)
        return super().draw(now)

    # --- Interaction ---

    def toggle_cell(self, x, y):
        col, row = self.screen_to_grid(x, y)
        if not self.is_valid_grid_position(row, col):
            return
        self.grid[row, col] = not self.grid[row, col]
        self.cell_count = self.count_live_cells(self.grid)
        self.ledger.apply_toggle(row, col, bool(self.grid[row, col]))

    def set_termite_count(self, count):
        """Replace the termite list with count fresh termites (1..100)."""
        try:
            count = int(count)
        except (TypeError, ValueError):
            logger.warning("Invalid termite count %r, using 1", count)
            count = 1
        self.max_termites = max(1, min(ACTOR_DEFAULTS["max_actors"], count))
        self.init_termites()

    def add_actor_at(self, x, y):
        """Add one termite at a pointer position (clamped to the surface)."""
        termite = ContinuousActor(
            max(0.0, min(self.surface.width, x)),
            max(0.0, min(self.surface.height, y)),
            angle=np.random.random() * math.pi * 2,
        )
        self.termites.append(termite)
        return termite

    def randomize(self, density=None):
        self.grid = self.create_grid(self.rows, self.cols, False)
        self.randomize_grid(self.grid, density)
        self.cell_count = self.count_live_cells(self.grid)
        for termite in self.termites:
            termite.is_carrying = False
        self.ledger.reset_from(self.grid)

    def set_params(self, termites=None, **params):
        if termites is not None:
            self.set_termite_count(termites)
        super().set_params(**params)

    def get_params(self):
        params = super().get_params()
        params["termites"] = len(self.termites)
        return params

    @classmethod
    def get_slider_defs(cls):
        return super().get_slider_defs() + [
            {"key": "termites", "label": "Termites", "section": "AGENTS",
             "min": SLIDERS["termites"]["min"], "max": SLIDERS["termites"]["max"],
             "default": SLIDERS["termites"]["default"], "fmt": ".0f"},
        ]
