"""
Langton's Ant - Turning-Rule Agent

Each tick every ant:
  1. reads the cell under it
  2. turns according to the rule for that state ("R" or "L")
  3. flips the cell
  4. steps one cell forward, wrapping at the edges

With the classic rules ("R", "L") an ant on an off cell turns right and an
ant on an on cell turns left.

Between ticks the ant is drawn gliding along a quarter circle inside the
cell it just left, from the edge it entered through towards the edge it
turned to, so motion looks continuous even at low speeds.
"""

import logging
import math

import numpy as np

from .actors import ArcPath, GridActor, edge_angle
from .engine_base import SimulationEngine
from .presets import ACTOR_DEFAULTS, TERMITE_DEFAULTS

logger = logging.getLogger(__name__)

DEFAULT_RULES = ("R", "L")


class LangtonSimulation(SimulationEngine):

    sim_id = "langton"
    sim_label = "Langton's Ant"

    def __init__(self, surface=None, rules=DEFAULT_RULES, **kwargs):
        super().__init__(surface, **kwargs)
        self.grid = self.create_grid(self.rows, self.cols, False)
        self.ants = []
        self.rules = tuple(rules)
        self.state_manager.register_serializer(self._capture, self._restore)

    @staticmethod
    def _capture(sim):
        return {
            "grid": sim.grid.copy(),
            "ants": [ant.to_dict() for ant in sim.ants],
        }

    @staticmethod
    def _restore(sim, state):
        old = state.get("grid")
        if old is not None:
            sim.init_grid()
            r = min(old.shape[0], sim.rows)
            c = min(old.shape[1], sim.cols)
            sim.grid[:r, :c] = old[:r, :c]
        ants = state.get("ants")
        if ants is not None:
            sim.ants = []
            for data in ants:
                ant = GridActor.from_dict(data)
                ant.col = max(0, min(ant.col, sim.cols - 1))
                ant.row = max(0, min(ant.row, sim.rows - 1))
                sim.ants.append(ant)
        sim.cell_count = sim.count_live_cells(sim.grid)

    # --- Data ---

    def init_grid(self):
        self.grid = self.create_grid(self.rows, self.cols, False)

    def reset_ants(self):
        self.ants = [GridActor(self.cols // 2, self.rows // 2, 0)]

    def init_data(self):
        self.init_grid()
        self.reset_ants()

    def _random_ant(self):
        return GridActor(np.random.randint(self.cols), np.random.randint(self.rows),
                         np.random.randint(4))

    # --- Lifecycle ---

    def reset(self):
        super().reset()
        self.init_data()

    def clear(self):
        # Ants stay where they are
        super().clear()
        self.init_grid()

    def resize(self, width=None, height=None):
        super().resize(width, height)
        self.init_data()

    def cell_centre(self, col, row):
        return (self.grid_offset_x + col * self.cell_size + self.cell_size / 2,
                self.grid_offset_y + row * self.cell_size + self.cell_size / 2)

    def _step_ant(self, ant):
        state = bool(self.grid[ant.row, ant.col])
        turn_right = self.rules[1 if state else 0] == "R"

        # Quarter arc from the entry edge towards the exit edge
        cx, cy = self.cell_centre(ant.col, ant.row)
        start = edge_angle((ant.direction + 2) % 4)
        sweep = -math.pi / 2 if turn_right else math.pi / 2
        ant.render_path = ArcPath(cx, cy, self.cell_size / 2, start, sweep)

        step = max(1, TERMITE_DEFAULTS["move_speed"])
        approx_length = math.pi * ant.render_path.radius * 0.5
        samples = max(2, round(approx_length / step))
        for sx, sy in ant.render_path.samples(samples):
            self.update_actor_trail(ant, sx, sy)

        self.grid[ant.row, ant.col] = not state
        ant.turn(turn_right)
        ant.step(self.cols, self.rows)

    def update(self):
        self.ledger.decay(self.fade_decrement)
        self.generation += 1
        for ant in list(self.ants):
            self.run_guarded(self._step_ant, ant, "LangtonSimulation.update")
        self.ledger.mark_active(self.grid)
        self.cell_count = self.count_live_cells(self.grid)
        super().update()

    def draw_progress(self, now):
        """Fraction of the current arc covered at time now (1 when paused)."""
        if not self.is_running:
            return 1.0
        if self.update_interval <= 0:
            return 1.0
        return max(0.0, min(1.0, (now - self.last_update_time) / self.update_interval))

    def ant_pose(self, ant, progress):
        """(x, y, heading) to draw an ant at."""
        if ant.render_path is not None:
            x, y = ant.render_path.point_at(progress)
            return x, y, ant.render_path.heading_at(progress)
        x, y = self.cell_centre(ant.col, ant.row)
        return x, y, edge_angle(ant.direction)

    def draw(self, now=None):
        if now is None:
            now = self.clock()
        self.draw_grid(self.grid)
        progress = self.draw_progress(now)
        for ant in self.ants:
            x, y, heading = self.ant_pose(ant, progress)
            self.draw_actor_trail(ant, 2)
            self.draw_actor(x, y, 3)
            if self.show_direction_indicator:
                self.draw_direction_indicator(x, y, heading)
        return super().draw(now)

    # --- Interaction ---

    def toggle_cell(self, x, y):
        col, row = self.screen_to_grid(x, y)
        if not self.is_valid_grid_position(row, col):
            return
        self.grid[row, col] = not self.grid[row, col]
        self.cell_count = self.count_live_cells(self.grid)
        self.ledger.apply_toggle(row, col, bool(self.grid[row, col]))

    def add_ant(self, x=None, y=None):
        """Add an ant under (x, y), or at a random cell if no position."""
        if x is None or y is None:
            ant = self._random_ant()
        else:
            col, row = self.screen_to_grid(x, y)
            ant = GridActor(max(0, min(self.cols - 1, col)),
                            max(0, min(self.rows - 1, row)),
                            np.random.randint(4))
        self.ants.append(ant)
        return ant

    def add_actor_at(self, x, y):
        return self.add_ant(x, y)

    def set_ant_count(self, count):
        """Grow with random ants or truncate from the end (1..100)."""
        try:
            desired = int(count)
        except (TypeError, ValueError):
            logger.warning("Invalid ant count %r, using 1", count)
            desired = 1
        desired = max(1, min(ACTOR_DEFAULTS["max_actors"], desired))
        if desired > len(self.ants):
            self.ants.extend(self._random_ant()
                             for _ in range(desired - len(self.ants)))
        else:
            del self.ants[desired:]

    def set_rules(self, rules):
        """Swap the turn table, e.g. ("L", "R") for a mirrored ant."""
        rules = tuple(str(r).upper() for r in rules)
        if len(rules) != 2 or any(r not in ("L", "R") for r in rules):
            raise ValueError(f"Rules must be two of 'L'/'R', got {rules!r}")
        self.rules = rules

    def randomize(self, density=None):
        self.init_grid()
        self.cell_count = self.randomize_grid(self.grid, density)
        self.generation = 0
        self.ledger.reset_from(self.grid)

    def set_params(self, ants=None, rules=None, **params):
        if ants is not None:
            self.set_ant_count(ants)
        if rules is not None:
            self.set_rules(rules)
        super().set_params(**params)

    def get_params(self):
        params = super().get_params()
        params["ants"] = len(self.ants)
        params["rules"] = "".join(self.rules)
        return params

    @classmethod
    def get_slider_defs(cls):
        return super().get_slider_defs() + [
            {"key": "ants", "label": "Ants", "section": "AGENTS",
             "min": 1, "max": ACTOR_DEFAULTS["max_actors"], "default": 1,
             "fmt": ".0f"},
        ]
