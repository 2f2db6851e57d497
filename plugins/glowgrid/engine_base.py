"""
Abstract Base Class for Simulations

Every simulation (Game of Life, termites, Langton's ant, reaction-diffusion)
implements this interface so the viewer and registry can drive any of them
interchangeably. The base owns:

  - the render surface and the grid geometry derived from its size
  - the update/draw clock (speed, FPS window, animate())
  - the brightness ledger behind the fade-to-black effect
  - lifecycle hooks, observable state and events
  - shared grid, pointer and drawing utilities

Subclasses implement update(), draw() and toggle_cell(), call the base
versions at the end so hooks fire, and register a state serializer if
they own data that must survive resize_preserve_state().
"""

import logging
import math
from abc import ABC, abstractmethod

import numpy as np

from .brightness import BrightnessLedger
from .colour_field import ColourField, now_ms
from .colours import WHITE, apply_brightness as scale_colour
from .errors import error_handler as _default_error_handler
from .lifecycle import EventEmitter, LifecycleHooks, StateManager
from .presets import ACTOR_DEFAULTS, SIMULATION_DEFAULTS, SLIDERS
from .scheduler import AnimationScheduler, perf_ms
from .surface import RenderSurface

logger = logging.getLogger(__name__)


class SimulationEngine(ABC):
    """Base class for grid simulations."""

    sim_id = "base"    # e.g. "conway", "termite"
    sim_label = ""     # e.g. "Game of Life"

    def __init__(self, surface=None, error_handler=None, clock=None):
        self.surface = surface if surface is not None else RenderSurface()
        self.error_handler = error_handler or _default_error_handler
        self.clock = clock or perf_ms

        self.is_running = False
        self.generation = 0
        self.cell_count = 0
        self.fps = 0
        self.fps_initialized = False
        self.frame_count = 0
        self.last_fps_time = 0.0
        self.fps_update_interval = SIMULATION_DEFAULTS["fps_window"]

        self.brightness = 1.0
        self.fade_out_cycles = SIMULATION_DEFAULTS["fade_out_cycles_default"]
        self.fade_decrement = SIMULATION_DEFAULTS["fade_decrement_default"]
        self.ledger = BrightnessLedger()

        self.last_update_time = 0.0
        self.set_speed(SIMULATION_DEFAULTS["speed_default"])

        self.render_cache = {}
        self.colour_cache = {}
        self.max_cache_size = 1000

        self.trail_length = ACTOR_DEFAULTS["trail_length"]
        self.trail_enabled = ACTOR_DEFAULTS["trail_enabled"]
        self.trail_opacity = ACTOR_DEFAULTS["trail_opacity"]

        self.colour_field = ColourField()

        self.cell_size = SIMULATION_DEFAULTS["cell_size_default"]
        self.rows = 1
        self.cols = 1
        self.grid_offset_x = 0
        self.grid_offset_y = 0

        self.show_direction_indicator = True

        self.hooks = LifecycleHooks(self.sim_id, self.error_handler)
        self.state_manager = StateManager(
            self.sim_id,
            {
                "is_running": False,
                "generation": 0,
                "cell_count": 0,
                "brightness": 1.0,
                "trail_length": self.trail_length,
                "trail_enabled": self.trail_enabled,
            },
            self.error_handler,
        )
        self.events = EventEmitter(self.sim_id, self.error_handler)
        self.scheduler = AnimationScheduler(fps=60, clock=self.clock,
                                            error_handler=self.error_handler)

        self.is_dragging = False
        self.drag_start_pos = None
        self.last_drag_pos = None
        self.toggled_cells = set()

    # --- Lifecycle ---

    def init(self, width=None, height=None):
        self.hooks.execute("on_init")
        self.resize(width, height)
        self.reset()
        self._reset_drag()

    def init_data(self):
        """(Re)build variant-owned grids/agents for the current geometry."""

    def resize(self, width=None, height=None):
        """Recompute grid geometry from the surface size.

        Args:
            width, height: New surface size in pixels. Defaults to the
                current surface size. Invalid sizes (<= 0 or above the
                maximum dimension) fall back to 800x600.
        """
        if width is None:
            width = self.surface.width
        if height is None:
            height = self.surface.height
        max_dim = SIMULATION_DEFAULTS["max_dimension"]
        if not (0 < width <= max_dim and 0 < height <= max_dim):
            logger.warning(
                "Surface dimensions %sx%s are invalid, using fallback values",
                width, height,
            )
            width = SIMULATION_DEFAULTS["fallback_width"]
            height = SIMULATION_DEFAULTS["fallback_height"]
        width, height = int(width), int(height)
        self.surface.set_size(width, height)

        target = SIMULATION_DEFAULTS["target_cells"]
        self.cell_size = max(1, min(width, height) // target)
        self.cols = max(1, width // self.cell_size)
        self.rows = max(1, height // self.cell_size)
        self.grid_offset_x = (width - self.cols * self.cell_size) // 2
        self.grid_offset_y = (height - self.rows * self.cell_size) // 2

        self.ledger.resize(self.rows, self.cols)
        self.clear_caches()
        self.hooks.execute("on_resize", width, height)

    def resize_preserve_state(self, width=None, height=None):
        """Resize, keeping whatever state overlaps the new grid."""
        preserved = self.get_state()
        self.resize(width, height)
        self.set_state(preserved)

    def get_state(self):
        state = {
            "generation": self.generation,
            "cell_count": self.cell_count,
            "is_running": self.is_running,
            "trail_length": self.trail_length,
            "trail_enabled": self.trail_enabled,
            "brightness_ledger": self.ledger.copy(),
        }
        state.update(self.state_manager.serialize(self))
        return state

    def set_state(self, state):
        self.generation = state.get("generation", 0)
        self.cell_count = state.get("cell_count", 0)
        self.is_running = state.get("is_running", False)
        self.trail_length = state.get("trail_length") or ACTOR_DEFAULTS["trail_length"]
        self.trail_enabled = state.get("trail_enabled", True)
        ledger = state.get("brightness_ledger")
        if ledger is not None:
            self.ledger.clear()
            self.ledger.transplant(ledger)
        self.state_manager.deserialize(self, state)

    def start(self):
        self.is_running = True
        self.state_manager.set_state(is_running=True)
        self.hooks.execute("on_start")
        self.scheduler.start(self.animate)

    def pause(self):
        self.is_running = False
        self.state_manager.set_state(is_running=False)
        self.hooks.execute("on_pause")
        self.scheduler.stop()

    def reset(self):
        self.generation = 0
        self.cell_count = 0
        self.clear_fade_states()
        self.state_manager.set_state(generation=0, cell_count=0)
        self.hooks.execute("on_reset")

    def clear(self):
        self.generation = 0
        self.cell_count = 0
        self.clear_fade_states()
        self.state_manager.set_state(cell_count=0)
        self.hooks.execute("on_clear")

    def destroy(self):
        self.scheduler.stop()
        self.is_running = False
        self.hooks.execute("on_destroy")
        self.events.events.clear()

    def animate(self, current_time):
        """One host frame: maybe update, always draw."""
        if not self.is_running:
            return
        self.frame_count += 1
        if self.frame_count % self.fps_update_interval == 0:
            now = current_time if current_time > 0 else self.clock()
            if not self.last_fps_time:
                self.last_fps_time = now
                self.fps_initialized = False
            else:
                elapsed = now - self.last_fps_time
                safe_elapsed = elapsed if elapsed > 0 else 1
                self.fps = max(0, int(round(self.fps_update_interval * 1000 / safe_elapsed)))
                self.fps_initialized = True
                self.last_fps_time = now
        if current_time - self.last_update_time >= self.update_interval:
            self.update()
            self.last_update_time = current_time
        self.draw(current_time)

    @abstractmethod
    def update(self):
        """Advance one generation. Subclasses call this last."""
        self.hooks.execute("on_update")

    @abstractmethod
    def draw(self, now=None):
        """Paint the current state. Subclasses call this last.

        Returns:
            The finished pygame.Surface (None if detached)
        """
        self.hooks.execute("on_draw")
        return self.surface.present()

    @abstractmethod
    def toggle_cell(self, x, y):
        """Flip the cell under surface position (x, y)."""

    def randomize(self, density=None):
        logger.warning("randomize() not implemented for %s", self.sim_id)

    def step_n(self, n):
        """Advance n generations without drawing."""
        for _ in range(n):
            self.update()

    def get_stats(self):
        return {
            "generation": self.generation,
            "cell_count": self.cell_count,
            "fps": self.fps if self.fps_initialized else "-",
        }

    # --- Configuration ---

    def set_speed(self, steps_per_second):
        lo = SIMULATION_DEFAULTS["speed_min"]
        hi = SIMULATION_DEFAULTS["speed_max"]
        self.speed = max(lo, min(hi, steps_per_second))
        self.update_interval = 1000 / self.speed

    def set_brightness(self, value):
        self.brightness = max(0.1, min(2.0, value))
        self.colour_cache.clear()

    def set_fade_out_cycles(self, cycles):
        self.fade_out_cycles = max(1, min(20, cycles))

    def set_fade_decrement(self, decrement):
        self.fade_decrement = max(0.01, min(1.0, decrement))

    def set_show_direction_indicator(self, enabled):
        self.show_direction_indicator = bool(enabled)

    def get_show_direction_indicator(self):
        return self.show_direction_indicator

    def set_params(self, speed=None, brightness=None, fade_decrement=None,
                   fade_out_cycles=None, show_direction_indicator=None,
                   trail_enabled=None, trail_length=None, **unknown):
        if speed is not None:
            self.set_speed(speed)
        if brightness is not None:
            self.set_brightness(brightness)
        if fade_decrement is not None:
            self.set_fade_decrement(fade_decrement)
        if fade_out_cycles is not None:
            self.set_fade_out_cycles(fade_out_cycles)
        if show_direction_indicator is not None:
            self.set_show_direction_indicator(show_direction_indicator)
        if trail_enabled is not None:
            self.trail_enabled = bool(trail_enabled)
        if trail_length is not None:
            self.trail_length = max(1, int(trail_length))
        for key in unknown:
            logger.warning("Unknown parameter %r for %s", key, self.sim_id)

    def get_params(self):
        return {
            "speed": self.speed,
            "brightness": self.brightness,
            "fade_decrement": self.fade_decrement,
            "fade_out_cycles": self.fade_out_cycles,
            "show_direction_indicator": self.show_direction_indicator,
            "trail_enabled": self.trail_enabled,
            "trail_length": self.trail_length,
        }

    @classmethod
    def get_slider_defs(cls):
        """Return list of slider definitions for the control panel.

        Each entry is a dict:
            {"key": "speed", "label": "Speed", "section": "TIMING",
             "min": 1, "max": 60, "default": 30, "fmt": ".0f"}
        """
        speed = SLIDERS["speed"]
        brightness = SLIDERS["brightness"]
        return [
            {"key": "speed", "label": "Speed", "section": "TIMING",
             "min": speed["min"], "max": speed["max"],
             "default": speed["default"], "fmt": ".0f"},
            {"key": "brightness", "label": "Brightness", "section": "RENDERING",
             "min": brightness["min"], "max": brightness["max"],
             "default": brightness["default"], "fmt": ".1f"},
            {"key": "fade_decrement", "label": "Fade step", "section": "RENDERING",
             "min": 0.01, "max": 1.0,
             "default": SIMULATION_DEFAULTS["fade_decrement_default"], "fmt": ".2f"},
        ]

    # --- Grid utilities ---

    def create_grid(self, rows, cols, default=False, dtype=bool):
        if not (isinstance(rows, (int, np.integer)) and rows > 0
                and isinstance(cols, (int, np.integer)) and cols > 0):
            logger.warning("Invalid grid dimensions: rows=%s, cols=%s. "
                           "Using minimum size of 1x1.", rows, cols)
            rows = max(1, int(rows or 1))
            cols = max(1, int(cols or 1))
        return np.full((rows, cols), default, dtype=dtype)

    def create_grids(self, rows, cols, default=False):
        return {
            "current": self.create_grid(rows, cols, default),
            "next": self.create_grid(rows, cols, default),
        }

    @staticmethod
    def swap_grids(grids):
        grids["current"], grids["next"] = grids["next"], grids["current"]

    @staticmethod
    def count_live_cells(grid):
        return int(np.count_nonzero(grid))

    @staticmethod
    def count_neighbours(grid, row, col, wrap=True):
        """Active cells among the 8 neighbours of (row, col)."""
        rows, cols = grid.shape
        if wrap:
            r_idx = [(row + dr) % rows for dr in (-1, 0, 1)]
            c_idx = [(col + dc) % cols for dc in (-1, 0, 1)]
            block = grid[np.ix_(r_idx, c_idx)]
        else:
            block = grid[max(0, row - 1):row + 2, max(0, col - 1):col + 2]
        return int(np.count_nonzero(block)) - int(bool(grid[row, col]))

    def randomize_grid(self, grid, density=None):
        """Fill grid in place with independent Bernoulli(density) draws."""
        if density is None:
            density = SIMULATION_DEFAULTS["coverage_default"]
        grid[:] = np.random.random(grid.shape) < density
        return self.count_live_cells(grid)

    def screen_to_grid(self, x, y):
        """Surface position -> (col, row); may be out of range."""
        col = math.floor((x - self.grid_offset_x) / self.cell_size)
        row = math.floor((y - self.grid_offset_y) / self.cell_size)
        return col, row

    def grid_to_screen(self, col, row):
        """Top-left pixel of a cell."""
        return (self.grid_offset_x + col * self.cell_size,
                self.grid_offset_y + row * self.cell_size)

    def is_valid_grid_position(self, row, col):
        return 0 <= row < self.rows and 0 <= col < self.cols

    # --- Drag-to-toggle ---

    def _reset_drag(self):
        self.is_dragging = False
        self.drag_start_pos = None
        self.last_drag_pos = None
        self.toggled_cells = set()

    def handle_mouse_down(self, x, y):
        self.is_dragging = True
        self.drag_start_pos = (x, y)
        self.last_drag_pos = (x, y)
        self.toggled_cells.clear()
        self.toggle_cell_at_position(x, y)

    def handle_mouse_move(self, x, y):
        if not self.is_dragging:
            return
        lx, ly = self.last_drag_pos
        self.toggle_cells_along_path(lx, ly, x, y)
        self.last_drag_pos = (x, y)

    def handle_mouse_up(self):
        """Ends the stroke. Also used for the pointer leaving the surface."""
        if not self.is_dragging:
            return
        self._reset_drag()

    def toggle_cell_at_position(self, x, y):
        """Toggle the cell under (x, y) once per stroke.

        Returns:
            True if a cell was toggled
        """
        col, row = self.screen_to_grid(x, y)
        if not self.is_valid_grid_position(row, col):
            return False
        if (row, col) in self.toggled_cells:
            return False
        self.toggle_cell(x, y)
        self.toggled_cells.add((row, col))
        self.events.emit("cell_toggled", row, col)
        return True

    def toggle_cells_along_path(self, start_x, start_y, end_x, end_y):
        c0, r0 = self.screen_to_grid(start_x, start_y)
        c1, r1 = self.screen_to_grid(end_x, end_y)
        for row, col in self.get_line_points(c0, r0, c1, r1):
            if self.is_valid_grid_position(row, col):
                x, y = self.grid_to_screen(col, row)
                self.toggle_cell_at_position(x, y)

    @staticmethod
    def get_line_points(col0, row0, col1, row1):
        """Bresenham line between two cells, inclusive. Returns (row, col)s."""
        points = []
        dx = abs(col1 - col0)
        dy = abs(row1 - row0)
        sx = 1 if col0 < col1 else -1
        sy = 1 if row0 < row1 else -1
        err = dx - dy
        col, row = col0, row0
        while True:
            points.append((row, col))
            if col == col1 and row == row1:
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                col += sx
            if e2 < dx:
                err += dx
                row += sy
        return points

    # --- Agents ---

    def update_actor_trail(self, actor, x, y):
        """Age the actor's trail and append (x, y), keeping trail_length."""
        if not self.trail_enabled:
            return
        trail = [(px, py, age + 1) for px, py, age in actor.trail]
        trail.append((x, y, 0))
        if len(trail) > self.trail_length:
            trail = trail[-self.trail_length:]
        actor.trail = trail

    # --- Brightness ---

    def get_cell_brightness(self, row, col):
        """Fade brightness of one cell; 0 for cells never recorded."""
        return self.ledger.get(row, col)

    def clear_fade_states(self):
        self.ledger.clear()

    # --- Colour ---

    def clear_caches(self):
        self.render_cache.clear()
        self.colour_cache.clear()

    def colour_time(self):
        """Colour field time: live while running, frozen while paused."""
        return now_ms() if self.is_running else None

    def gradient_colour(self, x, y, saturation=80, lightness=50):
        return self.colour_field.colour_at_position(
            x, y, self.surface.width, self.surface.height,
            saturation, lightness, self.colour_time(),
        )

    def apply_brightness(self, colour):
        """Scale a colour by the global brightness (cached)."""
        key = (colour if isinstance(colour, str) else tuple(colour), self.brightness)
        cached = self.colour_cache.get(key)
        if cached is not None:
            return cached
        result = scale_colour(colour, self.brightness)
        self.colour_cache[key] = result
        if len(self.colour_cache) > self.max_cache_size:
            self.colour_cache.pop(next(iter(self.colour_cache)))
        return result

    # --- Drawing ---

    def set_glow_effect(self, colour, intensity=15):
        self.surface.set_glow(colour, intensity)

    def clear_glow_effect(self):
        self.surface.clear_glow()

    def cell_brightness_array(self, grid):
        """Per-cell render brightness; active cells never render dark."""
        values = self.ledger.as_array(grid)
        active = np.asarray(grid, dtype=bool)
        values[active & (values == 0)] = 1.0
        return values

    def draw_cell(self, x, y, colour=None, is_active=None):
        col, row = self.screen_to_grid(x, y)
        cell_brightness = self.ledger.get(row, col)
        if cell_brightness == 0 and is_active is not False:
            cell_brightness = 1.0
        if cell_brightness == 0:
            return
        if colour is None:
            colour = self.gradient_colour(x, y)
        colour = self.apply_brightness(colour)
        if cell_brightness < 1:
            colour = tuple(int(round(c * cell_brightness)) for c in colour)
        self.set_glow_effect(colour, 20 * self.brightness * cell_brightness)
        self.surface.fill_rect((x, y, self.cell_size - 1, self.cell_size - 1), colour)
        self.clear_glow_effect()

    def draw_grid(self, grid, cell_renderer=None):
        """Clear the surface and paint every cell of grid.

        Args:
            grid: (rows, cols) bool array
            cell_renderer: Optional fn(x, y, row, col, is_active) replacing
                the default faded gradient cell
        """
        self.surface.clear()
        if cell_renderer is not None:
            for row in range(grid.shape[0]):
                for col in range(grid.shape[1]):
                    x, y = self.grid_to_screen(col, row)
                    cell_renderer(x, y, row, col, bool(grid[row, col]))
            return

        values = self.cell_brightness_array(grid)
        lit = values > 0
        if not lit.any():
            return
        rows, cols = values.shape
        xs = self.grid_offset_x + np.arange(cols) * self.cell_size
        ys = self.grid_offset_y + np.arange(rows) * self.cell_size
        base = self.colour_field.colours_for(
            xs[np.newaxis, :], ys[:, np.newaxis],
            self.surface.width, self.surface.height,
            80, 50, self.colour_time(),
        )
        scale = self.brightness * values
        colours = np.clip(np.round(base * scale[..., np.newaxis]), 0, 255).astype(np.uint8)
        glow = 20 * self.brightness * values
        self.surface.blit_cells(colours, (self.grid_offset_x, self.grid_offset_y),
                                self.cell_size, lit=lit, glow=glow)

    def draw_actor(self, x, y, radius, colour=None):
        if colour is None:
            colour = self.gradient_colour(x, y, 90, 60)
        colour = self.apply_brightness(colour)
        self.set_glow_effect(colour, 25 * self.brightness)
        self.surface.fill_circle((x, y), radius, colour)
        self.clear_glow_effect()

    def draw_actor_trail(self, actor, radius=2):
        """Dots along the trail, fading with age."""
        if not self.trail_enabled or not actor.trail:
            return
        for x, y, age in actor.trail:
            alpha = (1 - age / self.trail_length) * self.trail_opacity
            if alpha <= 0:
                continue
            colour = self.apply_brightness(self.gradient_colour(x, y, 90, 60))
            self.surface.fill_circle((x, y), radius, colour, alpha=alpha)

    def draw_direction_indicator(self, x, y, angle, length=8, colour=WHITE,
                                 line_width=1):
        end = (x + math.cos(angle) * length, y + math.sin(angle) * length)
        self.surface.stroke_line((x, y), end, colour, line_width)

    def run_guarded(self, fn, actor, scope):
        """Run one agent's step; report failures and keep going."""
        try:
            fn(actor)
        except Exception as exc:
            self.error_handler.handle(
                "actor_update", simulation_id=self.sim_id, scope=scope,
                message="Agent update failed", error=exc,
            )

    @property
    def stats(self):
        return self.get_stats()
