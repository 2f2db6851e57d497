"""
Gray-Scott Reaction-Diffusion

Two chemical species (U, V) react and diffuse on a toroidal grid:
  U + 2V -> 3V  (autocatalytic reaction)
  U is continuously fed in, V is continuously removed.

Equations:
  dU/dt = Du * laplacian(U) - U*V^2 + F*(1-U)
  dV/dt = Dv * laplacian(V) + U*V^2 - (F+k)*V

One explicit Euler step (dt = 1) per generation, both fields clamped to
[0, 1]. Cells with V above 0.5 count as "live" for the stats.

References:
  Pearson, "Complex Patterns in a Simple System" (1993)
"""

import logging

import numpy as np

from .engine_base import SimulationEngine

logger = logging.getLogger(__name__)

LIVE_THRESHOLD = 0.5
INJECT_RADIUS = 2


class ReactionDiffusion(SimulationEngine):

    sim_id = "reaction"
    sim_label = "Reaction-Diffusion"

    def __init__(self, surface=None, feed=0.06, kill=0.062, Du=0.16, Dv=0.08,
                 dt=1.0, **kwargs):
        super().__init__(surface, **kwargs)
        self.feed = feed
        self.kill = kill
        self.Du = Du
        self.Dv = Dv
        self.dt = dt
        self.U = None
        self.V = None
        self._alloc(self.rows, self.cols)
        self.state_manager.register_serializer(self._capture, self._restore)

    @staticmethod
    def _capture(sim):
        return {"U": sim.U.copy(), "V": sim.V.copy()}

    @staticmethod
    def _restore(sim, state):
        old_u = state.get("U")
        old_v = state.get("V")
        if old_u is None or old_v is None:
            return
        sim.init_fields()
        r = min(old_u.shape[0], sim.rows)
        c = min(old_u.shape[1], sim.cols)
        sim.U[:r, :c] = old_u[:r, :c]
        sim.V[:r, :c] = old_v[:r, :c]
        sim.cell_count = sim.count_live()

    # --- Fields ---

    def _alloc(self, rows, cols):
        self.U = np.ones((rows, cols), dtype=np.float32)
        self.V = np.zeros((rows, cols), dtype=np.float32)
        # Work buffers reused every step
        self._padded = np.zeros((rows + 2, cols + 2), dtype=np.float32)
        self._lap_U = np.empty((rows, cols), dtype=np.float32)
        self._lap_V = np.empty((rows, cols), dtype=np.float32)
        self._uvv = np.empty((rows, cols), dtype=np.float32)
        self._tmp = np.empty((rows, cols), dtype=np.float32)

    def init_fields(self):
        self._alloc(self.rows, self.cols)

    def seed_centre(self):
        """Small V square in the middle of an otherwise pure-U field."""
        cy, cx = self.rows // 2, self.cols // 2
        radius = max(2, int(min(self.rows, self.cols) * 0.02))
        rows = np.arange(cy - radius, cy + radius + 1) % self.rows
        cols = np.arange(cx - radius, cx + radius + 1) % self.cols
        self.U[np.ix_(rows, cols)] = 0.0
        self.V[np.ix_(rows, cols)] = 1.0

    def init_data(self):
        self.init_fields()
        self.seed_centre()
        self.cell_count = self.count_live()

    def count_live(self):
        return int(np.count_nonzero(self.V > LIVE_THRESHOLD))

    @property
    def grid(self):
        """Bool view of the live cells (V above threshold)."""
        return self.V > LIVE_THRESHOLD

    # --- Lifecycle ---

    def reset(self):
        super().reset()
        self.init_data()

    def clear(self):
        super().clear()
        self.init_fields()

    def resize(self, width=None, height=None):
        # No reseed here; resize_preserve_state() carries the fields over
        super().resize(width, height)
        if self.U is None or self.U.shape != (self.rows, self.cols):
            self.init_fields()

    def _laplacian(self, field, out):
        """Fast 9-point laplacian into pre-allocated output buffer.

        Uses pad+slice (one copy) instead of 8 np.roll calls.
        Weighted 9-point stencil for better isotropy.
        """
        p = self._padded
        p[1:-1, 1:-1] = field
        p[0, 1:-1] = field[-1, :]
        p[-1, 1:-1] = field[0, :]
        p[1:-1, 0] = field[:, -1]
        p[1:-1, -1] = field[:, 0]
        p[0, 0] = field[-1, -1]
        p[0, -1] = field[-1, 0]
        p[-1, 0] = field[0, -1]
        p[-1, -1] = field[0, 0]

        # Cardinal (0.2) + diagonal (0.05) - center (1.0)
        np.add(p[:-2, 1:-1], p[2:, 1:-1], out=out)
        out += p[1:-1, :-2]
        out += p[1:-1, 2:]
        out *= 0.2
        np.add(p[:-2, :-2], p[:-2, 2:], out=self._tmp)
        self._tmp += p[2:, :-2]
        self._tmp += p[2:, 2:]
        self._tmp *= 0.05
        out += self._tmp
        out -= field

    def update(self):
        self.generation += 1
        F = np.float32(self.feed)
        fk = np.float32(self.feed + self.kill)
        dt = np.float32(self.dt)

        # Both laplacians from the same (pre-step) fields
        self._laplacian(self.U, self._lap_U)
        self._laplacian(self.V, self._lap_V)

        np.multiply(self.V, self.V, out=self._uvv)
        self._uvv *= self.U

        # dU = Du*lap_U - uvv + F*(1-U)
        self._lap_U *= np.float32(self.Du)
        self._lap_U -= self._uvv
        np.subtract(1.0, self.U, out=self._tmp)
        self._tmp *= F
        self._lap_U += self._tmp

        # dV = Dv*lap_V + uvv - (F+k)*V
        self._lap_V *= np.float32(self.Dv)
        self._lap_V += self._uvv
        np.multiply(fk, self.V, out=self._tmp)
        self._lap_V -= self._tmp

        self._lap_U *= dt
        self._lap_V *= dt
        self.U += self._lap_U
        self.V += self._lap_V
        np.clip(self.U, 0.0, 1.0, out=self.U)
        np.clip(self.V, 0.0, 1.0, out=self.V)

        self.cell_count = self.count_live()
        super().update()

    def draw(self, now=None):
        """Gradient colour mixed towards black by the local V concentration."""
        self.surface.clear()
        rows, cols = self.V.shape
        xs = self.grid_offset_x + np.arange(cols) * self.cell_size
        ys = self.grid_offset_y + np.arange(rows) * self.cell_size
        base = self.colour_field.colours_for(
            xs[np.newaxis, :], ys[:, np.newaxis],
            self.surface.width, self.surface.height,
            80, 50, self.colour_time(),
        )
        scale = np.clip(self.V, 0.0, 1.0) * self.brightness
        colours = np.clip(np.round(base * scale[..., np.newaxis]), 0, 255).astype(np.uint8)
        self.surface.blit_cells(colours, (self.grid_offset_x, self.grid_offset_y),
                                self.cell_size, lit=self.V > 0)
        return super().draw(now)

    # --- Interaction ---

    def toggle_cell(self, x, y):
        """Inject V (and consume U) in a small square around the cell."""
        col, row = self.screen_to_grid(x, y)
        if not self.is_valid_grid_position(row, col):
            return
        span = np.arange(-INJECT_RADIUS, INJECT_RADIUS + 1)
        rows = (row + span) % self.rows
        cols = (col + span) % self.cols
        self.U[np.ix_(rows, cols)] = 0.0
        self.V[np.ix_(rows, cols)] = 1.0
        self.cell_count = self.count_live()

    def randomize(self, density=0.3):
        if density is None:
            density = 0.3
        self.init_fields()
        spots = np.random.random((self.rows, self.cols)) < density
        self.U[spots] = 0.0
        self.V[spots] = 1.0
        self.generation = 0
        self.cell_count = self.count_live()

    def set_reaction_param(self, name, value):
        """Set "feed" or "kill", clamped to [0, 0.1]."""
        if name == "feed":
            self.feed = max(0.0, min(0.1, value))
        elif name == "kill":
            self.kill = max(0.0, min(0.1, value))
        else:
            logger.warning("Unknown reaction parameter %r", name)

    def set_params(self, feed=None, kill=None, Du=None, Dv=None, **params):
        if feed is not None:
            self.set_reaction_param("feed", feed)
        if kill is not None:
            self.set_reaction_param("kill", kill)
        if Du is not None:
            self.Du = Du
        if Dv is not None:
            self.Dv = Dv
        super().set_params(**params)

    def get_params(self):
        params = super().get_params()
        params.update({
            "feed": self.feed,
            "kill": self.kill,
            "Du": self.Du,
            "Dv": self.Dv,
        })
        return params

    @classmethod
    def get_slider_defs(cls):
        return super().get_slider_defs() + [
            {"key": "feed", "label": "Feed (F)", "section": "REACTION",
             "min": 0.0, "max": 0.1, "default": 0.06, "fmt": ".4f"},
            {"key": "kill", "label": "Kill (k)", "section": "REACTION",
             "min": 0.0, "max": 0.1, "default": 0.062, "fmt": ".4f"},
            {"key": "Du", "label": "Diffuse U", "section": "DIFFUSION",
             "min": 0.05, "max": 0.30, "default": 0.16, "fmt": ".4f"},
            {"key": "Dv", "label": "Diffuse V", "section": "DIFFUSION",
             "min": 0.02, "max": 0.15, "default": 0.08, "fmt": ".4f"},
        ]
