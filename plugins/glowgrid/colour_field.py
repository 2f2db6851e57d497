"""
Four-Corner Rotating Colour Field

Every surface position gets a hue blended from four corner hues, each
rotating around the colour wheel at its own period:
  - Top left:     45 deg, one turn per 60s
  - Top right:   135 deg, one turn per 75s
  - Bottom right: 225 deg, one turn per 90s
  - Bottom left: 315 deg, one turn per 105s

Hues are blended as unit vectors on the hue circle, not as angles, so a
350 deg corner next to a 10 deg corner blends through 0 deg instead of
sweeping the long way round through 180 deg.
"""

import math
import time

import numpy as np


# Corner definitions: start hue (degrees), rotation period (ms)
CORNER_DEFS = {
    "top_left":     {"start_hue": 45,  "period": 60000},
    "top_right":    {"start_hue": 135, "period": 75000},
    "bottom_right": {"start_hue": 225, "period": 90000},
    "bottom_left":  {"start_hue": 315, "period": 105000},
}

CORNER_ORDER = ("top_left", "top_right", "bottom_right", "bottom_left")


def now_ms():
    """Wall clock in milliseconds."""
    return time.time() * 1000.0


def hue_to_vector(hue):
    """Unit vector (x, y) for a hue in degrees."""
    angle = math.radians(hue)
    return (math.cos(angle), math.sin(angle))


def vector_to_hue(x, y):
    """Hue in [0, 360) for a (not necessarily unit) vector."""
    angle = math.atan2(y, x)
    if angle < 0:
        angle += 2 * math.pi
    return math.degrees(angle) % 360.0


def hsl_to_rgb(h, s, l):
    """Convert HSL to an RGB tuple. h in degrees, s/l in percent [0, 100]."""
    h = (h % 360) / 360.0
    s /= 100.0
    l /= 100.0
    c = (1 - abs(2 * l - 1)) * s
    x = c * (1 - abs((h * 6) % 2 - 1))
    m = l - c / 2
    if h < 1 / 6:
        r, g, b = c, x, 0.0
    elif h < 2 / 6:
        r, g, b = x, c, 0.0
    elif h < 3 / 6:
        r, g, b = 0.0, c, x
    elif h < 4 / 6:
        r, g, b = 0.0, x, c
    elif h < 5 / 6:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    return (int(round((r + m) * 255)),
            int(round((g + m) * 255)),
            int(round((b + m) * 255)))


def hsl_to_rgb_array(h, s, l):
    """Vectorised hsl_to_rgb. h is an array of degrees, s/l in percent.

    Returns:
        (..., 3) uint8 array
    """
    h = (np.asarray(h, dtype=np.float64) % 360.0) / 360.0
    s = s / 100.0
    l = l / 100.0
    c = (1 - abs(2 * l - 1)) * s
    x = c * (1 - np.abs((h * 6) % 2 - 1))
    m = l - c / 2
    sector = np.clip((h * 6).astype(np.int32), 0, 5)
    zero = np.zeros_like(h)
    cc = np.full_like(h, c)
    # Per sector (r, g, b) choices, same ordering as hsl_to_rgb
    r = np.choose(sector, [cc, x, zero, zero, x, cc])
    g = np.choose(sector, [x, cc, cc, x, zero, zero])
    b = np.choose(sector, [zero, zero, x, cc, cc, x])
    rgb = np.stack([r, g, b], axis=-1) + m
    return np.clip(np.round(rgb * 255), 0, 255).astype(np.uint8)


class ColourField:
    """Spatial + temporal colour function driven by four rotating corners."""

    def __init__(self, corners=None, start_time=None):
        """
        Args:
            corners: Optional mapping of corner name -> {"start_hue", "period"}
                overriding CORNER_DEFS entries
            start_time: Reference time in ms; elapsed time is measured from here
        """
        self.corners = {k: dict(v) for k, v in CORNER_DEFS.items()}
        if corners:
            for name, cfg in corners.items():
                self.corners[name].update(cfg)
        self.start_time = now_ms() if start_time is None else start_time

        # Frame cache: corner vectors for the last time value seen
        self._cache_time = object()
        self._cache_vectors = None

    def corner_hue(self, corner, current_time=None):
        """Current hue of one corner. None (or 0) means static start hue."""
        cfg = self.corners[corner]
        if not current_time:
            return float(cfg["start_hue"])
        elapsed = current_time - self.start_time
        return (cfg["start_hue"] + (elapsed / cfg["period"]) * 360.0) % 360.0

    def _corner_vectors(self, current_time):
        if self._cache_time == current_time and self._cache_vectors is not None:
            return self._cache_vectors
        vectors = {name: hue_to_vector(self.corner_hue(name, current_time))
                   for name in CORNER_ORDER}
        self._cache_time = current_time
        self._cache_vectors = vectors
        return vectors

    def bilinear_hue(self, norm_x, norm_y, current_time=None):
        """Hue at normalised (x, y) in [0, 1]^2."""
        v = self._corner_vectors(current_time)
        tl, tr = v["top_left"], v["top_right"]
        br, bl = v["bottom_right"], v["bottom_left"]
        top_x = tl[0] + (tr[0] - tl[0]) * norm_x
        top_y = tl[1] + (tr[1] - tl[1]) * norm_x
        bot_x = bl[0] + (br[0] - bl[0]) * norm_x
        bot_y = bl[1] + (br[1] - bl[1]) * norm_x
        fx = top_x + (bot_x - top_x) * norm_y
        fy = top_y + (bot_y - top_y) * norm_y
        return vector_to_hue(fx, fy)

    def hue_at_position(self, x, y, width, height, current_time=None):
        """Hue for a surface position. Positions are clamped to the surface."""
        if width <= 0 or height <= 0:
            return self.bilinear_hue(0.0, 0.0, current_time)
        norm_x = max(0.0, min(x, width)) / width
        norm_y = max(0.0, min(y, height)) / height
        return self.bilinear_hue(norm_x, norm_y, current_time)

    def colour_at_position(self, x, y, width, height, saturation=80,
                           lightness=50, current_time=None):
        """RGB tuple for a surface position."""
        hue = self.hue_at_position(x, y, width, height, current_time)
        return hsl_to_rgb(hue, saturation, lightness)

    def hues_for(self, xs, ys, width, height, current_time=None):
        """Vectorised hue_at_position over broadcastable xs/ys arrays."""
        width = max(width, 1)
        height = max(height, 1)
        nx = np.clip(np.asarray(xs, dtype=np.float64), 0, width) / width
        ny = np.clip(np.asarray(ys, dtype=np.float64), 0, height) / height
        v = self._corner_vectors(current_time)
        tl, tr = v["top_left"], v["top_right"]
        br, bl = v["bottom_right"], v["bottom_left"]
        top_x = tl[0] + (tr[0] - tl[0]) * nx
        top_y = tl[1] + (tr[1] - tl[1]) * nx
        bot_x = bl[0] + (br[0] - bl[0]) * nx
        bot_y = bl[1] + (br[1] - bl[1]) * nx
        fx = top_x + (bot_x - top_x) * ny
        fy = top_y + (bot_y - top_y) * ny
        return np.degrees(np.arctan2(fy, fx)) % 360.0

    def colours_for(self, xs, ys, width, height, saturation=80, lightness=50,
                    current_time=None):
        """Vectorised colour_at_position. Returns (..., 3) uint8."""
        hues = self.hues_for(xs, ys, width, height, current_time)
        return hsl_to_rgb_array(hues, saturation, lightness)
