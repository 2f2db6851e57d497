"""
Render Surface

Thin drawing context over a pygame.Surface: rectangles, circles, lines,
dense per-cell painting and a glow layer. Glow is accumulated separately
while drawing and bloomed onto the frame in present() with a downsampled
gaussian blur.

A surface created with a zero size is "detached": drawing calls are
no-ops until set_size() gives it real dimensions.

Arrays handed to pygame.surfarray are (x, y, 3), so the glow layer is
kept in that orientation too.
"""

import numpy as np
import pygame
from scipy.ndimage import gaussian_filter

from .colours import BLACK

BACKGROUND = BLACK

# Glow blur (px) that maps to full glow weight
_GLOW_FULL_BLUR = 25.0
_GLOW_INTENSITY = 0.6
_BLOOM_FACTOR = 4


class RenderSurface:

    def __init__(self, width=0, height=0, background=BACKGROUND):
        self.background = background
        self.surface = None
        self._glow = None
        self._glow_colour = None
        self._glow_blur = 0.0
        self._frame_blur = 0.0
        self.set_size(width, height)

    @property
    def width(self):
        return self.surface.get_width() if self.surface is not None else 0

    @property
    def height(self):
        return self.surface.get_height() if self.surface is not None else 0

    @property
    def size(self):
        return (self.width, self.height)

    @property
    def is_attached(self):
        return self.surface is not None

    def set_size(self, width, height):
        """(Re)allocate the backing surface. Non-positive sizes detach it."""
        width, height = int(width or 0), int(height or 0)
        if width <= 0 or height <= 0:
            self.surface = None
            self._glow = None
            return
        if self.surface is not None and self.size == (width, height):
            return
        self.surface = pygame.Surface((width, height), 0, 32)
        self.surface.fill(self.background)
        self._glow = None

    def clear(self, colour=None):
        if self.surface is None:
            return
        self.surface.fill(colour or self.background)
        if self._glow is not None:
            self._glow[:] = 0.0
        self._frame_blur = 0.0

    # --- Glow ---

    def set_glow(self, colour, blur=15):
        self._glow_colour = colour
        self._glow_blur = max(0.0, float(blur))

    def clear_glow(self):
        self._glow_colour = None
        self._glow_blur = 0.0

    def _glow_layer(self):
        if self._glow is None:
            self._glow = np.zeros((self.width, self.height, 3), dtype=np.float32)
        return self._glow

    def _add_glow_box(self, x0, y0, x1, y1):
        if self._glow_colour is None or self._glow_blur <= 0:
            return
        x0, y0 = max(0, int(x0)), max(0, int(y0))
        x1, y1 = min(self.width, int(x1)), min(self.height, int(y1))
        if x1 <= x0 or y1 <= y0:
            return
        weight = min(1.0, self._glow_blur / _GLOW_FULL_BLUR)
        layer = self._glow_layer()
        layer[x0:x1, y0:y1] += np.asarray(self._glow_colour[:3], np.float32) * weight
        self._frame_blur = max(self._frame_blur, self._glow_blur)

    # --- Primitives ---

    def fill_rect(self, rect, colour):
        if self.surface is None:
            return
        x, y, w, h = rect
        if w <= 0 or h <= 0:
            return
        self.surface.fill(colour[:3], pygame.Rect(int(x), int(y), int(w), int(h)))
        self._add_glow_box(x, y, x + w, y + h)

    def fill_circle(self, center, radius, colour, alpha=1.0):
        """Filled circle. alpha < 1 blends toward the background colour."""
        if self.surface is None or radius <= 0:
            return
        if alpha < 1.0:
            a = max(0.0, alpha)
            colour = tuple(int(c * a + b * (1 - a))
                           for c, b in zip(colour[:3], self.background))
        cx, cy = int(round(center[0])), int(round(center[1]))
        pygame.draw.circle(self.surface, colour[:3], (cx, cy), max(1, int(round(radius))))
        self._add_glow_box(cx - radius, cy - radius, cx + radius + 1, cy + radius + 1)

    def stroke_line(self, start, end, colour, width=1):
        if self.surface is None:
            return
        pygame.draw.line(self.surface, colour[:3],
                         (int(round(start[0])), int(round(start[1]))),
                         (int(round(end[0])), int(round(end[1]))),
                         max(1, int(width)))

    def blit_cells(self, colours, origin, cell_size, lit=None, glow=None, gap=1):
        """Paint a whole grid of cells at once.

        Args:
            colours: (rows, cols, 3) uint8 cell colours
            origin: (x, y) pixel position of cell (0, 0)
            cell_size: Pixel size of one cell
            lit: Optional (rows, cols) bool mask of cells to paint
            glow: Optional (rows, cols) glow blur per cell, in px
            gap: Pixels left unpainted on the right/bottom of every cell
        """
        if self.surface is None:
            return
        rows, cols = colours.shape[:2]
        cs = int(cell_size)
        if lit is None:
            lit = np.ones((rows, cols), dtype=bool)

        # (rows, cols) -> (cols*cs, rows*cs) in surfarray orientation
        img = np.repeat(np.repeat(colours.swapaxes(0, 1), cs, axis=0), cs, axis=1)
        mask = np.repeat(np.repeat(lit.T, cs, axis=0), cs, axis=1)
        if gap and cs > gap:
            edge_x = (np.arange(cols * cs) % cs) >= cs - gap
            edge_y = (np.arange(rows * cs) % cs) >= cs - gap
            mask[edge_x, :] = False
            mask[:, edge_y] = False

        ox, oy = int(origin[0]), int(origin[1])
        x0, y0 = max(0, ox), max(0, oy)
        x1 = min(self.width, ox + cols * cs)
        y1 = min(self.height, oy + rows * cs)
        if x1 <= x0 or y1 <= y0:
            return
        sx, sy = x0 - ox, y0 - oy
        img = img[sx:sx + (x1 - x0), sy:sy + (y1 - y0)]
        mask = mask[sx:sx + (x1 - x0), sy:sy + (y1 - y0)]

        pixels = pygame.surfarray.pixels3d(self.surface)
        try:
            region = pixels[x0:x1, y0:y1]
            region[mask] = img[mask]
        finally:
            del pixels

        if glow is not None and np.any(glow > 0):
            weight = np.clip(glow / _GLOW_FULL_BLUR, 0.0, 1.0).T
            weight = np.repeat(np.repeat(weight, cs, axis=0), cs, axis=1)
            weight = weight[sx:sx + (x1 - x0), sy:sy + (y1 - y0)]
            layer = self._glow_layer()
            layer[x0:x1, y0:y1] += (img * (weight * mask)[..., np.newaxis]).astype(np.float32)
            self._frame_blur = max(self._frame_blur, float(glow.max()))

    # --- Output ---

    def _apply_bloom(self):
        """Blur the glow layer (downsampled) and add it onto the frame."""
        layer = self._glow
        w, h = layer.shape[:2]
        factor = _BLOOM_FACTOR
        small = layer[::factor, ::factor, :]
        sigma = max(1.0, (self._frame_blur / 2.0) / factor)
        blurred = gaussian_filter(small, [sigma, sigma, 0])
        blurred = np.repeat(np.repeat(blurred, factor, axis=0), factor, axis=1)[:w, :h, :]

        pixels = pygame.surfarray.pixels3d(self.surface)
        try:
            result = pixels.astype(np.float32) + blurred * _GLOW_INTENSITY
            np.clip(result, 0, 255, out=result)
            pixels[:] = result.astype(np.uint8)
        finally:
            del pixels
        layer[:] = 0.0
        self._frame_blur = 0.0

    def present(self):
        """Finish the frame and return the pygame.Surface (None if detached)."""
        if self.surface is None:
            return None
        if self._glow is not None and self._frame_blur > 0:
            self._apply_bloom()
        return self.surface

    def to_array(self):
        """(height, width, 3) uint8 copy of the current pixels."""
        if self.surface is None:
            return np.zeros((0, 0, 3), dtype=np.uint8)
        return pygame.surfarray.array3d(self.surface).swapaxes(0, 1).copy()
