"""
Brightness Ledger - Fade-to-Black Tracking

Dense (rows, cols) arena of per-cell brightness in [0, 1] plus a
"touched" mask standing in for entries that were never written. Every
simulation drives it the same way each generation:

  1. decay()        every touched cell drops by the fade decrement
  2. (transition)   the simulation mutates its grid
  3. mark_active()  every active cell is set back to exactly 1

A cell that has been inactive since generation 0 is never touched, so it
reads 0 forever instead of flashing to 1 and fading. Only cells that were
active at some point fade out.
"""

import numpy as np

_EPSILON = 1e-9


class BrightnessLedger:
    """Per-cell brightness arena indexed by (row, col)."""

    def __init__(self, rows=1, cols=1):
        self.rows = 0
        self.cols = 0
        self.values = None
        self.touched = None
        self.resize(rows, cols)

    def resize(self, rows, cols):
        """Reallocate for new grid dimensions. Clears all entries."""
        self.rows = max(1, int(rows))
        self.cols = max(1, int(cols))
        self.values = np.zeros((self.rows, self.cols), dtype=np.float64)
        self.touched = np.zeros((self.rows, self.cols), dtype=bool)

    def clear(self):
        """Wipe every entry (reset / clear)."""
        self.values[:] = 0.0
        self.touched[:] = False

    def _fit(self, grid):
        """View of a grid clipped to the ledger's bounds."""
        grid = np.asarray(grid, dtype=bool)
        return grid[:self.rows, :self.cols]

    def decay(self, decrement):
        """Drop every touched cell by decrement, flooring at 0."""
        np.subtract(self.values, decrement, out=self.values, where=self.touched)
        # Snap float residue (1 - 5 * 0.2 != 0) so fades land exactly on 0
        self.values[self.values < _EPSILON] = 0.0

    def mark_active(self, grid):
        """Set brightness to 1 for every active cell of grid."""
        active = self._fit(grid)
        r, c = active.shape
        self.values[:r, :c][active] = 1.0
        self.touched[:r, :c] |= active

    def apply_toggle(self, row, col, active_after):
        """Reconcile one cell after a user toggle.

        Newly active cells go to full brightness. Newly inactive cells keep
        their current brightness ("was visible, now fading"), or start at 1
        if they were never recorded.
        """
        if not self.in_bounds(row, col):
            return
        if active_after or not self.touched[row, col]:
            self.values[row, col] = 1.0
        self.touched[row, col] = True

    def reset_from(self, grid):
        """Clear, then record full brightness for each active cell of grid."""
        self.clear()
        self.mark_active(grid)

    def in_bounds(self, row, col):
        return 0 <= row < self.rows and 0 <= col < self.cols

    def get(self, row, col):
        """Brightness of one cell; 0 for untouched or out-of-range cells."""
        if not self.in_bounds(row, col) or not self.touched[row, col]:
            return 0.0
        return float(self.values[row, col])

    def is_touched(self, row, col):
        return self.in_bounds(row, col) and bool(self.touched[row, col])

    def as_array(self, grid=None):
        """Brightness to render with.

        Untouched cells fall back to 1 when active in grid and 0 otherwise.
        """
        out = np.where(self.touched, self.values, 0.0)
        if grid is not None:
            active = self._fit(grid)
            r, c = active.shape
            region = out[:r, :c]
            region[active & ~self.touched[:r, :c]] = 1.0
        return out

    def transplant(self, other):
        """Copy the overlapping sub-rectangle of another ledger into this one."""
        r = min(self.rows, other.rows)
        c = min(self.cols, other.cols)
        self.values[:r, :c] = other.values[:r, :c]
        self.touched[:r, :c] = other.touched[:r, :c]

    def copy(self):
        dup = BrightnessLedger(self.rows, self.cols)
        dup.values[:] = self.values
        dup.touched[:] = self.touched
        return dup

    @property
    def stats(self):
        """Summary numbers for HUD/debugging."""
        lit = self.touched & (self.values > 0)
        return {
            "touched": int(self.touched.sum()),
            "lit": int(lit.sum()),
            "fading": int((lit & (self.values < 1.0)).sum()),
        }
