"""Minimum-cost seams through overlap error surfaces."""

from typing import List, Optional, Tuple

import numpy as np

from .exceptions import InvalidSurfaceError

# Predecessor column offsets, in tie-break order: straight down first.
_OFFSETS = np.array([0, -1, 1])


class SeamPathFinder:
    """Dynamic-programming seam through a 2-D error surface.

    Row 0 is the starting edge. ``cost[r, c]`` is the cheapest cumulative
    cost of a path from row 0 to ``(r, c)``, and ``next_step(r, c)`` is the
    neighbouring cell that path came from, so following ``next_step`` from
    any cell walks back to row 0 along the optimal path.
    """

    def __init__(self, error_surface: np.ndarray, allow_lateral: bool = False):
        """Computes the cost and path tables.

        Args:
            error_surface: 2-D array of non-negative costs (rows x cols).
            allow_lateral: Let the seam also travel sideways inside a row.

        Raises:
            InvalidSurfaceError: If the surface is not a non-empty 2-D array
                of finite, non-negative values.
        """
        surface = np.asarray(error_surface, dtype=np.float64)
        if surface.ndim != 2:
            raise InvalidSurfaceError(f"Error surface must be 2-D, got shape {surface.shape}")
        rows, cols = surface.shape
        if rows == 0 or cols == 0:
            raise InvalidSurfaceError(f"Error surface is empty (shape {surface.shape})")
        if not np.all(np.isfinite(surface)):
            raise InvalidSurfaceError("Error surface contains non-finite values")
        if np.any(surface < 0):
            raise InvalidSurfaceError("Error surface contains negative costs")

        self.allow_lateral = allow_lateral
        self._surface = surface
        self._cost = np.empty_like(surface)
        # -1 marks "no next step" (row 0)
        self._next_row = np.full((rows, cols), -1, dtype=np.int64)
        self._next_col = np.full((rows, cols), -1, dtype=np.int64)

        self._cost[0] = surface[0]
        columns = np.arange(cols)
        for r in range(1, rows):
            # Pad the previous row with inf so edge columns see two predecessors
            # and a single column is forced straight down.
            padded = np.pad(self._cost[r - 1], 1, constant_values=np.inf)
            candidates = np.stack([
                padded[1:-1],  # straight down
                padded[:-2],   # c - 1
                padded[2:],    # c + 1
            ])
            choice = np.argmin(candidates, axis=0)
            self._cost[r] = surface[r] + candidates[choice, columns]
            self._next_row[r] = r - 1
            self._next_col[r] = columns + _OFFSETS[choice]

            if allow_lateral and cols > 1:
                self._relax_row(r)

    def _relax_row(self, r: int) -> None:
        """Lets costs flow sideways along row r until nothing improves."""
        cost = self._cost[r]
        surface = self._surface[r]
        cols = cost.shape[0]
        changed = True
        while changed:
            changed = False
            for c in range(1, cols):
                lateral = cost[c - 1] + surface[c]
                if lateral < cost[c]:
                    cost[c] = lateral
                    self._next_row[r, c] = r
                    self._next_col[r, c] = c - 1
                    changed = True
            for c in range(cols - 2, -1, -1):
                lateral = cost[c + 1] + surface[c]
                if lateral < cost[c]:
                    cost[c] = lateral
                    self._next_row[r, c] = r
                    self._next_col[r, c] = c + 1
                    changed = True

    @property
    def shape(self) -> Tuple[int, int]:
        """(rows, cols) of the error surface."""
        return self._cost.shape

    @property
    def cost(self) -> np.ndarray:
        """Copy of the cumulative cost table."""
        return self._cost.copy()

    def cost_of(self, row: int, col: int) -> float:
        """Cumulative cost of the cheapest path from row 0 through (row, col)."""
        self._check(row, col)
        return float(self._cost[row, col])

    def next_step(self, row: int, col: int) -> Optional[Tuple[int, int]]:
        """Next cell on the optimal path towards row 0, or None on row 0."""
        self._check(row, col)
        next_row = int(self._next_row[row, col])
        if next_row < 0:
            return None
        return next_row, int(self._next_col[row, col])

    def best_end_column(self) -> int:
        """Column of the cheapest cell on the last row."""
        return int(np.argmin(self._cost[-1]))

    def trace(self, row: int, col: int) -> List[Tuple[int, int]]:
        """Follows next_step from (row, col) down to row 0, both ends included."""
        self._check(row, col)
        path = [(row, col)]
        step = self.next_step(row, col)
        while step is not None:
            path.append(step)
            step = self.next_step(*step)
        return path

    def _check(self, row: int, col: int) -> None:
        rows, cols = self.shape
        if not (0 <= row < rows and 0 <= col < cols):
            raise IndexError(f"Cell ({row}, {col}) outside surface of shape {self.shape}")
