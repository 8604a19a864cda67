"""
Visitation grid ("heatmap") for walk segments.

Each segment of the visible walk prefix is rasterized with a DDA grid
traversal and every cell it passes through is incremented once. Grid
geometry is fixed from the full point set, so a grid built for step `a` can be
extended in place to step `b` and ends up identical to a grid computed
directly for `b`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from numba import njit

from .walk import Walk

log = logging.getLogger(__name__)

COUNT_DTYPE = np.uint32


@dataclass
class VisitationGrid:
    """Per-cell visit counts. `counts[row, col]` covers cell (col, row)."""

    counts: np.ndarray
    max_count: int
    origin_x: float
    origin_y: float
    cell_size: float
    cols: int
    rows: int

    def copy(self) -> "VisitationGrid":
        return VisitationGrid(
            counts=self.counts.copy(),
            max_count=self.max_count,
            origin_x=self.origin_x,
            origin_y=self.origin_y,
            cell_size=self.cell_size,
            cols=self.cols,
            rows=self.rows,
        )

    def cell_of(self, x: float, y: float) -> Tuple[int, int]:
        """Return (col, row) of the cell containing world point (x, y)."""
        col = int(math.floor((x - self.origin_x) / self.cell_size))
        row = int(math.floor((y - self.origin_y) / self.cell_size))
        return col, row


###############################################################################
# Numba kernels
###############################################################################


@njit(cache=True)
def rasterize_segment(
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    origin_x: float,
    origin_y: float,
    cell_size: float,
    counts: np.ndarray,
) -> None:
    """
    Increment every cell the segment (x0, y0) -> (x1, y1) passes through.

    Cells outside `counts` are skipped. The traversal is capped at
    cols + rows + 2 iterations.
    """
    rows, cols = counts.shape

    gx0 = (x0 - origin_x) / cell_size
    gy0 = (y0 - origin_y) / cell_size
    gx1 = (x1 - origin_x) / cell_size
    gy1 = (y1 - origin_y) / cell_size

    dx = abs(gx1 - gx0)
    dy = abs(gy1 - gy0)
    cx = int(math.floor(gx0))
    cy = int(math.floor(gy0))
    end_cx = int(math.floor(gx1))
    end_cy = int(math.floor(gy1))
    sx = 1 if gx1 > gx0 else -1
    sy = 1 if gy1 > gy0 else -1

    if dx == 0.0 and dy == 0.0:
        if 0 <= cx < cols and 0 <= cy < rows:
            counts[cy, cx] += 1
        return

    # Parametric distance along the segment to the next vertical/horizontal line
    if dx != 0.0:
        if sx > 0:
            t_max_x = (math.floor(gx0) + 1.0 - gx0) / (gx1 - gx0)
        else:
            t_max_x = (gx0 - math.floor(gx0)) / (gx0 - gx1)
        t_delta_x = abs(1.0 / (gx1 - gx0))
    else:
        t_max_x = np.inf
        t_delta_x = np.inf

    if dy != 0.0:
        if sy > 0:
            t_max_y = (math.floor(gy0) + 1.0 - gy0) / (gy1 - gy0)
        else:
            t_max_y = (gy0 - math.floor(gy0)) / (gy0 - gy1)
        t_delta_y = abs(1.0 / (gy1 - gy0))
    else:
        t_max_y = np.inf
        t_delta_y = np.inf

    max_steps = cols + rows + 2
    for _ in range(max_steps):
        if 0 <= cx < cols and 0 <= cy < rows:
            counts[cy, cx] += 1

        if cx == end_cx and cy == end_cy:
            break

        if t_max_x < t_max_y:
            cx += sx
            t_max_x += t_delta_x
        else:
            cy += sy
            t_max_y += t_delta_y


@njit(cache=True)
def _rasterize_walk_segments(
    points: np.ndarray,
    from_step: int,
    to_step: int,
    origin_x: float,
    origin_y: float,
    cell_size: float,
    counts: np.ndarray,
) -> None:
    end = min(to_step, points.shape[0] - 1)
    for i in range(max(from_step, 0), end):
        rasterize_segment(
            points[i, 0], points[i, 1],
            points[i + 1, 0], points[i + 1, 1],
            origin_x, origin_y, cell_size, counts,
        )


###############################################################################
# Grid construction
###############################################################################


def compute_bounds(points: np.ndarray, cell_size: float) -> Tuple[float, float, int, int]:
    """
    Grid geometry for a point set: bounding box plus one cell of margin.

    Returns:
        (origin_x, origin_y, cols, rows)
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    min_x, min_y = pts.min(axis=0) - cell_size
    max_x, max_y = pts.max(axis=0) + cell_size
    cols = max(1, int(math.ceil((max_x - min_x) / cell_size)))
    rows = max(1, int(math.ceil((max_y - min_y) / cell_size)))
    return float(min_x), float(min_y), cols, rows


def _empty_grid(points: np.ndarray, cell_size: float) -> VisitationGrid:
    if not cell_size > 0:
        raise ValueError(f"cell_size must be > 0, got {cell_size}")
    origin_x, origin_y, cols, rows = compute_bounds(points, cell_size)
    return VisitationGrid(
        counts=np.zeros((rows, cols), dtype=COUNT_DTYPE),
        max_count=0,
        origin_x=origin_x,
        origin_y=origin_y,
        cell_size=float(cell_size),
        cols=cols,
        rows=rows,
    )


def _refresh_max(grid: VisitationGrid) -> VisitationGrid:
    grid.max_count = int(grid.counts.max()) if grid.counts.size else 0
    return grid


def compute_heatmap_grid(walk: Walk, cell_size: float, up_to_step: int) -> VisitationGrid:
    """Build a grid from scratch for segments [0, up_to_step)."""
    grid = _empty_grid(walk.points, cell_size)
    _rasterize_walk_segments(
        walk.points, 0, int(up_to_step),
        grid.origin_x, grid.origin_y, grid.cell_size, grid.counts,
    )
    return _refresh_max(grid)


def extend_heatmap_grid(
    grid: VisitationGrid,
    walk: Walk,
    from_step: int,
    to_step: int,
    cell_size: float,
) -> VisitationGrid:
    """
    Add segments [from_step, to_step) to an existing grid.

    The grid's counts buffer is mutated in place and the same object is
    returned; copy it first to keep the previous state. Geometry is taken from
    `grid`, `cell_size` must match the one it was built with.
    """
    if cell_size != grid.cell_size:
        raise ValueError(
            f"cell_size {cell_size} does not match grid cell_size {grid.cell_size}"
        )
    _rasterize_walk_segments(
        walk.points, int(from_step), int(to_step),
        grid.origin_x, grid.origin_y, grid.cell_size, grid.counts,
    )
    return _refresh_max(grid)


def compute_multi_walk_heatmap_grid(
    walks: Sequence[Walk], cell_size: float, up_to_step: int
) -> VisitationGrid:
    """Aggregate segments [0, up_to_step) of every walk into one grid."""
    all_points = np.concatenate([w.points for w in walks], axis=0)
    grid = _empty_grid(all_points, cell_size)
    for walk in walks:
        _rasterize_walk_segments(
            walk.points, 0, int(up_to_step),
            grid.origin_x, grid.origin_y, grid.cell_size, grid.counts,
        )
    return _refresh_max(grid)


class HeatmapTracker:
    """
    Keeps one grid in sync with a moving step cursor.

    Forward moves extend the cached grid, backward moves recompute it. The
    all-walks mode has no incremental path and recomputes on every change.
    """

    def __init__(self) -> None:
        self.grid: Optional[VisitationGrid] = None
        self.last_step = 0
        self._all_walks = False

    def reset(self) -> None:
        self.grid = None
        self.last_step = 0

    def update(
        self,
        walks: Sequence[Walk],
        step: int,
        cell_size: float,
        all_walks: bool = False,
    ) -> VisitationGrid:
        if self.grid is not None and self.grid.cell_size != cell_size:
            log.debug("Heatmap cell size %s -> %s, dropping grid", self.grid.cell_size, cell_size)
            self.reset()

        all_walks = all_walks and len(walks) > 1
        if all_walks != self._all_walks:
            self.reset()
            self._all_walks = all_walks

        if all_walks:
            if self.grid is None or step != self.last_step:
                self.grid = compute_multi_walk_heatmap_grid(walks, cell_size, step)
                self.last_step = step
            return self.grid

        primary = walks[0]
        if self.grid is None or step < self.last_step:
            if self.grid is not None:
                log.debug("Heatmap cursor moved back %d -> %d, recomputing", self.last_step, step)
            self.grid = compute_heatmap_grid(primary, cell_size, step)
        elif step > self.last_step:
            self.grid = extend_heatmap_grid(self.grid, primary, self.last_step, step, cell_size)
        self.last_step = step
        return self.grid
