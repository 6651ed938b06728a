"""Street maps: the spatial oracle consulted by the movement routines.

A street map answers three queries over a 2D world with obstacles:

- ``closest_space(p)``: the nearest walkable point to ``p``;
- ``closest_obstacle(p)``: the nearest obstacle point to ``p``;
- ``path_to(src, dst)``: the next waypoint of a shortest path from ``src``
  to ``dst``, or a NaN vector when no such path exists.

:class:`GridStreetMap` implements them on an occupancy grid.
"""

from __future__ import annotations

import heapq
import logging
import math
from pathlib import Path
from typing import Protocol

import numpy as np
import matplotlib.image as mpimg
from scipy.spatial import cKDTree

from ..config import HI_X, HI_Y

logger = logging.getLogger(__name__)

NAN2 = np.array([math.nan, math.nan])

_SQRT2 = math.sqrt(2.0)
_STEPS = [
    (-1, 0, 1.0), (1, 0, 1.0), (0, -1, 1.0), (0, 1, 1.0),
    (-1, -1, _SQRT2), (-1, 1, _SQRT2), (1, -1, _SQRT2), (1, 1, _SQRT2),
]


def _octile(a: tuple[int, int], b: tuple[int, int]) -> float:
    dr, dc = abs(a[0] - b[0]), abs(a[1] - b[1])
    return max(dr, dc) + (_SQRT2 - 1.0) * min(dr, dc)


class StreetMap(Protocol):
    def closest_space(self, point: np.ndarray) -> np.ndarray: ...

    def closest_obstacle(self, point: np.ndarray) -> np.ndarray: ...

    def path_to(self, source: np.ndarray, dest: np.ndarray) -> np.ndarray: ...


class GridStreetMap:
    """Occupancy-grid street map over the rectangle ``[0, width]x[0, height]``.

    ``mask[row, col]`` is ``True`` for obstacle cells; row 0 is the bottom
    strip ``0 <= y < cell_height``.  Shortest paths move between the 8
    neighbouring cells without cutting obstacle corners.
    """

    def __init__(
        self,
        mask: np.ndarray,
        width: float = HI_X,
        height: float = HI_Y,
    ) -> None:
        self.mask = np.asarray(mask, dtype=bool)
        if self.mask.ndim != 2 or self.mask.size == 0:
            raise ValueError(f"obstacle mask should be a non-empty 2D array, got shape {self.mask.shape}")
        self.width = float(width)
        self.height = float(height)
        self.rows, self.cols = self.mask.shape
        self.cell_width = self.width / self.cols
        self.cell_height = self.height / self.rows

        rr, cc = np.indices(self.mask.shape)
        centers = np.stack(
            [(cc + 0.5) * self.cell_width, (rr + 0.5) * self.cell_height],
            axis=-1,
        )
        self._free_centers = centers[~self.mask]
        self._obstacle_centers = centers[self.mask]
        self._free_tree = cKDTree(self._free_centers) if len(self._free_centers) else None
        self._obstacle_tree = cKDTree(self._obstacle_centers) if len(self._obstacle_centers) else None

    # ── Factory helpers ──────────────────────────────────────────────

    @classmethod
    def open(
        cls,
        width: float = HI_X,
        height: float = HI_Y,
        cell_size: float = 10.0,
    ) -> GridStreetMap:
        """A street map without obstacles."""
        rows = max(1, int(math.ceil(height / cell_size)))
        cols = max(1, int(math.ceil(width / cell_size)))
        return cls(np.zeros((rows, cols), dtype=bool), width, height)

    @classmethod
    def from_mask(
        cls,
        mask: np.ndarray,
        width: float = HI_X,
        height: float = HI_Y,
    ) -> GridStreetMap:
        return cls(mask, width, height)

    @classmethod
    def from_image(
        cls,
        path: str | Path,
        width: float = HI_X,
        height: float = HI_Y,
        threshold: float = 0.5,
    ) -> GridStreetMap:
        """Load obstacles from a bitmap: dark pixels are obstacles.

        The image top row is the northern edge of the world (``y = height``).
        """
        img = np.asarray(mpimg.imread(str(path)), dtype=float)
        if img.ndim == 3:
            img = img[..., :3].mean(axis=-1)
        if img.max() > 1.0:
            img = img / 255.0
        mask = np.flipud(img < threshold)
        logger.info("Loaded street map %s: %dx%d cells, %d obstacle cells",
                    path, mask.shape[1], mask.shape[0], int(mask.sum()))
        return cls(mask, width, height)

    # ── Grid helpers ─────────────────────────────────────────────────

    def cell_of(self, point: np.ndarray) -> tuple[int, int] | None:
        """Return ``(row, col)`` of the cell containing *point*, or ``None``."""
        x, y = float(point[0]), float(point[1])
        if not (0.0 <= x <= self.width and 0.0 <= y <= self.height):
            return None
        col = min(int(x // self.cell_width), self.cols - 1)
        row = min(int(y // self.cell_height), self.rows - 1)
        return row, col

    def center_of(self, cell: tuple[int, int]) -> np.ndarray:
        row, col = cell
        return np.array([(col + 0.5) * self.cell_width, (row + 0.5) * self.cell_height])

    def is_free(self, point: np.ndarray) -> bool:
        cell = self.cell_of(point)
        return cell is not None and not self.mask[cell]

    def _neighbours(self, cell: tuple[int, int]):
        row, col = cell
        for dr, dc, cost in _STEPS:
            r, c = row + dr, col + dc
            if not (0 <= r < self.rows and 0 <= c < self.cols) or self.mask[r, c]:
                continue
            # diagonal moves need both side cells free, so the 2x2 block is walkable
            if dr and dc and (self.mask[row + dr, col] or self.mask[row, col + dc]):
                continue
            yield (r, c), cost

    def _first_step(self, start: tuple[int, int], goal: tuple[int, int]) -> tuple[int, int] | None:
        """First cell of a shortest path from *start* to *goal* (A*), or ``None``."""
        best = {start: 0.0}
        came_from: dict[tuple[int, int], tuple[int, int]] = {}
        heap = [(_octile(start, goal), 0.0, start)]
        while heap:
            _f, d, cell = heapq.heappop(heap)
            if cell == goal:
                while came_from[cell] != start:
                    cell = came_from[cell]
                return cell
            if d > best[cell]:
                continue
            for nxt, cost in self._neighbours(cell):
                nd = d + cost
                if nd < best.get(nxt, math.inf):
                    best[nxt] = nd
                    came_from[nxt] = cell
                    heapq.heappush(heap, (nd + _octile(nxt, goal), nd, nxt))
        return None

    # ── Oracle queries ───────────────────────────────────────────────

    def closest_space(self, point: np.ndarray) -> np.ndarray:
        point = np.asarray(point, dtype=float)
        if np.isnan(point).any() or self._free_tree is None:
            return NAN2.copy()
        if self.is_free(point):
            return point.copy()
        _d, idx = self._free_tree.query(point)
        return self._free_centers[int(idx)].copy()

    def closest_obstacle(self, point: np.ndarray) -> np.ndarray:
        point = np.asarray(point, dtype=float)
        if np.isnan(point).any() or self._obstacle_tree is None:
            return NAN2.copy()
        cell = self.cell_of(point)
        if cell is not None and self.mask[cell]:
            return point.copy()
        _d, idx = self._obstacle_tree.query(point)
        return self._obstacle_centers[int(idx)].copy()

    def path_to(self, source: np.ndarray, dest: np.ndarray) -> np.ndarray:
        source = np.asarray(source, dtype=float)
        dest = np.asarray(dest, dtype=float)
        start, goal = self.cell_of(source), self.cell_of(dest)
        if start is None or goal is None or self.mask[start] or self.mask[goal]:
            logger.debug("No path %s -> %s: endpoint outside streets", source, dest)
            return NAN2.copy()
        if start == goal:
            return dest.copy()
        nxt = self._first_step(start, goal)
        if nxt is None:
            logger.debug("No path %s -> %s: unreachable", source, dest)
            return NAN2.copy()
        if nxt == goal:
            # any segment between two points of adjacent cells stays in walkable cells
            return dest.copy()
        return self.center_of(nxt)
