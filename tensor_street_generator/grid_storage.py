"""
Spatial hash of streamline samples for separation tests.
"""

import math
from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from .vector import Vector2

Cell = Tuple[int, int]


class GridStorage:
    """
    Samples bucketed into square cells of side dsep.

    A separation test only has to look at the 3x3 cells around a point as
    long as the tested distance is at most dsep.
    """

    def __init__(self, origin: Vector2, dsep: float):
        self.origin = origin
        self.dsep = dsep
        self.dsep_sq = dsep * dsep
        self.grid: Dict[Cell, List[Vector2]] = defaultdict(list)

    def __len__(self) -> int:
        return sum(len(cell) for cell in self.grid.values())

    def samples(self) -> Iterable[Vector2]:
        for cell in self.grid.values():
            yield from cell

    def add_all(self, other: "GridStorage"):
        """Copy every sample of another grid into this one."""
        for sample in other.samples():
            self.add_sample(sample)

    def add_polyline(self, line: Iterable[Vector2]):
        for v in line:
            self.add_sample(v)

    def add_sample(self, v: Vector2):
        self.grid[self.get_sample_coords(v)].append(v)

    def is_valid_sample(self, v: Vector2, d_sq: float = None) -> bool:
        """
        True if no stored sample lies closer than sqrt(d_sq) to v.

        Args:
            v: Query point
            d_sq: Squared test distance, at most dsep ** 2 (defaults to it)
        """
        if d_sq is None:
            d_sq = self.dsep_sq
        cx, cy = self.get_sample_coords(v)
        for x in (-1, 0, 1):
            for y in (-1, 0, 1):
                cell = self.grid.get((cx + x, cy + y))
                if cell and not self._far_from_samples(v, cell, d_sq):
                    return False
        return True

    def get_nearby_points(self, v: Vector2, distance: float) -> List[Vector2]:
        """Samples in the cells within distance of v (a superset of the true neighbours)."""
        radius = max(1, math.ceil(distance / self.dsep))
        cx, cy = self.get_sample_coords(v)
        out = []
        for x in range(-radius, radius + 1):
            for y in range(-radius, radius + 1):
                out.extend(self.grid.get((cx + x, cy + y), ()))
        return out

    def get_sample_coords(self, v: Vector2) -> Cell:
        local = v - self.origin
        return math.floor(local.x / self.dsep), math.floor(local.y / self.dsep)

    @staticmethod
    def _far_from_samples(v: Vector2, samples: List[Vector2], d_sq: float) -> bool:
        for sample in samples:
            if sample.distance_to_squared(v) < d_sq:
                return False
        return True
