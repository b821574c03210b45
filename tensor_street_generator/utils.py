"""
Utility functions for geometry operations and spatial indexing.
"""

import math
import numpy as np
from typing import Iterable, List, Optional, Sequence, Tuple
from shapely.geometry import LineString, LinearRing, MultiPolygon, Polygon
from shapely.strtree import STRtree

from .vector import Vector2

# Parametric slack when testing segment intersections, so that a road which
# ends exactly on another one still produces a junction
SEGMENT_EPSILON = 1e-9


def calculate_bearing(p1: Tuple[float, float], p2: Tuple[float, float]) -> float:
    """
    Calculate bearing (0-180°) of line segment from p1 to p2.

    Args:
        p1: Start point (x, y)
        p2: End point (x, y)

    Returns:
        Bearing in degrees [0, 180)
    """
    bearing = math.degrees(math.atan2(p2[1] - p1[1], p2[0] - p1[0]))

    # Normalize to [0, 180) - we don't care about direction
    if bearing < 0:
        bearing += 180
    if bearing >= 180:
        bearing -= 180

    return bearing


def segment_intersection(
    a1: Vector2,
    a2: Vector2,
    b1: Vector2,
    b2: Vector2
) -> Optional[Tuple[Vector2, float, float]]:
    """
    Intersect segments a1-a2 and b1-b2.

    Returns:
        (point, t, u) with point = a1 + t (a2 - a1) = b1 + u (b2 - b1),
        or None if the segments do not meet (parallel segments never meet)
    """
    r = a2 - a1
    s = b2 - b1
    denominator = r.cross(s)
    if denominator == 0:
        return None

    qp = b1 - a1
    t = qp.cross(s) / denominator
    u = qp.cross(r) / denominator
    if -SEGMENT_EPSILON <= t <= 1 + SEGMENT_EPSILON and -SEGMENT_EPSILON <= u <= 1 + SEGMENT_EPSILON:
        t = min(1.0, max(0.0, t))
        u = min(1.0, max(0.0, u))
        return a1 + r * t, t, u
    return None


def simplify_polyline(points: Sequence[Vector2], tolerance: float) -> List[Vector2]:
    """Douglas-Peucker simplification, endpoints kept."""
    if len(points) < 3 or tolerance <= 0:
        return list(points)
    simplified = LineString([p.as_tuple() for p in points]).simplify(
        tolerance, preserve_topology=False
    )
    return [Vector2(x, y) for x, y in simplified.coords]


def to_polygon(points: Sequence[Vector2]) -> Polygon:
    return Polygon([p.as_tuple() for p in points])


def polygon_area(points: Sequence[Vector2]) -> float:
    """Unsigned polygon area."""
    if len(points) < 3:
        return 0.0
    return to_polygon(points).area


def is_counter_clockwise(points: Sequence[Vector2]) -> bool:
    if len(points) < 3:
        return False
    return LinearRing([p.as_tuple() for p in points]).is_ccw


def is_simple_polygon(points: Sequence[Vector2]) -> bool:
    """True for a closed ring with >= 3 distinct vertices that does not self-intersect."""
    if len(set(points)) < 3 or len(set(points)) != len(points):
        return False
    polygon = to_polygon(points)
    return polygon.is_valid and polygon.area > 0


def aspect_ratio(points: Sequence[Vector2]) -> float:
    """Long side over short side of the minimum rotated bounding rectangle."""
    rectangle = to_polygon(points).minimum_rotated_rectangle
    if not isinstance(rectangle, Polygon):
        return math.inf

    corners = list(rectangle.exterior.coords)
    side_a = math.dist(corners[0], corners[1])
    side_b = math.dist(corners[1], corners[2])
    shortest = min(side_a, side_b)
    if shortest == 0:
        return math.inf
    return max(side_a, side_b) / shortest


def resize_polygon(points: Sequence[Vector2], spacing: float) -> List[Vector2]:
    """
    Offset a polygon outward (spacing > 0) or inward (spacing < 0).

    Returns:
        Open ring of the resized polygon, or an empty list if the offset
        collapses or splits it
    """
    resized = to_polygon(points).buffer(spacing, join_style="mitre")
    if resized.is_empty or isinstance(resized, MultiPolygon):
        return []
    coords = list(resized.exterior.coords)[:-1]
    return [Vector2(x, y) for x, y in coords]


def average_point(points: Iterable[Vector2]) -> Vector2:
    coords = np.array([p.as_tuple() for p in points])
    if len(coords) == 0:
        return Vector2.zero()
    mean = coords.mean(axis=0)
    return Vector2(float(mean[0]), float(mean[1]))


class SegmentIndex:
    """
    Spatial index over streamline segments for intersection queries.
    """

    def __init__(self):
        """Initialize empty segment index."""
        self.segments: List[Tuple[Vector2, Vector2]] = []
        self.segment_data: List[Tuple[int, int]] = []  # (streamline, segment) pairs
        self.tree: Optional[STRtree] = None

    def add_segment(self, start: Vector2, end: Vector2, streamline: int, index: int):
        """
        Add segment to index.

        Args:
            start: Segment start
            end: Segment end
            streamline: Index of the owning streamline
            index: Index of the segment along its streamline
        """
        self.segments.append((start, end))
        self.segment_data.append((streamline, index))
        # Rebuilt lazily on next query
        self.tree = None

    def _ensure_tree(self):
        """Rebuild spatial index tree if needed."""
        if self.tree is None and self.segments:
            self.tree = STRtree(self._lines())

    def _lines(self) -> List[LineString]:
        return [LineString([a.as_tuple(), b.as_tuple()]) for a, b in self.segments]

    def candidate_pairs(self) -> List[Tuple[int, int]]:
        """
        All pairs (i, j), i < j, of segments that intersect or touch.

        Returns:
            Sorted list of segment index pairs
        """
        self._ensure_tree()
        if not self.segments:
            return []

        lines = self._lines()
        left, right = self.tree.query(lines, predicate="intersects")
        pairs = {
            (int(i), int(j)) if i < j else (int(j), int(i))
            for i, j in zip(left, right)
            if i != j
        }
        return sorted(pairs)
