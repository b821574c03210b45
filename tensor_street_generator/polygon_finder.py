"""
Closed polygon (block/park) extraction from a street graph.
"""

import math
from typing import Dict, List, Optional

import networkx as nx
import structlog

from .config import PolygonParams
from .graph import Graph
from .tensor_field import TensorField
from .utils import (
    aspect_ratio,
    average_point,
    is_counter_clockwise,
    is_simple_polygon,
    polygon_area,
    resize_polygon,
)
from .vector import Vector2

logger = structlog.get_logger()

Polygon = List[Vector2]


class PolygonFinder:
    """
    Find the faces of a planar street graph.

    Walks turn right at every junction, so each bounded face is traced
    clockwise. Every directed edge is used by at most one face.
    """

    def __init__(
        self,
        graph: Graph,
        params: PolygonParams,
        tensor_field: Optional[TensorField] = None
    ):
        """
        Args:
            graph: Street graph
            params: Polygon parameters
            tensor_field: If given, polygons in water or parks are dropped
        """
        self.graph = graph
        self.params = params
        self.tensor_field = tensor_field

        self._polygons: List[Polygon] = []
        self._shrunk_polygons: List[Polygon] = []
        self._to_shrink: List[Polygon] = []

    @property
    def polygons(self) -> List[Polygon]:
        if self._shrunk_polygons:
            return self._shrunk_polygons
        return self._polygons

    def reset(self):
        self._polygons = []
        self._shrunk_polygons = []
        self._to_shrink = []

    def find_polygons(self):
        self._shrunk_polygons = []
        self._to_shrink = []

        # Dead-end roads cannot bound a face
        core = nx.k_core(self.graph.graph, 2)
        positions = self.graph.positions
        adjacency: Dict[int, List[int]] = {
            node: sorted(core.neighbors(node)) for node in sorted(core.nodes())
        }

        polygons = []
        for node in adjacency:
            if len(adjacency[node]) < 2:
                continue
            for next_node in list(adjacency[node]):
                if next_node not in adjacency[node]:
                    # Already used by an earlier face
                    continue
                ring = self._walk([node, next_node], adjacency, positions)
                if ring is not None and len(ring) < self.params.max_length:
                    self._remove_polygon_adjacencies(ring, adjacency)
                    polygon = [positions[n] for n in ring]
                    # Counter-clockwise rings are the outer face
                    if not is_counter_clockwise(polygon):
                        polygons.append(polygon)

        self._polygons = [p for p in polygons if self._keep_polygon(p)]
        logger.info(
            "Found polygons",
            candidates=len(polygons),
            kept=len(self._polygons),
        )

    def shrink(self, animate: bool = False):
        """
        Offset every found polygon inward by shrink_spacing.

        With animate, polygons are queued and processed by update().
        """
        self._shrunk_polygons = []
        if animate:
            self._to_shrink = list(self._polygons)
            return
        for polygon in self._polygons:
            self._step_shrink(polygon)

    def update(self) -> bool:
        """
        Shrink one queued polygon.

        Returns:
            True while more work remains
        """
        if not self._to_shrink:
            return False
        self._step_shrink(self._to_shrink.pop())
        return bool(self._to_shrink)

    def _step_shrink(self, polygon: Polygon) -> bool:
        shrunk = resize_polygon(polygon, -self.params.shrink_spacing)
        if shrunk and self._passes_filters(shrunk):
            self._shrunk_polygons.append(shrunk)
            return True
        return False

    def _keep_polygon(self, polygon: Polygon) -> bool:
        if not self._passes_filters(polygon):
            return False
        if self.tensor_field is not None:
            centre = average_point(polygon)
            if not self.tensor_field.on_land(centre) or self.tensor_field.in_parks(centre):
                return False
        return True

    def _passes_filters(self, polygon: Polygon) -> bool:
        if not is_simple_polygon(polygon):
            return False
        if polygon_area(polygon) < self.params.min_area:
            return False
        return aspect_ratio(polygon) <= self.params.max_aspect_ratio

    def _walk(self, visited: List[int], adjacency, positions) -> Optional[List[int]]:
        """Turn right until a node repeats; None on a dead end or a too long walk."""
        while len(visited) <= self.params.max_length:
            next_node = self._rightmost_node(visited[-2], visited[-1], adjacency, positions)
            if next_node is None:
                return None
            if next_node in visited:
                return visited[visited.index(next_node):]
            visited.append(next_node)
        return None

    @staticmethod
    def _rightmost_node(node_from: int, node_to: int, adjacency, positions) -> Optional[int]:
        back = positions[node_from] - positions[node_to]
        transform_angle = back.angle()

        rightmost = None
        smallest_theta = math.pi * 2
        for next_node in adjacency[node_to]:
            if next_node == node_from:
                continue
            next_angle = (positions[next_node] - positions[node_to]).angle() - transform_angle
            if next_angle < 0:
                next_angle += math.pi * 2
            if next_angle < smallest_theta:
                smallest_theta = next_angle
                rightmost = next_node
        return rightmost

    @staticmethod
    def _remove_polygon_adjacencies(ring: List[int], adjacency):
        for i, current in enumerate(ring):
            following = ring[(i + 1) % len(ring)]
            if following in adjacency[current]:
                adjacency[current].remove(following)
            else:
                logger.warning("Polygon edge missing from adjacency", node=current)
