"""
Planar graph built from a bundle of streamlines.
"""

import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np
import structlog
from scipy.spatial import cKDTree

from .utils import SegmentIndex, segment_intersection
from .vector import Vector2

logger = structlog.get_logger()


class _NodeIndex:
    """Snap positions to existing nodes within a tolerance."""

    def __init__(self, tolerance: float):
        self.tolerance = tolerance
        self.tolerance_sq = tolerance * tolerance
        self.cell_size = max(tolerance, 1e-9)
        self.cells: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        self.positions: Dict[int, Vector2] = {}

    def _cell(self, v: Vector2) -> Tuple[int, int]:
        return math.floor(v.x / self.cell_size), math.floor(v.y / self.cell_size)

    def find(self, v: Vector2) -> Optional[int]:
        """Closest node within tolerance of v."""
        cx, cy = self._cell(v)
        best = None
        best_distance = math.inf
        for x in (-1, 0, 1):
            for y in (-1, 0, 1):
                for node in self.cells.get((cx + x, cy + y), ()):
                    distance = self.positions[node].distance_to_squared(v)
                    if distance <= self.tolerance_sq and distance < best_distance:
                        best = node
                        best_distance = distance
        return best

    def add(self, v: Vector2) -> int:
        """Node id for v, creating a node unless one lies within tolerance."""
        existing = self.find(v)
        if existing is not None:
            return existing
        node = len(self.positions)
        self.positions[node] = v
        self.cells[self._cell(v)].append(node)
        return node


class Graph:
    """
    Undirected planar graph of streamline vertices and crossings.

    Every streamline vertex is a node; crossings between segments become
    shared nodes, merged within a tolerance derived from the step size.
    """

    def __init__(
        self,
        streamlines: Sequence[Sequence[Vector2]],
        dstep: float,
        delete_dangling: bool = False,
        tolerance: Optional[float] = None
    ):
        """
        Build graph.

        Args:
            streamlines: Polylines, usually simplified streamlines
            dstep: Integration step of the streamlines
            delete_dangling: Remove dead-end chains
            tolerance: Node merge distance (default dstep / 2)
        """
        if dstep <= 0:
            raise ValueError(f"dstep must be positive, got {dstep}")

        self.tolerance = dstep / 2 if tolerance is None else tolerance
        self.graph = nx.Graph()
        self.intersections: List[Vector2] = []

        streamlines = [list(s) for s in streamlines if len(s) >= 2]
        segments, split_params, crossings = self._find_intersections(streamlines)
        self._build_graph(segments, split_params, crossings)

        if delete_dangling:
            self._delete_dangling_nodes()

        self.intersections = sorted(
            (self.position(n) for n in self._crossing_nodes if n in self.graph),
            key=lambda v: (v.x, v.y),
        )

        logger.debug(
            "Graph built",
            streamlines=len(streamlines),
            nodes=self.graph.number_of_nodes(),
            edges=self.graph.number_of_edges(),
            intersections=len(self.intersections),
        )

    @property
    def nodes(self) -> List[int]:
        return list(self.graph.nodes())

    @property
    def positions(self) -> Dict[int, Vector2]:
        return {node: data["pos"] for node, data in self.graph.nodes(data=True)}

    def position(self, node: int) -> Vector2:
        return self.graph.nodes[node]["pos"]

    def neighbors(self, node: int) -> List[int]:
        return list(self.graph.neighbors(node))

    def degree(self, node: int) -> int:
        return self.graph.degree(node)

    def find_node(self, v: Vector2) -> Optional[int]:
        """Node within tolerance of v."""
        best = None
        best_distance = self.tolerance ** 2
        for node, pos in self.positions.items():
            distance = pos.distance_to_squared(v)
            if distance <= best_distance:
                best = node
                best_distance = distance
        return best

    def _find_intersections(self, streamlines):
        """
        Pairwise segment intersections.

        Returns:
            (segments, split_params, crossings): segments as (start, end) in
            streamline order, for each segment index a list of (t, point)
            crossings, and the merged crossing points in sorted order
        """
        index = SegmentIndex()
        for s, streamline in enumerate(streamlines):
            for i in range(len(streamline) - 1):
                a, b = streamline[i], streamline[i + 1]
                if a == b:
                    continue
                index.add_segment(a, b, s, i)
        segments = index.segments
        owners = index.segment_data

        raw_points: List[Tuple[Vector2, int, float, int, float]] = []
        for i, j in index.candidate_pairs():
            (si, ii), (sj, ij) = owners[i], owners[j]
            # Neighbouring segments of one streamline share their joint vertex
            if si == sj and abs(ii - ij) <= 1:
                continue

            hit = self._canonical_intersection(segments[i], segments[j])
            if hit is None:
                continue
            point, t, u, swapped = hit
            if swapped:
                t, u = u, t
            raw_points.append((point, i, t, j, u))

        merged = self._merge_points([p[0] for p in raw_points])

        split_params: Dict[int, List[Tuple[float, Vector2]]] = defaultdict(list)
        for (point, i, t, j, u), cluster in zip(raw_points, merged):
            split_params[i].append((t, cluster))
            split_params[j].append((u, cluster))

        crossings = sorted(set(merged), key=lambda v: (v.x, v.y))
        return segments, split_params, crossings

    @staticmethod
    def _canonical_intersection(seg_a, seg_b):
        """
        Intersect two segments in a fixed order of their coordinates, so that
        the same pair gives bitwise identical points whatever the input order.
        """
        key_a = tuple(sorted([seg_a[0].as_tuple(), seg_a[1].as_tuple()]))
        key_b = tuple(sorted([seg_b[0].as_tuple(), seg_b[1].as_tuple()]))
        swapped = key_b < key_a
        first, second = (seg_b, seg_a) if swapped else (seg_a, seg_b)
        first_reversed = first[0].as_tuple() > first[1].as_tuple()
        second_reversed = second[0].as_tuple() > second[1].as_tuple()
        a1, a2 = (first[1], first[0]) if first_reversed else first
        b1, b2 = (second[1], second[0]) if second_reversed else second

        hit = segment_intersection(a1, a2, b1, b2)
        if hit is None:
            return None
        point, t, u = hit
        if first_reversed:
            t = 1 - t
        if second_reversed:
            u = 1 - u
        return point, t, u, swapped

    def _merge_points(self, points: List[Vector2]) -> List[Vector2]:
        """
        Map each point to a representative, merging points within tolerance.

        Points are processed in sorted order, so the result does not depend on
        the order they were found in.
        """
        if not points:
            return []

        coords = np.array([p.as_tuple() for p in points])
        order = np.lexsort((coords[:, 1], coords[:, 0]))
        tree = cKDTree(coords)

        representative: Dict[int, Vector2] = {}
        for idx in order:
            idx = int(idx)
            if idx in representative:
                continue
            cluster = [int(k) for k in tree.query_ball_point(coords[idx], self.tolerance)
                       if int(k) not in representative]
            centre = coords[cluster].mean(axis=0)
            rep = Vector2(float(centre[0]), float(centre[1]))
            for k in cluster:
                representative[k] = rep

        return [representative[i] for i in range(len(points))]

    def _build_graph(self, segments, split_params, crossings):
        nodes = _NodeIndex(self.tolerance)

        # Crossings first so vertices close to them snap onto the crossing.
        # Two merged crossings within tolerance share one node.
        self._crossing_nodes = {nodes.add(point) for point in crossings}

        for i, (start, end) in enumerate(segments):
            along = [(0.0, start)] + sorted(split_params.get(i, []), key=lambda p: p[0]) + [(1.0, end)]
            previous = None
            for _, point in along:
                node = nodes.add(point)
                if node not in self.graph:
                    self.graph.add_node(node, pos=nodes.positions[node])
                if previous is not None and previous != node:
                    self.graph.add_edge(previous, node)
                previous = node

    def _delete_dangling_nodes(self):
        """Repeatedly remove degree <= 1 nodes."""
        core = nx.k_core(self.graph, 2)
        removed = set(self.graph.nodes()) - set(core.nodes())
        self.graph.remove_nodes_from(removed)
