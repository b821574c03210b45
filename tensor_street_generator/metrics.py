"""
Morphology metrics of a generated street network.
"""

import numpy as np
import networkx as nx
from typing import Dict, List, Optional, Sequence, Tuple
from collections import Counter
from scipy.stats import entropy

from .graph import Graph
from .utils import calculate_bearing, polygon_area
from .vector import Vector2


class MorphologyMetrics:
    """Compute urban morphology metrics."""

    @staticmethod
    def compute_node_density(graph: nx.Graph, world_dimensions: Vector2) -> float:
        """
        Compute node density (nodes per km²).

        Args:
            graph: NetworkX graph
            world_dimensions: Domain size in meters

        Returns:
            Node density
        """
        area_km2 = (world_dimensions.x / 1000.0) * (world_dimensions.y / 1000.0)
        if area_km2 <= 0:
            raise ValueError(f"Domain must have positive area, got {world_dimensions}")
        return graph.number_of_nodes() / area_km2

    @staticmethod
    def compute_degree_distribution(graph: nx.Graph) -> Dict[int, int]:
        """
        Compute node degree distribution.

        Args:
            graph: NetworkX graph

        Returns:
            Dict mapping degree -> count
        """
        degrees = [d for _, d in graph.degree()]
        return dict(Counter(degrees))

    @staticmethod
    def compute_segment_lengths(graph: nx.Graph, pos: Dict[int, Vector2]) -> List[float]:
        """
        Compute all edge lengths.

        Args:
            graph: NetworkX graph
            pos: Node positions

        Returns:
            List of edge lengths in meters
        """
        return [pos[u].distance_to(pos[v]) for u, v in graph.edges()]

    @staticmethod
    def compute_dead_end_ratio(graph: nx.Graph) -> float:
        """
        Compute ratio of dead-end nodes (degree 1).

        Args:
            graph: NetworkX graph

        Returns:
            Ratio [0, 1]
        """
        if graph.number_of_nodes() == 0:
            return 0.0

        dead_ends = sum(1 for _, d in graph.degree() if d == 1)
        return dead_ends / graph.number_of_nodes()

    @staticmethod
    def compute_orientation_histogram(
        graph: nx.Graph,
        pos: Dict[int, Vector2],
        num_bins: int = 18
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute orientation histogram for edges.

        Args:
            graph: NetworkX graph
            pos: Node positions
            num_bins: Number of bins for [0, 180)

        Returns:
            (bin_edges, counts) arrays
        """
        bearings = [
            calculate_bearing(pos[u].as_tuple(), pos[v].as_tuple())
            for u, v in graph.edges()
        ]

        if not bearings:
            return np.linspace(0, 180, num_bins + 1), np.zeros(num_bins)

        counts, bin_edges = np.histogram(bearings, bins=num_bins, range=(0, 180))
        return bin_edges, counts

    @staticmethod
    def compute_orientation_entropy(counts: np.ndarray) -> float:
        """Shannon entropy (bits) of a histogram; 0 for an empty one."""
        if np.sum(counts) == 0:
            return 0.0
        return float(entropy(counts, base=2))

    @staticmethod
    def compute_polygon_stats(polygons: Sequence[Sequence[Vector2]]) -> Dict:
        areas = [polygon_area(p) for p in polygons]
        return {
            "count": len(areas),
            "mean_area": float(np.mean(areas)) if areas else 0.0,
            "median_area": float(np.median(areas)) if areas else 0.0,
            "total_area": float(np.sum(areas)) if areas else 0.0,
        }

    @staticmethod
    def compute_all_morphology(
        graph: Graph,
        world_dimensions: Vector2,
        polygons: Optional[Sequence[Sequence[Vector2]]] = None,
        num_orientation_bins: int = 18
    ) -> Dict:
        """
        Compute all morphology metrics.

        Args:
            graph: Street graph
            world_dimensions: Domain size
            polygons: Blocks or parks to summarise
            num_orientation_bins: Number of orientation bins

        Returns:
            Dict with all morphology metrics
        """
        nx_graph = graph.graph
        pos = graph.positions

        # Node metrics
        node_density = MorphologyMetrics.compute_node_density(nx_graph, world_dimensions)
        degree_dist = MorphologyMetrics.compute_degree_distribution(nx_graph)
        dead_end_ratio = MorphologyMetrics.compute_dead_end_ratio(nx_graph)

        # Edge metrics
        segment_lengths = MorphologyMetrics.compute_segment_lengths(nx_graph, pos)

        # Orientation
        bin_edges, orientation_counts = MorphologyMetrics.compute_orientation_histogram(
            nx_graph, pos, num_orientation_bins
        )
        orientation_entropy = MorphologyMetrics.compute_orientation_entropy(orientation_counts)

        return {
            "node_density": node_density,
            "degree_distribution": degree_dist,
            "dead_end_ratio": dead_end_ratio,
            "segment_lengths": segment_lengths,
            "segment_length_stats": {
                "mean": float(np.mean(segment_lengths)) if segment_lengths else 0,
                "median": float(np.median(segment_lengths)) if segment_lengths else 0,
                "std": float(np.std(segment_lengths)) if segment_lengths else 0,
            },
            "orientation_histogram": {
                "bin_edges": bin_edges.tolist(),
                "counts": orientation_counts.tolist(),
                "entropy": orientation_entropy,
            },
            "polygons": MorphologyMetrics.compute_polygon_stats(polygons or []),
        }
