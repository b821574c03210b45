"""Tests for the street graph and polygon extraction."""

import pytest

from tensor_street_generator.config import PolygonParams
from tensor_street_generator.graph import Graph
from tensor_street_generator.polygon_finder import PolygonFinder
from tensor_street_generator.tensor_field import TensorField
from tensor_street_generator.utils import aspect_ratio, polygon_area, segment_intersection
from tensor_street_generator.vector import Vector2


def line(*coords):
    return [Vector2(float(x), float(y)) for x, y in coords]


@pytest.fixture
def cross():
    return [line((-10, 0), (10, 0)), line((0, -10), (0, 10))]


@pytest.fixture
def grid_lines():
    """Three horizontal and three vertical roads, 10 apart."""
    streamlines = []
    for c in (0, 10, 20):
        streamlines.append(line((c, -5), (c, 25)))
        streamlines.append(line((-5, c), (25, c)))
    return streamlines


def edge_set(graph):
    pos = graph.positions
    return {
        tuple(sorted([pos[u].as_tuple(), pos[v].as_tuple()]))
        for u, v in graph.graph.edges()
    }


class TestSegmentIntersection:
    """Test the segment intersection helper."""

    def test_crossing(self):
        point, t, u = segment_intersection(*line((0, 0), (2, 2), (0, 2), (2, 0)))
        assert point == Vector2(1.0, 1.0)
        assert t == pytest.approx(0.5)
        assert u == pytest.approx(0.5)

    def test_parallel_and_disjoint(self):
        assert segment_intersection(*line((0, 0), (1, 0), (0, 1), (1, 1))) is None
        assert segment_intersection(*line((0, 0), (1, 0), (2, -1), (2, 1))) is None


class TestGraph:
    """Test graph construction."""

    def test_single_crossing(self, cross):
        graph = Graph(cross, 1.0)
        assert graph.intersections == [Vector2(0.0, 0.0)]
        centre = graph.find_node(Vector2(0.0, 0.0))
        assert centre is not None
        assert graph.degree(centre) == 4
        assert graph.graph.number_of_nodes() == 5
        assert graph.graph.number_of_edges() == 4

    def test_intersections_are_graph_nodes(self):
        streamlines = [
            line((-10, 0), (10, 0)),
            line((0, -10), (0, 10)),
            line((0.4, -10), (0.4, 10)),
            line((0.6, -10), (0.6, 10)),
        ]
        graph = Graph(streamlines, 1.0)
        # (0, 0) and (0.4, 0) merge, then (0.6, 0) snaps onto their node
        assert len(graph.intersections) == 1
        positions = set(graph.positions.values())
        assert all(v in positions for v in graph.intersections)

    def test_every_vertex_is_a_node(self):
        graph = Graph([line((0, 0), (5, 1), (10, 0))], 1.0)
        assert graph.graph.number_of_nodes() == 3
        middle = graph.find_node(Vector2(5.0, 1.0))
        assert graph.degree(middle) == 2

    def test_no_self_crossing_between_neighbouring_segments(self):
        graph = Graph([line((0, 0), (10, 0), (10, 10))], 1.0)
        assert graph.intersections == []

    def test_t_junction(self):
        graph = Graph([line((0, 0), (20, 0)), line((10, 0), (10, 10))], 1.0)
        junction = graph.find_node(Vector2(10.0, 0.0))
        assert graph.degree(junction) == 3

    def test_order_independent(self):
        streamlines = [
            line((0, 0), (30, 10), (60, 0)),
            line((5, -10), (25, 30)),
            line((40, -5), (45, 20), (50, 40)),
            line((-5, 25), (70, 26)),
        ]
        forward = Graph(streamlines, 1.0)
        backward = Graph(list(reversed([list(reversed(s)) for s in streamlines])), 1.0)

        assert forward.intersections == backward.intersections
        assert sorted(p.as_tuple() for p in forward.positions.values()) == \
            sorted(p.as_tuple() for p in backward.positions.values())
        assert edge_set(forward) == edge_set(backward)

    def test_delete_dangling(self, grid_lines):
        graph = Graph(grid_lines, 1.0, delete_dangling=True)
        assert min(graph.degree(n) for n in graph.nodes) >= 2
        assert graph.graph.number_of_nodes() == 9

    def test_close_crossings_merge(self):
        streamlines = [line((-10, 0), (10, 0)), line((0, -10), (0, 10)), line((-10, 0.3), (10, 0.1))]
        graph = Graph(streamlines, 1.0)
        assert len(graph.intersections) == 1

    def test_invalid_dstep(self, cross):
        with pytest.raises(ValueError):
            Graph(cross, 0.0)


class TestPolygonFinder:
    """Test face extraction."""

    @pytest.fixture
    def params(self):
        return PolygonParams(max_length=20, min_area=50.0, shrink_spacing=1.0, max_aspect_ratio=5.0)

    def test_grid_faces(self, grid_lines, params):
        finder = PolygonFinder(Graph(grid_lines, 1.0), params)
        finder.find_polygons()
        assert len(finder.polygons) == 4
        for polygon in finder.polygons:
            assert len(polygon) == 4
            assert polygon_area(polygon) == pytest.approx(100.0)

    def test_min_area_filter(self, grid_lines, params):
        params.min_area = 150.0
        finder = PolygonFinder(Graph(grid_lines, 1.0), params)
        finder.find_polygons()
        assert finder.polygons == []

    def test_aspect_ratio_filter(self, params):
        streamlines = [
            line((-5, 0), (65, 0)),
            line((-5, 5), (65, 5)),
            line((0, -5), (0, 10)),
            line((60, -5), (60, 10)),
        ]
        finder = PolygonFinder(Graph(streamlines, 1.0), params)
        finder.find_polygons()
        assert finder.polygons == []

        params.max_aspect_ratio = 20.0
        finder = PolygonFinder(Graph(streamlines, 1.0), params)
        finder.find_polygons()
        assert len(finder.polygons) == 1

    def test_max_length(self, grid_lines, params):
        params.max_length = 4
        finder = PolygonFinder(Graph(grid_lines, 1.0), params)
        finder.find_polygons()
        assert finder.polygons == []

    def test_shrink(self, grid_lines, params):
        finder = PolygonFinder(Graph(grid_lines, 1.0), params)
        finder.find_polygons()
        finder.shrink()
        assert len(finder.polygons) == 4
        for polygon in finder.polygons:
            assert polygon_area(polygon) == pytest.approx(64.0)
            assert aspect_ratio(polygon) == pytest.approx(1.0)

    def test_shrink_respects_filters(self, grid_lines, params):
        params.min_area = 80.0
        finder = PolygonFinder(Graph(grid_lines, 1.0), params)
        finder.find_polygons()
        finder.shrink()
        # Every shrunk block is too small, so the unshrunk ones remain
        assert len(finder.polygons) == 4
        assert all(polygon_area(p) == pytest.approx(100.0) for p in finder.polygons)

    def test_animated_shrink(self, grid_lines, params):
        finder = PolygonFinder(Graph(grid_lines, 1.0), params)
        finder.find_polygons()
        finder.shrink(animate=True)
        steps = 1
        while finder.update():
            steps += 1
        assert steps == 4
        assert len(finder.polygons) == 4

    def test_polygons_in_water_dropped(self, grid_lines, params):
        field = TensorField()
        field.sea = line((-1, -1), (11, -1), (11, 11), (-1, 11))
        finder = PolygonFinder(Graph(grid_lines, 1.0), params, field)
        finder.find_polygons()
        assert len(finder.polygons) == 3

    def test_empty_graph(self, params):
        finder = PolygonFinder(Graph([], 1.0), params)
        finder.find_polygons()
        assert finder.polygons == []
