"""Tests for morphology metrics and GeoJSON export."""

import geopandas as gpd
import pytest

from tensor_street_generator.export import export_geojson
from tensor_street_generator.graph import Graph
from tensor_street_generator.metrics import MorphologyMetrics
from tensor_street_generator.vector import Vector2


@pytest.fixture
def cross_graph():
    return Graph(
        [
            [Vector2(-10.0, 0.0), Vector2(10.0, 0.0)],
            [Vector2(0.0, -10.0), Vector2(0.0, 10.0)],
        ],
        1.0,
    )


@pytest.fixture
def square():
    return [Vector2(0.0, 0.0), Vector2(0.0, 10.0), Vector2(10.0, 10.0), Vector2(10.0, 0.0)]


class TestMorphologyMetrics:
    """Test metrics of a simple crossing."""

    def test_all_morphology(self, cross_graph, square):
        morph = MorphologyMetrics.compute_all_morphology(
            cross_graph, Vector2(1000.0, 1000.0), [square]
        )
        assert morph["node_density"] == pytest.approx(5.0)
        assert morph["degree_distribution"] == {1: 4, 4: 1}
        assert morph["dead_end_ratio"] == pytest.approx(0.8)
        assert sorted(morph["segment_lengths"]) == pytest.approx([10.0] * 4)
        assert sum(morph["orientation_histogram"]["counts"]) == 4
        assert morph["orientation_histogram"]["entropy"] == pytest.approx(1.0)
        assert morph["polygons"]["count"] == 1
        assert morph["polygons"]["mean_area"] == pytest.approx(100.0)

    def test_empty_graph(self):
        graph = Graph([], 1.0)
        morph = MorphologyMetrics.compute_all_morphology(graph, Vector2(100.0, 100.0))
        assert morph["node_density"] == 0.0
        assert morph["dead_end_ratio"] == 0.0
        assert morph["orientation_histogram"]["entropy"] == 0.0
        assert morph["polygons"]["count"] == 0

    def test_invalid_domain(self, cross_graph):
        with pytest.raises(ValueError):
            MorphologyMetrics.compute_node_density(cross_graph.graph, Vector2(0.0, 100.0))


class TestExport:
    """Test GeoJSON layers."""

    def test_export_all_layers(self, tmp_path, cross_graph, square):
        streamlines = [[Vector2(-10.0, 0.0), Vector2(10.0, 0.0)]]
        written = export_geojson(
            tmp_path / "out",
            prefix="test",
            streamlines=streamlines,
            graph=cross_graph,
            polygons=[square],
        )
        assert set(written) == {"streamlines", "nodes", "edges", "polygons"}
        for path in written.values():
            assert path.exists()

        nodes = gpd.read_file(written["nodes"])
        assert len(nodes) == 5
        assert sorted(nodes["degree"]) == [1, 1, 1, 1, 4]

        edges = gpd.read_file(written["edges"])
        assert len(edges) == 4

        polygons = gpd.read_file(written["polygons"])
        assert polygons["area"].iloc[0] == pytest.approx(100.0)

    def test_selected_layers(self, tmp_path, cross_graph):
        written = export_geojson(tmp_path, graph=cross_graph, layers=["nodes"])
        assert list(written) == ["nodes"]
        assert written["nodes"].name == "city_nodes.geojson"

    def test_unknown_layer(self, tmp_path, cross_graph):
        with pytest.raises(ValueError):
            export_geojson(tmp_path, graph=cross_graph, layers=["buildings"])

    def test_missing_data(self, tmp_path):
        with pytest.raises(ValueError):
            export_geojson(tmp_path, layers=["polygons"])
