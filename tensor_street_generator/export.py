"""
GeoJSON export of streamlines, street graph and polygons.
"""

from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Tuple

import geopandas as gpd
import structlog
from shapely.geometry import LineString, Point, Polygon

from .graph import Graph
from .utils import polygon_area
from .vector import Vector2

logger = structlog.get_logger()

LAYERS = ("streamlines", "nodes", "edges", "polygons")


def streamlines_to_gdf(streamlines: Sequence[Sequence[Vector2]]) -> gpd.GeoDataFrame:
    rows = [s for s in streamlines if len(s) >= 2]
    return gpd.GeoDataFrame(
        {
            "streamline_id": list(range(len(rows))),
            "num_points": [len(s) for s in rows],
        },
        geometry=[LineString([p.as_tuple() for p in s]) for s in rows],
    )


def graph_to_gdfs(graph: Graph) -> Tuple[gpd.GeoDataFrame, gpd.GeoDataFrame]:
    """
    Convert a street graph to node and edge GeoDataFrames.

    Returns:
        (nodes_gdf, edges_gdf)
    """
    pos = graph.positions
    nodes = sorted(pos)
    nodes_gdf = gpd.GeoDataFrame(
        {
            "node_id": nodes,
            "degree": [graph.degree(n) for n in nodes],
        },
        geometry=[Point(pos[n].as_tuple()) for n in nodes],
    )

    edges = sorted(tuple(sorted(e)) for e in graph.graph.edges())
    edges_gdf = gpd.GeoDataFrame(
        {
            "u": [u for u, _ in edges],
            "v": [v for _, v in edges],
            "length": [pos[u].distance_to(pos[v]) for u, v in edges],
        },
        geometry=[LineString([pos[u].as_tuple(), pos[v].as_tuple()]) for u, v in edges],
    )
    return nodes_gdf, edges_gdf


def polygons_to_gdf(polygons: Sequence[Sequence[Vector2]]) -> gpd.GeoDataFrame:
    rows = [p for p in polygons if len(p) >= 3]
    return gpd.GeoDataFrame(
        {
            "polygon_id": list(range(len(rows))),
            "area": [polygon_area(p) for p in rows],
        },
        geometry=[Polygon([v.as_tuple() for v in p]) for p in rows],
    )


def export_geojson(
    output_dir,
    prefix: str = "city",
    streamlines: Optional[Sequence[Sequence[Vector2]]] = None,
    graph: Optional[Graph] = None,
    polygons: Optional[Sequence[Sequence[Vector2]]] = None,
    layers: Optional[Iterable[str]] = None
) -> Dict[str, Path]:
    """
    Write the requested layers as <prefix>_<layer>.geojson files.

    Args:
        output_dir: Output directory (created if missing)
        prefix: File name prefix
        streamlines: Polylines for the streamlines layer
        graph: Street graph for the nodes and edges layers
        polygons: Polygons for the polygons layer
        layers: Layers to write (default: every layer with data)

    Returns:
        Dict mapping layer name -> written file
    """
    if layers is None:
        layers = [
            layer for layer, available in (
                ("streamlines", streamlines is not None),
                ("nodes", graph is not None),
                ("edges", graph is not None),
                ("polygons", polygons is not None),
            ) if available
        ]
    layers = list(layers)

    for layer in layers:
        if layer not in LAYERS:
            raise ValueError(f"Unknown layer: {layer}")

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    frames: Dict[str, gpd.GeoDataFrame] = {}
    if "streamlines" in layers:
        frames["streamlines"] = streamlines_to_gdf(_require(streamlines, "streamlines"))
    if "nodes" in layers or "edges" in layers:
        nodes_gdf, edges_gdf = graph_to_gdfs(_require(graph, "graph"))
        frames["nodes"] = nodes_gdf
        frames["edges"] = edges_gdf
    if "polygons" in layers:
        frames["polygons"] = polygons_to_gdf(_require(polygons, "polygons"))

    written = {}
    for layer in layers:
        path = output_path / f"{prefix}_{layer}.geojson"
        frames[layer].to_file(path, driver="GeoJSON")
        written[layer] = path
        logger.info("Exported layer", layer=layer, features=len(frames[layer]), path=str(path))
    return written


def _require(value, name: str):
    if value is None:
        raise ValueError(f"Layer needs {name}, none given")
    return value
