#!/usr/bin/env python3
"""
Example script for generating a city street layout.

Usage:
    python generate_city.py --output ./output_city --seed 7
    python generate_city.py --config custom_config.json
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from tensor_street_generator import (
    CityConfig,
    Graph,
    MorphologyMetrics,
    TensorField,
    Vector2,
    build_city_pipeline,
    export_geojson,
)


def build_field(config: CityConfig) -> TensorField:
    """Two street grids meeting around a radial centre."""
    width, height = config.world_width, config.world_height
    field = TensorField(config.noise, noise_seed=config.seed or 0)
    field.add_grid(Vector2(width * 0.25, height * 0.3), width * 0.6, 10.0, 0.2)
    field.add_grid(Vector2(width * 0.75, height * 0.7), width * 0.6, 10.0, 1.1)
    field.add_radial(Vector2(width * 0.5, height * 0.5), width * 0.3, 15.0)
    return field


def main():
    parser = argparse.ArgumentParser(
        description="Generate a street layout from a tensor field"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config JSON (optional)"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="./outputs",
        help="Output directory"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (overrides the config)"
    )

    args = parser.parse_args()

    # Load configuration
    if args.config:
        print(f"Loading config from {args.config}")
        config = CityConfig.from_json(args.config)
    else:
        print("Using default configuration")
        config = CityConfig()
    if args.seed is not None:
        config.seed = args.seed

    print(f"\n{'='*60}")
    print("Tensor Street Generator")
    print(f"{'='*60}")
    print(f"World: {config.world_width:.0f}m x {config.world_height:.0f}m")
    print(f"Seed: {config.seed}")
    print(f"Output: {args.output}")
    print(f"{'='*60}\n")

    print("Step 1: Building tensor field...")
    field = build_field(config)
    print(f"✓ {len(field.basis_fields)} basis fields\n")

    print("Step 2: Generating roads, parks and blocks...")
    print("-" * 60)
    dimensions = Vector2(config.world_width, config.world_height)
    pipeline = build_city_pipeline(
        field,
        Vector2.zero(),
        dimensions,
        main_params=config.main,
        major_params=config.major,
        minor_params=config.minor,
        park_params=config.parks,
        block_params=config.blocks,
        num_parks=config.num_parks,
        seed=config.seed,
    )
    outputs = pipeline.run()

    streamlines = []
    for layer in ("main", "major", "minor"):
        layer_streamlines = outputs[layer].all_streamlines_simple
        print(f"  - {layer.capitalize()} roads: {len(layer_streamlines)}")
        streamlines.extend(layer_streamlines)
    blocks = outputs["blocks"]
    print(f"  - Parks: {len(outputs['parks']['parks'])}")
    print(f"  - Blocks: {len(blocks)}")
    print("-" * 60)
    print()

    print("Step 3: Computing metrics and exporting results...")
    graph = Graph(streamlines, config.minor.dstep)
    morph = MorphologyMetrics.compute_all_morphology(graph, dimensions, blocks)
    print(f"  - Nodes: {graph.graph.number_of_nodes()}")
    print(f"  - Edges: {graph.graph.number_of_edges()}")
    print(f"  - Node density: {morph['node_density']:.2f} nodes/km²")
    print(f"  - Dead-end ratio: {morph['dead_end_ratio']:.3f}")
    print(f"  - Orientation entropy: {morph['orientation_histogram']['entropy']:.3f}")

    output_dir = Path(args.output)
    written = export_geojson(
        output_dir,
        prefix="city",
        streamlines=streamlines,
        graph=graph,
        polygons=blocks,
    )
    config.to_json(str(output_dir / "city_config.json"))

    print(f"\n{'='*60}")
    print("✓ All done!")
    print(f"{'='*60}")
    print(f"\nResults saved to: {output_dir}/")
    for path in written.values():
        print(f"  - {path.name}")
    print("  - city_config.json")
    print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
