"""
Phase pipeline wiring road layers, parks and blocks together.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

import numpy as np
import structlog

from .config import PolygonParams, StreamlineParams
from .graph import Graph
from .integrator import RK4Integrator
from .polygon_finder import PolygonFinder
from .streamlines import StreamlineGenerator
from .tensor_field import TensorField
from .vector import Vector2

logger = structlog.get_logger()

PhaseFunction = Callable[[Mapping[str, Any]], Any]


@dataclass
class Phase:
    name: str
    run: PhaseFunction


class PhasePipeline:
    """
    Ordered named phases. A phase gets a read-only view of the outputs of
    the phases before it and returns its own output.
    """

    def __init__(self):
        self.phases: List[Phase] = []

    def add_phase(self, name: str, run: PhaseFunction) -> "PhasePipeline":
        if any(phase.name == name for phase in self.phases):
            raise ValueError(f"Duplicate phase name: {name}")
        self.phases.append(Phase(name, run))
        return self

    @property
    def phase_names(self) -> List[str]:
        return [phase.name for phase in self.phases]

    def run(self, until: Optional[str] = None) -> Dict[str, Any]:
        """
        Run phases in order.

        Args:
            until: Name of the last phase to run (default: all)

        Returns:
            Dict mapping phase name -> output
        """
        if until is not None and until not in self.phase_names:
            raise KeyError(f"Unknown phase: {until}")

        outputs: Dict[str, Any] = {}
        for phase in self.phases:
            logger.info("Running phase", phase=phase.name)
            outputs[phase.name] = phase.run(MappingProxyType(dict(outputs)))
            if phase.name == until:
                break
        return outputs


def build_city_pipeline(
    field: TensorField,
    origin: Vector2,
    world_dimensions: Vector2,
    main_params: Optional[StreamlineParams] = None,
    major_params: Optional[StreamlineParams] = None,
    minor_params: Optional[StreamlineParams] = None,
    park_params: Optional[PolygonParams] = None,
    block_params: Optional[PolygonParams] = None,
    num_parks: int = 2,
    seed: Optional[int] = None
) -> PhasePipeline:
    """
    Main roads, major roads, parks, minor roads, then blocks.

    Main and major roads ignore the river; parks are cut from the faces of
    the main and major road graph and written into the field before minor
    roads are traced.
    """
    main_params = main_params or StreamlineParams.main()
    major_params = major_params or StreamlineParams.major()
    minor_params = minor_params or StreamlineParams.minor()
    park_params = park_params or PolygonParams.parks()
    block_params = block_params or PolygonParams.blocks()

    rng = np.random.default_rng(seed)
    integrator = RK4Integrator(field, minor_params)

    def make_generator(params: StreamlineParams) -> StreamlineGenerator:
        return StreamlineGenerator(
            integrator, origin, world_dimensions, params,
            seed=int(rng.integers(2 ** 32)),
        )

    def ignore_river():
        field.parks = []
        field.ignore_river = True

    def restore_river():
        field.ignore_river = False

    main = make_generator(main_params)
    major = make_generator(major_params)
    minor = make_generator(minor_params)
    for generator in (main, major):
        generator.add_before_generate(ignore_river)
        generator.add_after_generate(restore_river)
    major.set_existing_streamlines([main])
    minor.set_existing_streamlines([main, major])

    def run_layer(generator: StreamlineGenerator) -> PhaseFunction:
        def run(_outputs: Mapping[str, Any]) -> StreamlineGenerator:
            generator.create_all_streamlines()
            return generator
        return run

    def find_parks(outputs: Mapping[str, Any]) -> Dict[str, Any]:
        streamlines = outputs["major"].all_streamlines_simple + outputs["main"].all_streamlines_simple
        graph = Graph(streamlines, minor_params.dstep)
        finder = PolygonFinder(graph, park_params, field)
        finder.find_polygons()
        polygons = finder.polygons

        if len(polygons) > num_parks:
            start = int(rng.integers(len(polygons) - num_parks))
            parks = polygons[start:start + num_parks]
        else:
            parks = list(polygons)

        field.parks = parks
        return {"parks": parks, "intersections": graph.intersections}

    def find_blocks(outputs: Mapping[str, Any]) -> List[List[Vector2]]:
        streamlines = []
        for name in ("main", "major", "minor"):
            streamlines.extend(outputs[name].all_streamlines_simple)
        graph = Graph(streamlines, minor_params.dstep, delete_dangling=True)
        finder = PolygonFinder(graph, block_params, field)
        finder.find_polygons()
        finder.shrink()
        return finder.polygons

    pipeline = PhasePipeline()
    pipeline.add_phase("main", run_layer(main))
    pipeline.add_phase("major", run_layer(major))
    pipeline.add_phase("parks", find_parks)
    pipeline.add_phase("minor", run_layer(minor))
    pipeline.add_phase("blocks", find_blocks)
    return pipeline
