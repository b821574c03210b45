"""
Tensor Street Generator

Procedural street layouts traced as hyperstreamlines of a 2D tensor field,
turned into a planar graph whose faces become city blocks and parks.
"""

__version__ = "0.1.0"

from .config import CityConfig, NoiseParams, PolygonParams, StreamlineParams
from .export import export_geojson
from .graph import Graph
from .integrator import EulerIntegrator, RK4Integrator
from .metrics import MorphologyMetrics
from .pipeline import PhasePipeline, build_city_pipeline
from .polygon_finder import PolygonFinder
from .scheduling import WorkDriver
from .streamlines import StreamlineGenerator
from .tensor import DirectionTensor
from .tensor_field import TensorField
from .vector import Vector2

__all__ = [
    "CityConfig",
    "DirectionTensor",
    "EulerIntegrator",
    "Graph",
    "MorphologyMetrics",
    "NoiseParams",
    "PhasePipeline",
    "PolygonFinder",
    "PolygonParams",
    "RK4Integrator",
    "StreamlineGenerator",
    "StreamlineParams",
    "TensorField",
    "Vector2",
    "WorkDriver",
    "build_city_pipeline",
    "export_geojson",
]
