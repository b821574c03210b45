"""
Tensor field built from weighted basis fields, with water and park geometry.
"""

import math
from typing import List, Optional, Sequence

from noise import snoise2
from shapely.geometry import Point, Polygon
from shapely.prepared import prep

from .basis_field import BasisField, BoundaryField, GridField, RadialField
from .config import NoiseParams
from .tensor import DirectionTensor
from .vector import Vector2


def _prepared(polygon: Sequence[Vector2]):
    if len(polygon) < 3:
        return None
    return prep(Polygon([p.as_tuple() for p in polygon]))


class TensorField:
    """
    Samples a DirectionTensor anywhere in the plane.

    Sea and river polygons are not land: sampling there gives the degenerate
    tensor, which stops integration. Parks add rotational noise.
    """

    def __init__(self, noise_params: Optional[NoiseParams] = None, noise_seed: int = 0):
        self.noise_params = noise_params or NoiseParams()
        self.noise_seed = noise_seed
        self.basis_fields: List[BasisField] = []
        self.ignore_river = False
        self.smooth = False

        self._parks: List[List[Vector2]] = []
        self._sea: List[Vector2] = []
        self._river: List[Vector2] = []
        self._park_shapes = []
        self._sea_shape = None
        self._river_shape = None

    @property
    def parks(self) -> List[List[Vector2]]:
        return self._parks

    @parks.setter
    def parks(self, polygons: Sequence[Sequence[Vector2]]):
        self._parks = [list(p) for p in polygons]
        self._park_shapes = [s for s in map(_prepared, self._parks) if s is not None]

    @property
    def sea(self) -> List[Vector2]:
        return self._sea

    @sea.setter
    def sea(self, polygon: Sequence[Vector2]):
        self._sea = list(polygon)
        self._sea_shape = _prepared(self._sea)

    @property
    def river(self) -> List[Vector2]:
        return self._river

    @river.setter
    def river(self, polygon: Sequence[Vector2]):
        self._river = list(polygon)
        self._river_shape = _prepared(self._river)

    def enable_global_noise(self, angle: float, size: float):
        self.noise_params.global_noise = True
        self.noise_params.noise_angle_global = angle
        self.noise_params.noise_size_global = size

    def disable_global_noise(self):
        self.noise_params.global_noise = False

    def add_grid(self, centre: Vector2, size: float, decay: float, theta: float) -> GridField:
        return self.add_field(GridField(centre, size, decay, theta))

    def add_radial(self, centre: Vector2, size: float, decay: float) -> RadialField:
        return self.add_field(RadialField(centre, size, decay))

    def add_boundary(
        self,
        polyline: Sequence[Vector2],
        size: float,
        decay: float,
        kind: str = "coast"
    ) -> BoundaryField:
        return self.add_field(BoundaryField(polyline, size, decay, kind))

    def add_field(self, field: BasisField) -> BasisField:
        self.basis_fields.append(field)
        return field

    def remove_field(self, field: BasisField):
        self.basis_fields.remove(field)

    def reset(self):
        self.basis_fields = []
        self.parks = []
        self.sea = []
        self.river = []

    def centre_points(self) -> List[Vector2]:
        return [field.centre for field in self.basis_fields]

    def active_fields(self) -> List[BasisField]:
        if not self.ignore_river:
            return list(self.basis_fields)
        return [f for f in self.basis_fields if f.boundary_kind != "river"]

    def sample(self, point: Vector2) -> DirectionTensor:
        """Combined tensor of all active basis fields at point."""
        if not self.on_land(point):
            return DirectionTensor.zero()

        # Default field is a grid
        if not self.basis_fields:
            return DirectionTensor(1.0, (1.0, 0.0))

        tensor = DirectionTensor.zero()
        for field in self.active_fields():
            tensor.combine(field.get_weighted_tensor(point, self.smooth))

        if self.in_parks(point):
            tensor.rotate(self.get_rotational_noise(
                point, self.noise_params.noise_size_park, self.noise_params.noise_angle_park))

        if self.noise_params.global_noise:
            tensor.rotate(self.get_rotational_noise(
                point, self.noise_params.noise_size_global, self.noise_params.noise_angle_global))

        return tensor

    def get_rotational_noise(self, point: Vector2, noise_size: float, noise_angle: float) -> float:
        """Noise rotation in radians; noise_angle is in degrees."""
        value = snoise2(point.x / noise_size, point.y / noise_size, base=self.noise_seed)
        return value * math.radians(noise_angle)

    def on_land(self, point: Vector2) -> bool:
        p = Point(point.x, point.y)
        if self._sea_shape is not None and self._sea_shape.contains(p):
            return False
        if self.ignore_river or self._river_shape is None:
            return True
        return not self._river_shape.contains(p)

    def in_parks(self, point: Vector2) -> bool:
        if not self._park_shapes:
            return False
        p = Point(point.x, point.y)
        return any(shape.contains(p) for shape in self._park_shapes)
