"""
Tensor field contributors.

Each basis field produces a tensor at any point, weighted by how far the
point is from the field's centre.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from shapely.geometry import LineString, Point

from .tensor import DirectionTensor
from .vector import Vector2


class BasisField(ABC):
    """Weighted tensor contributor centred on a point."""

    # Boundary fields are the ones a TensorField may exclude (see ignore_river)
    boundary_kind = None

    def __init__(self, centre: Vector2, size: float, decay: float):
        """
        Args:
            centre: Field centre
            size: Radius of influence
            decay: Exponent of the weight falloff
        """
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        if decay < 0:
            raise ValueError(f"decay must be non-negative, got {decay}")
        self.centre = centre
        self.size = size
        self.decay = decay

    @abstractmethod
    def get_tensor(self, point: Vector2) -> DirectionTensor:
        """Unweighted tensor at point."""

    def get_weighted_tensor(self, point: Vector2, smooth: bool = False) -> DirectionTensor:
        return self.get_tensor(point).scale(self.get_tensor_weight(point, smooth))

    def distance_to(self, point: Vector2) -> float:
        return point.distance_to(self.centre)

    def get_tensor_weight(self, point: Vector2, smooth: bool = False) -> float:
        norm_distance = self.distance_to(point) / self.size
        if smooth:
            if norm_distance == 0:
                return 1.0
            return norm_distance ** -self.decay

        # decay 0 would otherwise give weight 1 over the whole plane
        if self.decay == 0 and norm_distance >= 1:
            return 0.0
        return max(0.0, 1 - norm_distance) ** self.decay


class GridField(BasisField):
    """Constant orientation theta (radians)."""

    def __init__(self, centre: Vector2, size: float, decay: float, theta: float):
        super().__init__(centre, size, decay)
        self.theta = theta

    def get_tensor(self, point: Vector2) -> DirectionTensor:
        return DirectionTensor.from_angle(self.theta)


class RadialField(BasisField):
    """Major direction tangent to circles around the centre."""

    def get_tensor(self, point: Vector2) -> DirectionTensor:
        offset = point - self.centre
        return DirectionTensor.from_vector(Vector2(-offset.y, offset.x))


class BoundaryField(BasisField):
    """
    Major direction parallel to the nearest segment of a boundary polyline,
    e.g. a coastline or a river bank. The weight falls off with distance to
    the polyline rather than to a single centre.
    """

    def __init__(self, polyline: Sequence[Vector2], size: float, decay: float, kind: str = "coast"):
        if len(polyline) < 2:
            raise ValueError("Boundary polyline needs at least 2 points")
        self.polyline = list(polyline)
        self.line = LineString([p.as_tuple() for p in self.polyline])
        centroid = self.line.centroid
        super().__init__(Vector2(centroid.x, centroid.y), size, decay)
        self.boundary_kind = kind

    def distance_to(self, point: Vector2) -> float:
        return self.line.distance(Point(point.x, point.y))

    def get_tensor(self, point: Vector2) -> DirectionTensor:
        along = self.line.project(Point(point.x, point.y))
        # Tangent from a short chord around the closest point
        delta = min(1.0, self.line.length / 2)
        start = self.line.interpolate(max(0.0, along - delta))
        end = self.line.interpolate(min(self.line.length, along + delta))
        return DirectionTensor.from_vector(Vector2(end.x - start.x, end.y - start.y))
