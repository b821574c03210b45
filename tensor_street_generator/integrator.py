"""
Numerical integration of streamlines through a tensor field.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .config import StreamlineParams
from .tensor_field import TensorField
from .vector import Vector2


def _aligned(direction: Vector2, reference: Optional[Vector2]) -> Vector2:
    """Pick the sign of an undirected direction that continues along reference."""
    if reference is not None and direction.dot(reference) < 0:
        return -direction
    return direction


class FieldIntegrator(ABC):
    """Advances points along the major or minor direction of a field."""

    def __init__(self, field: TensorField, params: StreamlineParams):
        self.field = field
        self.params = params

    @abstractmethod
    def integrate(
        self,
        point: Vector2,
        major: bool,
        previous_direction: Optional[Vector2] = None
    ) -> Vector2:
        """
        One integration step from point.

        Args:
            point: Start point
            major: Follow the major (True) or minor (False) direction
            previous_direction: Direction of the previous step, used to pick
                the sign of the undirected field direction

        Returns:
            Displacement of length ~dstep, or the zero vector if the field is
            degenerate anywhere the step samples it
        """

    def sample_field_vector(self, point: Vector2, major: bool) -> Vector2:
        tensor = self.field.sample(point)
        if major:
            return tensor.major()
        return tensor.minor()

    def on_land(self, point: Vector2) -> bool:
        return self.field.on_land(point)


class EulerIntegrator(FieldIntegrator):

    def integrate(self, point, major, previous_direction=None):
        direction = self.sample_field_vector(point, major)
        return _aligned(direction, previous_direction) * self.params.dstep


class RK4Integrator(FieldIntegrator):
    """Classical fourth order Runge-Kutta on the undirected field."""

    def integrate(self, point, major, previous_direction=None):
        h = self.params.dstep

        k1 = self.sample_field_vector(point, major)
        if k1 == Vector2.zero():
            return Vector2.zero()
        k1 = _aligned(k1, previous_direction)

        k2 = self.sample_field_vector(point + k1 * (h / 2), major)
        if k2 == Vector2.zero():
            return Vector2.zero()
        k2 = _aligned(k2, k1)

        k3 = self.sample_field_vector(point + k2 * (h / 2), major)
        if k3 == Vector2.zero():
            return Vector2.zero()
        k3 = _aligned(k3, k2)

        k4 = self.sample_field_vector(point + k3 * h, major)
        if k4 == Vector2.zero():
            return Vector2.zero()
        k4 = _aligned(k4, k3)

        return (k1 + k2 * 2 + k3 * 2 + k4) * (h / 6)
