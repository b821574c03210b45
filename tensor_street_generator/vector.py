"""
2D vector math.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Vector2:
    """Immutable 2D point/vector."""
    x: float
    y: float

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vector2:
        return self * scalar

    def __truediv__(self, scalar: float) -> Vector2:
        return Vector2(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector2:
        return Vector2(-self.x, -self.y)

    def __iter__(self):
        yield self.x
        yield self.y

    def dot(self, other: Vector2) -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vector2) -> float:
        """2D cross product (returns scalar z-component)."""
        return self.x * other.y - self.y * other.x

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalized(self) -> Vector2:
        length = self.length()
        if length == 0:
            return Vector2.zero()
        return self / length

    def set_length(self, length: float) -> Vector2:
        return self.normalized() * length

    def distance_to(self, other: Vector2) -> float:
        return (other - self).length()

    def distance_to_squared(self, other: Vector2) -> float:
        return (other - self).length_squared()

    def angle(self) -> float:
        """Angle in radians from positive x-axis."""
        return math.atan2(self.y, self.x)

    def rotated(self, angle: float) -> Vector2:
        """Rotate vector by angle (radians)."""
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return Vector2(
            self.x * cos_a - self.y * sin_a,
            self.x * sin_a + self.y * cos_a
        )

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @staticmethod
    def from_angle(angle: float, length: float = 1.0) -> Vector2:
        """Create vector from angle (radians)."""
        return Vector2(math.cos(angle) * length, math.sin(angle) * length)

    @staticmethod
    def angle_between(v1: Vector2, v2: Vector2) -> float:
        """Signed angle from v1 to v2, in (-pi, pi]."""
        angle = v2.angle() - v1.angle()
        if angle > math.pi:
            angle -= 2 * math.pi
        elif angle <= -math.pi:
            angle += 2 * math.pi
        return angle

    @staticmethod
    def zero() -> Vector2:
        return Vector2(0.0, 0.0)
