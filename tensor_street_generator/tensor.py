"""
Undirected direction tensor.

An orientation theta in [0, pi) is stored with the doubled-angle encoding
(c, s) = r * (cos 2theta, sin 2theta), so theta and theta + pi map to the
same pair and tensors can be blended by plain addition.
"""

from __future__ import annotations

import math
from typing import Tuple

from .vector import Vector2


class DirectionTensor:
    """Orientation plus magnitude at a single point of a tensor field."""

    def __init__(self, r: float, matrix: Tuple[float, float]):
        """
        Args:
            r: Magnitude, r == 0 is the degenerate "no orientation" tensor
            matrix: Doubled-angle pair (c, s)
        """
        self.r = float(r)
        self.c = float(matrix[0])
        self.s = float(matrix[1])
        self._theta = 0.0
        self._theta_stale = True

    @classmethod
    def zero(cls) -> DirectionTensor:
        return cls(0.0, (0.0, 0.0))

    @classmethod
    def from_angle(cls, theta: float, r: float = 1.0) -> DirectionTensor:
        """Tensor whose major direction lies at angle theta (radians)."""
        return cls(r, (r * math.cos(2 * theta), r * math.sin(2 * theta)))

    @classmethod
    def from_vector(cls, vector: Vector2) -> DirectionTensor:
        """Unit tensor whose major direction is parallel to vector."""
        c = vector.x ** 2 - vector.y ** 2
        s = 2 * vector.x * vector.y
        norm = math.hypot(c, s)
        if norm == 0:
            return cls.zero()
        return cls(1.0, (c / norm, s / norm))

    @property
    def matrix(self) -> Tuple[float, float]:
        return (self.c, self.s)

    def theta(self) -> float:
        """Orientation in [0, pi), recomputed only when stale."""
        if self._theta_stale:
            self._theta = self._calculate_theta()
            self._theta_stale = False
        return self._theta

    def combine(self, other: DirectionTensor) -> DirectionTensor:
        """Blend other into this tensor by summing the doubled-angle pairs."""
        c = self.c if self.r != 0 else 0.0
        s = self.s if self.r != 0 else 0.0
        if other.r != 0:
            c += other.c
            s += other.s
        self.c = c
        self.s = s
        self.r = math.hypot(c, s)
        self._theta_stale = True
        return self

    def scale(self, factor: float) -> DirectionTensor:
        self.r *= factor
        self.c *= factor
        self.s *= factor
        self._theta_stale = True
        return self

    def rotate(self, delta: float) -> DirectionTensor:
        """Rotate the orientation by delta radians."""
        if delta == 0:
            return self

        new_theta = self.theta() + delta
        if new_theta < 0:
            new_theta += math.pi
        elif new_theta >= math.pi:
            new_theta -= math.pi
        if not 0 <= new_theta < math.pi:
            # |delta| >= pi needs more than one wrap
            new_theta %= math.pi

        self.c = self.r * math.cos(2 * new_theta)
        self.s = self.r * math.sin(2 * new_theta)
        self._theta = new_theta
        self._theta_stale = False
        return self

    def major(self) -> Vector2:
        if self.r == 0:
            return Vector2.zero()
        return Vector2.from_angle(self.theta())

    def minor(self) -> Vector2:
        if self.r == 0:
            return Vector2.zero()
        return Vector2.from_angle(self.theta() + math.pi / 2)

    def copy(self) -> DirectionTensor:
        return DirectionTensor(self.r, (self.c, self.s))

    def _calculate_theta(self) -> float:
        if self.r == 0:
            return 0.0
        theta = math.atan2(self.s / self.r, self.c / self.r) / 2
        # atan2 is in (-pi, pi], so theta is in (-pi/2, pi/2]
        if theta < 0:
            theta += math.pi
        return theta

    def __repr__(self) -> str:
        return f"DirectionTensor(r={self.r!r}, matrix=({self.c!r}, {self.s!r}))"
