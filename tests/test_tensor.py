"""Tests for vectors, direction tensors and basis fields."""

import math

import pytest

from tensor_street_generator.basis_field import BoundaryField, GridField, RadialField
from tensor_street_generator.tensor import DirectionTensor
from tensor_street_generator.vector import Vector2


class TestVector2:
    """Test vector helpers."""

    def test_arithmetic(self):
        a = Vector2(1.0, 2.0)
        b = Vector2(3.0, -1.0)
        assert a + b == Vector2(4.0, 1.0)
        assert a - b == Vector2(-2.0, 3.0)
        assert 2 * a == Vector2(2.0, 4.0)
        assert a.dot(b) == pytest.approx(1.0)
        assert a.cross(b) == pytest.approx(-7.0)

    def test_angle_between_is_signed(self):
        x = Vector2(1.0, 0.0)
        y = Vector2(0.0, 1.0)
        assert Vector2.angle_between(x, y) == pytest.approx(math.pi / 2)
        assert Vector2.angle_between(y, x) == pytest.approx(-math.pi / 2)

    def test_normalizing_zero_vector(self):
        assert Vector2.zero().normalized() == Vector2.zero()
        assert Vector2(3.0, 4.0).set_length(10.0) == Vector2(6.0, 8.0)


class TestDirectionTensor:
    """Test the doubled-angle tensor."""

    @pytest.mark.parametrize("theta", [0.0, 0.3, 1.2, math.pi / 2, 2.9])
    def test_theta_round_trip(self, theta):
        assert DirectionTensor.from_angle(theta).theta() == pytest.approx(theta % math.pi)

    def test_theta_is_undirected(self):
        t = DirectionTensor.from_angle(0.4 + math.pi)
        assert t.theta() == pytest.approx(0.4)
        assert 0 <= t.theta() < math.pi

    @pytest.mark.parametrize("theta", [0.0, 0.7, 2.0])
    def test_major_minor_perpendicular(self, theta):
        t = DirectionTensor.from_angle(theta)
        major, minor = t.major(), t.minor()
        assert major.dot(minor) == pytest.approx(0.0, abs=1e-12)
        assert major.length() == pytest.approx(1.0)
        assert minor.length() == pytest.approx(1.0)

    def test_degenerate_tensor_has_no_directions(self):
        t = DirectionTensor.zero()
        assert t.major() == Vector2.zero()
        assert t.minor() == Vector2.zero()

    def test_from_vector(self):
        t = DirectionTensor.from_vector(Vector2(0.0, -2.0))
        assert t.theta() == pytest.approx(math.pi / 2)
        assert DirectionTensor.from_vector(Vector2.zero()).r == 0

    def test_combine_is_commutative(self):
        a = DirectionTensor.from_angle(0.2, 2.0)
        b = DirectionTensor.from_angle(1.1, 0.5)
        ab = a.copy().combine(b)
        ba = b.copy().combine(a)
        assert ab.matrix == pytest.approx(ba.matrix)
        assert ab.r == pytest.approx(ba.r)

    def test_antipodal_angles_reinforce(self):
        t = DirectionTensor.from_angle(0.3).combine(DirectionTensor.from_angle(0.3 + math.pi))
        assert t.theta() == pytest.approx(0.3)
        assert t.r == pytest.approx(2.0)

    def test_zero_magnitude_ignores_stored_pair(self):
        t = DirectionTensor(0.0, (0.5, -0.5))
        assert t.major() == Vector2.zero()
        assert t.minor() == Vector2.zero()

    def test_perpendicular_tensors_cancel(self):
        t = DirectionTensor.from_angle(0.3).combine(DirectionTensor.from_angle(0.3 + math.pi / 2))
        assert t.r == pytest.approx(0.0, abs=1e-12)

    def test_combine_skips_degenerate(self):
        t = DirectionTensor.from_angle(0.6).combine(DirectionTensor.zero())
        assert t.theta() == pytest.approx(0.6)
        assert t.r == pytest.approx(1.0)

    def test_combine_refreshes_theta(self):
        t = DirectionTensor.from_angle(0.1)
        assert t.theta() == pytest.approx(0.1)
        t.combine(DirectionTensor.from_angle(0.5, 10.0))
        assert t.theta() > 0.4

    def test_scale(self):
        t = DirectionTensor.from_angle(0.8).scale(3.0)
        assert t.r == pytest.approx(3.0)
        assert t.theta() == pytest.approx(0.8)

    def test_rotate_zero_is_exact_noop(self):
        t = DirectionTensor.from_angle(1.3, 2.0)
        before = t.matrix
        t.rotate(0.0)
        assert t.matrix == before

    @pytest.mark.parametrize("delta", [0.4, -0.4, 2.5, -3.0])
    def test_rotate_and_back(self, delta):
        t = DirectionTensor.from_angle(0.9)
        t.rotate(delta).rotate(-delta)
        assert t.theta() == pytest.approx(0.9)

    def test_rotate_wraps_into_range(self):
        t = DirectionTensor.from_angle(3.0).rotate(0.5)
        assert t.theta() == pytest.approx(3.5 - math.pi)
        assert DirectionTensor.from_angle(0.5).rotate(7.0).theta() == pytest.approx((7.5) % math.pi)


class TestBasisFields:
    """Test basis field tensors and weights."""

    def test_grid_field_constant(self):
        field = GridField(Vector2(0.0, 0.0), 100.0, 1.0, 0.25)
        assert field.get_tensor(Vector2(40.0, -10.0)).theta() == pytest.approx(0.25)

    def test_weight_falls_off(self):
        field = GridField(Vector2(0.0, 0.0), 100.0, 1.0, 0.0)
        assert field.get_tensor_weight(Vector2(0.0, 0.0)) == pytest.approx(1.0)
        assert field.get_tensor_weight(Vector2(50.0, 0.0)) == pytest.approx(0.5)
        assert field.get_tensor_weight(Vector2(150.0, 0.0)) == 0.0

    def test_zero_decay_has_limited_range(self):
        field = GridField(Vector2(0.0, 0.0), 10.0, 0.0, 0.0)
        assert field.get_tensor_weight(Vector2(5.0, 0.0)) == pytest.approx(1.0)
        assert field.get_tensor_weight(Vector2(20.0, 0.0)) == 0.0

    def test_radial_field_is_tangent(self):
        field = RadialField(Vector2(0.0, 0.0), 100.0, 1.0)
        major = field.get_tensor(Vector2(10.0, 0.0)).major()
        assert abs(major.y) == pytest.approx(1.0)

    def test_boundary_field_follows_line(self):
        field = BoundaryField([Vector2(0.0, 0.0), Vector2(100.0, 100.0)], 50.0, 1.0)
        tensor = field.get_tensor(Vector2(40.0, 60.0))
        assert tensor.theta() == pytest.approx(math.pi / 4)
        assert field.distance_to(Vector2(0.0, 10.0)) == pytest.approx(10.0 / math.sqrt(2))

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            GridField(Vector2(0.0, 0.0), 0.0, 1.0, 0.0)
