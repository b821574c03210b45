"""Shared fixtures."""

import pytest

from tensor_street_generator.config import StreamlineParams
from tensor_street_generator.tensor_field import TensorField
from tensor_street_generator.vector import Vector2


@pytest.fixture
def constant_field():
    """Field with no basis fields: major direction is +x everywhere."""
    return TensorField()


@pytest.fixture
def small_params():
    return StreamlineParams(dsep=20.0, dtest=15.0, dstep=1.0, collide_early=0.0)


@pytest.fixture
def origin():
    return Vector2(0.0, 0.0)


@pytest.fixture
def dimensions():
    return Vector2(100.0, 100.0)
