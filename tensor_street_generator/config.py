"""
Configuration management for streamline and polygon generation.
"""

import json
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Optional

import structlog

logger = structlog.get_logger()


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


def _require_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


class _JsonMixin:
    """JSON load/save shared by the parameter dataclasses."""

    @classmethod
    def from_dict(cls, data: dict):
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(
                f"Unknown {cls.__name__} fields: {', '.join(sorted(unknown))}"
            )
        return cls(**data)

    @classmethod
    def from_json(cls, filepath: str):
        """Load parameters from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self, filepath: str) -> None:
        """Save parameters to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


@dataclass
class StreamlineParams(_JsonMixin):
    """Parameters for one density layer of streamlines (one road class)."""

    # Seed separating distance
    dsep: float = 20.0
    # Integration separating distance, never larger than dsep
    dtest: float = 15.0
    # Integration step size
    dstep: float = 1.0
    # How far ahead of a dangling end to look for a join
    dlookahead: float = 40.0
    # Distance at which the two integration fronts are joined into a circle
    dcirclejoin: float = 5.0
    # Max angle (radians) between a dangling end and its join target
    joinangle: float = 0.1
    # Integration iteration limit per streamline
    path_iterations: int = 1000
    # Max failed seed samples
    seed_tries: int = 300
    simplify_tolerance: float = 0.5
    # Chance [0, 1] that a trace also collides with the perpendicular streamlines
    collide_early: float = 0.7

    def __post_init__(self):
        _require_positive("dsep", self.dsep)
        _require_positive("dtest", self.dtest)
        _require_positive("dstep", self.dstep)
        _require_non_negative("dlookahead", self.dlookahead)
        _require_non_negative("dcirclejoin", self.dcirclejoin)
        _require_non_negative("joinangle", self.joinangle)
        _require_non_negative("simplify_tolerance", self.simplify_tolerance)

        if self.dstep > self.dsep:
            raise ValueError(
                f"dstep ({self.dstep}) must not exceed dsep ({self.dsep})"
            )
        if int(self.path_iterations) != self.path_iterations or self.path_iterations < 1:
            raise ValueError(
                f"path_iterations must be a positive integer, got {self.path_iterations}"
            )
        if int(self.seed_tries) != self.seed_tries or self.seed_tries < 1:
            raise ValueError(
                f"seed_tries must be a positive integer, got {self.seed_tries}"
            )
        if not 0.0 <= self.collide_early <= 1.0:
            raise ValueError(
                f"collide_early must be within [0, 1], got {self.collide_early}"
            )

        if self.dtest > self.dsep:
            logger.warning("Clamping dtest to dsep", dtest=self.dtest, dsep=self.dsep)
            self.dtest = self.dsep

    @classmethod
    def minor(cls) -> "StreamlineParams":
        """Defaults for minor roads."""
        return cls()

    @classmethod
    def major(cls) -> "StreamlineParams":
        """Defaults for major roads."""
        return replace(cls.minor(), dsep=100.0, dtest=30.0, dlookahead=200.0, collide_early=0.0)

    @classmethod
    def main(cls) -> "StreamlineParams":
        """Defaults for main roads."""
        return replace(cls.minor(), dsep=400.0, dtest=200.0, dlookahead=500.0, collide_early=0.0)


@dataclass
class PolygonParams(_JsonMixin):
    """Parameters for polygon (block/park) extraction."""

    # Max number of nodes in a ring
    max_length: int = 20
    min_area: float = 80.0
    # Inward offset applied by shrink()
    shrink_spacing: float = 4.0
    max_aspect_ratio: float = 5.0

    def __post_init__(self):
        if int(self.max_length) != self.max_length or self.max_length < 3:
            raise ValueError(
                f"max_length must be an integer >= 3, got {self.max_length}"
            )
        _require_non_negative("min_area", self.min_area)
        _require_non_negative("shrink_spacing", self.shrink_spacing)
        if self.max_aspect_ratio < 1:
            raise ValueError(
                f"max_aspect_ratio must be >= 1, got {self.max_aspect_ratio}"
            )

    @classmethod
    def parks(cls) -> "PolygonParams":
        return cls()

    @classmethod
    def blocks(cls) -> "PolygonParams":
        return cls(max_length=50, min_area=50.0, shrink_spacing=2.0, max_aspect_ratio=8.0)


@dataclass
class NoiseParams(_JsonMixin):
    """Rotational noise applied to the tensor field. Angles in degrees."""

    global_noise: bool = False
    noise_size_park: float = 20.0
    noise_angle_park: float = 90.0
    noise_size_global: float = 30.0
    noise_angle_global: float = 20.0

    def __post_init__(self):
        _require_positive("noise_size_park", self.noise_size_park)
        _require_positive("noise_size_global", self.noise_size_global)


@dataclass
class CityConfig:
    """Everything the example pipeline needs, loadable from one JSON file."""

    world_width: float = 1000.0
    world_height: float = 1000.0
    num_parks: int = 2
    seed: Optional[int] = None
    main: StreamlineParams = field(default_factory=StreamlineParams.main)
    major: StreamlineParams = field(default_factory=StreamlineParams.major)
    minor: StreamlineParams = field(default_factory=StreamlineParams.minor)
    parks: PolygonParams = field(default_factory=PolygonParams.parks)
    blocks: PolygonParams = field(default_factory=PolygonParams.blocks)
    noise: NoiseParams = field(default_factory=NoiseParams)

    def __post_init__(self):
        _require_positive("world_width", self.world_width)
        _require_positive("world_height", self.world_height)
        _require_non_negative("num_parks", self.num_parks)

    @classmethod
    def from_dict(cls, data: dict) -> "CityConfig":
        nested = {
            "main": StreamlineParams,
            "major": StreamlineParams,
            "minor": StreamlineParams,
            "parks": PolygonParams,
            "blocks": PolygonParams,
            "noise": NoiseParams,
        }
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown CityConfig fields: {', '.join(sorted(unknown))}")

        kwargs = dict(data)
        for name, params_cls in nested.items():
            if name in kwargs:
                # Partial sections override the layer defaults
                defaults = getattr(cls(), name).to_dict()
                defaults.update(kwargs[name])
                kwargs[name] = params_cls.from_dict(defaults)
        return cls(**kwargs)

    @classmethod
    def from_json(cls, filepath: str) -> "CityConfig":
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
