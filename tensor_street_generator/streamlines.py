"""
Density-controlled streamline generation.

Streamlines are seeded at least dsep away from existing ones and integrated
in both directions until they come within dtest of another streamline,
leave the domain, reach a degenerate point or hit the iteration cap.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import structlog

from .config import StreamlineParams
from .grid_storage import GridStorage
from .integrator import FieldIntegrator
from .utils import simplify_polyline
from .vector import Vector2

logger = structlog.get_logger()

Streamline = List[Vector2]


@dataclass
class _IntegrationFront:
    """State of one direction (forward or backward) of a trace."""
    seed: Vector2
    original_dir: Vector2
    streamline: Streamline
    previous_direction: Vector2
    previous_point: Vector2
    valid: bool = True


class StreamlineGenerator:
    """Generate one layer (road class) of streamlines over a rectangular domain."""

    # Streamlines with fewer points are discarded
    MIN_STREAMLINE_POINTS = 6

    def __init__(
        self,
        integrator: FieldIntegrator,
        origin: Vector2,
        world_dimensions: Vector2,
        params: StreamlineParams,
        seed: Optional[int] = None,
        seed_at_endpoints: bool = True
    ):
        """
        Initialize generator.

        Args:
            integrator: Field integrator, its step is params.dstep
            origin: Lower corner of the domain
            world_dimensions: Width and height of the domain
            params: Streamline parameters
            seed: Random seed for seed sampling and early collision draws
            seed_at_endpoints: Try endpoints of earlier streamlines as seeds
                before sampling random points
        """
        if world_dimensions.x <= 0 or world_dimensions.y <= 0:
            raise ValueError(f"World dimensions must be positive, got {world_dimensions}")

        self.integrator = integrator
        self.origin = origin
        self.world_dimensions = world_dimensions
        self.params = params
        self.seed_at_endpoints = seed_at_endpoints
        self.rng = np.random.default_rng(seed)

        self.dsep_sq = params.dsep ** 2
        self.dtest_sq = params.dtest ** 2
        self.dstep_sq = params.dstep ** 2
        self.dcirclejoin_sq = params.dcirclejoin ** 2
        self.dlookahead_sq = params.dlookahead ** 2

        self.existing_generators: List["StreamlineGenerator"] = []
        self._before_generate: List[Callable[[], None]] = []
        self._after_generate: List[Callable[[], None]] = []

        self.streamlines_done = True
        self._last_major = False
        self._exhausted: Dict[bool, bool] = {True: False, False: False}
        self._failed_traces: Dict[bool, int] = {True: 0, False: 0}

        self.clear_streamlines()

    def clear_streamlines(self):
        """Drop all streamlines, samples and queued seeds."""
        self.all_streamlines: List[Streamline] = []
        self.streamlines_major: List[Streamline] = []
        self.streamlines_minor: List[Streamline] = []
        # Reduced vertex count
        self.all_streamlines_simple: List[Streamline] = []

        self.major_grid = GridStorage(self.origin, self.params.dsep)
        self.minor_grid = GridStorage(self.origin, self.params.dsep)
        self.candidate_seeds_major: List[Vector2] = []
        self.candidate_seeds_minor: List[Vector2] = []

    def roads_empty(self) -> bool:
        return len(self.all_streamlines) == 0

    @property
    def has_roads(self) -> bool:
        return not self.roads_empty()

    # Hooks and cross-layer awareness

    def add_before_generate(self, callback: Callable[[], None]):
        self._before_generate.append(callback)

    def add_after_generate(self, callback: Callable[[], None]):
        self._after_generate.append(callback)

    def set_existing_streamlines(self, generators: Sequence["StreamlineGenerator"]):
        """Generators whose finished streamlines this layer must avoid."""
        self.existing_generators = list(generators)

    def add_existing_streamlines(self, other: "StreamlineGenerator"):
        """Copy the samples of another generator into this generator's grids."""
        self.major_grid.add_all(other.major_grid)
        self.minor_grid.add_all(other.minor_grid)

    # Driving

    def create_all_streamlines(self):
        """Generate the whole layer in one call."""
        self.begin()
        while self.update():
            pass

    def begin(self):
        """Start a generation run to be driven by update()."""
        for callback in self._before_generate:
            callback()

        self.clear_streamlines()
        for other in self.existing_generators:
            self.add_existing_streamlines(other)

        self.streamlines_done = False
        self._last_major = False
        self._exhausted = {True: False, False: False}
        self._failed_traces = {True: 0, False: 0}

    def update(self) -> bool:
        """
        Trace at most one streamline.

        Returns:
            True while more work remains
        """
        if self.streamlines_done:
            return False

        major = not self._last_major
        if self._exhausted[major]:
            major = not major
        self._last_major = major

        if not self.create_streamline(major):
            self._exhausted[major] = True
            logger.debug("No more seeds", major=major)
            if all(self._exhausted.values()):
                self._finish()

        return not self.streamlines_done

    def _finish(self):
        self.join_dangling_streamlines()
        self.streamlines_done = True
        logger.info(
            "Streamline generation complete",
            major=len(self.streamlines_major),
            minor=len(self.streamlines_minor),
            dsep=self.params.dsep,
        )
        for callback in self._after_generate:
            callback()

    # Streamline creation

    def create_streamline(self, major: bool) -> bool:
        """
        Find a seed and trace a streamline from it.

        Returns:
            False if no seed was found within seed_tries, or if the last
            seed_tries traces in this direction were all rejected
        """
        seed = self.get_seed(major)
        if seed is None:
            return False

        streamline = self.integrate_streamline(seed, major)
        if self.valid_streamline(streamline):
            self.add_streamline(streamline, major)
            self._failed_traces[major] = 0
            return True

        self._failed_traces[major] += 1
        return self._failed_traces[major] < self.params.seed_tries

    def add_streamline(self, streamline: Streamline, major: bool):
        """Accept a streamline into this layer."""
        self.grid(major).add_polyline(streamline)
        self.streamlines(major).append(streamline)
        self.all_streamlines.append(streamline)
        self.all_streamlines_simple.append(self.simplify_streamline(streamline))

        # Open ends seed the perpendicular direction
        if streamline[0] != streamline[-1]:
            self.candidate_seeds(not major).append(streamline[0])
            self.candidate_seeds(not major).append(streamline[-1])

    def valid_streamline(self, streamline: Streamline) -> bool:
        return len(streamline) >= self.MIN_STREAMLINE_POINTS

    def simplify_streamline(self, streamline: Streamline) -> Streamline:
        return simplify_polyline(streamline, self.params.simplify_tolerance)

    def get_seed(self, major: bool) -> Optional[Vector2]:
        """
        Queued endpoint seeds first, then up to seed_tries random samples.

        Returns:
            A seed at least dsep from every sample of the same direction, or None
        """
        if self.seed_at_endpoints:
            queue = self.candidate_seeds(major)
            while queue:
                seed = queue.pop()
                if self.point_in_bounds(seed) and self.is_valid_sample(major, seed, self.dsep_sq):
                    return seed

        for _ in range(self.params.seed_tries):
            seed = self.sample_point()
            if self.is_valid_sample(major, seed, self.dsep_sq):
                return seed

        return None

    def sample_point(self) -> Vector2:
        return Vector2(
            self.origin.x + self.rng.uniform(0, self.world_dimensions.x),
            self.origin.y + self.rng.uniform(0, self.world_dimensions.y),
        )

    def is_valid_sample(self, major: bool, point: Vector2, d_sq: float, both_grids: bool = False) -> bool:
        grid_valid = self.grid(major).is_valid_sample(point, d_sq)
        if both_grids:
            grid_valid = grid_valid and self.grid(not major).is_valid_sample(point, d_sq)
        return grid_valid and self.integrator.on_land(point)

    def point_in_bounds(self, v: Vector2) -> bool:
        return (
            self.origin.x <= v.x < self.origin.x + self.world_dimensions.x
            and self.origin.y <= v.y < self.origin.y + self.world_dimensions.y
        )

    def integrate_streamline(self, seed: Vector2, major: bool) -> Streamline:
        """
        Trace forwards and backwards from seed simultaneously, so that a
        streamline closing into a circle meets itself with matching error.
        """
        # Whether this trace also collides with streamlines of the other direction
        collide_both = self.rng.random() < self.params.collide_early

        d = self.integrator.integrate(seed, major)
        if d.length_squared() == 0:
            return [seed]

        forward = _IntegrationFront(
            seed=seed,
            original_dir=d,
            streamline=[seed],
            previous_direction=d,
            previous_point=seed + d,
        )
        forward.valid = self.point_in_bounds(forward.previous_point)

        backward = _IntegrationFront(
            seed=seed,
            original_dir=-d,
            streamline=[],
            previous_direction=-d,
            previous_point=seed - d,
        )
        backward.valid = self.point_in_bounds(backward.previous_point)

        # True once the two fronts have moved dcirclejoin apart
        points_escaped = False
        count = 0
        while count < self.params.path_iterations and (forward.valid or backward.valid):
            self._integration_step(forward, major, collide_both)
            self._integration_step(backward, major, collide_both)

            sq_distance = forward.previous_point.distance_to_squared(backward.previous_point)
            if not points_escaped and sq_distance > self.dcirclejoin_sq:
                points_escaped = True

            if points_escaped and sq_distance <= self.dcirclejoin_sq:
                forward.streamline.append(forward.previous_point)
                forward.streamline.append(backward.previous_point)
                backward.streamline.append(backward.previous_point)
                break

            count += 1

        return list(reversed(backward.streamline)) + forward.streamline

    def _integration_step(self, front: _IntegrationFront, major: bool, collide_both: bool):
        if not front.valid:
            return

        front.streamline.append(front.previous_point)
        next_direction = self.integrator.integrate(
            front.previous_point, major, front.previous_direction
        )

        # Degenerate point
        if next_direction.length_squared() < 0.01 * self.dstep_sq:
            front.valid = False
            return

        # Keep travelling the same way
        if next_direction.dot(front.previous_direction) < 0:
            next_direction = -next_direction

        next_point = front.previous_point + next_direction

        if (self.point_in_bounds(next_point)
                and self.is_valid_sample(major, next_point, self.dtest_sq, collide_both)
                and not self._streamline_turned(front.seed, front.original_dir, next_point, next_direction)):
            front.previous_point = next_point
            front.previous_direction = next_direction
        else:
            # One more step, so that the road reaches what stopped it
            front.streamline.append(next_point)
            front.valid = False

    @staticmethod
    def _streamline_turned(seed: Vector2, original_dir: Vector2, point: Vector2, direction: Vector2) -> bool:
        """True once the front has turned through more than 180 degrees."""
        if original_dir.dot(direction) < 0:
            perpendicular = Vector2(original_dir.y, -original_dir.x)
            is_left = (point - seed).dot(perpendicular) < 0
            direction_up = direction.dot(perpendicular) > 0
            return is_left == direction_up
        return False

    # Joining dangling ends

    def join_dangling_streamlines(self):
        """Extend open streamline ends onto nearby streamlines ahead of them."""
        for major in (True, False):
            for streamline in self.streamlines(major):
                # Circles
                if streamline[0] == streamline[-1]:
                    continue

                new_start = self.get_best_next_point(streamline[0], streamline[4])
                if new_start is not None:
                    for p in self.points_between(streamline[0], new_start, self.params.dstep):
                        streamline.insert(0, p)
                        self.grid(major).add_sample(p)

                new_end = self.get_best_next_point(streamline[-1], streamline[-4])
                if new_end is not None:
                    for p in self.points_between(streamline[-1], new_end, self.params.dstep):
                        streamline.append(p)
                        self.grid(major).add_sample(p)

        self.all_streamlines_simple = [self.simplify_streamline(s) for s in self.all_streamlines]

    def get_best_next_point(self, point: Vector2, previous_point: Vector2) -> Optional[Vector2]:
        """
        Best sample within dlookahead ahead of a dangling end.

        Returns:
            The join target pushed slightly past the sample, or None
        """
        nearby = self.major_grid.get_nearby_points(point, self.params.dlookahead)
        nearby.extend(self.minor_grid.get_nearby_points(point, self.params.dlookahead))
        direction = point - previous_point

        closest_sample = None
        closest_distance = math.inf
        for sample in nearby:
            if sample == point or sample == previous_point:
                continue

            difference = sample - point
            if difference.dot(direction) < 0:
                # Backwards
                continue

            distance_sq = point.distance_to_squared(sample)
            if distance_sq > self.dlookahead_sq:
                continue
            if distance_sq < 2 * self.dstep_sq:
                closest_sample = sample
                break

            angle = abs(Vector2.angle_between(direction, difference))
            if angle < self.params.joinangle and distance_sq < closest_distance:
                closest_distance = distance_sq
                closest_sample = sample

        if closest_sample is not None:
            closest_sample = closest_sample + direction.set_length(self.params.simplify_tolerance * 4)

        return closest_sample

    def points_between(self, v1: Vector2, v2: Vector2, dstep: float) -> List[Vector2]:
        """
        Points from v1 (exclusive) to v2 (inclusive) at most dstep apart,
        cut short at the first degenerate point.
        """
        n_points = math.floor(v1.distance_to(v2) / dstep)
        if n_points == 0:
            return []

        step_vector = v2 - v1
        out = []
        for i in range(1, n_points + 1):
            next_point = v1 + step_vector * (i / n_points)
            if self.integrator.integrate(next_point, True).length_squared() > 0.001:
                out.append(next_point)
            else:
                return out
        return out

    # Per-direction state

    def grid(self, major: bool) -> GridStorage:
        return self.major_grid if major else self.minor_grid

    def streamlines(self, major: bool) -> List[Streamline]:
        return self.streamlines_major if major else self.streamlines_minor

    def candidate_seeds(self, major: bool) -> List[Vector2]:
        return self.candidate_seeds_major if major else self.candidate_seeds_minor
