"""Rejection sampling of spawn positions under disk-shaped exclusion zones."""
import logging
from dataclasses import dataclass

import numpy as np

from .geometry import as_position, planar_distance

logger = logging.getLogger(__name__)

OBSTACLE_PLACEMENT_ATTEMPTS = 20
TARGET_PLACEMENT_ATTEMPTS = 50


@dataclass(frozen=True)
class SpawnBounds:
    """Axis-aligned sampling rectangle on the floor plus the spawn height.

    Attributes:
        min_x (float): Lower x bound.
        max_x (float): Upper x bound.
        min_z (float): Lower z bound.
        max_z (float): Upper z bound.
        height (float): Fixed y coordinate given to every sampled position.
    """
    min_x: float
    max_x: float
    min_z: float
    max_z: float
    height: float = 0.0

    def __post_init__(self):
        if self.min_x > self.max_x or self.min_z > self.max_z:
            raise ValueError(f"Empty spawn bounds: {self}")

    def contains(self, position):
        return self.min_x <= position[0] <= self.max_x and self.min_z <= position[2] <= self.max_z


@dataclass(frozen=True)
class ExclusionZone:
    """Disk on the floor plane that a new position must not fall inside."""
    center: tuple
    radius: float

    def __post_init__(self):
        object.__setattr__(self, "center", tuple(float(c) for c in self.center))

    def contains(self, position):
        """Return True if ``position`` is strictly closer than ``radius`` to the center."""
        return planar_distance(position, self.center) < self.radius


@dataclass(frozen=True)
class Placement:
    """Accepted position and the number of draws it took."""
    position: np.ndarray
    attempts: int


class PlacementInfeasible(Exception):
    """Raised when no candidate survived the exclusion zones within the attempt budget.

    Attributes:
        attempts (int): Number of candidates drawn before giving up.
    """
    def __init__(self, attempts):
        super().__init__(f"No valid position found after {attempts} attempts")
        self.attempts = attempts


def random_position(bounds, rng):
    """Draw a position uniformly inside ``bounds`` at ``bounds.height``.

    Args:
        bounds (SpawnBounds): Sampling domain.
        rng (np.random.Generator): Random source.

    Returns:
        np.ndarray: ``(x, height, z)``.
    """
    return as_position((
        rng.uniform(bounds.min_x, bounds.max_x),
        bounds.height,
        rng.uniform(bounds.min_z, bounds.max_z),
    ))


def overlaps(position, exclusions):
    """Return True on the first exclusion zone that contains ``position``."""
    for zone in exclusions:
        if zone.contains(position):
            return True
    return False


def find_valid_position(bounds, exclusions, max_attempts, rng):
    """Find a position inside ``bounds`` that lies outside every exclusion zone.

    Candidates are drawn uniformly and tested against the zones in order. The
    first candidate that violates none of them is accepted.

    Args:
        bounds (SpawnBounds): Sampling domain.
        exclusions (Iterable[ExclusionZone]): Zones the position must avoid.
        max_attempts (int): Upper bound on the number of candidates drawn.
        rng (np.random.Generator): Random source.

    Returns:
        Placement: The accepted position and the attempts used.

    Raises:
        PlacementInfeasible: If all ``max_attempts`` candidates overlapped a zone.
        ValueError: If ``max_attempts`` is smaller than 1.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    exclusions = list(exclusions)
    for attempt in range(1, max_attempts + 1):
        candidate = random_position(bounds, rng)
        if not overlaps(candidate, exclusions):
            return Placement(candidate, attempt)
    raise PlacementInfeasible(max_attempts)


def place_batch(count, bounds, exclusions, separation, max_attempts, rng):
    """Place up to ``count`` mutually separated positions.

    Every accepted position adds an exclusion zone of radius ``separation``
    for the positions placed after it. Positions that cannot be placed are
    skipped.

    Args:
        count (int): Number of positions requested.
        bounds (SpawnBounds): Sampling domain.
        exclusions (Iterable[ExclusionZone]): Zones every position must avoid.
        separation (float): Minimum distance between two placed positions.
        max_attempts (int): Attempt budget per position.
        rng (np.random.Generator): Random source.

    Returns:
        tuple[list[np.ndarray], int]: Placed positions and the number of failures.
    """
    zones = list(exclusions)
    placed = []
    failures = 0
    for _ in range(count):
        try:
            placement = find_valid_position(bounds, zones, max_attempts, rng)
        except PlacementInfeasible as exc:
            failures += 1
            logger.debug("Skipping a position: %s", exc)
            continue
        placed.append(placement.position)
        zones.append(ExclusionZone(placement.position, separation))
    return placed, failures
