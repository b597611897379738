import math
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from .geometry import as_position, planar_distance


class EntityCategory(Enum):
    """Kind of entity the agent touched, attached to every body at creation."""
    OBSTACLE = "obstacle"
    WALL = "wall"
    TARGET = "target"


class EpisodeOutcome(Enum):
    ONGOING = "ongoing"
    REACHED_TARGET = "reached_target"
    HIT_OBSTACLE_OR_WALL = "hit_obstacle_or_wall"
    FELL_OUT_OF_BOUNDS = "fell_out_of_bounds"

    @property
    def is_terminal(self):
        return self is not EpisodeOutcome.ONGOING


@dataclass
class ObstacleInstance:
    """Procedural obstacle created for one episode.

    Attributes:
        handle (Hashable): Entity handle returned by the physics service.
        position (np.ndarray): Spawn position ``(x, y, z)``.
        radius (float): Collision radius.
    """
    handle: object
    position: np.ndarray
    radius: float


class ObstacleArena:
    """Owns the procedural obstacles of the running episode.

    Obstacles are only added between two :meth:`clear` calls, so no instance
    outlives the episode it was created for.
    """
    def __init__(self):
        self._instances = []

    def add(self, instance):
        self._instances.append(instance)

    def clear(self, destroy):
        """Destroy every instance through ``destroy(handle)`` and forget them."""
        instances, self._instances = self._instances, []
        for instance in instances:
            destroy(instance.handle)

    def positions(self):
        return [instance.position for instance in self._instances]

    def __iter__(self):
        return iter(list(self._instances))

    def __len__(self):
        return len(self._instances)


@dataclass
class EpisodeState:
    """Geometric state shared by placement, reward shaping and termination.

    ``previous_distance_to_target`` must always hold the agent-target distance
    measured at the end of the previous tick (or at episode start). It is
    written only by :meth:`commit_distance` during an episode and
    measured afresh on construction and in :meth:`restart`.

    Attributes:
        agent_start_position (np.ndarray): Read-only spawn position of the agent.
        target_position (np.ndarray | None): Last known target position, None if
            there is no target.
        obstacles (ObstacleArena): Procedural obstacles of this episode.
        previous_distance_to_target (float): Distance at the end of the previous tick.
        episode_index (int): Number of episodes started so far, minus one.
        step_count (int): Ticks run in this episode.
        episode_reward (float): Reward accumulated in this episode.
        outcome (EpisodeOutcome): Outcome of this episode so far.
        placement_failures (int): Placements that fell back during this episode.
    """
    agent_start_position: np.ndarray
    target_position: np.ndarray = None
    obstacles: ObstacleArena = field(default_factory=ObstacleArena)
    previous_distance_to_target: float = math.inf
    episode_index: int = -1
    step_count: int = 0
    episode_reward: float = 0.0
    outcome: EpisodeOutcome = EpisodeOutcome.ONGOING
    placement_failures: int = 0

    def __post_init__(self):
        start = as_position(self.agent_start_position)
        start.setflags(write=False)
        self.agent_start_position = start
        if self.target_position is not None:
            self.target_position = as_position(self.target_position)
        self.previous_distance_to_target = self.distance_to_target(start)

    @property
    def has_target(self):
        return self.target_position is not None

    def distance_to_target(self, agent_position):
        """Planar distance from ``agent_position`` to the target, ``inf`` without target."""
        if self.target_position is None:
            return math.inf
        return planar_distance(agent_position, self.target_position)

    def commit_distance(self, current_distance):
        """Record this tick's distance and return the one it replaces."""
        previous = self.previous_distance_to_target
        self.previous_distance_to_target = current_distance
        return previous

    def restart(self, agent_position):
        """Reset per-episode bookkeeping and measure the initial distance."""
        self.episode_index += 1
        self.step_count = 0
        self.episode_reward = 0.0
        self.placement_failures = 0
        self.outcome = EpisodeOutcome.ONGOING
        self.previous_distance_to_target = self.distance_to_target(agent_position)
