"""Configuration surface of the navigation task.

All values have defaults, so ``NavigationConfig()`` is a complete setup.
:meth:`NavigationConfig.from_dict` builds the same tree from plain mappings,
e.g. parsed from a command line or an experiment file.
"""
from dataclasses import dataclass, field, fields
from typing import Optional

from .placement import OBSTACLE_PLACEMENT_ATTEMPTS, TARGET_PLACEMENT_ATTEMPTS, SpawnBounds
from .reward import RewardConfig


@dataclass
class ObstacleConfig:
    """Procedural obstacle generation.

    Attributes:
        min_count (int): Fewest obstacles per episode.
        max_count (int): Most obstacles per episode (inclusive).
        radius (float): Collision radius of each obstacle.
        agent_clearance (float): Minimum distance from the agent spawn point.
        separation (float): Minimum distance between two procedural obstacles.
        fixed_clearance (float): Minimum distance from fixed obstacles.
        target_clearance (float): Minimum distance from a target that stays in place.
        max_attempts (int): Placement attempts per obstacle.
    """
    min_count: int = 2
    max_count: int = 4
    radius: float = 0.5
    agent_clearance: float = 3.0
    separation: float = 2.0
    fixed_clearance: float = 2.0
    target_clearance: float = 2.0
    max_attempts: int = OBSTACLE_PLACEMENT_ATTEMPTS

    def __post_init__(self):
        if self.min_count < 0 or self.min_count > self.max_count:
            raise ValueError(f"Invalid obstacle count range [{self.min_count}, {self.max_count}]")
        if self.max_attempts < 1:
            raise ValueError("Obstacle max_attempts must be at least 1")


@dataclass
class TargetConfig:
    """Target placement.

    Attributes:
        radius (float): Trigger radius.
        agent_clearance (float): Minimum distance from the agent spawn point.
        fixed_clearance (float): Minimum distance from fixed obstacles.
        obstacle_clearance (float): Minimum distance from procedural obstacles.
        max_attempts (int): Placement attempts before falling back to a random spot.
        start_position (tuple[float, float, float] | None): Initial position. Placed
            randomly in the first episode when None.
    """
    radius: float = 0.5
    agent_clearance: float = 4.0
    fixed_clearance: float = 3.0
    obstacle_clearance: float = 2.0
    max_attempts: int = TARGET_PLACEMENT_ATTEMPTS
    start_position: Optional[tuple] = None

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("Target max_attempts must be at least 1")


@dataclass
class FixedObstacleConfig:
    """Hand-placed obstacle, optionally an oscillating pillar."""
    position: tuple
    radius: float = 1.0
    moving: bool = False
    move_distance: float = 3.0
    speed: float = 2.0


@dataclass
class PhysicsConfig:
    dt: float = 0.02
    damping: float = 0.05
    gravity: float = 9.81
    arena_half_extent: float = 20.0
    walls: bool = True


@dataclass
class NavigationConfig:
    """Complete task configuration.

    Attributes:
        spawn_bounds (SpawnBounds): Sampling area for procedural obstacles.
        target_bounds (SpawnBounds): Sampling area for the target.
        agent_start (tuple[float, float, float]): Fixed agent spawn position.
        agent_radius (float): Agent collision radius.
        agent_mass (float): Agent mass.
        force_magnitude (float): Force applied for a unit action.
        fall_threshold (float): The episode ends when the agent drops below this height.
        obstacles (ObstacleConfig): Procedural obstacle generation.
        target (TargetConfig): Target placement.
        fixed_obstacles (list[FixedObstacleConfig]): Hand-placed obstacles.
        reward (RewardConfig): Reward constants.
        physics (PhysicsConfig): Parameters of the point-mass backend.
    """
    spawn_bounds: SpawnBounds = field(default_factory=lambda: SpawnBounds(-15.0, 15.0, -15.0, 15.0, height=0.5))
    target_bounds: SpawnBounds = field(default_factory=lambda: SpawnBounds(-18.0, 18.0, -18.0, 18.0, height=0.75))
    agent_start: tuple = (0.0, 0.5, 0.0)
    agent_radius: float = 0.5
    agent_mass: float = 1.0
    force_magnitude: float = 10.0
    fall_threshold: float = -1.0
    obstacles: ObstacleConfig = field(default_factory=ObstacleConfig)
    target: TargetConfig = field(default_factory=TargetConfig)
    fixed_obstacles: list = field(default_factory=list)
    reward: RewardConfig = field(default_factory=RewardConfig)
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)

    @classmethod
    def from_dict(cls, values):
        """Build a configuration from nested plain mappings.

        Sections missing from ``values`` keep their defaults.

        Args:
            values (Mapping[str, Any]): Top-level options. ``spawn_bounds``,
                ``target_bounds``, ``obstacles``, ``target``, ``reward`` and
                ``physics`` are mappings; ``fixed_obstacles`` is a list of mappings.

        Returns:
            NavigationConfig: The configuration.

        Raises:
            TypeError: On unknown option names.
            ValueError: On inconsistent values.
        """
        sections = {
            "spawn_bounds": SpawnBounds,
            "target_bounds": SpawnBounds,
            "obstacles": ObstacleConfig,
            "target": TargetConfig,
            "reward": RewardConfig,
            "physics": PhysicsConfig,
        }
        kwargs = {}
        for key, value in values.items():
            if key in sections and isinstance(value, dict):
                kwargs[key] = sections[key](**value)
            elif key == "fixed_obstacles":
                kwargs[key] = [
                    item if isinstance(item, FixedObstacleConfig) else FixedObstacleConfig(**item)
                    for item in value
                ]
            else:
                kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self):
        """Inverse of :meth:`from_dict`."""
        def convert(value):
            if hasattr(value, "__dataclass_fields__"):
                return {f.name: convert(getattr(value, f.name)) for f in fields(value)}
            if isinstance(value, list):
                return [convert(item) for item in value]
            return value
        return convert(self)
