import gymnasium as gym
import numpy as np
from gymnasium import spaces
from gymnasium.utils import EzPickle

from .config import NavigationConfig
from .episode_state import EntityCategory
from .lifecycle import OBSERVATION_SIZE, EpisodeController
from .physics import Oscillation, PointMassWorld


class SphereNavigationEnv(gym.Env, EzPickle):
    """Single-agent navigation task as a Gymnasium environment.

    The agent is pushed around the floor by a 2D force and has to reach the
    target without touching obstacles or walls. Obstacles are regenerated at
    every reset; the target only moves after it was reached.

    Observation: ``[vel_x, vel_z, dir_x, dir_z, distance]`` followed by
    ``perception_size`` values from the perception callable.
    Action: ``[x, z]`` force direction in [-1, 1].

    Args:
        config (NavigationConfig | dict | None): Task configuration.
        perception (Callable[[SphereNavigationEnv], Sequence[float]] | None): Extra
            observation block, e.g. ray-cast distances.
        perception_size (int): Length of the perception block.
        max_episode_steps (int): Ticks after which an episode is truncated.
        render_mode (str | None): Only None is supported.
    """
    metadata = {"render_modes": [], "name": "sphere_navigation_v0"}

    def __init__(self, config=None, perception=None, perception_size=0, max_episode_steps=1000, render_mode=None):
        EzPickle.__init__(
            self,
            config=config,
            perception=perception,
            perception_size=perception_size,
            max_episode_steps=max_episode_steps,
            render_mode=render_mode,
        )
        if isinstance(config, dict):
            config = NavigationConfig.from_dict(config)
        self.config = NavigationConfig() if config is None else config
        if perception is None and perception_size:
            raise ValueError("perception_size given without a perception callable")
        self.perception = perception
        self.perception_size = int(perception_size)
        self.max_episode_steps = max_episode_steps
        self.render_mode = render_mode

        self.action_space = spaces.Box(low=-1.0, high=1.0, shape=(2,), dtype=np.float32)
        self.observation_space = spaces.Box(
            low=-np.inf, high=np.inf, shape=(OBSERVATION_SIZE + self.perception_size,), dtype=np.float32
        )
        self.world = None
        self.controller = None

    def build_world(self):
        """Create the physics world, its fixed bodies and the episode controller."""
        cfg = self.config
        p = cfg.physics
        self.world = PointMassWorld(
            dt=p.dt, damping=p.damping, gravity=p.gravity, arena_half_extent=p.arena_half_extent, walls=p.walls,
        )
        agent = self.world.create_agent(cfg.agent_start, radius=cfg.agent_radius, mass=cfg.agent_mass)
        bounds = cfg.target_bounds
        target_position = cfg.target.start_position
        if target_position is None:
            target_position = ((bounds.min_x + bounds.max_x) / 2, bounds.height, (bounds.min_z + bounds.max_z) / 2)
        target = self.world.create_body(EntityCategory.TARGET, target_position, cfg.target.radius)
        fixed = []
        for obstacle in cfg.fixed_obstacles:
            oscillation = None
            if obstacle.moving:
                oscillation = Oscillation.random(self.np_random, obstacle.move_distance, obstacle.speed)
            fixed.append(self.world.create_body(
                EntityCategory.OBSTACLE, obstacle.position, obstacle.radius, oscillation=oscillation,
            ))
        self.controller = EpisodeController(
            self.world, agent, target, cfg, rng=self.np_random, fixed_obstacles=fixed, auto_reset=False,
        )

    def reset(self, seed=None, options=None):
        """Start a new episode.

        A seed rebuilds the world, so the same seed always gives the same
        sequence of layouts.

        Returns:
            tuple[np.ndarray, dict]: First observation and info.
        """
        super().reset(seed=seed)
        if seed is not None or self.controller is None:
            self.build_world()
        self.controller.begin_episode()
        return self.observe(), self.info()

    def step(self, action):
        """Advance one tick.

        Returns:
            tuple[np.ndarray, float, bool, bool, dict]: Observation, reward,
                terminated, truncated, info.
        """
        if self.controller is None:
            raise RuntimeError("Call reset() before step().")
        result = self.controller.step(action)
        terminated = result.terminated
        truncated = not terminated and result.step >= self.max_episode_steps
        return self.observe(), float(result.reward.total), terminated, truncated, self.info(result)

    def observe(self):
        core = self.controller.observe()
        if self.perception is None:
            return core
        block = np.asarray(self.perception(self), dtype=np.float32).reshape(-1)
        if block.shape[0] != self.perception_size:
            raise ValueError(f"Perception returned {block.shape[0]} values, expected {self.perception_size}")
        return np.concatenate((core, block))

    def info(self, result=None):
        state = self.controller.state
        return {
            "outcome": state.outcome.value,
            "episode": state.episode_index,
            "step": state.step_count,
            "episode_reward": state.episode_reward,
            "reward_terms": result.reward.as_dict() if result is not None else {},
            "placement_failures": state.placement_failures,
            "obstacle_count": len(state.obstacles),
        }
