import logging
from dataclasses import dataclass

import numpy as np

from .config import NavigationConfig
from .episode_state import EntityCategory, EpisodeOutcome, EpisodeState, ObstacleInstance
from .geometry import planar_direction
from .placement import ExclusionZone, PlacementInfeasible, find_valid_position, place_batch, random_position
from .reward import RewardBreakdown, RewardShaper

logger = logging.getLogger(__name__)

OBSERVATION_SIZE = 5


@dataclass
class StepResult:
    """What happened during one tick.

    Attributes:
        outcome (EpisodeOutcome): Outcome after this tick.
        reward (RewardBreakdown): Contributions earned this tick.
        episode_reward (float): Total reward of the episode including this tick.
        step (int): Number of ticks run in the episode, this one included.
        episode (int): Index of the episode the tick belongs to.
    """
    outcome: EpisodeOutcome
    reward: RewardBreakdown
    episode_reward: float
    step: int
    episode: int

    @property
    def terminated(self):
        return self.outcome.is_terminal


class EpisodeController:
    """Runs episodes of the navigation task on top of a physics backend.

    The caller owns the loop: one :meth:`begin_episode`, then one :meth:`step`
    per tick. With ``auto_reset`` a terminal tick immediately starts the next
    episode.

    Args:
        physics (PhysicsService): Backend that owns the bodies.
        agent (Hashable): Handle of the agent body. Its position at construction
            time becomes the fixed start position.
        target (Hashable | None): Handle of the target trigger body. Without a
            target, observations are zeros and no progress reward is given.
        config (NavigationConfig | None): Task configuration.
        rng (np.random.Generator | None): Random source for layouts.
        fixed_obstacles (Iterable[Hashable]): Handles of hand-placed obstacles.
        auto_reset (bool): Begin a new episode right after a terminal tick.
    """
    def __init__(self, physics, agent, target, config=None, rng=None, fixed_obstacles=(), auto_reset=True):
        self.physics = physics
        self.agent = agent
        self.target = target
        self.config = NavigationConfig() if config is None else config
        self.rng = np.random.default_rng() if rng is None else rng
        self.fixed_obstacles = list(fixed_obstacles)
        self.auto_reset = auto_reset
        self.shaper = RewardShaper(self.config.reward)
        self.relocation_requested = False
        self._pending_contacts = []

        target_position = None
        if target is None:
            logger.warning("No target assigned: observations are zeros and progress is not rewarded.")
        elif self.config.target.start_position is not None:
            physics.set_position(target, self.config.target.start_position)
            target_position = physics.get_position(target)
        else:
            self.relocation_requested = True
        self.state = EpisodeState(physics.get_position(agent), target_position)

    def begin_episode(self):
        """Restore the agent, rebuild the obstacle layout and start a fresh episode.

        The target only moves here if it was reached in the previous episode (or
        has never been placed); otherwise the episode starts from its last position.

        Returns:
            EpisodeState: The state of the new episode.
        """
        self.physics.zero_motion(self.agent)
        self.physics.set_position(self.agent, self.state.agent_start_position)

        self.state.obstacles.clear(self.physics.destroy)
        failures = self.spawn_obstacles()
        if self.target is not None and self.relocation_requested:
            failures += self.relocate_target()
            self.relocation_requested = False

        self._pending_contacts = []
        self.state.restart(self.physics.get_position(self.agent))
        self.state.placement_failures = failures
        logger.debug(
            "Episode %d: %d obstacles, target at %s",
            self.state.episode_index, len(self.state.obstacles), self.state.target_position,
        )
        return self.state

    def obstacle_exclusions(self):
        cfg = self.config.obstacles
        zones = [ExclusionZone(self.state.agent_start_position, cfg.agent_clearance)]
        zones += [ExclusionZone(self.physics.get_position(h), cfg.fixed_clearance) for h in self.fixed_obstacles]
        if self.state.has_target and not self.relocation_requested:
            zones.append(ExclusionZone(self.state.target_position, cfg.target_clearance))
        return zones

    def target_exclusions(self):
        cfg = self.config.target
        zones = [ExclusionZone(self.state.agent_start_position, cfg.agent_clearance)]
        zones += [ExclusionZone(self.physics.get_position(h), cfg.fixed_clearance) for h in self.fixed_obstacles]
        zones += [ExclusionZone(p, cfg.obstacle_clearance) for p in self.state.obstacles.positions()]
        return zones

    def spawn_obstacles(self):
        """Create this episode's procedural obstacles and return the number of failed placements."""
        cfg = self.config.obstacles
        count = int(self.rng.integers(cfg.min_count, cfg.max_count + 1))
        positions, failures = place_batch(
            count,
            self.config.spawn_bounds,
            self.obstacle_exclusions(),
            cfg.separation,
            cfg.max_attempts,
            self.rng,
        )
        for position in positions:
            handle = self.physics.create_body(EntityCategory.OBSTACLE, position, cfg.radius)
            self.state.obstacles.add(ObstacleInstance(handle, position, cfg.radius))
        if failures:
            logger.warning("Placed %d of %d obstacles, the area is too crowded.", len(positions), count)
        return failures

    def relocate_target(self):
        """Move the target to a clear spot, or anywhere if none is found.

        Returns:
            int: 1 if the fallback was used, else 0.
        """
        cfg = self.config.target
        try:
            position = find_valid_position(self.config.target_bounds, self.target_exclusions(), cfg.max_attempts, self.rng).position
            failures = 0
        except PlacementInfeasible as exc:
            logger.warning("%s for the target; placing it randomly, it may overlap.", exc)
            position = random_position(self.config.target_bounds, self.rng)
            failures = 1
        self.physics.set_position(self.target, position)
        self.state.target_position = self.physics.get_position(self.target)
        return failures

    def notify_contact(self, category):
        """Queue a contact reported outside of :meth:`step` for the next tick."""
        self._pending_contacts.append(EntityCategory(category))

    def step(self, action):
        """Run one tick: apply the action, score it and check for the end of the episode.

        Termination is checked in priority order: obstacle or wall contact,
        then target contact, then falling below the floor threshold.

        Args:
            action (Sequence[float]): ``[x, z]`` in [-1, 1]; clipped if outside.

        Returns:
            StepResult: Outcome and reward of the tick.

        Raises:
            RuntimeError: If no episode has begun yet, or the episode already
                ended and ``auto_reset`` is off.
        """
        if self.state.episode_index < 0:
            raise RuntimeError("No episode has begun; call begin_episode() first.")
        if self.state.outcome.is_terminal:
            raise RuntimeError("The episode has ended; call begin_episode() first.")

        action = np.clip(np.asarray(action, dtype=np.float64).reshape(2), -1.0, 1.0)
        self.physics.apply_force(self.agent, action * self.config.force_magnitude)
        contacts = self._pending_contacts + list(self.physics.advance())
        self._pending_contacts = []

        agent_position = self.physics.get_position(self.agent)
        reward = self.shaper.shape_step(self.state, agent_position, action)
        outcome = self.check_termination(contacts, agent_position)
        if outcome.is_terminal:
            reward.terminal = self.shaper.terminal(outcome)
        if outcome is EpisodeOutcome.REACHED_TARGET:
            self.relocation_requested = True

        self.state.step_count += 1
        self.state.episode_reward += reward.total
        self.state.outcome = outcome
        result = StepResult(outcome, reward, self.state.episode_reward, self.state.step_count, self.state.episode_index)

        if outcome.is_terminal:
            logger.info(
                "Episode %d ended with %s after %d steps, reward %.3f",
                result.episode, outcome.value, result.step, result.episode_reward,
            )
            if self.auto_reset:
                self.begin_episode()
        return result

    def check_termination(self, contacts, agent_position):
        collided = False
        reached = False
        for category in contacts:
            match category:
                case EntityCategory.OBSTACLE | EntityCategory.WALL:
                    collided = True
                case EntityCategory.TARGET:
                    reached = self.state.has_target
        if collided:
            return EpisodeOutcome.HIT_OBSTACLE_OR_WALL
        if reached:
            return EpisodeOutcome.REACHED_TARGET
        if agent_position[1] < self.config.fall_threshold:
            return EpisodeOutcome.FELL_OUT_OF_BOUNDS
        return EpisodeOutcome.ONGOING

    def observe(self):
        """Return ``[vel_x, vel_z, dir_x, dir_z, distance]`` for the agent."""
        if not self.state.has_target:
            return np.zeros(OBSERVATION_SIZE, dtype=np.float32)
        agent_position = self.physics.get_position(self.agent)
        velocity = self.physics.get_velocity(self.agent)
        direction = planar_direction(agent_position, self.state.target_position)
        distance = self.state.distance_to_target(agent_position)
        return np.array([velocity[0], velocity[1], direction[0], direction[1], distance], dtype=np.float32)
