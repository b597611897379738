"""Per-tick reward shaping.

Each contribution is computed independently and the tick reward is their sum,
so single terms can be retuned or switched off without touching the others.
"""
from dataclasses import dataclass

import numpy as np

from .episode_state import EpisodeOutcome
from .geometry import alignment, planar_direction

MIN_ACTION_NORM_SQUARED = 0.01


@dataclass
class RewardConfig:
    """Reward constants.

    Attributes:
        distance_reward_multiplier (float): Reward per unit of distance gained.
        retreat_penalty_multiplier (float): Multiplier on distance lost. Zero disables it.
        alignment_enabled (bool): Toggle for the heading penalty.
        alignment_threshold (float): Heading penalty fires below this alignment.
        alignment_penalty (float): Heading penalty value.
        step_penalty (float): Cost added on every tick.
        success_reward (float): Terminal reward for reaching the target.
        collision_penalty (float): Terminal reward for hitting an obstacle or wall.
        fall_penalty (float): Terminal reward for falling off the floor.
    """
    distance_reward_multiplier: float = 0.01
    retreat_penalty_multiplier: float = 0.0
    alignment_enabled: bool = True
    alignment_threshold: float = -0.5
    alignment_penalty: float = -0.02
    step_penalty: float = -0.001
    success_reward: float = 1.0
    collision_penalty: float = -1.0
    fall_penalty: float = -0.1


@dataclass
class RewardBreakdown:
    progress: float = 0.0
    alignment: float = 0.0
    step_cost: float = 0.0
    terminal: float = 0.0

    @property
    def total(self):
        return self.progress + self.alignment + self.step_cost + self.terminal

    def as_dict(self):
        return {
            "progress": self.progress,
            "alignment": self.alignment,
            "step_cost": self.step_cost,
            "terminal": self.terminal,
        }


class RewardShaper:
    """Turns geometric deltas and terminal outcomes into reward contributions."""
    def __init__(self, config=None):
        self.config = RewardConfig() if config is None else config

    def progress(self, previous_distance, current_distance):
        """Reward distance gained towards the target since the previous tick.

        Args:
            previous_distance (float): Distance at the end of the previous tick.
            current_distance (float): Distance now.

        Returns:
            float: Positive when the agent got closer, the (optional) retreat
                penalty when it moved away, 0.0 otherwise.
        """
        delta = previous_distance - current_distance
        if delta > 0:
            return delta * self.config.distance_reward_multiplier
        if delta < 0:
            return delta * self.config.retreat_penalty_multiplier
        return 0.0

    def alignment(self, action, direction_to_target):
        """Penalty for intending to move away from the target.

        A near-zero action is never penalized.

        Args:
            action (Sequence[float]): Planar action ``[x, z]``.
            direction_to_target (Sequence[float]): Planar unit vector to the target.

        Returns:
            float: ``alignment_penalty`` or 0.0.
        """
        if not self.config.alignment_enabled:
            return 0.0
        action = np.asarray(action, dtype=np.float64)
        if float(np.dot(action, action)) <= MIN_ACTION_NORM_SQUARED:
            return 0.0
        if alignment(action, direction_to_target) < self.config.alignment_threshold:
            return self.config.alignment_penalty
        return 0.0

    def terminal(self, outcome):
        """Reward for the outcome that ended the episode, 0.0 while it is ongoing."""
        match outcome:
            case EpisodeOutcome.REACHED_TARGET:
                return self.config.success_reward
            case EpisodeOutcome.HIT_OBSTACLE_OR_WALL:
                return self.config.collision_penalty
            case EpisodeOutcome.FELL_OUT_OF_BOUNDS:
                return self.config.fall_penalty
            case _:
                return 0.0

    def shape_step(self, state, agent_position, action):
        """Compute the non-terminal contributions of one tick.

        This is the single place where ``state.previous_distance_to_target``
        advances during an episode.

        Args:
            state (EpisodeState): Shared episode state.
            agent_position (np.ndarray): Agent position after this tick's physics.
            action (np.ndarray): Planar action applied this tick.

        Returns:
            RewardBreakdown: Progress, alignment and step cost; terminal is 0.0.
        """
        current_distance = state.distance_to_target(agent_position)
        previous_distance = state.commit_distance(current_distance)
        breakdown = RewardBreakdown(step_cost=self.config.step_penalty)
        if state.has_target:
            breakdown.progress = self.progress(previous_distance, current_distance)
            direction = planar_direction(agent_position, state.target_position)
            breakdown.alignment = self.alignment(action, direction)
        return breakdown
