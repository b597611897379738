"""Sphere navigation task for reinforcement learning research.

This package provides:
- A rejection-sampling placement engine for obstacle and target layouts
- An episode controller with shaped rewards and distinct terminal outcomes
- A point-mass physics backend and a Gymnasium environment built on it
- A greedy PID baseline policy and a keyboard mapping for manual play
"""
from gymnasium.envs.registration import register

from .config import FixedObstacleConfig, NavigationConfig, ObstacleConfig, PhysicsConfig, TargetConfig
from .environment import SphereNavigationEnv
from .episode_state import EntityCategory, EpisodeOutcome, EpisodeState
from .lifecycle import EpisodeController, StepResult
from .placement import ExclusionZone, PlacementInfeasible, SpawnBounds, find_valid_position
from .reward import RewardConfig, RewardShaper

__all__ = [
    "EntityCategory",
    "EpisodeController",
    "EpisodeOutcome",
    "EpisodeState",
    "ExclusionZone",
    "FixedObstacleConfig",
    "NavigationConfig",
    "ObstacleConfig",
    "PhysicsConfig",
    "PlacementInfeasible",
    "RewardConfig",
    "RewardShaper",
    "SpawnBounds",
    "SphereNavigationEnv",
    "StepResult",
    "TargetConfig",
    "find_valid_position",
]

register(id="SphereNavigation-v0", entry_point="sphere_navigation.environment:SphereNavigationEnv")
