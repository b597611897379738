import itertools

import numpy as np
import pytest

from sphere_navigation.config import NavigationConfig, ObstacleConfig, TargetConfig
from sphere_navigation.episode_state import EntityCategory
from sphere_navigation.lifecycle import EpisodeController


class ScriptedPhysics:
    """Physics stand-in whose ticks move the agent along a prepared script.

    Each ``advance`` pops ``(position, contacts)`` from ``script``; a position
    of None leaves the agent where it is.
    """
    def __init__(self, agent_position=(0.0, 0.0, 0.0)):
        self._ids = itertools.count()
        self.positions = {}
        self.categories = {}
        self.velocities = {}
        self.forces = []
        self.destroyed = []
        self.script = []
        self.agent = self.create_body(None, agent_position, 0.5)

    def create_body(self, category, position, radius):
        handle = next(self._ids)
        self.positions[handle] = np.array(position, dtype=np.float64)
        self.categories[handle] = category
        return handle

    def destroy(self, handle):
        del self.positions[handle]
        del self.categories[handle]
        self.destroyed.append(handle)

    def apply_force(self, handle, force):
        self.forces.append((handle, np.array(force, dtype=np.float64)))

    def get_position(self, handle):
        return self.positions[handle].copy()

    def get_velocity(self, handle):
        return self.velocities.get(handle, np.zeros(2)).copy()

    def set_position(self, handle, position):
        self.positions[handle] = np.array(position, dtype=np.float64)

    def zero_motion(self, handle):
        self.velocities[handle] = np.zeros(2)

    def advance(self):
        if not self.script:
            return []
        position, contacts = self.script.pop(0)
        if position is not None:
            self.positions[self.agent] = np.array(position, dtype=np.float64)
        return list(contacts)

    def handles_of(self, category):
        return [h for h, c in self.categories.items() if c is category]


@pytest.fixture
def physics():
    return ScriptedPhysics()


@pytest.fixture
def make_controller(physics):
    """Build a controller on the scripted physics with a fixed target and no obstacles by default."""
    def factory(target_position=(5.0, 0.0, 0.0), obstacles=None, target=None, with_target=True, seed=0,
                fixed=(), auto_reset=True, **kwargs):
        config = NavigationConfig(
            obstacles=obstacles or ObstacleConfig(min_count=0, max_count=0),
            target=target or TargetConfig(start_position=target_position),
            **kwargs,
        )
        target_handle = None
        if with_target:
            target_handle = physics.create_body(EntityCategory.TARGET, (0.0, 0.0, 0.0), 0.5)
        controller = EpisodeController(
            physics, physics.agent, target_handle, config, rng=np.random.default_rng(seed),
            fixed_obstacles=fixed, auto_reset=auto_reset,
        )
        return controller
    return factory
