import itertools
import math
from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from typing import Optional, Protocol

import numpy as np

from .episode_state import EntityCategory
from .geometry import as_position, planar_distance


class PhysicsService(Protocol):
    """Physics backend consumed by :class:`~sphere_navigation.lifecycle.EpisodeController`.

    ``advance`` integrates one tick and returns the categories of everything
    the agent touched during it.
    """
    def create_body(self, category: EntityCategory, position: Sequence[float], radius: float) -> Hashable: ...

    def destroy(self, handle: Hashable) -> None: ...

    def apply_force(self, handle: Hashable, force: Sequence[float]) -> None: ...

    def get_position(self, handle: Hashable) -> np.ndarray: ...

    def get_velocity(self, handle: Hashable) -> np.ndarray: ...

    def set_position(self, handle: Hashable, position: Sequence[float]) -> None: ...

    def zero_motion(self, handle: Hashable) -> None: ...

    def advance(self) -> list[EntityCategory]: ...


@dataclass
class Oscillation:
    """Back-and-forth motion of a pillar along one floor axis.

    Attributes:
        axis (np.ndarray): Unit direction ``(x, y, z)``.
        distance (float): Amplitude.
        speed (float): Angular frequency in rad/s.
    """
    axis: np.ndarray
    distance: float = 3.0
    speed: float = 2.0

    @classmethod
    def random(cls, rng, distance=3.0, speed=2.0):
        """Pick the x or z axis with a random sign."""
        axis = np.array([1.0, 0.0, 0.0]) if rng.random() > 0.5 else np.array([0.0, 0.0, 1.0])
        if rng.random() > 0.5:
            axis = -axis
        return cls(axis, distance, speed)

    def offset(self, time):
        return self.axis * math.sin(time * self.speed) * self.distance


@dataclass
class Body:
    """Disk-shaped entity of the point-mass world."""
    category: Optional[EntityCategory]
    position: np.ndarray
    radius: float
    mass: float = 1.0
    movable: bool = False
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    force: np.ndarray = field(default_factory=lambda: np.zeros(2))
    oscillation: Optional[Oscillation] = None
    anchor: Optional[np.ndarray] = None


class PointMassWorld:
    """Planar point-mass physics with disk contacts, walls and falling.

    Movable bodies integrate applied forces with damping. Contacts are only
    reported for the agent body; they do not push bodies apart, since every
    contact ends the episode. Without walls, a body past the floor edge falls.

    Args:
        dt (float): Tick length in seconds.
        damping (float): Fraction of velocity lost per tick.
        gravity (float): Downward acceleration off the floor.
        arena_half_extent (float): Half side of the square floor.
        walls (bool): Enclose the floor with walls.
    """
    def __init__(self, dt=0.02, damping=0.05, gravity=9.81, arena_half_extent=20.0, walls=True):
        self.dt = dt
        self.damping = damping
        self.gravity = gravity
        self.arena_half_extent = arena_half_extent
        self.walls = walls
        self.time = 0.0
        self.bodies = {}
        self.agent = None
        self._ids = itertools.count()

    def create_body(self, category, position, radius, mass=1.0, movable=False, oscillation=None):
        """Add a body and return its handle.

        Args:
            category (EntityCategory | None): Contact category. None for the agent.
            position (Sequence[float]): ``(x, y, z)`` spawn position.
            radius (float): Disk radius.
            mass (float): Mass for force integration.
            movable (bool): Whether applied forces move the body.
            oscillation (Oscillation | None): Scripted motion around the spawn position.

        Returns:
            int: Handle of the new body.
        """
        position = as_position(position)
        handle = next(self._ids)
        self.bodies[handle] = Body(
            category=category,
            position=position,
            radius=radius,
            mass=mass,
            movable=movable,
            oscillation=oscillation,
            anchor=position.copy() if oscillation is not None else None,
        )
        return handle

    def create_agent(self, position, radius=0.5, mass=1.0):
        self.agent = self.create_body(None, position, radius, mass=mass, movable=True)
        return self.agent

    def destroy(self, handle):
        del self.bodies[handle]

    def apply_force(self, handle, force):
        self.bodies[handle].force += np.asarray(force, dtype=np.float64)[:2]

    def get_position(self, handle):
        return self.bodies[handle].position.copy()

    def get_velocity(self, handle):
        velocity = self.bodies[handle].velocity
        return np.array([velocity[0], velocity[2]])

    def set_position(self, handle, position):
        body = self.bodies[handle]
        body.position = as_position(position)
        if body.oscillation is not None:
            body.anchor = body.position.copy()

    def zero_motion(self, handle):
        body = self.bodies[handle]
        body.velocity = np.zeros(3)
        body.force = np.zeros(2)

    def on_floor(self, position):
        return abs(position[0]) <= self.arena_half_extent and abs(position[2]) <= self.arena_half_extent

    def integrate_state(self):
        """Integrate forces of movable bodies and move oscillating ones."""
        self.time += self.dt
        for body in self.bodies.values():
            if body.oscillation is not None:
                body.position = body.anchor + body.oscillation.offset(self.time)
                continue
            if not body.movable:
                continue
            body.velocity = body.velocity * (1 - self.damping)
            body.velocity[0] += body.force[0] / body.mass * self.dt
            body.velocity[2] += body.force[1] / body.mass * self.dt
            if not self.on_floor(body.position):
                body.velocity[1] -= self.gravity * self.dt
            body.position = body.position + body.velocity * self.dt
            body.force = np.zeros(2)

    def wall_contact(self, body):
        """Clamp ``body`` inside the walls and return True if it touched one."""
        limit = self.arena_half_extent - body.radius
        touched = False
        for axis in (0, 2):
            if abs(body.position[axis]) > limit:
                body.position[axis] = math.copysign(limit, body.position[axis])
                body.velocity[axis] = 0.0
                touched = True
        return touched

    def agent_contacts(self):
        """Return the categories the agent overlaps after integration."""
        if self.agent is None:
            return []
        agent = self.bodies[self.agent]
        contacts = []
        if self.walls and self.wall_contact(agent):
            contacts.append(EntityCategory.WALL)
        for handle, body in self.bodies.items():
            if handle == self.agent or body.category is None:
                continue
            if planar_distance(agent.position, body.position) < agent.radius + body.radius:
                contacts.append(body.category)
        return contacts

    def advance(self):
        """Run one tick and return the agent's contacts."""
        self.integrate_state()
        return self.agent_contacts()
