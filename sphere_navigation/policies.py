import numpy as np
import pygame
from simple_pid import PID


class GreedyPolicy:
    """Baseline that steers straight at the target and ignores obstacles.

    Two PID controllers drive the planar offset to the target to zero. The
    offset is recovered from the observation as ``direction * distance``.

    Args:
        kp (float): Proportional gain.
        ki (float): Integral gain.
        kd (float): Derivative gain.
        dt (float): Tick length passed to the controllers.
    """
    def __init__(self, kp=0.5, ki=0.0, kd=0.1, dt=0.02):
        self.gains = (kp, ki, kd)
        self.dt = dt
        self.reset()

    def reset(self):
        """Forget integral and derivative state, e.g. between episodes."""
        kp, ki, kd = self.gains
        self.controller_x = PID(kp, ki, kd, setpoint=0, sample_time=None, output_limits=(-1.0, 1.0))
        self.controller_z = PID(kp, ki, kd, setpoint=0, sample_time=None, output_limits=(-1.0, 1.0))

    def __call__(self, observation):
        """Return the action ``[x, z]`` for an observation vector.

        Args:
            observation (np.ndarray): ``[vel_x, vel_z, dir_x, dir_z, distance, ...]``.

        Returns:
            np.ndarray: Action in [-1, 1].
        """
        offset_x = observation[2] * observation[4]
        offset_z = observation[3] * observation[4]
        # the controllers measure the negated offset so a positive offset pushes forward
        action_x = self.controller_x(-offset_x, dt=self.dt)
        action_z = self.controller_z(-offset_z, dt=self.dt)
        return np.array([action_x, action_z], dtype=np.float32)


def keyboard_action(pressed):
    """Map held keys to an action for manual play.

    Arrow keys and WASD behave like raw axis input: opposite keys cancel out.

    Args:
        pressed (Sequence[bool]): Result of ``pygame.key.get_pressed()`` or any
            mapping indexable by pygame key codes.

    Returns:
        np.ndarray: Action ``[x, z]`` with entries in {-1, 0, 1}.
    """
    def held(*keys):
        return any(pressed[key] for key in keys)

    x = float(held(pygame.K_RIGHT, pygame.K_d)) - float(held(pygame.K_LEFT, pygame.K_a))
    z = float(held(pygame.K_UP, pygame.K_w)) - float(held(pygame.K_DOWN, pygame.K_s))
    return np.array([x, z], dtype=np.float32)
