import math

import numpy as np
import pytest

from sphere_navigation.episode_state import EpisodeOutcome, EpisodeState
from sphere_navigation.reward import RewardConfig, RewardShaper


def make_state(agent=(0.0, 0.0, 0.0), target=(5.0, 0.0, 0.0)):
    return EpisodeState(agent_start_position=agent, target_position=target)


@pytest.mark.unit
class TestRewardShaper:
    def test_progress_towards_target(self):
        state = make_state()
        assert state.previous_distance_to_target == pytest.approx(5.0)

        reward = RewardShaper().shape_step(state, np.array([1.0, 0.0, 0.0]), np.zeros(2))

        assert reward.progress == pytest.approx(0.01)
        assert reward.alignment == 0.0
        assert reward.step_cost == pytest.approx(-0.001)
        assert reward.total == pytest.approx(0.009)
        assert state.previous_distance_to_target == pytest.approx(4.0)

    def test_moving_away_is_not_rewarded(self):
        state = make_state()
        reward = RewardShaper().shape_step(state, np.array([-1.0, 0.0, 0.0]), np.zeros(2))
        assert reward.progress == 0.0
        assert state.previous_distance_to_target == pytest.approx(6.0)

    def test_optional_retreat_penalty(self):
        shaper = RewardShaper(RewardConfig(retreat_penalty_multiplier=0.5))
        assert shaper.progress(5.0, 6.0) == pytest.approx(-0.5)
        assert shaper.progress(5.0, 5.0) == 0.0

    def test_heading_away_from_target_is_penalized(self):
        state = make_state(target=(-5.0, 0.0, 0.0))
        reward = RewardShaper().shape_step(state, np.array([0.0, 0.0, 0.0]), np.array([1.0, 0.0]))
        assert reward.progress == 0.0
        assert reward.alignment == pytest.approx(-0.02)
        assert reward.total == pytest.approx(-0.021)

    def test_progress_and_alignment_on_the_same_tick(self):
        state = make_state()
        reward = RewardShaper().shape_step(state, np.array([1.0, 0.0, 0.0]), np.array([-1.0, 0.0]))
        assert reward.progress == pytest.approx(0.01)
        assert reward.alignment == pytest.approx(-0.02)
        assert reward.total == pytest.approx(-0.011)

    def test_small_actions_are_not_penalized(self):
        shaper = RewardShaper()
        assert shaper.alignment([0.05, 0.0], [-1.0, 0.0]) == 0.0

    def test_sideways_heading_is_not_penalized(self):
        assert RewardShaper().alignment([0.0, 1.0], [1.0, 0.0]) == 0.0

    def test_alignment_penalty_can_be_disabled(self):
        shaper = RewardShaper(RewardConfig(alignment_enabled=False))
        assert shaper.alignment([1.0, 0.0], [-1.0, 0.0]) == 0.0

    def test_terminal_rewards(self):
        shaper = RewardShaper(RewardConfig(success_reward=2.0, collision_penalty=-0.1, fall_penalty=-0.05))
        assert shaper.terminal(EpisodeOutcome.REACHED_TARGET) == 2.0
        assert shaper.terminal(EpisodeOutcome.HIT_OBSTACLE_OR_WALL) == -0.1
        assert shaper.terminal(EpisodeOutcome.FELL_OUT_OF_BOUNDS) == -0.05
        assert shaper.terminal(EpisodeOutcome.ONGOING) == 0.0

    def test_previous_distance_tracks_every_tick(self):
        rng = np.random.default_rng(3)
        state = make_state(target=(2.0, 0.0, -3.0))
        shaper = RewardShaper()
        for _ in range(100):
            position = np.array([rng.uniform(-10, 10), 0.0, rng.uniform(-10, 10)])
            previous = state.previous_distance_to_target
            reward = shaper.shape_step(state, position, rng.uniform(-1, 1, 2))
            current = state.distance_to_target(position)
            assert state.previous_distance_to_target == current
            assert (reward.progress > 0) == (current < previous)

    def test_missing_target_only_costs_time(self):
        state = EpisodeState(agent_start_position=(0.0, 0.0, 0.0))
        reward = RewardShaper().shape_step(state, np.array([1.0, 0.0, 0.0]), np.array([1.0, 0.0]))
        assert reward.progress == 0.0
        assert reward.alignment == 0.0
        assert reward.total == pytest.approx(-0.001)
        assert math.isinf(state.previous_distance_to_target)

    def test_breakdown_as_dict(self):
        reward = RewardShaper().shape_step(make_state(), np.array([1.0, 0.0, 0.0]), np.zeros(2))
        assert set(reward.as_dict()) == {"progress", "alignment", "step_cost", "terminal"}
