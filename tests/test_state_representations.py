"""
Tests for State Representations

Tests for FeatureEncoder in state_representations.py
"""
import pytest
import numpy as np
from snake_qlearning.environment import GridWorld, Action
from snake_qlearning.state_representations import FeatureEncoder


def make_world(snake, apple, use_motion_features=True):
    env = GridWorld(seed=0, use_motion_features=use_motion_features)
    env.reset(options={'snake': snake, 'apple': apple})
    return env


class TestFeatureEncoderBase:
    """Test basic FeatureEncoder functionality"""

    def test_encoder_initialization(self):
        """Test encoder initializes with correct parameters"""
        encoder = FeatureEncoder(grid_size=10)
        assert encoder.grid_size == 10
        assert encoder.use_motion_features is True
        assert encoder.output_dim == 9

    def test_encoder_without_motion(self):
        """Test encoder width without motion features"""
        encoder = FeatureEncoder(grid_size=10, use_motion_features=False)
        assert encoder.output_dim == 6

    def test_start_layout_encoding(self):
        """Test full 9-feature vector at the start layout"""
        env = GridWorld(seed=0)
        env.reset()

        obs = env.encoder.encode_for_target(env)

        # liveness, motion from unknown previous head (origin), no danger, apple right/below
        expected = [1, 4, 4, 0, 0, 0, 0, 1, 1]
        np.testing.assert_array_equal(obs, np.array(expected, dtype=np.float32))
        assert obs.dtype == np.float32

    def test_six_feature_order(self):
        """Test 6-feature vector is danger then food direction"""
        env = make_world([(0, 0)], (3, 0), use_motion_features=False)

        obs = env.encoder.encode_for_target(env)

        np.testing.assert_array_equal(obs, [1, 0, 1, 0, 0, 1])


class TestMotionFeatures:
    """Test previous-head tracking"""

    def test_encode_for_action_records_head(self):
        """Test action encoding stores the head for the next delta"""
        env = GridWorld(seed=0)
        env.reset()

        env.encoder.encode_for_action(env)
        assert env.previous_head == (4, 4)

        env.apply(Action.RIGHT)
        obs = env.encoder.encode_for_target(env)

        assert obs[1] == 0
        assert obs[2] == 1
        assert env.previous_head == (4, 4)

    def test_encode_for_target_is_pure(self):
        """Test target encoding leaves the world untouched"""
        env = GridWorld(seed=0)
        env.reset()

        first = env.encoder.encode_for_target(env)
        second = env.encoder.encode_for_target(env)

        np.testing.assert_array_equal(first, second)
        assert env.previous_head is None

    def test_upward_motion(self):
        """Test delta after moving up"""
        env = make_world([(5, 5)], (0, 0))
        env.encoder.encode_for_action(env)
        env.apply(Action.UP)

        obs = env.encoder.encode_for_target(env)
        assert list(obs[1:3]) == [-1, 0]

    def test_no_tracking_without_motion_features(self):
        """Test the 6-feature encoder never records a previous head"""
        env = make_world([(5, 5)], (0, 0), use_motion_features=False)
        env.encoder.encode_for_action(env)
        assert env.previous_head is None


class TestDangerFeatures:
    """Test danger detection"""

    def test_corner_walls(self):
        """Test walls at the top-left corner"""
        env = make_world([(0, 0)], (5, 5))
        assert env.encoder.danger_features(env) == [1.0, 0.0, 1.0, 0.0]

    def test_opposite_corner_walls(self):
        """Test walls at the bottom-right corner"""
        env = make_world([(9, 9)], (5, 5))
        assert env.encoder.danger_features(env) == [0.0, 1.0, 0.0, 1.0]

    def test_body_danger(self):
        """Test body segments count as danger"""
        env = make_world([(5, 5), (5, 6), (4, 6), (4, 5)], (0, 0))
        assert env.encoder.danger_features(env) == [1.0, 0.0, 0.0, 1.0]

    def test_no_mutation(self):
        """Test danger probing does not move the snake"""
        snake = [(5, 5), (5, 6), (4, 6)]
        env = make_world(snake, (0, 0))
        env.encoder.danger_features(env)
        assert env.snake == snake


class TestFoodDirection:
    """Test food direction signs"""

    @pytest.mark.parametrize("apple,expected", [
        ((2, 2), [-1.0, -1.0]),
        ((8, 8), [1.0, 1.0]),
        ((8, 5), [0.0, 1.0]),
        ((5, 1), [-1.0, 0.0]),
    ])
    def test_signs(self, apple, expected):
        """Test horizontal then vertical sign"""
        env = make_world([(5, 5)], apple)
        assert env.encoder.food_direction_features(env) == expected

    def test_no_apple(self):
        """Test a full board encodes no food direction"""
        env = make_world([(5, 5)], None)
        assert env.encoder.food_direction_features(env) == [0.0, 0.0]


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
