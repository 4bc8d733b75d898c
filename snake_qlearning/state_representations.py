"""
State Representation Encoder

Turns a GridWorld into the fixed-length feature vector fed to the
Q-value approximator.

Features (9-dimensional, motion features on):
[0]: Liveness (always 1, the snake has at least one segment)
[1-2]: Head motion since the last action encoding (d_row, d_col)
[3-6]: Danger (up, down, left, right)
[7-8]: Food direction (horizontal, vertical) as -1/0/+1

Features (6-dimensional, motion features off):
[0-3]: Danger (up, down, left, right)
[4-5]: Food direction (horizontal, vertical)
"""

import numpy as np
from typing import List


class FeatureEncoder:
    """
    Encodes GridWorld state as a 9 or 6-dimensional feature vector

    encode_for_action() records the current head as the previous head
    once it has encoded the state; encode_for_target() never does, so the
    post-move state never overwrites the pre-move reference point.
    """

    # Danger order matches the action indices (UP, DOWN, LEFT, RIGHT)
    DANGER_ACTIONS = (0, 1, 2, 3)

    def __init__(self, grid_size: int, use_motion_features: bool = True):
        self.grid_size = grid_size
        self.use_motion_features = use_motion_features

    @property
    def output_dim(self) -> int:
        return 9 if self.use_motion_features else 6

    def encode_for_action(self, world) -> np.ndarray:
        """Encode the state an action is chosen from, then remember the head"""
        features = self._encode(world)
        if self.use_motion_features:
            world.previous_head = world.head
        return features

    def encode_for_target(self, world) -> np.ndarray:
        """Encode the state reached after an action (no side effects)"""
        return self._encode(world)

    def _encode(self, world) -> np.ndarray:
        features = self.danger_features(world) + self.food_direction_features(world)

        if self.use_motion_features:
            features = [1.0] + self.motion_features(world) + features

        return np.array(features, dtype=np.float32)

    def danger_features(self, world) -> List[float]:
        """1 for each direction whose next cell is a wall or the body"""
        dangers = []
        for action in self.DANGER_ACTIONS:
            next_pos = world.next_position(world.head, action)
            is_danger = world.is_out_of_bounds(next_pos) or world.is_on_body(next_pos)
            dangers.append(float(is_danger))
        return dangers

    def food_direction_features(self, world) -> List[float]:
        """Sign of the apple offset from the head: [horizontal, vertical]"""
        if world.apple is None:
            return [0.0, 0.0]

        head_row, head_col = world.head
        apple_row, apple_col = world.apple
        return [
            float(np.sign(apple_col - head_col)),  # -1 left, +1 right
            float(np.sign(apple_row - head_row)),  # -1 above, +1 below
        ]

    def motion_features(self, world) -> List[float]:
        """Head displacement since the previous head; unknown counts as (0, 0)"""
        head_row, head_col = world.head
        prev_row, prev_col = world.previous_head or (0, 0)
        return [float(head_row - prev_row), float(head_col - prev_col)]
