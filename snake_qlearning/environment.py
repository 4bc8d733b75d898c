"""
Grid World Snake Environment - Gymnasium Compatible

Single snake on an N x N grid with absolute actions (UP, DOWN, LEFT, RIGHT).

Reward table (default):
    - Reverse onto own neck: -50 (move rejected, snake unchanged)
    - Wall: -10
    - Self: -5
    - Food: +15 (snake grows)
    - Length-1 snake: +1 if closer or equal to food, -1 if farther
    - Otherwise: 0

Any reward below the fatal threshold (-1) ends the episode. The caller
decides when to call reset().
"""

import numpy as np
import gymnasium as gym
from gymnasium import spaces
from typing import Tuple, Dict, List, Optional
from enum import IntEnum

from snake_qlearning.config import GRID_SIZE, START_POSITION, APPLE_START
from snake_qlearning.rendering import render_grid
from snake_qlearning.state_representations import FeatureEncoder


Position = Tuple[int, int]


class Action(IntEnum):
    """Absolute moves, in Q-vector index order"""
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3


# (row, col) deltas
ACTION_DELTAS = {
    Action.UP: (-1, 0),
    Action.DOWN: (1, 0),
    Action.LEFT: (0, -1),
    Action.RIGHT: (0, 1),
}

DEFAULT_REWARDS = {
    'reward_food': 15,
    'reward_wall': -10,
    'reward_self': -5,
    'reward_reverse': -50,
    'reward_closer': 1,
    'reward_farther': -1,
    'reward_step': 0,
}

# Simpler historical table: one value for every collision, no reverse guard
UNIFIED_REWARDS = {
    'reward_food': 25,
    'reward_wall': -25,
    'reward_self': -25,
    'reward_reverse': -25,
    'reward_closer': 1,
    'reward_farther': -1,
    'reward_step': 0,
}


class GridWorld(gym.Env):
    """
    Snake grid world

    Observation:
        Feature vector from FeatureEncoder (9 values, or 6 without
        motion features)

    Actions:
        4 absolute actions (UP, DOWN, LEFT, RIGHT)

    Positions are (row, col) with row growing downwards.
    """

    metadata = {'render_modes': ['human', 'ansi']}

    def __init__(
        self,
        grid_size: int = GRID_SIZE,
        start_position: Position = START_POSITION,
        apple_start: Position = APPLE_START,
        reverse_guard: bool = True,
        reward_food: int = DEFAULT_REWARDS['reward_food'],
        reward_wall: int = DEFAULT_REWARDS['reward_wall'],
        reward_self: int = DEFAULT_REWARDS['reward_self'],
        reward_reverse: int = DEFAULT_REWARDS['reward_reverse'],
        reward_closer: int = DEFAULT_REWARDS['reward_closer'],
        reward_farther: int = DEFAULT_REWARDS['reward_farther'],
        reward_step: int = DEFAULT_REWARDS['reward_step'],
        fatal_threshold: int = -1,
        use_motion_features: bool = True,
        max_steps: Optional[int] = None,
        render_mode: Optional[str] = None,
        seed: Optional[int] = None
    ):
        super().__init__()

        # Configuration
        self.grid_size = grid_size
        self.start_position = tuple(start_position)
        self.apple_start = tuple(apple_start)
        self.reverse_guard = reverse_guard
        self.fatal_threshold = fatal_threshold
        self.max_steps = max_steps
        self.render_mode = render_mode

        # Rewards
        self.reward_food = reward_food
        self.reward_wall = reward_wall
        self.reward_self = reward_self
        self.reward_reverse = reward_reverse
        self.reward_closer = reward_closer
        self.reward_farther = reward_farther
        self.reward_step = reward_step

        self.encoder = FeatureEncoder(grid_size, use_motion_features=use_motion_features)

        self.action_space = spaces.Discrete(len(Action))
        # Motion deltas can span the whole board (unknown previous head counts as origin)
        self.observation_space = spaces.Box(
            low=-grid_size, high=grid_size,
            shape=(self.encoder.output_dim,), dtype=np.float32
        )

        # Game state
        self.snake: List[Position] = []
        self.apple: Optional[Position] = None
        self.score = 0
        self.steps = 0
        self.total_reward = 0
        self.previous_head: Optional[Position] = None
        self.prev_food_distance: Optional[int] = None
        self.last_event: Optional[str] = None
        self.done = False

        self.np_random = None
        self.seed(seed)

    def seed(self, seed: Optional[int] = None):
        """Set random seed for apple placement"""
        self.np_random, seed = gym.utils.seeding.np_random(seed)
        return [seed]

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[dict] = None
    ) -> Tuple[np.ndarray, Dict]:
        """
        Reset to the fixed start layout

        options may hold 'snake' (list of positions, head first) and
        'apple' (position) to start from another legal board.
        """
        super().reset(seed=seed)

        if seed is not None:
            self.seed(seed)

        options = options or {}
        snake = [tuple(p) for p in options.get('snake', [self.start_position])]
        apple = options.get('apple', self.apple_start)
        apple = tuple(apple) if apple is not None else None
        self._validate_board(snake, apple)

        self.snake = snake
        self.apple = apple

        # Reset counters
        self.score = 0
        self.steps = 0
        self.total_reward = 0
        self.previous_head = None
        self.prev_food_distance = None
        self.last_event = None
        self.done = False

        return self.encoder.encode_for_target(self), self._get_info()

    def apply(self, action: int) -> int:
        """
        Apply one move and return its reward

        The snake is left exactly as the move produced it: a fatal
        wall or self collision keeps the pushed head and the tail.
        """
        if self.done:
            raise RuntimeError("Episode is done. Call reset() to start a new episode.")
        if not 0 <= int(action) < len(Action):
            raise ValueError(f"Invalid action: {action}")

        reward = self._move(Action(int(action)))

        self.steps += 1
        self.total_reward += reward
        if self.is_fatal(reward):
            self.done = True

        return reward

    def _move(self, action: Action) -> int:
        new_head = self.next_position(self.head, action)

        if self.reverse_guard and len(self.snake) > 1 and new_head == self.snake[1]:
            self.last_event = 'reverse'
            return self.reward_reverse

        self.snake.insert(0, new_head)

        if self.is_out_of_bounds(new_head):
            self.last_event = 'wall'
            return self.reward_wall

        if self.is_on_body(new_head):
            self.last_event = 'self'
            return self.reward_self

        if new_head == self.apple:
            self.score += 1
            self._spawn_apple()
            self.last_event = 'food'
            return self.reward_food

        self.snake.pop()
        self.last_event = 'move'

        if self.apple is None:
            return self.reward_step

        # Distance shaping only while the snake has no tail
        distance = self.manhattan_distance_to_apple()
        prev_distance = self.prev_food_distance
        self.prev_food_distance = distance

        if len(self.snake) == 1 and prev_distance is not None:
            if distance > prev_distance:
                return self.reward_farther
            return self.reward_closer

        return self.reward_step

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        """
        Execute one step in the environment

        Returns:
            observation, reward, terminated, truncated, info
        """
        reward = self.apply(action)

        terminated = self.is_fatal(reward)
        truncated = not terminated and self.is_truncated()
        if truncated:
            self.done = True

        obs = self.encoder.encode_for_target(self)
        info = self._get_info()

        return obs, float(reward), terminated, truncated, info

    def is_fatal(self, reward: float) -> bool:
        """True when the reward ends the episode"""
        return reward < self.fatal_threshold

    def is_truncated(self) -> bool:
        """True once the step limit is reached (never when max_steps is None)"""
        return self.max_steps is not None and self.steps >= self.max_steps

    @property
    def head(self) -> Position:
        return self.snake[0]

    def next_position(self, position: Position, action: int) -> Position:
        """Position one step from `position` in the direction of `action`"""
        d_row, d_col = ACTION_DELTAS[Action(int(action))]
        return (position[0] + d_row, position[1] + d_col)

    def is_out_of_bounds(self, position: Position) -> bool:
        row, col = position
        return not (0 <= row < self.grid_size and 0 <= col < self.grid_size)

    def is_on_body(self, position: Position) -> bool:
        """Check position against every segment except the head"""
        return position in self.snake[1:]

    def manhattan_distance_to_apple(self) -> int:
        return abs(self.apple[0] - self.head[0]) + abs(self.apple[1] - self.head[1])

    def free_cells(self) -> List[Position]:
        occupied = set(self.snake)
        return [
            (row, col)
            for row in range(self.grid_size)
            for col in range(self.grid_size)
            if (row, col) not in occupied
        ]

    def _spawn_apple(self):
        """Reject-and-resample a uniformly random free cell"""
        occupied = set(self.snake)
        in_bounds = sum(1 for p in occupied if not self.is_out_of_bounds(p))
        if in_bounds >= self.grid_size * self.grid_size:
            # Board is full
            self.apple = None
            return

        while True:
            row = int(self.np_random.integers(0, self.grid_size))
            col = int(self.np_random.integers(0, self.grid_size))
            if (row, col) not in occupied:
                self.apple = (row, col)
                return

    def _validate_board(self, snake: List[Position], apple: Optional[Position]):
        if not snake:
            raise ValueError("Snake must have at least one segment")
        if len(set(snake)) != len(snake):
            raise ValueError("Snake segments must be unique")
        for position in snake:
            if self.is_out_of_bounds(position):
                raise ValueError(f"Snake segment {position} is outside the grid")
        if apple is not None:
            if self.is_out_of_bounds(apple):
                raise ValueError(f"Apple {apple} is outside the grid")
            if apple in snake:
                raise ValueError(f"Apple {apple} overlaps the snake")

    def _get_info(self) -> Dict:
        """Get additional information about current state"""
        return {
            'score': self.score,
            'steps': self.steps,
            'snake_length': len(self.snake),
            'total_reward': self.total_reward,
            'event': self.last_event,
        }

    def render(self):
        """Render the board as text"""
        text = render_grid(self.snake, self.apple, self.grid_size)
        if self.render_mode == 'ansi':
            return text

        print(text)
        print(f"Score: {self.score}, Steps: {self.steps}, Length: {len(self.snake)}")
        return None
