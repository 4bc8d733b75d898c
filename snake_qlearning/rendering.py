"""
Terminal rendering of the board and per-tick training telemetry
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from snake_qlearning.config import GRID_SIZE


ACTION_NAMES = ('up', 'down', 'left', 'right')


@dataclass
class TickSnapshot:
    """Everything a display needs about one training tick"""
    episode: int
    tick: int
    action: int
    reward: int
    cumulative_reward: int
    epsilon: float
    best_score: int
    score: int
    snake: List[Tuple[int, int]]
    apple: Optional[Tuple[int, int]]
    evaluation: bool = False
    loss_history: List[float] = field(default_factory=list)


def render_grid(snake, apple, grid_size: int = GRID_SIZE) -> str:
    """Draw the board: H = head, o = body, F = food"""
    grid = [[' ' for _ in range(grid_size)] for _ in range(grid_size)]

    for i, (row, col) in enumerate(snake):
        # A fatal move leaves the head off the board
        if 0 <= row < grid_size and 0 <= col < grid_size:
            grid[row][col] = 'H' if i == 0 else 'o'

    if apple is not None:
        grid[apple[0]][apple[1]] = 'F'

    lines = ['+' + '-' * grid_size + '+']
    lines.extend('|' + ''.join(row) + '|' for row in grid)
    lines.append('+' + '-' * grid_size + '+')
    return '\n'.join(lines)


def format_snapshot(snapshot: TickSnapshot, grid_size: int = GRID_SIZE) -> str:
    lines = [
        render_grid(snapshot.snake, snapshot.apple, grid_size),
        f"Episode: {snapshot.episode}  Tick: {snapshot.tick}",
        f"Action: {ACTION_NAMES[snapshot.action]}",
        f"Reward: {snapshot.reward}  Sum: {snapshot.cumulative_reward}",
        f"Epsilon: {snapshot.epsilon:.4f}",
        f"Score: {snapshot.score}  Best: {snapshot.best_score}",
    ]
    if snapshot.loss_history:
        lines.append("Loss: " + ", ".join(f"{loss:.3f}" for loss in snapshot.loss_history))
    return '\n'.join(lines)


class TerminalRenderer:
    """
    Prints evaluation-episode ticks to stdout

    Args:
        grid_size: Board size
        every_tick: Print every tick, not only evaluation episodes
    """

    def __init__(self, grid_size: int = GRID_SIZE, every_tick: bool = False):
        self.grid_size = grid_size
        self.every_tick = every_tick

    def __call__(self, snapshot: TickSnapshot):
        if snapshot.evaluation or self.every_tick:
            print(format_snapshot(snapshot, self.grid_size), flush=True)
            print(flush=True)
