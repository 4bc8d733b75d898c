"""
Training Configuration

Constants shared by the environment, encoder, approximator and trainer,
plus the TrainingConfig dataclass the command line script fills in.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Tuple


GRID_SIZE = 10
NUM_ACTIONS = 4

# Fixed restart layout
START_POSITION = (4, 4)
APPLE_START = (7, 7)

# Q-learning
GAMMA = 0.9
FIT_EPOCHS = 5
LEARNING_RATE = 1e-4
HIDDEN_DIMS = (512, 512)

# Exploration
EPSILON_START = 0.3
EPSILON_DECAY = 0.0001

# Every N-th episode is greedy, rendered and checkpointed
EVALUATION_INTERVAL = 100
STEP_DELAY = 0.2


@dataclass
class TrainingConfig:
    """Configuration for online DQN training"""
    # Environment
    grid_size: int = GRID_SIZE
    use_motion_features: bool = True
    reverse_guard: bool = True
    unified_rewards: bool = False

    # Network
    hidden_dims: Tuple[int, ...] = HIDDEN_DIMS
    learning_rate: float = LEARNING_RATE

    # Q-learning
    gamma: float = GAMMA
    fit_epochs: int = FIT_EPOCHS

    # Exploration
    epsilon_start: float = EPSILON_START
    epsilon_decay: float = EPSILON_DECAY
    evaluation_interval: int = EVALUATION_INTERVAL

    # Loop
    num_episodes: Optional[int] = None  # None runs until stopped
    step_delay: float = STEP_DELAY
    log_interval: int = 100
    render: bool = True

    # Other
    seed: Optional[int] = None
    checkpoint_path: str = 'results/weights/online_dqn.pt'
    metrics_path: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)
