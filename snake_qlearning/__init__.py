"""
Snake Online Q-Learning Components

This package contains the components of the snake Q-learning testbed:
- Grid world environment and reward shaping
- Feature encoder
- Q-value approximator (PyTorch MLP)
- Exploration policy and utility functions
- Online training loop
"""

from snake_qlearning.environment import GridWorld, Action, UNIFIED_REWARDS
from snake_qlearning.state_representations import FeatureEncoder
from snake_qlearning.networks import QNetwork, QApproximator, count_parameters
from snake_qlearning.utils import ExplorationPolicy, MetricsTracker, set_seed
from snake_qlearning.trainer import OnlineDQNTrainer

__all__ = [
    'GridWorld',
    'Action',
    'UNIFIED_REWARDS',
    'FeatureEncoder',
    'QNetwork',
    'QApproximator',
    'count_parameters',
    'ExplorationPolicy',
    'MetricsTracker',
    'set_seed',
    'OnlineDQNTrainer',
]
