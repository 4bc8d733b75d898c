"""
Utility Functions for Snake Q-Learning

Includes:
- Epsilon-greedy exploration policy with linear decay
- Metric tracking utilities
- Seeding, device and checkpoint helpers
"""

import numpy as np
import torch
from typing import Optional
import random

from snake_qlearning.config import (
    EPSILON_START,
    EPSILON_DECAY,
    EVALUATION_INTERVAL,
    NUM_ACTIONS,
)


class ExplorationPolicy:
    """
    Epsilon-greedy action selection

    epsilon(episode) = epsilon_start - episode * epsilon_decay

    Epsilon is not clamped: once it drops below zero the random branch
    can no longer trigger. Every `evaluation_interval`-th episode is
    played greedily.
    """

    def __init__(
        self,
        epsilon_start: float = EPSILON_START,
        epsilon_decay: float = EPSILON_DECAY,
        evaluation_interval: int = EVALUATION_INTERVAL,
        num_actions: int = NUM_ACTIONS,
        seed: Optional[int] = None
    ):
        """
        Initialize exploration policy

        Args:
            epsilon_start: Exploration rate at episode 0
            epsilon_decay: Amount subtracted per episode
            evaluation_interval: Episodes that are multiples of this are greedy
            num_actions: Size of the action space
            seed: Random seed for reproducibility
        """
        self.epsilon_start = epsilon_start
        self.epsilon_decay = epsilon_decay
        self.evaluation_interval = evaluation_interval
        self.num_actions = num_actions
        self.rng = np.random.default_rng(seed)

    def get_epsilon(self, episode: int) -> float:
        """Get exploration rate for an episode"""
        return self.epsilon_start - episode * self.epsilon_decay

    def is_evaluation_episode(self, episode: int) -> bool:
        return episode % self.evaluation_interval == 0

    def select_action(self, q_values: np.ndarray, episode: int) -> int:
        """
        Pick an action for the given Q-values

        Ties in the greedy branch go to the lowest action index.
        """
        if not self.is_evaluation_episode(episode):
            if self.rng.random() < self.get_epsilon(episode):
                return int(self.rng.integers(0, self.num_actions))

        return int(np.argmax(q_values))


class MetricsTracker:
    """
    Track training metrics (rewards, scores, death causes, losses)
    """

    DEATH_CAUSES = ('wall', 'self', 'reverse', 'timeout')

    def __init__(self, window_size: int = 100):
        """
        Initialize metrics tracker

        Args:
            window_size: Window size for moving averages
        """
        self.window_size = window_size
        self.episode_rewards = []
        self.episode_lengths = []
        self.episode_scores = []
        self.death_causes = []
        self.losses = []

    def add_episode(self, reward: float, length: int, score: int, death_cause: str):
        """
        Record episode metrics including death cause

        Args:
            reward: Total episode reward
            length: Episode length in steps
            score: Apples eaten
            death_cause: 'wall', 'self', 'reverse', or 'timeout' for step-limit truncation
        """
        if death_cause not in self.DEATH_CAUSES:
            raise ValueError(f"Unknown death cause: {death_cause}")

        self.episode_rewards.append(reward)
        self.episode_lengths.append(length)
        self.episode_scores.append(score)
        self.death_causes.append(death_cause)

    def add_loss(self, loss: float):
        """Record training loss"""
        self.losses.append(loss)

    @property
    def best_score(self) -> int:
        return max(self.episode_scores) if self.episode_scores else 0

    def get_recent_stats(self) -> dict:
        """Get statistics for recent episodes"""
        if not self.episode_rewards:
            return {}

        window = min(self.window_size, len(self.episode_rewards))
        recent_rewards = self.episode_rewards[-window:]
        recent_lengths = self.episode_lengths[-window:]
        recent_scores = self.episode_scores[-window:]

        stats = {
            'avg_reward': np.mean(recent_rewards),
            'avg_length': np.mean(recent_lengths),
            'avg_score': np.mean(recent_scores),
            'max_score': max(recent_scores),
            'episodes': len(self.episode_rewards)
        }

        if self.losses:
            recent_losses = self.losses[-window:]
            stats['avg_loss'] = np.mean(recent_losses)

        return stats

    def get_death_stats(self) -> dict:
        """Get death cause counts and rates"""
        total = len(self.death_causes)
        stats = {}
        for cause in self.DEATH_CAUSES:
            count = self.death_causes.count(cause)
            stats[f'{cause}_deaths'] = count
            stats[f'{cause}_death_rate'] = count / total if total else 0.0
        return stats

    def save_to_csv(self, filepath: str):
        """Save metrics to CSV file"""
        import csv

        with open(filepath, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['episode', 'reward', 'length', 'score', 'death_cause'])

            for i, (reward, length, score, cause) in enumerate(
                zip(self.episode_rewards, self.episode_lengths,
                    self.episode_scores, self.death_causes)
            ):
                writer.writerow([i + 1, reward, length, score, cause])


def set_seed(seed: int, strict_determinism: bool = False):
    """
    Set random seeds for reproducibility

    Args:
        seed: Random seed value
        strict_determinism: If True, enable strict deterministic mode
                           (may raise errors for non-deterministic ops)
    """
    import os

    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
        torch.backends.cudnn.deterministic = True
        torch.backends.cudnn.benchmark = False

    if strict_determinism:
        torch.use_deterministic_algorithms(True)
        os.environ['CUBLAS_WORKSPACE_CONFIG'] = ':4096:8'


def get_device() -> torch.device:
    """
    Get PyTorch device (CUDA if available, otherwise CPU)

    Returns:
        torch.device
    """
    if torch.cuda.is_available():
        device = torch.device('cuda')
        print(f"Using GPU: {torch.cuda.get_device_name(0)}")
    else:
        device = torch.device('cpu')
        print("Using CPU")

    return device


def save_model(model: torch.nn.Module, filepath: str, additional_info: dict = None):
    """
    Save model weights and optional metadata

    Args:
        model: PyTorch model
        filepath: Path to save file
        additional_info: Optional dictionary with hyperparameters, etc.
    """
    save_dict = {
        'model_state_dict': model.state_dict()
    }

    if additional_info:
        save_dict.update(additional_info)

    torch.save(save_dict, filepath)
    print(f"Model saved to {filepath}")
