"""
Online DQN Training Loop

Trains a Q-value approximator one transition at a time:
- encode state, predict Q-values, pick an epsilon-greedy action
- apply the action, encode the resulting state, predict its Q-values
- TD target = reward + gamma * max(next Q), written into the taken action's slot
- fit the approximator on (state, updated Q-values) for a few epochs
- reset the board whenever the reward is fatal

There is no target network and no replay memory.
"""

import threading
import time
from typing import Callable, Optional

import numpy as np
import torch

from snake_qlearning.config import (
    GAMMA,
    FIT_EPOCHS,
    STEP_DELAY,
    TrainingConfig,
)
from snake_qlearning.environment import GridWorld, UNIFIED_REWARDS
from snake_qlearning.networks import QApproximator
from snake_qlearning.rendering import TickSnapshot
from snake_qlearning.utils import ExplorationPolicy, MetricsTracker, set_seed


class OnlineDQNTrainer:
    """Online single-transition Q-learning manager"""

    def __init__(
        self,
        world: Optional[GridWorld] = None,
        approximator: Optional[QApproximator] = None,
        policy: Optional[ExplorationPolicy] = None,
        gamma: float = GAMMA,
        fit_epochs: int = FIT_EPOCHS,
        step_delay: float = STEP_DELAY,
        checkpoint_path: Optional[str] = None,
        on_tick: Optional[Callable[[TickSnapshot], None]] = None,
        start_episode: int = 1,
        best_score: int = 0,
        seed: Optional[int] = None
    ):
        """
        Initialize trainer

        Args:
            world: Grid world to train on (default board when None)
            approximator: Q-value approximator; width must match the encoder
            policy: Exploration policy
            gamma: Discount factor
            fit_epochs: Fit epochs per tick
            step_delay: Seconds to pause per tick during evaluation episodes
            checkpoint_path: Where to save weights after evaluation episodes
            on_tick: Telemetry callback receiving a TickSnapshot every tick
            start_episode: Index of the first episode (resumed runs)
            best_score: Best apple count carried over from a resumed run
            seed: Random seed
        """
        if seed is not None:
            set_seed(seed)

        self.world = world if world is not None else GridWorld(seed=seed)
        self.encoder = self.world.encoder
        self.approximator = approximator if approximator is not None else QApproximator(
            input_dim=self.encoder.output_dim
        )
        self.policy = policy if policy is not None else ExplorationPolicy(seed=seed)

        if self.approximator.input_dim != self.encoder.output_dim:
            raise ValueError(
                f"Approximator expects {self.approximator.input_dim} features, "
                f"encoder produces {self.encoder.output_dim}"
            )

        self.gamma = gamma
        self.fit_epochs = fit_epochs
        self.step_delay = step_delay
        self.checkpoint_path = checkpoint_path
        self.on_tick = on_tick

        self.metrics = MetricsTracker(window_size=100)

        # Training state
        self.episode = start_episode
        self.best_score = best_score
        self.episodes_completed = 0
        self.total_steps = 0

        self._stop_event = threading.Event()
        self.world.reset()

    @classmethod
    def from_config(
        cls,
        config: TrainingConfig,
        approximator: Optional[QApproximator] = None,
        on_tick: Optional[Callable[[TickSnapshot], None]] = None,
        device: Optional[torch.device] = None,
        **kwargs
    ) -> 'OnlineDQNTrainer':
        """Build world, approximator and policy from a TrainingConfig"""
        if config.seed is not None:
            set_seed(config.seed)

        rewards = UNIFIED_REWARDS if config.unified_rewards else {}
        world = GridWorld(
            grid_size=config.grid_size,
            reverse_guard=config.reverse_guard and not config.unified_rewards,
            use_motion_features=config.use_motion_features,
            seed=config.seed,
            **rewards
        )
        if approximator is None:
            approximator = QApproximator(
                input_dim=world.encoder.output_dim,
                hidden_dims=config.hidden_dims,
                learning_rate=config.learning_rate,
                device=device
            )
        policy = ExplorationPolicy(
            epsilon_start=config.epsilon_start,
            epsilon_decay=config.epsilon_decay,
            evaluation_interval=config.evaluation_interval,
            seed=config.seed
        )

        return cls(
            world=world,
            approximator=approximator,
            policy=policy,
            gamma=config.gamma,
            fit_epochs=config.fit_epochs,
            step_delay=config.step_delay,
            checkpoint_path=config.checkpoint_path,
            on_tick=on_tick,
            **kwargs
        )

    def compute_target(self, q_values: np.ndarray, action: int, reward: float,
                       next_q_values: np.ndarray) -> np.ndarray:
        """Copy of q_values with the taken action's entry set to the TD target"""
        target_q_values = np.array(q_values, dtype=np.float32, copy=True)
        target_q_values[action] = reward + self.gamma * float(np.max(next_q_values))
        return target_q_values

    def train_step(self) -> dict:
        """Run one predict -> act -> observe -> fit tick"""
        evaluation = self.policy.is_evaluation_episode(self.episode)

        state = self.encoder.encode_for_action(self.world)
        q_values = self.approximator.predict(state)
        action = self.policy.select_action(q_values, self.episode)

        reward = self.world.apply(action)

        next_state = self.encoder.encode_for_target(self.world)
        next_q_values = self.approximator.predict(next_state)

        target_q_values = self.compute_target(q_values, action, reward, next_q_values)
        stats = self.approximator.fit(state, target_q_values, epochs=self.fit_epochs)

        loss_history = stats['loss_history']
        if loss_history:
            self.metrics.add_loss(loss_history[-1])
        self.total_steps += 1

        if self.on_tick is not None:
            self.on_tick(TickSnapshot(
                episode=self.episode,
                tick=self.world.steps,
                action=action,
                reward=reward,
                cumulative_reward=self.world.total_reward,
                epsilon=self.policy.get_epsilon(self.episode),
                best_score=max(self.best_score, self.world.score),
                score=self.world.score,
                snake=list(self.world.snake),
                apple=self.world.apple,
                evaluation=evaluation,
                loss_history=list(loss_history)
            ))

        if evaluation and self.step_delay > 0:
            self._stop_event.wait(self.step_delay)

        fatal = self.world.is_fatal(reward)
        truncated = not fatal and self.world.is_truncated()
        done = fatal or truncated
        if done:
            self._end_episode(evaluation, self.world.last_event if fatal else 'timeout')

        return {
            'action': action,
            'reward': reward,
            'done': done,
            'truncated': truncated,
            'target': target_q_values,
            'loss_history': loss_history,
        }

    def _end_episode(self, evaluation: bool, cause: str):
        """Record the finished episode, checkpoint if due and reset the board"""
        self.best_score = max(self.best_score, self.world.score)
        self.metrics.add_episode(
            self.world.total_reward,
            self.world.steps,
            self.world.score,
            cause
        )

        self.episodes_completed += 1
        self.episode += 1

        if evaluation and self.checkpoint_path:
            self.save(self.checkpoint_path)

        self.world.reset()

    def train(
        self,
        num_episodes: Optional[int] = None,
        verbose: bool = True,
        log_interval: int = 100
    ):
        """
        Main training loop

        Runs until `num_episodes` episodes have finished, forever when it
        is None, or until stop() is called. A stop() issued before the
        call ends it without running a tick.
        """
        if verbose:
            print("Starting online DQN training...", flush=True)
            print(f"Grid size: {self.world.grid_size}", flush=True)
            print(f"Features: {self.encoder.output_dim}", flush=True)
            print(f"Episodes: {num_episodes if num_episodes is not None else 'unlimited'}", flush=True)
            print(f"Gamma: {self.gamma}", flush=True)
            print(flush=True)

        start_time = time.time()
        target = None if num_episodes is None else self.episodes_completed + num_episodes

        while not self._stop_event.is_set():
            if target is not None and self.episodes_completed >= target:
                break

            result = self.train_step()

            if verbose and result['done'] and self.episodes_completed % log_interval == 0:
                self._log_progress(start_time)

        self._stop_event.clear()

        if verbose:
            print("Training complete!", flush=True)
            print(f"Training finished after {self.episodes_completed} episodes", flush=True)

    def _log_progress(self, start_time: float):
        stats = self.metrics.get_recent_stats()
        deaths = self.metrics.get_death_stats()
        elapsed = time.time() - start_time
        steps_per_sec = self.total_steps / elapsed if elapsed > 0 else 0

        print(f"Episode {self.episode - 1}", flush=True)
        print(f"  Avg Score: {stats['avg_score']:.2f}", flush=True)
        print(f"  Avg Reward: {stats['avg_reward']:.2f}", flush=True)
        print(f"  Avg Length: {stats['avg_length']:.2f}", flush=True)
        print(f"  Max Score: {stats['max_score']}", flush=True)
        print(f"  Best Score: {self.best_score}", flush=True)
        if 'avg_loss' in stats:
            print(f"  Avg Loss: {stats['avg_loss']:.4f}", flush=True)
        print(f"  Epsilon: {self.policy.get_epsilon(self.episode):.4f}", flush=True)
        print(f"  Deaths: wall={deaths['wall_deaths']} self={deaths['self_deaths']} "
              f"reverse={deaths['reverse_deaths']} timeout={deaths['timeout_deaths']}", flush=True)
        print(f"  Steps/sec: {steps_per_sec:.0f}", flush=True)
        print(flush=True)

    def stop(self):
        """Ask the loop to finish after the current tick; interrupts pacing waits"""
        self._stop_event.set()

    def save(self, filepath: str):
        """Save approximator with training progress"""
        self.approximator.save(filepath, {
            'next_episode': self.episode,
            'best_score': self.best_score,
            'total_steps': self.total_steps,
        })


def resume_kwargs(checkpoint_info: dict) -> dict:
    """Trainer kwargs that continue the run stored in a checkpoint"""
    return {
        'start_episode': checkpoint_info.get('next_episode', 1),
        'best_score': checkpoint_info.get('best_score', 0),
    }
