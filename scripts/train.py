"""
Train the online DQN snake agent

Runs until --episodes episodes have finished (forever by default) or the
process receives Ctrl+C. Resumes from --checkpoint when the file exists.
"""

import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

import argparse
import signal
import time

from snake_qlearning.config import TrainingConfig
from snake_qlearning.networks import QApproximator
from snake_qlearning.rendering import TerminalRenderer
from snake_qlearning.trainer import OnlineDQNTrainer, resume_kwargs
from snake_qlearning.utils import get_device


def parse_args() -> TrainingConfig:
    defaults = TrainingConfig()
    parser = argparse.ArgumentParser(description='Train an online DQN agent on grid snake')

    # Training config
    parser.add_argument('--episodes', type=int, default=None, help='Episodes to train (default: run until stopped)')
    parser.add_argument('--grid-size', type=int, default=defaults.grid_size, help='Board size')
    parser.add_argument('--no-motion-features', action='store_true', help='Use the 6-feature state')
    parser.add_argument('--unified-rewards', action='store_true', help='Use the unified +/-25 reward table')

    # Network config
    parser.add_argument('--hidden-dims', type=int, nargs='+', default=list(defaults.hidden_dims), help='Hidden layer dimensions')
    parser.add_argument('--lr', type=float, default=defaults.learning_rate, help='Learning rate')

    # Q-learning config
    parser.add_argument('--gamma', type=float, default=defaults.gamma, help='Discount factor')
    parser.add_argument('--fit-epochs', type=int, default=defaults.fit_epochs, help='Fit epochs per tick')
    parser.add_argument('--epsilon-start', type=float, default=defaults.epsilon_start, help='Initial epsilon')
    parser.add_argument('--epsilon-decay', type=float, default=defaults.epsilon_decay, help='Epsilon decrease per episode')
    parser.add_argument('--eval-interval', type=int, default=defaults.evaluation_interval, help='Greedy/checkpoint episode interval')

    # Other
    parser.add_argument('--step-delay', type=float, default=defaults.step_delay, help='Pause per tick in evaluation episodes (s)')
    parser.add_argument('--log-interval', type=int, default=defaults.log_interval, help='Logging interval')
    parser.add_argument('--no-render', action='store_true', help='Do not draw evaluation episodes')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--checkpoint', type=str, default=defaults.checkpoint_path, help='Checkpoint path')
    parser.add_argument('--metrics-csv', type=str, default=None, help='Write episode metrics to this CSV')

    args = parser.parse_args()

    return TrainingConfig(
        grid_size=args.grid_size,
        use_motion_features=not args.no_motion_features,
        unified_rewards=args.unified_rewards,
        hidden_dims=tuple(args.hidden_dims),
        learning_rate=args.lr,
        gamma=args.gamma,
        fit_epochs=args.fit_epochs,
        epsilon_start=args.epsilon_start,
        epsilon_decay=args.epsilon_decay,
        evaluation_interval=args.eval_interval,
        num_episodes=args.episodes,
        step_delay=args.step_delay,
        log_interval=args.log_interval,
        render=not args.no_render,
        seed=args.seed,
        checkpoint_path=args.checkpoint,
        metrics_path=args.metrics_csv
    )


def main():
    config = parse_args()

    print('=' * 70)
    print('Training online DQN on grid snake')
    print('=' * 70)
    for key, value in config.to_dict().items():
        print(f'  {key}: {value}')
    print('=' * 70)
    print()

    device = get_device()

    approximator = QApproximator.load(config.checkpoint_path, device=device)
    resume = {}
    if approximator is not None:
        resume = resume_kwargs(approximator.checkpoint_info)
        print(f'Resuming at episode {resume["start_episode"]}')

    renderer = TerminalRenderer(grid_size=config.grid_size) if config.render else None
    trainer = OnlineDQNTrainer.from_config(
        config, approximator=approximator, on_tick=renderer, device=device, **resume
    )

    # Ctrl+C finishes the current tick instead of killing it mid-fit
    signal.signal(signal.SIGINT, lambda signum, frame: trainer.stop())

    start_time = time.time()
    trainer.train(
        num_episodes=config.num_episodes,
        verbose=True,
        log_interval=config.log_interval
    )
    duration = time.time() - start_time

    trainer.save(config.checkpoint_path)
    if config.metrics_path:
        trainer.metrics.save_to_csv(config.metrics_path)
        print(f'Metrics saved to: {config.metrics_path}')

    minutes = int(duration // 60)
    seconds = duration % 60

    print()
    print('=' * 70)
    print('Training Summary')
    print('=' * 70)
    print(f'Total Time: {minutes}m {seconds:.2f}s')
    print(f'Episodes: {trainer.episodes_completed}')
    print(f'Best Score: {trainer.best_score}')
    stats = trainer.metrics.get_recent_stats()
    if stats:
        print(f'Final Avg Score: {stats["avg_score"]:.2f}')
        print(f'Final Avg Length: {stats["avg_length"]:.2f}')
    print('=' * 70)


if __name__ == '__main__':
    main()
