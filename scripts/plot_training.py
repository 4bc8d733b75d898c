"""
Plot training scores and death causes from a metrics CSV

Usage:
    python scripts/plot_training.py results/metrics.csv --output results/figures
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import argparse
import csv
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from snake_qlearning.utils import MetricsTracker


def smooth(data, window=50):
    """Smooth data using moving average"""
    if len(data) < window:
        return np.array(data)
    return np.convolve(data, np.ones(window)/window, mode='valid')


def load_metrics(csv_path: Path) -> MetricsTracker:
    metrics = MetricsTracker()
    with open(csv_path, newline='') as f:
        for row in csv.DictReader(f):
            metrics.add_episode(
                float(row['reward']),
                int(row['length']),
                int(row['score']),
                row['death_cause']
            )
    return metrics


def plot_scores(scores: list, output_path: Path, window: int = 50):
    """Generate and save score plot"""
    fig, ax = plt.subplots(figsize=(8, 5))

    ax.plot(scores, alpha=0.3, color='green', label='Raw')

    if len(scores) >= window:
        smoothed = smooth(scores, window)
        ax.plot(range(window - 1, window - 1 + len(smoothed)), smoothed,
                color='green', linewidth=2, label=f'Smoothed ({window})')

    max_score = max(scores) if scores else 0
    ax.axhline(y=max_score, color='darkgreen', linestyle='--', linewidth=1.5, alpha=0.8)
    ax.text(len(scores) * 0.02, max_score + 0.5, f'Best: {max_score}',
            color='darkgreen', fontsize=10, fontweight='bold')

    ax.set_xlabel('Episode', fontsize=12)
    ax.set_ylabel('Score (Apples Eaten)', fontsize=12)
    ax.set_title('Online DQN - Training Scores', fontsize=14)
    ax.legend(loc='upper left', fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close()

    print(f"Saved: {output_path}")


def plot_cumulative_deaths(metrics: MetricsTracker, output_path: Path):
    """Generate cumulative death cause plot with one line per cause"""
    fig, ax = plt.subplots(figsize=(8, 5))

    colors = {'wall': 'red', 'self': 'blue', 'reverse': 'orange', 'timeout': 'gray'}
    for cause in MetricsTracker.DEATH_CAUSES:
        counts = np.cumsum([1 if c == cause else 0 for c in metrics.death_causes])
        ax.plot(counts, color=colors[cause], linewidth=2, label=cause.capitalize())

    ax.set_xlabel('Episode', fontsize=12)
    ax.set_ylabel('Cumulative Deaths', fontsize=12)
    ax.set_title('Online DQN - Death Causes', fontsize=14)
    ax.legend(loc='upper left', fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close()

    print(f"Saved: {output_path}")


def main():
    parser = argparse.ArgumentParser(description='Plot online DQN training metrics')
    parser.add_argument('metrics_csv', type=str, help='CSV written by scripts/train.py --metrics-csv')
    parser.add_argument('--output', type=str, default='results/figures', help='Output directory')
    parser.add_argument('--window', type=int, default=50, help='Smoothing window')
    args = parser.parse_args()

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    metrics = load_metrics(Path(args.metrics_csv))
    plot_scores(metrics.episode_scores, output_dir / 'scores.png', args.window)
    plot_cumulative_deaths(metrics, output_dir / 'death_causes.png')


if __name__ == '__main__':
    main()
