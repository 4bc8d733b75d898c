"""
Q-Value Approximator

Implements:
- QNetwork: MLP mapping a feature vector to 4 Q-values
- QApproximator: predict / fit / save / load wrapper used by the trainer
"""

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from snake_qlearning.config import HIDDEN_DIMS, LEARNING_RATE, NUM_ACTIONS


class QNetwork(nn.Module):
    """
    Deep Q-Network with Multi-Layer Perceptron

    For feature-based state representation (9 or 6-dimensional input)
    """

    def __init__(
        self,
        input_dim: int = 9,
        output_dim: int = NUM_ACTIONS,
        hidden_dims: Tuple[int, ...] = HIDDEN_DIMS
    ):
        """
        Initialize Q-network

        Args:
            input_dim: Input feature dimension
            output_dim: Number of actions
            hidden_dims: Tuple of hidden layer sizes
        """
        super().__init__()

        layers = []
        prev_dim = input_dim

        # Hidden layers
        for hidden_dim in hidden_dims:
            layers.append(nn.Linear(prev_dim, hidden_dim))
            layers.append(nn.ReLU())
            prev_dim = hidden_dim

        # Linear output layer
        layers.append(nn.Linear(prev_dim, output_dim))

        self.network = nn.Sequential(*layers)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Forward pass

        Args:
            x: (batch_size, input_dim) state tensor

        Returns:
            (batch_size, output_dim) Q-values
        """
        return self.network(x)


class QApproximator:
    """
    Single-sample predictor / fitter around a QNetwork

    The trainer only sees predict() and fit(); both take one feature
    vector at a time. Feature width is fixed at construction and must
    match the encoder.
    """

    def __init__(
        self,
        input_dim: int = 9,
        output_dim: int = NUM_ACTIONS,
        hidden_dims: Tuple[int, ...] = HIDDEN_DIMS,
        learning_rate: float = LEARNING_RATE,
        device: Optional[torch.device] = None
    ):
        self.input_dim = input_dim
        self.output_dim = output_dim
        self.hidden_dims = tuple(hidden_dims)
        self.learning_rate = learning_rate
        self.device = device if device else torch.device('cpu')

        self.model = QNetwork(input_dim, output_dim, self.hidden_dims).to(self.device)
        self.optimizer = optim.Adam(self.model.parameters(), lr=learning_rate)
        self.loss_fn = nn.MSELoss()
        self.checkpoint_info = {}

    def _to_tensor(self, values, width: int, name: str) -> torch.Tensor:
        array = np.asarray(values, dtype=np.float32).reshape(-1)
        if array.shape[0] != width:
            raise ValueError(f"Expected {name} of length {width}, got {array.shape[0]}")
        return torch.from_numpy(array).unsqueeze(0).to(self.device)

    def predict(self, state) -> np.ndarray:
        """Q-values for one feature vector, shape (output_dim,)"""
        x = self._to_tensor(state, self.input_dim, 'state')
        self.model.eval()
        with torch.no_grad():
            q_values = self.model(x)
        return q_values.squeeze(0).cpu().numpy()

    def fit(self, state, target_q_values, epochs: int = 5) -> Dict[str, List[float]]:
        """
        Regress the Q-values of `state` towards `target_q_values`

        Returns:
            {'loss_history': [one loss value per epoch]}
        """
        x = self._to_tensor(state, self.input_dim, 'state')
        y = self._to_tensor(target_q_values, self.output_dim, 'target')

        self.model.train()
        loss_history = []
        for _ in range(epochs):
            loss = self.loss_fn(self.model(x), y)

            self.optimizer.zero_grad()
            loss.backward()
            self.optimizer.step()

            loss_history.append(loss.item())

        return {'loss_history': loss_history}

    def save(self, filepath: str, additional_info: dict = None):
        """Save weights, optimizer state and the shape needed to rebuild"""
        from snake_qlearning.utils import save_model

        info = {
            'optimizer_state_dict': self.optimizer.state_dict(),
            'input_dim': self.input_dim,
            'output_dim': self.output_dim,
            'hidden_dims': list(self.hidden_dims),
            'learning_rate': self.learning_rate,
        }
        if additional_info:
            info.update(additional_info)

        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        save_model(self.model, str(filepath), info)

    @classmethod
    def load(
        cls,
        filepath: str,
        device: Optional[torch.device] = None
    ) -> Optional['QApproximator']:
        """
        Restore an approximator from a checkpoint

        Returns:
            The approximator, or None when no checkpoint exists
        """
        if not Path(filepath).exists():
            return None

        device = device if device else torch.device('cpu')
        checkpoint = torch.load(filepath, map_location=device)
        approximator = cls(
            input_dim=checkpoint['input_dim'],
            output_dim=checkpoint['output_dim'],
            hidden_dims=tuple(checkpoint['hidden_dims']),
            learning_rate=checkpoint['learning_rate'],
            device=device
        )
        approximator.model.load_state_dict(checkpoint['model_state_dict'])
        approximator.optimizer.load_state_dict(checkpoint['optimizer_state_dict'])
        approximator.checkpoint_info = {
            k: v for k, v in checkpoint.items()
            if k not in ('model_state_dict', 'optimizer_state_dict')
        }

        print(f"Model loaded from {filepath}")
        return approximator


def count_parameters(model: nn.Module) -> int:
    """Count trainable parameters in model"""
    return sum(p.numel() for p in model.parameters() if p.requires_grad)
