"""
Unit tests for the Q-value network and approximator
"""

import pytest
import numpy as np
import torch
from snake_qlearning.networks import QNetwork, QApproximator, count_parameters
from snake_qlearning.utils import set_seed


class TestQNetwork:
    """Test the MLP"""

    def test_forward_shape(self):
        """Test QNetwork forward pass"""
        model = QNetwork(input_dim=9, output_dim=4)
        x = torch.randn(32, 9)
        out = model(x)

        assert out.shape == (32, 4)
        assert not torch.isnan(out).any()

    def test_parameter_count(self):
        """Test default architecture size (9 -> 512 -> 512 -> 4)"""
        model = QNetwork(input_dim=9, output_dim=4, hidden_dims=(512, 512))
        expected = (9 * 512 + 512) + (512 * 512 + 512) + (512 * 4 + 4)
        assert count_parameters(model) == expected


class TestQApproximator:
    """Test predict / fit / persistence"""

    def test_predict_shape(self):
        """Test predict returns one Q-value per action"""
        approximator = QApproximator(input_dim=9, hidden_dims=(16,))
        q_values = approximator.predict(np.zeros(9, dtype=np.float32))

        assert isinstance(q_values, np.ndarray)
        assert q_values.shape == (4,)

    def test_predict_rejects_wrong_width(self):
        """Test wrong feature width is a contract violation"""
        approximator = QApproximator(input_dim=9, hidden_dims=(16,))
        with pytest.raises(ValueError):
            approximator.predict(np.zeros(6))

    def test_fit_rejects_wrong_target(self):
        """Test wrong target width is a contract violation"""
        approximator = QApproximator(input_dim=6, hidden_dims=(16,))
        with pytest.raises(ValueError):
            approximator.fit(np.zeros(6), np.zeros(3))

    def test_fit_loss_history(self):
        """Test fit reports one loss per epoch"""
        approximator = QApproximator(input_dim=6, hidden_dims=(16,))
        stats = approximator.fit(np.ones(6), np.zeros(4), epochs=5)

        assert len(stats['loss_history']) == 5
        assert all(isinstance(loss, float) for loss in stats['loss_history'])

    def test_fit_moves_towards_target(self):
        """Test repeated fitting reduces the loss"""
        set_seed(0)
        approximator = QApproximator(input_dim=9, hidden_dims=(32, 32), learning_rate=1e-3)
        state = np.array([1, 0, 1, 0, 0, 1, 0, 1, -1], dtype=np.float32)
        target = np.array([10.0, -10.0, 5.0, 0.0], dtype=np.float32)

        stats = approximator.fit(state, target, epochs=100)

        assert stats['loss_history'][-1] < stats['loss_history'][0]

    def test_save_and_load(self, tmp_path):
        """Test a checkpoint restores identical predictions"""
        approximator = QApproximator(input_dim=9, hidden_dims=(16, 16))
        approximator.fit(np.ones(9), np.arange(4, dtype=np.float32), epochs=3)
        path = tmp_path / 'weights' / 'model.pt'

        approximator.save(str(path), {'episode': 200, 'best_score': 3})
        restored = QApproximator.load(str(path))

        state = np.linspace(-1, 1, 9).astype(np.float32)
        np.testing.assert_allclose(restored.predict(state), approximator.predict(state))
        assert restored.hidden_dims == (16, 16)
        assert restored.checkpoint_info['episode'] == 200
        assert restored.checkpoint_info['best_score'] == 3

    def test_load_missing_returns_none(self, tmp_path):
        """Test loading a missing checkpoint reports not found"""
        assert QApproximator.load(str(tmp_path / 'missing.pt')) is None


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
