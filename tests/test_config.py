"""
Tests for training configuration.
"""

import json

import pytest

from mlp.activations import Sigmoid, Tanh
from mlp.config import TrainingConfig, load_config


class TestTrainingConfig:
    """Test the configuration dataclass."""

    def test_default_config(self):
        """Defaults describe the XOR problem."""
        config = TrainingConfig()

        assert config.layers == [2, 4, 1]
        assert config.learning_rate == 0.5
        assert config.epochs > 0
        assert config.activation == "sigmoid"
        assert config.seed is None

    def test_defaults_not_shared(self):
        a = TrainingConfig()
        a.layers.append(3)

        assert TrainingConfig().layers == [2, 4, 1]

    def test_custom_config(self):
        config = TrainingConfig(
            layers=[3, 5, 2], learning_rate=0.1, epochs=10, activation="tanh", seed=4
        )

        assert config.make_activation() == Tanh()
        assert config.to_dict() == {
            "layers": [3, 5, 2],
            "learning_rate": 0.1,
            "epochs": 10,
            "activation": "tanh",
            "seed": 4,
            "log_every": None,
        }

    def test_unknown_activation(self):
        with pytest.raises(ValueError, match="Unknown activation"):
            TrainingConfig(activation="swish")

    @pytest.mark.parametrize("epochs", [-1, 2.5, True])
    def test_invalid_epochs(self, epochs):
        with pytest.raises(ValueError):
            TrainingConfig(epochs=epochs)

    def test_invalid_log_every(self):
        with pytest.raises(ValueError):
            TrainingConfig(log_every=0)

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="batch_size"):
            TrainingConfig.from_dict({"batch_size": 32})

    def test_build_network(self):
        config = TrainingConfig(layers=[3, 2], learning_rate=0.2, seed=1)

        network = config.build_network()

        assert network.layers == [3, 2]
        assert network.learning_rate == 0.2
        assert network.activation == Sigmoid()

    def test_seed_makes_build_reproducible(self):
        config = TrainingConfig(seed=99)

        assert config.build_network().weights == config.build_network().weights


class TestLoadConfig:
    """Test reading configs from JSON files."""

    def test_load_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps({"layers": [2, 8, 1], "epochs": 100, "seed": 3}), encoding="utf-8"
        )

        config = load_config(str(path))

        assert config.layers == [2, 8, 1]
        assert config.epochs == 100
        assert config.seed == 3
        assert config.learning_rate == 0.5

    def test_load_config_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ValueError):
            load_config(str(path))

    def test_load_missing_config(self, tmp_path):
        with pytest.raises(OSError):
            load_config(str(tmp_path / "missing.json"))
