"""
Tests for the XOR training script.
"""

import os

from mlp.network import Network
from train_xor import build_config, main, parse_args


class TestBuildConfig:
    """Command-line flags override the config file."""

    def test_defaults(self):
        config = build_config(parse_args([]))

        assert config.layers == [2, 4, 1]

    def test_overrides(self):
        config = build_config(
            parse_args(["--epochs", "12", "--hidden", "6", "--activation", "tanh", "--seed", "5"])
        )

        assert config.epochs == 12
        assert config.layers == [2, 6, 1]
        assert config.activation == "tanh"
        assert config.seed == 5

    def test_config_file(self):
        path = os.path.join(os.path.dirname(__file__), "..", "configs", "xor.json")

        config = build_config(parse_args(["--config", path, "--learning-rate", "0.25"]))

        assert config.seed == 0
        assert config.learning_rate == 0.25


class TestMain:
    """Run the script end to end with a short training budget."""

    def test_train_and_save(self, tmp_path, capsys):
        path = tmp_path / "xor.json"

        exit_code = main(["--epochs", "20", "--seed", "0", "--save", str(path)])

        assert exit_code == 0
        assert path.exists()
        assert Network.load(str(path)).layers == [2, 4, 1]
        assert "Final loss" in capsys.readouterr().out

    def test_load_and_continue(self, tmp_path):
        path = tmp_path / "xor.npz"
        main(["--epochs", "5", "--seed", "1", "--save", str(path)])

        assert main(["--load", str(path), "--epochs", "0"]) == 0

    def test_missing_load_file(self, tmp_path, capsys):
        exit_code = main(["--load", str(tmp_path / "missing.json"), "--epochs", "1"])

        assert exit_code == 1
        assert "Error" in capsys.readouterr().err
