"""
Training Configuration

All settings for a training run live in one dataclass, so a run can be
described by a small JSON file and overridden from the command line:

    {
      "layers": [2, 4, 1],
      "learning_rate": 0.5,
      "epochs": 5000,
      "activation": "sigmoid",
      "seed": 42
    }

Classes:
    TrainingConfig: Hyperparameters for building and training a Network

Functions:
    load_config: Read a TrainingConfig from a JSON file
"""

import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

import numpy as np

from mlp.activations import Activation, get_activation
from mlp.network import Network


@dataclass
class TrainingConfig:
    """
    Configuration for one training run.

    Attributes:
        layers: Neuron count per layer, input first
        learning_rate: Gradient descent step size
        epochs: Number of passes over the training data
        activation: Activation name understood by get_activation
        seed: Seed for weight initialization; None for a random seed
        log_every: Progress log interval in epochs; None for ~1% of epochs

    The defaults solve XOR with a single hidden layer of four units.
    """

    layers: List[int] = field(default_factory=lambda: [2, 4, 1])
    learning_rate: float = 0.5
    epochs: int = 5000
    activation: str = "sigmoid"
    seed: Optional[int] = None
    log_every: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.epochs, bool) or not isinstance(self.epochs, int) or self.epochs < 0:
            raise ValueError(f"epochs must be a non-negative integer, got {self.epochs!r}")
        if self.log_every is not None and (
            not isinstance(self.log_every, int) or self.log_every < 1
        ):
            raise ValueError(f"log_every must be a positive integer, got {self.log_every!r}")
        get_activation(self.activation)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainingConfig":
        """
        Build a config from a dict, rejecting unknown keys.

        Raises:
            ValueError: If a key is unknown or a value is invalid
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def make_activation(self) -> Activation:
        return get_activation(self.activation)

    def build_network(self) -> Network:
        """Create a freshly initialized Network from this config."""
        rng = np.random.default_rng(self.seed)
        return Network(
            self.layers, self.learning_rate, activation=self.make_activation(), rng=rng
        )


def load_config(path: str) -> TrainingConfig:
    """
    Load a TrainingConfig from a JSON file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not a JSON object or holds invalid values
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")

    return TrainingConfig.from_dict(data)
