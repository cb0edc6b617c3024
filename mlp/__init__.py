"""
Minimal Feedforward Neural Network Engine

A small multilayer perceptron trained with online backpropagation. NumPy
stores the numbers; every operation the network performs goes through a
shape-checked Matrix type so dimension bugs surface as exceptions.

Modules:
    matrix: Dense 2D matrix with add, sub, Hadamard product, matmul, transpose, map
    activations: Activation strategies (sigmoid, tanh, ReLU, identity)
    network: Network with forward pass, backward pass and training loop
    persistence: Save/load of layers, learning rate, weights and biases
    config: TrainingConfig dataclass and JSON config loading
    errors: Exception hierarchy shared by all modules
"""

from mlp.activations import Activation, Identity, ReLU, Sigmoid, Tanh, get_activation
from mlp.errors import (
    CorruptRecordError,
    InputSizeMismatchError,
    InvalidTopologyError,
    NetworkError,
    NumericOverflowError,
    PersistenceIOError,
    SerializationError,
    ShapeMismatchError,
    StaleActivationCacheError,
    TargetSizeMismatchError,
)
from mlp.matrix import Matrix
from mlp.network import ForwardPass, Network, NetworkRecord, mean_squared_error

__version__ = "1.0.0"

__all__ = [
    "Activation",
    "CorruptRecordError",
    "ForwardPass",
    "Identity",
    "InputSizeMismatchError",
    "InvalidTopologyError",
    "Matrix",
    "Network",
    "NetworkError",
    "NetworkRecord",
    "NumericOverflowError",
    "PersistenceIOError",
    "ReLU",
    "SerializationError",
    "ShapeMismatchError",
    "Sigmoid",
    "StaleActivationCacheError",
    "Tanh",
    "TargetSizeMismatchError",
    "get_activation",
    "mean_squared_error",
]
