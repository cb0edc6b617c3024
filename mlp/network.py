"""
Feedforward Network Engine

This module implements a fully connected multilayer perceptron trained with
online (one example at a time) backpropagation.

Architecture Overview:
    inputs (column vector, layers[0] values)
        |
    [W_0 @ a_0 + b_0] -> activate -> a_1
        |
       ...
        |
    [W_{L-1} @ a_{L-1} + b_{L-1}] -> activate -> a_L = outputs

Shapes:
    W_i: (layers[i+1], layers[i])
    b_i: (layers[i+1], 1)
    a_i: (layers[i], 1)

Training rule (for a squared-error loss, per example):
    error_L   = targets - outputs
    delta_i   = activation'(a_{i+1}) * error_{i+1} * learning_rate
    W_i      += delta_i @ a_i^T
    b_i      += delta_i
    error_i   = W_i^T @ error_{i+1}      (W_i taken BEFORE the update above)

Two ways to drive a training step are offered:

    # Cached-state API: forward() remembers activations for backward()
    outputs = network.forward(x)
    network.backward(outputs, y)

    # Explicit API: the activation cache is a value you pass around
    result = network.forward_pass(x)
    network.backward_pass(result, y)

The cached-state API checks that the cache still belongs to the current
parameters, so a forgotten or repeated forward() raises
StaleActivationCacheError instead of producing wrong gradients.

Classes:
    Network: The multilayer perceptron
    ForwardPass: Activations produced by one forward pass
    NetworkRecord: Snapshot of the learned parameters

Functions:
    mean_squared_error: Loss used for training reports
"""

import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from mlp.activations import Activation, Sigmoid
from mlp.errors import (
    InputSizeMismatchError,
    InvalidTopologyError,
    NumericOverflowError,
    ShapeMismatchError,
    StaleActivationCacheError,
    TargetSizeMismatchError,
)
from mlp.matrix import Matrix

logger = logging.getLogger(__name__)

EpochCallback = Callable[[int, float], Optional[bool]]


@dataclass(frozen=True)
class ForwardPass:
    """
    Result of a forward pass.

    Attributes:
        activations: One column vector per layer; activations[0] is the input
        version: Parameter version of the network that produced it
    """

    activations: Tuple[Matrix, ...]
    version: int

    @property
    def outputs(self) -> List[float]:
        return self.activations[-1].column()


@dataclass
class NetworkRecord:
    """
    Everything needed to rebuild a trained network.

    The activation cache is not part of the record.
    """

    layers: List[int]
    learning_rate: float
    weights: List[Matrix]
    biases: List[Matrix]


def mean_squared_error(outputs: Sequence[float], targets: Sequence[float]) -> float:
    """
    Mean of squared differences between outputs and targets.

    Raises:
        ValueError: If the sequences are empty or differ in length
    """
    predicted = np.asarray(outputs, dtype=np.float64)
    expected = np.asarray(targets, dtype=np.float64)

    if predicted.size == 0 or predicted.shape != expected.shape:
        raise ValueError(
            f"Cannot compare {predicted.size} outputs with {expected.size} targets"
        )

    return float(np.mean((expected - predicted) ** 2))


def _validate_topology(layers: Sequence[int], learning_rate: float) -> List[int]:
    layers = list(layers)

    if len(layers) < 2:
        raise InvalidTopologyError(
            f"A network needs at least 2 layers (input and output), got {len(layers)}"
        )

    for index, size in enumerate(layers):
        if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
            raise InvalidTopologyError(
                f"Layer {index} size must be an integer, got {size!r}"
            )
        if size < 1:
            raise InvalidTopologyError(
                f"Layer {index} size must be positive, got {size}"
            )

    if (
        isinstance(learning_rate, bool)
        or not isinstance(learning_rate, Real)
        or not math.isfinite(learning_rate)
        or learning_rate <= 0
    ):
        raise InvalidTopologyError(
            f"Learning rate must be a positive finite number, got {learning_rate!r}"
        )

    return [int(size) for size in layers]


def _progress_interval(epochs: int) -> int:
    # Report about 100 times per run, or every epoch for short runs
    if epochs < 100:
        return 1
    return epochs // 100


class Network:
    """
    Fully connected feedforward network with a pluggable activation.

    Example usage:
        network = Network([2, 4, 1], learning_rate=0.5)
        network.train(
            [[0, 0], [0, 1], [1, 0], [1, 1]],
            [[0], [1], [1], [0]],
            epochs=5000,
        )
        network.predict([1, 0])  # close to [1.0]

    Attributes:
        layers: Neuron count per layer, input first
        learning_rate: Gradient descent step size
        activation: Activation strategy applied at every layer
        weights: weights[i] has shape (layers[i+1], layers[i])
        biases: biases[i] has shape (layers[i+1], 1)
        data: Activations cached by the last forward(); empty when consumed
    """

    def __init__(
        self,
        layers: Sequence[int],
        learning_rate: float,
        activation: Optional[Activation] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Create a network with uniformly random weights and biases in [-1, 1).

        Args:
            layers: Neuron count for each layer; at least 2 positive integers
            learning_rate: Positive step size for weight updates
            activation: Activation strategy. Defaults to Sigmoid.
            rng: Random source for initialization

        Raises:
            InvalidTopologyError: If layers or learning_rate are invalid
        """
        self.layers = _validate_topology(layers, learning_rate)
        self.learning_rate = float(learning_rate)
        self.activation = activation if activation is not None else Sigmoid()

        if rng is None:
            rng = np.random.default_rng()

        self.weights: List[Matrix] = []
        self.biases: List[Matrix] = []
        for fan_in, fan_out in zip(self.layers[:-1], self.layers[1:]):
            self.weights.append(Matrix.random(fan_out, fan_in, rng))
            self.biases.append(Matrix.random(fan_out, 1, rng))

        self.data: List[Matrix] = []
        self._version = 0
        self._data_version: Optional[int] = None

        logger.debug(
            "Created network %s (%d parameters, %s)",
            self.layers,
            self.num_parameters(),
            self.activation,
        )

    def __repr__(self) -> str:
        return (
            f"Network(layers={self.layers}, learning_rate={self.learning_rate}, "
            f"activation={self.activation!r})"
        )

    @property
    def version(self) -> int:
        """Counter bumped every time weights or biases change."""
        return self._version

    def num_parameters(self) -> int:
        """Total number of weights and biases."""
        return sum(w.rows * w.cols + b.rows for w, b in zip(self.weights, self.biases))

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def get_parameters(self) -> Tuple[List[Matrix], List[Matrix]]:
        """Return (weights, biases) as new lists."""
        return list(self.weights), list(self.biases)

    def set_parameters(self, weights: Sequence[Matrix], biases: Sequence[Matrix]) -> None:
        """
        Replace every weight and bias matrix.

        Raises:
            ShapeMismatchError: If the count or any shape disagrees with layers
        """
        weights = list(weights)
        biases = list(biases)
        expected_count = len(self.layers) - 1

        if len(weights) != expected_count or len(biases) != expected_count:
            raise ShapeMismatchError(
                "set_parameters",
                (len(weights),),
                (len(biases),),
                message=(
                    f"set_parameters: expected {expected_count} weight and bias "
                    f"matrices, got {len(weights)} and {len(biases)}"
                ),
            )

        for i, (weight, bias) in enumerate(zip(weights, biases)):
            expected_weight = (self.layers[i + 1], self.layers[i])
            expected_bias = (self.layers[i + 1], 1)
            if weight.shape != expected_weight:
                raise ShapeMismatchError(f"weights[{i}]", weight.shape, expected_weight)
            if bias.shape != expected_bias:
                raise ShapeMismatchError(f"biases[{i}]", bias.shape, expected_bias)

        self.weights[:] = weights
        self.biases[:] = biases
        self._parameters_changed()

    def _parameters_changed(self) -> None:
        self._version += 1
        self.data = []
        self._data_version = None

    # ------------------------------------------------------------------
    # Forward
    # ------------------------------------------------------------------

    def forward_pass(self, inputs: Sequence[float]) -> ForwardPass:
        """
        Run the network and return every layer's activation.

        Does not touch the cached activations in self.data.

        Raises:
            InputSizeMismatchError: If len(inputs) != layers[0]
        """
        inputs = list(inputs)
        if len(inputs) != self.layers[0]:
            raise InputSizeMismatchError(self.layers[0], len(inputs))

        current = Matrix.from_column(inputs)
        activations = [current]

        for weight, bias in zip(self.weights, self.biases):
            current = weight.matmul(current).add(bias).map(self.activation.activate)
            activations.append(current)

        return ForwardPass(tuple(activations), self._version)

    def forward(self, inputs: Sequence[float]) -> List[float]:
        """
        Run the network and cache its activations for backward().

        Args:
            inputs: layers[0] input values

        Returns:
            layers[-1] output values

        Raises:
            InputSizeMismatchError: If len(inputs) != layers[0]
        """
        result = self.forward_pass(inputs)
        self.data = list(result.activations)
        self._data_version = result.version
        return result.outputs

    def predict(self, inputs: Sequence[float]) -> List[float]:
        """Outputs for one example, leaving the activation cache alone."""
        return self.forward_pass(inputs).outputs

    # ------------------------------------------------------------------
    # Backward
    # ------------------------------------------------------------------

    def backward(self, outputs: Sequence[float], targets: Sequence[float]) -> None:
        """
        Update weights and biases from the last forward() call.

        Args:
            outputs: The values forward() returned
            targets: Desired outputs, layers[-1] values

        Raises:
            TargetSizeMismatchError: If len(targets) != layers[-1]
            StaleActivationCacheError: If there is no cached forward pass for
                the current parameters, or outputs did not come from it
            NumericOverflowError: If the update would produce NaN or inf
        """
        targets = [float(t) for t in targets]
        if len(targets) != self.layers[-1]:
            raise TargetSizeMismatchError(self.layers[-1], len(targets))

        if not self.data or self._data_version != self._version:
            raise StaleActivationCacheError(
                "backward() needs a forward() on the current parameters first"
            )

        cached = ForwardPass(tuple(self.data), self._data_version)
        # NaN outputs still match their own cache; backward_pass rejects them
        if not np.array_equal(
            np.asarray(outputs, dtype=np.float64),
            np.asarray(cached.outputs, dtype=np.float64),
            equal_nan=True,
        ):
            raise StaleActivationCacheError(
                "outputs passed to backward() do not match the cached forward pass"
            )

        self.backward_pass(cached, targets)

    def backward_pass(self, result: ForwardPass, targets: Sequence[float]) -> None:
        """
        Update weights and biases from an explicit forward pass.

        Every weight and bias matrix is updated exactly once. Updates are
        computed in full before any is applied, so a failure leaves the
        network unchanged.

        Raises:
            TargetSizeMismatchError: If len(targets) != layers[-1]
            StaleActivationCacheError: If result was computed with different
                parameters than the current ones
            NumericOverflowError: If the update would produce NaN or inf
        """
        targets = [float(t) for t in targets]
        if len(targets) != self.layers[-1]:
            raise TargetSizeMismatchError(self.layers[-1], len(targets))

        activations = result.activations
        if result.version != self._version or len(activations) != len(self.layers):
            raise StaleActivationCacheError(
                f"forward pass is from parameter version {result.version}, "
                f"network is at version {self._version}"
            )

        outputs = activations[-1]
        error = Matrix.from_column(targets).sub(outputs)
        gradient = outputs.map(self.activation.derivative)

        new_weights = list(self.weights)
        new_biases = list(self.biases)

        for i in reversed(range(len(self.weights))):
            gradient = gradient.multiply(error).scale(self.learning_rate)

            new_weights[i] = self.weights[i].add(gradient.matmul(activations[i].transpose()))
            new_biases[i] = self.biases[i].add(gradient)

            if i > 0:
                error = self.weights[i].transpose().matmul(error)
                gradient = activations[i].map(self.activation.derivative)

        for i, (weight, bias) in enumerate(zip(new_weights, new_biases)):
            if not (weight.is_finite() and bias.is_finite()):
                raise NumericOverflowError(
                    f"Update for layer transition {i} produced non-finite values; "
                    f"try a smaller learning rate (currently {self.learning_rate})"
                )

        self.weights[:] = new_weights
        self.biases[:] = new_biases
        self._parameters_changed()

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train_epoch(
        self, inputs: Sequence[Sequence[float]], targets: Sequence[Sequence[float]]
    ) -> float:
        """
        One forward+backward pass over every example, in order.

        Returns:
            Mean squared error of the outputs seen during the epoch (each
            measured before that example's update)
        """
        if len(inputs) != len(targets):
            raise ValueError(
                f"Got {len(inputs)} inputs but {len(targets)} targets"
            )
        if len(inputs) == 0:
            return 0.0

        total_loss = 0.0
        for sample, target in zip(inputs, targets):
            outputs = self.forward(sample)
            self.backward(outputs, target)
            total_loss += mean_squared_error(outputs, target)

        return total_loss / len(inputs)

    def train(
        self,
        inputs: Sequence[Sequence[float]],
        targets: Sequence[Sequence[float]],
        epochs: int,
        on_epoch: Optional[EpochCallback] = None,
        log_every: Optional[int] = None,
    ) -> List[float]:
        """
        Train for a fixed number of epochs with online backpropagation.

        Examples are visited in the given order every epoch (no shuffling).

        Args:
            inputs: Training inputs, one sequence per example
            targets: Training targets, one sequence per example
            epochs: Number of passes over the data
            on_epoch: Called as on_epoch(epoch, loss) after every epoch.
                Returning False stops training at that point.
            log_every: Log progress every N epochs. Defaults to ~1% of epochs.

        Returns:
            Mean squared error of each completed epoch
        """
        if len(inputs) != len(targets):
            raise ValueError(
                f"Got {len(inputs)} inputs but {len(targets)} targets"
            )
        if epochs < 0:
            raise ValueError(f"epochs must be non-negative, got {epochs}")

        interval = log_every if log_every else _progress_interval(epochs)
        history: List[float] = []

        logger.info(
            "Training %s on %d examples for %d epochs (learning rate %g)",
            self.layers,
            len(inputs),
            epochs,
            self.learning_rate,
        )

        for epoch in range(1, epochs + 1):
            loss = self.train_epoch(inputs, targets)
            history.append(loss)

            if epoch % interval == 0 or epoch == epochs:
                logger.info("Epoch %d of %d | loss %.6f", epoch, epochs, loss)

            if on_epoch is not None and on_epoch(epoch, loss) is False:
                logger.info("Training stopped by callback after epoch %d", epoch)
                break

        logger.info("Done training")
        return history

    def evaluate(
        self, inputs: Sequence[Sequence[float]], targets: Sequence[Sequence[float]]
    ) -> float:
        """Mean squared error over a dataset, without updating anything."""
        if len(inputs) != len(targets) or len(inputs) == 0:
            raise ValueError(
                f"Need matching, non-empty inputs and targets, "
                f"got {len(inputs)} and {len(targets)}"
            )

        losses = [
            mean_squared_error(self.predict(sample), target)
            for sample, target in zip(inputs, targets)
        ]
        return float(np.mean(losses))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_record(self) -> NetworkRecord:
        """Snapshot layers, learning rate, weights and biases."""
        return NetworkRecord(
            layers=list(self.layers),
            learning_rate=self.learning_rate,
            weights=list(self.weights),
            biases=list(self.biases),
        )

    @classmethod
    def from_record(
        cls, record: NetworkRecord, activation: Optional[Activation] = None
    ) -> "Network":
        """
        Rebuild a network from a record. The activation cache starts empty.

        Raises:
            InvalidTopologyError: If the layers or learning rate are invalid
            ShapeMismatchError: If a matrix does not fit the layers
        """
        network = cls(record.layers, record.learning_rate, activation)
        network.set_parameters(record.weights, record.biases)
        return network

    def save(self, path) -> None:
        """
        Write the network to a file (JSON, or NPZ if path ends in .npz).

        Raises:
            PersistenceIOError: If the file cannot be written
        """
        from mlp.persistence import save_network

        save_network(self, path)

    @classmethod
    def load(cls, path, activation: Optional[Activation] = None) -> "Network":
        """
        Read a network written by save().

        Raises:
            PersistenceIOError: If the file cannot be read
            CorruptRecordError: If the contents are not a valid record
        """
        from mlp.persistence import load_network

        return load_network(path, activation)
