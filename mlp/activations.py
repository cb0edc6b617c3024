"""
Activation Functions for the Network Engine

Each activation is a small strategy object with two scalar functions:

    activate(x)    - the nonlinearity applied to a neuron's weighted input
    derivative(y)  - its slope, expressed in terms of the OUTPUT y = activate(x)

The derivative takes the activated value rather than the raw input because
the backward pass only has the cached activations on hand. For the usual
squashing functions this is also the cheapest form:

    sigmoid'(x) = y * (1 - y)
    tanh'(x)    = 1 - y^2

Classes:
    Activation: Base class defining the interface
    Sigmoid: Logistic function, output in (0, 1)
    Tanh: Hyperbolic tangent, output in (-1, 1)
    ReLU: Rectified Linear Unit
    Identity: No-op, useful for regression output layers in tests

Functions:
    get_activation: Look up an activation by name
    available_activations: Names accepted by get_activation
"""

import math
from typing import Dict, List, Type


class Activation:
    """
    Interface for an elementwise activation function.

    Subclasses must be deterministic and total over every float the network
    can produce (no exceptions for large inputs).
    """

    name = "activation"

    def activate(self, x: float) -> float:
        raise NotImplementedError

    def derivative(self, y: float) -> float:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Sigmoid(Activation):
    """
    Logistic sigmoid activation.

    Mathematical Formula:
        sigmoid(x) = 1 / (1 + exp(-x))
        sigmoid'(x) = y * (1 - y)   where y = sigmoid(x)

    Numerical Stability:
        For negative x, exp(-x) overflows once x < -709. We evaluate the
        equivalent form exp(x) / (1 + exp(x)) there instead, which only
        underflows to 0.

    Example:
        >>> Sigmoid().activate(0.0)
        0.5
    """

    name = "sigmoid"

    def activate(self, x: float) -> float:
        if x >= 0:
            return 1.0 / (1.0 + math.exp(-x))
        exponential = math.exp(x)
        return exponential / (1.0 + exponential)

    def derivative(self, y: float) -> float:
        return y * (1.0 - y)


class Tanh(Activation):
    """
    Hyperbolic tangent activation.

    Mathematical Formula:
        tanh'(x) = 1 - y^2   where y = tanh(x)
    """

    name = "tanh"

    def activate(self, x: float) -> float:
        return math.tanh(x)

    def derivative(self, y: float) -> float:
        return 1.0 - y * y


class ReLU(Activation):
    """
    Rectified Linear Unit.

    ReLU(x) = max(0, x). The derivative at 0 is taken to be 0 (common
    subgradient convention). Since y > 0 exactly when x > 0, the slope can be
    read off the output.
    """

    name = "relu"

    def activate(self, x: float) -> float:
        return x if x > 0 else 0.0

    def derivative(self, y: float) -> float:
        return 1.0 if y > 0 else 0.0


class Identity(Activation):
    """Linear pass-through: f(x) = x, f' = 1."""

    name = "identity"

    def activate(self, x: float) -> float:
        return x

    def derivative(self, y: float) -> float:
        return 1.0


_REGISTRY: Dict[str, Type[Activation]] = {
    cls.name: cls for cls in (Sigmoid, Tanh, ReLU, Identity)
}


def available_activations() -> List[str]:
    """Return the names accepted by get_activation, sorted."""
    return sorted(_REGISTRY)


def get_activation(name: str) -> Activation:
    """
    Create an activation from its registry name.

    Args:
        name: Case-insensitive name, e.g. "sigmoid" or "tanh"

    Returns:
        A new Activation instance

    Raises:
        ValueError: If the name is not registered
    """
    key = name.strip().lower()
    if key not in _REGISTRY:
        raise ValueError(
            f"Unknown activation {name!r}. "
            f"Choose from: {', '.join(available_activations())}"
        )
    return _REGISTRY[key]()
