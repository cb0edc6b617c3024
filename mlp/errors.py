"""
Exceptions Raised by the Network Engine

Every failure the engine can report is a subclass of NetworkError, so a
caller can catch the whole family in one place. Each class also inherits
from the matching builtin (ValueError, OSError, ...) so code that already
guards against those keeps working.

Classes:
    NetworkError: Base class for all engine errors
    ShapeMismatchError: Matrix operands have incompatible dimensions
    InvalidTopologyError: Bad layer sizes or learning rate at construction
    InputSizeMismatchError: Forward pass input has the wrong length
    TargetSizeMismatchError: Backward pass target has the wrong length
    StaleActivationCacheError: Backward pass without a matching forward pass
    CorruptRecordError: Persisted record does not parse into a network
    PersistenceIOError: File system failure while saving or loading
    NumericOverflowError: A training step produced non-finite parameters
"""

from typing import Optional, Tuple


class NetworkError(Exception):
    """Base class for every error raised by the mlp package."""


class ShapeMismatchError(NetworkError, ValueError):
    """
    Raised when matrix operands have incompatible dimensions.

    Attributes:
        operation: Name of the operation that failed (e.g. "matmul")
        left: Shape of the left operand, or the requested shape
        right: Shape of the right operand, if there was one
    """

    def __init__(
        self,
        operation: str,
        left: Tuple[int, ...],
        right: Optional[Tuple[int, ...]] = None,
        message: Optional[str] = None,
    ):
        self.operation = operation
        self.left = left
        self.right = right

        if message is None:
            if right is None:
                message = f"{operation}: invalid shape {left}"
            else:
                message = f"{operation}: incompatible shapes {left} and {right}"

        super().__init__(message)


class InvalidTopologyError(NetworkError, ValueError):
    """Raised when a network is built with an unusable layer list or learning rate."""


class _SizeMismatch(NetworkError, ValueError):
    kind = "values"

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} {self.kind}, got {actual}")


class InputSizeMismatchError(_SizeMismatch):
    """Raised when forward() receives a different number of inputs than layers[0]."""

    kind = "inputs"


class TargetSizeMismatchError(_SizeMismatch):
    """Raised when backward() receives a different number of targets than layers[-1]."""

    kind = "targets"


class StaleActivationCacheError(NetworkError, RuntimeError):
    """
    Raised when a backward pass has no activation cache that matches it.

    This happens when backward() is called before any forward(), twice in a
    row for one forward(), with outputs that did not come from the cached
    forward pass, or with a ForwardPass computed against older parameters.
    """


class CorruptRecordError(NetworkError, ValueError):
    """Raised when a persisted record cannot be turned back into a network."""


SerializationError = CorruptRecordError


class PersistenceIOError(NetworkError, OSError):
    """Raised when a record cannot be read from or written to disk."""


class NumericOverflowError(NetworkError, ArithmeticError):
    """Raised when a training step would leave NaN or infinite parameters."""
