"""
Dense Matrix Primitive

This module implements the small 2D matrix type the network engine is built
on. Storage is a float64 NumPy array, but every operation checks shapes
explicitly: NumPy broadcasting would silently turn a (3, 1) + (1, 3) bug
into a (3, 3) result, so it is never relied on here.

Matrices are values. Binary operations return new instances and never
modify their operands, and the backing array is copied on the way in and
on the way out.

Classes:
    Matrix: 2D array of float64 scalars

Functions:
    add, sub: Elementwise addition and subtraction
    multiply (dot): Elementwise (Hadamard) product
    matmul: Standard matrix product
    transpose: Swap rows and columns
    map: Apply a scalar function to every cell
"""

from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from mlp.errors import ShapeMismatchError

# Initial weights are drawn uniformly from [-INIT_RANGE, INIT_RANGE)
INIT_RANGE = 1.0


class Matrix:
    """
    A rows x cols grid of float64 values.

    Shape is fixed for the lifetime of an instance; anything that changes
    shape (transpose, matmul) produces a new Matrix.

    Example:
        >>> a = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0]])
        >>> b = Matrix.from_column([1.0, 1.0])
        >>> a.matmul(b).column()
        [3.0, 7.0]
    """

    __slots__ = ("_values",)

    def __init__(self, values: np.ndarray):
        """
        Wrap a 2D array. Prefer the named constructors over calling this.

        Args:
            values: Array of shape (rows, cols) with rows >= 1 and cols >= 1
        """
        try:
            array = np.array(values, dtype=np.float64)
        except ValueError as error:
            raise ShapeMismatchError(
                "Matrix",
                (),
                message=f"Matrix: values do not form a rectangular numeric grid ({error})",
            ) from error

        if array.ndim != 2 or array.shape[0] < 1 or array.shape[1] < 1:
            raise ShapeMismatchError("Matrix", tuple(array.shape))

        self._values = array

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def zeros(cls, rows: int, cols: int) -> "Matrix":
        """Create a rows x cols matrix filled with 0.0."""
        _check_dimensions("zeros", rows, cols)
        return cls(np.zeros((rows, cols)))

    @classmethod
    def random(
        cls, rows: int, cols: int, rng: Optional[np.random.Generator] = None
    ) -> "Matrix":
        """
        Create a rows x cols matrix of independent uniform draws in [-1, 1).

        Args:
            rows: Number of rows (>= 1)
            cols: Number of columns (>= 1)
            rng: Random source. A fresh default generator is used if omitted.

        Returns:
            New randomly initialized Matrix
        """
        _check_dimensions("random", rows, cols)
        if rng is None:
            rng = np.random.default_rng()
        return cls(rng.uniform(-INIT_RANGE, INIT_RANGE, size=(rows, cols)))

    @classmethod
    def from_row(cls, values: Iterable[float]) -> "Matrix":
        """Create a 1 x N matrix from N scalars."""
        row = [float(v) for v in values]
        if not row:
            raise ShapeMismatchError("from_row", (1, 0))
        return cls(np.array([row]))

    @classmethod
    def from_column(cls, values: Iterable[float]) -> "Matrix":
        """Create an N x 1 matrix from N scalars."""
        column = [float(v) for v in values]
        if not column:
            raise ShapeMismatchError("from_column", (0, 1))
        return cls(np.array(column).reshape(-1, 1))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> "Matrix":
        """
        Create a matrix from a list of equally long rows.

        Raises:
            ShapeMismatchError: If there are no rows, a row is empty, or the
                rows have different lengths
        """
        if len(rows) == 0:
            raise ShapeMismatchError("from_rows", (0, 0))

        width = len(rows[0])
        for row in rows:
            if len(row) != width:
                raise ShapeMismatchError(
                    "from_rows",
                    (len(rows), width),
                    message=f"from_rows: ragged rows ({len(row)} != {width} columns)",
                )

        return cls(np.array(rows, dtype=np.float64))

    # ------------------------------------------------------------------
    # Shape and access
    # ------------------------------------------------------------------

    @property
    def rows(self) -> int:
        return self._values.shape[0]

    @property
    def cols(self) -> int:
        return self._values.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.rows, self.cols)

    def __getitem__(self, index: Tuple[int, int]) -> float:
        row, col = index
        return float(self._values[row, col])

    def to_list(self) -> List[List[float]]:
        """Return the cells as a list of rows of Python floats."""
        return self._values.tolist()

    def to_numpy(self) -> np.ndarray:
        """Return a copy of the backing array."""
        return self._values.copy()

    def column(self) -> List[float]:
        """Flatten a single-column matrix into a list."""
        if self.cols != 1:
            raise ShapeMismatchError("column", self.shape)
        return self._values[:, 0].tolist()

    def row(self) -> List[float]:
        """Flatten a single-row matrix into a list."""
        if self.rows != 1:
            raise ShapeMismatchError("row", self.shape)
        return self._values[0, :].tolist()

    def is_finite(self) -> bool:
        """True if no cell is NaN or infinite."""
        return bool(np.all(np.isfinite(self._values)))

    def allclose(self, other: "Matrix", tolerance: float = 1e-9) -> bool:
        """Shape-aware approximate equality."""
        return self.shape == other.shape and bool(
            np.allclose(self._values, other._values, rtol=0.0, atol=tolerance)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(
            np.array_equal(self._values, other._values)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"Matrix({self.rows}x{self.cols}, {self.to_list()})"

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def add(self, other: "Matrix") -> "Matrix":
        """Elementwise sum. Both operands must have the same shape."""
        _check_same_shape("add", self, other)
        return Matrix(self._values + other._values)

    def sub(self, other: "Matrix") -> "Matrix":
        """Elementwise difference. Both operands must have the same shape."""
        _check_same_shape("sub", self, other)
        return Matrix(self._values - other._values)

    def multiply(self, other: "Matrix") -> "Matrix":
        """
        Elementwise (Hadamard) product.

        Backpropagation literature calls this the "dot" of the derivative and
        the error, hence the `dot` alias. It is NOT the matrix product; see
        matmul for that.
        """
        _check_same_shape("multiply", self, other)
        return Matrix(self._values * other._values)

    dot = multiply

    def matmul(self, other: "Matrix") -> "Matrix":
        """
        Standard matrix product.

        Shapes: (n, k) @ (k, m) -> (n, m)

        Raises:
            ShapeMismatchError: If self.cols != other.rows
        """
        if self.cols != other.rows:
            raise ShapeMismatchError("matmul", self.shape, other.shape)
        return Matrix(self._values @ other._values)

    def transpose(self) -> "Matrix":
        """Return the (cols, rows) transpose."""
        return Matrix(self._values.T)

    @property
    def T(self) -> "Matrix":
        return self.transpose()

    def scale(self, factor: float) -> "Matrix":
        """Multiply every cell by a scalar."""
        return Matrix(self._values * factor)

    def map(self, function: Callable[[float], float]) -> "Matrix":
        """
        Apply a scalar function to every cell.

        The function is called once per cell with a Python-compatible float
        and must return a number. Shape is preserved.
        """
        vectorized = np.vectorize(function, otypes=[np.float64])
        return Matrix(vectorized(self._values))


def _check_dimensions(operation: str, rows: int, cols: int) -> None:
    if rows < 1 or cols < 1:
        raise ShapeMismatchError(operation, (rows, cols))


def _check_same_shape(operation: str, left: Matrix, right: Matrix) -> None:
    if left.shape != right.shape:
        raise ShapeMismatchError(operation, left.shape, right.shape)


# Functional spellings of the Matrix methods


def add(a: Matrix, b: Matrix) -> Matrix:
    return a.add(b)


def sub(a: Matrix, b: Matrix) -> Matrix:
    return a.sub(b)


def multiply(a: Matrix, b: Matrix) -> Matrix:
    return a.multiply(b)


dot = multiply


def matmul(a: Matrix, b: Matrix) -> Matrix:
    return a.matmul(b)


def transpose(a: Matrix) -> Matrix:
    return a.transpose()


def map(a: Matrix, function: Callable[[float], float]) -> Matrix:
    return a.map(function)


# =============================================================================
# DEMO
# Run with: python -m mlp.matrix
# =============================================================================
if __name__ == "__main__":
    print("=" * 70)
    print("MATRIX DEMO - The arithmetic a dense layer needs")
    print("=" * 70)
    print()

    weights = Matrix.from_rows([[0.5, -1.0, 0.25], [1.0, 0.0, -0.5]])
    inputs = Matrix.from_column([1.0, 2.0, 3.0])
    bias = Matrix.from_column([0.1, -0.1])

    print(f"weights: {weights.shape}, inputs: {inputs.shape}, bias: {bias.shape}")
    print()

    pre_activation = weights.matmul(inputs).add(bias)
    print("weights @ inputs + bias =", pre_activation.column())
    print()

    print("Mismatched shapes are rejected instead of broadcast:")
    try:
        weights.add(inputs)
    except ShapeMismatchError as error:
        print(f"  {error}")
    print()

    print("Outer product of a gradient and the previous activation:")
    gradient = Matrix.from_column([0.2, -0.4])
    print(" ", gradient.matmul(inputs.transpose()).to_list())
