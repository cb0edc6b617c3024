"""
Tests for the Matrix primitive.

Tests cover:
- Construction: zeros, random, from_row, from_column, from_rows
- Elementwise operations: add, sub, multiply (dot)
- Matrix product and transpose, including shape errors
- map and the functional module-level spellings
"""

import numpy as np
import pytest

from mlp import matrix as ops
from mlp.errors import ShapeMismatchError
from mlp.matrix import Matrix


class TestConstruction:
    """Test the named constructors."""

    def test_zeros_shape_and_values(self):
        """zeros() should fill every cell with 0.0."""
        m = Matrix.zeros(3, 2)

        assert m.shape == (3, 2)
        assert m.to_list() == [[0.0, 0.0], [0.0, 0.0], [0.0, 0.0]]

    def test_random_values_in_symmetric_range(self):
        """random() should draw every cell from [-1, 1)."""
        m = Matrix.random(20, 30, np.random.default_rng(0))
        values = m.to_numpy()

        assert m.shape == (20, 30)
        assert np.all(values >= -1.0) and np.all(values < 1.0)
        # Spread over the whole range, not bunched on one side
        assert values.min() < -0.5 and values.max() > 0.5

    def test_random_is_reproducible_with_seed(self):
        """The same seed should produce the same matrix."""
        a = Matrix.random(4, 4, np.random.default_rng(123))
        b = Matrix.random(4, 4, np.random.default_rng(123))

        assert a == b

    @pytest.mark.parametrize("rows, cols", [(0, 3), (3, 0), (-1, 2)])
    def test_non_positive_dimensions_rejected(self, rows, cols):
        """Shapes with a zero or negative dimension are not matrices."""
        with pytest.raises(ShapeMismatchError):
            Matrix.zeros(rows, cols)
        with pytest.raises(ShapeMismatchError):
            Matrix.random(rows, cols)

    def test_from_row(self):
        """from_row() should build a 1 x N matrix."""
        m = Matrix.from_row([1.0, 2.0, 3.0])

        assert m.shape == (1, 3)
        assert m.row() == [1.0, 2.0, 3.0]

    def test_from_row_empty_rejected(self):
        with pytest.raises(ShapeMismatchError):
            Matrix.from_row([])

    def test_from_column(self):
        """from_column() should build an N x 1 matrix."""
        m = Matrix.from_column([4, 5])

        assert m.shape == (2, 1)
        assert m.column() == [4.0, 5.0]

    def test_from_rows_ragged_rejected(self):
        """Rows of different lengths cannot form a matrix."""
        with pytest.raises(ShapeMismatchError, match="ragged"):
            Matrix.from_rows([[1.0, 2.0], [3.0]])

    def test_constructor_ragged_rejected(self):
        """Ragged nested lists passed straight to Matrix get the package error."""
        with pytest.raises(ShapeMismatchError, match="rectangular"):
            Matrix([[1.0, 2.0], [3.0]])

    def test_input_array_is_copied(self):
        """Changing the source array must not change the matrix."""
        source = np.ones((2, 2))
        m = Matrix(source)
        source[0, 0] = 99.0

        assert m[0, 0] == 1.0

    def test_to_numpy_returns_copy(self):
        m = Matrix.zeros(2, 2)
        m.to_numpy()[0, 0] = 5.0

        assert m[0, 0] == 0.0


class TestElementwise:
    """Test add, sub and the Hadamard product."""

    def test_add(self):
        a = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0]])
        b = Matrix.from_rows([[10.0, 20.0], [30.0, 40.0]])

        assert a.add(b).to_list() == [[11.0, 22.0], [33.0, 44.0]]

    def test_sub(self):
        a = Matrix.from_rows([[1.0, 2.0]])
        b = Matrix.from_rows([[0.5, 3.0]])

        assert a.sub(b).to_list() == [[0.5, -1.0]]

    def test_multiply_is_elementwise(self):
        """multiply() is the Hadamard product, not the matrix product."""
        a = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0]])
        b = Matrix.from_rows([[2.0, 0.0], [1.0, -1.0]])

        assert a.multiply(b).to_list() == [[2.0, 0.0], [3.0, -4.0]]
        assert a.dot(b) == a.multiply(b)

    @pytest.mark.parametrize("operation", ["add", "sub", "multiply"])
    def test_shape_mismatch(self, operation):
        """Elementwise operations must not broadcast (3,1) against (1,3)."""
        column = Matrix.zeros(3, 1)
        row = Matrix.zeros(1, 3)

        with pytest.raises(ShapeMismatchError) as info:
            getattr(column, operation)(row)

        assert info.value.left == (3, 1)
        assert info.value.right == (1, 3)
        assert info.value.operation == operation

    def test_add_then_sub_restores_original(self):
        """(A + B) - B should equal A within floating point tolerance."""
        rng = np.random.default_rng(7)
        for rows, cols in [(1, 1), (2, 5), (7, 3)]:
            a = Matrix.random(rows, cols, rng)
            b = Matrix.random(rows, cols, rng)

            assert a.add(b).sub(b).allclose(a, tolerance=1e-12)

    def test_operands_not_mutated(self):
        a = Matrix.from_rows([[1.0, 2.0]])
        b = Matrix.from_rows([[3.0, 4.0]])

        a.add(b)
        a.sub(b)
        a.multiply(b)

        assert a.to_list() == [[1.0, 2.0]]
        assert b.to_list() == [[3.0, 4.0]]

    def test_scale(self):
        assert Matrix.from_row([1.0, -2.0]).scale(0.5).row() == [0.5, -1.0]


class TestMatmulAndTranspose:
    """Test the matrix product and transpose."""

    def test_matmul_known_values(self):
        a = Matrix.from_rows([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        b = Matrix.from_rows([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])

        result = a.matmul(b)

        assert result.shape == (2, 2)
        assert result.to_list() == [[4.0, 5.0], [10.0, 11.0]]

    def test_outer_product_shape(self):
        """A column times a row gives the full outer product."""
        column = Matrix.from_column([1.0, 2.0])
        row = Matrix.from_row([3.0, 4.0, 5.0])

        assert column.matmul(row).to_list() == [[3.0, 4.0, 5.0], [6.0, 8.0, 10.0]]

    @pytest.mark.parametrize(
        "left, right", [((2, 3), (2, 3)), ((1, 4), (3, 1)), ((3, 1), (3, 1))]
    )
    def test_matmul_inner_dimension_mismatch(self, left, right):
        """matmul must fail, not return a result, when a.cols != b.rows."""
        with pytest.raises(ShapeMismatchError) as info:
            Matrix.zeros(*left).matmul(Matrix.zeros(*right))

        assert info.value.operation == "matmul"

    def test_transpose_shape(self):
        m = Matrix.from_rows([[1.0, 2.0, 3.0]])

        assert m.transpose().shape == (3, 1)
        assert m.T.column() == [1.0, 2.0, 3.0]

    def test_transpose_is_involution(self):
        """transpose(transpose(A)) == A exactly, for many shapes."""
        rng = np.random.default_rng(1)
        for rows in range(1, 5):
            for cols in range(1, 5):
                m = Matrix.random(rows, cols, rng)
                assert m.transpose().transpose() == m


class TestMap:
    """Test elementwise function application."""

    def test_map_preserves_shape(self):
        m = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])

        result = m.map(lambda x: x * x)

        assert result.shape == (3, 2)
        assert result.to_list() == [[1.0, 4.0], [9.0, 16.0], [25.0, 36.0]]

    def test_map_with_non_numpy_function(self):
        """Plain scalar functions (math module, branches) should work."""
        import math

        m = Matrix.from_row([-1.0, 0.0, 2.0])

        assert m.map(lambda x: max(x, 0.0)).row() == [0.0, 0.0, 2.0]
        assert m.map(math.exp).allclose(Matrix.from_row([math.exp(-1), 1.0, math.exp(2)]))


class TestModuleFunctions:
    """The functional spellings should match the methods."""

    def test_functions_match_methods(self):
        a = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0]])
        b = Matrix.from_rows([[5.0, 6.0], [7.0, 8.0]])

        assert ops.add(a, b) == a.add(b)
        assert ops.sub(a, b) == a.sub(b)
        assert ops.multiply(a, b) == a.multiply(b)
        assert ops.dot(a, b) == a.multiply(b)
        assert ops.matmul(a, b) == a.matmul(b)
        assert ops.transpose(a) == a.transpose()
        assert ops.map(a, abs) == a

    def test_equality(self):
        a = Matrix.from_row([1.0, 2.0])

        assert a == Matrix.from_row([1.0, 2.0])
        assert a != Matrix.from_column([1.0, 2.0])
        assert a != [1.0, 2.0]
