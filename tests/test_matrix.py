"""
Tests for the Matrix engine.

These tests verify:
    - Construction and random generation
    - Scalar, broadcast, Hadamard and matrix-product arithmetic
    - Row selection, windows and shuffling
    - Statistics, normalization and max()
    - Shape / bounds errors
"""

import math
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gtadrive.errors import BoundsViolationError, LengthMismatchError, ShapeMismatchError
from gtadrive.maths import Matrix, seed


@pytest.fixture
def a():
    return Matrix.from_rows([[1, 2, 3], [4, 5, 6]])


@pytest.fixture
def b():
    return Matrix.from_rows([[7, 8], [9, 10], [11, 12]])


class TestConstruction:
    """Test matrix construction."""

    def test_zero_matrix(self):
        """New matrices are all zeros with the requested shape."""
        m = Matrix(3, 4)
        assert m.shape == (3, 4)
        assert m.sum() == 0.0

    def test_negative_dimensions_rejected(self):
        with pytest.raises(ValueError):
            Matrix(-1, 2)

    def test_from_rows_ragged(self):
        """Rows of different length cannot form a matrix."""
        with pytest.raises(ShapeMismatchError):
            Matrix.from_rows([[1, 2], [3]])

    def test_from_rows_is_deep_copy(self):
        data = np.ones((2, 2))
        m = Matrix.from_numpy(data)
        data[0, 0] = 99
        assert m.get_at(0, 0) == 1.0

    def test_generate_row_major(self):
        """generate() visits each cell once in row-major order."""
        visited = []

        def func(mat, i, j):
            visited.append((i, j))
            return i * 10 + j

        m = Matrix.generate(func, 2, 3)
        assert visited == [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]
        assert m.get_at(1, 2) == 12

    def test_apply_func_does_not_mutate(self, a):
        before = a.tolist()
        a.apply_func(lambda mat, i, j: 0.0)
        assert a.tolist() == before

    def test_random_int_inclusive_range(self, rng):
        m = Matrix.gen_random_int(20, 20, -1, 1, rng=rng)
        values = set(v for row in m.tolist() for v in row)
        assert values <= {-1.0, 0.0, 1.0}
        assert len(values) == 3

    def test_module_seed_reproducible(self):
        seed(7)
        first = Matrix.gen_random_gaussian(3, 3)
        seed(7)
        second = Matrix.gen_random_gaussian(3, 3)
        assert first.allclose(second)

    def test_copy_is_independent(self, a):
        c = a.copy()
        c.set_at(0, 0, 100)
        assert a.get_at(0, 0) == 1.0


class TestArithmetic:
    """Test plus/sub/mul and friends."""

    @pytest.mark.parametrize("s", [0.0, 1.5, -3.25, 1e6])
    def test_plus_then_sub_scalar_is_identity(self, rng, s):
        m = Matrix.gen_random_gaussian(4, 5, rng=rng)
        assert m.plus(s).sub(s).allclose(m, atol=1e-6)

    def test_row_broadcast(self, rng):
        """A single row is added to every row of a multi-row matrix."""
        m = Matrix.gen_random_gaussian(4, 3, rng=rng)
        row = Matrix.gen_random_gaussian(1, 3, rng=rng)
        res = m.plus(row)
        for i in range(4):
            for j in range(3):
                assert res.get_at(i, j) == pytest.approx(m.get_at(i, j) + row.get_at(0, j))

    def test_plus_shape_mismatch(self, a):
        with pytest.raises(ShapeMismatchError):
            a.plus(Matrix(3, 3))

    def test_sub_matrix(self, a):
        assert a.sub(a).sum() == 0.0

    def test_matrix_product(self, a, b):
        """mul() of compatible shapes is the standard matrix product."""
        res = a.mul(b)
        assert res.shape == (2, 2)
        for i in range(2):
            for j in range(2):
                expected = sum(a.get_at(i, k) * b.get_at(k, j) for k in range(3))
                assert res.get_at(i, j) == pytest.approx(expected)

    def test_hadamard_for_equal_shapes(self, a):
        res = a.mul(a)
        assert res.tolist() == [[1, 4, 9], [16, 25, 36]]

    def test_matmul_never_hadamard(self):
        """matmul() on square matrices is the matrix product."""
        m = Matrix.from_rows([[1, 2], [3, 4]])
        assert m.matmul(m).tolist() == [[7, 10], [15, 22]]

    def test_mul_shape_mismatch(self):
        """2x3 times 4x5 fails without producing a result."""
        with pytest.raises(ShapeMismatchError):
            Matrix(2, 3).mul(Matrix(4, 5))

    def test_scalar_mul_div_pow(self, a):
        assert a.mul(2).tolist() == [[2, 4, 6], [8, 10, 12]]
        assert a.div(2).get_at(1, 1) == 2.5
        assert a.pow(2).get_at(0, 2) == 9.0

    def test_div_by_zero_is_infinite(self):
        """Division by zero follows float semantics instead of raising."""
        res = Matrix.from_rows([[1, -2, 0]]).div(0)
        assert res.get_at(0, 0) == math.inf
        assert res.get_at(0, 1) == -math.inf
        assert math.isnan(res.get_at(0, 2))

    def test_dot_is_transpose_product(self, a):
        res = a.dot(a)
        assert res.shape == (3, 3)
        assert res.get_at(0, 0) == pytest.approx(1 * 1 + 4 * 4)

    def test_operators(self, a, b):
        assert (a + 1).get_at(0, 0) == 2.0
        assert (1 - a).get_at(0, 0) == 0.0
        assert (2 * a).get_at(1, 2) == 12.0
        assert (a @ b).allclose(a.matmul(b))
        assert (-a).get_at(0, 1) == -2.0
        assert (a ** 2).get_at(1, 0) == 16.0
        assert (a / 4).get_at(1, 1) == 1.25

    def test_double_transpose(self, rng):
        m = Matrix.gen_random_gaussian(3, 5, rng=rng)
        t = m.transpose()
        assert t.shape == (5, 3)
        assert t.get_at(4, 2) == m.get_at(2, 4)
        assert t.transpose().allclose(m)


class TestRowsAndWindows:
    """Test select_rows, sub_matrix, write_sub_matrix and shuffle_rows."""

    def test_select_rows(self, b):
        assert b.select_rows(1, 3).tolist() == [[9, 10], [11, 12]]

    @pytest.mark.parametrize("rng_a,rng_b", [(-1, 2), (2, 2), (0, 4), (3, 1)])
    def test_select_rows_bounds(self, b, rng_a, rng_b):
        with pytest.raises(BoundsViolationError):
            b.select_rows(rng_a, rng_b)

    def test_sub_matrix(self, a):
        """x is the column offset, y the row offset."""
        assert a.sub_matrix(1, 0, 2, 2).tolist() == [[2, 3], [5, 6]]

    def test_sub_matrix_out_of_bounds(self, a):
        with pytest.raises(BoundsViolationError):
            a.sub_matrix(2, 0, 2, 1)

    def test_write_sub_matrix_in_place(self, a):
        a.write_sub_matrix(1, 1, Matrix.from_rows([[0, 0]]))
        assert a.tolist() == [[1, 2, 3], [4, 0, 0]]

    def test_write_sub_matrix_out_of_bounds(self, a):
        with pytest.raises(BoundsViolationError):
            a.write_sub_matrix(2, 1, Matrix(1, 2))

    def test_shuffle_rows_with_indices(self, b):
        assert b.shuffle_rows([2, 0, 1]).tolist() == [[11, 12], [7, 8], [9, 10]]

    def test_shuffle_rows_is_permutation(self, rng):
        m = Matrix.generate(lambda mat, i, j: i, 10, 2)
        shuffled = m.shuffle_rows(rng=rng)
        assert sorted(shuffled.get_at(i, 0) for i in range(10)) == list(range(10))

    def test_shuffle_rows_wrong_length(self, b):
        with pytest.raises(LengthMismatchError):
            b.shuffle_rows([0, 1])

    def test_shuffle_rows_bad_index(self, b):
        with pytest.raises(BoundsViolationError):
            b.shuffle_rows([0, 1, 3])


class TestStatistics:
    """Test sum/mean/variance/std/normalize/max."""

    def test_mean_variance_std(self):
        m = Matrix.from_rows([[1, 2], [3, 4]])
        assert m.sum() == 10.0
        assert m.mean() == 2.5
        assert m.variance() == pytest.approx(1.25)
        assert m.std() == pytest.approx(math.sqrt(1.25))

    def test_empty_matrix_mean_is_nan(self):
        assert math.isnan(Matrix(0, 3).mean())

    def test_normalize(self, rng):
        m = Matrix.gen_random_gaussian(6, 7, rng=rng).mul(3).plus(5)
        n = m.normalize()
        assert n.mean() == pytest.approx(0.0, abs=1e-9)
        assert n.std() == pytest.approx(1.0, abs=1e-9)

    def test_normalize_all_zero(self):
        n = Matrix(2, 3).normalize()
        assert n.tolist() == [[0, 0, 0], [0, 0, 0]]

    def test_max_first_occurrence(self):
        """Ties resolve to the first row-major cell."""
        best = Matrix.from_rows([[1, 5], [9, 9]]).max()
        assert best.elem == 9
        assert (best.row, best.col) == (1, 0)

    def test_max_all_negative(self):
        best = Matrix.from_rows([[-3, -1], [-2, -5]]).max()
        assert (best.elem, best.row, best.col) == (-1, 0, 1)
