"""
Dense 2D Matrix
===============

The numeric engine behind the driving network.

Every constructive operation (random init, transpose, elementwise arithmetic,
matrix product, window extraction, ...) is one call to the functional-application
primitive ``Matrix.generate(func, rows, cols)``: cell (i, j) of the result is
``func(result_under_construction, i, j)``. The non-allocating variant
``exec_func`` visits cells for side effects only (statistics, max search).

Matrices are never reshaped: operations return new matrices and copies are deep,
so two matrices never share storage.

Example:
    >>> a = Matrix.from_rows([[1, 2], [3, 4]])
    >>> a.transpose().tolist()
    [[1.0, 3.0], [2.0, 4.0]]
    >>> a.plus(Matrix.from_rows([[10, 20]])).tolist()   # row broadcasting
    [[11.0, 22.0], [13.0, 24.0]]
"""

import math
from typing import Callable, List, NamedTuple, Optional, Sequence, Union

import numpy as np

from gtadrive.errors import BoundsViolationError, LengthMismatchError, ShapeMismatchError


MatrixLambda = Callable[['Matrix', int, int], float]
Scalar = Union[int, float]

# Shared generator for weight init and shuffling (reseed with seed())
_rng = np.random.default_rng()


def seed(value: Optional[int]) -> None:
    """Reseed the module-level random generator."""
    global _rng
    _rng = np.random.default_rng(value)


class MaxElement(NamedTuple):
    """Largest cell of a matrix and where it sits."""
    elem: float
    row: int
    col: int


class Matrix:
    """
    Dense rows x cols grid of float64 values.

    Attributes:
        rows: Number of rows (fixed at construction)
        cols: Number of columns (fixed at construction)
    """

    def __init__(self, rows: int, cols: int):
        """
        Create a zero matrix.

        Args:
            rows: Number of rows (>= 0)
            cols: Number of columns (>= 0)
        """
        if rows < 0 or cols < 0:
            raise ValueError(f"Matrix dimensions must be >= 0, got ({rows}, {cols})")
        self._rows = int(rows)
        self._cols = int(cols)
        self._data = np.zeros((self._rows, self._cols), dtype=np.float64)

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def from_rows(cls, data: Union[Sequence[Sequence[Scalar]], np.ndarray]) -> 'Matrix':
        """Build a matrix from a nested sequence or 2D array (deep copy)."""
        try:
            arr = np.array(data, dtype=np.float64)
        except ValueError as e:
            raise ShapeMismatchError(f"Rows must all have the same length: {e}") from e
        if arr.ndim != 2:
            raise ShapeMismatchError(f"Expected 2D data, got {arr.ndim}D")
        res = cls(arr.shape[0], arr.shape[1])
        res._data[:, :] = arr
        return res

    @classmethod
    def from_numpy(cls, arr: np.ndarray) -> 'Matrix':
        """Build a matrix from a 2D numpy array (deep copy)."""
        return cls.from_rows(arr)

    def copy(self) -> 'Matrix':
        """Deep copy."""
        res = Matrix(self._rows, self._cols)
        res._data[:, :] = self._data
        return res

    @classmethod
    def generate(cls, func: MatrixLambda, rows: int, cols: int) -> 'Matrix':
        """
        Create a rows x cols matrix whose cell (i, j) is func(result, i, j).

        Cells are visited exactly once, in row-major order.
        """
        res = cls(rows, cols)
        for i in range(rows):
            for j in range(cols):
                res._data[i, j] = func(res, i, j)
        return res

    def apply_func(self, func: MatrixLambda) -> 'Matrix':
        """Same as generate() with the receiver's shape. Never mutates self."""
        return Matrix.generate(func, self._rows, self._cols)

    def exec_func(self, func: MatrixLambda) -> None:
        """Run func(self, i, j) on every cell for its side effects only."""
        for i in range(self._rows):
            for j in range(self._cols):
                func(self, i, j)

    @classmethod
    def gen_random_gaussian(
        cls,
        rows: int,
        cols: int,
        rng: Optional[np.random.Generator] = None
    ) -> 'Matrix':
        """Cells drawn i.i.d. from a standard normal distribution."""
        gen = rng if rng is not None else _rng
        return cls.generate(lambda mat, i, j: gen.standard_normal(), rows, cols)

    @classmethod
    def gen_random_int(
        cls,
        rows: int,
        cols: int,
        low: int,
        high: int,
        rng: Optional[np.random.Generator] = None
    ) -> 'Matrix':
        """Cells drawn uniformly from the integers in [low, high] (inclusive)."""
        if low > high:
            raise ValueError(f"low must be <= high, got [{low}, {high}]")
        gen = rng if rng is not None else _rng
        return cls.generate(lambda mat, i, j: gen.integers(low, high + 1), rows, cols)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def cols(self) -> int:
        return self._cols

    @property
    def shape(self) -> tuple:
        return (self._rows, self._cols)

    def get_at(self, i: int, j: int) -> float:
        return float(self._data[i, j])

    def set_at(self, i: int, j: int, value: float) -> None:
        self._data[i, j] = value

    def get_row(self, i: int) -> List[float]:
        """Copy of row i."""
        return self._data[i].tolist()

    def to_numpy(self) -> np.ndarray:
        """Copy of the underlying data as a (rows, cols) float64 array."""
        return self._data.copy()

    def tolist(self) -> List[List[float]]:
        return self._data.tolist()

    def allclose(self, other: 'Matrix', atol: float = 1e-9) -> bool:
        """True if shapes match and every cell is within atol."""
        return self.shape == other.shape and bool(np.allclose(self._data, other._data, rtol=0.0, atol=atol))

    # =========================================================================
    # ALGEBRA
    # =========================================================================

    def transpose(self) -> 'Matrix':
        return Matrix.generate(lambda mat, i, j: self._data[j, i], self._cols, self._rows)

    def plus(self, other: Union['Matrix', Scalar]) -> 'Matrix':
        """
        Elementwise addition.

        A single-row ``other`` with the receiver's column count is added to
        every row of a multi-row receiver (row broadcasting).
        """
        if not isinstance(other, Matrix):
            a = float(other)
            return self.apply_func(lambda mat, i, j: self._data[i, j] + a)

        if self._rows > 1 and other._rows == 1 and self._cols == other._cols:
            return self.apply_func(lambda mat, i, j: self._data[i, j] + other._data[0, j])
        if self.shape != other.shape:
            raise ShapeMismatchError(f"Cannot add {other.shape} to {self.shape}")
        return self.apply_func(lambda mat, i, j: self._data[i, j] + other._data[i, j])

    def sub(self, other: Union['Matrix', Scalar]) -> 'Matrix':
        if not isinstance(other, Matrix):
            return self.plus(-float(other))
        return self.plus(other.mul(-1))

    def mul(self, other: Union['Matrix', Scalar]) -> 'Matrix':
        """
        Scalar product, Hadamard product (identical shapes) or matrix product
        (``self.cols == other.rows``), in that order of precedence.
        """
        if not isinstance(other, Matrix):
            a = float(other)
            return self.apply_func(lambda mat, i, j: self._data[i, j] * a)

        if self.shape == other.shape:
            return self.apply_func(lambda mat, i, j: self._data[i, j] * other._data[i, j])
        return self.matmul(other)

    def matmul(self, other: 'Matrix') -> 'Matrix':
        """Standard matrix product, always (never Hadamard)."""
        if self._cols != other._rows:
            raise ShapeMismatchError(f"Cannot multiply {self.shape} by {other.shape}")
        return Matrix.generate(
            lambda mat, i, j: float(np.dot(self._data[i, :], other._data[:, j])),
            self._rows, other._cols
        )

    def div(self, a: Scalar) -> 'Matrix':
        """Elementwise division by a scalar; a == 0 gives +-inf (nan for 0 / 0)."""
        with np.errstate(divide='ignore', invalid='ignore'):
            return self.apply_func(lambda mat, i, j: np.divide(self._data[i, j], a))

    def pow(self, a: Scalar) -> 'Matrix':
        return self.apply_func(lambda mat, i, j: np.power(self._data[i, j], a))

    def dot(self, other: 'Matrix') -> 'Matrix':
        """transpose().mul(other): contraction over the receiver's rows."""
        return self.transpose().mul(other)

    # Python operators
    def __add__(self, other):
        return self.plus(other)

    def __radd__(self, other):
        return self.plus(other)

    def __sub__(self, other):
        return self.sub(other)

    def __rsub__(self, other):
        return self.mul(-1).plus(other)

    def __mul__(self, other):
        return self.mul(other)

    def __rmul__(self, other):
        return self.mul(other)

    def __matmul__(self, other):
        return self.matmul(other)

    def __truediv__(self, other):
        return self.div(other)

    def __pow__(self, other):
        return self.pow(other)

    def __neg__(self):
        return self.mul(-1)

    # =========================================================================
    # ROWS AND WINDOWS
    # =========================================================================

    def select_rows(self, a: int, b: int) -> 'Matrix':
        """Rows [a, b) as a new matrix."""
        if not 0 <= a < b <= self._rows:
            raise BoundsViolationError(f"Invalid row range [{a}, {b}) for {self._rows} rows")
        return Matrix.generate(lambda mat, i, j: self._data[a + i, j], b - a, self._cols)

    def _check_window(self, x: int, y: int, width: int, height: int) -> None:
        if x < 0 or y < 0 or width < 0 or height < 0 or x + width > self._cols or y + height > self._rows:
            raise BoundsViolationError(
                f"Window (x={x}, y={y}, w={width}, h={height}) outside {self.shape}"
            )

    def sub_matrix(self, x: int, y: int, width: int, height: int) -> 'Matrix':
        """Extract the height x width window whose top-left cell is (row=y, col=x)."""
        self._check_window(x, y, width, height)
        return Matrix.generate(lambda mat, i, j: self._data[y + i, x + j], height, width)

    def write_sub_matrix(self, x: int, y: int, src: 'Matrix') -> None:
        """Overwrite, in place, the window starting at (row=y, col=x) with src."""
        self._check_window(x, y, src._cols, src._rows)
        self._data[y:y + src._rows, x:x + src._cols] = src._data

    def shuffle_rows(
        self,
        indices: Optional[Sequence[int]] = None,
        rng: Optional[np.random.Generator] = None
    ) -> 'Matrix':
        """
        Return a copy with permuted rows.

        Args:
            indices: Row i of the result is row indices[i] of self.
                     A uniformly random permutation is drawn when omitted.
            rng: Generator used for the random permutation
        """
        if indices is None:
            gen = rng if rng is not None else _rng
            indices = gen.permutation(self._rows)
        if len(indices) != self._rows:
            raise LengthMismatchError(f"Expected {self._rows} indices, got {len(indices)}")
        order = [int(k) for k in indices]
        for k in order:
            if not 0 <= k < self._rows:
                raise BoundsViolationError(f"Row index {k} outside [0, {self._rows})")
        return self.apply_func(lambda mat, i, j: self._data[order[i], j])

    # =========================================================================
    # STATISTICS
    # =========================================================================

    @property
    def size(self) -> int:
        return self._rows * self._cols

    def sum(self) -> float:
        total = [0.0]

        def accumulate(mat, i, j):
            total[0] += self._data[i, j]
            return 0.0

        self.exec_func(accumulate)
        return total[0]

    def mean(self) -> float:
        """Mean over all cells (nan for an empty matrix)."""
        if self.size == 0:
            return math.nan
        return self.sum() / self.size

    def variance(self, mean: Optional[float] = None) -> float:
        """Population variance over all cells (denominator rows * cols)."""
        if self.size == 0:
            return math.nan
        if mean is None:
            mean = self.mean()
        total = [0.0]

        def accumulate(mat, i, j):
            total[0] += (self._data[i, j] - mean) ** 2
            return 0.0

        self.exec_func(accumulate)
        return total[0] / self.size

    def std(self, variance: Optional[float] = None) -> float:
        if variance is None:
            variance = self.variance()
        return math.sqrt(variance)

    def normalize(self) -> 'Matrix':
        """(x - mean) / std; an all-zero matrix when mean and std are both 0."""
        mean = self.mean()
        std = self.std(self.variance(mean))
        if mean == 0 and std == 0:
            return Matrix(self._rows, self._cols)
        return self.apply_func(lambda mat, i, j: (self._data[i, j] - mean) / std)

    def max(self) -> MaxElement:
        """Largest cell and its coordinates; the first row-major occurrence wins ties."""
        best = [-math.inf, 0, 0]

        def search(mat, i, j):
            if self._data[i, j] > best[0]:
                best[0] = float(self._data[i, j])
                best[1] = i
                best[2] = j
            return 0.0

        self.exec_func(search)
        return MaxElement(elem=best[0], row=best[1], col=best[2])

    # =========================================================================
    # DISPLAY
    # =========================================================================

    def __repr__(self) -> str:
        return f"Matrix(rows={self._rows}, cols={self._cols})"

    def __str__(self) -> str:
        lines = ["[" + ",\t".join(str(v) for v in row) + "]" for row in self._data.tolist()]
        return "[" + "\n".join(lines) + "]"
