"""Row reduction and the linear-algebra helpers built on it."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from . import config
from .core import allocate, array, ndarray
from .errors import LinAlgError, SingularMatrixError
from .kinds import FLOAT64
from .layout import shape_to_text

LOGGER = logging.getLogger(__name__)


@dataclass
class RowReduction:
    pivot_count: int
    determinant_factor: float


def _find_pivot(buffer, row: int, rows: int, cols: int, col: int, epsilon: float) -> int | None:
    """Row at or below ``row`` with the best pivot in ``col``.

    An exact 1 wins outright; otherwise the entry whose binary exponent is
    closest to zero, so pivots stay near unit magnitude.
    """

    best = None
    best_exponent = 0
    for candidate in range(row, rows):
        value = float(buffer[candidate * cols + col])
        if abs(value) < epsilon:
            continue
        if value == 1.0:
            return candidate
        exponent = abs(math.frexp(value)[1])
        if best is None or exponent < best_exponent:
            best, best_exponent = candidate, exponent
    return best


def reduce_rows(
    matrix: ndarray, full_diagonalize: bool = False, normalize: bool = False, pivot_width: int | None = None
) -> RowReduction:
    """Gaussian elimination in place on an owned float64 matrix.

    Rows are swapped with one of them negated so the determinant is
    unchanged.  With ``normalize`` every pivot row is divided by its pivot
    and ``determinant_factor`` collects the reciprocals, so the determinant
    of the input is ``1 / determinant_factor`` when all pivots were found.
    Only the first ``pivot_width`` columns are searched for pivots.
    """

    if matrix.ndim != 2:
        raise LinAlgError("row reduction needs a 2-D matrix; got shape %s" % (shape_to_text(matrix.shape),))
    if not matrix.owned or matrix.kind != FLOAT64:
        raise LinAlgError("row reduction works in place on an owned float64 matrix")
    rows, cols = matrix.shape
    width = cols if pivot_width is None else min(pivot_width, cols)
    epsilon = config.CAPABILITIES.linalg_epsilon
    buffer = matrix.buffer

    def row_slice(r: int, start: int = 0) -> slice:
        return slice(r * cols + start, (r + 1) * cols)

    determinant_factor = 1.0
    row = 0
    for col in range(width):
        if row >= rows:
            break
        pivot_row = _find_pivot(buffer, row, rows, cols, col, epsilon)
        if pivot_row is None:
            continue
        if pivot_row != row:
            saved = buffer[row_slice(row)].copy()
            buffer[row_slice(row)] = buffer[row_slice(pivot_row)]
            buffer[row_slice(pivot_row)] = -saved
        pivot = float(buffer[row * cols + col])
        targets = range(rows) if full_diagonalize else range(row + 1, rows)
        for target in targets:
            if target == row:
                continue
            multiple = float(buffer[target * cols + col]) / pivot
            if multiple != 0.0:
                buffer[target * cols + col] = 0.0
                buffer[row_slice(target, col + 1)] -= multiple * buffer[row_slice(row, col + 1)]
        if normalize:
            buffer[row_slice(row, col)] /= pivot
            determinant_factor /= pivot
        row += 1
    LOGGER.debug("row reduction of %s found %d pivots", shape_to_text(matrix.shape), row)
    return RowReduction(row, determinant_factor)


def _float_matrix(matrix: Any, name: str) -> ndarray:
    result = array(matrix, dtype=FLOAT64)
    if result.ndim != 2:
        raise LinAlgError("%s expects a 2-D matrix; got shape %s" % (name, shape_to_text(result.shape)))
    return result


def _square(matrix: Any, name: str) -> ndarray:
    result = _float_matrix(matrix, name)
    rows, cols = result.shape
    if rows != cols:
        raise LinAlgError("%s expects a square matrix; got shape %s" % (name, shape_to_text(result.shape)))
    return result


def re(matrix: Any) -> ndarray:
    """Normalised row echelon form.

    Owned float64 matrices are reduced in place; anything else is reduced as
    a float64 copy.  The reduced array is returned either way.
    """

    if isinstance(matrix, ndarray) and matrix.owned and matrix.kind == FLOAT64 and matrix.ndim == 2:
        target = matrix
    else:
        target = _float_matrix(matrix, "re")
    reduce_rows(target, normalize=True)
    return target


def det(matrix: Any) -> float:
    work = _square(matrix, "det")
    n = work.shape[0]
    if n == 0:
        return 1.0
    result = reduce_rows(work, normalize=True)
    if result.pivot_count < n:
        raise SingularMatrixError("Singular matrix")
    return 1.0 / result.determinant_factor


def _augmented(left: ndarray, columns: int) -> ndarray:
    n = left.shape[0]
    scratch = allocate(FLOAT64, (n, n + columns))
    scratch[:, :n] = left
    return scratch


def _eliminate(scratch: ndarray, n: int) -> None:
    result = reduce_rows(scratch, full_diagonalize=True, normalize=True, pivot_width=n)
    if result.pivot_count < n:
        raise SingularMatrixError("Singular matrix")


def inv(matrix: Any) -> ndarray:
    square = _square(matrix, "inv")
    n = square.shape[0]
    scratch = _augmented(square, n)
    for i in range(n):
        scratch[i, n + i] = 1.0
    _eliminate(scratch, n)
    return scratch[:, n:].copy()


def solve(a: Any, b: Any) -> ndarray:
    """Solve ``a @ x == b`` for a vector ``b``."""
    square = _square(a, "solve")
    n = square.shape[0]
    rhs = array(b, dtype=FLOAT64)
    if rhs.ndim != 1 or rhs.shape[0] != n:
        raise LinAlgError(
            "solve expects a vector of length %d; got shape %s" % (n, shape_to_text(rhs.shape))
        )
    scratch = _augmented(square, 1)
    scratch[:, n] = rhs
    _eliminate(scratch, n)
    return scratch[:, n].copy()


__all__ = [
    "LinAlgError",
    "RowReduction",
    "SingularMatrixError",
    "det",
    "inv",
    "re",
    "reduce_rows",
    "solve",
]
