"""Dot product and matrix multiplication with rank-dependent contraction."""

from __future__ import annotations

from typing import Any

from .config import MAX_DIMS
from .core import allocate, asarray, collapse, ndarray
from .errors import ShapeError
from .iteration import Odometer
from .kinds import BOOL, DEFAULT_INT, ElementKind, promote
from .layout import shape_to_text
from .ufunc import multiply_accumulate


def _result_kind(left: ElementKind, right: ElementKind) -> ElementKind:
    kind = promote(left, right)
    return DEFAULT_INT if kind == BOOL else kind


def _not_aligned(a: ndarray, b: ndarray, a_dim: int, b_dim: int) -> ShapeError:
    return ShapeError(
        "shapes %s and %s not aligned: %d (dim %d) != %d (dim %d)"
        % (shape_to_text(a.shape), shape_to_text(b.shape), a.shape[a_dim], a_dim, b.shape[b_dim], b_dim)
    )


def dot(a: Any, b: Any) -> Any:
    """Contract the last axis of ``a`` with the matching axis of ``b``.

    * either operand rank 0: elementwise product
    * both rank 1: inner product, returned as a scalar
    * ``b`` rank 1: sum over the last axis of ``a``
    * otherwise: last axis of ``a`` against the second-to-last of ``b``; the
      result has ``a``'s leading axes followed by ``b``'s remaining axes
    """

    a = asarray(a, dtype="infer")
    b = asarray(b, dtype="infer")
    if a.ndim == 0 or b.ndim == 0:
        return a * b

    kind = _result_kind(a.kind, b.kind)
    a_contracted = a.axes[-1]
    if b.ndim == 1:
        b_dim = 0
        b_outer: tuple = ()
    else:
        b_dim = b.ndim - 2
        b_outer = b.axes[:-2] + b.axes[-1:]
    b_contracted = b.axes[b_dim]
    if a_contracted.length != b_contracted.length:
        raise _not_aligned(a, b, a.ndim - 1, b_dim)

    a_outer = a.axes[:-1]
    lengths = [dim.length for dim in a_outer + b_outer]
    if len(lengths) > MAX_DIMS:
        raise ShapeError("dot result would have %d dimensions; at most %d are supported" % (len(lengths), MAX_DIMS))
    out = allocate(kind, lengths)

    # each operand only advances along its own output axes
    a_strides = [dim.stride for dim in a_outer] + [0] * len(b_outer)
    b_strides = [0] * len(a_outer) + [dim.stride for dim in b_outer]
    operands = [(out.base, out.strides), (a.base, a_strides), (b.base, b_strides)]
    ok = True
    for out_offset, a_offset, b_offset in Odometer(lengths, operands):
        ok &= multiply_accumulate(out, out_offset, a, a_offset, a_contracted, b, b_offset, b_contracted)
    if not ok:
        raise TypeError("unsupported operand dtypes for dot: %r and %r" % (a.dtype, b.dtype))
    return collapse(out)


def matmul(a: Any, b: Any) -> Any:
    return dot(a, b)


__all__ = ["dot", "matmul"]
