"""Axis descriptors and the view algebra on ``(base_offset, axes)`` pairs.

Nothing in this module touches element storage: every function maps a base
offset and a tuple of :class:`DimInfo` to another one.  Element ``(i0, .., ik)``
of a view lives at ``base + i0*stride0 + .. + ik*stridek`` in the flat buffer.
"""

from __future__ import annotations

import operator
from typing import Any, NamedTuple, Sequence, Tuple

from .config import MAX_DIMS
from .errors import ArrayIndexError, AxisError, BroadcastError, ShapeError


class DimInfo(NamedTuple):
    length: int
    stride: int


Axes = Tuple[DimInfo, ...]


def shape_to_text(shape: Sequence[int]) -> str:
    return "×".join(str(dim) for dim in shape) or "()"


def normalize_shape(shape: Any) -> Tuple[int, ...]:
    if isinstance(shape, (list, tuple)):
        lengths = tuple(operator.index(dim) for dim in shape)
    else:
        lengths = (operator.index(shape),)
    if len(lengths) > MAX_DIMS:
        raise ShapeError("too many dimensions: %d > %d" % (len(lengths), MAX_DIMS))
    if any(dim < 0 for dim in lengths):
        raise ShapeError("negative dimensions are not allowed: %s" % (shape_to_text(lengths),))
    return lengths


def canonical_strides(lengths: Sequence[int]) -> Tuple[int, ...]:
    strides = []
    step = 1
    for length in reversed(lengths):
        strides.append(step)
        step *= max(length, 1)
    return tuple(reversed(strides))


def canonical_axes(lengths: Sequence[int]) -> Axes:
    return tuple(DimInfo(length, stride) for length, stride in zip(lengths, canonical_strides(lengths)))


def element_count(lengths: Sequence[int]) -> int:
    count = 1
    for length in lengths:
        count *= length
    return count


def address(base: int, axes: Axes, index: Sequence[int]) -> int:
    if len(index) != len(axes):
        raise ArrayIndexError("expected %d indices, got %d" % (len(axes), len(index)))
    offset = base
    for position, dim in zip(index, axes):
        if not 0 <= position < dim.length:
            raise ArrayIndexError("index %d is out of bounds for axis with size %d" % (position, dim.length))
        offset += position * dim.stride
    return offset


def normalize_axis(axis: Any, ndim: int) -> int:
    value = operator.index(axis)
    if value < -ndim or value >= ndim:
        raise AxisError("axis %d is out of bounds for array of dimension %d" % (value, ndim))
    return value + ndim if value < 0 else value


def _is_integer_item(item: Any) -> bool:
    if isinstance(item, bool):
        return False
    try:
        operator.index(item)
    except TypeError:
        return False
    return True


def resolve_subscript(base: int, axes: Axes, key: Any) -> Tuple[int, Axes]:
    """Apply an index expression and return the resulting view.

    Integers consume an axis, slices keep it with a new length and stride,
    ``None`` inserts a length-1 axis and a single ``...`` stands for as many
    untouched axes as are needed to align the remaining items with the tail.
    """

    items = key if isinstance(key, tuple) else (key,)
    if sum(1 for item in items if item is Ellipsis) > 1:
        raise ArrayIndexError("an index can only have a single ellipsis ('...')")
    consuming = sum(1 for item in items if item is not None and item is not Ellipsis)
    if consuming > len(axes):
        raise ArrayIndexError(
            "too many indices for array: array is %d-dimensional, but %d were indexed" % (len(axes), consuming)
        )

    out: list[DimInfo] = []
    source = 0
    for item in items:
        if item is None:
            out.append(DimInfo(1, 0))
        elif item is Ellipsis:
            covered = len(axes) - consuming
            out.extend(axes[source : source + covered])
            source += covered
        elif isinstance(item, slice):
            dim = axes[source]
            start, stop, step = item.indices(dim.length)
            base += dim.stride * start
            out.append(DimInfo(len(range(start, stop, step)), dim.stride * step))
            source += 1
        elif _is_integer_item(item):
            dim = axes[source]
            position = operator.index(item)
            if position < 0:
                position += dim.length
            if not 0 <= position < dim.length:
                raise ArrayIndexError(
                    "index %d is out of bounds for axis %d with size %d" % (operator.index(item), source, dim.length)
                )
            base += position * dim.stride
            source += 1
        else:
            raise ArrayIndexError(
                "only integers, slices, ellipsis and None are valid indices; got %s" % type(item).__name__
            )
    out.extend(axes[source:])
    if len(out) > MAX_DIMS:
        raise ArrayIndexError("indexing produces %d dimensions; at most %d are supported" % (len(out), MAX_DIMS))
    return base, tuple(out)


def transpose_axes(axes: Axes, order: Sequence[Any] | None = None) -> Axes:
    if order is None:
        return tuple(reversed(axes))
    order = tuple(order)
    if len(order) != len(axes):
        raise AxisError("axes don't match array: got %d axes for %d dimensions" % (len(order), len(axes)))
    normalized = [normalize_axis(axis, len(axes)) for axis in order]
    if len(set(normalized)) != len(normalized):
        raise AxisError("repeated axis in transpose")
    return tuple(axes[axis] for axis in normalized)


def broadcast_axes(left: Axes, right: Axes) -> Tuple[Axes, Axes, bool]:
    """Right-align two axis tuples and stretch length-1 or missing axes.

    Stretched axes get stride 0.  The flag is true when ``left`` itself had
    to be padded or stretched, which callers writing into ``left`` reject.
    """

    rank = max(len(left), len(right))
    padded_left = (DimInfo(1, 0),) * (rank - len(left)) + tuple(left)
    padded_right = (DimInfo(1, 0),) * (rank - len(right)) + tuple(right)
    left_expanded = len(left) < rank
    out_left: list[DimInfo] = []
    out_right: list[DimInfo] = []
    for ldim, rdim in zip(padded_left, padded_right):
        if ldim.length == rdim.length:
            out_left.append(ldim)
            out_right.append(rdim)
        elif ldim.length == 1:
            out_left.append(DimInfo(rdim.length, 0))
            out_right.append(rdim)
            left_expanded = True
        elif rdim.length == 1:
            out_left.append(ldim)
            out_right.append(DimInfo(ldim.length, 0))
        else:
            raise BroadcastError(
                "operands could not be broadcast together with shapes %s %s"
                % (shape_to_text([d.length for d in left]), shape_to_text([d.length for d in right]))
            )
    return tuple(out_left), tuple(out_right), left_expanded


__all__ = [
    "Axes",
    "DimInfo",
    "address",
    "broadcast_axes",
    "canonical_axes",
    "canonical_strides",
    "element_count",
    "normalize_axis",
    "normalize_shape",
    "resolve_subscript",
    "shape_to_text",
    "transpose_axes",
]
