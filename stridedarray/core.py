"""The strided ``ndarray`` and its constructors.

An array is a window onto a flat numpy buffer: an element kind, a base
offset and a tuple of :class:`~stridedarray.layout.DimInfo`.  Owning arrays
are created by :func:`allocate` with row-major strides and base offset 0;
views made by indexing, transposing, broadcasting or reshaping share the
buffer of their source and never copy.
"""

from __future__ import annotations

import logging
import math
import operator
from typing import Any, Iterator, List, Sequence, Tuple

import numpy as _np

from .config import MAX_DIMS
from .errors import BroadcastError, ShapeError
from .kinds import ElementKind, infer_kind, resolve_kind
from .layout import (
    Axes,
    DimInfo,
    address,
    broadcast_axes,
    canonical_axes,
    element_count,
    normalize_shape,
    resolve_subscript,
    shape_to_text,
    transpose_axes,
)
from .ufunc import apply_binary, apply_unary, find_binary_op_spec, find_copy_spec, find_unary_op_spec

LOGGER = logging.getLogger(__name__)


class ndarray:
    """N-dimensional strided array over a flat buffer."""

    __slots__ = ("kind", "axes", "base", "buffer", "owned")
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, shape: Any = (), dtype: Any = None):
        kind = resolve_kind(dtype)
        lengths = normalize_shape(shape)
        self.kind: ElementKind = kind
        self.axes: Axes = canonical_axes(lengths)
        self.base = 0
        self.buffer = _np.zeros(element_count(lengths), dtype=kind.dtype)
        self.owned = True

    @classmethod
    def _make(cls, kind: ElementKind, axes: Axes, base: int, buffer: _np.ndarray, owned: bool) -> "ndarray":
        array = object.__new__(cls)
        array.kind = kind
        array.axes = axes
        array.base = base
        array.buffer = buffer
        array.owned = owned
        return array

    # ------------------------------------------------------------------
    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(dim.length for dim in self.axes)

    @property
    def strides(self) -> Tuple[int, ...]:
        """Element (not byte) strides."""
        return tuple(dim.stride for dim in self.axes)

    @property
    def ndim(self) -> int:
        return len(self.axes)

    @property
    def size(self) -> int:
        return element_count(self.shape)

    @property
    def dtype(self) -> str:
        return self.kind.code

    @property
    def base_offset(self) -> int:
        return self.base

    @property
    def is_contiguous_owned(self) -> bool:
        return self.owned

    @property
    def T(self) -> "ndarray":
        return self.transpose()

    def address(self, index: Sequence[int]) -> int:
        return address(self.base, self.axes, tuple(index))

    def copy(self) -> "ndarray":
        return self.astype(self.kind)

    def astype(self, dtype: Any) -> "ndarray":
        result = allocate(resolve_kind(dtype), self.shape)
        _copy_into(result, self)
        return result

    def tolist(self) -> Any:
        def build(depth: int, offset: int) -> Any:
            if depth == len(self.axes):
                return self.kind.read(self.buffer, offset)
            dim = self.axes[depth]
            return [build(depth + 1, offset + i * dim.stride) for i in range(dim.length)]

        return build(0, self.base)

    def item(self) -> Any:
        if self.size != 1:
            raise ValueError("can only convert an array of size 1 to a Python scalar")
        return self.kind.read(self.buffer, self.base)

    def transpose(self, *axes: Any) -> "ndarray":
        if not axes:
            order = None
        elif len(axes) == 1 and (axes[0] is None or isinstance(axes[0], (list, tuple))):
            order = axes[0]
        else:
            order = axes
        return view_of(self, self.base, transpose_axes(self.axes, order))

    def reshape(self, *shape: Any) -> "ndarray":
        if len(shape) == 1 and isinstance(shape[0], (list, tuple)):
            shape = tuple(shape[0])
        lengths = _resolve_reshape(shape, self.size)
        source = self
        if not self.owned:
            LOGGER.debug("reshape of a %s view to %s copies first", shape_to_text(self.shape), shape_to_text(lengths))
            source = self.copy()
        return view_of(source, source.base, canonical_axes(lengths))

    def dot(self, other: Any) -> Any:
        from .dot import dot

        return dot(self, other)

    # reductions -------------------------------------------------------
    def sum(self, axis: Any = None, out: "ndarray | None" = None) -> Any:
        from . import reductions

        return reductions.sum(self, axis=axis, out=out)

    def prod(self, axis: Any = None, out: "ndarray | None" = None) -> Any:
        from . import reductions

        return reductions.prod(self, axis=axis, out=out)

    def max(self, axis: Any = None, out: "ndarray | None" = None) -> Any:
        from . import reductions

        return reductions.max(self, axis=axis, out=out)

    def min(self, axis: Any = None, out: "ndarray | None" = None) -> Any:
        from . import reductions

        return reductions.min(self, axis=axis, out=out)

    def mean(self, axis: Any = None, out: "ndarray | None" = None) -> Any:
        from . import reductions

        return reductions.average(self, axis=axis, out=out)

    def any(self, axis: Any = None, out: "ndarray | None" = None) -> Any:
        from . import reductions

        return reductions.any(self, axis=axis, out=out)

    def all(self, axis: Any = None, out: "ndarray | None" = None) -> Any:
        from . import reductions

        return reductions.all(self, axis=axis, out=out)

    # container protocol -----------------------------------------------
    def __len__(self) -> int:
        if not self.axes:
            raise TypeError("len() of unsized object")
        return self.axes[0].length

    def __iter__(self) -> Iterator[Any]:
        if not self.axes:
            raise TypeError("iteration over a 0-d array")
        for i in range(self.axes[0].length):
            yield self[i]

    def __bool__(self) -> bool:
        if self.size != 1:
            raise ValueError(
                "The truth value of an array with more than one element is ambiguous."
                if self.size
                else "The truth value of an empty array is ambiguous."
            )
        return bool(self.item())

    def __getitem__(self, key: Any) -> Any:
        base, axes = resolve_subscript(self.base, self.axes, key)
        if not axes:
            return self.kind.read(self.buffer, base)
        return view_of(self, base, axes)

    def __setitem__(self, key: Any, value: Any) -> None:
        base, axes = resolve_subscript(self.base, self.axes, key)
        _assign(view_of(self, base, axes), value)

    def __repr__(self) -> str:
        return "ndarray(%r, dtype=%r)" % (self.tolist(), self.dtype)

    # arithmetic ------------------------------------------------------
    def __pos__(self) -> Any:
        return _unary(self, "pos")

    def __neg__(self) -> Any:
        return _unary(self, "neg")

    def __abs__(self) -> Any:
        return _unary(self, "abs")

    def __invert__(self) -> Any:
        return _unary(self, "invert")

    def __add__(self, other):
        return _binary(self, other, "add")

    def __radd__(self, other):
        return _binary(self, other, "add", reflected=True)

    def __iadd__(self, other):
        return _inplace(self, other, "add")

    def __sub__(self, other):
        return _binary(self, other, "sub")

    def __rsub__(self, other):
        return _binary(self, other, "sub", reflected=True)

    def __isub__(self, other):
        return _inplace(self, other, "sub")

    def __mul__(self, other):
        return _binary(self, other, "mul")

    def __rmul__(self, other):
        return _binary(self, other, "mul", reflected=True)

    def __imul__(self, other):
        return _inplace(self, other, "mul")

    def __truediv__(self, other):
        return _binary(self, other, "truediv")

    def __rtruediv__(self, other):
        return _binary(self, other, "truediv", reflected=True)

    def __itruediv__(self, other):
        return _inplace(self, other, "truediv")

    def __floordiv__(self, other):
        return _binary(self, other, "floordiv")

    def __rfloordiv__(self, other):
        return _binary(self, other, "floordiv", reflected=True)

    def __ifloordiv__(self, other):
        return _inplace(self, other, "floordiv")

    def __mod__(self, other):
        return _binary(self, other, "mod")

    def __rmod__(self, other):
        return _binary(self, other, "mod", reflected=True)

    def __imod__(self, other):
        return _inplace(self, other, "mod")

    def __pow__(self, other):
        return _binary(self, other, "pow")

    def __rpow__(self, other):
        return _binary(self, other, "pow", reflected=True)

    def __ipow__(self, other):
        return _inplace(self, other, "pow")

    def __and__(self, other):
        return _binary(self, other, "and")

    def __rand__(self, other):
        return _binary(self, other, "and", reflected=True)

    def __iand__(self, other):
        return _inplace(self, other, "and")

    def __or__(self, other):
        return _binary(self, other, "or")

    def __ror__(self, other):
        return _binary(self, other, "or", reflected=True)

    def __ior__(self, other):
        return _inplace(self, other, "or")

    def __xor__(self, other):
        return _binary(self, other, "xor")

    def __rxor__(self, other):
        return _binary(self, other, "xor", reflected=True)

    def __ixor__(self, other):
        return _inplace(self, other, "xor")

    def __lshift__(self, other):
        return _binary(self, other, "lshift")

    def __rlshift__(self, other):
        return _binary(self, other, "lshift", reflected=True)

    def __ilshift__(self, other):
        return _inplace(self, other, "lshift")

    def __rshift__(self, other):
        return _binary(self, other, "rshift")

    def __rrshift__(self, other):
        return _binary(self, other, "rshift", reflected=True)

    def __irshift__(self, other):
        return _inplace(self, other, "rshift")

    def __matmul__(self, other):
        from .dot import dot

        return dot(self, other)

    def __rmatmul__(self, other):
        from .dot import dot

        return dot(other, self)

    # comparisons -----------------------------------------------------
    def __lt__(self, other):
        return _binary(self, other, "lt")

    def __le__(self, other):
        return _binary(self, other, "le")

    def __gt__(self, other):
        return _binary(self, other, "gt")

    def __ge__(self, other):
        return _binary(self, other, "ge")

    def __eq__(self, other):  # type: ignore[override]
        return _binary(self, other, "eq")

    def __ne__(self, other):  # type: ignore[override]
        return _binary(self, other, "ne")


# allocation and views -------------------------------------------------


def allocate(kind: Any, lengths: Sequence[int]) -> ndarray:
    """Zero-filled owning array with row-major strides."""
    return ndarray(tuple(lengths), kind)


def view_of(source: ndarray, base_offset: int, axes: Sequence[DimInfo]) -> ndarray:
    axes = tuple(axes)
    if len(axes) > MAX_DIMS:
        raise ShapeError("too many dimensions: %d > %d" % (len(axes), MAX_DIMS))
    return ndarray._make(source.kind, axes, base_offset, source.buffer, False)


def like_trimmed(kind: Any, other: ndarray, trim_axes: int) -> ndarray:
    return allocate(resolve_kind(kind), other.shape[: other.ndim - trim_axes])


def broadcast(left: ndarray, right: ndarray) -> Tuple[ndarray, ndarray, bool]:
    """Views of both operands over a common shape plus the left-expanded flag."""
    left_axes, right_axes, left_expanded = broadcast_axes(left.axes, right.axes)
    return view_of(left, left.base, left_axes), view_of(right, right.base, right_axes), left_expanded


def collapse(array: ndarray) -> Any:
    """Rank-0 arrays become host scalars; anything else is returned as is."""
    if not array.axes:
        return array.kind.read(array.buffer, array.base)
    return array


def _resolve_reshape(shape: Sequence[Any], size: int) -> Tuple[int, ...]:
    lengths = [operator.index(dim) for dim in shape]
    if len(lengths) > MAX_DIMS:
        raise ShapeError("too many dimensions: %d > %d" % (len(lengths), MAX_DIMS))
    unknown = [i for i, dim in enumerate(lengths) if dim == -1]
    if len(unknown) > 1:
        raise ShapeError("can only specify one unknown dimension")
    if any(dim < -1 for dim in lengths):
        raise ShapeError("negative dimensions are not allowed: %s" % (shape_to_text(lengths),))
    if unknown:
        known = element_count(dim for dim in lengths if dim != -1)
        if known == 0 or size % known:
            raise ShapeError("cannot reshape array of size %d into shape %s" % (size, shape_to_text(lengths)))
        lengths[unknown[0]] = size // known
    if element_count(lengths) != size:
        raise ShapeError("cannot reshape array of size %d into shape %s" % (size, shape_to_text(lengths)))
    return tuple(lengths)


def _copy_into(dest: ndarray, src: ndarray) -> None:
    _, spec = find_copy_spec(src, dest)
    if not apply_unary(dest, src, spec):
        raise TypeError("cannot convert values of dtype %r to dtype %r" % (src.dtype, dest.dtype))


def _assign(target: ndarray, value: Any) -> None:
    source = value if isinstance(value, ndarray) else asarray(value, dtype=target.kind)
    if source.buffer is target.buffer:
        source = source.copy()
    dest, src, expanded = broadcast(target, source)
    if expanded:
        raise BroadcastError(
            "could not broadcast input array from shape %s into shape %s"
            % (shape_to_text(source.shape), shape_to_text(target.shape))
        )
    _copy_into(dest, src)


# operators ---------------------------------------------------------


def _operand(value: Any) -> ndarray:
    if isinstance(value, ndarray):
        return value
    return asarray(value, dtype="infer")


def _unary(array: ndarray, name: str) -> Any:
    kind, spec = find_unary_op_spec(array, name)
    dest = allocate(kind, array.shape)
    if not apply_unary(dest, array, spec):
        raise TypeError("bad operand type for unary %s: ndarray of dtype %r" % (name, array.dtype))
    return collapse(dest)


def _binary(array: ndarray, other: Any, name: str, reflected: bool = False) -> Any:
    try:
        other = _operand(other)
    except TypeError:
        return NotImplemented
    left, right = (other, array) if reflected else (array, other)
    left_view, right_view, _ = broadcast(left, right)
    kind, spec = find_binary_op_spec(left_view, right_view, name)
    dest = allocate(kind, left_view.shape)
    if not apply_binary(dest, left_view, right_view, spec):
        return NotImplemented
    return collapse(dest)


def _inplace(array: ndarray, other: Any, name: str) -> Any:
    try:
        other = _operand(other)
    except TypeError:
        return NotImplemented
    if other.buffer is array.buffer:
        other = other.copy()
    dest, right_view, expanded = broadcast(array, other)
    if expanded:
        raise BroadcastError(
            "non-broadcastable output operand with shape %s doesn't match the broadcast shape %s"
            % (shape_to_text(array.shape), shape_to_text(dest.shape))
        )
    _, spec = find_binary_op_spec(dest, right_view, name, dest_kind=array.kind)
    if not apply_binary(dest, dest, right_view, spec):
        return NotImplemented
    return array


# construction --------------------------------------------------------


def _nested(value: Any) -> Any:
    """Turn array-like input into nested lists; scalars come back unchanged."""
    if isinstance(value, ndarray):
        return value.tolist()
    if isinstance(value, (list, tuple)):
        return [_nested(item) for item in value]
    if isinstance(value, (str, bytes, dict)):
        return value
    tolist = getattr(value, "tolist", None)
    if callable(tolist):
        return _nested(tolist())
    if hasattr(value, "__len__") and hasattr(value, "__iter__"):
        expected = len(value)
        items = list(value)
        if len(items) != expected:
            raise ShapeError("iterable produced %d items but reported length %d" % (len(items), expected))
        return items
    return value


def _flatten(nested: Any) -> Tuple[Tuple[int, ...], List[Any]]:
    lengths: List[int] = []
    probe = nested
    while isinstance(probe, list):
        lengths.append(len(probe))
        if not probe:
            break
        probe = probe[0]
    if len(lengths) > MAX_DIMS:
        raise ShapeError("too many dimensions: %d > %d" % (len(lengths), MAX_DIMS))

    leaves: List[Any] = []

    def collect(item: Any, depth: int) -> None:
        if depth == len(lengths):
            if isinstance(item, list):
                raise ShapeError("inhomogeneous shape after %d dimensions" % depth)
            leaves.append(item)
            return
        if not isinstance(item, list) or len(item) != lengths[depth]:
            raise ShapeError("inhomogeneous shape after %d dimensions" % depth)
        for sub in item:
            collect(sub, depth + 1)

    collect(nested, 0)
    return tuple(lengths), leaves


def _is_infer(dtype: Any) -> bool:
    return isinstance(dtype, str) and dtype == "infer"


def array(value: Any, dtype: Any = None) -> ndarray:
    """Build a new owning array.

    ``value`` may be another array (copied, cast when ``dtype`` differs),
    nested lists or tuples, anything with ``tolist()``, a sized iterable or a
    scalar.  Host data defaults to float64; ``dtype="infer"`` picks the kind
    from the values instead.
    """

    if isinstance(value, ndarray):
        if dtype is None or _is_infer(dtype):
            return value.copy()
        return value.astype(dtype)
    lengths, leaves = _flatten(_nested(value))
    declared = getattr(value, "shape", None)
    if declared is not None and callable(getattr(value, "tolist", None)):
        # nested lists lose the axes after a zero-length one
        declared = normalize_shape(tuple(declared))
        if element_count(declared) != len(leaves):
            raise ShapeError(
                "object reports shape %s but holds %d elements" % (shape_to_text(declared), len(leaves))
            )
        lengths = declared
    kind = infer_kind(leaves) if _is_infer(dtype) else resolve_kind(dtype)
    result = allocate(kind, lengths)
    for offset, leaf in enumerate(leaves):
        kind.write(result.buffer, offset, leaf)
    return result


def asarray(value: Any, dtype: Any = None) -> ndarray:
    if isinstance(value, ndarray):
        if dtype is None or _is_infer(dtype) or resolve_kind(dtype) == value.kind:
            return value
    return array(value, dtype)


def zeros(shape: Any, dtype: Any = None) -> ndarray:
    return ndarray(shape, dtype)


def ones(shape: Any, dtype: Any = None) -> ndarray:
    result = ndarray(shape, dtype)
    result.buffer[:] = result.kind.one
    return result


def full(shape: Any, fill_value: Any, dtype: Any = None) -> ndarray:
    kind = infer_kind([fill_value]) if dtype is None else resolve_kind(dtype)
    result = ndarray(shape, kind)
    for offset in range(result.buffer.shape[0]):
        kind.write(result.buffer, offset, fill_value)
    return result


def eye(n: int, m: int | None = None, dtype: Any = None) -> ndarray:
    m = n if m is None else m
    result = ndarray((n, m), dtype)
    for i in range(min(n, m)):
        result.buffer[i * m + i] = result.kind.one
    return result


def arange(start: Any, stop: Any = None, step: Any = 1, dtype: Any = None) -> ndarray:
    if stop is None:
        start, stop = 0, start
    if step == 0:
        raise ValueError("arange step must not be zero")
    kind = infer_kind((start, stop, step)) if dtype is None else resolve_kind(dtype)
    count = max(0, math.ceil((stop - start) / step))
    result = ndarray((count,), kind)
    for i in range(count):
        kind.write(result.buffer, i, start + i * step)
    return result


def shape(value: Any) -> Tuple[int, ...]:
    return asarray(value).shape


def transpose(value: Any, axes: Sequence[int] | None = None) -> ndarray:
    return asarray(value, dtype="infer").transpose(axes)


def reshape(value: Any, new_shape: Any) -> ndarray:
    if not isinstance(new_shape, (list, tuple)):
        new_shape = (new_shape,)
    return asarray(value, dtype="infer").reshape(tuple(new_shape))


__all__ = [
    "allocate",
    "arange",
    "array",
    "asarray",
    "broadcast",
    "collapse",
    "eye",
    "full",
    "like_trimmed",
    "ndarray",
    "ones",
    "reshape",
    "shape",
    "transpose",
    "view_of",
    "zeros",
]
