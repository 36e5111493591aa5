"""Dispatch engine: operation specs, inner functions and their drivers.

A :class:`UniversalSpec` splits an operation into an outer walk, driven by
:class:`~stridedarray.iteration.Odometer` over the leading axes, and an inner
function that handles the last ``trailing_layers`` axes in one call.  The
``find_*_spec`` functions pick the inner function for a given set of operand
kinds: a vectorised lane kernel when every operand holds native floats, or a
per-element fallback that goes through host values otherwise.

Inner functions share one signature::

    inner(depth, dest, dest_offset, src1, src1_offset, [src2, src2_offset,] spec) -> bool

``depth`` is the index of the first axis the inner function owns.  A
``False`` return marks a failed element; the drivers keep iterating and
combine the flags, so earlier writes are never rolled back.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import numpy as _np

from . import config
from .errors import DomainError, ShapeError
from .iteration import Odometer
from .kinds import BOOL, DEFAULT_FLOAT, FLOAT64, ElementKind, promote
from .layout import DimInfo

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class UniversalSpec:
    trailing_layers: int
    inner: Callable[..., bool]
    context: Any = None


@dataclass(frozen=True)
class BinaryOp:
    name: str
    host: Callable[[Any, Any], Any]
    lane: Optional[Callable[..., Any]] = None
    comparison: bool = False
    checks_zero: bool = False


@dataclass(frozen=True)
class UnaryOp:
    name: str
    host: Callable[[Any], Any]
    lane: Optional[Callable[..., Any]] = None


@dataclass(frozen=True)
class FloatFunction:
    name: str
    host: Callable[[float], float]
    lane: Callable[..., Any]


BINARY_OPS = {
    op.name: op
    for op in (
        BinaryOp("add", operator.add, _np.add),
        BinaryOp("sub", operator.sub, _np.subtract),
        BinaryOp("mul", operator.mul, _np.multiply),
        BinaryOp("truediv", operator.truediv, _np.true_divide, checks_zero=True),
        BinaryOp("floordiv", operator.floordiv, _np.floor_divide, checks_zero=True),
        BinaryOp("mod", operator.mod, _np.mod, checks_zero=True),
        BinaryOp("pow", operator.pow, _np.power),
        BinaryOp("and", operator.and_),
        BinaryOp("or", operator.or_),
        BinaryOp("xor", operator.xor),
        BinaryOp("lshift", operator.lshift),
        BinaryOp("rshift", operator.rshift),
        BinaryOp("lt", operator.lt, _np.less, comparison=True),
        BinaryOp("le", operator.le, _np.less_equal, comparison=True),
        BinaryOp("gt", operator.gt, _np.greater, comparison=True),
        BinaryOp("ge", operator.ge, _np.greater_equal, comparison=True),
        BinaryOp("eq", operator.eq, _np.equal, comparison=True),
        BinaryOp("ne", operator.ne, _np.not_equal, comparison=True),
    )
}

UNARY_OPS = {
    op.name: op
    for op in (
        UnaryOp("pos", operator.pos, _np.positive),
        UnaryOp("neg", operator.neg, _np.negative),
        UnaryOp("abs", operator.abs, _np.abs),
        UnaryOp("invert", operator.invert),
    )
}

_ZERO_DIVISION_TEXT = {
    "truediv": "float division by zero",
    "floordiv": "float floor division by zero",
    "mod": "float modulo by zero",
}


# drivers ------------------------------------------------------------


def _outer(array, depth: int) -> Tuple[int, Tuple[int, ...]]:
    return array.base, tuple(dim.stride for dim in array.axes[:depth])


def apply_unary(dest, src, spec: UniversalSpec) -> bool:
    """Run ``spec`` over ``src`` writing into ``dest``.

    The walk covers the leading ``src.ndim - trailing_layers`` axes, which
    ``dest`` must share.  For reductions ``dest`` has exactly those axes.
    """

    depth = len(src.axes) - spec.trailing_layers
    lengths = [dim.length for dim in src.axes[:depth]]
    result = True
    for dest_offset, src_offset in Odometer(lengths, [_outer(dest, depth), _outer(src, depth)]):
        result &= spec.inner(depth, dest, dest_offset, src, src_offset, spec)
    return result


def apply_binary(dest, src1, src2, spec: UniversalSpec) -> bool:
    depth = len(dest.axes) - spec.trailing_layers
    lengths = [dim.length for dim in dest.axes[:depth]]
    operands = [_outer(dest, depth), _outer(src1, depth), _outer(src2, depth)]
    result = True
    for dest_offset, offset1, offset2 in Odometer(lengths, operands):
        result &= spec.inner(depth, dest, dest_offset, src1, offset1, src2, offset2, spec)
    return result


# lanes --------------------------------------------------------------


def lane_index(offset: int, length: int, stride: int) -> Any:
    """Index selecting ``length`` elements from ``offset`` in steps of ``stride``."""
    if stride > 0:
        return slice(offset, offset + stride * (length - 1) + 1, stride)
    return offset + stride * _np.arange(length)


def block_offsets(axes) -> _np.ndarray:
    """Relative flat offsets of every element of ``axes`` in row-major order."""
    offsets = _np.zeros(1, dtype=_np.intp)
    for dim in axes:
        offsets = (offsets[:, None] + dim.stride * _np.arange(dim.length, dtype=_np.intp)).reshape(-1)
    return offsets


def _read_lane(array, depth: int, offset: int) -> _np.ndarray:
    dim = array.axes[depth]
    return array.buffer[lane_index(offset, dim.length, dim.stride)]


def _write_lane(array, depth: int, offset: int, values: Any) -> None:
    dim = array.axes[depth]
    array.buffer[lane_index(offset, dim.length, dim.stride)] = values


def _use_float_lanes(*kinds: ElementKind) -> bool:
    return config.CAPABILITIES.speedup_float and all(kind == FLOAT64 for kind in kinds)


# binary operators ----------------------------------------------------


def _float_binary_inner(depth, dest, dest_offset, src1, offset1, src2, offset2, spec) -> bool:
    op = spec.context
    left = _read_lane(src1, depth, offset1)
    right = _read_lane(src2, depth, offset2)
    if op.checks_zero and not right.all():
        raise ZeroDivisionError(_ZERO_DIVISION_TEXT[op.name])
    with _np.errstate(all="ignore"):
        _write_lane(dest, depth, dest_offset, op.lane(left, right))
    return True


def _generic_binary_inner(depth, dest, dest_offset, src1, offset1, src2, offset2, spec) -> bool:
    host = spec.context
    left = src1.kind.read(src1.buffer, offset1)
    right = src2.kind.read(src2.buffer, offset2)
    try:
        dest.kind.write(dest.buffer, dest_offset, host(left, right))
    except TypeError:
        return False
    return True


def binary_result_kind(op: BinaryOp, left: ElementKind, right: ElementKind) -> ElementKind:
    if op.comparison:
        return BOOL
    promoted = promote(left, right)
    if op.name == "truediv" and not promoted.is_generic and not promoted.is_float:
        return DEFAULT_FLOAT
    return promoted


def find_binary_func_spec(
    src1,
    src2,
    dest_kind: ElementKind,
    host: Callable[[Any, Any], Any],
    lane_inner: Callable[..., bool] | None = None,
    lane_context: Any = None,
    lane_dest_kind: ElementKind = FLOAT64,
) -> UniversalSpec:
    """Spec for an elementwise function of two operands.

    ``lane_inner`` is used when both sources hold native floats, the
    destination has ``lane_dest_kind`` and there is an axis to vectorise.
    """

    if (
        lane_inner is not None
        and len(src1.axes) > 0
        and dest_kind == lane_dest_kind
        and _use_float_lanes(src1.kind, src2.kind)
    ):
        return UniversalSpec(1, lane_inner, lane_context)
    return UniversalSpec(0, _generic_binary_inner, host)


def find_binary_op_spec(src1, src2, op: BinaryOp | str, dest_kind: ElementKind | None = None):
    """Return ``(dest_kind, spec)`` for operator ``op`` on broadcast sources."""
    if isinstance(op, str):
        op = BINARY_OPS[op]
    natural = binary_result_kind(op, src1.kind, src2.kind)
    dest_kind = natural if dest_kind is None else dest_kind
    spec = find_binary_func_spec(
        src1,
        src2,
        dest_kind,
        op.host,
        _float_binary_inner if op.lane is not None else None,
        op,
        BOOL if op.comparison else FLOAT64,
    )
    LOGGER.debug("binary %s %s,%s -> %s uses %s", op.name, src1.kind, src2.kind, dest_kind, spec.inner.__name__)
    return dest_kind, spec


# unary operators -----------------------------------------------------


def _float_unary_inner(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    op = spec.context
    _write_lane(dest, depth, dest_offset, op.lane(_read_lane(src, depth, src_offset)))
    return True


def _generic_unary_inner(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    host = spec.context
    try:
        dest.kind.write(dest.buffer, dest_offset, host(src.kind.read(src.buffer, src_offset)))
    except TypeError:
        return False
    return True


def find_unary_op_spec(src, op: UnaryOp | str, dest_kind: ElementKind | None = None):
    if isinstance(op, str):
        op = UNARY_OPS[op]
    dest_kind = src.kind if dest_kind is None else dest_kind
    host = op.host
    if op.name == "invert" and src.kind.is_bool:
        host = operator.not_
    if op.lane is not None and len(src.axes) > 0 and _use_float_lanes(src.kind, dest_kind):
        spec = UniversalSpec(1, _float_unary_inner, op)
    else:
        spec = UniversalSpec(0, _generic_unary_inner, host)
    LOGGER.debug("unary %s %s -> %s uses %s", op.name, src.kind, dest_kind, spec.inner.__name__)
    return dest_kind, spec


# copies -------------------------------------------------------------


def _bulk_copy_inner(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    chunk = spec.context
    dest.buffer[dest_offset : dest_offset + chunk] = src.buffer[src_offset : src_offset + chunk]
    return True


def _cast_copy_inner(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    try:
        dest.kind.write(dest.buffer, dest_offset, src.kind.read(src.buffer, src_offset))
    except TypeError:
        return False
    return True


def find_copy_spec(src, dest=None):
    """Return ``(kind, spec)`` copying ``src`` into ``dest`` (or a new array).

    Same-kind copies move the longest trailing run of axes that are packed in
    both operands with one slice assignment per run.  Without ``dest`` the
    target is assumed to have canonical strides.
    """

    kind = src.kind if dest is None else dest.kind
    if kind != src.kind:
        return kind, UniversalSpec(0, _cast_copy_inner)
    chunk = 1
    axis = len(src.axes) - 1
    while (
        axis >= 0
        and src.axes[axis].stride == chunk
        and (dest is None or dest.axes[axis].stride == chunk)
    ):
        chunk *= src.axes[axis].length
        axis -= 1
    trailing = len(src.axes) - 1 - axis
    return kind, UniversalSpec(trailing, _bulk_copy_inner, chunk)


# float functions ---------------------------------------------------


def _domain_error(name: str) -> DomainError:
    return DomainError("math domain error in %s" % name)


def _float_func_inner(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    func = spec.context
    values = _read_lane(src, depth, src_offset)
    with _np.errstate(all="ignore"):
        result = func.lane(values)
    bad = (_np.isnan(result) & ~_np.isnan(values)) | (_np.isinf(result) & _np.isfinite(values))
    if bad.any():
        raise _domain_error(func.name)
    _write_lane(dest, depth, dest_offset, result)
    return True


def _generic_float_func_inner(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    func = spec.context
    value = src.kind.read(src.buffer, src_offset)
    try:
        result = func.host(value)
    except (ValueError, OverflowError):
        raise _domain_error(func.name) from None
    except TypeError:
        return False
    try:
        dest.kind.write(dest.buffer, dest_offset, result)
    except TypeError:
        return False
    return True


def find_unary_float_func_spec(src, func: FloatFunction, dest_kind: ElementKind | None = None):
    dest_kind = DEFAULT_FLOAT if dest_kind is None else dest_kind
    if len(src.axes) > 0 and _use_float_lanes(src.kind, dest_kind):
        spec = UniversalSpec(1, _float_func_inner, func)
    else:
        spec = UniversalSpec(0, _generic_float_func_inner, func)
    LOGGER.debug("function %s %s -> %s uses %s", func.name, src.kind, dest_kind, spec.inner.__name__)
    return dest_kind, spec


# multiply-accumulate -----------------------------------------------


def multiply_accumulate(
    dest, dest_offset: int, src1, offset1: int, dim1: DimInfo, src2, offset2: int, dim2: DimInfo
) -> bool:
    """Store the sum of products of two strided lanes at ``dest_offset``."""
    if dim1.length != dim2.length:
        raise ShapeError("multiply-accumulate lanes differ in length: %d != %d" % (dim1.length, dim2.length))
    length = dim1.length
    if _use_float_lanes(src1.kind, src2.kind, dest.kind):
        left = src1.buffer[lane_index(offset1, length, dim1.stride)]
        right = src2.buffer[lane_index(offset2, length, dim2.stride)]
        with _np.errstate(all="ignore"):
            dest.buffer[dest_offset] = _np.dot(left, right)
        return True
    total = dest.kind.zero
    try:
        for k in range(length):
            left = src1.kind.read(src1.buffer, offset1 + k * dim1.stride)
            right = src2.kind.read(src2.buffer, offset2 + k * dim2.stride)
            total = total + left * right
        dest.kind.write(dest.buffer, dest_offset, total)
    except TypeError:
        return False
    return True


__all__ = [
    "BINARY_OPS",
    "BinaryOp",
    "FloatFunction",
    "UNARY_OPS",
    "UnaryOp",
    "UniversalSpec",
    "apply_binary",
    "apply_unary",
    "binary_result_kind",
    "block_offsets",
    "find_binary_func_spec",
    "find_binary_op_spec",
    "find_copy_spec",
    "find_unary_float_func_spec",
    "find_unary_op_spec",
    "lane_index",
    "multiply_accumulate",
]
