"""Axis reductions: max, min, sum, prod, average, any and all.

Reduced axes are moved to the end of a view of the source, so each output
element owns one trailing block.  A :class:`Reduction` describes what to do
with a block: an initial state, a step per element and a finishing step
that sees the element count.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import numpy as _np

from . import config
from .core import asarray, collapse, like_trimmed, ndarray, view_of
from .errors import AxisError, ShapeError
from .iteration import Odometer
from .kinds import BOOL, DEFAULT_FLOAT, DEFAULT_INT, FLOAT64, GENERIC, ElementKind
from .layout import normalize_axis, shape_to_text
from .ufunc import UniversalSpec, apply_unary, block_offsets

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reduction:
    name: str
    init: Callable[[ElementKind], Any]
    step: Callable[[Any, Any, bool], Any]
    finish: Callable[[Any, int], Any]
    lane: Optional[Callable[[_np.ndarray], Any]] = None
    needs_items: bool = False


def _first_or(better: Callable[[Any, Any], bool]) -> Callable[[Any, Any, bool], Any]:
    def step(state: Any, value: Any, first: bool) -> Any:
        if first or better(value, state):
            return value
        return state

    return step


def _keep(state: Any, count: int) -> Any:
    return state


def _mean(state: Any, count: int) -> Any:
    return state / count


REDUCTIONS = {
    reduction.name: reduction
    for reduction in (
        Reduction("max", lambda kind: None, _first_or(lambda v, s: v > s), _keep, _np.max, needs_items=True),
        Reduction("min", lambda kind: None, _first_or(lambda v, s: v < s), _keep, _np.min, needs_items=True),
        Reduction("sum", lambda kind: kind.zero, lambda s, v, first: s + v, _keep, _np.sum),
        Reduction("prod", lambda kind: kind.one, lambda s, v, first: s * v, _keep, _np.prod),
        Reduction("average", lambda kind: kind.zero, lambda s, v, first: s + v, _mean, _np.mean, needs_items=True),
        Reduction("any", lambda kind: False, lambda s, v, first: s or bool(v), _keep, _np.any),
        Reduction("all", lambda kind: True, lambda s, v, first: s and bool(v), _keep, _np.all),
    )
}


def result_kind(reduction: Reduction, source: ElementKind) -> ElementKind:
    if reduction.name in {"any", "all"}:
        return BOOL
    if reduction.name == "average":
        return GENERIC if source.is_generic else DEFAULT_FLOAT
    if source.is_bool and reduction.name in {"sum", "prod"}:
        return DEFAULT_INT
    return source


def _empty_error(reduction: Reduction) -> ShapeError:
    return ShapeError("zero-size array to reduction operation %s which has no identity" % reduction.name)


def _lane_reduce_inner(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    reduction, offsets = spec.context
    values = src.buffer[src_offset + offsets]
    if values.size == 0 and reduction.needs_items:
        raise _empty_error(reduction)
    with _np.errstate(all="ignore"):
        dest.buffer[dest_offset] = reduction.lane(values)
    return True


def _generic_reduce_inner(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    reduction = spec.context
    block = src.axes[depth:]
    state = reduction.init(_accumulator_kind(src.kind))
    count = 0
    walk = Odometer([dim.length for dim in block], [(src_offset, [dim.stride for dim in block])])
    try:
        for (offset,) in walk:
            state = reduction.step(state, src.kind.read(src.buffer, offset), count == 0)
            count += 1
    except TypeError:
        return False
    if count == 0 and reduction.needs_items:
        raise _empty_error(reduction)
    try:
        dest.kind.write(dest.buffer, dest_offset, reduction.finish(state, count))
    except TypeError:
        return False
    return True


def _accumulator_kind(source: ElementKind) -> ElementKind:
    return DEFAULT_INT if source.is_bool else source


def find_reduction_spec(src: ndarray, reduction: Reduction, trailing: int, dest_kind: ElementKind) -> UniversalSpec:
    if (
        config.CAPABILITIES.speedup_float
        and src.kind == FLOAT64
        and dest_kind == result_kind(reduction, FLOAT64)
    ):
        spec = UniversalSpec(trailing, _lane_reduce_inner, (reduction, block_offsets(src.axes[src.ndim - trailing :])))
    else:
        spec = UniversalSpec(trailing, _generic_reduce_inner, reduction)
    LOGGER.debug("reduction %s %s -> %s uses %s", reduction.name, src.kind, dest_kind, spec.inner.__name__)
    return spec


def _normalize_axes(axis: Any, ndim: int) -> Tuple[int, ...]:
    if axis is None:
        return tuple(range(ndim))
    items = axis if isinstance(axis, tuple) else (axis,)
    if not items:
        raise ValueError("axis tuple must not be empty")
    normalized = tuple(normalize_axis(item, ndim) for item in items)
    if len(set(normalized)) != len(normalized):
        raise AxisError("duplicate value in 'axis'")
    return normalized


def reduce(a: Any, reduction: Reduction | str, axis: Any = None, out: ndarray | None = None, keepdims: bool = False) -> Any:
    """Apply ``reduction`` over ``axis`` of ``a``.

    ``axis`` is None (every axis), an int or a tuple of ints.  Rank-0
    results come back as host scalars unless ``out`` was given, in which
    case ``out`` is filled and returned.
    """

    if isinstance(reduction, str):
        reduction = REDUCTIONS[reduction]
    if keepdims:
        raise NotImplementedError("keepdims is not implemented")
    src = asarray(a, dtype="infer")
    reduced = _normalize_axes(axis, src.ndim)
    kept = [i for i in range(src.ndim) if i not in reduced]
    order = kept + list(reduced)
    if order != list(range(src.ndim)):
        LOGGER.debug("reduction %s permutes axes to %s", reduction.name, order)
        src = view_of(src, src.base, tuple(src.axes[i] for i in order))
    out_shape = tuple(src.shape[: len(kept)])

    if out is None:
        dest = like_trimmed(result_kind(reduction, src.kind), src, len(reduced))
    else:
        if not isinstance(out, ndarray):
            raise TypeError("out must be an ndarray, got %s" % type(out).__name__)
        if out.shape != out_shape:
            raise ShapeError(
                "output array has shape %s but the reduction produces %s"
                % (shape_to_text(out.shape), shape_to_text(out_shape))
            )
        dest = out

    spec = find_reduction_spec(src, reduction, len(reduced), dest.kind)
    if not apply_unary(dest, src, spec):
        raise TypeError("%s is not supported for dtype %r" % (reduction.name, src.dtype))
    if out is not None:
        return out
    return collapse(dest)


def max(a: Any, axis: Any = None, out: ndarray | None = None, keepdims: bool = False) -> Any:
    return reduce(a, "max", axis=axis, out=out, keepdims=keepdims)


def min(a: Any, axis: Any = None, out: ndarray | None = None, keepdims: bool = False) -> Any:
    return reduce(a, "min", axis=axis, out=out, keepdims=keepdims)


def sum(a: Any, axis: Any = None, out: ndarray | None = None, keepdims: bool = False) -> Any:
    return reduce(a, "sum", axis=axis, out=out, keepdims=keepdims)


def prod(a: Any, axis: Any = None, out: ndarray | None = None, keepdims: bool = False) -> Any:
    return reduce(a, "prod", axis=axis, out=out, keepdims=keepdims)


def average(a: Any, axis: Any = None, out: ndarray | None = None, keepdims: bool = False) -> Any:
    return reduce(a, "average", axis=axis, out=out, keepdims=keepdims)


mean = average


def any(a: Any, axis: Any = None, out: ndarray | None = None, keepdims: bool = False) -> Any:
    return reduce(a, "any", axis=axis, out=out, keepdims=keepdims)


def all(a: Any, axis: Any = None, out: ndarray | None = None, keepdims: bool = False) -> Any:
    return reduce(a, "all", axis=axis, out=out, keepdims=keepdims)


def argmax(a: Any, axis: Any = None, out: ndarray | None = None) -> Any:
    raise NotImplementedError("argmax is not implemented")


def argmin(a: Any, axis: Any = None, out: ndarray | None = None) -> Any:
    raise NotImplementedError("argmin is not implemented")


def std(a: Any, axis: Any = None, out: ndarray | None = None, keepdims: bool = False) -> Any:
    raise NotImplementedError("std is not implemented")


__all__ = [
    "REDUCTIONS",
    "Reduction",
    "all",
    "any",
    "argmax",
    "argmin",
    "average",
    "find_reduction_spec",
    "max",
    "mean",
    "min",
    "prod",
    "reduce",
    "result_kind",
    "std",
    "sum",
]
