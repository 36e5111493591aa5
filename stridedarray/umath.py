"""Elementwise float functions and ``isclose``."""

from __future__ import annotations

import math
from typing import Any, Callable

import numpy as _np

from .core import allocate, asarray, broadcast, collapse, ndarray
from .errors import BroadcastError
from .kinds import BOOL, resolve_kind
from .layout import shape_to_text
from .ufunc import (
    FloatFunction,
    UniversalSpec,
    apply_binary,
    apply_unary,
    find_binary_func_spec,
    find_unary_float_func_spec,
    lane_index,
)

FUNCTIONS = {
    func.name: func
    for func in (
        FloatFunction("sin", math.sin, _np.sin),
        FloatFunction("cos", math.cos, _np.cos),
        FloatFunction("tan", math.tan, _np.tan),
        FloatFunction("asin", math.asin, _np.arcsin),
        FloatFunction("acos", math.acos, _np.arccos),
        FloatFunction("atan", math.atan, _np.arctan),
        FloatFunction("exp", math.exp, _np.exp),
        FloatFunction("log", math.log, _np.log),
        FloatFunction("sqrt", math.sqrt, _np.sqrt),
        FloatFunction("sinh", math.sinh, _np.sinh),
        FloatFunction("cosh", math.cosh, _np.cosh),
        FloatFunction("tanh", math.tanh, _np.tanh),
        FloatFunction("asinh", math.asinh, _np.arcsinh),
        FloatFunction("acosh", math.acosh, _np.arccosh),
        FloatFunction("atanh", math.atanh, _np.arctanh),
    )
}

HYPERBOLIC = ("sinh", "cosh", "tanh", "asinh", "acosh", "atanh")


def apply_function(func: FloatFunction, x: Any, out: ndarray | None = None, dtype: Any = None) -> Any:
    """Evaluate ``func`` on every element of ``x``.

    With ``out`` the result is broadcast into it and ``out`` is returned;
    otherwise a new array of ``dtype`` (float64 by default) is returned, or a
    host scalar for rank-0 input.
    """

    if out is not None and dtype is not None:
        raise ValueError("cannot specify both out and dtype")
    src = asarray(x)
    if out is not None:
        if not isinstance(out, ndarray):
            raise TypeError("out must be an ndarray, got %s" % type(out).__name__)
        dest, src, expanded = broadcast(out, src)
        if expanded:
            raise BroadcastError(
                "non-broadcastable output operand with shape %s doesn't match the broadcast shape %s"
                % (shape_to_text(out.shape), shape_to_text(dest.shape))
            )
    else:
        dest = allocate(resolve_kind(dtype), src.shape)
    _, spec = find_unary_float_func_spec(src, func, dest.kind)
    if not apply_unary(dest, src, spec):
        raise TypeError("%s is not supported for dtype %r" % (func.name, src.dtype))
    if out is not None:
        return out
    return collapse(dest)


def _make(name: str) -> Callable[..., Any]:
    func = FUNCTIONS[name]

    def evaluate(x: Any, out: ndarray | None = None, dtype: Any = None) -> Any:
        return apply_function(func, x, out=out, dtype=dtype)

    evaluate.__name__ = evaluate.__qualname__ = name
    evaluate.__doc__ = "Elementwise %s." % name
    return evaluate


sin = _make("sin")
cos = _make("cos")
tan = _make("tan")
asin = _make("asin")
acos = _make("acos")
atan = _make("atan")
exp = _make("exp")
log = _make("log")
sqrt = _make("sqrt")
sinh = _make("sinh")
cosh = _make("cosh")
tanh = _make("tanh")
asinh = _make("asinh")
acosh = _make("acosh")
atanh = _make("atanh")


# isclose -------------------------------------------------------------


def _isclose_scalar(x: Any, y: Any, rtol: float, atol: float, equal_nan: bool) -> bool:
    x = float(x)
    y = float(y)
    if math.isnan(x) or math.isnan(y):
        return equal_nan and math.isnan(x) and math.isnan(y)
    if x == y:
        return True
    if math.isinf(x) or math.isinf(y):
        return False
    return abs(x - y) <= atol + rtol * abs(y)


def _isclose_lane_inner(depth, dest, dest_offset, src1, offset1, src2, offset2, spec) -> bool:
    rtol, atol, equal_nan = spec.context
    dim1, dim2, dim_out = src1.axes[depth], src2.axes[depth], dest.axes[depth]
    x = src1.buffer[lane_index(offset1, dim1.length, dim1.stride)]
    y = src2.buffer[lane_index(offset2, dim2.length, dim2.stride)]
    with _np.errstate(invalid="ignore", over="ignore"):
        finite = _np.isfinite(x) & _np.isfinite(y)
        close = (x == y) | (finite & (_np.abs(x - y) <= atol + rtol * _np.abs(y)))
        if equal_nan:
            close |= _np.isnan(x) & _np.isnan(y)
    dest.buffer[lane_index(dest_offset, dim_out.length, dim_out.stride)] = close
    return True


def isclose(a: Any, b: Any, rtol: float = 1e-5, atol: float = 1e-8, equal_nan: bool = False) -> Any:
    """Elementwise ``|a - b| <= atol + rtol * |b|`` with NaN handling.

    Two NaNs compare equal only with ``equal_nan``; infinities are close only
    to themselves.  Returns a bool array, or a bool for rank-0 operands.
    """

    left, right, _ = broadcast(asarray(a, dtype="infer"), asarray(b, dtype="infer"))
    dest = allocate(BOOL, left.shape)

    def host(x: Any, y: Any) -> bool:
        return _isclose_scalar(x, y, rtol, atol, equal_nan)

    spec: UniversalSpec = find_binary_func_spec(
        left,
        right,
        BOOL,
        host,
        _isclose_lane_inner,
        (rtol, atol, equal_nan),
        lane_dest_kind=BOOL,
    )
    if not apply_binary(dest, left, right, spec):
        raise TypeError("isclose is not supported for dtypes %r and %r" % (left.dtype, right.dtype))
    return collapse(dest)


__all__ = [
    "FUNCTIONS",
    "HYPERBOLIC",
    "acos",
    "acosh",
    "apply_function",
    "asin",
    "asinh",
    "atan",
    "atanh",
    "cos",
    "cosh",
    "exp",
    "isclose",
    "log",
    "sin",
    "sinh",
    "sqrt",
    "tan",
    "tanh",
]
