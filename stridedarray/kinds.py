"""Element kinds: storage type, host conversion and promotion rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

import numpy as _np

from . import config

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


def _reject_complex(value: Any) -> None:
    if isinstance(value, (complex, _np.complexfloating)):
        raise NotImplementedError("complex numbers are not supported")


@dataclass(frozen=True)
class ElementKind:
    """One storable element type.

    ``code`` follows the single-character codes of Python's ``array`` module,
    ``category`` is one of ``"b"`` (bool), ``"i"`` (signed), ``"u"``
    (unsigned), ``"f"`` (float) or ``"O"`` (generic host objects).
    """

    code: str
    name: str
    category: str
    dtype: _np.dtype = field(compare=False, repr=False)

    @property
    def is_bool(self) -> bool:
        return self.category == "b"

    @property
    def is_integer(self) -> bool:
        return self.category in {"i", "u"}

    @property
    def is_float(self) -> bool:
        return self.category == "f"

    @property
    def is_generic(self) -> bool:
        return self.category == "O"

    @property
    def zero(self) -> Any:
        if self.is_bool:
            return False
        if self.is_float:
            return 0.0
        return 0

    @property
    def one(self) -> Any:
        if self.is_bool:
            return True
        if self.is_float:
            return 1.0
        return 1

    def read(self, buffer: _np.ndarray, offset: int) -> Any:
        value = buffer[offset]
        if self.is_generic:
            return value
        return value.item()

    def convert(self, value: Any) -> Any:
        """Cast a host value the way a store into this kind would."""
        if self.is_generic:
            return value
        _reject_complex(value)
        if isinstance(value, (str, bytes)):
            raise TypeError("cannot store %s in an array of dtype %r" % (type(value).__name__, self.code))
        if self.is_bool:
            return bool(value)
        if self.is_float:
            return float(value)
        bits = self.dtype.itemsize * 8
        wrapped = int(value) & ((1 << bits) - 1)
        if self.category == "i" and wrapped >= 1 << (bits - 1):
            wrapped -= 1 << bits
        return wrapped

    def write(self, buffer: _np.ndarray, offset: int, value: Any) -> None:
        buffer[offset] = self.convert(value)

    def __str__(self) -> str:
        return self.name


_KINDS: Dict[str, ElementKind] = {}


def _register(code: str, name: str, category: str, dtype: Any) -> ElementKind:
    kind = ElementKind(code, name, category, _np.dtype(dtype))
    _KINDS[code] = kind
    return kind


BOOL = _register("?", "bool", "b", _np.bool_)
INT8 = _register("b", "int8", "i", _np.int8)
UINT8 = _register("B", "uint8", "u", _np.uint8)
INT16 = _register("h", "int16", "i", _np.int16)
UINT16 = _register("H", "uint16", "u", _np.uint16)
INT32 = _register("i", "int32", "i", _np.int32)
UINT32 = _register("I", "uint32", "u", _np.uint32)
LONG = _register("l", "long", "i", _np.int64)
ULONG = _register("L", "ulong", "u", _np.uint64)
INT64 = _register("q", "int64", "i", _np.int64)
UINT64 = _register("Q", "uint64", "u", _np.uint64)
FLOAT32 = _register("f", "float32", "f", _np.float32)
FLOAT64 = _register("d", "float64", "f", _np.float64)
GENERIC = _register("O", "object", "O", object)

DEFAULT_FLOAT = _KINDS[config.DEFAULT_FLOAT]
DEFAULT_INT = _KINDS[config.DEFAULT_INT]

_BY_NAME: Dict[str, ElementKind] = {kind.name: kind for kind in _KINDS.values()}
_BY_NAME.update({"float": DEFAULT_FLOAT, "int": DEFAULT_INT, "double": FLOAT64, "single": FLOAT32})
_BY_PYTHON_TYPE = {bool: BOOL, int: DEFAULT_INT, float: DEFAULT_FLOAT, object: GENERIC}


def all_kinds() -> tuple[ElementKind, ...]:
    return tuple(_KINDS.values())


def resolve_kind(dtype: Any) -> ElementKind:
    if dtype is None:
        return DEFAULT_FLOAT
    if isinstance(dtype, ElementKind):
        return dtype
    if isinstance(dtype, str):
        kind = _KINDS.get(dtype) or _BY_NAME.get(dtype.strip().lower())
        if kind is not None:
            return kind
        raise TypeError("data type %r not understood" % (dtype,))
    if isinstance(dtype, type) and dtype in _BY_PYTHON_TYPE:
        return _BY_PYTHON_TYPE[dtype]
    try:
        np_dtype = _np.dtype(dtype)
    except TypeError:
        raise TypeError("data type %r not understood" % (dtype,)) from None
    kind = _BY_NAME.get(np_dtype.name)
    if kind is None:
        raise TypeError("data type %r is not supported" % (np_dtype.name,))
    return kind


def kind_of_scalar(value: Any) -> ElementKind:
    _reject_complex(value)
    if isinstance(value, (bool, _np.bool_)):
        return BOOL
    if isinstance(value, (int, _np.integer)):
        if _INT64_MIN <= int(value) <= _INT64_MAX:
            return DEFAULT_INT
        return GENERIC
    if isinstance(value, (float, _np.floating)):
        return DEFAULT_FLOAT
    return GENERIC


def infer_kind(values: Iterable[Any]) -> ElementKind:
    """Smallest registered kind able to hold every host value in ``values``.

    Empty input infers the default float kind.
    """

    seen_bool = seen_int = seen_float = False
    for value in values:
        kind = kind_of_scalar(value)
        if kind is GENERIC:
            return GENERIC
        if kind is BOOL:
            seen_bool = True
        elif kind is DEFAULT_INT:
            seen_int = True
        else:
            seen_float = True
    if seen_float or not (seen_bool or seen_int):
        return DEFAULT_FLOAT
    if seen_int:
        return DEFAULT_INT
    return BOOL


def promote(left: ElementKind, right: ElementKind) -> ElementKind:
    if left == right:
        return left
    if left.is_generic or right.is_generic:
        return GENERIC
    if left.is_float and right.is_float:
        return DEFAULT_FLOAT
    if left.is_float:
        return left
    if right.is_float:
        return right
    if left.is_bool:
        return right
    return left


__all__ = [
    "BOOL",
    "DEFAULT_FLOAT",
    "DEFAULT_INT",
    "ElementKind",
    "FLOAT32",
    "FLOAT64",
    "GENERIC",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "all_kinds",
    "infer_kind",
    "kind_of_scalar",
    "promote",
    "resolve_kind",
]
