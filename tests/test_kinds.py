from __future__ import annotations

import fractions

import numpy as real_numpy
import pytest

from stridedarray import kinds


@pytest.mark.parametrize(
    "dtype, code",
    [
        (None, "d"),
        ("d", "d"),
        ("float64", "d"),
        ("float", "d"),
        (float, "d"),
        (int, "q"),
        (bool, "?"),
        (object, "O"),
        ("int32", "i"),
        ("B", "B"),
        (real_numpy.float32, "f"),
        (real_numpy.dtype("int16"), "h"),
    ],
)
def test_resolve_kind(dtype, code: str):
    assert kinds.resolve_kind(dtype).code == code


def test_resolve_kind_rejects_unknown():
    with pytest.raises(TypeError):
        kinds.resolve_kind("complex128")
    with pytest.raises(TypeError):
        kinds.resolve_kind("no-such-kind")


def test_infer_kind():
    assert kinds.infer_kind([True, False]) is kinds.BOOL
    assert kinds.infer_kind([True, 2]) is kinds.DEFAULT_INT
    assert kinds.infer_kind([1, 2.5]) is kinds.DEFAULT_FLOAT
    assert kinds.infer_kind([]) is kinds.DEFAULT_FLOAT
    assert kinds.infer_kind([1, "a"]) is kinds.GENERIC
    assert kinds.infer_kind([2**70]) is kinds.GENERIC


def test_promote_rules():
    assert kinds.promote(kinds.INT32, kinds.INT32) is kinds.INT32
    assert kinds.promote(kinds.INT32, kinds.GENERIC) is kinds.GENERIC
    assert kinds.promote(kinds.INT8, kinds.FLOAT32) is kinds.FLOAT32
    assert kinds.promote(kinds.FLOAT32, kinds.FLOAT64) is kinds.DEFAULT_FLOAT
    assert kinds.promote(kinds.BOOL, kinds.INT16) is kinds.INT16
    assert kinds.promote(kinds.INT16, kinds.UINT8) is kinds.INT16


def test_integer_writes_wrap_like_c():
    buffer = real_numpy.zeros(2, dtype=real_numpy.int8)
    kinds.INT8.write(buffer, 0, 130)
    kinds.UINT8.write(buffer.view(real_numpy.uint8), 1, -1)
    assert buffer.tolist() == [-126, -1]


def test_read_returns_host_values():
    buffer = real_numpy.array([1.5], dtype=real_numpy.float64)
    value = kinds.FLOAT64.read(buffer, 0)
    assert type(value) is float
    generic = real_numpy.empty(1, dtype=object)
    generic[0] = fractions.Fraction(1, 3)
    assert kinds.GENERIC.read(generic, 0) == fractions.Fraction(1, 3)


def test_strings_are_not_stored_in_numeric_kinds():
    with pytest.raises(TypeError):
        kinds.FLOAT64.convert("1.5")


@pytest.mark.parametrize("value", [1j, complex(2, 0), real_numpy.complex128(1 + 2j)])
def test_complex_values_are_not_supported(value):
    with pytest.raises(NotImplementedError, match="complex"):
        kinds.kind_of_scalar(value)
    with pytest.raises(NotImplementedError):
        kinds.infer_kind([1.0, value])
    for kind in (kinds.BOOL, kinds.INT32, kinds.FLOAT64):
        with pytest.raises(NotImplementedError):
            kind.convert(value)
