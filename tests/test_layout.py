from __future__ import annotations

import pytest

from stridedarray import layout
from stridedarray.errors import ArrayIndexError, AxisError, BroadcastError, ShapeError
from stridedarray.layout import DimInfo


AXES = layout.canonical_axes((2, 3, 4))


def test_canonical_strides_are_row_major():
    assert layout.canonical_strides((2, 3, 4)) == (12, 4, 1)
    assert layout.canonical_strides(()) == ()
    assert layout.element_count((2, 3, 4)) == 24
    assert layout.element_count(()) == 1


def test_address_formula():
    assert layout.address(7, AXES, (1, 2, 3)) == 7 + 12 + 8 + 3
    with pytest.raises(ArrayIndexError):
        layout.address(0, AXES, (2, 0, 0))


def test_normalize_shape_limits():
    assert layout.normalize_shape(5) == (5,)
    with pytest.raises(ShapeError):
        layout.normalize_shape((1,) * 9)
    with pytest.raises(ShapeError):
        layout.normalize_shape((2, -1))


def test_integer_and_slice_items():
    base, axes = layout.resolve_subscript(0, AXES, (1, slice(None, None, -1)))
    assert base == 12 + 2 * 4
    assert axes == (DimInfo(3, -4), DimInfo(4, 1))


def test_negative_integer_wraps():
    base, axes = layout.resolve_subscript(0, AXES, (-1, -1, -1))
    assert (base, axes) == (23, ())


def test_slice_clamps_and_steps():
    base, axes = layout.resolve_subscript(0, AXES, (slice(None), slice(1, 100), slice(0, 4, 3)))
    assert base == 4
    assert axes == (DimInfo(2, 12), DimInfo(2, 4), DimInfo(2, 3))


def test_ellipsis_and_newaxis():
    base, axes = layout.resolve_subscript(0, AXES, (Ellipsis, None, 1))
    assert base == 1
    assert axes == (DimInfo(2, 12), DimInfo(3, 4), DimInfo(1, 0))
    base, axes = layout.resolve_subscript(0, AXES, (0, Ellipsis))
    assert axes == AXES[1:]


def test_subscript_errors():
    with pytest.raises(ArrayIndexError):
        layout.resolve_subscript(0, AXES, (0, 0, 0, 0))
    with pytest.raises(ArrayIndexError):
        layout.resolve_subscript(0, AXES, (Ellipsis, 0, Ellipsis))
    with pytest.raises(ArrayIndexError):
        layout.resolve_subscript(0, AXES, 2)
    with pytest.raises(ArrayIndexError):
        layout.resolve_subscript(0, AXES, 1.5)
    with pytest.raises(ArrayIndexError):
        layout.resolve_subscript(0, AXES, (None,) * 6)


def test_transpose_axes():
    assert layout.transpose_axes(AXES) == tuple(reversed(AXES))
    assert layout.transpose_axes(AXES, (1, -1, 0)) == (AXES[1], AXES[2], AXES[0])
    with pytest.raises(AxisError):
        layout.transpose_axes(AXES, (0, 0, 1))
    with pytest.raises(AxisError):
        layout.transpose_axes(AXES, (0, 1))
    with pytest.raises(AxisError):
        layout.transpose_axes(AXES, (0, 1, 3))


def test_broadcast_axes_stretches_with_zero_stride():
    left = layout.canonical_axes((3, 1))
    right = layout.canonical_axes((4,))
    out_left, out_right, expanded = layout.broadcast_axes(left, right)
    assert out_left == (DimInfo(3, 1), DimInfo(4, 0))
    assert out_right == (DimInfo(3, 0), DimInfo(4, 1))
    assert expanded is True


def test_broadcast_reports_left_expansion_only():
    full = layout.canonical_axes((2, 3))
    row = layout.canonical_axes((3,))
    assert layout.broadcast_axes(full, row)[2] is False
    assert layout.broadcast_axes(row, full)[2] is True


def test_broadcast_mismatch():
    with pytest.raises(BroadcastError):
        layout.broadcast_axes(layout.canonical_axes((2, 3)), layout.canonical_axes((4,)))
