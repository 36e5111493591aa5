from __future__ import annotations

import numpy as real_numpy
import pytest

import stridedarray as sa
from stridedarray.errors import ShapeError


def _arange(*shape):
    return real_numpy.arange(1.0, 1.0 + real_numpy.prod(shape)).reshape(shape) / 7.0


@pytest.mark.parametrize(
    "left_shape, right_shape",
    [
        ((4,), (4,)),
        ((3, 4), (4,)),
        ((2, 3, 4), (4,)),
        ((3, 4), (4, 5)),
        ((4,), (4, 2)),
        ((2, 3, 4), (4, 5)),
        ((2, 3), (4, 3, 2)),
        ((2, 2, 3), (2, 3, 2)),
    ],
)
def test_dot_matches_numpy(left_shape, right_shape, speedup):
    left = _arange(*left_shape)
    right = _arange(*right_shape)
    result = sa.dot(sa.array(left), sa.array(right))
    expected = real_numpy.dot(left, right)
    if real_numpy.ndim(expected) == 0:
        assert result == pytest.approx(float(expected))
    else:
        assert result.shape == expected.shape
        assert result.tolist() == pytest.approx(expected.tolist())


def test_matmul_operator_and_method():
    a = sa.array([[1.0, 2.0], [3.0, 4.0]])
    b = sa.array([[5.0, 6.0], [7.0, 8.0]])
    assert (a @ b).tolist() == [[19.0, 22.0], [43.0, 50.0]]
    assert a.dot([1.0, 1.0]).tolist() == [3.0, 7.0]
    assert ([1.0, 0.0] @ a).tolist() == [1.0, 2.0]


def test_dot_on_views(speedup):
    reference = _arange(4, 4)
    a = sa.array(reference)
    assert sa.dot(a.T, a[::-1]).tolist() == pytest.approx(real_numpy.dot(reference.T, reference[::-1]).tolist())


def test_rank_zero_operand_multiplies():
    assert sa.dot(2.0, sa.array([1.0, 2.0])).tolist() == [2.0, 4.0]
    assert sa.dot(3, 4) == 12


def test_contraction_mismatch():
    with pytest.raises(ShapeError):
        sa.dot(sa.zeros((3,)), sa.zeros((4,)))
    with pytest.raises(ShapeError):
        sa.dot(sa.zeros((2, 3)), sa.zeros((2, 3)))
    with pytest.raises(ShapeError):
        sa.dot(sa.zeros((2, 3)), sa.zeros((2,)))


def test_too_many_result_axes():
    with pytest.raises(ShapeError):
        sa.dot(sa.zeros((1,) * 5 + (2,)), sa.zeros((1,) * 4 + (2, 1)))


def test_result_kinds():
    ints = sa.array([[1, 2], [3, 4]], dtype="int32")
    assert sa.dot(ints, ints).dtype == "i"
    assert sa.dot(ints, ints).tolist() == [[7, 10], [15, 22]]
    flags = sa.array([True, True], dtype=bool)
    total = sa.dot(flags, flags)
    assert total == 2 and isinstance(total, int)


def test_empty_contraction_is_zero():
    result = sa.dot(sa.zeros((2, 0)), sa.zeros((0, 3)))
    assert result.tolist() == [[0.0] * 3] * 2
