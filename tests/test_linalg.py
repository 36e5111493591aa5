from __future__ import annotations

import logging

import numpy as real_numpy
import pytest

import stridedarray as sa
from stridedarray import config, linalg
from stridedarray.errors import LinAlgError, SingularMatrixError

MATRICES = [
    [[4.0]],
    [[2.0, 1.0], [1.0, 3.0]],
    [[0.0, 2.0, 1.0], [1.0, -1.0, 0.5], [3.0, 0.0, 2.0]],
    [[1.0, 2.0, 3.0, 4.0], [2.0, 1.0, 0.0, -1.0], [0.5, 0.25, 8.0, 2.0], [-3.0, 1.0, 1.0, 1.0]],
]


@pytest.mark.parametrize("matrix", MATRICES)
def test_det_matches_numpy(matrix):
    assert linalg.det(sa.array(matrix)) == pytest.approx(real_numpy.linalg.det(real_numpy.array(matrix)))


def test_det_does_not_modify_input():
    a = sa.array(MATRICES[2])
    linalg.det(a)
    assert a.tolist() == MATRICES[2]


@pytest.mark.parametrize("matrix", MATRICES)
def test_inverse_round_trips(matrix):
    a = sa.array(matrix)
    inverse = linalg.inv(a)
    assert inverse.tolist() == pytest.approx(real_numpy.linalg.inv(real_numpy.array(matrix)).tolist())
    identity = sa.dot(a, inverse)
    assert identity.tolist() == pytest.approx(real_numpy.eye(len(matrix)).tolist(), abs=1e-9)


@pytest.mark.parametrize("matrix", MATRICES)
def test_solve_matches_numpy(matrix):
    rhs = [float(i + 1) for i in range(len(matrix))]
    x = linalg.solve(sa.array(matrix), sa.array(rhs))
    assert x.shape == (len(matrix),)
    assert x.tolist() == pytest.approx(real_numpy.linalg.solve(real_numpy.array(matrix), rhs).tolist())
    assert sa.dot(sa.array(matrix), x).tolist() == pytest.approx(rhs)


def test_singular_matrices_are_detected():
    singular = [[1.0, 2.0], [2.0, 4.0]]
    for func in (linalg.det, linalg.inv):
        with pytest.raises(SingularMatrixError):
            func(singular)
    with pytest.raises(SingularMatrixError):
        linalg.solve(singular, [1.0, 2.0])
    with pytest.raises(SingularMatrixError):
        linalg.det([[0.0]])


def test_singular_error_is_a_linalg_error_not_value_error():
    assert issubclass(SingularMatrixError, LinAlgError)
    assert not issubclass(LinAlgError, ValueError)
    assert SingularMatrixError.__doc__


def test_shape_checks():
    with pytest.raises(LinAlgError):
        linalg.det([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    with pytest.raises(LinAlgError):
        linalg.inv([1.0, 2.0])
    with pytest.raises(LinAlgError):
        linalg.solve([[1.0, 0.0], [0.0, 1.0]], [1.0, 2.0, 3.0])
    with pytest.raises(LinAlgError):
        linalg.re(sa.zeros((2, 2, 2)))


def test_re_operates_in_place_on_owned_float_matrix():
    a = sa.array([[2.0, 4.0, 2.0], [1.0, 3.0, 4.0]])
    result = linalg.re(a)
    assert result is a
    assert a.tolist() == pytest.approx([[1.0, 3.0, 4.0], [0.0, 1.0, 3.0]])


def test_re_copies_views_and_integer_input():
    ints = sa.array([[2, 4], [1, 3]], dtype=int)
    result = linalg.re(ints)
    assert result is not ints and result.dtype == "d"
    assert ints.tolist() == [[2, 4], [1, 3]]
    view = sa.array([[0.0, 1.0], [2.0, 0.0]]).T
    assert linalg.re(view).is_contiguous_owned


def test_reduce_rows_tracks_pivots_and_determinant():
    a = sa.array([[0.0, 2.0], [4.0, 1.0]])
    reduction = linalg.reduce_rows(a, normalize=True)
    assert reduction.pivot_count == 2
    assert 1.0 / reduction.determinant_factor == pytest.approx(-8.0)


def test_reduce_rows_prefers_unit_pivot():
    a = sa.array([[3.0, 0.0], [1.0, 5.0]])
    linalg.reduce_rows(a)
    assert a[0].tolist() == [1.0, 5.0]


def test_reduce_rows_requires_owned_float_matrix():
    with pytest.raises(LinAlgError):
        linalg.reduce_rows(sa.zeros((2, 2)).T)
    with pytest.raises(LinAlgError):
        linalg.reduce_rows(sa.zeros((2, 2), dtype=int))


def test_epsilon_is_configurable(monkeypatch: pytest.MonkeyPatch):
    tiny = [[1e-13, 0.0], [0.0, 1.0]]
    with pytest.raises(SingularMatrixError):
        linalg.det(tiny)
    monkeypatch.setattr(config, "CAPABILITIES", config.Capabilities(linalg_epsilon=1e-15))
    assert linalg.det(tiny) == pytest.approx(1e-13)


def test_empty_matrix():
    assert linalg.det(sa.zeros((0, 0))) == 1.0
    assert linalg.inv(sa.zeros((0, 0))).shape == (0, 0)


def test_pivot_outcome_is_logged(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.DEBUG, logger="stridedarray.linalg"):
        linalg.det(MATRICES[1])
    assert "found 2 pivots" in caplog.text


def test_package_exposes_linalg():
    assert sa.linalg is linalg
