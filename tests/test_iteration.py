from __future__ import annotations

import itertools

from stridedarray.iteration import Odometer


def test_matches_nested_loops():
    lengths = (2, 3, 4)
    strides = (12, 4, 1)
    other = (1, 0, 7)
    expected = [
        (5 + i * 12 + j * 4 + k, i + k * 7)
        for i, j, k in itertools.product(range(2), range(3), range(4))
    ]
    assert list(Odometer(lengths, [(5, strides), (0, other)])) == expected


def test_rank_zero_yields_base_once():
    assert list(Odometer((), [(3, ()), (9, ())])) == [(3, 9)]


def test_zero_length_axis_yields_nothing():
    assert list(Odometer((3, 0, 2), [(0, (0, 2, 1))])) == []


def test_negative_strides():
    offsets = [offset for (offset,) in Odometer((3,), [(4, (-2,))])]
    assert offsets == [4, 2, 0]


def test_is_an_exhaustible_iterator():
    walk = Odometer((2,), [(0, (1,))])
    assert iter(walk) is walk
    assert list(walk) == [(0,), (1,)]
    assert list(walk) == []
