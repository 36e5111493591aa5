"""Row-major odometer over the flat offsets of several strided operands."""

from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

Operand = Tuple[int, Sequence[int]]


class Odometer:
    """Yield one tuple of flat offsets per index combination of ``lengths``.

    Each operand is a ``(base_offset, strides)`` pair with one stride per
    entry of ``lengths``.  The last axis moves fastest, exactly like nested
    loops written outermost first.  Any zero length yields nothing; an empty
    ``lengths`` yields the base offsets once.
    """

    __slots__ = ("_lengths", "_strides", "_offsets", "_remaining", "_started", "_done")

    def __init__(self, lengths: Sequence[int], operands: Sequence[Operand]):
        self._lengths = tuple(lengths)
        self._strides: List[Tuple[int, ...]] = []
        self._offsets: List[int] = []
        for base, strides in operands:
            strides = tuple(strides)
            if len(strides) != len(self._lengths):
                raise ValueError("operand has %d strides for %d axes" % (len(strides), len(self._lengths)))
            self._strides.append(strides)
            self._offsets.append(base)
        self._remaining = list(self._lengths)
        self._started = False
        self._done = any(length == 0 for length in self._lengths)

    def __iter__(self) -> Iterator[Tuple[int, ...]]:
        return self

    def __next__(self) -> Tuple[int, ...]:
        if self._done:
            raise StopIteration
        if not self._started:
            self._started = True
            return tuple(self._offsets)
        for axis in range(len(self._lengths) - 1, -1, -1):
            self._remaining[axis] -= 1
            if self._remaining[axis] > 0:
                for k, strides in enumerate(self._strides):
                    self._offsets[k] += strides[axis]
                return tuple(self._offsets)
            # carry: rewind this axis to its first position
            span = self._lengths[axis] - 1
            self._remaining[axis] = self._lengths[axis]
            for k, strides in enumerate(self._strides):
                self._offsets[k] -= strides[axis] * span
        self._done = True
        raise StopIteration


__all__ = ["Odometer"]
