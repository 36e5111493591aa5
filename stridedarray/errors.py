"""Exception hierarchy shared by every module of the engine."""

from __future__ import annotations


class ArrayError(Exception):
    """Base class for errors raised by the array engine."""


class ShapeError(ArrayError, ValueError):
    """Ranks or lengths do not fit the requested operation."""


class BroadcastError(ShapeError):
    """Operands cannot be broadcast, or a destination would need expanding."""


class ArrayIndexError(ArrayError, IndexError):
    """Bad subscript: out of range, too many items or unsupported item."""


class AxisError(ArrayIndexError, ValueError):
    """Axis argument out of range or repeated."""


class DomainError(ArrayError, ValueError):
    """A math function was evaluated outside its domain."""


class LinAlgError(ArrayError):
    """Linear-algebra failure."""


class SingularMatrixError(LinAlgError):
    """The matrix has fewer pivots than rows."""


__all__ = [
    "ArrayError",
    "ArrayIndexError",
    "AxisError",
    "BroadcastError",
    "DomainError",
    "LinAlgError",
    "ShapeError",
    "SingularMatrixError",
]
