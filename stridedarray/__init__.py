"""Embeddable n-dimensional strided array engine."""

from importlib.metadata import PackageNotFoundError, version

from . import config
from .config import CAPABILITIES, MAX_DIMS, Capabilities, load_capabilities
from .core import (
    allocate,
    arange,
    array,
    asarray,
    broadcast,
    eye,
    full,
    like_trimmed,
    ndarray,
    ones,
    reshape,
    shape,
    transpose,
    view_of,
    zeros,
)
from .dot import dot, matmul
from .errors import (
    ArrayError,
    ArrayIndexError,
    AxisError,
    BroadcastError,
    DomainError,
    LinAlgError,
    ShapeError,
    SingularMatrixError,
)
from .kinds import ElementKind, resolve_kind
from .layout import DimInfo
from .reductions import all, any, argmax, argmin, average, max, mean, min, prod, std, sum
from .umath import acos, asin, atan, cos, exp, isclose, log, sin, sqrt, tan

try:  # pragma: no cover - metadata is provided at build time
    __version__ = version("stridedarray")
except PackageNotFoundError:  # pragma: no cover - fallback during development
    __version__ = "0.0.0.dev0"

newaxis = None


__all__ = [
    "ArrayError",
    "ArrayIndexError",
    "AxisError",
    "BroadcastError",
    "CAPABILITIES",
    "Capabilities",
    "DimInfo",
    "DomainError",
    "ElementKind",
    "LinAlgError",
    "MAX_DIMS",
    "ShapeError",
    "SingularMatrixError",
    "__version__",
    "acos",
    "all",
    "allocate",
    "any",
    "arange",
    "argmax",
    "argmin",
    "array",
    "asarray",
    "asin",
    "atan",
    "average",
    "broadcast",
    "config",
    "cos",
    "dot",
    "exp",
    "eye",
    "full",
    "isclose",
    "like_trimmed",
    "load_capabilities",
    "log",
    "matmul",
    "max",
    "mean",
    "min",
    "ndarray",
    "newaxis",
    "ones",
    "prod",
    "reshape",
    "resolve_kind",
    "shape",
    "sin",
    "sqrt",
    "std",
    "sum",
    "tan",
    "transpose",
    "view_of",
    "zeros",
]

if CAPABILITIES.hyperbolic:
    from .umath import acosh, asinh, atanh, cosh, sinh, tanh

    __all__ += ["acosh", "asinh", "atanh", "cosh", "sinh", "tanh"]

if CAPABILITIES.linalg:
    from . import linalg

    __all__ += ["linalg"]
