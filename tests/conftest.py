import numpy as _np
import pytest

from stridedarray import config
from stridedarray.core import ndarray

_original_approx = pytest.approx


def _coerce_nested(expected):
    if isinstance(expected, ndarray):
        return _np.asarray(expected.tolist(), dtype=float)
    if isinstance(expected, (list, tuple)):
        if expected and any(isinstance(item, (list, tuple)) for item in expected):
            try:
                return _np.asarray(expected, dtype=float)
            except Exception:
                return [_coerce_nested(item) for item in expected]
    return expected


def approx(expected, *args, **kwargs):
    return _original_approx(_coerce_nested(expected), *args, **kwargs)


pytest.approx = approx


@pytest.fixture(params=[True, False], ids=["float-lanes", "host-fallback"])
def speedup(request, monkeypatch: pytest.MonkeyPatch):
    """Run a test once with the float fast paths and once without."""
    caps = config.Capabilities(
        hyperbolic=config.CAPABILITIES.hyperbolic,
        linalg=config.CAPABILITIES.linalg,
        speedup_float=request.param,
        linalg_epsilon=config.CAPABILITIES.linalg_epsilon,
    )
    monkeypatch.setattr(config, "CAPABILITIES", caps)
    return request.param
