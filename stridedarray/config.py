"""Capability switches read from the environment at import time."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

LOGGER = logging.getLogger(__name__)

MAX_DIMS = 8
DEFAULT_FLOAT = "d"
DEFAULT_INT = "q"
DEFAULT_LINALG_EPSILON = 1e-12


def _parse_bool_env(value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return None


@dataclass(frozen=True)
class Capabilities:
    """Optional feature groups of the engine."""

    hyperbolic: bool = True
    linalg: bool = True
    speedup_float: bool = True
    linalg_epsilon: float = DEFAULT_LINALG_EPSILON


def _flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    parsed = _parse_bool_env(environ.get(name, "auto"))
    return default if parsed is None else parsed


def load_capabilities(environ: Mapping[str, str] | None = None) -> Capabilities:
    environ = os.environ if environ is None else environ
    raw_eps = environ.get("STRIDED_LINALG_EPSILON")
    epsilon = DEFAULT_LINALG_EPSILON
    if raw_eps is not None and raw_eps.strip():
        try:
            epsilon = float(raw_eps)
        except ValueError:
            LOGGER.warning("Ignoring unparsable STRIDED_LINALG_EPSILON=%r", raw_eps)
        else:
            if not epsilon >= 0.0:
                LOGGER.warning("Ignoring negative STRIDED_LINALG_EPSILON=%r", raw_eps)
                epsilon = DEFAULT_LINALG_EPSILON
    caps = Capabilities(
        hyperbolic=_flag(environ, "STRIDED_ENABLE_HYPERBOLIC", True),
        linalg=_flag(environ, "STRIDED_ENABLE_LINALG", True),
        speedup_float=_flag(environ, "STRIDED_SPEEDUP_FLOAT", True),
        linalg_epsilon=epsilon,
    )
    LOGGER.debug("Loaded capabilities %s", caps)
    return caps


CAPABILITIES = load_capabilities()
