# src/odeity/runtime/kernels.py
"""
Hot numeric reductions used inside the step loop.

Each kernel is written as an explicit loop so the same source can run as
plain Python/numpy or be compiled by numba (nopython). Integrators pick a
kernel set once, at construction time, from their ``jit`` flag.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, NamedTuple

import numpy as np
from numba import njit

__all__ = ["KernelSet", "get_kernels", "wrms_norm", "inverse_weights", "allfinite1d"]


def _wrms_norm_impl(v: np.ndarray, w: np.ndarray) -> float:
    n = v.size
    acc = 0.0
    for i in range(n):
        x = v[i] * w[i]
        acc += x * x
    return math.sqrt(acc / n)


def _inverse_weights_impl(out: np.ndarray, y: np.ndarray, rtol: float, atol: float) -> None:
    for i in range(y.size):
        out[i] = 1.0 / (rtol * abs(y[i]) + atol)


def _allfinite1d_impl(x: np.ndarray) -> bool:
    for i in range(x.size):
        if not math.isfinite(x[i]):
            return False
    return True


class KernelSet(NamedTuple):
    wrms_norm: Callable[[np.ndarray, np.ndarray], float]
    inverse_weights: Callable[[np.ndarray, np.ndarray, float, float], None]
    allfinite1d: Callable[[np.ndarray], bool]
    jit: bool


_PY_KERNELS = KernelSet(
    wrms_norm=_wrms_norm_impl,
    inverse_weights=_inverse_weights_impl,
    allfinite1d=_allfinite1d_impl,
    jit=False,
)

# compiled lazily on first request; read-only afterwards
_JIT_CACHE: Dict[str, KernelSet] = {}


def get_kernels(jit: bool = False) -> KernelSet:
    """Return the Python or numba-compiled kernel set."""
    if not jit:
        return _PY_KERNELS
    kernels = _JIT_CACHE.get("jit")
    if kernels is None:
        kernels = KernelSet(
            wrms_norm=njit(cache=True)(_wrms_norm_impl),
            inverse_weights=njit(cache=True)(_inverse_weights_impl),
            allfinite1d=njit(cache=True)(_allfinite1d_impl),
            jit=True,
        )
        _JIT_CACHE["jit"] = kernels
    return kernels


# Convenience bindings for code outside the hot loop.
wrms_norm = _wrms_norm_impl
inverse_weights = _inverse_weights_impl
allfinite1d = _allfinite1d_impl
