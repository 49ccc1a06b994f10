# src/odeity/integrators/rkc/spectral.py
"""
Spectral radius of the right-hand-side Jacobian without forming it.

Two power iterations share one convergence test:
  - nonlinear: finite differences of f around the current state,
    sigma = ||f(v) - f(y)|| / ||v - y||
  - linear: Jacobian-vector products supplied by the problem,
    sigma = ||J v|| / ||v||
Iteration stops once two consecutive sigma agree to 1% of
max(sigma, small); ``small = 1/(end_time - current_time)`` keeps tiny
radii (which never restrict the step) from demanding relative accuracy.
The reported radius is ``safety * sigma`` so it tends to bound the true
value from above.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from odeity.errors import MaxSpectralRadiusIterationsExceeded

__all__ = [
    "SpectralRadiusEstimate",
    "nonlinear_power_iteration",
    "jacobian_power_iteration",
]

_EPS = float(np.finfo(np.float64).eps)
_SQRT_EPS = float(np.sqrt(_EPS))

RhsFn = Callable[[float, np.ndarray, np.ndarray], np.ndarray]
JvpFn = Callable[[np.ndarray, np.ndarray, float, np.ndarray, np.ndarray], np.ndarray]


@dataclass
class SpectralRadiusEstimate:
    """
    Cached spectral radius and the state of the power iteration.

    eigenvector: last direction found; warm-starts the next estimate
    jacobian_at_t: the radius was computed at the current time
    needs_recompute: an estimate is due before the next step
    """
    sigma: float = 0.0
    spectral_radius: float = 0.0
    eigenvector: np.ndarray = field(default_factory=lambda: np.zeros(0))
    jacobian_at_t: bool = False
    needs_recompute: bool = True
    iterations: int = 0


def _converged(it: int, sigma: float, sigma_last: float, small: float) -> bool:
    return it >= 2 and abs(sigma - sigma_last) <= 0.01 * max(sigma, small)


def nonlinear_power_iteration(
    rhs: RhsFn,
    t: float,
    y: np.ndarray,
    fn: np.ndarray,
    eigenvector: np.ndarray,
    fev: np.ndarray,
    *,
    small: float,
    max_iterations: int = 50,
    safety: float = 1.2,
) -> tuple[float, float, int]:
    """
    Estimate the spectral radius of df/dy at (t, y) where ``fn = f(t, y)``.

    ``eigenvector`` is the starting direction on entry and the converged
    direction (relative to ``y``) on exit. ``fev`` is scratch. Returns
    (sigma, safety*sigma, iterations).
    """
    n = y.size
    v = eigenvector
    y_norm = float(np.linalg.norm(y))
    ev_norm = float(np.linalg.norm(v))

    # place v at distance dy_norm from y
    if y_norm != 0.0 and ev_norm != 0.0:
        dy_norm = y_norm * _SQRT_EPS
        v *= dy_norm / ev_norm
        v += y
    elif y_norm != 0.0:
        dy_norm = y_norm * _SQRT_EPS
        v[:] = y
        v *= 1.0 + _SQRT_EPS
    elif ev_norm != 0.0:
        dy_norm = _EPS
        v *= dy_norm / ev_norm
    else:
        dy_norm = _EPS
        v[:] = dy_norm

    sigma = 0.0
    for it in range(1, max_iterations + 1):
        rhs(t, v, fev)
        fev -= fn
        df_norm = float(np.linalg.norm(fev))

        sigma_last = sigma
        sigma = df_norm / dy_norm
        if _converged(it, sigma, sigma_last, small):
            v -= y
            return sigma, safety * sigma, it

        if df_norm != 0.0:
            # next v is the change in f, scaled so ||v - y|| = dy_norm
            v[:] = y
            v += (dy_norm / df_norm) * fev
        else:
            # v degenerated to y: flip the sign of one component of v - y
            i = it % n
            v[i] = y[i] - (v[i] - y[i])

    raise MaxSpectralRadiusIterationsExceeded(max_iterations)


def jacobian_power_iteration(
    jvp: JvpFn,
    t: float,
    y: np.ndarray,
    fn: np.ndarray,
    eigenvector: np.ndarray,
    jv: np.ndarray,
    *,
    small: float,
    max_iterations: int = 50,
    safety: float = 1.2,
) -> tuple[float, float, int]:
    """
    Same contract as :func:`nonlinear_power_iteration` but iterates with
    ``jvp(v, out, t, y, fn)`` (out = J(t, y) v).
    """
    n = y.size
    v = eigenvector
    v_norm = float(np.linalg.norm(v))
    if v_norm == 0.0:
        v[:] = 1.0
        v_norm = float(np.sqrt(n))
    v /= v_norm

    sigma = 0.0
    for it in range(1, max_iterations + 1):
        jvp(v, jv, t, y, fn)
        jv_norm = float(np.linalg.norm(jv))

        sigma_last = sigma
        sigma = jv_norm
        if _converged(it, sigma, sigma_last, small):
            return sigma, safety * sigma, it

        if jv_norm != 0.0:
            v[:] = jv
            v /= jv_norm
        else:
            i = it % n
            v[i] = -v[i]

    raise MaxSpectralRadiusIterationsExceeded(max_iterations)
