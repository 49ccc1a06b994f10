# src/odeity/integrators/erk/tableau.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

import numpy as np

__all__ = ["ButcherTableau"]

_EPS = float(np.finfo(np.float64).eps)


def _frozen(x, ndim: int) -> np.ndarray:
    arr = np.array(x, dtype=np.float64)
    if arr.ndim != ndim:
        raise ValueError(f"expected a {ndim}-D coefficient array, got shape {arr.shape}")
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True)
class ButcherTableau:
    """
    Coefficients of an explicit embedded Runge-Kutta pair.

    a: (s, s) strictly lower triangular stage coupling
    b: (s,)   weights of the propagated solution
    c: (s,)   stage abscissae
    e: (s,)   error weights (embedded minus propagated)
    fsal:     last stage is evaluated at the propagated solution, so its
              derivative is the first stage of the next step
    error_order: p, the order of the local error estimate

    Arrays are made read-only on construction.
    """
    name: str
    a: np.ndarray
    b: np.ndarray
    c: np.ndarray
    e: np.ndarray
    error_order: int
    fsal: bool = False

    def __post_init__(self):
        a = _frozen(self.a, 2)
        b = _frozen(self.b, 1)
        c = _frozen(self.c, 1)
        e = _frozen(self.e, 1)
        object.__setattr__(self, "a", a)
        object.__setattr__(self, "b", b)
        object.__setattr__(self, "c", c)
        object.__setattr__(self, "e", e)

        s = a.shape[0]
        if a.shape != (s, s):
            raise ValueError(f"{self.name}: stage matrix must be square, got {a.shape}")
        if b.shape != (s,) or c.shape != (s,) or e.shape != (s,):
            raise ValueError(f"{self.name}: b, c and e must all have length {s}")
        if np.any(np.triu(a) != 0.0):
            raise ValueError(f"{self.name}: stage matrix must be strictly lower triangular")
        if self.error_order < 1:
            raise ValueError(f"{self.name}: error order must be positive")
        if self.fsal:
            if not np.allclose(a[-1], b, rtol=0.0, atol=1e-15) or c[-1] != 1.0:
                raise ValueError(f"{self.name}: FSAL requires a[-1] == b and c[-1] == 1")

    @classmethod
    def embedded(
        cls,
        name: str,
        a: Sequence[Sequence[float]],
        b: Sequence[float],
        b_hat: Sequence[float],
        c: Sequence[float],
        error_order: int,
        fsal: bool = False,
    ) -> "ButcherTableau":
        """Build from the two weight vectors of the pair; e = b_hat - b."""
        b_arr = np.asarray(b, dtype=np.float64)
        e = np.asarray(b_hat, dtype=np.float64) - b_arr
        return cls(name=name, a=a, b=b_arr, c=c, e=e, error_order=error_order, fsal=fsal)

    @property
    def stages(self) -> int:
        return int(self.b.shape[0])

    @property
    def too_small(self) -> float:
        """
        10*eps divided by the smallest positive gap between abscissae; scaled
        by the integration span this is the step size below which two stage
        times can no longer be told apart.
        """
        c = self.c
        diffs = np.abs(c[:, None] - c[None, :])
        positive = diffs[diffs > 0.0]
        gap = min(1.0, float(positive.min())) if positive.size else 1.0
        return 10.0 * _EPS / gap
