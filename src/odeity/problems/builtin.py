# src/odeity/problems/builtin.py
"""
Reference problems for exercising the integrators.

Each problem carries a sensible default initial state so it can be run
from a configuration file without spelling out ``y0``.
"""
from __future__ import annotations
from typing import Callable, Dict

import numpy as np

from odeity.errors import ConfigError
from .base import ExplicitOde

__all__ = [
    "LinearDecay", "TimeDependentLinear", "DetestB1", "VanDerPol",
    "Robertson", "HeatEquation",
    "BUILTIN_PROBLEMS", "make_problem", "list_problems",
]


class LinearDecay(ExplicitOde):
    """y' = -lam * y, y(0) = 1. Exact solution exp(-lam * t)."""

    name = "decay"

    def __init__(self, lam: float = 1.0, n: int = 1):
        super().__init__(has_jacobian=True)
        self.lam = float(lam)
        self.n = int(n)

    def number_of_equations(self) -> int:
        return self.n

    def rhs(self, t, y, ydot):
        np.multiply(y, -self.lam, out=ydot)

    def jacobian_vector_product(self, v, jv, t, y, fy):
        np.multiply(v, -self.lam, out=jv)

    def exact(self, t: float, y0: float = 1.0) -> float:
        return y0 * float(np.exp(-self.lam * t))

    def default_initial_state(self):
        return np.ones(self.n)


class TimeDependentLinear(ExplicitOde):
    """y' = -2ty + 4t, y(0) = 0. Exact solution 2 - 2exp(-t^2)."""

    name = "tdl"

    def number_of_equations(self) -> int:
        return 1

    def rhs(self, t, y, ydot):
        ydot[0] = -2.0 * t * y[0] + 4.0 * t

    def exact(self, t: float) -> float:
        return 2.0 - 2.0 * float(np.exp(-t * t))

    def default_initial_state(self):
        return np.zeros(1)


class DetestB1(ExplicitOde):
    """Non-stiff DETEST problem B1 (Lotka-Volterra type)."""

    name = "b1"

    def number_of_equations(self) -> int:
        return 2

    def rhs(self, t, y, ydot):
        ydot[0] = 2.0 * (y[0] - y[0] * y[1])
        ydot[1] = -(y[1] - y[0] * y[1])

    def default_initial_state(self):
        return np.array([1.0, 3.0])


class VanDerPol(ExplicitOde):
    """Van der Pol oscillator; mildly stiff for large mu."""

    name = "vdp"

    def __init__(self, mu: float = 1.0):
        super().__init__(has_jacobian=True)
        self.mu = float(mu)

    def number_of_equations(self) -> int:
        return 2

    def rhs(self, t, y, ydot):
        ydot[0] = y[1]
        ydot[1] = self.mu * y[1] * (1.0 - y[0] * y[0]) - y[0]

    def jacobian_vector_product(self, v, jv, t, y, fy):
        jv[0] = v[1]
        jv[1] = (-2.0 * self.mu * y[0] * y[1] - 1.0) * v[0] + self.mu * (1.0 - y[0] * y[0]) * v[1]

    def default_initial_state(self):
        return np.array([0.0, 0.25])


class Robertson(ExplicitOde):
    """Robertson chemical kinetics; very stiff."""

    name = "robertson"

    def number_of_equations(self) -> int:
        return 3

    def rhs(self, t, y, ydot):
        r1 = 0.04 * y[0]
        r2 = 1.0e4 * y[1] * y[2]
        r3 = 3.0e7 * y[1] * y[1]
        ydot[0] = -r1 + r2
        ydot[1] = r1 - r2 - r3
        ydot[2] = r3

    def default_initial_state(self):
        return np.array([1.0, 0.0, 0.0])


class HeatEquation(ExplicitOde):
    """
    Method-of-lines reaction-diffusion on [0, 1] with reflecting ends:

        u_t = D u_xx - u (u - 1)(u - 1/2) / D - D |u_x|

    discretised with central differences on ``n`` nodes. The diffusion part
    makes the system moderately stiff with a real negative spectrum of
    radius about 4 D / dx^2, which is the territory of the RKC method.
    """

    name = "heat"

    def __init__(self, n: int = 51, diffusion: float = 0.1):
        super().__init__(has_jacobian=False)
        if int(n) < 3:
            raise ConfigError(f"HeatEquation needs at least 3 nodes; got {n}")
        self.n = int(n)
        self.diffusion = float(diffusion)
        self.dx = 1.0 / (self.n - 1)

    def number_of_equations(self) -> int:
        return self.n

    def rhs(self, t, y, ydot):
        D = self.diffusion
        dx = self.dx
        ul = np.empty_like(y)
        ur = np.empty_like(y)
        ul[1:] = y[:-1]
        ul[0] = y[1]
        ur[:-1] = y[1:]
        ur[-1] = y[-2]
        ydot[:] = (
            D * (ul - 2.0 * y + ur) / (dx * dx)
            - (1.0 / D) * y * (y - 1.0) * (y - 0.5)
            - np.abs(ur - ul) / (2.0 * dx) * D
        )

    def default_initial_state(self):
        x = np.linspace(0.0, 1.0, self.n)
        return np.where(np.abs(x - 0.5) < 0.25, 1.0, 0.0)


BUILTIN_PROBLEMS: Dict[str, Callable[..., ExplicitOde]] = {
    "decay": LinearDecay,
    "tdl": TimeDependentLinear,
    "b1": DetestB1,
    "vdp": VanDerPol,
    "robertson": Robertson,
    "heat": HeatEquation,
}


def make_problem(name: str, **params) -> ExplicitOde:
    """Instantiate a built-in problem by name."""
    try:
        factory = BUILTIN_PROBLEMS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown problem {name!r}; available: {', '.join(sorted(BUILTIN_PROBLEMS))}"
        ) from None
    try:
        return factory(**params)
    except TypeError as exc:
        raise ConfigError(f"Invalid parameters for problem {name!r}: {exc}") from exc


def list_problems() -> list[str]:
    return sorted(BUILTIN_PROBLEMS)
