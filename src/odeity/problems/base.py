# src/odeity/problems/base.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

__all__ = ["ExplicitOde", "FunctionOde"]


class ExplicitOde(ABC):
    """
    Explicit ODE system y' = f(t, y).

    The integrator holds a borrowed reference to the problem for the duration
    of a run; the problem object is owned by the caller. ``rhs`` and
    ``jacobian_vector_product`` write into the output array they are given
    and must not keep references to any of the vectors passed in.
    """

    name: str = "ode"

    def __init__(self, has_jacobian: bool = False):
        self._has_jacobian = bool(has_jacobian)
        self._use_jacobian = self._has_jacobian

    @abstractmethod
    def number_of_equations(self) -> int: ...

    @abstractmethod
    def rhs(self, t: float, y: np.ndarray, ydot: np.ndarray) -> None:
        """Write f(t, y) into ``ydot``."""

    @property
    def has_jacobian(self) -> bool:
        return self._has_jacobian

    @property
    def use_jacobian(self) -> bool:
        return self._use_jacobian

    @use_jacobian.setter
    def use_jacobian(self, value: bool) -> None:
        self._use_jacobian = bool(value) and self._has_jacobian

    def jacobian_vector_product(
        self,
        v: np.ndarray,
        jv: np.ndarray,
        t: float,
        y: np.ndarray,
        fy: np.ndarray,
    ) -> None:
        """Write J(t, y) @ v into ``jv``; ``fy`` is f(t, y)."""
        raise NotImplementedError(f"{type(self).__name__} does not provide a Jacobian-vector product")

    def default_initial_state(self) -> Optional[np.ndarray]:
        return None


class FunctionOde(ExplicitOde):
    """
    Adapter for plain callables ``fn(t, y) -> array`` (and optionally
    ``jvp(v, t, y, fy) -> array``).
    """

    def __init__(
        self,
        fn: Callable[[float, np.ndarray], np.ndarray],
        n: int,
        *,
        name: str = "function",
        jvp: Callable[[np.ndarray, float, np.ndarray, np.ndarray], np.ndarray] | None = None,
        y0=None,
    ):
        super().__init__(has_jacobian=jvp is not None)
        self._fn = fn
        self._jvp = jvp
        self._n = int(n)
        self.name = name
        self._y0 = None if y0 is None else np.asarray(y0, dtype=np.float64)

    def number_of_equations(self) -> int:
        return self._n

    def rhs(self, t, y, ydot):
        ydot[:] = self._fn(t, y)

    def jacobian_vector_product(self, v, jv, t, y, fy):
        if self._jvp is None:
            return super().jacobian_vector_product(v, jv, t, y, fy)
        jv[:] = self._jvp(v, t, y, fy)

    def default_initial_state(self):
        return None if self._y0 is None else self._y0.copy()
