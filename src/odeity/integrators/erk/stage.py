# src/odeity/integrators/erk/stage.py
"""
Embedded explicit Runge-Kutta stage strategy.

One implementation for every Butcher tableau: stages are built from the
tableau's coupling matrix, the propagated solution from ``b`` and the local
error from ``e``. FSAL tableaus reuse the last stage derivative as the first
stage of the next step.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from odeity.errors import OutOfRangeError
from ..base import IntegratorMeta
from ..config_base import ConfigMixin
from ..controller import TINY
from ..stats import IntegratorStats
from .tableau import ButcherTableau

if TYPE_CHECKING:
    from ..controller import StepController

__all__ = ["EmbeddedRkStage", "EmbeddedRkSpec"]

# Floor for the previous error norm in the PI controller.
_MIN_OLD_ERROR_NORM = 1.0e-4


class EmbeddedRkStage(ConfigMixin):
    """
    Explicit embedded Runge-Kutta pair driven by a StepController.

    Step-size rules (p = tableau.error_order):
      accepted, first step: factor = (1/err)^(1/(p+1))
      accepted, later:      factor = old_err^beta / err^alpha,
                            alpha = 1/(p+1) - 0.75*beta
      rejected:             factor = (1/err)^(1/(p+1))
    The factor is clamped to [decrease_factor, increase_factor] and then
    multiplied by the safety factor.
    """

    @dataclass
    class Config:
        safety: float = 0.9
        decrease_factor: float = 0.1
        increase_factor: float = 10.0
        stabilization_beta: float = 0.1

        def validate(self) -> None:
            if not (0.0 <= self.stabilization_beta <= 0.2):
                raise OutOfRangeError(self.stabilization_beta, 0.0, 0.2, "stabilization_beta")
            if not (0.0 < self.safety <= 1.0):
                raise OutOfRangeError(self.safety, 0.0, 1.0, "safety")
            if not (0.0 < self.decrease_factor <= 1.0):
                raise OutOfRangeError(self.decrease_factor, 0.0, 1.0, "decrease_factor")
            if not (self.increase_factor >= 1.0):
                raise OutOfRangeError(self.increase_factor, 1.0, float("inf"), "increase_factor")

    def __init__(self, meta: IntegratorMeta, tableau: ButcherTableau, **options):
        self.meta = meta
        self.tableau = tableau
        self.init_config(options)
        self._k = np.zeros((tableau.stages, 0))

    # ---- derived constants --------------------------------------------------

    @property
    def stabilization_alpha(self) -> float:
        p = self.tableau.error_order
        return 1.0 / (p + 1) - 0.75 * self.config.stabilization_beta

    @property
    def k(self) -> np.ndarray:
        """Stage derivatives, shape (stages, n); ``k[0]`` is f at the current state."""
        return self._k

    # ---- StageStrategy ------------------------------------------------------

    def make_stats(self) -> IntegratorStats:
        return IntegratorStats()

    def allocate(self, ctrl: "StepController", n: int) -> None:
        self._k = np.zeros((self.tableau.stages, n))
        ctrl.eval_rhs(ctrl.state.current_time, ctrl.buffers.current, self._k[0])

    def initialize_integration(self, ctrl: "StepController") -> None:
        pass

    def estimate_initial_stepsize(self, ctrl: "StepController") -> None:
        st = ctrl.state
        span = st.end_time - st.current_time
        st.min_stepsize = max(TINY, self.tableau.too_small * span)

        y = ctrl.buffers.current
        tol = ctrl.relative_tolerance * np.abs(y) + ctrl.absolute_tolerance
        ypk = np.abs(self._k[0])
        h = span
        moving = ypk > 0.0
        if np.any(moving):
            # first-order Taylor prediction within tolerance
            h = min(h, float(np.min((tol[moving] / ypk[moving]) ** 0.2)))
        st.stepsize = max(st.min_stepsize, min(h, span))

    def start_step(self, ctrl: "StepController") -> None:
        st = ctrl.state
        st.last = False
        dt = st.end_time - st.current_time
        if dt < st.stepsize:
            st.stepsize = dt
            st.last = True
        elif dt < 2.0 * st.stepsize:
            st.stepsize *= 0.5

    def compute_stage(self, ctrl: "StepController") -> None:
        tab = self.tableau
        st = ctrl.state
        t = st.current_time
        h = st.stepsize
        y = ctrl.buffers.current
        y_new = ctrl.buffers.new
        k = self._k

        for s in range(1, tab.stages):
            y_new[:] = y
            row = tab.a[s, :s]
            for i in np.flatnonzero(row):
                y_new += (h * row[i]) * k[i]
            ctrl.eval_rhs(t + h * tab.c[s], y_new, k[s])

        st.new_time = t + h

        # FSAL: the last stage state is already the propagated solution
        if not tab.fsal:
            y_new[:] = y
            for i in np.flatnonzero(tab.b):
                y_new += (h * tab.b[i]) * k[i]

    def estimate_error(self, ctrl: "StepController") -> None:
        tab = self.tableau
        err = ctrl.buffers.new_local_error
        err[:] = 0.0
        for i in np.flatnonzero(tab.e):
            err += tab.e[i] * self._k[i]
        err *= ctrl.state.stepsize
        ctrl.errors.new_local_error_norm = ctrl.weighted_norm(err)

    def _clamp(self, factor: float) -> float:
        cfg = self.config
        return min(cfg.increase_factor, max(cfg.decrease_factor, factor)) * cfg.safety

    def stepsize_after_accept(self, ctrl: "StepController", first: bool) -> None:
        st = ctrl.state
        new = ctrl.errors.new_local_error_norm
        if new == 0.0:
            factor = self.config.increase_factor
        elif first:
            factor = (1.0 / new) ** (1.0 / (self.tableau.error_order + 1))
        else:
            old = max(ctrl.errors.old_local_error_norm, _MIN_OLD_ERROR_NORM)
            factor = old ** self.config.stabilization_beta / new ** self.stabilization_alpha
        st.stepsize = max(st.min_stepsize, st.stepsize * self._clamp(factor))

    def stepsize_after_reject(self, ctrl: "StepController") -> None:
        new = ctrl.errors.new_local_error_norm
        factor = (1.0 / new) ** (1.0 / (self.tableau.error_order + 1))
        ctrl.state.stepsize *= self._clamp(factor)

    def after_accept(self, ctrl: "StepController") -> None:
        k = self._k
        if self.tableau.fsal:
            k[[0, -1]] = k[[-1, 0]]
        else:
            ctrl.eval_rhs(ctrl.state.current_time, ctrl.buffers.current, k[0])

    def after_reject(self, ctrl: "StepController") -> None:
        pass

    def history_extra(self) -> Optional[int]:
        return None

    def describe(self) -> list[str]:
        cfg = self.config
        return [
            f"Stages:               {self.tableau.stages}",
            f"FSAL:                 {self.tableau.fsal}",
            f"Stabilization alpha:  {self.stabilization_alpha:g}",
            f"Stabilization beta:   {cfg.stabilization_beta:g}",
            f"Safety factor:        {cfg.safety:g}",
            f"Decrease factor:      {cfg.decrease_factor:g}",
            f"Increase factor:      {cfg.increase_factor:g}",
        ]


class EmbeddedRkSpec:
    """Registry entry binding a tableau to its metadata."""

    def __init__(self, meta: IntegratorMeta, tableau: ButcherTableau):
        if meta.stages is not None and meta.stages != tableau.stages:
            raise ValueError(f"{meta.name}: meta.stages={meta.stages} but tableau has {tableau.stages}")
        self.meta = meta
        self.tableau = tableau

    def create_stage(self, **options) -> EmbeddedRkStage:
        return EmbeddedRkStage(self.meta, self.tableau, **options)
