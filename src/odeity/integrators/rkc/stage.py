# src/odeity/integrators/rkc/stage.py
"""
Stabilized Runge-Kutta-Chebyshev (RKC) stage strategy.

Second-order explicit method with a variable number of stages chosen per
step from the spectral radius of the Jacobian, so that the damped
Chebyshev stability region (length ~ 0.65 * stages^2) covers h*rho.
Intended for mildly stiff problems whose Jacobian has a real,
negative-dominant spectrum (diffusion).
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
import math

import numpy as np

from odeity.errors import OutOfRangeError, StepTooSmall
from ..base import IntegratorCaps, IntegratorMeta
from ..config_base import ConfigMixin
from ..controller import EPSILON
from ..stats import ChebyshevStats
from .spectral import (
    SpectralRadiusEstimate,
    jacobian_power_iteration,
    nonlinear_power_iteration,
)

if TYPE_CHECKING:
    from ..controller import StepController

__all__ = ["StabilizedChebyshevStage", "ChebyshevSpec", "stage_count", "default_max_stage"]

# Growth limits after an accepted step.
_MAX_FACTOR = 10.0
_MIN_FACTOR = 0.1


def default_max_stage(rtol: float) -> int:
    """Largest stage count for which round-off stays below rtol."""
    return max(2, int(math.sqrt(rtol / (10.0 * EPSILON))))


def stage_count(stepsize: float, spectral_radius: float, max_stage: int) -> tuple[int, float, bool]:
    """
    Stages needed for stability at ``stepsize``.

    Returns (stages, stepsize, capped). When more than ``max_stage``
    stages would be needed the count is capped and the step size shrunk
    to the largest one ``max_stage`` stages can stabilize.
    """
    stages = 1 + int(math.sqrt(1.54 * stepsize * spectral_radius + 1.0))
    if stages > max_stage:
        stages = max_stage
        stepsize = (stages * stages - 1) / (1.54 * spectral_radius)
        return stages, stepsize, True
    return stages, stepsize, False


class StabilizedChebyshevStage(ConfigMixin):
    """
    RKC stage computation and step-size rules.

    The spectral radius is re-estimated on the first step, every
    ``recompute_every`` accepted steps, and after a rejected step unless it
    was already computed at the current time.
    """

    @dataclass
    class Config:
        safety: float = 0.9
        max_iterations: int = 50
        recompute_every: int = 25
        spectral_radius_safety: float = 1.2
        max_stages: Optional[int] = None
        use_jacobian: bool = True

        def validate(self) -> None:
            if not (0.0 < self.safety <= 1.0):
                raise OutOfRangeError(self.safety, 0.0, 1.0, "safety")
            if self.max_iterations < 2:
                raise OutOfRangeError(self.max_iterations, 2, float("inf"), "max_iterations")
            if self.recompute_every < 1:
                raise OutOfRangeError(self.recompute_every, 1, float("inf"), "recompute_every")
            if self.spectral_radius_safety < 1.0:
                raise OutOfRangeError(self.spectral_radius_safety, 1.0, float("inf"), "spectral_radius_safety")
            if self.max_stages is not None and self.max_stages < 2:
                raise OutOfRangeError(self.max_stages, 2, float("inf"), "max_stages")

    def __init__(self, meta: IntegratorMeta, **options):
        self.meta = meta
        self.init_config(options)
        self.spectral = SpectralRadiusEstimate()
        self.stages = 0
        self.max_stage = 2
        self.small = 0.0
        self._hold = 0.0
        self._since_estimate = 0
        self._alloc(0)

    def _alloc(self, n: int) -> None:
        self._fn = np.zeros(n)       # f(t, y) at the current state
        self._fev = np.zeros(n)
        self._temp1 = np.zeros(n)    # f at the candidate state
        self._temp2 = np.zeros(n)
        self._yjm1 = np.zeros(n)
        self._yjm2 = np.zeros(n)

    @property
    def fn(self) -> np.ndarray:
        return self._fn

    @property
    def spectral_radius(self) -> float:
        return self.spectral.spectral_radius

    # ---- StageStrategy ------------------------------------------------------

    def make_stats(self) -> ChebyshevStats:
        return ChebyshevStats()

    def allocate(self, ctrl: "StepController", n: int) -> None:
        self._alloc(n)
        self.spectral = SpectralRadiusEstimate(eigenvector=np.zeros(n))
        self.stages = 0
        self._hold = 0.0
        self._since_estimate = 0
        ctrl.eval_rhs(ctrl.state.current_time, ctrl.buffers.current, self._fn)

    def initialize_integration(self, ctrl: "StepController") -> None:
        st = ctrl.state
        self.small = 1.0 / (st.end_time - st.current_time)
        if self.config.max_stages is not None:
            self.max_stage = int(self.config.max_stages)
        else:
            self.max_stage = default_max_stage(ctrl.relative_tolerance)
        if self.spectral.needs_recompute:
            self.estimate_spectral_radius(ctrl)

    def estimate_spectral_radius(self, ctrl: "StepController") -> float:
        cfg = self.config
        sp = self.spectral
        st = ctrl.state
        y = ctrl.buffers.current
        if ctrl.stats.accepted_steps == 0:
            sp.eigenvector[:] = self._fn

        problem = ctrl.problem
        if cfg.use_jacobian and problem.use_jacobian:
            sigma, rho, iters = jacobian_power_iteration(
                ctrl.eval_jvp, st.current_time, y, self._fn, sp.eigenvector, self._fev,
                small=self.small,
                max_iterations=cfg.max_iterations,
                safety=cfg.spectral_radius_safety,
            )
        else:
            sigma, rho, iters = nonlinear_power_iteration(
                ctrl.eval_rhs, st.current_time, y, self._fn, sp.eigenvector, self._fev,
                small=self.small,
                max_iterations=cfg.max_iterations,
                safety=cfg.spectral_radius_safety,
            )

        sp.sigma = sigma
        sp.spectral_radius = rho
        sp.iterations = iters
        sp.needs_recompute = False
        sp.jacobian_at_t = True

        stats = ctrl.stats
        stats.spectral_radius_estimates += 1
        stats.spectral_radius_iterations += iters
        stats.last_spectral_radius = rho
        ctrl.diagnostics.debug(
            f"{self.meta.name}: spectral radius {rho:.6e} at t={st.current_time:.6e} "
            f"({iters} iterations)"
        )
        return rho

    def estimate_initial_stepsize(self, ctrl: "StepController") -> None:
        st = ctrl.state
        dt = st.end_time - st.current_time
        rho = self.spectral.spectral_radius

        st.min_stepsize = 10.0 * EPSILON * dt
        h = dt
        if rho * h > 1.0:
            h = 1.0 / rho
        h = max(h, st.min_stepsize)

        # one forward-difference estimate of the local error
        y = ctrl.buffers.current
        np.multiply(self._fn, h, out=self._temp1)
        self._temp1 += y
        ctrl.eval_rhs(st.current_time + h, self._temp1, self._temp2)
        self._temp2 -= self._fn
        estimate = h * ctrl.weighted_norm(self._temp2)

        if 0.1 * h < dt * math.sqrt(estimate):
            st.stepsize = max(0.1 * h / math.sqrt(estimate), st.min_stepsize)
        else:
            st.stepsize = dt

    def start_step(self, ctrl: "StepController") -> None:
        st = ctrl.state
        if self.spectral.needs_recompute:
            self.estimate_spectral_radius(ctrl)

        st.last = False
        if 1.2 * st.stepsize > st.end_time - st.current_time:
            st.stepsize = st.end_time - st.current_time
            st.last = True

        self.stages, h, capped = stage_count(st.stepsize, self.spectral.spectral_radius, self.max_stage)
        if capped:
            st.stepsize = h
            st.last = False
            if h < st.min_stepsize:
                raise StepTooSmall(h, st.min_stepsize)

    def compute_stage(self, ctrl: "StepController") -> None:
        st = ctrl.state
        s = self.stages
        t = st.current_time
        h = st.stepsize
        y = ctrl.buffers.current
        y_new = ctrl.buffers.new
        fn = self._fn
        yjm1, yjm2 = self._yjm1, self._yjm2

        w0 = 1.0 + 2.0 / (13.0 * s * s)
        temp1 = w0 * w0 - 1.0
        temp2 = math.sqrt(temp1)
        arg = s * math.log(w0 + temp2)
        w1 = math.sinh(arg) * temp1 / (math.cosh(arg) * s * temp2 - w0 * math.sinh(arg))
        bjm1 = 1.0 / (4.0 * w0 * w0)
        bjm2 = bjm1

        # first stage
        yjm2[:] = y
        mus = w1 * bjm1
        np.multiply(fn, h * mus, out=yjm1)
        yjm1 += y
        thjm2, thjm1 = 0.0, mus
        zjm1, zjm2 = w0, 1.0
        dzjm1, dzjm2 = 1.0, 0.0
        d2zjm1, d2zjm2 = 0.0, 0.0

        for j in range(2, s + 1):
            zj = 2.0 * w0 * zjm1 - zjm2
            dzj = 2.0 * w0 * dzjm1 - dzjm2 + 2.0 * zjm1
            d2zj = 2.0 * w0 * d2zjm1 - d2zjm2 + 4.0 * dzjm1
            bj = d2zj / (dzj * dzj)
            ajm1 = 1.0 - zjm1 * bjm1
            mu = 2.0 * w0 * bj / bjm1
            nu = -bj / bjm2
            mus = mu * w1 / w0

            ctrl.eval_rhs(t + h * thjm1, yjm1, y_new)
            y_new *= h * mus
            y_new += mu * yjm1
            y_new += nu * yjm2
            y_new += (1.0 - mu - nu) * y
            y_new -= (h * mus * ajm1) * fn

            thj = mu * thjm1 + nu * thjm2 + mus * (1.0 - ajm1)

            if j < s:
                yjm1, yjm2 = yjm2, yjm1
                yjm1[:] = y_new
                thjm2, thjm1 = thjm1, thj
                bjm2, bjm1 = bjm1, bj
                zjm2, zjm1 = zjm1, zj
                dzjm2, dzjm1 = dzjm1, dzj
                d2zjm2, d2zjm1 = d2zjm1, d2zj

        st.new_time = t + h
        ctrl.eval_rhs(st.new_time, y_new, self._temp1)

    def estimate_error(self, ctrl: "StepController") -> None:
        y = ctrl.buffers.current
        y_new = ctrl.buffers.new
        h = ctrl.state.stepsize

        np.maximum(np.abs(y), np.abs(y_new), out=self._temp2)
        ctrl.calculate_weights(self._temp2)

        err = ctrl.buffers.new_local_error
        np.subtract(y, y_new, out=err)
        err *= 0.8
        err += (0.4 * h) * (self._fn + self._temp1)
        ctrl.errors.new_local_error_norm = ctrl.weighted_norm(err)

    def stepsize_after_accept(self, ctrl: "StepController", first: bool) -> None:
        st = ctrl.state
        errors = ctrl.errors
        new = errors.new_local_error_norm
        h = st.stepsize
        factor = _MAX_FACTOR
        if first or self._hold == 0.0:
            temp1 = new ** (1.0 / 3.0)
            if 0.8 < factor * temp1:
                factor = 0.8 / temp1
        else:
            temp1 = 0.8 * h * errors.old_local_error_norm ** (1.0 / 3.0)
            temp2 = self._hold * new ** (2.0 / 3.0)
            if temp1 < factor * temp2:
                factor = temp1 / temp2
        st.stepsize = max(st.min_stepsize, h * max(_MIN_FACTOR, factor))

    def stepsize_after_reject(self, ctrl: "StepController") -> None:
        st = ctrl.state
        st.stepsize = self.config.safety * st.stepsize / ctrl.errors.new_local_error_norm ** (1.0 / 3.0)

    def after_reject(self, ctrl: "StepController") -> None:
        self.spectral.needs_recompute = not self.spectral.jacobian_at_t

    def after_accept(self, ctrl: "StepController") -> None:
        sp = self.spectral
        self._hold = ctrl.state.old_stepsize
        sp.jacobian_at_t = False
        sp.needs_recompute = False
        self._since_estimate = (self._since_estimate + 1) % self.config.recompute_every
        if self._since_estimate == 0:
            sp.needs_recompute = True
        self._fn, self._temp1 = self._temp1, self._fn
        ctrl.stats.update_stage(self.stages)

    def history_extra(self) -> Optional[int]:
        return self.stages

    def describe(self) -> list[str]:
        cfg = self.config
        return [
            f"Maximum number of stages:            {self.max_stage}",
            f"Maximum spectral radius iterations:  {cfg.max_iterations}",
            f"Spectral radius recompute interval:  {cfg.recompute_every}",
            f"Safety factor:                       {cfg.safety:g}",
            f"Small number:                        {self.small:g} "
            "(spectral radii below this do not restrict the step size)",
        ]


class ChebyshevSpec:
    def __init__(self, meta: IntegratorMeta | None = None):
        if meta is None:
            meta = IntegratorMeta(
                name="rkc",
                family="rkc",
                order=2,
                error_order=2,
                stages=None,
                fsal=False,
                stiff_ok=True,
                description="Stabilized recursive Runge-Kutta-Chebyshev",
                aliases=("chebyshev", "runge_kutta_chebyshev"),
                caps=IntegratorCaps(jacobian="optional", history_extra="stages"),
            )
        self.meta = meta

    def create_stage(self, **options) -> StabilizedChebyshevStage:
        return StabilizedChebyshevStage(self.meta, **options)

