# src/odeity/integrators/controller.py
"""
Generic adaptive step controller.

Drives an explicit ODE from ``current_time`` to a requested output time with
repeated start/compute/estimate/accept-or-reject steps. Everything that is
specific to a method family (stage evaluation, error estimate, step-size
rules) is delegated to a StageStrategy; the controller never inspects which
strategy it is running.
"""
from __future__ import annotations

import math
from typing import Optional

import numpy as np

from odeity.errors import (
    InvalidTimeRange,
    EmptyStateError,
    NonFiniteStateError,
    NotAssignedError,
    StepTooSmall,
    ToleranceOutOfRange,
)
from odeity.problems.base import ExplicitOde
from odeity.runtime.buffers import StateBuffers, StepHistory
from odeity.runtime.diagnostics import DiagnosticsSink, HistorySink, NullSink
from odeity.runtime.kernels import get_kernels
from odeity.runtime.phases import StepPhase
from .base import IntegratorMeta, StageStrategy
from .state import ErrorContext, IntegrationState
from .stats import IntegratorStats

__all__ = ["StepController", "EPSILON", "SQRT_EPSILON", "TINY"]

EPSILON = float(np.finfo(np.float64).eps)
SQRT_EPSILON = math.sqrt(EPSILON)
TINY = math.sqrt(float(np.finfo(np.float64).tiny))


class StepController:
    """
    Adaptive integrator: integration state + step state machine around a
    stage strategy.

    Typical use::

        ctrl = StepController(EmbeddedRkStage(RK23), rtol=1e-6, atol=1e-6)
        ctrl.assign(problem, 0.0, y0)
        ctrl.integrate_to(1.0)
        ctrl.current_state
    """

    def __init__(
        self,
        stage: StageStrategy,
        *,
        rtol: float = 1.0e-3,
        atol: float = 1.0e-6,
        diagnostics: Optional[DiagnosticsSink] = None,
        jit: bool = False,
        min_tol: float = 10.0 * EPSILON,
        max_tol: float = 0.1,
    ):
        self.stage = stage
        self.diagnostics: DiagnosticsSink = diagnostics if diagnostics is not None else NullSink()
        self.kernels = get_kernels(jit)
        self.min_tol = float(min_tol)
        self.max_tol = float(max_tol)
        self._rtol = 0.0
        self._atol = 0.0
        self.set_relative_tolerance(rtol)
        self.set_absolute_tolerance(atol)

        self.problem: Optional[ExplicitOde] = None
        self.state = IntegrationState()
        self.errors = ErrorContext()
        self.buffers: Optional[StateBuffers] = None
        self.stats: IntegratorStats = stage.make_stats()
        self.phase = StepPhase.START

        self._save_history = False
        self.history = StepHistory()
        self._history_sink: Optional[HistorySink] = None

    # ---- metadata / configuration -------------------------------------------

    @property
    def meta(self) -> IntegratorMeta:
        return self.stage.meta

    @property
    def name(self) -> str:
        return self.stage.meta.name

    @property
    def relative_tolerance(self) -> float:
        return self._rtol

    @property
    def absolute_tolerance(self) -> float:
        return self._atol

    def set_relative_tolerance(self, rtol: float) -> None:
        rtol = float(rtol)
        if not (self.min_tol <= rtol <= self.max_tol):
            raise ToleranceOutOfRange(rtol, self.min_tol, self.max_tol, "relative tolerance")
        self._rtol = rtol

    def set_absolute_tolerance(self, atol: float) -> None:
        atol = float(atol)
        if not (self.min_tol <= atol <= self.max_tol):
            raise ToleranceOutOfRange(atol, self.min_tol, self.max_tol, "absolute tolerance")
        self._atol = atol

    def configure(self, **kwargs) -> None:
        """Set tolerances and/or stage configuration fields by keyword."""
        if "rtol" in kwargs:
            self.set_relative_tolerance(kwargs.pop("rtol"))
        if "atol" in kwargs:
            self.set_absolute_tolerance(kwargs.pop("atol"))
        if kwargs:
            self.stage.configure(**kwargs)

    def set_save_history(self, save: bool, sink: Optional[HistorySink] = None) -> None:
        """
        Record (time reached, step size[, extra]) after every accepted step.
        Records always go to ``self.history``; ``sink`` receives a copy.
        """
        self._save_history = bool(save)
        self._history_sink = sink if save else None

    @property
    def save_history(self) -> bool:
        return self._save_history

    # ---- problem binding ----------------------------------------------------

    def assign(self, problem: ExplicitOde, t0: float, y0) -> None:
        """
        Bind the problem and initial condition, size all work vectors, reset
        stats and seed the stage strategy (one RHS evaluation).
        """
        n = int(problem.number_of_equations())
        y0 = np.asarray(y0, dtype=np.float64)
        if n <= 0 or y0.ndim != 1 or y0.shape[0] != n:
            raise EmptyStateError(n, y0.shape)

        self.problem = problem
        self.buffers = StateBuffers(n)
        self.buffers.current[:] = y0
        self.state = IntegrationState(current_time=float(t0), old_time=float(t0))
        self.errors = ErrorContext(weights=np.zeros(n))
        self.stats.reset()
        self.history.clear()
        self.calculate_weights(self.buffers.current)
        self.stage.allocate(self, n)

    @property
    def current_time(self) -> float:
        return self.state.current_time

    @property
    def current_state(self) -> np.ndarray:
        """Read-only view of the current state vector."""
        if self.buffers is None:
            raise NotAssignedError("read the current state")
        view = self.buffers.current.view()
        view.flags.writeable = False
        return view

    # ---- helpers used by stage strategies -----------------------------------

    def eval_rhs(self, t: float, y: np.ndarray, out: np.ndarray) -> np.ndarray:
        """Evaluate f(t, y) into ``out`` and count the evaluation."""
        self.problem.rhs(t, y, out)
        self.stats.rhs_evaluations += 1
        return out

    def eval_jvp(self, v: np.ndarray, out: np.ndarray, t: float, y: np.ndarray, fy: np.ndarray) -> np.ndarray:
        """Evaluate J(t, y) @ v into ``out`` and count the evaluation."""
        self.problem.jacobian_vector_product(v, out, t, y, fy)
        self.stats.jacobian_evaluations += 1
        return out

    def calculate_weights(self, y: np.ndarray) -> None:
        self.kernels.inverse_weights(self.errors.weights, y, self._rtol, self._atol)

    def weighted_norm(self, v: np.ndarray) -> float:
        return self.kernels.wrms_norm(v, self.errors.weights)

    # ---- driving ------------------------------------------------------------

    def integrate_to(self, t_out: float) -> None:
        """
        Advance the solution to exactly ``t_out``.

        Raises InvalidTimeRange if t_out is not clearly after the current
        time, StepTooSmall when precision is exhausted, and whatever the
        stage strategy raises (MaxSpectralRadiusIterationsExceeded).
        """
        if self.problem is None:
            raise NotAssignedError("integrate")
        st = self.state
        t_out = float(t_out)
        if not (t_out - st.current_time > EPSILON):
            raise InvalidTimeRange(t_out, st.current_time)

        st.end_time = t_out
        self.stage.initialize_integration(self)
        self.stage.estimate_initial_stepsize(self)

        if st.end_time - st.current_time < st.min_stepsize:
            raise StepTooSmall(st.end_time - st.current_time, st.min_stepsize)

        while st.current_time != st.end_time:
            self.perform_integration_step()

    def integrate_forward(self, dt: float) -> None:
        self.integrate_to(self.state.current_time + dt)

    def perform_integration_step(self) -> None:
        """One accepted step, retrying rejected attempts in place."""
        st = self.state
        stage = self.stage
        while True:
            self.phase = StepPhase.START
            stage.start_step(self)
            self.phase = StepPhase.COMPUTE_STAGE
            stage.compute_stage(self)
            self.phase = StepPhase.ESTIMATE_ERROR
            stage.estimate_error(self)

            norm = self.errors.new_local_error_norm
            if not math.isfinite(norm) or not self.kernels.allfinite1d(self.buffers.new):
                raise NonFiniteStateError(st.current_time, st.stepsize)
            if self.test_accuracy():
                break

            self.phase = StepPhase.REJECTED
            self.handle_rejected_step()

        self.phase = StepPhase.ACCEPTED
        self.complete_step()

    def test_accuracy(self) -> bool:
        return self.errors.new_local_error_norm <= 1.0

    def handle_rejected_step(self) -> None:
        st = self.state
        self.stats.rejected_steps += 1
        self.diagnostics.debug(
            f"{self.name}: step rejected at t={st.current_time:.6e} "
            f"h={st.stepsize:.6e} err={self.errors.new_local_error_norm:.3e}"
        )
        self.stage.stepsize_after_reject(self)
        if not st.stepsize >= st.min_stepsize:
            raise StepTooSmall(st.stepsize, st.min_stepsize)
        self.stage.after_reject(self)

    def complete_step(self) -> None:
        st = self.state
        errors = self.errors
        first = self.stats.accepted_steps == 0
        self.stats.accepted_steps += 1

        st.old_stepsize = st.stepsize
        st.old_time = st.current_time
        st.current_time = st.end_time if st.last else st.new_time

        self.stage.stepsize_after_accept(self, first)

        self.buffers.swap()
        errors.old_local_error_norm = errors.new_local_error_norm
        self.calculate_weights(self.buffers.current)

        self.stage.after_accept(self)

        self.stats.update_stepsize(st.old_stepsize)
        if self._save_history:
            extra = self.stage.history_extra()
            self.history.record(st.current_time, st.old_stepsize, extra)
            if self._history_sink is not None:
                self._history_sink.record(st.current_time, st.old_stepsize, extra)

    # ---- reporting ----------------------------------------------------------

    def describe(self) -> list[str]:
        meta = self.meta
        lines = [
            "ODE integrator information",
            "--------------------------",
            f"Solver name:          {meta.description or meta.name}",
            f"Relative tolerance:   {self._rtol:g}",
            f"Absolute tolerance:   {self._atol:g}",
            f"Order of error:       {meta.error_order}",
        ]
        lines += self.stage.describe()
        return lines

    def print_info(self) -> None:
        for line in self.describe():
            self.diagnostics.info(line)

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return (
            f"StepController({self.name!r}, t={self.state.current_time!r}, "
            f"rtol={self._rtol!r}, atol={self._atol!r})"
        )
