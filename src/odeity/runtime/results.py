# src/odeity/runtime/results.py
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from odeity.errors import ConfigError
from odeity.runtime.buffers import StepHistory
from odeity.runtime.diagnostics import DiagnosticsSink, HistorySink

if TYPE_CHECKING:
    from odeity.config import RunConfig
    from odeity.integrators.controller import StepController
    from odeity.integrators.stats import IntegratorStats

__all__ = ["Results", "run_config"]


@dataclass(frozen=True)
class Results:
    """
    Output of a configured run.

    Fields:
      - times:  (outputs + 1,) output times, times[0] = t0, times[-1] = t_end
      - states: (n_state, outputs + 1) solution at each output time (columns)
      - stats:  counters of the integrator after the run
      - history: accepted-step history, or None if not recorded
      - integrator: the StepController that produced the run
    """
    times: np.ndarray
    states: np.ndarray
    stats: "IntegratorStats"
    history: Optional[StepHistory]
    integrator: "StepController"

    def __len__(self) -> int:
        return int(self.times.shape[0])

    @property
    def final_time(self) -> float:
        return float(self.times[-1])

    @property
    def final_state(self) -> np.ndarray:
        return self.states[:, -1]

    def state(self, index: int) -> np.ndarray:
        """Time series of one state component."""
        return self.states[index, :]


def run_config(
    cfg: "RunConfig",
    *,
    diagnostics: Optional[DiagnosticsSink] = None,
    history_sink: Optional[HistorySink] = None,
) -> Results:
    """
    Build the problem and integrator described by ``cfg`` and integrate
    through ``cfg.run.outputs`` equally spaced output times.
    """
    from odeity.integrators.registry import create_integrator
    from odeity.problems.builtin import make_problem

    problem = make_problem(cfg.problem.name, **cfg.problem.params)
    if cfg.problem.y0 is not None:
        y0 = np.asarray(cfg.problem.y0, dtype=np.float64)
    else:
        y0 = problem.default_initial_state()
        if y0 is None:
            raise ConfigError(
                f"Problem '{cfg.problem.name}' has no default initial state; set [problem].y0"
            )

    icfg = cfg.integrator
    ctrl = create_integrator(
        icfg.name,
        rtol=icfg.rtol,
        atol=icfg.atol,
        diagnostics=diagnostics,
        jit=icfg.jit,
        **icfg.options,
    )
    ctrl.assign(problem, cfg.run.t0, y0)
    save = icfg.save_history or history_sink is not None
    ctrl.set_save_history(save, history_sink)

    times = np.linspace(cfg.run.t0, cfg.run.t_end, cfg.run.outputs + 1)
    states = np.empty((y0.shape[0], times.shape[0]))
    states[:, 0] = ctrl.current_state
    for i in range(1, times.shape[0]):
        ctrl.integrate_to(times[i])
        states[:, i] = ctrl.current_state

    return Results(
        times=times,
        states=states,
        stats=ctrl.stats,
        history=ctrl.history if save else None,
        integrator=ctrl,
    )
