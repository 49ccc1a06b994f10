# src/odeity/integrators/stats.py
from __future__ import annotations
import math
from dataclasses import dataclass, fields
from typing import Any, Dict

__all__ = ["IntegratorStats", "ChebyshevStats"]


@dataclass
class IntegratorStats:
    """
    Monotonically increasing counters for one integration run. Reset by
    ``assign``; never decremented.
    """
    rhs_evaluations: int = 0
    jacobian_evaluations: int = 0
    accepted_steps: int = 0
    rejected_steps: int = 0
    max_stepsize: float = 0.0
    min_stepsize: float = math.inf

    title = "Runge-Kutta statistics"

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, f.default)

    def update_stepsize(self, stepsize: float) -> None:
        if stepsize > self.max_stepsize:
            self.max_stepsize = stepsize
        if stepsize < self.min_stepsize:
            self.min_stepsize = stepsize

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def _rows(self) -> list[tuple[str, str]]:
        rows = [
            ("RHS evaluations", f"{self.rhs_evaluations:15d}"),
            ("Accepted steps", f"{self.accepted_steps:15d}"),
            ("Rejected steps", f"{self.rejected_steps:15d}"),
        ]
        if self.jacobian_evaluations:
            rows.append(("Jacobian-vector products", f"{self.jacobian_evaluations:15d}"))
        if self.accepted_steps:
            rows.append(("Maximum stepsize", f"{self.max_stepsize:15.8g}"))
            rows.append(("Minimum stepsize", f"{self.min_stepsize:15.8g}"))
        return rows

    def report(self) -> str:
        rows = self._rows()
        width = max(len(label) for label, _ in rows) + 2
        rule = "-" * (width + 15)
        lines = [self.title, "-" * len(self.title), ""]
        lines += [f"{label:<{width}}{value}" for label, value in rows]
        lines.append(rule)
        return "\n".join(lines)


@dataclass
class ChebyshevStats(IntegratorStats):
    """Adds spectral-radius and stage-count bookkeeping for RKC."""
    spectral_radius_estimates: int = 0
    spectral_radius_iterations: int = 0
    max_stage: int = 0
    last_spectral_radius: float = 0.0

    title = "Runge-Kutta-Chebyshev statistics"

    def update_stage(self, stages: int) -> None:
        if stages > self.max_stage:
            self.max_stage = stages

    def _rows(self) -> list[tuple[str, str]]:
        rows = super()._rows()
        rows.append(("Spect. rad. estimates", f"{self.spectral_radius_estimates:15d}"))
        rows.append(("Spect. rad. iters", f"{self.spectral_radius_iterations:15d}"))
        rows.append(("Maximum stage used", f"{self.max_stage:15d}"))
        return rows
