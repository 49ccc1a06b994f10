# src/odeity/integrators/base.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Optional, Protocol

if TYPE_CHECKING:
    from .controller import StepController
    from .stats import IntegratorStats

__all__ = [
    "IntegratorCaps", "IntegratorMeta", "StageStrategy", "IntegratorSpec",
]

Family = Literal["erk", "rkc"]
JacobianPolicy = Literal["none", "optional"]


# NOTE: When you need to add an integrator with a new capability add a field
#       below. Existing integrators keep the default.
@dataclass(frozen=True)
class IntegratorCaps:
    """
    Implementation-level capabilities that do not change the mathematical
    identity of the method.
    """
    jacobian: JacobianPolicy = "none"     # how this impl uses a problem Jacobian
    history_extra: Optional[str] = None   # name of the extra history column


@dataclass(frozen=True)
class IntegratorMeta:
    """
    Public metadata for an integrator: classification plus a caps block.
    ``stages`` is None for methods that choose their stage count per step.
    """
    name: str
    family: Family
    order: int
    error_order: int
    stages: Optional[int] = None
    fsal: bool = False
    stiff_ok: bool = False
    description: str = ""
    aliases: tuple[str, ...] = ()
    caps: IntegratorCaps = field(default_factory=IntegratorCaps)


class StageStrategy(Protocol):
    """
    Method-specific half of an adaptive integrator.

    The StepController owns the integration state and drives the step state
    machine; a StageStrategy supplies the numerics. Every hook receives the
    controller and reads/writes its ``state``, ``errors``, ``buffers`` and
    ``stats``. Implementations MUST:
      - expose ``meta: IntegratorMeta``
      - ``make_stats()`` returning a fresh stats object for the method
      - ``allocate(ctrl, n)`` size their work vectors and seed f(t0, y0)
      - ``initialize_integration(ctrl)`` one-time setup per integrate_to()
      - ``estimate_initial_stepsize(ctrl)`` set ``state.stepsize`` and
        ``state.min_stepsize``
      - ``start_step(ctrl)`` clamp/shrink the step towards end_time and set ``state.last``
      - ``compute_stage(ctrl)`` fill ``buffers.new`` and ``state.new_time``
      - ``estimate_error(ctrl)`` fill ``buffers.new_local_error`` and
        ``errors.new_local_error_norm``
      - ``stepsize_after_accept(ctrl, first)`` / ``stepsize_after_reject(ctrl)``
      - ``after_accept(ctrl)`` / ``after_reject(ctrl)`` bookkeeping
      - ``history_extra()`` value for the extra history column, or None
    """

    meta: IntegratorMeta

    def make_stats(self) -> "IntegratorStats": ...
    def allocate(self, ctrl: "StepController", n: int) -> None: ...
    def initialize_integration(self, ctrl: "StepController") -> None: ...
    def estimate_initial_stepsize(self, ctrl: "StepController") -> None: ...
    def start_step(self, ctrl: "StepController") -> None: ...
    def compute_stage(self, ctrl: "StepController") -> None: ...
    def estimate_error(self, ctrl: "StepController") -> None: ...
    def stepsize_after_accept(self, ctrl: "StepController", first: bool) -> None: ...
    def stepsize_after_reject(self, ctrl: "StepController") -> None: ...
    def after_accept(self, ctrl: "StepController") -> None: ...
    def after_reject(self, ctrl: "StepController") -> None: ...
    def history_extra(self) -> Optional[int]: ...
    def describe(self) -> list[str]: ...


class IntegratorSpec(Protocol):
    """
    Registry entry: metadata plus a factory for fresh stage strategies.
    Each integrator instance gets its own strategy (work vectors are per run).
    """

    meta: IntegratorMeta

    def create_stage(self, **options) -> StageStrategy: ...
