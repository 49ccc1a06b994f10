# src/odeity/__init__.py
from __future__ import annotations

from .errors import (
    OdeityError, ConfigError, ToleranceOutOfRange, InvalidTimeRange,
    StepTooSmall, MaxSpectralRadiusIterationsExceeded, NonFiniteStateError,
)
from .runtime.phases import StepPhase
from .problems import ExplicitOde, FunctionOde, make_problem, list_problems
from .integrators import (
    IntegratorMeta, StepController, IntegratorStats, ChebyshevStats,
    register, get_integrator, registry, list_integrators, create_integrator,
)
from .config import RunConfig, load_config
from .runtime.results import Results, run_config

__version__ = "0.1.0"

__all__ = [
    # Core entry points
    "create_integrator", "StepController", "run_config", "load_config",
    # Problems
    "ExplicitOde", "FunctionOde", "make_problem", "list_problems",
    # Integrator registry
    "IntegratorMeta", "register", "get_integrator", "registry", "list_integrators",
    # Results / stats
    "Results", "RunConfig", "IntegratorStats", "ChebyshevStats", "StepPhase",
    # Errors
    "OdeityError", "ConfigError", "ToleranceOutOfRange", "InvalidTimeRange",
    "StepTooSmall", "MaxSpectralRadiusIterationsExceeded", "NonFiniteStateError",
]
