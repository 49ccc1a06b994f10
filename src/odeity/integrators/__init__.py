# src/odeity/integrators/__init__.py
from .base import IntegratorCaps, IntegratorMeta, IntegratorSpec, StageStrategy
from .registry import register, get_integrator, registry, list_integrators, create_integrator
from .controller import StepController
from .stats import IntegratorStats, ChebyshevStats

# Import concrete integrators to trigger auto-registration
from . import erk, rkc
from .erk import ButcherTableau, EmbeddedRkStage
from .rkc import StabilizedChebyshevStage

__all__ = [
    "IntegratorCaps", "IntegratorMeta", "IntegratorSpec", "StageStrategy",
    "register", "get_integrator", "registry", "list_integrators", "create_integrator",
    "StepController", "IntegratorStats", "ChebyshevStats",
    "ButcherTableau", "EmbeddedRkStage", "StabilizedChebyshevStage",
    "erk", "rkc",
]
