# src/odeity/integrators/rkc/__init__.py
from __future__ import annotations

from ..registry import register
from .spectral import (
    SpectralRadiusEstimate,
    jacobian_power_iteration,
    nonlinear_power_iteration,
)
from .stage import ChebyshevSpec, StabilizedChebyshevStage, default_max_stage, stage_count

__all__ = [
    "ChebyshevSpec", "StabilizedChebyshevStage", "SpectralRadiusEstimate",
    "nonlinear_power_iteration", "jacobian_power_iteration",
    "stage_count", "default_max_stage",
]


# Auto-register on package import
def _auto_register():
    register(ChebyshevSpec())


_auto_register()
