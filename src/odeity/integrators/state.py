# src/odeity/integrators/state.py
from __future__ import annotations
from dataclasses import dataclass, field
import numpy as np

__all__ = ["IntegrationState", "ErrorContext"]


@dataclass
class IntegrationState:
    """
    Scalar stepping state owned by one integrator instance. Only the
    StepController and its stage strategy mutate it.
    """
    current_time: float = 0.0
    old_time: float = 0.0
    old_stepsize: float = 0.0
    stepsize: float = 0.0
    end_time: float = 0.0
    new_time: float = 0.0
    min_stepsize: float = 0.0
    last: bool = False   # can this step land exactly on end_time?


@dataclass
class ErrorContext:
    """
    Error weights and the two most recent local error norms.
    ``weights`` holds 1 / (rtol * |y| + atol) and is always strictly positive.
    """
    weights: np.ndarray = field(default_factory=lambda: np.zeros(0))
    new_local_error_norm: float = 0.0
    old_local_error_norm: float = 0.0
