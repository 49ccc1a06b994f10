# src/odeity/problems/__init__.py
from .base import ExplicitOde, FunctionOde
from .builtin import (
    LinearDecay, TimeDependentLinear, DetestB1, VanDerPol, Robertson, HeatEquation,
    BUILTIN_PROBLEMS, make_problem, list_problems,
)

__all__ = [
    "ExplicitOde", "FunctionOde",
    "LinearDecay", "TimeDependentLinear", "DetestB1", "VanDerPol", "Robertson", "HeatEquation",
    "BUILTIN_PROBLEMS", "make_problem", "list_problems",
]
