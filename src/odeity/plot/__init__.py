# src/odeity/plot/__init__.py
from __future__ import annotations

from . import _export as export
from ._export import savefig, show
from .history import plot_stepsize_history

__all__ = ["export", "savefig", "show", "plot_stepsize_history"]
