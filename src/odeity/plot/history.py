# src/odeity/plot/history.py
from __future__ import annotations
from typing import Optional

import matplotlib.pyplot as plt

from odeity.runtime.buffers import StepHistory

__all__ = ["plot_stepsize_history"]


def plot_stepsize_history(
    history: StepHistory,
    ax: Optional[plt.Axes] = None,
    *,
    title: Optional[str] = None,
    color: str = "C0",
    stage_color: str = "C1",
) -> plt.Axes:
    """
    Step size against time (log scale). When the history carries an extra
    column (RKC stage counts) it is drawn as a step line on a twin axis,
    reachable as ``ax.stage_axis``.
    """
    if len(history) == 0:
        raise ValueError("history is empty; enable set_save_history(True) before integrating")
    if ax is None:
        _fig, ax = plt.subplots(figsize=(7.0, 3.5))

    t = history.times
    ax.semilogy(t, history.stepsizes, marker=".", ms=3, lw=1.0, color=color, label="step size")
    ax.set_xlabel("t")
    ax.set_ylabel("step size")
    if title:
        ax.set_title(title)

    extra = history.extra
    if extra is not None:
        sax = ax.twinx()
        sax.step(t, extra, where="pre", lw=1.0, color=stage_color, label="stages")
        sax.set_ylabel("stages")
        ax.stage_axis = sax
    return ax
