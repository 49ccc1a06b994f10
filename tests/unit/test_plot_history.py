# tests/unit/test_plot_history.py
from __future__ import annotations

import matplotlib

matplotlib.use("Agg", force=True)
import matplotlib.pyplot as plt
import numpy as np
import pytest

from odeity.plot import export, plot_stepsize_history
from odeity.runtime.buffers import StepHistory


def _history(extra=False):
    h = StepHistory(cap=2)
    for i, t in enumerate([0.1, 0.3, 0.7, 1.0]):
        h.record(t, 0.1 * (i + 1), i + 2 if extra else None)
    return h


def test_plot_stepsize_history_lines():
    ax = plot_stepsize_history(_history(), title="rk23")
    try:
        line = ax.get_lines()[0]
        np.testing.assert_allclose(line.get_xdata(), [0.1, 0.3, 0.7, 1.0])
        assert ax.get_yscale() == "log"
        assert ax.get_title() == "rk23"
        assert not hasattr(ax, "stage_axis")
    finally:
        plt.close(ax.figure)


def test_plot_stepsize_history_stage_axis():
    fig, ax = plt.subplots()
    try:
        out = plot_stepsize_history(_history(extra=True), ax=ax)
        assert out is ax
        stages = ax.stage_axis.get_lines()[0].get_ydata()
        np.testing.assert_array_equal(stages, [2, 3, 4, 5])
    finally:
        plt.close(fig)


def test_plot_empty_history_raises():
    with pytest.raises(ValueError, match="history is empty"):
        plot_stepsize_history(StepHistory())


def test_savefig_infers_format_from_extension(tmp_path):
    fig, ax = plt.subplots()
    ax.plot([0, 1], [0, 1])
    try:
        out = export.savefig(ax, tmp_path / "sub" / "plot.pdf")
    finally:
        plt.close(fig)
    assert out == [tmp_path / "sub" / "plot.pdf"]
    assert out[0].exists()


def test_savefig_multiple_formats(tmp_path):
    fig, ax = plt.subplots()
    try:
        out = export.savefig(fig, tmp_path / "plot", fmts=(".PNG", "pdf", "png"))
    finally:
        plt.close(fig)
    assert out == [tmp_path / "plot.png", tmp_path / "plot.pdf"]
    assert all(p.exists() for p in out)
    with pytest.raises(ValueError):
        export.savefig(fig, tmp_path / "x", fmts=("",))
