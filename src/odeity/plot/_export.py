# src/odeity/plot/_export.py
from __future__ import annotations
from pathlib import Path
from typing import Iterable, Optional

import matplotlib.pyplot as plt

__all__ = ["savefig", "show"]


def _as_figure(fig_or_ax) -> plt.Figure:
    fig = getattr(fig_or_ax, "figure", None)
    return fig if fig is not None else fig_or_ax


def _formats(fmts: Iterable[str]) -> list[str]:
    out: list[str] = []
    for f in fmts:
        f = str(f).lower().lstrip(".")
        if f and f not in out:
            out.append(f)
    if not out:
        raise ValueError("fmts must contain at least one non-empty format.")
    return out


def savefig(
    fig_or_ax,
    path: str | Path,
    *,
    fmts: Optional[Iterable[str]] = None,
    dpi: int = 150,
    bbox_inches: str | None = "tight",
) -> list[Path]:
    """
    Write the figure (or the figure owning an Axes) once per format, as
    ``<path without suffix>.<fmt>``. Without ``fmts`` the format comes
    from the path's extension, falling back to png. Parent directories
    are created. Returns the written paths in order.
    """
    fig = _as_figure(fig_or_ax)
    path = Path(path)
    if fmts is None:
        fmts = (path.suffix or ".png",)
    stem = path.with_suffix("")
    stem.parent.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for fmt in _formats(fmts):
        outfile = stem.with_suffix(f".{fmt}")
        fig.savefig(outfile, dpi=dpi, bbox_inches=bbox_inches)
        written.append(outfile)
    return written


def show() -> None:
    plt.show()
