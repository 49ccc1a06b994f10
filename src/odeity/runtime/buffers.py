# src/odeity/runtime/buffers.py
from __future__ import annotations
from dataclasses import dataclass
import numpy as np

# NOTE: numpy only; no integrator imports here.

__all__ = [
    "StateBuffers", "HistoryPool", "StepHistory",
    "allocate_history", "grow_history",
]


def _zeros(shape: tuple[int, ...], dtype) -> np.ndarray:
    a = np.zeros(shape, dtype=dtype)
    # We rely on C-contiguous arrays for simple slicing/copy.
    if not a.flags.c_contiguous:
        a = np.ascontiguousarray(a)
    return a


# ---- Double-buffered state / local error ------------------------------------

class StateBuffers:
    """
    Two pre-allocated state vectors and two local-error vectors.

    ``current``/``new`` (and ``local_error``/``new_local_error``) are views
    selected by an index that is toggled on every accepted step, so no
    reallocation happens inside the step loop.
    """

    __slots__ = ("_state", "_error", "_cur", "n_state")

    def __init__(self, n_state: int, dtype=np.float64):
        self.n_state = int(n_state)
        self._state = (_zeros((n_state,), dtype), _zeros((n_state,), dtype))
        self._error = (_zeros((n_state,), dtype), _zeros((n_state,), dtype))
        self._cur = 0

    @property
    def current(self) -> np.ndarray:
        return self._state[self._cur]

    @property
    def new(self) -> np.ndarray:
        return self._state[1 - self._cur]

    @property
    def local_error(self) -> np.ndarray:
        return self._error[self._cur]

    @property
    def new_local_error(self) -> np.ndarray:
        return self._error[1 - self._cur]

    @property
    def index(self) -> int:
        return self._cur

    def swap(self) -> None:
        """current <-> new, local_error <-> new_local_error."""
        self._cur = 1 - self._cur


# ---- Step history -----------------------------------------------------------

@dataclass(frozen=True)
class HistoryPool:
    """
    Step history storage.
    Shapes:
      - T: (cap,) float64      - time reached by the accepted step
      - H: (cap,) float64      - step size used
      - EXTRA: (cap,) int64    - method-specific column (RKC stage count), -1 if unused
    """
    T: np.ndarray
    H: np.ndarray
    EXTRA: np.ndarray
    cap: int


def allocate_history(cap: int) -> HistoryPool:
    cap = max(1, int(cap))
    extra = _zeros((cap,), np.int64)
    extra[:] = -1
    return HistoryPool(
        T=_zeros((cap,), np.float64),
        H=_zeros((cap,), np.float64),
        EXTRA=extra,
        cap=cap,
    )


def grow_history(pool: HistoryPool, filled: int, min_needed: int) -> HistoryPool:
    """
    Return a new pool with capacity >= min_needed (doubling), copying the
    first `filled` records.
    """
    new_cap = pool.cap
    while new_cap < min_needed:
        new_cap *= 2
    grown = allocate_history(new_cap)
    if filled:
        grown.T[:filled] = pool.T[:filled]
        grown.H[:filled] = pool.H[:filled]
        grown.EXTRA[:filled] = pool.EXTRA[:filled]
    return grown


class StepHistory:
    """
    Growable, time-ordered record of accepted steps.
    """

    def __init__(self, cap: int = 256):
        self._pool = allocate_history(cap)
        self._n = 0

    def __len__(self) -> int:
        return self._n

    def clear(self) -> None:
        self._n = 0

    def record(self, time: float, stepsize: float, extra: int | None = None) -> None:
        if self._n >= self._pool.cap:
            self._pool = grow_history(self._pool, self._n, self._n + 1)
        i = self._n
        self._pool.T[i] = time
        self._pool.H[i] = stepsize
        self._pool.EXTRA[i] = -1 if extra is None else int(extra)
        self._n += 1

    @property
    def times(self) -> np.ndarray:
        return self._pool.T[: self._n]

    @property
    def stepsizes(self) -> np.ndarray:
        return self._pool.H[: self._n]

    @property
    def extra(self) -> np.ndarray | None:
        """Extra column, or None when no record carried one."""
        col = self._pool.EXTRA[: self._n]
        if self._n == 0 or np.all(col < 0):
            return None
        return col

    @property
    def capacity(self) -> int:
        return self._pool.cap

    def assert_monotone_time(self) -> None:
        t = self.times
        if t.size > 1 and np.any(np.diff(t) < 0.0):
            raise RuntimeError("Step history times are not monotone non-decreasing")
