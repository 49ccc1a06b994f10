# src/odeity/runtime/phases.py
from __future__ import annotations
from enum import IntEnum

__all__ = [
    "StepPhase",
    # int constants
    "START", "COMPUTE_STAGE", "ESTIMATE_ERROR", "ACCEPTED", "REJECTED",
]


class StepPhase(IntEnum):
    """Phases of one adaptive integration step."""
    START = 0            # clamp/shrink the step towards end_time
    COMPUTE_STAGE = 1    # stage strategy produces the candidate state
    ESTIMATE_ERROR = 2   # weighted RMS norm of the local error
    ACCEPTED = 3         # committed; step size grown/adjusted
    REJECTED = 4         # retried in place with a smaller step


START: int = int(StepPhase.START)
COMPUTE_STAGE: int = int(StepPhase.COMPUTE_STAGE)
ESTIMATE_ERROR: int = int(StepPhase.ESTIMATE_ERROR)
ACCEPTED: int = int(StepPhase.ACCEPTED)
REJECTED: int = int(StepPhase.REJECTED)


__doc__ = (__doc__ or "") + r"""

STEP STATE MACHINE

    START -> COMPUTE_STAGE -> ESTIMATE_ERROR -+-> ACCEPTED  (norm <= 1.0)
      ^                                       |
      +---------------- REJECTED <------------+             (norm >  1.0)

Rules:
- A rejected step re-enters START with the same current state and time; only
  the step size has shrunk. Falling below min_stepsize is fatal (StepTooSmall).
- ACCEPTED commits old_time/old_stepsize, advances current_time (exactly to
  end_time on the last step), adapts the step size, swaps the state/error
  double buffers and recomputes the error weights from the new state.
"""
