# src/odeity/errors.py
from __future__ import annotations
from typing import Iterable, List

__all__ = [
    "OdeityError",
    "ConfigError",
    "OutOfRangeError",
    "ToleranceOutOfRange",
    "InvalidTimeRange",
    "EmptyStateError",
    "UnknownIntegratorError",
    "NotAssignedError",
    "StepTooSmall",
    "MaxSpectralRadiusIterationsExceeded",
    "NonFiniteStateError",
]


class OdeityError(Exception):
    """Base error for the odeity package."""


class ConfigError(OdeityError):
    """Raised when a configuration value or file is malformed or invalid."""
    def __init__(self, message: str):
        super().__init__(message)


class OutOfRangeError(ConfigError):
    """Raised when a numeric setting lies outside its admissible range."""
    def __init__(self, value: float, lower: float, upper: float, name: str = "value"):
        self.value = value
        self.lower = lower
        self.upper = upper
        self.name = name
        super().__init__(
            f"The {name} {value!r} has to be in the range [{lower!r}, {upper!r}]"
        )


class ToleranceOutOfRange(OutOfRangeError):
    """Raised when a relative or absolute tolerance is not admissible."""


class InvalidTimeRange(ConfigError):
    """Raised when the requested output time is not clearly after the current time."""
    def __init__(self, t_out: float, current_time: float):
        self.t_out = t_out
        self.current_time = current_time
        super().__init__(
            f"Final integration time {t_out!r} is lower than current time "
            f"{current_time!r} or it is not sufficiently apart"
        )


class EmptyStateError(ConfigError):
    """Raised when the initial state has no components or the wrong shape."""
    def __init__(self, expected: int, shape: tuple):
        self.expected = expected
        self.shape = shape
        super().__init__(
            f"Initial state must be a non-empty 1D array of length {expected}; got shape {shape}"
        )


class UnknownIntegratorError(ConfigError, KeyError):
    """Raised when an integrator name or alias is not registered."""
    def __init__(self, name: str, available: Iterable[str]):
        self.name = name
        self.available: List[str] = sorted(available)
        msg = f"Unknown integrator: {name!r}\n"
        if self.available:
            msg += "Available integrators:\n"
            for a in self.available:
                msg += f"  - {a}\n"
        ConfigError.__init__(self, msg)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class NotAssignedError(OdeityError):
    """Raised when stepping is requested before a problem has been assigned."""
    def __init__(self, what: str = "integrate"):
        super().__init__(f"Cannot {what}: no ODE problem assigned (call assign() first)")


class StepTooSmall(OdeityError):
    """
    Raised when the step size needed to meet the requested accuracy falls
    below what the floating-point precision can resolve.
    """
    def __init__(self, stepsize: float, min_stepsize: float):
        self.stepsize = stepsize
        self.min_stepsize = min_stepsize
        super().__init__(
            "Too small time stepsize for current precision would be needed to achieve "
            f"required accuracy (time stepsize = {stepsize!r}, minimum stepsize = {min_stepsize!r})"
        )


class MaxSpectralRadiusIterationsExceeded(OdeityError):
    """Raised when the power iteration for the spectral radius does not converge."""
    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__(
            f"Maximum number of iterations ({max_iterations}) exceeded during "
            "computation of the spectral radius of Jacobian"
        )


class NonFiniteStateError(OdeityError):
    """Raised when the candidate state or its local error estimate is NaN or infinite."""
    def __init__(self, time: float, stepsize: float):
        self.time = time
        self.stepsize = stepsize
        super().__init__(
            f"Non-finite state or local error encountered at t={time!r} with stepsize {stepsize!r}; "
            "the right-hand side produced NaN or inf"
        )
