# src/odeity/runtime/diagnostics.py
from __future__ import annotations
import logging
from typing import IO, Optional, Protocol

from odeity.utils.logger import get_logger

__all__ = [
    "DiagnosticsSink", "NullSink", "LoggingSink",
    "HistorySink", "TextHistoryWriter",
]


class DiagnosticsSink(Protocol):
    """
    Receiver for free-form diagnostic messages emitted by an integrator.
    Passed in at construction; integrators never reach for a global logger.
    """

    def debug(self, msg: str) -> None: ...
    def info(self, msg: str) -> None: ...
    def warning(self, msg: str) -> None: ...


class NullSink:
    """Discards everything."""

    def debug(self, msg: str) -> None:
        pass

    def info(self, msg: str) -> None:
        pass

    def warning(self, msg: str) -> None:
        pass


class LoggingSink:
    """Forwards diagnostics to a :mod:`logging` logger (default ``odeity``)."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("odeity.integrator")

    def debug(self, msg: str) -> None:
        self.logger.debug(msg)

    def info(self, msg: str) -> None:
        self.logger.info(msg)

    def warning(self, msg: str) -> None:
        self.logger.warning(msg)


class HistorySink(Protocol):
    """External receiver of accepted-step records."""

    def record(self, time: float, stepsize: float, extra: int | None = None) -> None: ...


class TextHistoryWriter:
    """
    Writes one line per accepted step: ``time stepsize [extra]`` in
    scientific notation (width 18, 12 digits).
    """

    def __init__(self, stream: IO[str]):
        self.stream = stream

    def record(self, time: float, stepsize: float, extra: int | None = None) -> None:
        line = f"{time:18.12e} {stepsize:18.12e}"
        if extra is not None:
            line += f" {int(extra)}"
        self.stream.write(line + "\n")
