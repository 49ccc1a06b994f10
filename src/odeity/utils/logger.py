# src/odeity/utils/logger.py
"""
Helpers around :mod:`logging` for the ``odeity`` logger hierarchy.

Usage
-----
>>> from odeity.utils.logger import get_logger
>>> log = get_logger(__name__)
>>> log.debug("rejected step")
"""
from __future__ import annotations

import logging
import sys

__all__ = ["ROOT_LOGGER", "get_logger", "set_level", "setup"]

ROOT_LOGGER = "odeity"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``odeity`` hierarchy.

    Fully qualified module names (``odeity.integrators.controller``) inherit
    from the ``odeity`` root logger, so a single :func:`set_level` call
    controls everything. Other names are nested under ``odeity.``.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def set_level(level: int | str = logging.INFO) -> None:
    """Set the log level for all odeity loggers at once."""
    logging.getLogger(ROOT_LOGGER).setLevel(level)


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is when a record is emitted."""

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def setup(level: int | str = logging.INFO, stream=None) -> None:
    """Attach a stderr handler with the odeity format.

    Extra calls only update the level.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(stream) if stream is not None else _StderrHandler()
        handler.setFormatter(logging.Formatter("%(levelname)-7s: %(message)s"))
        root.addHandler(handler)
    set_level(level)
