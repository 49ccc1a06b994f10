# src/odeity/runtime/__init__.py
from .phases import StepPhase
from .buffers import StateBuffers, StepHistory
from .diagnostics import NullSink, LoggingSink, TextHistoryWriter
from .kernels import KernelSet, get_kernels

__all__ = [
    "StepPhase", "StateBuffers", "StepHistory",
    "NullSink", "LoggingSink", "TextHistoryWriter",
    "KernelSet", "get_kernels",
]
