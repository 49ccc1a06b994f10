# src/odeity/config.py
"""
TOML run configuration.

A run file names the integrator, the problem and the output schedule::

    [integrator]
    name = "rkc"
    rtol = 1e-4
    atol = 1e-6
    jit = false
    save_history = true

    [integrator.options]
    max_iterations = 80

    [problem]
    name = "heat"
    params = { n = 101, diffusion = 0.5 }
    y0 = [ ... ]            # optional, defaults to the problem's own

    [run]
    t0 = 0.0
    t_end = 1.0
    outputs = 10

``load_config`` accepts a path or an ``"inline: <toml>"`` string.
"""
from __future__ import annotations

import textwrap
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from odeity.errors import ConfigError

__all__ = ["IntegratorConfig", "ProblemConfig", "RunSettings", "RunConfig", "load_config", "parse_config"]


@dataclass(frozen=True)
class IntegratorConfig:
    name: str = "rk23"
    rtol: float = 1.0e-3
    atol: float = 1.0e-6
    jit: bool = False
    save_history: bool = False
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProblemConfig:
    name: str
    params: Dict[str, Any] = field(default_factory=dict)
    y0: Optional[list[float]] = None


@dataclass(frozen=True)
class RunSettings:
    t0: float = 0.0
    t_end: float = 1.0
    outputs: int = 1


@dataclass(frozen=True)
class RunConfig:
    integrator: IntegratorConfig
    problem: ProblemConfig
    run: RunSettings
    source: str = "<inline>"


def _table(data: Mapping[str, Any], key: str, *, required: bool) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        if required:
            raise ConfigError(f"Missing [{key}] table")
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"[{key}] must be a table, got {type(value).__name__}")
    return value


def _check_keys(table: Mapping[str, Any], allowed: set[str], where: str) -> None:
    unknown = set(table) - allowed
    if unknown:
        raise ConfigError(f"Unknown key(s) in [{where}]: {sorted(unknown)}; allowed: {sorted(allowed)}")


def _number(table: Mapping[str, Any], key: str, default: float, where: str) -> float:
    value = table.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"[{where}].{key} must be a number, got {value!r}")
    return float(value)


def _flag(table: Mapping[str, Any], key: str, default: bool, where: str) -> bool:
    value = table.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"[{where}].{key} must be true or false, got {value!r}")
    return value


def parse_config(data: Mapping[str, Any], source: str = "<inline>") -> RunConfig:
    """Validate a decoded TOML document and build a RunConfig."""
    _check_keys(data, {"integrator", "problem", "run"}, "top level")

    itab = _table(data, "integrator", required=False)
    _check_keys(itab, {"name", "rtol", "atol", "jit", "save_history", "options"}, "integrator")
    name = itab.get("name", "rk23")
    if not isinstance(name, str) or not name:
        raise ConfigError(f"[integrator].name must be a non-empty string, got {name!r}")
    options = itab.get("options", {})
    if not isinstance(options, dict):
        raise ConfigError("[integrator.options] must be a table")
    integrator = IntegratorConfig(
        name=name,
        rtol=_number(itab, "rtol", 1.0e-3, "integrator"),
        atol=_number(itab, "atol", 1.0e-6, "integrator"),
        jit=_flag(itab, "jit", False, "integrator"),
        save_history=_flag(itab, "save_history", False, "integrator"),
        options=dict(options),
    )

    ptab = _table(data, "problem", required=True)
    _check_keys(ptab, {"name", "params", "y0"}, "problem")
    pname = ptab.get("name")
    if not isinstance(pname, str) or not pname:
        raise ConfigError("[problem].name must be a non-empty string")
    params = ptab.get("params", {})
    if not isinstance(params, dict):
        raise ConfigError("[problem].params must be a table")
    y0 = ptab.get("y0")
    if y0 is not None:
        if not isinstance(y0, list) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in y0
        ):
            raise ConfigError("[problem].y0 must be an array of numbers")
        y0 = [float(v) for v in y0]
    problem = ProblemConfig(name=pname, params=dict(params), y0=y0)

    rtab = _table(data, "run", required=True)
    _check_keys(rtab, {"t0", "t_end", "outputs"}, "run")
    if "t_end" not in rtab:
        raise ConfigError("[run].t_end is required")
    outputs = rtab.get("outputs", 1)
    if isinstance(outputs, bool) or not isinstance(outputs, int) or outputs < 1:
        raise ConfigError(f"[run].outputs must be a positive integer, got {outputs!r}")
    run = RunSettings(
        t0=_number(rtab, "t0", 0.0, "run"),
        t_end=_number(rtab, "t_end", 1.0, "run"),
        outputs=outputs,
    )
    if not run.t_end > run.t0:
        raise ConfigError(f"[run].t_end ({run.t_end}) must be greater than t0 ({run.t0})")

    return RunConfig(integrator=integrator, problem=problem, run=run, source=source)


def load_config(src: Union[str, Path]) -> RunConfig:
    """
    Load a run configuration from a TOML file or an inline string.

    Inline strings start with ``inline:``; the rest is dedented and parsed.
    """
    if isinstance(src, str) and src.strip().startswith("inline:"):
        text = textwrap.dedent(src.strip()[len("inline:"):]).strip("\n")
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse inline config: {e}") from e
        return parse_config(data, "<inline>")

    path = Path(src)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e
    return parse_config(data, str(path))
