# src/odeity/integrators/registry.py
from __future__ import annotations
from typing import TYPE_CHECKING, Dict, List, Optional

from odeity.errors import UnknownIntegratorError
from .base import IntegratorSpec, IntegratorMeta

if TYPE_CHECKING:
    from odeity.runtime.diagnostics import DiagnosticsSink
    from .controller import StepController

__all__ = ["register", "get_integrator", "registry", "list_integrators", "create_integrator"]

# name -> spec instance
_registry: Dict[str, IntegratorSpec] = {}


def register(spec: IntegratorSpec) -> None:
    """
    Register an integrator spec by its meta.name and meta.aliases.
    Enforces uniqueness of the canonical name; aliases may overlap only
    if they point to the same spec instance.
    """
    name = spec.meta.name
    if name in _registry and _registry[name] is not spec:
        raise ValueError(f"Integrator '{name}' already registered with a different spec.")
    _registry[name] = spec

    for alias in spec.meta.aliases:
        if alias in _registry and _registry[alias] is not spec:
            raise ValueError(f"Alias '{alias}' already registered for a different spec.")
        _registry[alias] = spec


def get_integrator(name: str) -> IntegratorSpec:
    """
    Return the registered spec for 'name' (canonical or alias).
    """
    try:
        return _registry[name]
    except KeyError:
        raise UnknownIntegratorError(name, _canonical_names()) from None


def registry() -> Dict[str, IntegratorSpec]:
    """
    Read-only-ish view (do not mutate externally).
    """
    return dict(_registry)


def _canonical_names() -> List[str]:
    return sorted({spec.meta.name for spec in _registry.values()})


def list_integrators(
    *,
    family: Optional[str] = None,
    stiff_ok: Optional[bool] = None,
) -> List[IntegratorMeta]:
    """
    Metadata of registered integrators (canonical names only), filtered.
    """
    seen: Dict[str, IntegratorMeta] = {}
    for spec in _registry.values():
        meta = spec.meta
        if meta.name in seen:
            continue
        if family is not None and meta.family != family:
            continue
        if stiff_ok is not None and meta.stiff_ok != stiff_ok:
            continue
        seen[meta.name] = meta
    return [seen[k] for k in sorted(seen)]


def create_integrator(
    name: str,
    *,
    rtol: float = 1.0e-3,
    atol: float = 1.0e-6,
    diagnostics: Optional["DiagnosticsSink"] = None,
    jit: bool = False,
    **options,
) -> "StepController":
    """
    Build a StepController around a fresh stage strategy for ``name``.

    Extra keyword arguments configure the stage (see its ``Config``);
    unknown ones are ignored with a RuntimeWarning.
    """
    from .controller import StepController

    spec = get_integrator(name)
    stage = spec.create_stage(**options)
    return StepController(stage, rtol=rtol, atol=atol, diagnostics=diagnostics, jit=jit)
