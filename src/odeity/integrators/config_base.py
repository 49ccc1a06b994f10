# src/odeity/integrators/config_base.py
from __future__ import annotations
import dataclasses
import warnings
from typing import Any, Mapping

__all__ = ["ConfigMixin"]


class ConfigMixin:
    """
    Runtime configuration for a stage strategy.

    Subclasses define a nested ``Config`` dataclass whose ``validate()``
    raises on inadmissible values; the active instance lives in
    ``self.config``.
    """

    Config: type
    config: Any

    def default_config(self):
        return type(self).Config()

    def init_config(self, options: Mapping[str, Any] | None = None) -> None:
        self.config = self.default_config()
        if options:
            self.configure(**options)
        else:
            self.config.validate()

    def configure(self, **kwargs) -> Any:
        """
        Replace config fields by keyword. Unknown keys are ignored with a
        RuntimeWarning; the result is validated before it is installed.
        """
        valid_fields = {f.name for f in dataclasses.fields(self.config)}
        updates = {k: v for k, v in kwargs.items() if k in valid_fields}
        invalid = set(kwargs) - valid_fields
        if invalid:
            warnings.warn(
                f"Unknown parameters for '{self.meta.name}': {sorted(invalid)}. "
                f"Valid parameters: {sorted(valid_fields)}",
                RuntimeWarning,
                stacklevel=3,
            )
        candidate = dataclasses.replace(self.config, **updates) if updates else self.config
        candidate.validate()
        self.config = candidate
        return candidate
