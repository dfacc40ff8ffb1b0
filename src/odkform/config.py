"""
Parser options.

Options can be built in code, from a plain mapping, or from a YAML file:

    max_depth: 64
    warn_on_diagnostics: true
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

import yaml


class ConfigError(ValueError):
    """Raised when an options mapping contains unknown keys or bad values."""
    pass


@dataclass(frozen=True)
class ParserOptions:
    """
    Tunables for a single form load.

    Properties:
        max_depth: Deepest element nesting accepted in instance or body
        max_expression_depth: Deepest nested function call parsed in an expression
        warn_on_diagnostics: Also emit each diagnostic as a UserWarning
        default_text_form: Form assumed for translation values without a form attribute
    """

    max_depth: int = 100
    max_expression_depth: int = 32
    warn_on_diagnostics: bool = False
    default_text_form: str = "long"

    def __post_init__(self):
        for name in ('max_depth', 'max_expression_depth'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ConfigError(f"{name} must be positive, got {value}")
        if not isinstance(self.warn_on_diagnostics, bool):
            raise ConfigError(
                f"warn_on_diagnostics must be a boolean, got {self.warn_on_diagnostics!r}"
            )
        if not isinstance(self.default_text_form, str) or not self.default_text_form:
            raise ConfigError(
                f"default_text_form must be a non-empty string, got {self.default_text_form!r}"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ParserOptions":
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown parser options: {sorted(unknown)}")
        return cls(**dict(data))

    @classmethod
    def from_yaml(cls, filepath: str) -> "ParserOptions":
        with open(filepath, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if data is not None and not isinstance(data, Mapping):
            raise ConfigError(f"Options file must contain a mapping: {filepath}")
        return cls.from_mapping(data)


DEFAULT_OPTIONS = ParserOptions()
