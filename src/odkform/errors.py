"""
Errors and diagnostics raised or collected while loading a form.

Fatal problems are exceptions: the load is aborted and no partial model
is exposed. Non-fatal problems never interrupt loading; they are recorded
as Diagnostic entries on the resulting model.
"""

import warnings
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class FormLoadError(Exception):
    """Base class for all fatal loading errors."""
    pass


class SchemaError(FormLoadError):
    """Raised for a malformed root element, namespaces, or missing head/body."""
    pass


class DefinitionError(FormLoadError):
    """Raised when the instance skeleton is missing or empty."""
    pass


class NestingDepthError(FormLoadError):
    """Raised when a document nests deeper than the configured limit."""

    def __init__(self, section: str, max_depth: int):
        super().__init__(f"{section} nesting exceeds maximum depth of {max_depth}")
        self.section = section
        self.max_depth = max_depth


class DiagnosticKind(Enum):
    """Non-fatal conditions recorded during a load."""

    BIND_MISMATCH = "bind_mismatch"
    TRANSLATION_ENTRY = "translation_entry"
    UNRECOGNIZED_EXPRESSION = "unrecognized_expression"
    REPEAT_OUTSIDE_GROUP = "repeat_outside_group"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single non-fatal finding.

    Properties:
        kind: What went wrong
        message: Human-readable description
        source: The path, nodeset, or text id the finding is about
    """

    kind: DiagnosticKind
    message: str
    source: Optional[str] = None


def report(diagnostics: Optional[List[Diagnostic]], diagnostic: Diagnostic,
           warn: bool = False) -> None:
    """Append a diagnostic to a collector and optionally emit it as a warning."""
    if diagnostics is not None:
        diagnostics.append(diagnostic)
    if warn:
        warnings.warn(diagnostic.message, UserWarning, stacklevel=3)
