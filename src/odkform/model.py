"""
Core Form Model Objects

Defines the data structures produced by loading a form:
    - FieldDefinition (one per instance node)
    - FormModel (root container: fields, translations, controls)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about HTML or any other rendering target
        - Are not mutated once loading has finished
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from odkform.controls import BaseControl, Control, ControlGroup
from odkform.errors import Diagnostic, DiagnosticKind
from odkform.expressions import BoundCondition, Expression
from odkform.translations import Text, TranslationTable


@dataclass
class FieldDefinition:
    """
    One node of the instance skeleton, enriched by its bind declaration.

    Properties:
        path:
            Unique absolute path, e.g. "/data/household/size"

        is_container:
            True if the instance node has child elements

        type:
            "string" for leaves unless a bind declares another type;
            None for containers

        default_value:
            Text content of a leaf instance node, if any

        required / readonly:
            True iff the bind attribute is literally "true()";
            None when the bind does not mention them

        calculate:
            Parsed calculate expression

        constraint / relevant:
            BoundCondition (OR-of-AND group plus optional message)

        attributes:
            Every other bind attribute, verbatim, keyed by prefixed name
            (e.g. "jr:preload")
    """

    path: str
    is_container: bool = False
    type: Optional[str] = None
    default_value: Optional[str] = None
    required: Optional[bool] = None
    readonly: Optional[bool] = None
    calculate: Optional[Expression] = None
    constraint: Optional[BoundCondition] = None
    relevant: Optional[BoundCondition] = None
    attributes: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.path.rsplit('/', 1)[-1]


@dataclass
class FormModel:
    """
    Root container for a loaded form.

    Properties:
        base_path:
            "/" + tag of the instance root, e.g. "/data"

        fields:
            Field map keyed by path, in instance document order

        translations:
            The itext translation table

        controls:
            Top-level controls and groups in body document order

        title:
            Text of <h:title>, "" if absent

        diagnostics:
            Non-fatal problems found while loading

    INVARIANTS:
        - Every FieldDefinition.path is unique and starts with base_path
        - Controls reference fields by path only
    """

    base_path: str
    fields: Dict[str, FieldDefinition] = field(default_factory=dict)
    translations: TranslationTable = field(default_factory=TranslationTable)
    controls: List[BaseControl] = field(default_factory=list)
    title: str = ""
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def get_field(self, path: str) -> Optional[FieldDefinition]:
        return self.fields.get(path)

    def iter_controls(self) -> Iterator[BaseControl]:
        """Yield every control and group, depth-first in document order."""
        stack = list(reversed(self.controls))
        while stack:
            control = stack.pop()
            yield control
            if isinstance(control, ControlGroup):
                stack.extend(reversed(control.children))

    def find_control(self, path: str) -> Optional[Control]:
        """
        Find a control by its field path.

        Groups are never returned, even when their ref matches.

        Args:
            path: Absolute field path

        Returns:
            The first Control (document order) whose ref equals path, or None
        """
        for control in self.iter_controls():
            if isinstance(control, Control) and control.ref == path:
                return control
        return None

    def get_text(self, text: Text, lang: Optional[str] = None) -> str:
        return self.translations.get_text(text, lang)

    def diagnostics_of(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]
