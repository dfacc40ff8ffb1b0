"""
Definition loader (Layer 1: <h:head> → field map + translations).

Three passes over the form head, in order:
    1. Instance walk  - one FieldDefinition per instance node
    2. Bind pass      - required/readonly/type/logic attributes merged in
    3. Itext pass     - the translation table

Instance, binds and itext are read only as direct children of <model>, and
the title only as an XHTML <h:title> child of the head, so instance fields
named "bind" or "title" are never mistaken for declarations.

A loader accumulates state while it runs, so every document needs its own
DefinitionLoader instance.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from odkform.config import DEFAULT_OPTIONS, ParserOptions
from odkform.errors import (
    DefinitionError,
    Diagnostic,
    DiagnosticKind,
    NestingDepthError,
    report,
)
from odkform.expression_parser import parse_boolean_group, parse_condition
from odkform.expressions import BooleanGroup, BoundCondition, Expression, Unparsed
from odkform.model import FieldDefinition
from odkform.translations import TranslationTable, build_translation_table
from odkform.xmlutils import (
    JAVAROSA_NS,
    XHTML_NS,
    child_elements,
    first_child_named,
    local_name,
    prefixed_name,
)


logger = logging.getLogger(__name__)

CONSTRAINT_MSG_KEY = f"{{{JAVAROSA_NS}}}constraintMsg"

_BOOLEAN_ATTRIBUTES = ('required', 'readonly')
_GROUP_ATTRIBUTES = ('constraint', 'relevant')


@dataclass
class Definitions:
    """Everything the head of a form defines."""

    base_path: str
    fields: Dict[str, FieldDefinition] = field(default_factory=dict)
    translations: TranslationTable = field(default_factory=TranslationTable)
    title: str = ""
    diagnostics: List[Diagnostic] = field(default_factory=list)


class DefinitionLoader:
    """
    Builds the field map and translation table of one form.

    Usage:
        definitions = DefinitionLoader(options).load(head)
    """

    def __init__(self, options: ParserOptions = DEFAULT_OPTIONS):
        self.options = options
        self.base_path: Optional[str] = None
        self.fields: Dict[str, FieldDefinition] = {}
        self.diagnostics: List[Diagnostic] = []
        self._loaded = False

    def load(self, head) -> Definitions:
        """
        Run all three passes over a <h:head> element.

        Raises:
            DefinitionError: No <instance>, or an instance without a child element
            NestingDepthError: Instance nested deeper than options.max_depth
        """
        if self._loaded:
            raise RuntimeError("DefinitionLoader instances load a single document")
        self._loaded = True

        model = first_child_named(head, 'model')
        instance = first_child_named(model, 'instance') if model is not None else None
        if instance is None:
            raise DefinitionError("Invalid XForm - no instance defined")
        roots = child_elements(instance)
        if not roots:
            raise DefinitionError("No instance data defined")

        self._walk_instance(roots[0], '', 0)
        logger.debug("Loaded %d fields under %s", len(self.fields), self.base_path)

        for bind in child_elements(model):
            if local_name(bind) == 'bind':
                self.apply_bind(bind)

        translations = build_translation_table(
            first_child_named(model, 'itext'), self.options, self.diagnostics,
        )

        title = first_child_named(head, 'title', XHTML_NS)
        return Definitions(
            base_path=self.base_path,
            fields=self.fields,
            translations=translations,
            title=(title.text or '').strip() if title is not None else '',
            diagnostics=self.diagnostics,
        )

    def _walk_instance(self, node, parent_path: str, depth: int) -> None:
        if depth >= self.options.max_depth:
            raise NestingDepthError("instance", self.options.max_depth)

        path = parent_path + '/' + local_name(node)
        if not parent_path:
            self.base_path = path

        field_def = self.fields.get(path)
        if field_def is None:
            field_def = self.fields[path] = FieldDefinition(path=path)

        children = child_elements(node)
        if children:
            field_def.is_container = True
            for child in children:
                self._walk_instance(child, path, depth + 1)
        else:
            field_def.type = 'string'
            field_def.default_value = node.text

    def resolve_nodeset(self, nodeset: str) -> str:
        if nodeset.startswith('/'):
            return nodeset
        return f"{self.base_path}/{nodeset}"

    def apply_bind(self, bind) -> bool:
        """
        Merge one <bind> declaration into its field.

        Binds whose nodeset does not name a known field are dropped and
        recorded as BIND_MISMATCH diagnostics. Applying the same bind
        again leaves the field unchanged.

        Returns:
            True if the bind was applied
        """
        nodeset = bind.get('nodeset')
        if nodeset is None:
            self._report(DiagnosticKind.BIND_MISMATCH, "Bind without nodeset ignored")
            return False

        path = self.resolve_nodeset(nodeset)
        field_def = self.fields.get(path)
        if field_def is None:
            logger.debug("Dropping bind for unknown field %s", path)
            self._report(DiagnosticKind.BIND_MISMATCH,
                         f"Bind nodeset {nodeset!r} matches no instance field", source=path)
            return False

        message = bind.get(CONSTRAINT_MSG_KEY)
        for key, raw in bind.attrib.items():
            if key in ('nodeset', CONSTRAINT_MSG_KEY):
                continue

            name = prefixed_name(bind, key)
            if name in _BOOLEAN_ATTRIBUTES:
                setattr(field_def, name, raw == 'true()')
            elif name == 'calculate':
                field_def.calculate = self._parse_condition(raw, path)
            elif name in _GROUP_ATTRIBUTES:
                setattr(field_def, name,
                        BoundCondition(self._parse_group(raw, path), message))
            elif name == 'type':
                field_def.type = raw
            else:
                field_def.attributes[name] = raw
        return True

    def _parse_condition(self, raw: str, path: str) -> Expression:
        expr = parse_condition(raw, path, self.options.max_expression_depth)
        if isinstance(expr, Unparsed):
            self._report_unparsed(expr, path)
        return expr

    def _parse_group(self, raw: str, path: str) -> BooleanGroup:
        group = parse_boolean_group(raw, path, self.options.max_expression_depth)
        for conjunction in group.conjunctions():
            for term in conjunction:
                if isinstance(term, Unparsed):
                    self._report_unparsed(term, path)
        return group

    def _report_unparsed(self, expr: Unparsed, path: str) -> None:
        logger.debug("Unrecognized expression for %s: %r", path, expr.text)
        self._report(DiagnosticKind.UNRECOGNIZED_EXPRESSION,
                     f"Unrecognized expression {expr.text!r}", source=path)

    def _report(self, kind: DiagnosticKind, message: str, source: Optional[str] = None) -> None:
        report(self.diagnostics, Diagnostic(kind=kind, message=message, source=source),
               warn=self.options.warn_on_diagnostics)
