"""
Control tree builder (Layer 2: <h:body> → Control/ControlGroup tree).

Walks the body depth-first in document order:

    group      → ControlGroup; its children are built into the group.
                 Its ref is recorded but does not change the base path
    repeat     → no node of its own; marks the nearest enclosing group as
                 repeatable and contributes its children to that group
    label/hint → consumed by the enclosing group, never built
    other tags → Control (SelectControl for select/select1), not descended

Elements without child elements are skipped entirely.

Each call returns the controls it built; nothing is appended to shared
lists and the source tree is never modified.
"""

import logging
from typing import Dict, List, NamedTuple, Optional, Tuple

from odkform.config import DEFAULT_OPTIONS, ParserOptions
from odkform.controls import (
    BaseControl,
    Control,
    ControlGroup,
    SelectControl,
    SelectOption,
    text_from_element,
)
from odkform.errors import Diagnostic, DiagnosticKind, NestingDepthError, report
from odkform.model import FieldDefinition
from odkform.paths import resolve_path
from odkform.translations import TranslationTable
from odkform.xmlutils import child_elements, first_child_named, local_name


logger = logging.getLogger(__name__)

_SELECT_TAGS = ('select', 'select1')
_CONSUMED_TAGS = ('label', 'hint')


class _Context(NamedTuple):
    """Traversal state handed down to children. Never mutated."""

    base_path: str
    in_group: bool
    depth: int

    def descend(self, base_path: Optional[str] = None, in_group: Optional[bool] = None) -> "_Context":
        return _Context(
            base_path=self.base_path if base_path is None else base_path,
            in_group=self.in_group if in_group is None else in_group,
            depth=self.depth + 1,
        )


class ControlTreeBuilder:
    """
    Builds the control tree of one form body.

    The field map must already be complete: bind data is copied onto each
    control from the FieldDefinition whose path equals the control's ref.
    """

    def __init__(self, base_path: str, fields: Dict[str, FieldDefinition],
                 translations: TranslationTable, options: ParserOptions = DEFAULT_OPTIONS,
                 diagnostics: Optional[List[Diagnostic]] = None):
        self.base_path = base_path
        self.fields = fields
        self.translations = translations
        self.options = options
        self.diagnostics = diagnostics if diagnostics is not None else []

    def build(self, body) -> List[BaseControl]:
        """
        Build the top-level controls of a <h:body> element.

        Raises:
            NestingDepthError: Body nested deeper than options.max_depth
        """
        context = _Context(base_path=self.base_path, in_group=False, depth=0)
        controls, _ = self._build_children(body, context)
        return controls

    def _build_children(self, node, context: _Context) -> Tuple[List[BaseControl], bool]:
        """Build every child of node. The flag is True if a child was a repeat."""
        controls: List[BaseControl] = []
        saw_repeat = False
        for child in child_elements(node):
            built, is_repeat = self._build_node(child, context)
            controls.extend(built)
            saw_repeat = saw_repeat or is_repeat
        return controls, saw_repeat

    def _build_node(self, node, context: _Context) -> Tuple[List[BaseControl], bool]:
        if context.depth >= self.options.max_depth:
            raise NestingDepthError("body", self.options.max_depth)
        if not child_elements(node):
            return [], False

        tag = local_name(node)
        if tag == 'group':
            return [self._build_group(node, context)], False
        if tag == 'repeat':
            return self._build_repeat(node, context), True
        if tag in _CONSUMED_TAGS:
            return [], False
        return [self._build_control(node, tag, context)], False

    def _resolve(self, raw: Optional[str], context: _Context) -> Optional[str]:
        if raw is None:
            return None
        return resolve_path(raw, context.base_path)

    def _text(self, node, name: str):
        return text_from_element(first_child_named(node, name), self.options.default_text_form)

    def _build_group(self, node, context: _Context) -> ControlGroup:
        ref = self._resolve(node.get('ref'), context)
        children, is_repeat = self._build_children(
            node, context.descend(in_group=True),
        )
        return ControlGroup(
            label=self._text(node, 'label'),
            hint=self._text(node, 'hint'),
            appearance=node.get('appearance'),
            ref=ref,
            translations=self.translations,
            is_repeat=is_repeat,
            children=children,
        )

    def _build_repeat(self, node, context: _Context) -> List[BaseControl]:
        nodeset = self._resolve(node.get('nodeset'), context)
        if not context.in_group:
            logger.debug("Repeat %s has no enclosing group", nodeset)
            report(self.diagnostics, Diagnostic(
                kind=DiagnosticKind.REPEAT_OUTSIDE_GROUP,
                message=f"Repeat {nodeset!r} has no enclosing group to mark repeatable",
                source=nodeset,
            ), warn=self.options.warn_on_diagnostics)
        children, _ = self._build_children(node, context.descend(base_path=nodeset))
        return children

    def _build_control(self, node, tag: str, context: _Context) -> Control:
        ref = self._resolve(node.get('ref'), context)
        kwargs = dict(
            label=self._text(node, 'label'),
            hint=self._text(node, 'hint'),
            appearance=node.get('appearance'),
            ref=ref,
            translations=self.translations,
            tag=tag,
        )

        field_def = self.fields.get(ref) if ref is not None else None
        if field_def is not None:
            kwargs.update(
                data_type=field_def.type,
                default_value=field_def.default_value,
                required=field_def.required,
                readonly=field_def.readonly,
                calculate=field_def.calculate,
                constraint=field_def.constraint,
                relevant=field_def.relevant,
                bind_attributes=dict(field_def.attributes),
            )

        if tag not in _SELECT_TAGS:
            return Control(**kwargs)

        options = [
            SelectOption(label=self._text(item, 'label'), value=self._text(item, 'value'))
            for item in child_elements(node)
            if local_name(item) == 'item'
        ]
        return SelectControl(multiple=(tag == 'select'), options=options, **kwargs)
