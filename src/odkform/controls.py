"""
Presentation controls built from a form's <h:body>.

A rendering layer walks a list of these:
    - Control        a single leaf question (input, upload, trigger, ...)
    - SelectControl  a select/select1 question with its options
    - ControlGroup   an ordered group of controls, possibly repeatable

Every variant answers the same questions: control_type, get_label(),
get_hint(), is_required(), get_default_value() and element_name.

ARCHITECTURAL RULE:
    A control refers to its field by path (ref), never by object.
    Bind data is copied onto the control when it is built.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from odkform.expressions import BoundCondition, Expression
from odkform.translations import Text, TextReference, TranslationTable


_ITEXT_RE = re.compile(r"""itext\(['"](.*?)['"]""")


def text_from_element(element, default_form: str = "long") -> Text:
    """
    Read a <label>, <hint> or <value> element.

    Returns:
        The element's text, a TextReference when its ref attribute
        points at itext(...), or None for a missing element.
    """
    if element is None:
        return None

    text = element.text
    ref = element.get('ref')
    if ref is not None:
        match = _ITEXT_RE.search(ref)
        if match is not None:
            return TextReference(text=text, translation_id=match.group(1), form=default_form)
    return text


@dataclass
class BaseControl:
    """
    Common part of every control.

    Properties:
        label: Plain text or TextReference (None if absent)
        hint: Plain text or TextReference (None if absent)
        appearance: Raw appearance attribute
        ref: Resolved field path (None for groups without a ref)
        translations: Table used by get_label()/get_hint()
    """

    label: Text = None
    hint: Text = None
    appearance: Optional[str] = None
    ref: Optional[str] = None
    translations: TranslationTable = field(default_factory=TranslationTable,
                                           repr=False, compare=False)

    @property
    def control_type(self) -> str:
        raise NotImplementedError

    @property
    def element_name(self) -> str:
        """HTML-safe name: the ref with "/" replaced by "_"."""
        return (self.ref or '').replace('/', '_')

    def get_text(self, text: Text, lang: Optional[str] = None) -> str:
        return self.translations.get_text(text, lang)

    def get_label(self, lang: Optional[str] = None) -> str:
        return self.get_text(self.label, lang)

    def get_hint(self, lang: Optional[str] = None) -> str:
        return self.get_text(self.hint, lang)

    def is_required(self) -> bool:
        return False

    def get_default_value(self) -> str:
        return ''


@dataclass
class Control(BaseControl):
    """
    A single question.

    The bind-related properties are copied from the FieldDefinition whose
    path equals ref. When no such field exists they keep their defaults.

    Properties:
        tag: Raw element name ("input", "upload", ...)
        data_type: Field type ("string" or the bind's type attribute)
        default_value: Instance default value
        required / readonly: From the bind, None if unbound
        calculate: Parsed calculate expression
        constraint / relevant: BoundCondition from the bind
        bind_attributes: Any other bind attribute, verbatim
    """

    tag: str = "input"
    data_type: Optional[str] = None
    default_value: Optional[str] = None
    required: Optional[bool] = None
    readonly: Optional[bool] = None
    calculate: Optional[Expression] = None
    constraint: Optional[BoundCondition] = None
    relevant: Optional[BoundCondition] = None
    bind_attributes: Dict[str, str] = field(default_factory=dict)

    @property
    def control_type(self) -> str:
        return self.tag

    def is_required(self) -> bool:
        return bool(self.required)

    def get_default_value(self) -> str:
        return self.default_value if self.default_value is not None else ''


@dataclass(frozen=True)
class SelectOption:
    """One <item> of a select control."""

    label: Text
    value: Text


@dataclass
class SelectControl(Control):
    """A select or select1 question. Both report control_type "select"."""

    tag: str = "select"
    multiple: bool = True
    options: List[SelectOption] = field(default_factory=list)

    @property
    def control_type(self) -> str:
        return "select"

    def get_option_label(self, option: SelectOption, lang: Optional[str] = None) -> str:
        return self.get_text(option.label, lang)

    def get_option_values(self) -> List[str]:
        return [self.get_text(option.value) for option in self.options]


@dataclass
class ControlGroup(BaseControl):
    """
    An ordered group of controls.

    A <repeat> inside the group does not add a level: it sets is_repeat
    and its controls become direct children of this group.
    """

    is_repeat: bool = False
    children: List[BaseControl] = field(default_factory=list)

    @property
    def control_type(self) -> str:
        return "group"
