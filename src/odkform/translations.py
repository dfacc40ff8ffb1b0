"""
Translation table built from a form's <itext> block.

    <itext>
      <translation lang="English" default="true()">
        <text id="/data/name:label">
          <value>What is your name?</value>
          <value form="short">Name</value>
        </text>
      </translation>
    </itext>

Becomes:

    table.languages["English"] == {
        "/data/name:label:long": "What is your name?",
        "/data/name:label:short": "Name",
    }

DEFAULT LANGUAGE:
    The first translation block seen becomes default_language. A block
    explicitly marked with a default attribute is recorded separately in
    marked_default_language but does not change resolution.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from odkform.config import DEFAULT_OPTIONS, ParserOptions
from odkform.errors import Diagnostic, DiagnosticKind, report
from odkform.xmlutils import child_elements, iter_named


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextReference:
    """
    A label or hint pointing into the translation table.

    Properties:
        text: Inline text of the label element, if any (not translated)
        translation_id: The itext id, e.g. "/data/name:label"
        form: Which value variant to use ("long", "short", "image", ...)
    """

    text: Optional[str]
    translation_id: str
    form: str = "long"

    @property
    def key(self) -> str:
        return f"{self.translation_id}:{self.form}"


Text = Union[str, TextReference, None]


@dataclass
class TranslationTable:
    """Per-language mapping of "{id}:{form}" keys to translated strings."""

    languages: Dict[str, Dict[str, str]] = field(default_factory=dict)
    default_language: Optional[str] = None
    marked_default_language: Optional[str] = None

    def get_text(self, ref: Text, lang: Optional[str] = None) -> str:
        """
        Resolve a label/hint value to display text.

        Args:
            ref: Plain string (returned as-is), TextReference, or None
            lang: Language code; defaults to default_language

        Returns:
            The translated text, or "" when nothing matches
        """
        if ref is None:
            return ""
        if isinstance(ref, str):
            return ref

        lang = lang or self.default_language
        return self.languages.get(lang, {}).get(ref.key, "")

    def __contains__(self, lang: str) -> bool:
        return lang in self.languages


def _read_entry(text_element, default_form: str) -> Optional[Dict[str, str]]:
    """Collect the form -> value pairs of one <text> entry, or None if malformed."""
    values = {}
    for value_element in child_elements(text_element):
        if value_element.text is None and len(value_element) == 0:
            return None
        form = value_element.get('form') or default_form
        values[form] = ''.join(value_element.itertext())
    return values


def build_translation_table(itext, options: ParserOptions = DEFAULT_OPTIONS,
                            diagnostics: Optional[List[Diagnostic]] = None) -> TranslationTable:
    """
    Build a TranslationTable from an <itext> element.

    Malformed <text> entries (a value with no content) are skipped one at a
    time; the rest of their block still loads.

    Args:
        itext: The <itext> element, or None
        options: Parser options (default form name, warnings)
        diagnostics: Optional list that receives one Diagnostic per skipped entry

    Returns:
        TranslationTable (empty, with no default language, if itext is None)
    """
    table = TranslationTable()
    if itext is None:
        return table

    for translation in iter_named(itext, 'translation'):
        lang = translation.get('lang')
        if lang is None:
            report(diagnostics, Diagnostic(
                kind=DiagnosticKind.TRANSLATION_ENTRY,
                message="Translation block without a lang attribute skipped",
            ), warn=options.warn_on_diagnostics)
            continue

        if table.default_language is None:
            table.default_language = lang
        if translation.get('default') is not None and table.marked_default_language is None:
            table.marked_default_language = lang

        entries: Dict[str, str] = {}
        table.languages[lang] = entries

        for text_element in iter_named(translation, 'text'):
            text_id = text_element.get('id')
            values = _read_entry(text_element, options.default_text_form)
            if text_id is None or values is None:
                logger.debug("Skipping malformed text entry %r in %s", text_id, lang)
                report(diagnostics, Diagnostic(
                    kind=DiagnosticKind.TRANSLATION_ENTRY,
                    message=f"Malformed text entry {text_id!r} in translation {lang!r} skipped",
                    source=text_id,
                ), warn=options.warn_on_diagnostics)
                continue
            for form, value in values.items():
                entries[f"{text_id}:{form}"] = value

    return table
