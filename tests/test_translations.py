"""
Tests for the itext translation table.
"""

from lxml import etree

from odkform.config import ParserOptions
from odkform.errors import DiagnosticKind
from odkform.translations import TextReference, TranslationTable, build_translation_table


def parse_itext(translations: str):
    return etree.fromstring(
        f'<itext xmlns="http://www.w3.org/2002/xforms">{translations}</itext>'
    )


TWO_LANGUAGES = """
<translation lang="English">
  <text id="/data/q:label">
    <value>Question</value>
    <value form="short">Q</value>
  </text>
</translation>
<translation lang="French" default="true()">
  <text id="/data/q:label">
    <value>La question</value>
  </text>
</translation>
"""


class TestTextReference:
    def test_key_combines_id_and_form(self):
        ref = TextReference(text=None, translation_id="/data/q:label")
        assert ref.key == "/data/q:label:long"
        assert TextReference(None, "/data/q:label", form="short").key == "/data/q:label:short"


class TestBuildTranslationTable:
    """Building the table from <itext>."""

    def test_entries_per_language(self):
        table = build_translation_table(parse_itext(TWO_LANGUAGES))
        assert table.languages["English"] == {
            "/data/q:label:long": "Question",
            "/data/q:label:short": "Q",
        }
        assert table.languages["French"] == {"/data/q:label:long": "La question"}
        assert "French" in table
        assert "German" not in table

    def test_first_block_is_default(self):
        """The explicitly marked block is recorded but does not win."""
        table = build_translation_table(parse_itext(TWO_LANGUAGES))
        assert table.default_language == "English"
        assert table.marked_default_language == "French"

    def test_missing_itext(self):
        table = build_translation_table(None)
        assert table.languages == {}
        assert table.default_language is None

    def test_malformed_entry_skipped(self):
        """An empty value drops that entry only; the rest of the block loads."""
        itext = parse_itext("""
            <translation lang="English">
              <text id="/data/a:label"><value/></text>
              <text id="/data/b:label"><value>B</value></text>
            </translation>
        """)
        diagnostics = []
        table = build_translation_table(itext, diagnostics=diagnostics)

        assert table.languages["English"] == {"/data/b:label:long": "B"}
        assert len(diagnostics) == 1
        assert diagnostics[0].kind == DiagnosticKind.TRANSLATION_ENTRY
        assert diagnostics[0].source == "/data/a:label"

    def test_block_without_lang_skipped(self):
        itext = parse_itext("""
            <translation><text id="x"><value>X</value></text></translation>
            <translation lang="Swahili"><text id="x"><value>Y</value></text></translation>
        """)
        diagnostics = []
        table = build_translation_table(itext, diagnostics=diagnostics)

        assert list(table.languages) == ["Swahili"]
        assert table.default_language == "Swahili"
        assert [d.kind for d in diagnostics] == [DiagnosticKind.TRANSLATION_ENTRY]

    def test_value_with_markup_keeps_text(self):
        itext = parse_itext("""
            <translation lang="English">
              <text id="x"><value>Hello <output value="/data/name"/> there</value></text>
            </translation>
        """)
        table = build_translation_table(itext)
        assert table.languages["English"]["x:long"] == "Hello  there"

    def test_custom_default_form(self):
        options = ParserOptions(default_text_form="default")
        table = build_translation_table(parse_itext(TWO_LANGUAGES), options)
        assert "/data/q:label:default" in table.languages["English"]


class TestGetText:
    """Resolving labels and hints."""

    def setup_method(self):
        self.table = build_translation_table(parse_itext(TWO_LANGUAGES))
        self.ref = TextReference(text=None, translation_id="/data/q:label")

    def test_default_language(self):
        assert self.table.get_text(self.ref) == "Question"

    def test_explicit_language(self):
        assert self.table.get_text(self.ref, "French") == "La question"

    def test_plain_string_returned_as_is(self):
        assert self.table.get_text("Inline label", "French") == "Inline label"

    def test_none_is_empty(self):
        assert self.table.get_text(None) == ""

    def test_missing_key_is_empty(self):
        ref = TextReference(text=None, translation_id="/data/other:label")
        assert self.table.get_text(ref) == ""

    def test_unknown_language_is_empty(self):
        assert self.table.get_text(self.ref, "German") == ""

    def test_short_form(self):
        ref = TextReference(text=None, translation_id="/data/q:label", form="short")
        assert self.table.get_text(ref) == "Q"

    def test_empty_table(self):
        assert TranslationTable().get_text(self.ref) == ""
