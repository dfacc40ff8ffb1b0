"""
Tests for the control tree builder (<h:body> → controls).
"""

import pytest

from odkform.config import ParserOptions
from odkform.controls import Control, ControlGroup, SelectControl, SelectOption
from odkform.errors import DiagnosticKind, NestingDepthError
from odkform.loader import DefinitionLoader
from odkform.translations import TextReference
from odkform.tree_builder import ControlTreeBuilder


INSTANCE = """
<data>
  <a/>
  <b>5</b>
  <color/>
  <people>
    <person/>
    <age/>
  </people>
</data>
"""


def build(head_and_body, body, binds="", options=ParserOptions()):
    head, body_element = head_and_body(instance=INSTANCE, binds=binds, body=body)
    definitions = DefinitionLoader(options).load(head)
    builder = ControlTreeBuilder(
        base_path=definitions.base_path,
        fields=definitions.fields,
        translations=definitions.translations,
        options=options,
        diagnostics=definitions.diagnostics,
    )
    return builder.build(body_element), definitions.diagnostics


class TestControls:
    """Leaf controls."""

    def test_document_order(self, head_and_body):
        controls, _ = build(head_and_body, """
            <input ref="/data/b"><label>B</label></input>
            <input ref="/data/a"><label>A</label></input>
        """)
        assert [c.ref for c in controls] == ["/data/b", "/data/a"]

    def test_bind_data_copied(self, head_and_body):
        controls, _ = build(
            head_and_body,
            '<input ref="/data/b" appearance="numbers"><label>B</label><hint>Digits</hint></input>',
            binds='<bind nodeset="/data/b" type="int" required="true()" jr:preload="x"/>',
        )
        control = controls[0]
        assert isinstance(control, Control)
        assert control.control_type == "input"
        assert control.data_type == "int"
        assert control.default_value == "5"
        assert control.is_required() is True
        assert control.appearance == "numbers"
        assert control.bind_attributes == {"jr:preload": "x"}
        assert control.get_label() == "B"
        assert control.get_hint() == "Digits"

    def test_relative_ref_resolved_against_base_path(self, head_and_body):
        controls, _ = build(head_and_body, '<input ref="a"><label>A</label></input>')
        assert controls[0].ref == "/data/a"
        assert controls[0].element_name == "_data_a"

    def test_unbound_ref_keeps_defaults(self, head_and_body):
        controls, _ = build(head_and_body, '<upload ref="/data/photo"><label>P</label></upload>')
        control = controls[0]
        assert control.control_type == "upload"
        assert control.data_type is None
        assert control.is_required() is False
        assert control.get_default_value() == ""

    def test_itext_label(self, head_and_body):
        controls, _ = build(
            head_and_body, """<input ref="/data/a"><label ref="jr:itext('/data/a:label')"/></input>""",
        )
        assert controls[0].label == TextReference(text=None, translation_id="/data/a:label")

    def test_childless_elements_skipped(self, head_and_body):
        controls, _ = build(head_and_body, """
            <input ref="/data/a"/>
            <input ref="/data/b"><label>B</label></input>
        """)
        assert [c.ref for c in controls] == ["/data/b"]

    def test_top_level_label_not_a_control(self, head_and_body):
        controls, _ = build(head_and_body, """
            <label><output value="/data/a"/></label>
            <input ref="/data/b"><label>B</label></input>
        """)
        assert [c.ref for c in controls] == ["/data/b"]


class TestSelect:
    """select and select1 controls."""

    BODY = """
        <{tag} ref="/data/color">
          <label>Color</label>
          <item><label>Red</label><value>r</value></item>
          <item><label>Blue</label><value>b</value></item>
        </{tag}>
    """

    def test_select1_options(self, head_and_body):
        controls, _ = build(head_and_body, self.BODY.format(tag="select1"))
        select = controls[0]
        assert isinstance(select, SelectControl)
        assert select.control_type == "select"
        assert select.multiple is False
        assert select.options == [SelectOption("Red", "r"), SelectOption("Blue", "b")]
        assert select.get_option_values() == ["r", "b"]
        assert select.get_option_label(select.options[1]) == "Blue"

    def test_select_is_multiple(self, head_and_body):
        controls, _ = build(head_and_body, self.BODY.format(tag="select"))
        assert controls[0].multiple is True


class TestGroups:
    """group and repeat handling."""

    def test_group_children_and_label(self, head_and_body):
        controls, _ = build(head_and_body, """
            <group appearance="field-list">
              <label>Section</label>
              <input ref="/data/a"><label>A</label></input>
              <input ref="/data/b"><label>B</label></input>
            </group>
        """)
        group = controls[0]
        assert isinstance(group, ControlGroup)
        assert group.control_type == "group"
        assert group.get_label() == "Section"
        assert group.appearance == "field-list"
        assert group.is_repeat is False
        assert [c.ref for c in group.children] == ["/data/a", "/data/b"]

    def test_repeat_marks_enclosing_group(self, head_and_body):
        """The repeat adds no level: its controls belong to the group."""
        controls, diagnostics = build(head_and_body, """
            <group ref="/data/people">
              <label>People</label>
              <repeat nodeset="/data/people">
                <input ref="person"><label>Name</label></input>
                <input ref="/data/people/age"><label>Age</label></input>
              </repeat>
            </group>
        """)
        assert len(controls) == 1
        group = controls[0]
        assert group.is_repeat is True
        assert group.ref == "/data/people"
        assert [c.ref for c in group.children] == ["/data/people/person", "/data/people/age"]
        assert diagnostics == []

    def test_group_ref_does_not_change_base_path(self, head_and_body):
        """Relative refs inside a group resolve against the enclosing base path."""
        controls, _ = build(head_and_body, """
            <group ref="/data/people">
              <label>People</label>
              <input ref="a"><label>A</label></input>
            </group>
        """)
        group = controls[0]
        assert group.ref == "/data/people"
        assert group.children[0].ref == "/data/a"

    def test_nested_groups(self, head_and_body):
        controls, _ = build(head_and_body, """
            <group>
              <group>
                <input ref="/data/a"><label>A</label></input>
              </group>
              <input ref="/data/b"><label>B</label></input>
            </group>
        """)
        outer = controls[0]
        assert isinstance(outer.children[0], ControlGroup)
        assert outer.children[0].children[0].ref == "/data/a"
        assert outer.children[1].ref == "/data/b"

    def test_repeat_outside_group(self, head_and_body):
        controls, diagnostics = build(head_and_body, """
            <repeat nodeset="/data/people">
              <input ref="person"><label>Name</label></input>
            </repeat>
        """)
        assert [c.ref for c in controls] == ["/data/people/person"]
        assert [d.kind for d in diagnostics] == [DiagnosticKind.REPEAT_OUTSIDE_GROUP]

    def test_nesting_limit(self, head_and_body):
        head, body = head_and_body(instance=INSTANCE, body="""
            <group><group><group>
              <input ref="/data/a"><label>A</label></input>
            </group></group></group>
        """)
        definitions = DefinitionLoader().load(head)
        builder = ControlTreeBuilder(definitions.base_path, definitions.fields,
                                     definitions.translations, ParserOptions(max_depth=2))
        with pytest.raises(NestingDepthError) as exc_info:
            builder.build(body)
        assert exc_info.value.section == "body"

    def test_source_tree_untouched(self, head_and_body):
        head, body = head_and_body(instance=INSTANCE, body="""
            <group><label>G</label><input ref="/data/a"><label>A</label></input></group>
        """)
        before = len(list(body.iter()))
        definitions = DefinitionLoader().load(head)
        ControlTreeBuilder(definitions.base_path, definitions.fields,
                           definitions.translations).build(body)
        assert len(list(body.iter())) == before
