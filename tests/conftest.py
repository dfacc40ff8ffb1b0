"""
Shared helpers for building small XForm documents in tests.
"""

import pytest
from lxml import etree


FORM_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<h:html xmlns="http://www.w3.org/2002/xforms"
        xmlns:h="http://www.w3.org/1999/xhtml"
        xmlns:ev="http://www.w3.org/2001/xml-events"
        xmlns:xsd="http://www.w3.org/2001/XMLSchema"
        xmlns:jr="http://openrosa.org/javarosa">
  <h:head>
    <h:title>{title}</h:title>
    <model>
      {itext}
      <instance>
        {instance}
      </instance>
      {binds}
    </model>
  </h:head>
  <h:body>
    {body}
  </h:body>
</h:html>"""


def build_form_xml(instance="<data><q1/></data>", binds="", body="", itext="", title="Test Form"):
    return FORM_TEMPLATE.format(
        instance=instance, binds=binds, body=body, itext=itext, title=title,
    )


@pytest.fixture
def form_xml():
    """Factory: form_xml(instance=..., binds=..., body=..., itext=...) -> XML string."""
    return build_form_xml


@pytest.fixture
def head_and_body():
    """Factory returning the parsed (head, body) elements of a test form."""
    def parse(**kwargs):
        root = etree.fromstring(build_form_xml(**kwargs).encode('utf-8'))
        return root[0], root[1]
    return parse
