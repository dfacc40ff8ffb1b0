"""
Form parser entry points (XML text or file → FormModel).

    model = load_form_string(xml)
    model = load_form_file("form.xml")
    model = load_form_tree(root_element)

All three raise a FormLoadError subclass on fatal problems and never
return a partial model. FormParser wraps them for callers that prefer a
boolean outcome.
"""

import logging
from typing import Optional, Tuple, Union

from lxml import etree

from odkform.config import DEFAULT_OPTIONS, ParserOptions
from odkform.controls import Control
from odkform.errors import FormLoadError, SchemaError
from odkform.loader import DefinitionLoader
from odkform.model import FormModel
from odkform.tree_builder import ControlTreeBuilder
from odkform.xmlutils import REQUIRED_NAMESPACES, XHTML_NS, child_elements


logger = logging.getLogger(__name__)


def _xml_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True)


def _check_declaration(tree) -> None:
    docinfo = tree.docinfo
    if (docinfo.encoding or 'UTF-8').upper() != 'UTF-8':
        raise SchemaError("XML Encoding must be UTF-8")
    if docinfo.xml_version and docinfo.xml_version != '1.0':
        raise SchemaError("XML Version must be 1.0")


def _single_child(root, name: str):
    matches = [child for child in child_elements(root) if child.tag == f"{{{XHTML_NS}}}{name}"]
    if len(matches) != 1:
        raise SchemaError(f"Invalid XForm - expected exactly one {name}, found {len(matches)}")
    return matches[0]


def validate_schema(root) -> Tuple[object, object]:
    """
    Check the root element and return its (head, body).

    Raises:
        SchemaError: Root is not h:html, a required namespace declaration
            is missing or wrong, or head/body is missing or duplicated
    """
    qname = etree.QName(root)
    if qname.localname != 'html':
        raise SchemaError(f"Invalid root element - {qname.localname}")
    if qname.namespace != XHTML_NS:
        raise SchemaError("Document is not valid XHTML")

    for prefix, uri in REQUIRED_NAMESPACES.items():
        if root.nsmap.get(prefix) != uri:
            declaration = 'xmlns' if prefix is None else f"xmlns:{prefix}"
            raise SchemaError(f'Invalid or Missing Namespace declaration: "{declaration}"')

    return _single_child(root, 'head'), _single_child(root, 'body')


def load_form_tree(root, options: ParserOptions = DEFAULT_OPTIONS) -> FormModel:
    """
    Load a form from an already-parsed lxml root element.

    Raises:
        SchemaError, DefinitionError, NestingDepthError
    """
    head, body = validate_schema(root)

    definitions = DefinitionLoader(options).load(head)
    builder = ControlTreeBuilder(
        base_path=definitions.base_path,
        fields=definitions.fields,
        translations=definitions.translations,
        options=options,
        diagnostics=definitions.diagnostics,
    )
    controls = builder.build(body)

    logger.debug("Loaded form %s: %d fields, %d top-level controls, %d diagnostics",
                 definitions.base_path, len(definitions.fields), len(controls),
                 len(definitions.diagnostics))
    return FormModel(
        base_path=definitions.base_path,
        fields=definitions.fields,
        translations=definitions.translations,
        controls=controls,
        title=definitions.title,
        diagnostics=definitions.diagnostics,
    )


def load_form_string(xml: Union[str, bytes], options: ParserOptions = DEFAULT_OPTIONS) -> FormModel:
    """
    Parse XML text and load the form it contains.

    Raises:
        SchemaError: Malformed XML or any load_form_tree schema error
        DefinitionError, NestingDepthError: See load_form_tree
    """
    if isinstance(xml, str):
        xml = xml.encode('utf-8')
    xml = xml.strip()
    try:
        root = etree.fromstring(xml, _xml_parser())
    except etree.XMLSyntaxError as e:
        raise SchemaError(f"Error parsing XML: {e}") from e

    _check_declaration(root.getroottree())
    return load_form_tree(root, options)


def load_form_file(filepath: str, options: ParserOptions = DEFAULT_OPTIONS) -> FormModel:
    """
    Parse an XForm file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        SchemaError, DefinitionError, NestingDepthError: See load_form_string
    """
    with open(filepath, 'rb') as f:
        content = f.read()
    return load_form_string(content, options)


class FormParser:
    """
    Boolean-outcome wrapper around the load functions.

    After a successful loads()/load(), model holds the FormModel. After a
    failure, model is None and error holds the FormLoadError.
    """

    def __init__(self, options: ParserOptions = DEFAULT_OPTIONS):
        self.options = options
        self.model: Optional[FormModel] = None
        self.error: Optional[FormLoadError] = None

    def _run(self, loader, source) -> bool:
        self.model, self.error = None, None
        try:
            self.model = loader(source, self.options)
        except FormLoadError as e:
            logger.warning("Error parsing XForm: %s", e)
            self.error = e
            return False
        return True

    def loads(self, xml: Union[str, bytes]) -> bool:
        return self._run(load_form_string, xml)

    def load(self, filepath: str) -> bool:
        return self._run(load_form_file, filepath)

    def get_title(self) -> str:
        return self.model.title if self.model is not None else ''

    def find_control(self, path: str) -> Optional[Control]:
        if self.model is None:
            return None
        return self.model.find_control(path)


__all__ = [
    "FormParser",
    "load_form_file",
    "load_form_string",
    "load_form_tree",
    "validate_schema",
]
