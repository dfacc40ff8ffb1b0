"""
Namespace-agnostic helpers over lxml elements.

XForm documents mix the default XForms namespace with XHTML and JavaRosa
prefixes. The loader mostly cares about local names, so these helpers
compare on those and skip comments and processing instructions.
"""

from typing import Iterator, List, Optional

from lxml import etree


XFORMS_NS = 'http://www.w3.org/2002/xforms'
XHTML_NS = 'http://www.w3.org/1999/xhtml'
EVENTS_NS = 'http://www.w3.org/2001/xml-events'
XSD_NS = 'http://www.w3.org/2001/XMLSchema'
JAVAROSA_NS = 'http://openrosa.org/javarosa'

# prefix -> URI every form must declare on its root (None is the default namespace)
REQUIRED_NAMESPACES = {
    None: XFORMS_NS,
    'h': XHTML_NS,
    'ev': EVENTS_NS,
    'xsd': XSD_NS,
    'jr': JAVAROSA_NS,
}


def is_element(node) -> bool:
    """True for element nodes, False for comments, PIs and entities."""
    return isinstance(node.tag, str)


def local_name(element) -> str:
    return etree.QName(element).localname


def child_elements(element) -> List:
    return [child for child in element if is_element(child)]


def iter_named(element, name: str) -> Iterator:
    """Yield descendants (document order) whose local name is name."""
    for node in element.iter():
        if node is not element and is_element(node) and local_name(node) == name:
            yield node


def first_child_named(element, name: str, namespace: Optional[str] = None) -> Optional[object]:
    """First direct child with local name name, optionally also in namespace."""
    for child in child_elements(element):
        qname = etree.QName(child)
        if qname.localname == name and (namespace is None or qname.namespace == namespace):
            return child
    return None


def prefixed_name(element, key: str) -> str:
    """
    Turn an lxml attribute key into its prefixed form.

    "{http://openrosa.org/javarosa}constraintMsg" becomes "jr:constraintMsg"
    when the jr prefix is in scope; unprefixed keys are returned unchanged.
    """
    if not key.startswith('{'):
        return key
    qname = etree.QName(key)
    for prefix, uri in element.nsmap.items():
        if prefix and uri == qname.namespace:
            return f"{prefix}:{qname.localname}"
    return qname.localname
