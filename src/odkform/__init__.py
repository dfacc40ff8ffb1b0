"""
ODK Form Model Package

Loads XForm (ODK/JavaRosa) form definitions into an in-memory model:
    - a field map built from the instance skeleton and bind declarations
    - a translation table built from itext
    - an ordered tree of controls built from the body

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - HTML or any other rendering target
    - Evaluating conditions against submitted data

Logic attributes (relevant, constraint, calculate) are parsed into
expression trees, never evaluated.
"""

__version__ = "0.1.0"
