"""
Serialization helpers for loaded forms (FormModel, controls, expressions).

Exports a FormModel to plain dicts, JSON or YAML for a rendering layer.
Expressions round-trip losslessly through expr_to_dict/expr_from_dict.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from odkform.controls import BaseControl, Control, ControlGroup, SelectControl
from odkform.expressions import (
    BooleanGroup,
    BoundCondition,
    Comparison,
    Conditional,
    Expression,
    FunctionCall,
    MatchOperator,
    SelectOrRegex,
    Unparsed,
)
from odkform.model import FieldDefinition, FormModel
from odkform.translations import Text, TextReference


def expr_to_dict(expr: Expression | None) -> Any:
    if expr is None:
        return None
    if isinstance(expr, FunctionCall):
        return {"type": "call", "name": expr.name, "args": [expr_to_dict(a) for a in expr.args]}
    if isinstance(expr, Conditional):
        return {
            "type": "if",
            "test": expr_to_dict(expr.test),
            "when_true": expr_to_dict(expr.when_true),
            "when_false": expr_to_dict(expr.when_false),
        }
    if isinstance(expr, SelectOrRegex):
        return {"type": "match", "op": expr.op.value, "path": expr.path, "value": expr.value}
    if isinstance(expr, Comparison):
        return {
            "type": "compare",
            "op": expr.op,
            "path": expr.path,
            "value": expr.value,
            "wrapper_function": expr.wrapper_function,
        }
    if isinstance(expr, BooleanGroup):
        terms = []
        for term in expr.terms:
            if isinstance(term, tuple):
                terms.append([expr_to_dict(t) for t in term])
            else:
                terms.append(expr_to_dict(term))
        return {"type": "group", "terms": terms}
    if isinstance(expr, Unparsed):
        return {"type": "unparsed", "text": expr.text}
    raise TypeError(f"Unsupported Expression type: {type(expr)}")


def expr_from_dict(d: Any) -> Expression | None:
    if d is None:
        return None
    t = d.get("type")
    if t == "call":
        return FunctionCall(name=d["name"], args=tuple(expr_from_dict(a) for a in d.get("args", [])))
    if t == "if":
        return Conditional(
            test=expr_from_dict(d["test"]),
            when_true=expr_from_dict(d["when_true"]),
            when_false=expr_from_dict(d["when_false"]),
        )
    if t == "match":
        return SelectOrRegex(op=MatchOperator(d["op"]), path=d["path"], value=d["value"])
    if t == "compare":
        return Comparison(op=d["op"], path=d["path"], value=d["value"],
                          wrapper_function=d.get("wrapper_function"))
    if t == "group":
        terms = []
        for term in d.get("terms", []):
            if isinstance(term, list):
                terms.append(tuple(expr_from_dict(item) for item in term))
            else:
                terms.append(expr_from_dict(term))
        return BooleanGroup(terms=tuple(terms))
    if t == "unparsed":
        return Unparsed(d["text"])
    raise TypeError(f"Unsupported expression dict type: {t}")


def bound_condition_to_dict(b: BoundCondition | None) -> Dict[str, Any] | None:
    if b is None:
        return None
    return {"condition": expr_to_dict(b.condition), "message": b.message}


def text_to_dict(text: Text) -> Any:
    if isinstance(text, TextReference):
        return {"text": text.text, "translation_id": text.translation_id, "form": text.form}
    return text


def field_to_dict(f: FieldDefinition) -> Dict[str, Any]:
    return {
        "path": f.path,
        "is_container": f.is_container,
        "type": f.type,
        "default_value": f.default_value,
        "required": f.required,
        "readonly": f.readonly,
        "calculate": expr_to_dict(f.calculate),
        "constraint": bound_condition_to_dict(f.constraint),
        "relevant": bound_condition_to_dict(f.relevant),
        "attributes": dict(f.attributes),
    }


def control_to_dict(c: BaseControl) -> Dict[str, Any]:
    d = {
        "type": c.control_type,
        "ref": c.ref,
        "name": c.element_name,
        "label": text_to_dict(c.label),
        "hint": text_to_dict(c.hint),
        "appearance": c.appearance,
    }
    if isinstance(c, ControlGroup):
        d["is_repeat"] = c.is_repeat
        d["children"] = [control_to_dict(child) for child in c.children]
    elif isinstance(c, Control):
        d["required"] = c.is_required()
        d["default_value"] = c.default_value
        d["relevant"] = bound_condition_to_dict(c.relevant)
    if isinstance(c, SelectControl):
        d["multiple"] = c.multiple
        d["options"] = [
            {"label": text_to_dict(o.label), "value": text_to_dict(o.value)} for o in c.options
        ]
    return d


def controls_to_list(controls: List[BaseControl]) -> List[Dict[str, Any]]:
    return [control_to_dict(c) for c in controls]


def form_to_dict(m: FormModel) -> Dict[str, Any]:
    return {
        "title": m.title,
        "base_path": m.base_path,
        "fields": [field_to_dict(f) for f in m.fields.values()],
        "translations": {
            "default_language": m.translations.default_language,
            "languages": m.translations.languages,
        },
        "controls": controls_to_list(m.controls),
        "diagnostics": [
            {"kind": d.kind.value, "message": d.message, "source": d.source}
            for d in m.diagnostics
        ],
    }


def form_to_json(m: FormModel) -> str:
    return json.dumps(form_to_dict(m), sort_keys=True)


def form_to_yaml(m: FormModel) -> str:
    return yaml.safe_dump(form_to_dict(m))
