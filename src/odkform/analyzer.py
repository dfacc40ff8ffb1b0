"""
Form Analyzer: early diagnostics and inventory of loaded forms.

This module provides lightweight analysis of FormModel objects:
    - Field and control inventory
    - Logic dependencies between fields
    - References to unknown fields
    - Expression complexity metrics
    - Warning flags for implementation risk

IMPORTANT: This is read-only. It does NOT modify the model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from odkform.controls import Control, ControlGroup
from odkform.errors import DiagnosticKind
from odkform.expressions import (
    BooleanGroup,
    Conditional,
    Expression,
    FunctionCall,
    referenced_paths,
)
from odkform.model import FieldDefinition, FormModel


@dataclass
class ExpressionMetrics:
    """Metrics about a single expression tree."""
    depth: int = 0
    node_count: int = 0

    def add(self, other: ExpressionMetrics) -> None:
        self.depth = max(self.depth, other.depth)
        self.node_count += other.node_count


def _analyze_expression(expr: Expression | None) -> ExpressionMetrics:
    """Recursively analyze an expression tree."""
    if expr is None:
        return ExpressionMetrics()

    metrics = ExpressionMetrics(node_count=1)
    children: List[Expression] = []

    if isinstance(expr, FunctionCall):
        children = list(expr.args)
    elif isinstance(expr, Conditional):
        children = [expr.test, expr.when_true, expr.when_false]
    elif isinstance(expr, BooleanGroup):
        for conjunction in expr.conjunctions():
            children.extend(conjunction)

    if children:
        nested = ExpressionMetrics()
        for child in children:
            nested.add(_analyze_expression(child))
        metrics.depth = 1 + nested.depth
        metrics.node_count += nested.node_count

    return metrics


def _field_logic(f: FieldDefinition) -> List[Expression]:
    logic = []
    if f.calculate is not None:
        logic.append(f.calculate)
    for bound in (f.relevant, f.constraint):
        if bound is not None:
            logic.append(bound.condition)
    return logic


@dataclass
class FormReport:
    """Comprehensive analysis report for a form."""

    title: str
    base_path: str
    total_fields: int = 0
    total_containers: int = 0
    total_controls: int = 0
    total_groups: int = 0
    repeat_groups: int = 0

    # Logic
    dependencies: Dict[str, Set[str]] = field(default_factory=dict)
    undefined_references: Set[str] = field(default_factory=set)
    unparsed_expressions: int = 0
    max_expression_depth: int = 0
    total_expression_nodes: int = 0

    # Coverage
    required_fields: int = 0
    fields_with_relevant: int = 0
    fields_with_constraint: int = 0
    fields_with_calculate: int = 0

    # Cross-reference between body and instance
    unbound_controls: Set[str] = field(default_factory=set)
    fields_without_control: Set[str] = field(default_factory=set)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    def dependents_of(self, path: str) -> Set[str]:
        """Fields whose logic refers to path."""
        return {owner for owner, refs in self.dependencies.items() if path in refs}


def analyze_form(model: FormModel, max_depth_warning: Optional[int] = 5) -> FormReport:
    """
    Perform analysis of a loaded FormModel.

    Checks for:
    - Logic referring to paths that are not fields
    - Controls whose ref is not a field, and leaf fields with no control
    - Expressions the parser could not recognize
    - Expression complexity

    Returns a FormReport with metrics and warnings.
    """
    report = FormReport(title=model.title, base_path=model.base_path)

    # =========================================================================
    # 1. FIELDS AND LOGIC
    # =========================================================================

    for f in model.fields.values():
        report.total_fields += 1
        if f.is_container:
            report.total_containers += 1
        if f.required:
            report.required_fields += 1
        if f.relevant is not None:
            report.fields_with_relevant += 1
        if f.constraint is not None:
            report.fields_with_constraint += 1
        if f.calculate is not None:
            report.fields_with_calculate += 1

        metrics = ExpressionMetrics()
        references: Set[str] = set()
        for expr in _field_logic(f):
            metrics.add(_analyze_expression(expr))
            references.update(referenced_paths(expr))

        if references:
            report.dependencies[f.path] = references
        report.undefined_references.update(
            ref for ref in references if ref not in model.fields
        )
        report.max_expression_depth = max(report.max_expression_depth, metrics.depth)
        report.total_expression_nodes += metrics.node_count

    report.unparsed_expressions = len(
        model.diagnostics_of(DiagnosticKind.UNRECOGNIZED_EXPRESSION)
    )

    # =========================================================================
    # 2. CONTROLS
    # =========================================================================

    for control in model.iter_controls():
        if isinstance(control, ControlGroup):
            report.total_groups += 1
            if control.is_repeat:
                report.repeat_groups += 1
        elif isinstance(control, Control):
            report.total_controls += 1
            if control.ref is None or control.ref not in model.fields:
                report.unbound_controls.add(control.ref or '<no ref>')

    for f in model.fields.values():
        if f.is_container or f.calculate is not None or f.path == model.base_path:
            continue
        if model.find_control(f.path) is None:
            report.fields_without_control.add(f.path)

    # =========================================================================
    # 3. WARNING FLAGS
    # =========================================================================

    if report.undefined_references:
        report.add_warning(
            f"Logic refers to unknown fields: {', '.join(sorted(report.undefined_references))}"
        )

    if report.unbound_controls:
        report.add_warning(
            f"Controls without a field: {', '.join(sorted(report.unbound_controls))}"
        )

    if max_depth_warning is not None and report.max_expression_depth > max_depth_warning:
        report.add_warning(
            f"High expression complexity: max depth {report.max_expression_depth}"
        )

    for d in model.diagnostics:
        report.add_warning(d.message)

    return report
