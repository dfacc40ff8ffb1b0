#!/usr/bin/env python3
"""
Demo: Load an XForm (the example household survey by default), analyze it
and export the loaded model.

Usage:
    python demo_form_report.py [form.xml] [--options options.yaml]
"""

import argparse
import logging

from odkform.analyzer import analyze_form
from odkform.config import DEFAULT_OPTIONS, ParserOptions
from odkform.controls import ControlGroup
from odkform.examples import load_example_form
from odkform.form_parser import load_form_file
from odkform.serialization import form_to_yaml


def print_controls(model, controls, indent=1):
    for control in controls:
        marker = " (repeat)" if isinstance(control, ControlGroup) and control.is_repeat else ""
        print(f"{'  ' * indent}- [{control.control_type}] {control.ref or ''} "
              f"{model.get_text(control.label)!r}{marker}")
        if isinstance(control, ControlGroup):
            print_controls(model, control.children, indent + 1)


def print_report(model, report):
    """Pretty-print a FormReport."""
    print()
    print("=" * 70)
    print(f"FORM ANALYSIS REPORT: {report.title or report.base_path}")
    print("=" * 70)
    print()

    print("📊 BASIC METRICS")
    print(f"  Base Path:             {report.base_path}")
    print(f"  Total Fields:          {report.total_fields} ({report.total_containers} containers)")
    print(f"  Total Controls:        {report.total_controls}")
    print(f"  Total Groups:          {report.total_groups} ({report.repeat_groups} repeatable)")
    print(f"  Languages:             {', '.join(model.translations.languages) or 'None'}")
    print()

    print("🔗 LOGIC DEPENDENCIES")
    if report.dependencies:
        for owner, refs in sorted(report.dependencies.items()):
            print(f"  {owner} <- {', '.join(sorted(refs))}")
    else:
        print("  None")
    print(f"  Undefined References:  {sorted(report.undefined_references) or 'None'}")
    print(f"  Unparsed Expressions:  {report.unparsed_expressions}")
    print(f"  Max Expression Depth:  {report.max_expression_depth}")
    print(f"  Total Expression Nodes:{report.total_expression_nodes}")
    print()

    print("✅ COVERAGE METRICS")
    print(f"  Required Fields:       {report.required_fields}")
    print(f"  With Relevant:         {report.fields_with_relevant}")
    print(f"  With Constraint:       {report.fields_with_constraint}")
    print(f"  With Calculate:        {report.fields_with_calculate}")
    print(f"  Unbound Controls:      {sorted(report.unbound_controls) or 'None'}")
    print(f"  Fields Without Control:{sorted(report.fields_without_control) or 'None'}")
    print()

    print("🌳 CONTROL TREE")
    print_controls(model, model.controls)
    print()

    if report.warnings:
        print("⚠️  WARNINGS")
        for i, warning in enumerate(report.warnings, 1):
            print(f"  {i}. {warning}")
    else:
        print("✨ NO WARNINGS - Form looks clean!")
    print()


def main():
    parser = argparse.ArgumentParser(description="Analyze an XForm definition")
    parser.add_argument("form", nargs="?", help="XForm file (defaults to the example survey)")
    parser.add_argument("--options", help="YAML file with parser options")
    parser.add_argument("--output", default="example_form_output.yaml",
                        help="Where to write the YAML export")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    options = ParserOptions.from_yaml(args.options) if args.options else DEFAULT_OPTIONS
    model = load_form_file(args.form, options) if args.form else load_example_form(options)

    print_report(model, analyze_form(model))

    with open(args.output, "w", encoding="utf-8") as f:
        f.write(form_to_yaml(model))
    print(f"✅ Form exported to {args.output}")


if __name__ == "__main__":
    main()
