"""Rendering of selection sets and operations back into GraphQL text."""

from __future__ import annotations

import re
from typing import Any, Optional

from meshgate.graphql_ast import (
    Argument,
    Directive,
    Field,
    FragmentSpread,
    InlineFragment,
    OperationContext,
    Schema,
    Selection,
    Value,
    ValueKind,
)

_WHITESPACE = re.compile(r"[\t\n\f\r ]+")


def _indent(out: list[str], level: int, *suffix: str) -> None:
    out.append("\n")
    out.append("  " * (level + 1))
    out.extend(suffix)


def format_document(
    ctx: Optional[OperationContext],
    schema: Optional[Schema],
    operation_type: str,
    selection_set: list[Selection],
) -> tuple[str, Optional[dict[str, Any]]]:
    """Render a full operation document and return it with the variables it uses."""
    operation, variables = format_operation(ctx, selection_set)
    document = operation_type.lower() + " " + operation + format_selection_set(ctx, schema, selection_set)
    return document, variables


def format_operation(
    ctx: Optional[OperationContext], selection_set: list[Selection]
) -> tuple[str, Optional[dict[str, Any]]]:
    """Render the operation name and the variable definitions the selection set needs."""
    if ctx is None:
        return "", None

    used_names = set(selection_set_variables(selection_set))
    arguments = []
    used_variables: dict[str, Any] = {}
    definitions = ctx.operation.variable_definitions if ctx.operation else []
    for definition in definitions:
        if definition.variable not in used_names:
            continue
        if definition.variable in ctx.variables:
            used_variables[definition.variable] = ctx.variables[definition.variable]
        arguments.append(f"${definition.variable}: {definition.type}")

    name = ctx.operation_name or ""
    if not arguments:
        return name, None
    return f"{name}({','.join(arguments)})", used_variables


def selection_set_variables(selection_set: list[Selection]) -> list[str]:
    """Names of all variables referenced in a selection set, in order of appearance."""
    names: list[str] = []
    for selection in selection_set:
        names.extend(_directive_variables(selection.directives))
        if isinstance(selection, Field):
            names.extend(_argument_variables(selection.arguments))
            names.extend(selection_set_variables(selection.selection_set))
        elif isinstance(selection, InlineFragment):
            names.extend(selection_set_variables(selection.selection_set))
    return names


def _directive_variables(directives: list[Directive]) -> list[str]:
    return [name for d in directives for name in _argument_variables(d.arguments)]


def _argument_variables(arguments: list[Argument]) -> list[str]:
    return [name for a in arguments for name in _value_variables(a.value)]


def _value_variables(value: Value) -> list[str]:
    if value.kind is ValueKind.VARIABLE:
        return [value.raw]
    return [name for child in value.children for name in _value_variables(child.value)]


def _format_nested(
    out: list[str], schema: Optional[Schema], variables: dict[str, Any], level: int, selection_set: list[Selection]
) -> None:
    out.append(" {")
    _format_selection(out, schema, variables, level + 1, selection_set)
    _indent(out, level, "}")


def _format_selection(
    out: list[str], schema: Optional[Schema], variables: dict[str, Any], level: int, selection_set: list[Selection]
) -> None:
    for selection in selection_set:
        _indent(out, level)
        if isinstance(selection, Field):
            if selection.alias != selection.name:
                out.append(f"{selection.alias}: {selection.name}")
            else:
                out.append(selection.alias)
            _format_arguments(out, schema, variables, selection.arguments)
            for directive in selection.directives:
                out.append(" @" + directive.name)
                _format_arguments(out, schema, variables, directive.arguments)
            if selection.selection_set:
                _format_nested(out, schema, variables, level, selection.selection_set)
        elif isinstance(selection, InlineFragment):
            out.append(f"... on {selection.type_condition}")
            _format_nested(out, schema, variables, level, selection.selection_set)
        elif isinstance(selection, FragmentSpread):
            out.append("..." + selection.name)


def _format_arguments(
    out: list[str], schema: Optional[Schema], variables: dict[str, Any], arguments: list[Argument]
) -> None:
    if not arguments:
        return
    rendered = ", ".join(f"{a.name}: {format_argument(schema, a.value, variables)}" for a in arguments)
    out.append("(" + rendered + ")")


def format_selection_set(
    ctx: Optional[OperationContext], schema: Optional[Schema], selection_set: list[Selection]
) -> str:
    """Render a selection set as indented multi-line GraphQL."""
    variables = ctx.variables if ctx is not None else {}
    out = ["{"]
    _format_selection(out, schema, variables, 0, selection_set)
    out.append("\n}")
    return "".join(out)


def format_selection_set_single_line(
    ctx: Optional[OperationContext], schema: Optional[Schema], selection_set: list[Selection]
) -> str:
    """Render a selection set on one line, runs of whitespace collapsed."""
    return _WHITESPACE.sub(" ", format_selection_set(ctx, schema, selection_set))


def format_argument(schema: Optional[Schema], value: Optional[Value], variables: dict[str, Any]) -> str:
    """Render an argument value, keeping variables as references."""
    if value is None:
        return "<nil>"
    if schema is None:
        return str(value)
    if value.kind is ValueKind.LIST:
        return "[" + ",".join(format_argument(schema, c.value, variables) for c in value.children) + "]"
    if value.kind is ValueKind.OBJECT:
        return (
            "{"
            + ",".join(f"{c.name}:{format_argument(schema, c.value, variables)}" for c in value.children)
            + "}"
        )
    return str(value)