"""Boundary lookups: collecting ids, building lookup queries and internal steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from meshgate.execution_result import (
    ExecutionResult,
    boundary_id_from_map,
    boundary_type_from_map,
)
from meshgate.format import format_operation, format_selection_set_single_line
from meshgate.graphql_ast import (
    OperationContext,
    Schema,
    Selection,
    Value,
    ValueKind,
    selection_set_to_fields,
)

INTERNAL_SERVICE_NAME = "internal"


@dataclass(frozen=True)
class BoundaryField:
    """The root field a service exposes to look up boundary objects by id."""

    field: str
    argument: str
    array: bool = False


def extract_boundary_ids(data: Any, insertion_point: list[str], parent_type: str) -> list[str]:
    """Collect the boundary ids of objects of parent_type found at the insertion point."""
    if data is None:
        return []
    if isinstance(data, list):
        return [
            boundary_id
            for inner in data
            for boundary_id in extract_boundary_ids(inner, insertion_point, parent_type)
        ]
    if not isinstance(data, dict):
        raise TypeError(f"extract_boundary_ids: unexpected type: {type(data).__name__}")
    if insertion_point:
        return extract_boundary_ids(data.get(insertion_point[0]), insertion_point[1:], parent_type)
    if boundary_type_from_map(data) != parent_type:
        return []
    return [boundary_id_from_map(data)]


def extract_and_dedupe_boundary_ids(data: Any, insertion_point: list[str], parent_type: str) -> list[str]:
    """Like extract_boundary_ids, with each id kept once in order of first appearance."""
    return list(dict.fromkeys(extract_boundary_ids(data, insertion_point, parent_type)))


def batch_by(items: list[str], batch_size: int) -> list[list[str]]:
    """Split items into consecutive batches; there is always at least one batch."""
    batches = []
    while batch_size < len(items):
        batches.append(items[:batch_size])
        items = items[batch_size:]
    batches.append(list(items))
    return batches


def _quoted(text: str) -> str:
    return str(Value(ValueKind.STRING, raw=text))


def build_boundary_query_documents(
    ctx: Optional[OperationContext],
    schema: Optional[Schema],
    selection_set: list[Selection],
    ids: list[str],
    boundary_field: BoundaryField,
    batch_size: int,
) -> tuple[list[str], Optional[dict[str, Any]]]:
    """Build the lookup documents for the given ids and the variables they use.

    An array boundary field takes all ids in one document; otherwise each id
    gets its own aliased selection, batch_size selections per document.
    """
    operation, variables = format_operation(ctx, selection_set)
    selection_ql = format_selection_set_single_line(ctx, schema, selection_set)

    if boundary_field.array:
        ids_ql = "[" + ", ".join(_quoted(i) for i in ids) + "]"
        document = (
            f"query {operation} {{ _result: {boundary_field.field}"
            f"({boundary_field.argument}: {ids_ql}) {selection_ql} }}"
        )
        return [document], variables

    documents = []
    index = 0
    for batch in batch_by(ids, batch_size):
        selections = []
        for boundary_id in batch:
            selections.append(
                f"_{index}: {boundary_field.field}({boundary_field.argument}: {_quoted(boundary_id)}) {selection_ql}"
            )
            index += 1
        documents.append(f"query {operation} {{ {' '.join(selections)} }}")
    return documents, variables


def trim_insertion_point_for_nested_boundary_step(
    data: list[Any], child_insertion_point: list[str]
) -> list[str]:
    """Cut the insertion point down to the part that lies inside boundary results.

    The insertion point is relative to the root step's data, but a boundary
    result holds only a part of that tree; the remainder starts at the first
    key that the first boundary result contains.
    """
    if not data:
        raise ValueError("no boundary results to process")
    first = data[0]
    if not isinstance(first, dict):
        raise TypeError("a single boundary result should be a mapping")
    for index, point in enumerate(child_insertion_point):
        if point in first:
            return child_insertion_point[index:]
    raise ValueError("could not find any insertion points inside boundary data")


def extract_non_nil_boundary_results(data: list[Any]) -> list[Any]:
    """The boundary results that are not null."""
    return [d for d in data if d is not None]


def build_typename_response_map(selection_set: list[Selection], parent_type_name: str) -> dict[str, Any]:
    """Answer a selection made only of __typename fields and nested objects."""
    result: dict[str, Any] = {}
    for selected in selection_set_to_fields(selection_set):
        if selected.selection_set:
            field_type = selected.definition.type if selected.definition is not None else None
            if field_type is None or not field_type.named_type:
                raise ValueError("build_typename_response_map: expected named type")
            result[selected.alias] = build_typename_response_map(selected.selection_set, field_type.name())
        else:
            if selected.name != "__typename":
                raise ValueError("build_typename_response_map: expected __typename")
            result[selected.alias] = parent_type_name
    return result


def execute_internal_step(selection_set: list[Selection], parent_type: str) -> ExecutionResult:
    """Resolve a step that the gateway answers itself without a downstream call."""
    data = build_typename_response_map(selection_set, parent_type)
    return ExecutionResult(service_url=INTERNAL_SERVICE_NAME, insertion_point=[], data=data)