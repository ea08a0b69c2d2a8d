"""Merging of downstream results and shaping of the final response data."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from meshgate.graphql_ast import (
    Field,
    FragmentSpread,
    InlineFragment,
    Schema,
    Selection,
    Type,
)
from meshgate.selection import union_and_trim_selection_set

_ID_KEY = "_bramble_id"
_TYPENAME_KEY = "_bramble__typename"

PathElement = Union[str, int]


@dataclass
class GraphQLError:
    """An error entry of a GraphQL response."""

    message: str
    path: list[PathElement] = field(default_factory=list)
    locations: list[tuple[int, int]] = field(default_factory=list)
    extensions: Optional[dict[str, Any]] = None


@dataclass
class ExecutionResult:
    """The data one downstream request returned and where it belongs."""

    service_url: str = ""
    insertion_point: list[str] = field(default_factory=list)
    data: Any = None
    errors: list[GraphQLError] = field(default_factory=list)


class NullBubbledToRootError(Exception):
    """A null in a non-nullable position propagated up to the response root."""

    def __init__(self, errors: list[GraphQLError]) -> None:
        super().__init__("null bubbled up to root")
        self.errors = list(errors)


def merge_execution_results(results: list[ExecutionResult]) -> Optional[dict[str, Any]]:
    """Merge every result into the first one, following each insertion point."""
    if not results:
        raise ValueError("nothing to merge")

    first = results[0].data
    if len(results) == 1:
        if first is None:
            return None
        if not isinstance(first, dict):
            raise TypeError(f"a complete graphql response should be a mapping, got {type(first).__name__}")
        return first

    data = first if first is not None else {}
    for result in results[1:]:
        _merge_rec(result.data, data, result.insertion_point)

    if not isinstance(data, dict):
        raise TypeError(f"merged execution results should be a mapping, got {type(data).__name__}")
    return data


def _merge_maps(dst: dict[str, Any], src: dict[str, Any]) -> None:
    for key, value in src.items():
        existing = dst.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            _merge_maps(existing, value)
        else:
            dst[key] = value


def _merge_rec(src: Any, dst: Any, insertion_point: list[str]) -> None:
    if not insertion_point:
        if dst is None:
            return
        if isinstance(dst, dict):
            if isinstance(src, dict):
                _merge_maps(dst, src)
            elif isinstance(src, list):
                _merge_boundary_results(src, dst)
        elif isinstance(dst, list):
            for inner in dst:
                _merge_rec(src, inner, insertion_point)
        else:
            raise TypeError(f"unexpected type {type(dst).__name__!r} for top-level merge")
        return

    if isinstance(dst, dict):
        child = dst.get(insertion_point[0])
        if isinstance(child, list):
            for inner in child:
                _merge_rec(src, inner, insertion_point[1:])
        else:
            _merge_rec(src, child, insertion_point[1:])
    elif isinstance(dst, list):
        for inner in dst:
            _merge_rec(src, inner, insertion_point)
    elif dst is None:
        return
    else:
        raise TypeError(f"unexpected type {type(dst).__name__!r} for non top-level merge")


def _merge_boundary_results(src: list[Any], dst: dict[str, Any]) -> None:
    results = _boundary_field_results(src)
    dst_type = boundary_type_from_map(dst)
    for result in results:
        if boundary_type_from_map(result) != dst_type:
            continue
        dst_id = boundary_id_from_map(dst)
        if boundary_id_from_map(result) == dst_id:
            dst.update((k, v) for k, v in result.items() if k != _ID_KEY)


def _boundary_field_results(src: list[Any]) -> list[dict[str, Any]]:
    results = []
    for index, element in enumerate(src):
        if element is None:
            continue
        if not isinstance(element, dict):
            raise ValueError(
                f"expected value at index {index} to be a mapping but got {type(element).__name__!r}"
            )
        results.append(element)
    return results


def boundary_id_from_map(boundary_map: dict[str, Any]) -> str:
    """The boundary id of an object, which must be a string."""
    value = boundary_map.get(_ID_KEY)
    if not isinstance(value, str):
        raise ValueError(f'"{_ID_KEY}" not found')
    return value


def boundary_type_from_map(boundary_map: dict[str, Any]) -> str:
    """The boundary type name of an object, which must be a string."""
    value = boundary_map.get(_TYPENAME_KEY)
    if not isinstance(value, str):
        raise ValueError(f'"{_TYPENAME_KEY}" not found')
    return value


def _typename(result: dict[str, Any]) -> str:
    value = result.get(_TYPENAME_KEY)
    return value if isinstance(value, str) else ""


def bubble_up_null_values_in_place(
    schema: Optional[Schema], selection_set: list[Selection], result: dict[str, Any]
) -> list[GraphQLError]:
    """Null out parents of unexpected nulls as the schema requires and report each one.

    Raises NullBubbledToRootError, carrying the errors, when a null reaches the root.
    """
    errors, bubble_up = _bubble(schema, None, selection_set, result, [])
    if bubble_up:
        raise NullBubbledToRootError(errors)
    return errors


def _bubble(
    schema: Optional[Schema],
    current_type: Optional[Type],
    selection_set: list[Selection],
    result: Any,
    path: list[PathElement],
) -> tuple[list[GraphQLError], bool]:
    errors: list[GraphQLError] = []
    bubble_up = False

    if isinstance(result, dict):
        for selection in union_and_trim_selection_set(_typename(result), schema, selection_set):
            if isinstance(selection, Field):
                if selection.name.startswith("__"):
                    continue
                field_type = selection.definition.type
                value = result.get(selection.alias)
                if value is None:
                    if field_type.non_null:
                        errors.append(
                            GraphQLError(
                                message=f"got a null response for non-nullable field {json.dumps(selection.alias)}",
                                path=[*path, selection.alias],
                            )
                        )
                        bubble_up = True
                    return errors, bubble_up
                if selection.selection_set:
                    lower_errors, lower_bubble = _bubble(
                        schema, field_type, selection.selection_set, value, [*path, selection.alias]
                    )
                    if lower_bubble:
                        if field_type.non_null:
                            bubble_up = True
                        else:
                            result[selection.alias] = None
                    errors.extend(lower_errors)
            elif isinstance(selection, FragmentSpread):
                lower_errors, bubble_up = _bubble(schema, None, selection.definition.selection_set, result, path)
                errors.extend(lower_errors)
            elif isinstance(selection, InlineFragment):
                lower_errors, bubble_up = _bubble(schema, None, selection.selection_set, result, path)
                errors.extend(lower_errors)
            else:
                raise TypeError(f"unknown selection type: {type(selection).__name__}")
    elif isinstance(result, list):
        elem_non_null = current_type is not None and current_type.elem is not None and current_type.elem.non_null
        for index, value in enumerate(result):
            lower_errors, lower_bubble = _bubble(schema, current_type, selection_set, value, [*path, index])
            if lower_bubble:
                if elem_non_null:
                    bubble_up = True
                else:
                    result[index] = None
            errors.extend(lower_errors)
    elif result is None:
        if current_type is not None and current_type.elem is not None and current_type.elem.non_null:
            raise ValueError("unexpected null in a list of non-nullable elements")
    else:
        raise TypeError(f"unexpected result type {type(result).__name__!r}")

    return errors, bubble_up


def format_response_data(
    schema: Optional[Schema], selection_set: list[Selection], result: dict[str, Any]
) -> str:
    """Render the response data as JSON, ordered and trimmed as the selection set says."""
    return _format(schema, selection_set, result, False)


def _format(schema: Optional[Schema], selection_set: list[Selection], result: Any, inside_fragment: bool) -> str:
    if result is None:
        return "null"
    if isinstance(result, dict):
        if not result:
            return "null"
        parts: list[str] = []
        for selection in union_and_trim_selection_set(_typename(result), schema, selection_set):
            if isinstance(selection, InlineFragment):
                body = _format(schema, selection.selection_set, result, True)
            elif isinstance(selection, FragmentSpread):
                body = _format(schema, selection.definition.selection_set, result, True)
            elif isinstance(selection, Field):
                if selection.alias not in result:
                    value_json = "null"
                elif selection.selection_set:
                    value_json = _format(schema, selection.selection_set, result[selection.alias], False)
                else:
                    value_json = json.dumps(result[selection.alias], ensure_ascii=False, separators=(",", ":"))
                body = f'"{selection.alias}":{value_json}'
            else:
                body = ""
            if body:
                parts.append(body)
        inner = ",".join(parts)
        return inner if inside_fragment else "{" + inner + "}"
    if isinstance(result, list):
        return "[" + ",".join(_format(schema, selection_set, v, False) for v in result) + "]"
    return ""