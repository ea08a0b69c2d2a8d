"""Reshaping of selection sets to match the shape of a response object."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from meshgate.graphql_ast import (
    Definition,
    Field,
    FragmentSpread,
    InlineFragment,
    Schema,
    Selection,
)


def union_and_trim_selection_set(
    response_type_name: str, schema: Optional[Schema], selection_set: list[Selection]
) -> list[Selection]:
    """Drop fragments that do not apply to the response type, then merge fragment fields.

    Fragments on an abstract type's implementation are kept only when the
    response's type name matches them; fields selected both at the top level
    and inside fragments are kept once.
    """
    filtered = eliminate_unwanted_fragments(response_type_name, schema, selection_set)
    return merge_with_top_level_fragment_fields(filtered)


def eliminate_unwanted_fragments(
    response_type_name: str, schema: Optional[Schema], selection_set: list[Selection]
) -> list[Selection]:
    """Keep fields and the fragments that apply to the response's type."""
    kept: list[Selection] = []
    for selection in selection_set:
        if isinstance(selection, Field):
            kept.append(selection)
            continue
        if isinstance(selection, InlineFragment):
            type_condition = selection.type_condition
        elif isinstance(selection, FragmentSpread):
            if selection.definition is None:
                raise ValueError(f"fragment spread {selection.name!r} has no definition")
            type_condition = selection.definition.type_condition
        else:
            continue
        if selection.object_definition is not None and include_fragment(
            response_type_name, schema, selection.object_definition, type_condition
        ):
            kept.append(selection)
    return kept


def include_fragment(
    response_type_name: str,
    schema: Optional[Schema],
    object_definition: Definition,
    type_condition: str,
) -> bool:
    """Whether a fragment applies to an object of the given response type."""
    return not (
        object_definition.is_abstract_type()
        and _implements(schema, object_definition.name, type_condition)
        and type_condition != response_type_name
    )


def _implements(schema: Optional[Schema], abstract_name: str, type_name: str) -> bool:
    if schema is None:
        return False
    return any(d.name == abstract_name for d in schema.implements.get(type_name, []))


def merge_with_top_level_fragment_fields(selection_set: list[Selection]) -> list[Selection]:
    """Remove fields repeated across the selection set and its fragments.

    The input is left untouched; fields and fragments that change are copies.
    """
    merger = _SelectionSetMerger()
    for selection in selection_set:
        if isinstance(selection, Field):
            merger.add_field(selection)
        elif isinstance(selection, InlineFragment):
            merger.add_inline_fragment(selection)
        elif isinstance(selection, FragmentSpread):
            merger.add_fragment_spread(selection)
    return merger.selection_set


class _SelectionSetMerger:
    def __init__(self) -> None:
        self.selection_set: list[Selection] = []
        self._seen: dict[str, Field] = {}

    def _claim(self, field: Field) -> Optional[Field]:
        """Register a field; return the copy to emit, or None when already seen."""
        seen = self._seen.get(field.alias)
        if seen is None:
            own = replace(field, selection_set=list(field.selection_set))
            self._seen[field.alias] = own
            return own
        if seen.name == field.name and seen.selection_set and field.selection_set:
            seen.selection_set.extend(field.selection_set)
        return None

    def add_field(self, field: Field) -> None:
        claimed = self._claim(field)
        if claimed is not None:
            self.selection_set.append(claimed)

    def add_inline_fragment(self, fragment: InlineFragment) -> None:
        deduped = self._dedupe(fragment.selection_set)
        if deduped:
            self.selection_set.append(replace(fragment, selection_set=deduped))

    def add_fragment_spread(self, spread: FragmentSpread) -> None:
        if spread.definition is None:
            raise ValueError(f"fragment spread {spread.name!r} has no definition")
        deduped = self._dedupe(spread.definition.selection_set)
        if deduped:
            definition = replace(spread.definition, selection_set=deduped)
            self.selection_set.append(replace(spread, definition=definition))

    def _dedupe(self, selection_set: list[Selection]) -> list[Selection]:
        kept: list[Selection] = []
        for selection in selection_set:
            if isinstance(selection, Field):
                claimed = self._claim(selection)
                if claimed is not None:
                    kept.append(claimed)
            elif isinstance(selection, (InlineFragment, FragmentSpread)):
                kept.append(selection)
        return kept